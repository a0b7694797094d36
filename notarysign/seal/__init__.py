from .api import SealPlugin
from .resolver import SealPluginResolver
from .sdms import SdmsSealPlugin

__all__ = ['SealPlugin', 'SealPluginResolver', 'SdmsSealPlugin']
