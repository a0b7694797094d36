from .root import NotarySignConfig, parse_config
from .sections import (
    DEFAULT_CACHE_DIR,
    AppearanceSettings,
    CatalogSettings,
    NotaryServiceSettings,
    SelectorListSettings,
    SignatureValidatorSettings,
)

__all__ = [
    'NotarySignConfig',
    'parse_config',
    'DEFAULT_CACHE_DIR',
    'AppearanceSettings',
    'CatalogSettings',
    'NotaryServiceSettings',
    'SelectorListSettings',
    'SignatureValidatorSettings',
]
