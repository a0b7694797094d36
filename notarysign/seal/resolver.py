"""
Resolution of seal plugins by jurisdiction.

Plugin implementations are registered per register domain. Whether a
plugin is in effect for a particular canton is decided by the endpoint
catalog: the plugin is only used if the catalog lists an endpoint for the
exact (canton, domain) pair.

Implementations used to be restricted to a list of cantons as well.
That restriction has been lifted, and every canton is now accepted for
a registered domain; the restriction can be reinstated through
:attr:`SealPluginResolver.accept_any_canton`.
"""

import logging
from typing import Dict, FrozenSet, Optional, Type

from ..catalog import EndpointCatalog
from ..errors import NoMatchingPlugin
from ..selectors import JurisdictionSelector
from .api import SealPlugin
from .sdms import SdmsSealPlugin

__all__ = [
    'SEAL_PLUGIN_TYPES',
    'ACCEPT_ANY_CANTON',
    'SUPPORTED_CANTONS',
    'SealPluginResolver',
]

logger = logging.getLogger(__name__)

SEAL_PLUGIN_TYPES: Dict[str, Type[SealPlugin]] = {
    SdmsSealPlugin.domain: SdmsSealPlugin,
}
"""
Registered plugin implementations, keyed by lower-case domain.
"""

ACCEPT_ANY_CANTON = True
"""
Accept every canton for a registered domain.
"""

SUPPORTED_CANTONS: FrozenSet[str] = frozenset(['vd', 'ge'])
"""
Cantons accepted when :const:`ACCEPT_ANY_CANTON` is disabled.
"""


class SealPluginResolver:
    """
    Determines whether a seal plugin applies to a selector, and builds it.

    :param plugin_types:
        Plugin implementations keyed by domain.
    :param accept_any_canton:
        If ``False``, only cantons in ``supported_cantons`` are accepted.
    :param supported_cantons:
        Accepted cantons if ``accept_any_canton`` is ``False``.
    :param plugin_kwargs:
        Extra keyword arguments passed to plugin constructors.
    """

    def __init__(
        self,
        plugin_types: Optional[Dict[str, Type[SealPlugin]]] = None,
        accept_any_canton: bool = ACCEPT_ANY_CANTON,
        supported_cantons: FrozenSet[str] = SUPPORTED_CANTONS,
        plugin_kwargs: Optional[dict] = None,
    ):
        types = SEAL_PLUGIN_TYPES if plugin_types is None else plugin_types
        self.plugin_types = {
            domain.casefold(): cls for domain, cls in types.items()
        }
        self.accept_any_canton = accept_any_canton
        self.supported_cantons = frozenset(
            canton.casefold() for canton in supported_cantons
        )
        self.plugin_kwargs = plugin_kwargs or {}

    def _plugin_type(
        self, selector: JurisdictionSelector
    ) -> Optional[Type[SealPlugin]]:
        canton, domain = selector.key
        if not self.accept_any_canton and canton not in self.supported_cantons:
            return None
        return self.plugin_types.get(domain)

    def exists(self, selector: JurisdictionSelector) -> bool:
        """
        Check whether a plugin implementation is registered for a selector.
        """
        return self._plugin_type(selector) is not None

    def is_configured(
        self, selector: JurisdictionSelector, catalog: EndpointCatalog
    ) -> bool:
        """
        Check whether the catalog lists an endpoint for a selector.
        """
        return selector in catalog

    def build(self, selector: JurisdictionSelector) -> SealPlugin:
        """
        Instantiate the plugin for a selector.
        Does not perform any I/O.

        :raises NoMatchingPlugin:
            if no implementation is registered for the selector.
        """
        plugin_type = self._plugin_type(selector)
        if plugin_type is None:
            raise NoMatchingPlugin(
                f"No seal plugin registered for {selector}"
            )
        logger.debug(f"Building {plugin_type.__name__} for {selector}")
        return plugin_type(selector, **self.plugin_kwargs)
