import logging
from decimal import Decimal
from typing import ClassVar, FrozenSet, List, Optional

from ..catalog import EndpointCatalog, EndpointEntry
from ..credentials import CredentialHandle
from ..selectors import JurisdictionSelector
from ..validation import ValidationCheck

__all__ = ['SealPlugin']

logger = logging.getLogger(__name__)


class SealPlugin:
    """
    A jurisdiction-specific seal applied after the notarial confirmation.

    A plugin instance is bound to one selector and is used for a single
    signing session. Before the seal can be applied, the plugin has to be
    bound to a catalog entry with :meth:`bind`.

    :param selector:
        The selector the plugin was built for.
    """

    domain: ClassVar[str]
    """
    Register domain the plugin implementation serves.
    """

    supported_versions: ClassVar[FrozenSet[Decimal]] = frozenset()
    """
    Catalog entry versions the plugin implementation can talk to.
    """

    def __init__(self, selector: JurisdictionSelector):
        self.selector = selector
        self.endpoint: Optional[EndpointEntry] = None

    def select_endpoint(
        self, catalog: EndpointCatalog
    ) -> Optional[EndpointEntry]:
        """
        Pick the catalog entry with the highest supported version.
        """
        candidates = [
            entry
            for entry in catalog.entries_for(self.selector)
            if entry.version in self.supported_versions
        ]
        return candidates[-1] if candidates else None

    def bind(self, catalog: EndpointCatalog) -> bool:
        """
        Bind the plugin to its endpoint in the catalog.

        :return:
            ``True`` if a suitable endpoint was found.
        """
        self.endpoint = self.select_endpoint(catalog)
        if self.endpoint is None:
            logger.warning(
                f"Catalog has no entry for {self.selector} with a version "
                f"in {sorted(self.supported_versions)}"
            )
            return False
        logger.debug(
            f"Seal plugin for {self.selector} bound to {self.endpoint.url} "
            f"(version {self.endpoint.version})"
        )
        return True

    @property
    def checks(self) -> List[ValidationCheck]:
        """
        Checks the confirmed document must pass before the seal is applied.
        """
        return []

    def apply_seal(self, data: bytes, credential: CredentialHandle) -> bytes:
        """
        Apply the seal.

        :param data:
            The confirmed document.
        :param credential:
            The user's credentials.
        :return:
            The sealed document.
        :raises SealingFailure:
            if the seal could not be applied.
        """
        raise NotImplementedError
