import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple

from xsdata.models.datatype import XmlDate

from ..errors import CatalogErrorCode, CatalogUnavailable
from ..selectors import JurisdictionSelector
from ..xml_utils import XmlPayloadError, parse_xml_payload, required
from . import model

__all__ = ['EndpointEntry', 'EndpointCatalog', 'parse_catalog']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointEntry:
    """
    A sealing service endpoint for one jurisdiction.
    """

    selector: JurisdictionSelector
    url: str
    version: Decimal
    """
    Version of the sealing protocol spoken by the endpoint.
    """

    parameters: Dict[str, str] = field(default_factory=dict, hash=False)
    """
    Factory parameters passed to the seal plugin.
    """


@dataclass(frozen=True)
class EndpointCatalog:
    """
    Snapshot of the sealing endpoints published for all jurisdictions.
    """

    release: date
    entries: Tuple[EndpointEntry, ...]

    def entries_for(
        self, selector: JurisdictionSelector
    ) -> Tuple[EndpointEntry, ...]:
        """
        All entries for a selector, ordered by ascending version.
        """
        return tuple(
            sorted(
                (entry for entry in self.entries if entry.selector == selector),
                key=lambda entry: entry.version,
            )
        )

    def lookup(
        self, selector: JurisdictionSelector
    ) -> Optional[EndpointEntry]:
        """
        The entry with the highest version for a selector, if any.
        """
        entries = self.entries_for(selector)
        return entries[-1] if entries else None

    def __contains__(self, selector: JurisdictionSelector) -> bool:
        return any(entry.selector == selector for entry in self.entries)

    def __len__(self):
        return len(self.entries)


def _convert_entry(raw: model.EndPoint) -> EndpointEntry:
    canton = required(raw.canton, "Endpoint canton")
    domain = required(raw.domain, "Endpoint domain")
    version = required(raw.version, f"Endpoint version for {canton}/{domain}")
    if not isinstance(version, Decimal):
        raise XmlPayloadError(
            f"Endpoint version for {canton}/{domain} is not a number"
        )
    params = {}
    if raw.factory_parameters is not None:
        for param in raw.factory_parameters.parameter:
            params[required(param.name, "Parameter name")] = param.value or ''
    return EndpointEntry(
        selector=JurisdictionSelector(canton.strip(), domain.strip()),
        url=required(raw.end_point_url, "Endpoint URL").strip(),
        version=version,
        parameters=params,
    )


def parse_catalog(payload: bytes) -> EndpointCatalog:
    """
    Parse an endpoint catalog document.

    :param payload:
        The XML catalog document.
    :return:
        An :class:`EndpointCatalog`.
    :raises CatalogUnavailable:
        if the payload is not a valid catalog.
    """
    try:
        raw = parse_xml_payload(payload, model.EndPoints)
        release = required(raw.release, "Catalog release date")
        if not isinstance(release, XmlDate):
            raise XmlPayloadError("Catalog release is not a date")
        entries = tuple(_convert_entry(ep) for ep in raw.end_point)
    except XmlPayloadError as e:
        raise CatalogUnavailable(
            f"Invalid endpoint catalog: {e.msg}",
            CatalogErrorCode.XML_NOT_VALID,
        ) from e
    logger.debug(
        f"Parsed endpoint catalog released {release} "
        f"with {len(entries)} entries"
    )
    return EndpointCatalog(release=release.to_date(), entries=entries)
