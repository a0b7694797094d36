"""
The list of cantons and register domains offered to the user when a
jurisdiction selector has to be chosen interactively.

The list is published as a small XML document and kept in a local file,
which is replaced whenever a newer version is published.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import requests

from .fileio import atomic_write
from .xml_utils import XmlPayloadError, parse_xml_payload, required

__all__ = [
    'VERSION_NOT_AVAILABLE',
    'SelectorListEntry',
    'SelectorList',
    'SelectorListUpdater',
    'is_update_available',
]

logger = logging.getLogger(__name__)

__NAMESPACE__ = "http://www.glue.ch/localsigner/zulabconfiguration"

VERSION_NOT_AVAILABLE = 'n\\a'
"""
Version marker of a selector list that has never been downloaded.
"""

EMPTY_LIST_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    f'<config version="{VERSION_NOT_AVAILABLE}" xmlns="{__NAMESPACE__}">\n'
    '  <cantons/>\n'
    '  <domains/>\n'
    '</config>'
).encode('utf8')

FETCH_TIMEOUT_SECONDS = 10
FETCH_CONNECT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class _Translations:
    german: Optional[str] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )
    french: Optional[str] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )
    italian: Optional[str] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )


@dataclass(frozen=True)
class _Entry:
    value: Optional[str] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": __NAMESPACE__,
            "required": True,
        },
    )
    translations: Optional[_Translations] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )


@dataclass(frozen=True)
class _Cantons:
    canton: Tuple[_Entry, ...] = field(
        default_factory=tuple,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )


@dataclass(frozen=True)
class _Domains:
    domain: Tuple[_Entry, ...] = field(
        default_factory=tuple,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )


@dataclass(frozen=True)
class _Config:
    class Meta:
        name = "config"
        namespace = __NAMESPACE__

    version: Optional[str] = field(
        default=None,
        metadata={"type": "Attribute", "required": True},
    )
    cantons: Optional[_Cantons] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )
    domains: Optional[_Domains] = field(
        default=None,
        metadata={"type": "Element", "namespace": __NAMESPACE__},
    )


@dataclass(frozen=True)
class SelectorListEntry:
    value: str
    """
    The code used in jurisdiction selectors.
    """

    german: str = ''
    french: str = ''
    italian: str = ''

    def label(self, language: str = 'de') -> str:
        translated = {
            'de': self.german,
            'fr': self.french,
            'it': self.italian,
        }.get(language)
        return translated or self.value


def _entries(raw_entries) -> Dict[str, SelectorListEntry]:
    result = {}
    for raw in raw_entries:
        value = required(raw.value, "Entry value")
        tr = raw.translations or _Translations()
        result[value] = SelectorListEntry(
            value=value,
            german=tr.german or '',
            french=tr.french or '',
            italian=tr.italian or '',
        )
    return result


@dataclass(frozen=True)
class SelectorList:
    """
    Cantons and domains available for selection, keyed by code.
    """

    version: str
    cantons: Dict[str, SelectorListEntry]
    domains: Dict[str, SelectorListEntry]

    @classmethod
    def parse(cls, payload: bytes) -> 'SelectorList':
        raw = parse_xml_payload(payload, _Config)
        return SelectorList(
            version=required(raw.version, "Selector list version"),
            cantons=_entries(raw.cantons.canton if raw.cantons else ()),
            domains=_entries(raw.domains.domain if raw.domains else ()),
        )

    @classmethod
    def load(cls, path: Path) -> 'SelectorList':
        """
        Load the selector list from a file, creating an empty placeholder
        list first if the file does not exist yet.
        """
        if not path.exists():
            logger.info(
                f"No selector list at {path}; creating an empty one "
                f"to trigger an update"
            )
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, EMPTY_LIST_XML)
        return cls.parse(path.read_bytes())


def is_update_available(local_version: str, remote_version: str) -> bool:
    """
    Decide whether a published selector list supersedes the local one.

    Versions are ISO-like timestamps that order lexicographically.
    A local list that was never downloaded is always superseded.
    """
    if local_version == VERSION_NOT_AVAILABLE:
        return True
    return remote_version > local_version


class SelectorListUpdater:
    """
    Keeps the local selector list file in sync with the published one.

    :param url:
        Location of the published selector list.
    :param path:
        Local file holding the selector list.
    :param session:
        HTTP session to use.
    :param verify:
        Trust anchor setting passed to ``requests``.
    """

    def __init__(
        self,
        url: str,
        path: Path,
        session: Optional[requests.Session] = None,
        verify=True,
    ):
        self.url = url
        self.path = path
        self.session = session or requests.Session()
        self.verify = verify

    def update(self) -> SelectorList:
        """
        Download the published list and replace the local file if the
        published list is newer.

        Download failures are logged, and the local list is kept.

        :return:
            The selector list in effect after the update.
        """
        local = SelectorList.load(self.path)
        try:
            response = self.session.get(
                self.url,
                timeout=(FETCH_CONNECT_TIMEOUT_SECONDS, FETCH_TIMEOUT_SECONDS),
                verify=self.verify,
            )
            response.raise_for_status()
            remote = SelectorList.parse(response.content)
        except (requests.RequestException, XmlPayloadError) as e:
            logger.warning(
                f"Failed to retrieve selector list from {self.url}: {e}"
            )
            return local
        if not is_update_available(local.version, remote.version):
            logger.debug(f"Selector list version {local.version} is current")
            return local
        logger.info(
            f"Updating selector list from version {local.version} "
            f"to {remote.version}"
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(self.path, response.content)
        return remote
