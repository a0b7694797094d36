"""
Configuration sections, populated from the YAML configuration file.

Keys are written with hyphens in the configuration file, and map to the
corresponding attribute names with underscores.
"""

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from pyhanko.config import api
from pyhanko.config.errors import ConfigurationError

from ..catalog import CatalogCache, CatalogFetcher
from ..catalog.cache import FETCH_CONNECT_TIMEOUT_SECONDS, FETCH_TIMEOUT_SECONDS
from ..credentials import CredentialHandle, load_credential
from ..notary import NotaryServiceClient, PdfAppearancePreparer
from ..notary.appearance import DEFAULT_BYTES_RESERVED, DEFAULT_MD_ALGORITHM
from ..selector_list import SelectorListUpdater
from ..selectors import JurisdictionSelector
from ..validation import OnlineSignatureValidator

__all__ = [
    'DEFAULT_CACHE_DIR',
    'NotaryServiceSettings',
    'CatalogSettings',
    'SelectorListSettings',
    'SignatureValidatorSettings',
    'AppearanceSettings',
]

DEFAULT_CACHE_DIR = os.path.join('~', '.notarysign')

SELECTOR_LIST_FILE_NAME = 'zulabconfiguration.xml'


def _check_url(config_dict, key='url'):
    url = config_dict.get(key)
    if url is None:
        return
    if not isinstance(url, str) or not url.lower().startswith(
        ('https:', 'http:')
    ):
        raise ConfigurationError(
            f"'{key.replace('_', '-')}' must be an HTTP(S) URL, not {url!r}."
        )


def _check_positive_int(config_dict, key):
    value = config_dict.get(key)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"'{key.replace('_', '-')}' must be a positive integer."
        )


def _verify_setting(trust_store: Optional[str]):
    return trust_store if trust_store is not None else True


@dataclass(frozen=True)
class NotaryServiceSettings(api.ConfigurableMixin):
    """
    Settings for the notarial confirmation service.
    """

    url: str
    """
    Base URL of the service.
    """

    signing_cert: Optional[str] = None
    """
    Path to the signer's certificate (PEM or DER).
    Can be overridden on the command line.
    """

    client_cert: Optional[str] = None
    """
    Path to the TLS client certificate (PEM).
    """

    client_key: Optional[str] = None
    """
    Path to the TLS client key (PEM), if not bundled with the certificate.
    """

    trust_store: Optional[str] = None
    """
    CA bundle used to authenticate the service.
    If not specified, the system trust is used.
    """

    canton: Optional[str] = None
    """
    Canton to request confirmations for.
    """

    domain: Optional[str] = None
    """
    Register domain to request confirmations for.
    """

    show_dialog: bool = False
    """
    Always ask for the jurisdiction, even if one is configured.
    """

    timeout: Optional[int] = None
    """
    Timeout for RT1/RT2 calls, in seconds.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        _check_url(config_dict)
        _check_positive_int(config_dict, 'timeout')
        for key in ('canton', 'domain'):
            value = config_dict.get(key)
            if value is not None:
                config_dict[key] = str(value)

    @property
    def verify(self):
        return _verify_setting(self.trust_store)

    @property
    def selector(self) -> JurisdictionSelector:
        """
        The configured jurisdiction selector, which may be incomplete.
        """
        return JurisdictionSelector(
            canton=self.canton or '', domain=self.domain or ''
        )

    def load_credential(
        self,
        signing_cert: Optional[str] = None,
        client_cert: Optional[str] = None,
        client_key: Optional[str] = None,
    ) -> CredentialHandle:
        """
        Load the user's credentials, preferring explicitly passed paths over
        configured ones.
        """
        cert_file = signing_cert or self.signing_cert
        if cert_file is None:
            raise ConfigurationError(
                "No signing certificate specified for the notary service."
            )
        return load_credential(
            cert_file,
            client_cert=client_cert or self.client_cert,
            client_key=client_key or self.client_key,
        )

    def client(
        self,
        credential: CredentialHandle,
        session: Optional[requests.Session] = None,
    ) -> NotaryServiceClient:
        return NotaryServiceClient(
            self.url,
            credential,
            session=session,
            verify=self.verify,
            timeout=self.timeout,
        )


@dataclass(frozen=True)
class CatalogSettings(api.ConfigurableMixin):
    """
    Settings for the sealing endpoint catalog.
    """

    url: str
    """
    Location of the published catalog.
    """

    cache_dir: str = DEFAULT_CACHE_DIR
    """
    Directory holding the cached catalog.
    """

    trust_store: Optional[str] = None
    """
    CA bundle used to authenticate the catalog server and the sealing
    endpoints it lists.
    """

    connect_timeout: int = FETCH_CONNECT_TIMEOUT_SECONDS
    read_timeout: int = FETCH_TIMEOUT_SECONDS

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        _check_url(config_dict)
        _check_positive_int(config_dict, 'connect_timeout')
        _check_positive_int(config_dict, 'read_timeout')

    @property
    def verify(self):
        return _verify_setting(self.trust_store)

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()

    def fetcher(
        self, session: Optional[requests.Session] = None
    ) -> CatalogFetcher:
        return CatalogFetcher(
            self.url,
            CatalogCache(self.cache_path),
            session=session,
            verify=self.verify,
            timeout=(self.connect_timeout, self.read_timeout),
        )


@dataclass(frozen=True)
class SelectorListSettings(api.ConfigurableMixin):
    """
    Settings for the list of selectable cantons and domains.
    """

    url: Optional[str] = None
    """
    Location of the published list. If not set, the local list is never
    updated.
    """

    cache_dir: str = DEFAULT_CACHE_DIR
    """
    Directory holding the local list.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        _check_url(config_dict)

    @property
    def path(self) -> Path:
        return Path(self.cache_dir).expanduser() / SELECTOR_LIST_FILE_NAME

    def updater(
        self, session: Optional[requests.Session] = None
    ) -> SelectorListUpdater:
        if self.url is None:
            raise ConfigurationError(
                "No URL configured for the selector list."
            )
        return SelectorListUpdater(self.url, self.path, session=session)


@dataclass(frozen=True)
class SignatureValidatorSettings(api.ConfigurableMixin):
    """
    Settings for the online signature validation service.
    """

    url: str
    tenant: Optional[str] = None
    trust_store: Optional[str] = None
    timeout: int = 30

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        _check_url(config_dict)
        _check_positive_int(config_dict, 'timeout')

    def validator(
        self, session: Optional[requests.Session] = None
    ) -> OnlineSignatureValidator:
        return OnlineSignatureValidator(
            self.url,
            tenant=self.tenant,
            session=session,
            verify=_verify_setting(self.trust_store),
            timeout=self.timeout,
        )


@dataclass(frozen=True)
class AppearanceSettings(api.ConfigurableMixin):
    """
    Settings for the confirmation signature's layout.
    """

    md_algorithm: str = DEFAULT_MD_ALGORITHM
    """
    Digest algorithm for the document digest sent in RT2.
    """

    bytes_reserved: int = DEFAULT_BYTES_RESERVED
    """
    Space reserved for the confirmation signature.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        try:
            md_algorithm = str(config_dict['md_algorithm']).lower()
            if md_algorithm not in hashlib.algorithms_guaranteed:
                raise ConfigurationError(
                    f"Unsupported digest algorithm '{md_algorithm}'."
                )
            config_dict['md_algorithm'] = md_algorithm
        except KeyError:
            pass
        _check_positive_int(config_dict, 'bytes_reserved')

    def preparer(self) -> PdfAppearancePreparer:
        return PdfAppearancePreparer(
            md_algorithm=self.md_algorithm,
            bytes_reserved=self.bytes_reserved,
        )
