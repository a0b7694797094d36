"""
Seal plugin for the register of notaries (``upreg``), backed by the SDMS
sealing service.

The confirmed document is uploaded to the endpoint listed in the catalog,
which returns the document with the cantonal seal added.
"""

import logging
from decimal import Decimal
from typing import List, Optional

import requests

from ..credentials import CredentialHandle
from ..document import Document
from ..errors import SealingFailure
from ..selectors import JurisdictionSelector
from ..validation import SUCCESS, ValidationCheck, ValidationOutcome
from .api import SealPlugin

__all__ = ['SdmsSealPlugin', 'ConfirmationPresentCheck', 'DocumentSizeCheck']

logger = logging.getLogger(__name__)

DEFAULT_MAX_DOCUMENT_SIZE = 20 * 1024 * 1024
MAX_DOCUMENT_SIZE_PARAMETER = 'max-document-size'
SEAL_TIMEOUT_SECONDS = 60


class ConfirmationPresentCheck:
    """
    Require the user's signature and the notarial confirmation to be
    present.
    """

    message_key = 'seal.sdms.noConfirmation'

    def __call__(self, document: Document) -> ValidationOutcome:
        if document.signature_count < 2:
            return ValidationOutcome.error(self.message_key)
        return SUCCESS


class DocumentSizeCheck:
    """
    Ask for confirmation before uploading large documents.
    """

    message_key = 'seal.sdms.largeDocument'

    def __init__(self, max_size: int):
        self.max_size = max_size

    def __call__(self, document: Document) -> ValidationOutcome:
        if document.size > self.max_size:
            return ValidationOutcome.question(self.message_key)
        return SUCCESS


class SdmsSealPlugin(SealPlugin):
    domain = 'upreg'
    supported_versions = frozenset([Decimal('1.0'), Decimal('1.1')])

    def __init__(
        self,
        selector: JurisdictionSelector,
        session: Optional[requests.Session] = None,
        verify=True,
    ):
        super().__init__(selector)
        self.session = session or requests.Session()
        self.verify = verify

    @property
    def max_document_size(self) -> int:
        if self.endpoint is None:
            return DEFAULT_MAX_DOCUMENT_SIZE
        raw = self.endpoint.parameters.get(MAX_DOCUMENT_SIZE_PARAMETER)
        if raw is None:
            return DEFAULT_MAX_DOCUMENT_SIZE
        try:
            return int(raw)
        except ValueError:
            logger.warning(
                f"Ignoring invalid {MAX_DOCUMENT_SIZE_PARAMETER} "
                f"parameter '{raw}'"
            )
            return DEFAULT_MAX_DOCUMENT_SIZE

    @property
    def checks(self) -> List[ValidationCheck]:
        return [
            ConfirmationPresentCheck(),
            DocumentSizeCheck(self.max_document_size),
        ]

    def apply_seal(self, data: bytes, credential: CredentialHandle) -> bytes:
        if self.endpoint is None:
            raise SealingFailure(
                f"Seal plugin for {self.selector} is not bound to an endpoint"
            )
        url = self.endpoint.url
        try:
            response = self.session.post(
                url,
                data=data,
                headers={
                    'Content-Type': 'application/pdf',
                    'Accept': 'application/pdf',
                    'X-Seal-Canton': self.selector.canton,
                    'X-Seal-Domain': self.selector.domain,
                    'X-Seal-Version': str(self.endpoint.version),
                },
                cert=credential.tls_client_cert,
                verify=self.verify,
                timeout=SEAL_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SealingFailure(f"Sealing request to {url} failed: {e}") from e
        content_type = response.headers.get('Content-Type', '')
        if not content_type.startswith('application/pdf') or (
            not response.content.startswith(b'%PDF')
        ):
            raise SealingFailure(f"Sealing service at {url} returned no PDF")
        logger.info(f"Applied seal for {self.selector} via {url}")
        return response.content
