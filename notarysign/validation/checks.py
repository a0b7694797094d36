"""
Document checks run before a notarial confirmation is requested.
"""

import logging
from typing import Callable, List, Optional

import requests

from ..document import Document
from .api import SUCCESS, ValidationCheck, ValidationOutcome
from .online import SignatureValidationServiceError

__all__ = [
    'NetworkReachabilityCheck',
    'PdfAConformanceCheck',
    'HasSignaturesCheck',
    'AllSignaturesQualifiedCheck',
    'preflight_checks',
]

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 10


class NetworkReachabilityCheck:
    """
    Check that the notarial confirmation service can be reached.

    Any HTTP response counts as success; only transport failures are
    reported.
    """

    message_key = 'notarySign.noNetworkConnection'

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        verify=True,
        timeout=PROBE_TIMEOUT_SECONDS,
    ):
        self.url = url
        self.session = session or requests.Session()
        self.verify = verify
        self.timeout = timeout

    def __call__(self, document: Document) -> ValidationOutcome:
        try:
            self.session.head(
                self.url,
                allow_redirects=True,
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{self.url} is not reachable: {e}")
            return ValidationOutcome.error(self.message_key)
        return SUCCESS


class PdfAConformanceCheck:
    """
    Ask the user for confirmation if the document is not PDF/A.

    :param validator:
        Structural PDF/A validator. By default, the conformance claim
        in the document's XMP metadata is trusted.
    """

    message_key = 'notarySign.noPdfA'

    def __init__(self, validator: Optional[Callable[[Document], bool]] = None):
        self.validator = validator

    def __call__(self, document: Document) -> ValidationOutcome:
        if self.validator is not None:
            conforms = self.validator(document)
        else:
            conforms = document.pdfa_part is not None
        if conforms:
            return SUCCESS
        return ValidationOutcome.question(self.message_key)


class HasSignaturesCheck:
    """
    Require at least one existing signature.
    """

    message_key = 'notarySign.notOneSignature'

    def __call__(self, document: Document) -> ValidationOutcome:
        if document.signature_count < 1:
            return ValidationOutcome.error(self.message_key)
        return SUCCESS


class AllSignaturesQualifiedCheck:
    """
    Require all existing signatures to be qualified.

    :param verifier:
        Function deciding whether all signatures are qualified,
        typically an :class:`.OnlineSignatureValidator`.
        If the verifier cannot give a verdict, the signatures are treated
        as not qualified.
    """

    message_key = 'notarySign.notFullQualifiedSignature'

    def __init__(self, verifier: Callable[[Document], bool]):
        self.verifier = verifier

    def __call__(self, document: Document) -> ValidationOutcome:
        try:
            qualified = self.verifier(document)
        except SignatureValidationServiceError as e:
            logger.warning(f"Could not validate signatures: {e.msg}")
            qualified = False
        if qualified:
            return SUCCESS
        return ValidationOutcome.error(self.message_key)


def preflight_checks(
    service_url: str,
    signature_verifier: Callable[[Document], bool],
    session: Optional[requests.Session] = None,
    verify=True,
    pdfa_validator: Optional[Callable[[Document], bool]] = None,
) -> List[ValidationCheck]:
    """
    Assemble the checks that run before a notarial confirmation is
    requested, in evaluation order.
    """
    return [
        NetworkReachabilityCheck(service_url, session=session, verify=verify),
        PdfAConformanceCheck(pdfa_validator),
        HasSignaturesCheck(),
        AllSignaturesQualifiedCheck(signature_verifier),
    ]
