import logging
from typing import Optional

import requests

from ..document import Document

__all__ = ['OnlineSignatureValidator', 'SignatureValidationServiceError']

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
QUALIFIED_VERDICT = 'VALID'


class SignatureValidationServiceError(IOError):
    """
    Raised when the signature validation service cannot give a verdict.
    """

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


class OnlineSignatureValidator:
    """
    Client for a remote service that checks whether all signatures in a
    PDF document are qualified electronic signatures.

    The document is uploaded as a multipart form, and the service replies
    with a JSON object whose ``valid`` entry holds the overall verdict.

    :param url:
        Validation endpoint.
    :param tenant:
        Tenant identifier expected by the service.
    :param session:
        HTTP session to use.
    :param verify:
        Trust anchor setting passed to ``requests``.
    :param timeout:
        Timeout (in seconds).
    """

    def __init__(
        self,
        url: str,
        tenant: Optional[str] = None,
        session: Optional[requests.Session] = None,
        verify=True,
        timeout=DEFAULT_TIMEOUT_SECONDS,
    ):
        self.url = url
        self.tenant = tenant
        self.session = session or requests.Session()
        self.verify = verify
        self.timeout = timeout

    def __call__(self, document: Document) -> bool:
        """
        Ask the service whether all signatures in a document are qualified.

        :raises SignatureValidationServiceError:
            if the service could not be reached or gave no verdict.
        """
        data = {'tenant': self.tenant} if self.tenant else None
        try:
            response = self.session.post(
                self.url,
                files={
                    'file': ('document.pdf', document.data, 'application/pdf')
                },
                data=data,
                verify=self.verify,
                timeout=self.timeout,
            )
            response.raise_for_status()
            verdict = response.json()['valid']
        except requests.RequestException as e:
            raise SignatureValidationServiceError(
                f"Signature validation service at {self.url} failed: {e}"
            ) from e
        except (ValueError, KeyError, TypeError) as e:
            raise SignatureValidationServiceError(
                "Signature validation service returned a malformed response"
            ) from e
        logger.debug(f"Signature validation verdict: {verdict}")
        return verdict == QUALIFIED_VERDICT
