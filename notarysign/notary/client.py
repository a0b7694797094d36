"""
Client for the notarial confirmation service.

The service speaks JSON over HTTPS, authenticated with a TLS client
certificate. Binary values (digests, certificates, CMS objects) are
transferred in base64. A confirmation takes two round trips:

* RT1 opens a session for a document and a jurisdiction. The service
  answers with a session UUID, the certificate it will sign the
  confirmation with, and the placement of the confirmation signature.
* RT2 sends the digest of the document with the confirmation signature
  placeholder in place, and receives the CMS signature to embed.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests
from asn1crypto import cms, x509

from ..credentials import CredentialHandle
from ..selectors import JurisdictionSelector
from .codes import ClientErrorCode, ServiceErrorCode, remote_failure

__all__ = [
    'SignaturePlacement',
    'RT1Request',
    'RT1Response',
    'RT2Request',
    'RT2Response',
    'NotaryServiceClient',
]

logger = logging.getLogger(__name__)

RT1_PATH = 'rt1'
RT2_PATH = 'rt2'
LOGIN_PATH = 'login'


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _malformed(msg: str):
    return remote_failure(ClientErrorCode.ERR_MALFORMED_RESPONSE, msg)


@dataclass(frozen=True)
class SignaturePlacement:
    """
    Location of the visible confirmation signature.
    """

    page: int
    """
    Zero-based page index.
    """

    box: Tuple[int, int, int, int]
    """
    Signature rectangle ``(x1, y1, x2, y2)`` in PDF user space units.
    """


@dataclass(frozen=True)
class RT1Request:
    selector: JurisdictionSelector
    document_digest: bytes
    """
    Digest of the document as submitted by the user.
    """

    md_algorithm: str
    signing_cert: x509.Certificate
    """
    Certificate of the signer whose function is to be confirmed.
    """

    def as_json(self) -> dict:
        return {
            'canton': self.selector.canton,
            'domain': self.selector.domain,
            'documentHash': _b64(self.document_digest),
            'hashAlgorithm': self.md_algorithm,
            'signingCertificate': _b64(self.signing_cert.dump()),
        }


@dataclass(frozen=True)
class RT1Response:
    uuid: str
    """
    Session identifier to quote in RT2.
    """

    confirmation_cert: x509.Certificate
    """
    Certificate the service will sign the confirmation with.
    """

    field_name: str
    """
    Name of the signature field holding the confirmation.
    """

    appearance_text: str = ''
    placement: Optional[SignaturePlacement] = None
    expected_cert_fingerprint: Optional[str] = None
    """
    Hex SHA-256 fingerprint of the signing certificate the service has
    on record for the user, if it reports one.
    """

    @classmethod
    def from_json(cls, data: dict) -> 'RT1Response':
        try:
            cert = x509.Certificate.load(
                base64.b64decode(data['confirmationCertificate'])
            )
            # force parsing to catch garbage early
            cert.native
            placement = None
            pos = data.get('signaturePosition')
            if pos:
                placement = SignaturePlacement(
                    page=int(pos.get('page', 0)),
                    box=(
                        int(pos['x1']),
                        int(pos['y1']),
                        int(pos['x2']),
                        int(pos['y2']),
                    ),
                )
            fingerprint = data.get('expectedSigningCertificateSha256')
            return RT1Response(
                uuid=str(data['uuid']),
                confirmation_cert=cert,
                field_name=str(data['signatureFieldName']),
                appearance_text=str(data.get('appearanceText', '')),
                placement=placement,
                expected_cert_fingerprint=(
                    fingerprint.lower() if fingerprint else None
                ),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise _malformed(f"Malformed RT1 response: {e}") from e


@dataclass(frozen=True)
class RT2Request:
    uuid: str
    document_digest: bytes
    """
    Byte range digest of the document with the confirmation signature
    placeholder in place.
    """

    md_algorithm: str

    def as_json(self) -> dict:
        return {
            'uuid': self.uuid,
            'documentDigest': _b64(self.document_digest),
            'digestAlgorithm': self.md_algorithm,
        }


@dataclass(frozen=True)
class RT2Response:
    signature_cms: cms.ContentInfo

    @classmethod
    def from_json(cls, data: dict) -> 'RT2Response':
        try:
            signature = cms.ContentInfo.load(
                base64.b64decode(data['signature'])
            )
            if signature['content_type'].native != 'signed_data':
                raise ValueError("CMS object does not contain signed data")
            return RT2Response(signature_cms=signature)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise _malformed(f"Malformed RT2 response: {e}") from e


class NotaryServiceClient:
    """
    Client for one user's session with the notarial confirmation service.

    Instances are created by the caller and passed to the signing driver
    explicitly; they hold the user's credentials and are not shared
    between users.

    :param service_url:
        Base URL of the service.
    :param credential:
        The user's credentials.
    :param session:
        HTTP session to use.
    :param verify:
        Trust anchor setting passed to ``requests``.
    :param timeout:
        Timeout (in seconds). The default is to wait indefinitely.
    """

    def __init__(
        self,
        service_url: str,
        credential: CredentialHandle,
        session: Optional[requests.Session] = None,
        verify=True,
        timeout=None,
    ):
        self.service_url = service_url.rstrip('/')
        self.credential = credential
        self.session = session or requests.Session()
        self.verify = verify
        self.timeout = timeout

    def endpoint_url(self, path: str) -> str:
        return f"{self.service_url}/{path}"

    def _post(self, path: str, payload: dict) -> dict:
        url = self.endpoint_url(path)
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={'Accept': 'application/json'},
                cert=self.credential.tls_client_cert,
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise remote_failure(
                ClientErrorCode.ERR_INT_SERVICE_CALL_FAILED,
                f"Call to {url} failed: {e}",
            ) from e

        try:
            data = response.json()
        except ValueError:
            data = None
        error_code = data.get('errorCode') if isinstance(data, dict) else None
        if error_code:
            logger.info(f"{url} reported error code {error_code}")
            raise remote_failure(
                error_code, f"Service reported {error_code} at {path}"
            )
        if response.status_code == 503:
            raise remote_failure(
                ServiceErrorCode.ERR_INT_SERVER_DOWN,
                f"{url} is unavailable",
            )
        if response.status_code != 200:
            raise remote_failure(
                f'HTTP_{response.status_code}',
                f"{url} returned status {response.status_code}",
            )
        if not isinstance(data, dict):
            raise _malformed(f"{url} did not return a JSON object")
        return data

    def login(self) -> bool:
        """
        Check whether the user is registered for notarial confirmations.

        :return:
            ``True`` if the notarial function is activated for the user.
        """
        data = self._post(
            LOGIN_PATH,
            {
                'signingCertificate': _b64(
                    self.credential.signing_cert.dump()
                )
            },
        )
        return bool(data.get('activated', False))

    def call_rt1(self, request: RT1Request) -> RT1Response:
        logger.debug(f"Sending RT1 request for {request.selector}")
        response = RT1Response.from_json(
            self._post(RT1_PATH, request.as_json())
        )
        logger.info(f"RT1 completed, session {response.uuid}")
        return response

    def call_rt2(self, request: RT2Request) -> RT2Response:
        logger.debug(f"Sending RT2 request for session {request.uuid}")
        response = RT2Response.from_json(
            self._post(RT2_PATH, request.as_json())
        )
        logger.info(f"RT2 completed, session {request.uuid}")
        return response
