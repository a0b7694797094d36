import hashlib
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from asn1crypto import x509
from pyhanko.keys import load_cert_from_pemder

__all__ = ['CredentialHandle', 'load_credential']


@dataclass(frozen=True)
class CredentialHandle:
    """
    The signer's credentials, as far as the notarial confirmation workflow
    needs them.

    Private signing keys never pass through this object; the signer's
    certificate identifies them to the remote service, and the optional
    TLS client certificate authenticates the connection.
    """

    signing_cert: x509.Certificate
    """
    Certificate of the signer whose function is to be confirmed.
    """

    client_cert: Optional[str] = None
    """
    Path to a PEM file with the TLS client certificate.
    """

    client_key: Optional[str] = None
    """
    Path to a PEM file with the TLS client key, if not included in
    :attr:`client_cert`.
    """

    @property
    def tls_client_cert(self) -> Union[None, str, Tuple[str, str]]:
        """
        Client certificate setting in the format ``requests`` expects.
        """
        if self.client_cert is None:
            return None
        if self.client_key is None:
            return self.client_cert
        return self.client_cert, self.client_key

    @property
    def fingerprint(self) -> str:
        """
        Hex-encoded SHA-256 fingerprint of the signing certificate.
        """
        return hashlib.sha256(self.signing_cert.dump()).hexdigest()


def load_credential(
    cert_file: str,
    client_cert: Optional[str] = None,
    client_key: Optional[str] = None,
) -> CredentialHandle:
    """
    Load a credential handle from files.

    :param cert_file:
        PEM or DER file with the signer's certificate.
    :param client_cert:
        PEM file with the TLS client certificate.
    :param client_key:
        PEM file with the TLS client key.
    """
    return CredentialHandle(
        signing_cert=load_cert_from_pemder(cert_file),
        client_cert=client_cert,
        client_key=client_key,
    )
