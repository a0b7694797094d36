"""
Classification of notarial confirmation failures into stable message keys.

There are two code families: error codes reported by the notarial
confirmation service itself, and codes for problems detected by this
client. Each family has its own key prefix and its own fallback key,
so unknown codes never cause the classification to fail.
"""

import enum
import logging
from typing import Dict, Optional, Union

from ..errors import RemoteProtocolFailure

__all__ = [
    'ServiceErrorCode',
    'ClientErrorCode',
    'SERVICE_KEY_PREFIX',
    'CLIENT_KEY_PREFIX',
    'classify',
    'classify_service_code',
    'classify_client_code',
    'remote_failure',
]

logger = logging.getLogger(__name__)

SERVICE_KEY_PREFIX = 'fn.ws.error.'
CLIENT_KEY_PREFIX = 'fn.client.error.'
UNEXPECTED = 'unexpected'


@enum.unique
class ServiceErrorCode(enum.Enum):
    """
    Error codes reported by the notarial confirmation service.
    """

    ERR_FN_PERMISSION_DENIED = 'ERR_FN_PERMISSION_DENIED'
    ERR_FN_MANY_PERSON_FOR_CERTIFICATE = 'ERR_FN_MANY_PERSON_FOR_CERTIFICATE'
    ERR_FN_NO_PERSON_WITH_THIS_CERTIFICATE = (
        'ERR_FN_NO_PERSON_WITH_THIS_CERTIFICATE'
    )
    ERR_FN_NO_RELEVANT_RELATIONSHIPS_ACTIVE = (
        'ERR_FN_NO_RELEVANT_RELATIONSHIPS_ACTIVE'
    )
    ERR_FN_PDF_SIGN_CERT_NOT_KNOWN_FOR_USER = (
        'ERR_FN_PDF_SIGN_CERT_NOT_KNOWN_FOR_USER'
    )
    # sic, the service spells it this way
    ERR_INT_UNKOWN = 'ERR_INT_UNKOWN'
    ERR_INVALID_DATA = 'ERR_INVALID_DATA'
    ERR_INVALID_HASH = 'ERR_INVALID_HASH'
    ERR_SIGN_CERT_NOT_FOUND = 'ERR_SIGN_CERT_NOT_FOUND'
    ERR_TIMEOUT_BETWEEN_RT1_RT2 = 'ERR_TIMEOUT_BETWEEN_RT1_RT2'
    ERR_UNKOWN_UUID_AT_RT2 = 'ERR_UNKOWN_UUID_AT_RT2'
    ERR_INVALID_REVISION_NUMBER = 'ERR_INVALID_REVISION_NUMBER'
    ERR_MISSING_REQUIRED_PARAM = 'ERR_MISSING_REQUIRED_PARAM'
    ERR_MISSING_RT1_CALL_BEFORE_RT2 = 'ERR_MISSING_RT1_CALL_BEFORE_RT2'
    ERR_SIGCERT_AUTHCERT_MISMATCH = 'ERR_SIGCERT_AUTHCERT_MISMATCH'
    ERR_FN_DISCRETE_VALIDATOR_NOT_VALID = 'ERR_FN_DISCRETE_VALIDATOR_NOT_VALID'
    ERR_SIGDATE_BEFORE_REGISTER_ACTIVATION = (
        'ERR_SIGDATE_BEFORE_REGISTER_ACTIVATION'
    )
    ERR_INT_SERVICE_CALL_FAILED = 'ERR_INT_SERVICE_CALL_FAILED'
    ERR_INT_SERVER_DOWN = 'ERR_INT_SERVER_DOWN'


@enum.unique
class ClientErrorCode(enum.Enum):
    """
    Error codes for problems detected by the client.
    """

    ERR_INT_SERVICE_CALL_FAILED = 'ERR_INT_SERVICE_CALL_FAILED'
    """
    The service could not be reached, or the exchange broke off.
    """

    ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT = (
        'ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT'
    )
    ERR_SIGNATURE_POSITION_TOO_HIGH = 'ERR_SIGNATURE_POSITION_TOO_HIGH'

    ERR_SIGNING_CERT_MISMATCH = 'ERR_SIGNING_CERT_MISMATCH'
    """
    The service expects a different signing certificate than the one
    supplied by the user.
    """

    ERR_MALFORMED_RESPONSE = 'ERR_MALFORMED_RESPONSE'


_SERVICE_KEYS: Dict[ServiceErrorCode, str] = {
    ServiceErrorCode.ERR_FN_PERMISSION_DENIED: 'permission_denied',
    ServiceErrorCode.ERR_FN_MANY_PERSON_FOR_CERTIFICATE: (
        'many_person_for_certificate'
    ),
    ServiceErrorCode.ERR_FN_NO_PERSON_WITH_THIS_CERTIFICATE: (
        'no_person_with_this_certificate'
    ),
    ServiceErrorCode.ERR_FN_NO_RELEVANT_RELATIONSHIPS_ACTIVE: (
        'no_relevant_relationships_active'
    ),
    ServiceErrorCode.ERR_FN_PDF_SIGN_CERT_NOT_KNOWN_FOR_USER: (
        'pdf_sign_cert_not_known_for_user'
    ),
    ServiceErrorCode.ERR_INT_UNKOWN: 'internal_error',
    ServiceErrorCode.ERR_INVALID_DATA: 'invalid_data',
    ServiceErrorCode.ERR_INVALID_HASH: 'invalid_hash',
    ServiceErrorCode.ERR_SIGN_CERT_NOT_FOUND: 'sign_cert_not_found',
    ServiceErrorCode.ERR_TIMEOUT_BETWEEN_RT1_RT2: 'timeout_between_r1_r2',
    ServiceErrorCode.ERR_UNKOWN_UUID_AT_RT2: 'unknown_uuid_at_rt2',
    ServiceErrorCode.ERR_INVALID_REVISION_NUMBER: 'invalid_revision_number',
    ServiceErrorCode.ERR_MISSING_REQUIRED_PARAM: 'missing_required_param',
    ServiceErrorCode.ERR_MISSING_RT1_CALL_BEFORE_RT2: (
        'missing_rt1_call_before_rt2'
    ),
    ServiceErrorCode.ERR_SIGCERT_AUTHCERT_MISMATCH: (
        'sigcert_authcert_mismatch'
    ),
    ServiceErrorCode.ERR_FN_DISCRETE_VALIDATOR_NOT_VALID: (
        'err_fn_discrete_validator_not_valid'
    ),
    ServiceErrorCode.ERR_SIGDATE_BEFORE_REGISTER_ACTIVATION: (
        'err_sigdate_before_register_activation'
    ),
    ServiceErrorCode.ERR_INT_SERVICE_CALL_FAILED: (
        'err_int_service_call_failed'
    ),
    ServiceErrorCode.ERR_INT_SERVER_DOWN: 'err_int_server_down',
}

_CLIENT_KEYS: Dict[ClientErrorCode, str] = {
    # transport failures share the service-side message
    ClientErrorCode.ERR_INT_SERVICE_CALL_FAILED: (
        SERVICE_KEY_PREFIX + 'err_int_service_call_failed'
    ),
    ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT: (
        CLIENT_KEY_PREFIX + 'signature_position_too_far_right'
    ),
    ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_HIGH: (
        CLIENT_KEY_PREFIX + 'signature_position_too_high'
    ),
    ClientErrorCode.ERR_SIGNING_CERT_MISMATCH: (
        CLIENT_KEY_PREFIX + 'signing_cert_mismatch'
    ),
}


def _as_service_code(
    code: Union[ServiceErrorCode, str, None]
) -> Optional[ServiceErrorCode]:
    if isinstance(code, ServiceErrorCode) or code is None:
        return code
    try:
        return ServiceErrorCode(code.strip().upper())
    except (ValueError, AttributeError):
        return None


def classify_service_code(code: Union[ServiceErrorCode, str, None]) -> str:
    """
    Map a service error code to its message key.

    :param code:
        A :class:`ServiceErrorCode`, or the raw string reported by the
        service.
    :return:
        The message key. Unknown codes map to the generic service-side key.
    """
    suffix = _SERVICE_KEYS.get(_as_service_code(code))
    if suffix is None:
        logger.warning(f"Unrecognised service error code {code!r}")
        suffix = UNEXPECTED
    return SERVICE_KEY_PREFIX + suffix


def classify_client_code(code: Union[ClientErrorCode, str, None]) -> str:
    """
    Map a client error code to its message key.

    :param code:
        A :class:`ClientErrorCode`, or its name.
    :return:
        The message key. Unknown codes map to the generic client-side key.
    """
    if not isinstance(code, ClientErrorCode):
        try:
            code = ClientErrorCode(code)
        except ValueError:
            return CLIENT_KEY_PREFIX + UNEXPECTED
    return _CLIENT_KEYS.get(code, CLIENT_KEY_PREFIX + UNEXPECTED)


def classify(code: Union[ServiceErrorCode, ClientErrorCode, str, None]) -> str:
    """
    Map any failure code to its message key.

    Client codes must be passed as :class:`ClientErrorCode` members; all other
    values are treated as service codes.
    """
    if isinstance(code, ClientErrorCode):
        return classify_client_code(code)
    return classify_service_code(code)


def remote_failure(
    code: Union[ServiceErrorCode, ClientErrorCode, str], msg: str
) -> RemoteProtocolFailure:
    """
    Build a :class:`.RemoteProtocolFailure` for a failure code.
    """
    return RemoteProtocolFailure(msg, code=code, message_key=classify(code))
