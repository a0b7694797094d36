"""
Error types raised by the notarial confirmation workflow.

Every error carries a stable ``message_key`` that user interfaces translate
into the single message shown when a signing session aborts, and a ``msg``
attribute with a developer-oriented description.
"""

import enum
from typing import Optional, Union

__all__ = [
    'NotarySignError',
    'ValidationFailure',
    'SelectorResolutionFailure',
    'RemoteProtocolFailure',
    'CatalogErrorCode',
    'CatalogUnavailable',
    'NoMatchingPlugin',
    'SealingFailure',
    'WriteFailure',
    'NotActivated',
]


class NotarySignError(Exception):
    """
    Base class for all errors surfaced by a signing session.
    """

    default_message_key = 'notarySign.unexpected'

    def __init__(self, msg: str, message_key: Optional[str] = None):
        self.msg = msg
        self.message_key = message_key or self.default_message_key
        super().__init__(msg)


class ValidationFailure(NotarySignError):
    """
    A pre-flight or plugin-supplied check failed, or the user declined
    to proceed after a check raised a question.
    """

    def __init__(self, msg: str, message_key: str, declined: bool = False):
        self.declined = declined
        super().__init__(msg, message_key)


class SelectorResolutionFailure(NotarySignError):
    """
    No jurisdiction selector could be determined.
    """

    default_message_key = 'notarySign.noJurisdictionSelected'


class RemoteProtocolFailure(NotarySignError):
    """
    Transport-level or service-level failure during an RT1/RT2 exchange.

    :param msg:
        Developer-oriented description.
    :param code:
        The raw error code, either a member of one of the code enumerations
        or the string reported by the remote service.
    :param message_key:
        Stable key obtained by classifying ``code``.
    """

    def __init__(
        self, msg: str, code: Union[enum.Enum, str], message_key: str
    ):
        self.code = code
        super().__init__(msg, message_key)


@enum.unique
class CatalogErrorCode(enum.Enum):
    """
    Failure codes for endpoint catalog retrieval.
    """

    URL_NOT_VALID = 701
    XML_NOT_VALID = 702
    XML_NOT_LOADABLE = 703
    GET_HTTP_ERROR = 704
    HEAD_HTTP_ERROR = 705
    NOT_WRITABLE = 706

    @property
    def message_key(self) -> str:
        return f'catalog.error.{self.name.lower()}.{self.value}'


class CatalogUnavailable(NotarySignError):
    """
    Neither a fresh endpoint catalog nor a usable cached copy is available.
    """

    def __init__(self, msg: str, code: CatalogErrorCode):
        self.code = code
        super().__init__(msg, code.message_key)


class NoMatchingPlugin(NotarySignError):
    """
    No seal plugin implementation is registered for a selector.
    """

    default_message_key = 'seal.error.no_matching_plugin.601'


class SealingFailure(NotarySignError):
    """
    A seal plugin failed to apply its seal.
    """

    default_message_key = 'seal.error.sealing_failed'


class WriteFailure(NotarySignError):
    """
    The final document could not be persisted.
    """

    default_message_key = 'notarySign.writeFailed'


class NotActivated(NotarySignError):
    """
    The notarial function is not activated for the user.
    """

    default_message_key = 'notarySign.notRegistered'
