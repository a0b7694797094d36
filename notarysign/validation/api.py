import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..document import Document
from ..errors import ValidationFailure

__all__ = [
    'ValidationStatus',
    'ValidationOutcome',
    'SUCCESS',
    'ValidationCheck',
    'QuestionHandler',
    'run_checks',
    'execute_checks',
]

logger = logging.getLogger(__name__)


@enum.unique
class ValidationStatus(enum.Enum):
    SUCCESS = enum.auto()
    QUESTION = enum.auto()
    """
    The check failed, but the user may choose to proceed anyway.
    """

    ERROR = enum.auto()
    """
    The check failed, and the operation cannot continue.
    """


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of a single document check.
    """

    status: ValidationStatus
    message_key: Optional[str] = None
    """
    Key of the message presented to the user. Always set unless
    :attr:`status` is :attr:`ValidationStatus.SUCCESS`.
    """

    @classmethod
    def question(cls, message_key: str) -> 'ValidationOutcome':
        return cls(ValidationStatus.QUESTION, message_key)

    @classmethod
    def error(cls, message_key: str) -> 'ValidationOutcome':
        return cls(ValidationStatus.ERROR, message_key)

    @property
    def is_success(self) -> bool:
        return self.status == ValidationStatus.SUCCESS


SUCCESS = ValidationOutcome(ValidationStatus.SUCCESS)

ValidationCheck = Callable[[Document], ValidationOutcome]
"""
A document check. Checks only read the document.
"""

QuestionHandler = Callable[[ValidationOutcome], bool]
"""
Caller-supplied decision function for :attr:`ValidationStatus.QUESTION`
outcomes. Returns ``True`` to proceed.
"""


def _first_failure(
    document: Document, checks: Sequence[ValidationCheck], start: int = 0
) -> Tuple[int, ValidationOutcome]:
    for ix in range(start, len(checks)):
        outcome = checks[ix](document)
        if not outcome.is_success:
            return ix, outcome
    return len(checks), SUCCESS


def run_checks(
    document: Document, checks: Sequence[ValidationCheck]
) -> ValidationOutcome:
    """
    Evaluate checks in order, stopping at the first one that does not
    succeed.

    :param document:
        The document to check.
    :param checks:
        The checks to run.
    :return:
        The first non-successful outcome, or :const:`SUCCESS`.
    """
    return _first_failure(document, checks)[1]


def execute_checks(
    document: Document,
    checks: Sequence[ValidationCheck],
    ask: QuestionHandler,
):
    """
    Evaluate checks in order, consulting the caller about questions.

    Evaluation resumes with the next check after the caller accepts
    a question.

    :param document:
        The document to check.
    :param checks:
        The checks to run.
    :param ask:
        Decision function for question outcomes.
    :raises ValidationFailure:
        on an error outcome, or a question the caller declined.
    """
    checks = list(checks)
    ix = 0
    while ix < len(checks):
        ix, outcome = _first_failure(document, checks, start=ix)
        if outcome.is_success:
            return
        key = outcome.message_key
        if outcome.status == ValidationStatus.ERROR:
            raise ValidationFailure(f"Document check failed: {key}", key)
        if not ask(outcome):
            logger.info(f"User declined to proceed after question {key}")
            raise ValidationFailure(
                f"User declined to proceed: {key}", key, declined=True
            )
        logger.info(f"User chose to proceed after question {key}")
        ix += 1
