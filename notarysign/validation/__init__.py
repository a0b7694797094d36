from .api import (
    SUCCESS,
    QuestionHandler,
    ValidationCheck,
    ValidationOutcome,
    ValidationStatus,
    execute_checks,
    run_checks,
)
from .checks import (
    AllSignaturesQualifiedCheck,
    HasSignaturesCheck,
    NetworkReachabilityCheck,
    PdfAConformanceCheck,
    preflight_checks,
)
from .online import OnlineSignatureValidator, SignatureValidationServiceError

__all__ = [
    'SUCCESS',
    'QuestionHandler',
    'ValidationCheck',
    'ValidationOutcome',
    'ValidationStatus',
    'execute_checks',
    'run_checks',
    'AllSignaturesQualifiedCheck',
    'HasSignaturesCheck',
    'NetworkReachabilityCheck',
    'PdfAConformanceCheck',
    'preflight_checks',
    'OnlineSignatureValidator',
    'SignatureValidationServiceError',
]
