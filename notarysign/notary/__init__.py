from .appearance import PdfAppearancePreparer, PreparedAppearance
from .client import (
    NotaryServiceClient,
    RT1Request,
    RT1Response,
    RT2Request,
    RT2Response,
    SignaturePlacement,
)
from .codes import ClientErrorCode, ServiceErrorCode, classify
from .driver import (
    NotarialConfirmationDriver,
    SessionState,
    SigningSession,
    activate,
)

__all__ = [
    'PdfAppearancePreparer',
    'PreparedAppearance',
    'NotaryServiceClient',
    'RT1Request',
    'RT1Response',
    'RT2Request',
    'RT2Response',
    'SignaturePlacement',
    'ClientErrorCode',
    'ServiceErrorCode',
    'classify',
    'NotarialConfirmationDriver',
    'SessionState',
    'SigningSession',
    'activate',
]
