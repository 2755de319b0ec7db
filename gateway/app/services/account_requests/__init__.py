"""Account request domain: models, errors and the duplicate-check-and-notify pipeline."""

from .errors import AccountRequestError, DeliveryFailedError, DirectoryUnavailableError
from .models import AccountRequest, NotificationMessage, Outcome, ProcessingResult
from .pipeline import RequestPipeline

__all__ = [
    'AccountRequest',
    'AccountRequestError',
    'DeliveryFailedError',
    'DirectoryUnavailableError',
    'NotificationMessage',
    'Outcome',
    'ProcessingResult',
    'RequestPipeline',
]
