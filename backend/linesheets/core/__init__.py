# Core module - excepciones base
from .exceptions import (
    LineSheetsError, ConfigurationError,
    AIError, AIProcessingError,
    SheetsError, SheetsConfigurationError, SheetsDeliveryError,
    StorageError, InvalidStatusTransitionError, WebhookSignatureError,
)

__all__ = [
    'LineSheetsError', 'ConfigurationError',
    'AIError', 'AIProcessingError',
    'SheetsError', 'SheetsConfigurationError', 'SheetsDeliveryError',
    'StorageError', 'InvalidStatusTransitionError', 'WebhookSignatureError',
]
