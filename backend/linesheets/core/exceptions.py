"""
Excepciones base estandarizadas para LineSheets.

Jerarquía:
    LineSheetsError (base)
    ├── ConfigurationError
    ├── AIError
    │   └── AIProcessingError
    ├── SheetsError
    │   ├── SheetsConfigurationError
    │   └── SheetsDeliveryError
    ├── StorageError
    └── WebhookSignatureError
"""
from typing import Optional, Dict, Any


class LineSheetsError(Exception):
    """
    Base exception para todos los errores de LineSheets.

    Attributes:
        message: Mensaje descriptivo del error.
        code: Código único para identificar el tipo de error.
        details: Información adicional para debugging.
    """
    code: str = "LINESHEETS_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializa el error a diccionario para respuestas API."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


class ConfigurationError(LineSheetsError):
    """Configuración ausente o inválida."""
    code = "CONFIGURATION_ERROR"


# ============ AI Errors ============

class AIError(LineSheetsError):
    """Errores relacionados con el análisis de IA."""
    code = "AI_ERROR"


class AIProcessingError(AIError):
    """La llamada al modelo falló."""
    code = "AI_PROCESSING_ERROR"


# ============ Sheets Errors ============

class SheetsError(LineSheetsError):
    """Errores relacionados con Google Sheets."""
    code = "SHEETS_ERROR"


class SheetsConfigurationError(SheetsError):
    """Falta el ID de la planilla o las credenciales."""
    code = "SHEETS_CONFIGURATION_ERROR"


class SheetsDeliveryError(SheetsError):
    """La API de Sheets rechazó la escritura."""
    code = "SHEETS_DELIVERY_ERROR"


# ============ Storage Errors ============

class StorageError(LineSheetsError):
    """Errores de almacenamiento (MongoDB)."""
    code = "STORAGE_ERROR"


class InvalidStatusTransitionError(StorageError):
    """Transición de estado hacia atrás o desde un estado terminal."""
    code = "INVALID_STATUS_TRANSITION"


# ============ Webhook Errors ============

class WebhookSignatureError(LineSheetsError):
    """Firma X-Line-Signature ausente o inválida."""
    code = "WEBHOOK_SIGNATURE_ERROR"
