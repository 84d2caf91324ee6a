"""
Credenciales de cuenta de servicio para la API de Google Sheets.

Acepta una ruta a un archivo JSON o el JSON inline (variable de entorno).
Si ambos están configurados gana el JSON inline.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from google.oauth2 import service_account

from linesheets.core.exceptions import SheetsConfigurationError

logger = logging.getLogger(__name__)

SCOPES: List[str] = ["https://www.googleapis.com/auth/spreadsheets"]


def load_service_account_credentials(
    credentials_file: Optional[str] = None,
    credentials_json: Optional[str] = None,
    scopes: Optional[List[str]] = None,
) -> service_account.Credentials:
    """
    Construye credenciales de cuenta de servicio.

    Raises:
        SheetsConfigurationError: si no hay credenciales o son inválidas.
    """
    scopes = scopes or SCOPES

    if credentials_json:
        try:
            info = json.loads(credentials_json)
            creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
        except (ValueError, KeyError) as e:
            raise SheetsConfigurationError(
                "GOOGLE_SERVICE_ACCOUNT_JSON inválido", cause=e
            ) from e
        logger.info("🔑 Credenciales de Google cargadas desde JSON inline")
        return creds

    if credentials_file:
        path = Path(credentials_file)
        if not path.exists():
            raise SheetsConfigurationError(
                f"Archivo de credenciales no encontrado: {path}",
                details={"path": str(path)},
            )
        try:
            creds = service_account.Credentials.from_service_account_file(str(path), scopes=scopes)
        except (ValueError, KeyError) as e:
            raise SheetsConfigurationError(
                f"Archivo de credenciales inválido: {path}", cause=e
            ) from e
        logger.info("🔑 Credenciales de Google cargadas desde %s", path.name)
        return creds

    raise SheetsConfigurationError("Credenciales de Google Sheets no configuradas")
