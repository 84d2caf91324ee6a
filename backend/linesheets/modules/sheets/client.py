"""
Cliente de Google Sheets para el envío de filas.

Cada mensaje procesado se escribe como una fila en la primera posición libre
calculada a partir de la columna A. La lectura y la escritura no están
sincronizadas: dos escritores concurrentes pueden elegir la misma fila.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from linesheets.core.exceptions import SheetsConfigurationError, SheetsDeliveryError
from linesheets.utils.metrics import record_sheet_append

logger = logging.getLogger(__name__)

# RAW: el texto del mensaje no se interpreta como fórmula ni se convierte a número
VALUE_INPUT_OPTION = "RAW"
# La fila 1 se considera ocupada por encabezados aunque la hoja esté vacía
HEADER_ROWS = 1


def column_letter(index: int) -> str:
    """Índice 1-based → letra de columna (1 → A, 27 → AA)."""
    if index < 1:
        raise ValueError("El índice de columna debe ser >= 1")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


class GoogleSheetsClient:
    """Escritura de filas y metadatos de una planilla."""

    def __init__(
        self,
        spreadsheet_id: Optional[str],
        sheet_name: str = "Sheet1",
        credentials: Any = None,
        service: Optional[Resource] = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.credentials = credentials
        self._service = service

    @property
    def is_configured(self) -> bool:
        return bool(self.spreadsheet_id) and (self._service is not None or self.credentials is not None)

    def _require_config(self) -> None:
        if not self.spreadsheet_id:
            raise SheetsConfigurationError("GOOGLE_SHEETS_ID no configurado")
        if self._service is None and self.credentials is None:
            raise SheetsConfigurationError("Credenciales de Google Sheets no configuradas")

    def _get_service(self) -> Resource:
        self._require_config()
        if self._service is None:
            self._service = build("sheets", "v4", credentials=self.credentials, cache_discovery=False)
            logger.info("Conectado a Google Sheets API")
        return self._service

    def _range(self, a1: str) -> str:
        return f"'{self.sheet_name}'!{a1}"

    def get_row_count(self) -> int:
        """Filas ocupadas en la columna A (como mínimo la fila de encabezados)."""
        service = self._get_service()
        try:
            response = service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=self._range("A:A"),
            ).execute()
        except HttpError as e:
            raise SheetsDeliveryError(
                f"Error leyendo filas de la planilla: {e}",
                details={"status": getattr(e.resp, "status", None)},
                cause=e,
            ) from e
        return max(len(response.get("values", []) or []), HEADER_ROWS)

    def append_row(self, row: Sequence[Any]) -> int:
        """
        Escribe `row` en la siguiente fila y devuelve su número.

        La fila destino es count + 1, de modo que una planilla vacía recibe la
        fila 2.
        """
        if not row:
            raise ValueError("La fila no puede estar vacía")

        row_number = self.get_row_count() + 1
        target = self._range(f"A{row_number}:{column_letter(len(row))}{row_number}")
        service = self._get_service()
        try:
            service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=target,
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [list(row)]},
            ).execute()
        except HttpError as e:
            record_sheet_append(False)
            logger.error("❌ Error escribiendo en Google Sheets (%s): %s", target, e)
            raise SheetsDeliveryError(
                f"Error escribiendo en la planilla: {e}",
                details={"range": target, "status": getattr(e.resp, "status", None)},
                cause=e,
            ) from e

        record_sheet_append(True)
        logger.info("📊 Fila %s escrita en Google Sheets", row_number)
        return row_number

    def get_metadata(self) -> Dict[str, Any]:
        """Título y hojas de la planilla; usado por el health check."""
        service = self._get_service()
        try:
            return service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields="properties.title,sheets.properties.title",
            ).execute()
        except HttpError as e:
            raise SheetsDeliveryError(
                f"Error obteniendo metadatos de la planilla: {e}",
                details={"status": getattr(e.resp, "status", None)},
                cause=e,
            ) from e
