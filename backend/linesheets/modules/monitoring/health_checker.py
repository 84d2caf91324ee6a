"""
Health checks del pipeline - configuración, base de datos y Google Sheets.
Cada check informa status, response_time_ms y error.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from linesheets.config.settings import PipelineConfig

logger = logging.getLogger(__name__)


class PipelineHealthChecker:
    """
    Ejecuta los tres checks y agrega el resultado.
    El estado global es "healthy" solo si los tres pasan.
    """

    def __init__(self, config: PipelineConfig, repository: Any, sheets: Any):
        self.config = config
        self.repository = repository
        self.sheets = sheets
        self.start_time = datetime.now(timezone.utc)

    @staticmethod
    def _timed(check_fn: Callable[[], Optional[str]]) -> Dict[str, Any]:
        """
        Corre `check_fn`; un string devuelto es un error de configuración,
        una excepción es un fallo del componente.
        """
        start = time.perf_counter()
        try:
            problem = check_fn()
            status = "healthy" if problem is None else "unhealthy"
            error = problem
        except Exception as e:
            status, error = "unhealthy", str(e) or type(e).__name__
        return {
            "status": status,
            "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
            "error": error,
        }

    def check_configuration(self) -> Dict[str, Any]:
        def check_fn() -> Optional[str]:
            missing = []
            if not self.config.spreadsheet_id:
                missing.append("GOOGLE_SHEETS_ID")
            if not self.config.sheet_name:
                missing.append("GOOGLE_SHEET_NAME")
            if not self.config.credentials_configured:
                missing.append("GOOGLE_SERVICE_ACCOUNT_FILE|GOOGLE_SERVICE_ACCOUNT_JSON")
            if self.config.ai_enabled and not self.config.ai_api_key_configured:
                missing.append("OPENAI_API_KEY")
            return f"Configuración faltante: {', '.join(missing)}" if missing else None
        return self._timed(check_fn)

    def check_database(self) -> Dict[str, Any]:
        def check_fn() -> Optional[str]:
            self.repository.ping()
            return None
        return self._timed(check_fn)

    def check_sheets(self) -> Dict[str, Any]:
        def check_fn() -> Optional[str]:
            self.sheets.get_metadata()
            return None
        return self._timed(check_fn)

    def check(self) -> Dict[str, Any]:
        checks = {
            "configuration": self.check_configuration(),
            "database": self.check_database(),
            "sheets": self.check_sheets(),
        }
        healthy = all(c["status"] == "healthy" for c in checks.values())
        if not healthy:
            failing = [name for name, c in checks.items() if c["status"] != "healthy"]
            logger.warning("⚠️ Health check con fallos: %s", ", ".join(failing))

        return {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round((datetime.now(timezone.utc) - self.start_time).total_seconds(), 2),
            "checks": checks,
        }
