import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Cargar variables de entorno desde el archivo .env
load_dotenv(encoding="utf-8")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseSettings):
    # App
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json | text
    APP_VERSION: str = "1.0.0"

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", 3001))
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # LINE Messaging API
    LINE_CHANNEL_SECRET: str = os.getenv("LINE_CHANNEL_SECRET", "")

    # OpenAI
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o")
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", 0.7))
    AI_MAX_TOKENS: int = int(os.getenv("AI_MAX_TOKENS", 1000))
    AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", 60))
    AI_ENABLED: bool = _env_bool("AI_ENABLED", "true")

    # Extracción: "separator" | "pattern"
    EXTRACTION_STRATEGY: str = os.getenv("EXTRACTION_STRATEGY", "separator")

    # Análisis por lotes
    BATCH_CONCURRENCY: int = int(os.getenv("BATCH_CONCURRENCY", 3))
    BATCH_DELAY_SECONDS: float = float(os.getenv("BATCH_DELAY_SECONDS", 1.0))

    # Google Sheets
    GOOGLE_SHEETS_ID: str = os.getenv("GOOGLE_SHEETS_ID", "")
    GOOGLE_SHEET_NAME: str = os.getenv("GOOGLE_SHEET_NAME", "Sheet1")
    GOOGLE_SERVICE_ACCOUNT_FILE: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "")
    GOOGLE_SERVICE_ACCOUNT_JSON: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")

    # MongoDB
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017/linesheets")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "linesheets")
    MONGODB_COLLECTION: str = os.getenv("MONGODB_COLLECTION", "messages")

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignorar campos adicionales en lugar de lanzar un error
    }


@lru_cache()
def get_settings() -> Settings:
    """Settings de proceso. Se leen una sola vez, en el arranque."""
    return Settings()


@dataclass(frozen=True)
class PipelineConfig:
    """
    Configuración inmutable del pipeline. Se arma una vez en el arranque
    (ver LineSheetsApp) y se pasa al orquestador; nada por debajo lee el entorno.
    """
    ai_enabled: bool = True
    spreadsheet_id: str = ""
    sheet_name: str = "Sheet1"
    credentials_configured: bool = False
    ai_api_key_configured: bool = False
    extraction_strategy: str = "separator"
    batch_concurrency: int = 3
    batch_delay_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineConfig":
        s = settings or get_settings()
        return cls(
            ai_enabled=s.AI_ENABLED,
            spreadsheet_id=s.GOOGLE_SHEETS_ID,
            sheet_name=s.GOOGLE_SHEET_NAME,
            credentials_configured=bool(s.GOOGLE_SERVICE_ACCOUNT_FILE or s.GOOGLE_SERVICE_ACCOUNT_JSON),
            ai_api_key_configured=bool(s.OPENAI_API_KEY),
            extraction_strategy=s.EXTRACTION_STRATEGY,
            batch_concurrency=max(1, s.BATCH_CONCURRENCY),
            batch_delay_seconds=max(0.0, s.BATCH_DELAY_SECONDS),
        )
