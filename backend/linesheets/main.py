import logging
import argparse
from functools import lru_cache
from typing import Optional

from linesheets.config.settings import Settings, PipelineConfig, get_settings
from linesheets.core.exceptions import SheetsConfigurationError, ConfigurationError
from linesheets.modules.ai_processor import AIAnalysisService, AIConfig
from linesheets.modules.extraction import ExtractionStrategy, get_extractor
from linesheets.modules.pipeline import MessagePipeline
from linesheets.modules.sheets import GoogleSheetsClient, load_service_account_credentials
from linesheets.repositories import MessageRepository, MongoMessageRepository
from linesheets.utils.observability import setup_logging

logger = logging.getLogger(__name__)


class LineSheetsApp:
    """
    Arranque ordenado: configuración → persistencia (esperando que responda)
    → componentes → pipeline. Recién después se aceptan requests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        repository: Optional[MessageRepository] = None,
        sheets: Optional[GoogleSheetsClient] = None,
        analyzer: Optional[AIAnalysisService] = None,
        extractor: Optional[ExtractionStrategy] = None,
    ):
        self.settings = settings or get_settings()
        self.config = PipelineConfig.from_settings(self.settings)

        # 1) Persistencia
        self.repository = repository or MongoMessageRepository(
            self.settings.MONGODB_URL,
            database_name=self.settings.MONGODB_DATABASE,
            collection_name=self.settings.MONGODB_COLLECTION,
        )
        if isinstance(self.repository, MongoMessageRepository):
            self.repository.connect()

        # 2) Componentes
        self.extractor = extractor or get_extractor(self.config.extraction_strategy)
        self.sheets = sheets or self._build_sheets()
        self.analyzer = analyzer or self._build_analyzer()

        # 3) Pipeline
        self.pipeline = MessagePipeline(
            self.config,
            repository=self.repository,
            extractor=self.extractor,
            sheets=self.sheets,
            analyzer=self.analyzer,
        )
        logger.info(
            "🚀 LineSheets listo (extracción=%s, IA=%s)",
            self.extractor.name, "on" if self.pipeline.ai_active else "off",
        )

    def _build_sheets(self) -> GoogleSheetsClient:
        credentials = None
        if self.config.credentials_configured:
            try:
                credentials = load_service_account_credentials(
                    self.settings.GOOGLE_SERVICE_ACCOUNT_FILE or None,
                    self.settings.GOOGLE_SERVICE_ACCOUNT_JSON or None,
                )
            except SheetsConfigurationError as e:
                logger.error("❌ Credenciales de Google inválidas: %s", e)
        else:
            logger.warning("⚠️ Google Sheets sin credenciales; las escrituras fallarán")
        return GoogleSheetsClient(
            self.config.spreadsheet_id,
            sheet_name=self.config.sheet_name,
            credentials=credentials,
        )

    def _build_analyzer(self) -> Optional[AIAnalysisService]:
        if not self.config.ai_enabled:
            logger.info("Análisis IA deshabilitado (AI_ENABLED=false)")
            return None
        try:
            return AIAnalysisService(AIConfig(
                api_key=self.settings.OPENAI_API_KEY,
                model=self.settings.AI_MODEL,
                temperature=self.settings.AI_TEMPERATURE,
                max_tokens=self.settings.AI_MAX_TOKENS,
                timeout=self.settings.AI_TIMEOUT_SECONDS,
            ))
        except ConfigurationError as e:
            logger.warning("⚠️ Análisis IA no disponible: %s", e)
            return None


@lru_cache()
def get_linesheets_app() -> LineSheetsApp:
    return LineSheetsApp()


def main():
    parser = argparse.ArgumentParser(description="LineSheets - LINE → Google Sheets")
    settings = get_settings()
    parser.add_argument("--host", default=settings.API_HOST)
    parser.add_argument("--port", type=int, default=settings.API_PORT)
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_FORMAT.lower() == "json")

    # El pipeline se arma antes de abrir el puerto
    get_linesheets_app()

    import uvicorn
    from linesheets.api.api import app
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
