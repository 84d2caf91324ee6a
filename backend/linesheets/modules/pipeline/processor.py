# linesheets/modules/pipeline/processor.py

from __future__ import annotations
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from linesheets.config.settings import PipelineConfig
from linesheets.core.exceptions import ConfigurationError
from linesheets.models.models import (
    AnalysisResult, BatchAnalysisItem, MessageStats, MessageStatus, ProcessResult,
)
from linesheets.modules.ai_processor.analyzer import AIAnalysisService
from linesheets.modules.extraction.base import ExtractionStrategy
from linesheets.modules.monitoring.health_checker import PipelineHealthChecker
from linesheets.modules.sheets.client import GoogleSheetsClient
from linesheets.modules.sheets.formatter import format_row
from linesheets.repositories.message_repository import MessageRepository
from linesheets.utils.metrics import record_message_processed

logger = logging.getLogger(__name__)

LOG_PREVIEW_CHARS = 50


def _preview(text: str) -> str:
    return text[:LOG_PREVIEW_CHARS] + ("…" if len(text) > LOG_PREVIEW_CHARS else "")


class MessagePipeline:
    """
    Orquesta un mensaje: guardar → extraer → analizar (opcional) → Sheets → completar.

    Colaboradores inyectados; el pipeline no lee variables de entorno.
    """

    def __init__(
        self,
        config: PipelineConfig,
        repository: MessageRepository,
        extractor: ExtractionStrategy,
        sheets: GoogleSheetsClient,
        analyzer: Optional[AIAnalysisService] = None,
    ) -> None:
        self.config = config
        self.repository = repository
        self.extractor = extractor
        self.sheets = sheets
        self.analyzer = analyzer
        self.health_checker = PipelineHealthChecker(config, repository, sheets)

    @property
    def ai_active(self) -> bool:
        return self.config.ai_enabled and self.analyzer is not None

    def process_message(self, text: str, sender_id: Optional[str] = None) -> ProcessResult:
        start = time.perf_counter()
        logger.info("📨 Procesando mensaje: %s", _preview(text))

        # 1) Registro inicial
        try:
            message_id = self.repository.insert(text, sender_id, status=MessageStatus.PROCESSING)
        except Exception as e:
            logger.error("❌ No se pudo guardar el mensaje: %s", e)
            return self._finish(ProcessResult(success=False, error=str(e)), start)

        extracted: Optional[Dict[str, Any]] = None
        analysis: Optional[AnalysisResult] = None
        row_number: Optional[int] = None
        try:
            # 2) Extracción
            extracted = self.extractor.extract(text)
            self.repository.update(message_id, status=MessageStatus.PROCESSED, extracted_data=extracted)

            # 3) Análisis IA
            if self.ai_active:
                try:
                    analysis = self.analyzer.analyze(text)
                except Exception as e:
                    logger.warning("⚠️ Análisis IA falló para mensaje %s: %s", message_id, e)
                    analysis = None

            # 4) Google Sheets
            row = format_row(text, extracted, analysis)
            row_number = self.sheets.append_row(row)

            # 5) Cierre
            self.repository.update(
                message_id,
                status=MessageStatus.COMPLETED,
                sheets_row_number=row_number,
                extracted_data=extracted,
                analysis=analysis,
                processed_at=datetime.now(timezone.utc),
            )
        except Exception as e:
            error_message = str(e) or type(e).__name__
            if row_number is not None:
                # la fila ya quedó en la planilla; se deja rastro para ubicarla
                error_message = f"{error_message} (fila {row_number} ya escrita en Google Sheets)"
            logger.error("❌ Error procesando mensaje %s: %s", message_id, error_message)
            try:
                self.repository.mark_failed(
                    message_id, error_message,
                    processed_at=datetime.now(timezone.utc),
                )
            except Exception as mark_err:
                logger.error("❌ No se pudo marcar el mensaje %s como fallido: %s", message_id, mark_err)
            return self._finish(
                ProcessResult(success=False, message_id=message_id, error=error_message),
                start,
            )

        logger.info("✅ Mensaje %s procesado (fila %s)", message_id, row_number)
        return self._finish(
            ProcessResult(
                success=True,
                message_id=message_id,
                extracted_data=extracted,
                analysis=analysis,
                row_number=row_number,
            ),
            start,
        )

    @staticmethod
    def _finish(result: ProcessResult, start: float) -> ProcessResult:
        elapsed = time.perf_counter() - start
        result.processing_time = int(elapsed * 1000)
        record_message_processed("completed" if result.success else "failed", elapsed)
        return result

    async def analyze_batch(
        self,
        messages: Sequence[Tuple[int, str]],
        concurrency: Optional[int] = None,
    ) -> List[BatchAnalysisItem]:
        """Análisis por lotes; cada análisis exitoso se guarda en su mensaje."""
        if not self.ai_active:
            raise ConfigurationError("El análisis IA está deshabilitado")

        items = await self.analyzer.batch_analyze(
            messages,
            concurrency=concurrency or self.config.batch_concurrency,
            delay_seconds=self.config.batch_delay_seconds,
        )
        for item in items:
            if item.analysis is None:
                continue
            try:
                await asyncio.to_thread(self.repository.update, item.message_id, analysis=item.analysis)
            except Exception as e:
                logger.error("❌ No se pudo guardar el análisis del mensaje %s: %s", item.message_id, e)
        return items

    def health_check(self) -> Dict[str, Any]:
        return self.health_checker.check()

    def get_stats(self) -> MessageStats:
        try:
            return self.repository.get_stats()
        except Exception as e:
            logger.error("Error obteniendo estadísticas: %s", e)
            return MessageStats()
