from __future__ import annotations
import asyncio
import logging
import time
from typing import List, Optional, Sequence, Tuple

from linesheets.models.models import AnalysisResult, BatchAnalysisItem
from linesheets.utils.metrics import record_ai_analysis
from .config import AIConfig
from .clients import OpenAIChatClient, make_openai_client
from .prompts import build_analysis_prompt, messages_user_only
from .json_utils import parse_analysis_json, normalize_analysis

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "fallback"
PARSE_FALLBACK_CONFIDENCE = 50
CALL_FALLBACK_CONFIDENCE = 30
SUMMARY_MAX_CHARS = 50


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def truncate_summary(text: str) -> str:
    return text[:47] + "..." if len(text) > SUMMARY_MAX_CHARS else text


def parse_fallback(message_text: str, processing_time: int = 0) -> AnalysisResult:
    """Respuesta recibida pero imposible de parsear."""
    return AnalysisResult(
        summary=truncate_summary(message_text),
        confidence_score=PARSE_FALLBACK_CONFIDENCE,
        business_intent="分析に失敗しました",
        suggested_response="手動で確認してください",
        processing_time=processing_time,
        model_used=FALLBACK_MODEL,
    )


def call_fallback(message_text: str, processing_time: int = 0) -> AnalysisResult:
    """La llamada al modelo falló."""
    return AnalysisResult(
        summary=truncate_summary(message_text),
        confidence_score=CALL_FALLBACK_CONFIDENCE,
        business_intent="AI分析に失敗したため、手動確認が必要です",
        suggested_response="詳細な分析のため、管理者に連絡してください",
        processing_time=processing_time,
        model_used=FALLBACK_MODEL,
    )


class AIAnalysisService:
    """
    Clasificación de sentimiento/urgencia de un mensaje.
    - analyze(text) → AnalysisResult (nunca lanza; usa fallback)
    - batch_analyze(items, concurrency, delay) → List[BatchAnalysisItem]
    """

    def __init__(self, cfg: AIConfig, client: Optional[OpenAIChatClient] = None) -> None:
        self.cfg = cfg
        self.client = client or make_openai_client(cfg.api_key, timeout=cfg.timeout)

    @property
    def model(self) -> str:
        return self.cfg.model

    def analyze(self, message_text: str) -> AnalysisResult:
        start = time.perf_counter()
        try:
            raw = self.client.chat_json(
                model=self.cfg.model,
                messages=messages_user_only(build_analysis_prompt(message_text)),
                temperature=self.cfg.temperature,
                max_tokens=self.cfg.max_tokens,
            )
        except Exception as e:
            logger.error("❌ Error en análisis IA: %s", e)
            record_ai_analysis("fallback")
            return call_fallback(message_text, _elapsed_ms(start))

        try:
            data = parse_analysis_json(raw)
        except ValueError as e:
            logger.error("Error parseando resultado del análisis: %s | raw=%r", e, (raw or "")[:200])
            record_ai_analysis("fallback")
            return parse_fallback(message_text, _elapsed_ms(start))

        try:
            result = AnalysisResult(
                **normalize_analysis(data),
                processing_time=_elapsed_ms(start),
                model_used=self.cfg.model,
            )
        except Exception as e:
            logger.error("Resultado de análisis inválido: %s", e)
            record_ai_analysis("fallback")
            return parse_fallback(message_text, _elapsed_ms(start))

        record_ai_analysis("ai")
        logger.debug(
            "🤖 Análisis IA: sentiment=%s urgency=%s confidence=%s (%sms)",
            result.sentiment, result.urgency, result.confidence_score, result.processing_time,
        )
        return result

    # ------------------------------------------------------------ batch --
    async def _analyze_item(self, message_id: int, content: str) -> BatchAnalysisItem:
        try:
            analysis = await asyncio.to_thread(self.analyze, content)
            return BatchAnalysisItem(message_id=message_id, analysis=analysis)
        except Exception as e:
            logger.warning("⚠️ Falló el análisis del mensaje %s: %s", message_id, e)
            return BatchAnalysisItem(message_id=message_id, error=str(e) or type(e).__name__)

    async def batch_analyze(
        self,
        messages: Sequence[Tuple[int, str]],
        concurrency: int = 3,
        delay_seconds: float = 1.0,
    ) -> List[BatchAnalysisItem]:
        """
        Procesa en chunks de `concurrency` elementos. Dentro de cada chunk los
        análisis corren en paralelo; entre chunks se espera `delay_seconds`
        (límite de tasa). El orden del resultado es el de entrada.
        """
        if concurrency < 1:
            raise ValueError("concurrency debe ser >= 1")

        items = list(messages)
        chunks = [items[i:i + concurrency] for i in range(0, len(items), concurrency)]
        results: List[BatchAnalysisItem] = []

        for index, chunk in enumerate(chunks):
            chunk_results = await asyncio.gather(
                *(self._analyze_item(message_id, content) for message_id, content in chunk)
            )
            results.extend(chunk_results)

            if delay_seconds > 0 and index < len(chunks) - 1:
                await asyncio.sleep(delay_seconds)

        logger.info("📦 Análisis por lotes: %d mensajes en %d chunks", len(items), len(chunks))
        return results
