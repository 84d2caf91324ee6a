from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from linesheets.api.deps import get_pipeline, get_channel_secret
from linesheets.config.settings import get_settings
from linesheets.core.exceptions import (
    LineSheetsError, ConfigurationError, WebhookSignatureError, StorageError,
)
from linesheets.models.models import (
    BatchAnalysisItem, BatchAnalysisRequest, MessageIn, MessageStats, ProcessResult,
)
from linesheets.modules.pipeline import MessagePipeline
from linesheets.utils.metrics import get_metrics, CONTENT_TYPE
from linesheets.utils.observability import setup_logging, new_request_id, clear_request_id
from linesheets.utils.security import verify_line_signature, SIGNATURE_HEADER

settings = get_settings()

# Configurar logging
setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_FORMAT.lower() == "json")

logger = logging.getLogger(__name__)

# Crear la aplicación FastAPI
app = FastAPI(
    title="LineSheets API",
    description="Procesa mensajes de LINE, los analiza con IA y los registra en Google Sheets",
    version=settings.APP_VERSION,
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.FRONTEND_URL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR = {
    WebhookSignatureError: 401,
    ConfigurationError: 503,
    StorageError: 503,
}


@app.exception_handler(LineSheetsError)
async def linesheets_error_handler(request: Request, exc: LineSheetsError):
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500
    )
    logger.warning("%s en %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/")
async def root():
    return {
        "service": "LineSheets",
        "version": settings.APP_VERSION,
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/line/webhook")
async def line_webhook(
    request: Request,
    pipeline: MessagePipeline = Depends(get_pipeline),
    channel_secret: str = Depends(get_channel_secret),
):
    """
    Webhook de LINE Messaging API. Cada evento de texto pasa por el pipeline;
    el resto de eventos se ignora.
    """
    rid = new_request_id()
    try:
        body = await request.body()
        verify_line_signature(channel_secret, body, request.headers.get(SIGNATURE_HEADER))

        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            raise HTTPException(status_code=400, detail="Body JSON inválido")
        events = payload.get("events") if isinstance(payload, dict) else None
        if not isinstance(events, list):
            raise HTTPException(status_code=400, detail="Falta la lista 'events'")

        results: List[Dict[str, Any]] = []
        for event in events:
            if not isinstance(event, dict):
                logger.warning("⚠️ Evento de webhook ignorado (no es un objeto): %r", event)
                continue
            message = event.get("message")
            if not isinstance(message, dict):
                message = {}
            source = event.get("source")
            if event.get("type") != "message" or message.get("type") != "text":
                continue
            text = message.get("text") or ""
            if not text.strip():
                continue
            sender_id = source.get("userId") if isinstance(source, dict) else None
            result = await run_in_threadpool(pipeline.process_message, text, sender_id)
            results.append(result.model_dump(mode="json"))

        logger.info("📥 Webhook %s: %d eventos, %d procesados", rid, len(events), len(results))
        return {"success": all(r["success"] for r in results), "results": results}
    finally:
        clear_request_id()


@app.post("/messages", response_model=ProcessResult)
def create_message(payload: MessageIn, pipeline: MessagePipeline = Depends(get_pipeline)):
    """Ingreso manual de un mensaje (mismo flujo que el webhook)."""
    return pipeline.process_message(payload.text, payload.sender_id)


@app.post("/analysis/batch", response_model=List[BatchAnalysisItem])
async def analyze_batch(payload: BatchAnalysisRequest, pipeline: MessagePipeline = Depends(get_pipeline)):
    items = [(m.id, m.content) for m in payload.messages]
    return await pipeline.analyze_batch(items, concurrency=payload.concurrency)


@app.get("/health")
def health_check(pipeline: MessagePipeline = Depends(get_pipeline)):
    """
    Health check agregado (configuración, base de datos, Google Sheets).

    Returns:
        dict: reporte con el estado de cada componente; HTTP 503 si alguno falla.
    """
    report = pipeline.health_check()
    status_code = 200 if report["status"] == "healthy" else 503
    return JSONResponse(status_code=status_code, content=report)


@app.get("/stats", response_model=MessageStats)
def get_stats(pipeline: MessagePipeline = Depends(get_pipeline)):
    return pipeline.get_stats()


@app.get("/metrics")
async def metrics():
    """Métricas en formato Prometheus."""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE)
