# Logging estructurado (JSON) con request_id por webhook

import logging
import json
import sys
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

# Context variable para correlacionar los logs de un mismo request
request_id: ContextVar[str] = ContextVar('request_id', default='')

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'message', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
}

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs estructurados en JSON
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        req_id = request_id.get('')
        if req_id:
            log_entry['request_id'] = req_id

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Campos extra del record (logger.info(..., extra={...}))
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_entry[key] = value

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configura el root logger con un único handler a stdout.
    """
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    # Silenciar librerías ruidosas
    for noisy in ("googleapiclient.discovery", "pymongo", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def new_request_id() -> str:
    rid = uuid.uuid4().hex[:12]
    request_id.set(rid)
    return rid


def clear_request_id() -> None:
    request_id.set('')
