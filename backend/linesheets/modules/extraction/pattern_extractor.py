from __future__ import annotations
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from .base import ExtractionStrategy

logger = logging.getLogger(__name__)

ENTITY_PATTERNS: Dict[str, re.Pattern] = {
    "name": re.compile(r"(?:名前|氏名)[：:\s]*([^\n\r]+)", re.IGNORECASE),
    "email": re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})"),
    "phone": re.compile(r"(?:電話|TEL|Tel)[：:\s]*([0-9\-\s()]+)", re.IGNORECASE),
    "company": re.compile(r"(?:会社|企業)[：:\s]*([^\n\r]+)", re.IGNORECASE),
}

URGENT_KEYWORDS = ("緊急", "至急", "すぐに", "急いで")


def detect_urgency(text: str, keywords: Sequence[str] = URGENT_KEYWORDS) -> str:
    return "high" if any(k in text for k in keywords) else "medium"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PatternExtractor(ExtractionStrategy):
    """
    Extracción por entidades etiquetadas (nombre, email, teléfono, empresa)
    buscadas con regex sobre el texto crudo, sin detección de separador.
    Siempre agrega `message`, `timestamp` y `urgency`.
    """
    name = "pattern"

    def __init__(self, patterns: Optional[Dict[str, re.Pattern]] = None,
                 urgent_keywords: Sequence[str] = URGENT_KEYWORDS) -> None:
        self.patterns = patterns or ENTITY_PATTERNS
        self.urgent_keywords = tuple(urgent_keywords)

    def extract(self, text: str) -> Dict[str, Any]:
        try:
            extracted: Dict[str, Any] = {}
            for key, pattern in self.patterns.items():
                match = pattern.search(text)
                if match and match.group(1):
                    value = match.group(1).strip()
                    if value:
                        extracted[key] = value

            extracted["message"] = text
            extracted["timestamp"] = _now_iso()
            extracted["urgency"] = detect_urgency(text, self.urgent_keywords)
            return extracted
        except Exception as e:
            logger.error("❌ Error en extracción por patrones: %s", e, exc_info=True)
            return {"message": text, "timestamp": _now_iso(), "urgency": "medium"}
