from __future__ import annotations
import json
import re
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SENTIMENTS = {"positive", "negative", "neutral"}
LEVELS = {"high", "medium", "low"}
ACTIONS = {"immediate", "scheduled", "none"}

DEFAULT_SUMMARY = "メッセージを受信しました"
DEFAULT_CONFIDENCE = 70

_FENCE_OPEN_RE = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"```\s*$")


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    # fence sin etiqueta de lenguaje
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    return cleaned.strip()


def _first_balanced_object(text: str) -> Optional[str]:
    """Primer bloque { ... } balanceado, ignorando llaves dentro de strings JSON."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_block(text: str) -> str:
    cleaned = strip_code_fences(text)
    block = _first_balanced_object(cleaned)
    return block if block is not None else cleaned


def parse_analysis_json(text: str) -> Dict[str, Any]:
    """
    Extrae y parsea el objeto JSON de la respuesta del modelo.
    Lanza ValueError (json.JSONDecodeError incluido) si no hay un objeto válido.
    """
    data = json.loads(extract_json_block(text))
    if not isinstance(data, dict):
        raise ValueError(f"Se esperaba un objeto JSON, llegó {type(data).__name__}")
    return data


def _choice(value: Any, allowed: set, default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def _text(value: Any, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _keywords(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(k).strip() for k in value if k is not None and str(k).strip()]


def clamp_confidence(value: Any, default: int = DEFAULT_CONFIDENCE) -> int:
    if isinstance(value, bool):
        return default
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if score != score:  # NaN
        return default
    return int(round(min(100.0, max(0.0, score))))


def normalize_analysis(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Completa campos faltantes con sus defaults y descarta valores fuera de dominio.
    Nunca devuelve un dict sin tipar más allá de este punto.
    """
    return {
        "sentiment": _choice(data.get("sentiment"), SENTIMENTS, "neutral"),
        "urgency": _choice(data.get("urgency"), LEVELS, "medium"),
        "importance": _choice(data.get("importance"), LEVELS, "medium"),
        "category": _text(data.get("category"), "general"),
        "keywords": _keywords(data.get("keywords")),
        "summary": _text(data.get("summary"), DEFAULT_SUMMARY),
        "action_required": _choice(data.get("action_required"), ACTIONS, "none"),
        "confidence_score": clamp_confidence(data.get("confidence_score")),
        "business_intent": _text(data.get("business_intent"), None),
        "suggested_response": _text(data.get("suggested_response"), None),
    }
