# linesheets/modules/sheets/formatter.py

from __future__ import annotations
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from linesheets.models.models import AnalysisResult

# Orden fijo de columnas de la planilla (A..J)
COLUMNS = [
    "timestamp",
    "message",
    "name",
    "email",
    "phone",
    "company",
    "sentiment",
    "urgency",
    "category",
    "extracted_data",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def format_row(
    message_text: str,
    extracted: Optional[Dict[str, Any]],
    analysis: Optional[AnalysisResult] = None,
    timestamp: Optional[datetime] = None,
) -> List[str]:
    """Fila de 10 columnas; valores ausentes como cadena vacía."""
    extracted = extracted or {}
    ts = timestamp or datetime.now(timezone.utc)
    return [
        ts.isoformat(),
        message_text,
        _cell(extracted.get("name")),
        _cell(extracted.get("email")),
        _cell(extracted.get("phone")),
        _cell(extracted.get("company")),
        analysis.sentiment if analysis else "",
        analysis.urgency if analysis else "",
        analysis.category if analysis else "",
        json.dumps(extracted, ensure_ascii=False),
    ]
