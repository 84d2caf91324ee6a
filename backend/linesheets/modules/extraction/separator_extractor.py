from __future__ import annotations
import logging
import re
from typing import Any, Dict

from .base import ExtractionStrategy

logger = logging.getLogger(__name__)

FULLWIDTH_COLON = "："
# El orden define el desempate cuando dos separadores aparecen igual cantidad de veces
CANDIDATE_SEPARATORS = (FULLWIDTH_COLON, ":", "=")

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_KEY_WHITESPACE_RE = re.compile(r"[\s　]+")
_INT_RE = re.compile(r"^\d+$", re.ASCII)
_FLOAT_RE = re.compile(r"^\d+\.\d+$", re.ASCII)
_WHITESPACE_RUN_RE = re.compile(r"\s+")


def detect_separator(text: str) -> str:
    """Separador más usado en todo el texto; '：' si no aparece ninguno."""
    counts = {sep: text.count(sep) for sep in CANDIDATE_SEPARATORS}
    best = max(CANDIDATE_SEPARATORS, key=lambda sep: counts[sep])
    return best if counts[best] > 0 else FULLWIDTH_COLON


def parse_value(value: str) -> Any:
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def extract_from_line(line: str, separator: str) -> Dict[str, Any]:
    parts = line.split(separator)
    if len(parts) < 2:
        return {}
    key = _KEY_WHITESPACE_RE.sub("", parts[0].strip()).lower()
    value = separator.join(parts[1:]).strip()
    if not key or not value:
        return {}
    return {key: parse_value(value)}


def clean_extracted_data(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None or value == "":
            continue
        if isinstance(value, str):
            value = _WHITESPACE_RUN_RE.sub(" ", value.strip())
        cleaned[key] = value
    return cleaned


class SeparatorExtractor(ExtractionStrategy):
    """
    Extracción "clave<sep>valor" línea por línea.
    - Detecta el separador (：, :, =) por frecuencia
    - Claves en minúscula y sin espacios (incluye espacio de ancho completo)
    - Valores numéricos convertidos a int/float
    Claves duplicadas: gana la última línea.
    """
    name = "separator"

    def extract(self, text: str) -> Dict[str, Any]:
        try:
            separator = detect_separator(text)
            extracted: Dict[str, Any] = {}
            lines = [line.strip() for line in _LINE_SPLIT_RE.split(text)]
            for line in lines:
                if not line:
                    continue
                extracted.update(extract_from_line(line, separator))
            return clean_extracted_data(extracted)
        except Exception as e:
            logger.error("❌ Error en extracción por separador: %s", e, exc_info=True)
            return {"error": "データ抽出に失敗しました", "originalText": text}
