from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class AIConfig:
    """Configuración para el análisis de mensajes vía OpenAI."""
    api_key: str
    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 60.0          # segundos por llamada
