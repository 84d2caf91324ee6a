from __future__ import annotations
from typing import List, Dict, Any, Optional
import logging

from linesheets.core.exceptions import AIProcessingError, ConfigurationError

logger = logging.getLogger(__name__)

class OpenAIChatClient:
    """Interfaz simple para chat completions en modo JSON. Un solo intento por llamada."""

    def __init__(self, api_key: str, timeout: float = 60.0, client: Optional[Any] = None) -> None:
        if client is not None:
            self.client = client
            return
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY no configurada")
        try:
            from openai import OpenAI
            self.client = OpenAI(api_key=api_key, timeout=timeout)
        except Exception as e:
            logger.error("No se pudo inicializar OpenAI: %s", e)
            raise

    def chat_json(self, model: str, messages: List[Dict[str, Any]], temperature: float, max_tokens: int) -> str:
        """Hace una llamada y retorna el content (str). Sin reintentos."""
        try:
            resp = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
            return resp.choices[0].message.content or ""
        except Exception as e:
            logger.warning("⚠️ Error en OpenAI API: %s", e)
            raise AIProcessingError(f"Error en OpenAI API: {e}", cause=e)


def make_openai_client(api_key: str, timeout: float = 60.0) -> OpenAIChatClient:
    return OpenAIChatClient(api_key=api_key, timeout=timeout)
