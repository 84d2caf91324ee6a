from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict


class ExtractionStrategy(ABC):
    """
    Capacidad de extracción: texto libre → mapping estructurado.
    Las implementaciones nunca lanzan excepciones hacia el llamador.
    """
    name: str = ""

    @abstractmethod
    def extract(self, text: str) -> Dict[str, Any]:
        ...
