# Estrategias de extracción intercambiables
from linesheets.core.exceptions import ConfigurationError

from .base import ExtractionStrategy
from .separator_extractor import SeparatorExtractor
from .pattern_extractor import PatternExtractor

STRATEGIES = {
    SeparatorExtractor.name: SeparatorExtractor,
    PatternExtractor.name: PatternExtractor,
}


def get_extractor(name: str = "separator") -> ExtractionStrategy:
    """Instancia la estrategia registrada con ese nombre."""
    try:
        return STRATEGIES[(name or "").strip().lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Estrategia de extracción desconocida: {name!r}",
            details={"available": sorted(STRATEGIES)},
        )


__all__ = ['ExtractionStrategy', 'SeparatorExtractor', 'PatternExtractor', 'STRATEGIES', 'get_extractor']
