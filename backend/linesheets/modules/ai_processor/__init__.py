from .config import AIConfig
from .clients import OpenAIChatClient, make_openai_client
from .analyzer import AIAnalysisService, call_fallback, parse_fallback

__all__ = ['AIConfig', 'OpenAIChatClient', 'make_openai_client', 'AIAnalysisService', 'call_fallback', 'parse_fallback']
