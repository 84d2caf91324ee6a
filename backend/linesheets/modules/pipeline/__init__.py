from .processor import MessagePipeline

__all__ = ['MessagePipeline']
