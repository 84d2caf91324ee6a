from .health_checker import PipelineHealthChecker

__all__ = ['PipelineHealthChecker']
