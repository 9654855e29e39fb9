from .pipeline import AnalysisPipeline, analyze

__all__ = ["AnalysisPipeline", "analyze"]
