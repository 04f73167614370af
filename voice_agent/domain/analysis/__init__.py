from .analysis_scheduler import AnalysisScheduler
from .base_producer import AnalysisProducer

__all__ = ["AnalysisProducer", "AnalysisScheduler"]
