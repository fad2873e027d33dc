"""Answer pipeline: queueing, provider fallback and the caller-facing facade."""

from .facade import AnswerPipeline
from .models import AnswerRequest, PipelineAnswer, RequestContext
from .orchestrator import AnswerOrchestrator

__all__ = ["AnswerOrchestrator", "AnswerPipeline", "AnswerRequest", "PipelineAnswer", "RequestContext"]
