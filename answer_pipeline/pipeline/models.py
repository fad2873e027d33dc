"""Answer pipeline models and data structures."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from answer_pipeline.formatting.models import AudienceMode, FormattedAnswer
from answer_pipeline.llm.selector import ModelTier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RequestContext:
    """Who is asking, and from where."""

    user_id: str
    display_name: str
    page_context: str = ""
    course: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RequestContext":
        """Build a context from an HTTP-style payload (camelCase keys)."""
        return cls(
            user_id=data.get("userId") or data.get("user_id") or "",
            display_name=(
                data.get("displayName") or data.get("username") or data.get("display_name") or ""
            ),
            page_context=data.get("pageContext") or data.get("page") or "",
            course=data.get("course"),
        )


@dataclass(frozen=True)
class AnswerRequest:
    """One learner question waiting for an answer."""

    question_text: str
    context: RequestContext
    audience_mode: AudienceMode = AudienceMode.EXPLANATION
    requested_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class PipelineAnswer:
    """Formatted answer plus how it was produced."""

    answer: FormattedAnswer
    provider: str
    model: str
    model_label: str
    tier: ModelTier | None
    used_fallback: bool
    latency_ms: float
    audience_mode: AudienceMode
    answered_at: datetime = field(default_factory=_utcnow)

    @property
    def raw_text(self) -> str:
        return self.answer.raw_text

    def to_dict(self) -> dict[str, Any]:
        return {
            "reply": self.answer.markdown,
            "formatted": self.answer.to_dict(),
            "provider": self.provider,
            "model": self.model_label,
            "modelType": self.tier.value if self.tier else "fallback",
            "usedFallback": self.used_fallback,
            "latencyMs": round(self.latency_ms),
            "requestType": self.audience_mode.value,
            "timestamp": self.answered_at.isoformat(),
        }
