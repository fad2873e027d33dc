"""Question analysis: model tier selection and audience mode detection.

Both classifiers are ordered keyword rule lists evaluated top to bottom,
first match wins. The rules are plain data so they can be inspected and
tested independently of the matching code.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from answer_pipeline.formatting.models import AudienceMode

logger = logging.getLogger(__name__)

SHORT_QUESTION_WORDS = 10


class ModelTier(str, Enum):
    """Provider-agnostic class of model capability."""

    FAST = "fast"
    BALANCED = "balanced"
    SMART = "smart"
    EXPERT = "expert"


@dataclass(frozen=True)
class SelectedModel:
    """Model chosen for a question."""

    tier: ModelTier
    model_identifier: str
    human_label: str


@dataclass(frozen=True)
class KeywordRule:
    """Match whole `words` or substring `stems`, case-insensitively."""

    words: tuple[str, ...] = ()
    stems: tuple[str, ...] = ()

    def pattern(self) -> re.Pattern[str]:
        parts = [rf"\b{re.escape(w)}\b" for w in self.words]
        parts += [re.escape(s) for s in self.stems]
        return re.compile("|".join(parts), re.IGNORECASE)

    def matches(self, text: str) -> bool:
        return bool(self.pattern().search(text))


@dataclass(frozen=True)
class ModelRule(KeywordRule):
    tier: ModelTier = ModelTier.BALANCED


@dataclass(frozen=True)
class AudienceRule(KeywordRule):
    mode: AudienceMode = AudienceMode.QUESTION


MODEL_RULES: list[ModelRule] = [
    ModelRule(
        tier=ModelTier.EXPERT,
        words=("code", "function", "implement", "syntax", "program", "variable", "class", "method"),
        stems=("debug", "algorithm", "javascript", "typescript", "python"),
    ),
    ModelRule(
        tier=ModelTier.SMART,
        words=(
            "explain", "why", "how", "analyze", "compare", "theory", "concept",
            "research", "mechanism", "complex", "quantum", "difference",
        ),
    ),
    ModelRule(
        tier=ModelTier.BALANCED,
        words=("what", "tell", "describe", "define", "list", "summarize"),
    ),
]

DEFAULT_TIER_MODELS: dict[ModelTier, str] = {
    ModelTier.FAST: "google/gemma-3-12b-it:free",
    ModelTier.BALANCED: "google/gemma-3-12b-it:free",
    ModelTier.SMART: "nvidia/llama-3.1-nemotron-nano-12b-v1:free",
    ModelTier.EXPERT: "nvidia/llama-3.1-nemotron-nano-12b-v1:free",
}

TIER_LABELS: dict[ModelTier, str] = {
    ModelTier.FAST: "Fast",
    ModelTier.BALANCED: "Balanced",
    ModelTier.SMART: "Smart",
    ModelTier.EXPERT: "Expert",
}

# Substring phrases, checked in this order
AUDIENCE_RULES: list[AudienceRule] = [
    AudienceRule(
        mode=AudienceMode.TEACH,
        stems=(
            "teach", "learn", "explain how", "show me how", "help me understand",
            "introduction to", "tutorial", "guide me through", "what is",
        ),
    ),
    AudienceRule(
        mode=AudienceMode.QUESTION,
        stems=(
            "what", "why", "how", "when", "where", "which", "is it", "does",
            "can", "should", "would", "could",
        ),
    ),
    AudienceRule(
        mode=AudienceMode.HINT,
        stems=(
            "hint", "clue", "help me solve", "stuck on", "don't understand",
            "give me a tip", "point me", "guide",
        ),
    ),
    AudienceRule(
        mode=AudienceMode.REVIEW,
        stems=(
            "review", "check", "evaluate", "grade", "feedback", "correct",
            "is this right", "did i do this correctly", "assess",
        ),
    ),
    AudienceRule(
        mode=AudienceMode.EXPLANATION,
        stems=(
            "explain", "clarify", "define", "meaning of", "difference between",
            "elaborate", "break down",
        ),
    ),
]


def count_words(text: str) -> int:
    return len(text.split())


def _selected(tier: ModelTier, models: dict[ModelTier, str]) -> SelectedModel:
    model_id = models.get(tier, DEFAULT_TIER_MODELS[tier])
    return SelectedModel(
        tier=tier,
        model_identifier=model_id,
        human_label=f"{model_id} ({TIER_LABELS[tier]})",
    )


def select_model(
    question_text: str,
    models: dict[ModelTier, str] | None = None,
) -> SelectedModel:
    """Pick a model tier for a question.

    Coding keywords win over reasoning keywords, which win over descriptive
    keywords. A question matching none of them is routed to the fast tier
    when it is shorter than ten words and to the balanced tier otherwise.

    Args:
        question_text: The learner's question
        models: Tier to model identifier mapping, defaults to DEFAULT_TIER_MODELS

    Returns:
        SelectedModel for the first matching rule
    """
    models = models or DEFAULT_TIER_MODELS

    for rule in MODEL_RULES:
        if rule.matches(question_text):
            logger.debug(f"Question matched {rule.tier.value} rule")
            return _selected(rule.tier, models)

    if count_words(question_text) < SHORT_QUESTION_WORDS:
        return _selected(ModelTier.FAST, models)

    return _selected(ModelTier.BALANCED, models)


def detect_audience_mode(question_text: str) -> AudienceMode:
    """Guess how an answer should be laid out from the question wording."""
    for rule in AUDIENCE_RULES:
        if rule.matches(question_text):
            return rule.mode

    if count_words(question_text) < SHORT_QUESTION_WORDS:
        return AudienceMode.QUESTION
    return AudienceMode.TEACH
