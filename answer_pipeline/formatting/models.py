"""Data models for formatted answers."""

from dataclasses import dataclass, field
from enum import Enum


class AudienceMode(str, Enum):
    """Rhetorical purpose of an answer; drives section reassembly."""

    TEACH = "teach"
    QUESTION = "question"
    HINT = "hint"
    REVIEW = "review"
    EXPLANATION = "explanation"


class SectionType(str, Enum):
    """Semantic type of a parsed response section."""

    TEXT = "text"
    CONCEPT = "concept"
    MATH = "math"
    EXAMPLE = "example"
    PRACTICE = "practice"
    RESOURCE = "resource"
    SOLUTION = "solution"
    ERROR = "error"
    STRENGTH = "strength"
    IMPROVEMENT = "improvement"
    FEEDBACK = "feedback"
    APPROACH = "approach"
    UNDERSTANDING = "understanding"
    ASSESSMENT = "assessment"


@dataclass(frozen=True)
class ResponseSection:
    """A contiguous block of answer text under one heading."""

    heading: str
    content: str
    section_type: SectionType = SectionType.TEXT


@dataclass(frozen=True)
class AnswerStructure:
    """Structured summary extracted from the parsed sections."""

    title: str | None = None
    summary: str | None = None
    key_takeaways: tuple[str, ...] = ()
    next_steps: tuple[str, ...] = ()
    sections: tuple[ResponseSection, ...] = ()


@dataclass(frozen=True)
class FormattedAnswer:
    """Final multi-format answer returned to callers."""

    markdown: str
    html: str
    plain_text: str
    structure: AnswerStructure = field(default_factory=AnswerStructure)
    raw_text: str = ""

    def to_dict(self) -> dict:
        return {
            "markdown": self.markdown,
            "html": self.html,
            "plainText": self.plain_text,
            "structure": {
                "title": self.structure.title,
                "summary": self.structure.summary,
                "keyTakeaways": list(self.structure.key_takeaways),
                "nextSteps": list(self.structure.next_steps),
                "sections": [
                    {
                        "heading": s.heading,
                        "content": s.content,
                        "type": s.section_type.value,
                    }
                    for s in self.structure.sections
                ],
            },
            "rawText": self.raw_text,
        }
