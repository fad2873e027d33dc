"""Response formatting: raw model text to structured, multi-format answers."""

from .formatter import ResponseFormatter, format_response
from .layouts import AudienceLayout, get_layout
from .models import AnswerStructure, AudienceMode, FormattedAnswer, ResponseSection, SectionType
from .sections import SECTION_RULES, classify_section, parse_sections

__all__ = [
    "AnswerStructure",
    "AudienceLayout",
    "AudienceMode",
    "FormattedAnswer",
    "ResponseFormatter",
    "ResponseSection",
    "SECTION_RULES",
    "SectionType",
    "classify_section",
    "format_response",
    "get_layout",
    "parse_sections",
]
