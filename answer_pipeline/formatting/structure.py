"""Extract title, summary, takeaways and next steps from sections."""

import re

from answer_pipeline.formatting.models import AnswerStructure, ResponseSection, SectionType

MAX_LIST_ITEMS = 5
SUMMARY_LENGTH = 200

TAKEAWAY_HEADINGS = ("takeaway", "key point", "summary")
NEXT_STEP_HEADINGS = ("next step", "further", "practice")

_BULLET_ITEM_RE = re.compile(r"^[ \t]*[-*•][ \t]+(.+)$", re.MULTILINE)


def _find_by_heading(sections: list[ResponseSection], keywords: tuple[str, ...]) -> ResponseSection | None:
    for section in sections:
        heading = section.heading.lower()
        if any(keyword in heading for keyword in keywords):
            return section
    return None


def _bullets(content: str) -> list[str]:
    return [item.strip() for item in _BULLET_ITEM_RE.findall(content) if item.strip()]


def extract_key_takeaways(sections: list[ResponseSection]) -> list[str]:
    takeaways = []
    section = _find_by_heading(sections, TAKEAWAY_HEADINGS)
    if section:
        takeaways = _bullets(section.content)

    if not takeaways:
        concept = next((s for s in sections if s.section_type == SectionType.CONCEPT), None)
        if concept:
            sentences = [s.strip() for s in re.split(r"[.!?]+", concept.content)]
            takeaways = [s for s in sentences if len(s) > 20][:3]

    return takeaways[:MAX_LIST_ITEMS]


def extract_next_steps(sections: list[ResponseSection]) -> list[str]:
    section = _find_by_heading(sections, NEXT_STEP_HEADINGS)
    if not section:
        return []
    return _bullets(section.content)[:MAX_LIST_ITEMS]


def extract_structure(sections: list[ResponseSection]) -> AnswerStructure:
    """Build the structured summary of a parsed answer."""
    title = next((s.heading for s in sections if s.heading), None)
    first_content = next((s.content for s in sections if s.content), None)
    summary = first_content[:SUMMARY_LENGTH] if first_content else None

    return AnswerStructure(
        title=title,
        summary=summary,
        key_takeaways=tuple(extract_key_takeaways(sections)),
        next_steps=tuple(extract_next_steps(sections)),
        sections=tuple(sections),
    )
