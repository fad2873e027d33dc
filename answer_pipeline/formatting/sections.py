"""Split cleaned answer text into typed sections."""

from answer_pipeline.formatting.models import ResponseSection, SectionType
from answer_pipeline.formatting.render import HEADER_RE

# Heading keywords per section type, checked in order
SECTION_RULES: list[tuple[tuple[str, ...], SectionType]] = [
    (("example", "worked", "demonstration"), SectionType.EXAMPLE),
    (("formula", "equation", "math"), SectionType.MATH),
    (("code", "implementation"), SectionType.EXAMPLE),
    (("summary", "key", "takeaway"), SectionType.TEXT),
    (("practice", "exercise", "try"), SectionType.PRACTICE),
    (("understanding", "the problem"), SectionType.UNDERSTANDING),
    (("concept", "overview", "introduction"), SectionType.CONCEPT),
    (("error", "mistake", "wrong"), SectionType.ERROR),
    (("solution", "answer", "correct"), SectionType.SOLUTION),
    (("hint", "approach", "strategy"), SectionType.APPROACH),
    (("resource", "further", "learn more"), SectionType.RESOURCE),
    (("strength", "well done", "good"), SectionType.STRENGTH),
    (("improve", "suggestion", "recommend"), SectionType.IMPROVEMENT),
    (("assessment",), SectionType.ASSESSMENT),
    (("feedback", "review"), SectionType.FEEDBACK),
]


def classify_section(heading: str) -> SectionType:
    """Map a heading to a section type by keyword."""
    lowered = heading.lower()
    for keywords, section_type in SECTION_RULES:
        if any(keyword in lowered for keyword in keywords):
            return section_type
    return SectionType.TEXT


def parse_sections(text: str) -> list[ResponseSection]:
    """Split text on markdown headers, keeping source order.

    Text before the first header becomes a section with an empty heading.
    Headed sections are kept even when their body is empty.
    """
    sections: list[ResponseSection] = []
    heading: str | None = None
    buffer: list[str] = []

    def close() -> None:
        content = "\n".join(buffer).strip()
        if heading:
            sections.append(ResponseSection(heading, content, classify_section(heading)))
        elif content:
            sections.append(ResponseSection("", content, SectionType.TEXT))

    in_fence = False
    for line in text.split("\n"):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        match = None if in_fence else HEADER_RE.match(line)
        if match:
            close()
            heading = match.group(2).strip()
            buffer = []
        else:
            buffer.append(line)

    close()
    return sections
