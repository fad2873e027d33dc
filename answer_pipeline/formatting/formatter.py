"""Turn raw model output into a multi-format answer."""

import html
import logging

from answer_pipeline.formatting.layouts import get_layout
from answer_pipeline.formatting.models import (
    AnswerStructure,
    AudienceMode,
    FormattedAnswer,
    ResponseSection,
    SectionType,
)
from answer_pipeline.formatting.render import (
    clean_raw_text,
    markdown_to_html,
    markdown_to_plain_text,
    normalize_markdown,
)
from answer_pipeline.formatting.sections import parse_sections
from answer_pipeline.formatting.structure import extract_structure

logger = logging.getLogger(__name__)


class ResponseFormatter:
    """Stateless formatter for raw provider text.

    `format` never raises: if any stage fails, the whole input is treated
    as one untitled section so the caller still gets plain text and the
    untouched raw text.
    """

    def format(
        self,
        raw_text: str,
        audience_mode: AudienceMode | str = AudienceMode.EXPLANATION,
    ) -> FormattedAnswer:
        """Format raw model output.

        Args:
            raw_text: Unmodified provider output
            audience_mode: Layout to reassemble sections with

        Returns:
            FormattedAnswer with markdown, HTML, plain text and structure
        """
        if not raw_text or not raw_text.strip():
            return FormattedAnswer(markdown="", html="", plain_text="", raw_text=raw_text or "")

        try:
            return self._format(raw_text, AudienceMode(audience_mode))
        except Exception as e:
            logger.warning(f"Formatting failed, returning single-section answer: {e}", exc_info=True)
            return self._degraded(raw_text)

    def _format(self, raw_text: str, audience_mode: AudienceMode) -> FormattedAnswer:
        cleaned = clean_raw_text(raw_text)
        sections = parse_sections(cleaned)
        markdown = normalize_markdown(get_layout(audience_mode).render(sections))

        answer = FormattedAnswer(
            markdown=markdown,
            html=markdown_to_html(markdown),
            plain_text=markdown_to_plain_text(markdown),
            structure=extract_structure(sections),
            raw_text=raw_text,
        )

        logger.info(
            f"Formatted {audience_mode.value} answer: {len(raw_text)} raw chars, "
            f"{len(sections)} sections, {len(markdown)} markdown chars"
        )
        return answer

    def _degraded(self, raw_text: str) -> FormattedAnswer:
        text = raw_text.strip()
        section = ResponseSection(heading="", content=text, section_type=SectionType.TEXT)
        return FormattedAnswer(
            markdown=f"{text}\n",
            html=f"<p>{html.escape(text, quote=False)}</p>",
            plain_text=text,
            structure=AnswerStructure(summary=text[:200], sections=(section,)),
            raw_text=raw_text,
        )


def format_response(
    raw_text: str,
    audience_mode: AudienceMode | str = AudienceMode.EXPLANATION,
) -> FormattedAnswer:
    """Convenience wrapper around a shared ResponseFormatter."""
    return _formatter.format(raw_text, audience_mode)


_formatter = ResponseFormatter()
