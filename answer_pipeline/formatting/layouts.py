"""Audience-specific reassembly of parsed sections into markdown."""

from abc import ABC, abstractmethod

from answer_pipeline.formatting.models import AudienceMode, ResponseSection, SectionType

HINT_REMINDER = "> ⚠️ **Remember:** Try to solve it yourself first. These are hints, not solutions!"
HINT_NEXT_STEP = "Try the approach above. When you get stuck, I can help with the next hint!"


def _block(heading: str | None, content: str, level: int = 2) -> str:
    """Render one heading/content pair followed by a blank line."""
    parts = []
    if heading:
        parts.append(f"{'#' * level} {heading}\n\n")
    if content:
        parts.append(f"{content}\n\n")
    return "".join(parts)


def _remaining(sections: list[ResponseSection], used: list[ResponseSection]) -> list[ResponseSection]:
    used_ids = {id(s) for s in used}
    return [s for s in sections if id(s) not in used_ids]


def _of_type(sections: list[ResponseSection], *types: SectionType) -> list[ResponseSection]:
    return [s for s in sections if s.section_type in types]


class AudienceLayout(ABC):
    """Abstract base class for audience layouts."""

    mode: AudienceMode

    @abstractmethod
    def render(self, sections: list[ResponseSection]) -> str:
        """Reassemble sections into a markdown document."""
        pass

    def render_rest(self, sections: list[ResponseSection]) -> str:
        """Render sections that have content under their own level-2 headings."""
        return "".join(_block(s.heading, s.content) for s in sections if s.content)


class TeachLayout(AudienceLayout):
    """Lesson order: concepts, maths, examples, other, practice, resources."""

    mode = AudienceMode.TEACH

    def render(self, sections: list[ResponseSection]) -> str:
        result = ""
        title_section = next((s for s in sections if s.heading), None)
        grouped = (
            SectionType.CONCEPT,
            SectionType.MATH,
            SectionType.EXAMPLE,
            SectionType.PRACTICE,
            SectionType.RESOURCE,
        )
        used = []

        if title_section:
            result += f"# {title_section.heading}\n\n"
            # An untyped title section is the lesson's introduction
            if title_section.section_type not in grouped:
                result += _block(None, title_section.content)
                used.append(title_section)

        for section in _of_type(sections, SectionType.CONCEPT):
            heading = section.heading if section is not title_section else None
            result += _block(heading, section.content)

        math = [s for s in _of_type(sections, SectionType.MATH) if s.content]
        if math:
            result += "## Mathematical Framework\n\n"
            result += "".join(_block(None, s.content) for s in math)

        examples = [s for s in _of_type(sections, SectionType.EXAMPLE) if s.content]
        if examples:
            result += "## Worked Examples\n\n"
            for i, section in enumerate(examples, 1):
                heading = f"Example {i}" if len(examples) > 1 else None
                result += _block(heading, section.content, level=3)

        other = [s for s in _remaining(sections, used) if s.section_type not in grouped]
        result += self.render_rest(other)

        practice = [s for s in _of_type(sections, SectionType.PRACTICE) if s.content]
        if practice:
            result += "## Practice Problems\n\n"
            result += "".join(_block(None, s.content) for s in practice)

        resources = [s for s in _of_type(sections, SectionType.RESOURCE) if s.content]
        if resources:
            result += "## Further Resources\n\n"
            result += "".join(_block(None, s.content) for s in resources)

        return result.strip()


class QuestionLayout(AudienceLayout):
    """Direct answer first, then everything else in source order."""

    mode = AudienceMode.QUESTION

    def render(self, sections: list[ResponseSection]) -> str:
        answer = next(
            (
                s
                for s in sections
                if s.section_type == SectionType.SOLUTION or "answer" in s.heading.lower()
            ),
            None,
        )
        result = ""
        used = []
        if answer:
            result += _block("Answer", answer.content)
            used.append(answer)

        result += self.render_rest(_remaining(sections, used))
        return result.strip() or "\n\n".join(s.content for s in sections).strip()


class HintLayout(AudienceLayout):
    """Scaffolded hints that stop short of a full solution."""

    mode = AudienceMode.HINT

    @staticmethod
    def _is_step(section: ResponseSection) -> bool:
        heading = section.heading.lower()
        return "step" in heading or "hint" in heading

    def render(self, sections: list[ResponseSection]) -> str:
        result = "# Working Through This Problem\n\n"

        understanding = next((s for s in _of_type(sections, SectionType.UNDERSTANDING)), None)
        concept = next((s for s in _of_type(sections, SectionType.CONCEPT)), None)
        approach = next(
            (s for s in _of_type(sections, SectionType.APPROACH) if not self._is_step(s)), None
        )
        used = [s for s in (understanding, concept, approach) if s]

        if understanding:
            result += _block("Understanding the Problem", understanding.content)
        if concept:
            result += _block("Key Concepts Involved", concept.content)
        if approach:
            result += _block("Suggested Approach", approach.content)

        steps = [s for s in _remaining(sections, used) if self._is_step(s)]
        if steps:
            result += "## Step-by-Step Hints\n\n"
            for i, step in enumerate(steps, 1):
                result += _block(step.heading or f"Step {i}", step.content, level=3)
        used.extend(steps)

        result += self.render_rest(_remaining(sections, used))
        result += f"{HINT_REMINDER}\n\n"
        result += f"## Next Step\n\n{HINT_NEXT_STEP}\n"
        return result.strip()


class ReviewLayout(AudienceLayout):
    """Feedback on a learner's submitted solution."""

    mode = AudienceMode.REVIEW

    def render(self, sections: list[ResponseSection]) -> str:
        result = "# Solution Review\n\n"

        assessment = next(iter(_of_type(sections, SectionType.ASSESSMENT, SectionType.FEEDBACK)), None)
        strengths = [s for s in _of_type(sections, SectionType.STRENGTH) if s.content]
        errors = [s for s in _of_type(sections, SectionType.ERROR) if s.content]
        solution = next(iter(_of_type(sections, SectionType.SOLUTION)), None)
        improvement = next(iter(_of_type(sections, SectionType.IMPROVEMENT)), None)

        if assessment:
            result += _block("Overall Assessment", assessment.content)
        if strengths:
            result += "## ✅ What You Did Well\n\n"
            result += "".join(_block(None, s.content) for s in strengths)
        if errors:
            result += "## ❌ Errors Found\n\n"
            result += "".join(_block(None, s.content) for s in errors)
        if solution:
            result += _block("Correct Solution", solution.content)
        if improvement:
            result += _block("How to Improve", improvement.content)

        used = [s for s in (assessment, *strengths, *errors, solution, improvement) if s]
        result += self.render_rest(_remaining(sections, used))
        return result.strip()


class ExplanationLayout(AudienceLayout):
    """Source order, every heading at level 2."""

    mode = AudienceMode.EXPLANATION

    def render(self, sections: list[ResponseSection]) -> str:
        result = "".join(_block(s.heading, s.content) for s in sections)
        return result.strip()


LAYOUTS: dict[AudienceMode, AudienceLayout] = {
    layout.mode: layout
    for layout in (TeachLayout(), QuestionLayout(), HintLayout(), ReviewLayout(), ExplanationLayout())
}


def get_layout(mode: AudienceMode | str) -> AudienceLayout:
    """Return the layout for an audience mode.

    Raises:
        ValueError: If the mode is unknown
    """
    return LAYOUTS[AudienceMode(mode)]
