"""Text cleaning and markdown rendering helpers.

Cleaning and normalization only touch prose: fenced code blocks are passed
through unchanged.
"""

import re
from typing import Callable
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

HEADER_RE = re.compile(r"^(#{1,6})\s+(.+)$")
LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
# An unclosed fence runs to the end of the text
FENCED_BLOCK_RE = re.compile(r"^```[^\n]*\n.*?(?:^```[ \t]*$|\Z)", re.DOTALL | re.MULTILINE)

UNSAFE_SCHEMES = ("javascript:", "data:", "vbscript:")
MARKDOWN_EXTENSIONS = ["fenced_code", "nl2br", "sane_lists"]


def map_prose(text: str, transform: Callable[[str], str]) -> str:
    """Apply `transform` to the text between fenced code blocks."""
    parts = []
    last = 0
    for match in FENCED_BLOCK_RE.finditer(text):
        parts.append(transform(text[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(transform(text[last:]))
    return "".join(parts)


def _clean_prose(text: str) -> str:
    text = re.sub(r"<!--.*?-->", "", text, flags=re.DOTALL)
    text = re.sub(r"\\([*_`#])", r"\1", text)
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"\*{3,}", "**", text)
    # "** bold **" -> "**bold**"
    text = re.sub(r"\*\*[ \t]*([^*\n]+?)[ \t]*\*\*", r"**\1**", text)
    text = re.sub(r"^[ \t]*[•◦○●▪][ \t]*", "- ", text, flags=re.MULTILINE)
    text = re.sub(r"^(\d+)\.[ \t]{2,}", r"\1. ", text, flags=re.MULTILINE)
    text = re.sub(r"^(#{1,6})([^\s#])", r"\1 \2", text, flags=re.MULTILINE)
    text = re.sub(r"(?<=\S) {2,}", " ", text)
    return text


def clean_raw_text(text: str) -> str:
    """Normalize raw model output before it is split into sections."""
    text = text.replace("\r\n", "\n")
    return map_prose(text, _clean_prose).strip()


def _normalize_prose(text: str) -> str:
    text = re.sub(r"^(#{1,6})[ \t]+", r"\1 ", text, flags=re.MULTILINE)
    text = re.sub(r"^([-*]|\d+\.)[ \t]+(?=\S)", r"\1 ", text, flags=re.MULTILINE)
    text = re.sub(r"^[-*][ \t]*$", "", text, flags=re.MULTILINE)
    # A list needs a blank line before it to render as a list
    text = re.sub(
        r"^((?![ \t]*(?:[-*+]|\d+\.)[ \t]).*\S.*)\n(?=(?:[-*+]|\d+\.)[ \t])",
        r"\1\n\n",
        text,
        flags=re.MULTILINE,
    )
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text


def normalize_markdown(text: str) -> str:
    """Tidy headers, list markers and blank lines; end with one newline."""
    text = map_prose(text, _normalize_prose).strip()
    return f"{text}\n" if text else ""


class SafeLinkTreeprocessor(Treeprocessor):
    """Open links in a new tab and drop script-capable hrefs."""

    def run(self, root: Element) -> None:
        for link in root.iter("a"):
            href = link.get("href", "")
            if href.strip().lower().startswith(UNSAFE_SCHEMES):
                del link.attrib["href"]
                continue
            link.set("target", "_blank")
            link.set("rel", "noopener")


class SafeLinkExtension(Extension):
    """Python-Markdown extension for rendering untrusted model output."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # Raw HTML in model output is shown as text, not passed through
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        # After the inline processor has built the <a> elements
        md.treeprocessors.register(SafeLinkTreeprocessor(md), "safe_links", 15)


def markdown_to_html(text: str) -> str:
    """Convert markdown into HTML.

    Raw HTML is escaped, links open in a new tab and line breaks inside a
    paragraph are kept as <br>.
    """
    converter = markdown.Markdown(
        extensions=[*MARKDOWN_EXTENSIONS, SafeLinkExtension()],
        output_format="html",
    )
    return converter.convert(text)


def markdown_to_plain_text(text: str) -> str:
    """Strip markdown syntax, keeping list items as bullet lines."""
    text = re.sub(r"^```[^\n]*\n(.*?)^```[ \t]*$", r"\1", text, flags=re.DOTALL | re.MULTILINE)
    text = re.sub(r"^#{1,6}\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"^(?:-{3,}|\*{3,}|_{3,})[ \t]*$", "", text, flags=re.MULTILINE)
    text = re.sub(r"^[ \t]*[-*+][ \t]+", "• ", text, flags=re.MULTILINE)
    text = re.sub(r"^>\s?", "", text, flags=re.MULTILINE)
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    # Emphasis hugs its text; "2 * 3 * 4" is arithmetic
    text = re.sub(r"(?<![\w*])\*(?=\S)([^*\n]*?\S)\*(?![\w*])", r"\1", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = LINK_RE.sub(r"\1", text)
    # Leftover markers from unbalanced syntax
    text = re.sub(r"\*{2,}", "", text)
    text = text.replace("`", "").replace("#", "")
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
