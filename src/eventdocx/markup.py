"""WordprocessingML paragraph markup built from parsed rich text.

The output is a sequence of ``w:p`` elements meant to be dropped verbatim
into a document body by the template collaborator (``{{p field }}`` tags).
Markup is string-built; every paragraph carries its own ``xmlns:w``
declaration so a fragment is well-formed on its own.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from eventdocx.entities import EM_DASH
from eventdocx.parser import Block, ContentParagraph, InlineRun, ListItem, ListKind, RichTextParser

logger = logging.getLogger(__name__)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

BULLET = "\u2022"

# Characters outside the XML 1.0 Char production.
_INVALID_XML_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------

def escape_text(text: object) -> str:
    """Escape ``&``, ``<`` and ``>`` for element content."""
    if text is None:
        return ""
    s = _INVALID_XML_RE.sub("", str(text))
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attr(text: object) -> str:
    """Escape a value for a double-quoted XML attribute."""
    return escape_text(text).replace('"', "&quot;")


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MarkupResult:
    """Paragraph markup, flagged when a placeholder stands in for the input."""

    xml: str
    degraded: bool = False

    def __str__(self) -> str:
        return self.xml


# ---------------------------------------------------------------------------
# Paragraph primitives
# ---------------------------------------------------------------------------

def make_run(text: str, *, bold: bool = False) -> str:
    props = "<w:rPr><w:b/></w:rPr>" if bold else ""
    return f'<w:r>{props}<w:t xml:space="preserve">{escape_text(text)}</w:t></w:r>'


def make_paragraph(runs: Iterable[InlineRun]) -> str:
    """Build one ``w:p`` from *runs*; an empty run list yields a blank line."""
    inner = "".join(make_run(r.text, bold=r.bold) for r in runs)
    if not inner:
        inner = make_run(" ")
    return f'<w:p xmlns:w="{W_NS}">{inner}</w:p>'


def placeholder_paragraph() -> str:
    """The em-dash paragraph used wherever there is nothing to show."""
    return make_paragraph([InlineRun(bold=False, text=EM_DASH)])


def _with_prefix(runs: list[InlineRun], prefix: str) -> list[InlineRun]:
    """Prepend *prefix* to the first run, inheriting that run's bold flag."""
    if runs and runs[0].text:
        first = InlineRun(bold=runs[0].bold, text=prefix + runs[0].text)
        return [first, *runs[1:]]
    return [InlineRun(bold=False, text=prefix), *runs]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class MarkupBuilder:
    """Render rich text or parsed blocks as WordprocessingML paragraphs."""

    def __init__(self, parser: Optional[RichTextParser] = None) -> None:
        self.parser = parser or RichTextParser()

    def html_to_markup(self, html: object) -> MarkupResult:
        """Convert editor HTML to paragraph markup.

        Blank, non-string or unparseable input produces the em-dash
        placeholder with ``degraded`` set.
        """
        if not html or not isinstance(html, str) or not html.strip():
            return MarkupResult(placeholder_paragraph(), degraded=True)
        blocks = self.parser.parse(html)
        return self.build(blocks)

    def build(self, blocks: list[Block]) -> MarkupResult:
        if not blocks:
            return MarkupResult(placeholder_paragraph(), degraded=True)
        try:
            xml = "".join(self._render_block(b) for b in blocks)
        except Exception:
            logger.warning("Could not build paragraph markup", exc_info=True)
            return MarkupResult(placeholder_paragraph(), degraded=True)
        return MarkupResult(xml)

    def _render_block(self, block: Block) -> str:
        if isinstance(block, ListItem):
            if block.list_kind == ListKind.ORDERED:
                prefix = f"{block.index}. "
            else:
                prefix = f"{BULLET} "
            return make_paragraph(_with_prefix(block.runs, prefix))

        if isinstance(block, ContentParagraph):
            runs = block.runs
            if block.number is not None:
                runs = _with_prefix(runs, f"{block.number}. ")
            return make_paragraph(runs)

        raise TypeError(f"Unsupported block: {block!r}")


def html_to_markup(html: object) -> MarkupResult:
    """Module-level shortcut for :meth:`MarkupBuilder.html_to_markup`."""
    return MarkupBuilder().html_to_markup(html)
