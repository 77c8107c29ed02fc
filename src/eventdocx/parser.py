"""Rich-text parser producing the block model used for Word markup.

Scans the constrained HTML subset written by the front-end editor
(``p``, ``div``, ``br``, ``strong``, ``b``, ``ol``, ``ul``, ``li``) with a
small tokenizer and state machine.  The result is an ordered list of
:class:`Fragment` spans which is then decomposed into :class:`Block` values,
each holding a sequence of :class:`InlineRun` with a bold flag.

Unknown tags are stripped.  Nested lists and tables are not supported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from eventdocx.entities import decode_entities, unwrap_editor_html

logger = logging.getLogger(__name__)

HEADER_MAX_LENGTH = 80


# ---------------------------------------------------------------------------
# Block model
# ---------------------------------------------------------------------------

class FragmentKind(Enum):
    CONTENT = "content"
    LIST = "list"


class ListKind(Enum):
    ORDERED = "ordered"
    UNORDERED = "unordered"


@dataclass
class InlineRun:
    bold: bool
    text: str


@dataclass
class Fragment:
    """A top-level span of the source: free content or a whole list."""

    kind: FragmentKind
    start: int
    end: int
    html: str = ""
    list_kind: Optional[ListKind] = None
    items: list[str] = field(default_factory=list)


@dataclass
class ContentParagraph:
    runs: list[InlineRun]
    # 1-based position when the content fragment holds several blocks
    number: Optional[int] = None


@dataclass
class ListItem:
    list_kind: ListKind
    index: int
    runs: list[InlineRun]


Block = Union[ContentParagraph, ListItem]


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Token:
    start: int
    end: int
    text: str = ""
    # Lower-case tag name; empty for text tokens, "?" for nameless markup.
    tag: str = ""
    closing: bool = False

    @property
    def is_text(self) -> bool:
        return not self.tag


_TOKEN_RE = re.compile(r"<[^>]*>|[^<]+|<")
_TAG_NAME_RE = re.compile(r"<\s*(/?)\s*([a-zA-Z][a-zA-Z0-9]*)")

_BOLD_TAGS = frozenset({"strong", "b"})
_LIST_TAGS = frozenset({"ol", "ul"})
_CLOSING_SEPARATORS = frozenset({"p", "div"})


def _tokenize(html: str) -> list[_Token]:
    tokens: list[_Token] = []
    for m in _TOKEN_RE.finditer(html):
        raw = m.group(0)
        if raw.startswith("<") and raw.endswith(">") and len(raw) > 1:
            name = _TAG_NAME_RE.match(raw)
            if name:
                tokens.append(_Token(
                    start=m.start(),
                    end=m.end(),
                    tag=name.group(2).lower(),
                    closing=bool(name.group(1)),
                ))
            else:
                tokens.append(_Token(start=m.start(), end=m.end(), tag="?"))
        else:
            tokens.append(_Token(start=m.start(), end=m.end(), text=raw))
    return tokens


def _visible_text(tokens: list[_Token]) -> str:
    return decode_entities("".join(t.text for t in tokens if t.is_text))


def is_section_header(text: str) -> bool:
    """Short lines ending with a colon are rendered as bold headers."""
    t = text.strip()
    return 0 < len(t) <= HEADER_MAX_LENGTH and t.endswith(":")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class RichTextParser:
    """Parse editor HTML into an ordered list of :data:`Block` values."""

    # -- public API ---------------------------------------------------------

    def parse(self, html: object) -> list[Block]:
        """Return the blocks for *html*; never raises.

        Anything that cannot be parsed yields an empty list, which the
        markup builder turns into a placeholder paragraph.
        """
        if not html or not isinstance(html, str):
            return []
        try:
            return self._parse(html)
        except Exception:
            logger.warning("Unparseable rich text, dropping it", exc_info=True)
            return []

    def split_fragments(self, html: str) -> list[Fragment]:
        """Split *html* into content and list fragments in document order."""
        tokens = _tokenize(html)
        fragments: list[Fragment] = []
        content_start = 0
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            if tok.tag in _LIST_TAGS and not tok.closing:
                close = self._find_close(tokens, i + 1, tok.tag)
                if close is not None:
                    if tok.start > content_start:
                        fragments.append(Fragment(
                            kind=FragmentKind.CONTENT,
                            start=content_start,
                            end=tok.start,
                            html=html[content_start:tok.start],
                        ))
                    end = tokens[close].end
                    fragments.append(Fragment(
                        kind=FragmentKind.LIST,
                        start=tok.start,
                        end=end,
                        html=html[tok.start:end],
                        list_kind=ListKind.ORDERED if tok.tag == "ol" else ListKind.UNORDERED,
                        items=self._list_items(html, tokens[i + 1:close]),
                    ))
                    content_start = end
                    i = close + 1
                    continue
            i += 1
        if content_start < len(html):
            fragments.append(Fragment(
                kind=FragmentKind.CONTENT,
                start=content_start,
                end=len(html),
                html=html[content_start:],
            ))
        return fragments

    def parse_inlines(self, html: str) -> list[InlineRun]:
        """Parse inline content into bold / plain runs."""
        return self._runs_from_tokens(_tokenize(html))

    # -- internals ----------------------------------------------------------

    def _parse(self, html: str) -> list[Block]:
        source = unwrap_editor_html(html)
        if not source:
            return []

        blocks: list[Block] = []
        for frag in self.split_fragments(source):
            if frag.kind == FragmentKind.LIST and frag.list_kind is not None:
                for idx, item in enumerate(frag.items, start=1):
                    blocks.append(ListItem(
                        list_kind=frag.list_kind,
                        index=idx,
                        runs=self.parse_inlines(item),
                    ))
            else:
                blocks.extend(self._content_blocks(frag.html))

        if not blocks:
            runs = self.parse_inlines(source)
            if runs:
                blocks.append(ContentParagraph(runs=runs))
        return blocks

    @staticmethod
    def _find_close(tokens: list[_Token], start: int, tag: str) -> Optional[int]:
        for j in range(start, len(tokens)):
            if tokens[j].tag == tag and tokens[j].closing:
                return j
        return None

    @staticmethod
    def _list_items(html: str, tokens: list[_Token]) -> list[str]:
        items: list[str] = []
        item_start: Optional[int] = None
        for tok in tokens:
            if tok.tag != "li":
                continue
            if not tok.closing:
                if item_start is None:
                    item_start = tok.end
            elif item_start is not None:
                items.append(html[item_start:tok.start].strip())
                item_start = None
        return items

    def _content_blocks(self, html: str) -> list[ContentParagraph]:
        segments: list[list[_Token]] = [[]]
        for tok in _tokenize(html):
            if tok.tag == "br" or (tok.closing and tok.tag in _CLOSING_SEPARATORS):
                segments.append([])
            elif tok.is_text and "\n" in tok.text:
                lines = tok.text.split("\n")
                for n, line in enumerate(lines):
                    if n:
                        segments.append([])
                    if line:
                        segments[-1].append(_Token(start=tok.start, end=tok.end, text=line))
            else:
                segments[-1].append(tok)

        kept = [seg for seg in segments if _visible_text(seg).strip()]
        multi = len(kept) > 1

        blocks: list[ContentParagraph] = []
        for number, seg in enumerate(kept, start=1):
            runs = self._runs_from_tokens(seg)
            if not runs:
                continue
            if is_section_header(_visible_text(seg)):
                runs = [InlineRun(bold=True, text=r.text) for r in runs]
            blocks.append(ContentParagraph(runs=runs, number=number if multi else None))
        return blocks

    @staticmethod
    def _runs_from_tokens(tokens: list[_Token]) -> list[InlineRun]:
        runs: list[InlineRun] = []
        buf: list[str] = []
        bold = False

        def flush() -> None:
            text = decode_entities("".join(buf))
            buf.clear()
            if text.strip():
                runs.append(InlineRun(bold=bold, text=text))

        for tok in tokens:
            if tok.tag in _BOLD_TAGS:
                flush()
                bold = not tok.closing
            elif tok.is_text:
                buf.append(tok.text)
        flush()

        if runs:
            runs[0].text = runs[0].text.lstrip()
            runs[-1].text = runs[-1].text.rstrip()
            return runs

        plain = _visible_text(tokens).strip()
        if plain:
            return [InlineRun(bold=False, text=plain)]
        return runs
