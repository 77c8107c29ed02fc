"""Hyperlink classification and relationship id allocation.

Budget line descriptions are free text.  When one is a bare URL it is
rendered as a short clickable ``Link`` pointing at an external hyperlink
relationship; anything else is rendered as plain text.

Relationship ids follow the ``rId<number>`` convention.  Numbering for new
hyperlinks starts after the highest id already present in the template's
``word/_rels/document.xml.rels`` and only moves forward within one
generation.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from eventdocx.markup import R_NS, W_NS, escape_attr, escape_text, placeholder_paragraph

logger = logging.getLogger(__name__)

DEFAULT_FIRST_REL_ID = 100
LINK_DISPLAY_TEXT = "Link"
LINK_COLOR = "0000FF"

_REL_ID_RE = re.compile(r'Id="rId(\d+)"')
_URL_PREFIXES = ("http://", "https://")


@dataclass(frozen=True)
class Relationship:
    id: str
    target: str


@dataclass(frozen=True)
class LinkResult:
    """Outcome of :func:`format_description`.

    ``next_id`` is the next free relationship number; it only advances
    when a relationship was allocated.
    """

    xml: str
    next_id: int
    relationship: Optional[Relationship] = None
    degraded: bool = False


def rel_id(number: int) -> str:
    return f"rId{number}"


def next_relationship_number(rels_xml: Optional[str], default: int = DEFAULT_FIRST_REL_ID) -> int:
    """Return the first unused relationship number after the template's ids.

    Falls back to *default* when the part is missing or holds no parseable
    ``rId<n>`` identifiers.
    """
    if not rels_xml:
        return default
    numbers = [int(n) for n in _REL_ID_RE.findall(rels_xml)]
    if not numbers:
        return default
    return max(numbers) + 1


def is_url(text: str) -> bool:
    return text.strip().lower().startswith(_URL_PREFIXES)


def _paragraph(inner: str) -> str:
    return f'<w:p xmlns:w="{W_NS}">{inner}</w:p>'


def _hyperlink_markup(url: str, rid: str) -> str:
    run = (
        f'<w:r xmlns:w="{W_NS}">'
        f'<w:rPr><w:color w:val="{LINK_COLOR}"/><w:u w:val="single"/></w:rPr>'
        f'<w:t xml:space="preserve">{escape_text(LINK_DISPLAY_TEXT)}</w:t>'
        "</w:r>"
    )
    return _paragraph(
        f'<w:hyperlink xmlns:w="{W_NS}" xmlns:r="{R_NS}"'
        f' r:id="{escape_attr(rid)}" w:tooltip="{escape_attr(url)}">'
        f"{run}</w:hyperlink>"
    )


def format_description(description: object, next_id: int) -> LinkResult:
    """Render a budget description as a link or as plain text.

    A description starting with ``http://`` or ``https://`` becomes a
    ``Link`` run bound to ``rId<next_id>`` and the relationship to register
    is returned with it.  Blank input renders the em-dash placeholder.
    Never raises.
    """
    try:
        s = "" if description is None else str(description).strip()
        if not s:
            return LinkResult(xml=placeholder_paragraph(), next_id=next_id, degraded=True)
        if is_url(s):
            rid = rel_id(next_id)
            return LinkResult(
                xml=_hyperlink_markup(s, rid),
                next_id=next_id + 1,
                relationship=Relationship(id=rid, target=s),
            )
        return LinkResult(
            xml=_paragraph(f'<w:r xmlns:w="{W_NS}"><w:t xml:space="preserve">{escape_text(s)}</w:t></w:r>'),
            next_id=next_id,
        )
    except Exception:
        logger.warning("Could not format description, using placeholder", exc_info=True)
        return LinkResult(xml=placeholder_paragraph(), next_id=next_id, degraded=True)


@dataclass
class HyperlinkRegistry:
    """Per-generation owner of the relationship counter.

    Create one per document; it threads ``next_id`` through successive
    :func:`format_description` calls and keeps the relationships that the
    package post-processor has to register.
    """

    next_id: int = DEFAULT_FIRST_REL_ID
    relationships: list[Relationship] = field(default_factory=list)

    @classmethod
    def from_relationships_xml(
        cls, rels_xml: Optional[str], default: int = DEFAULT_FIRST_REL_ID
    ) -> HyperlinkRegistry:
        return cls(next_id=next_relationship_number(rels_xml, default))

    def resolve(self, description: object) -> str:
        result = format_description(description, self.next_id)
        self.next_id = result.next_id
        if result.relationship is not None:
            self.relationships.append(result.relationship)
        return result.xml
