"""Post-processing of a rendered ``.docx`` package.

Two patches are applied after placeholder substitution, both as plain
string transforms on individual package parts:

* hyperlink relationships allocated during rendering are appended to
  ``word/_rels/document.xml.rels``;
* every table in ``word/document.xml`` is pinned to a fixed layout so Word
  keeps the template's column widths instead of auto-fitting them.

Every function here is total: when a part is missing or not in the
expected shape the input comes back unchanged.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from typing import Iterable, Optional

from eventdocx.hyperlinks import Relationship
from eventdocx.markup import escape_attr

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"
RELATIONSHIPS_PART = "word/_rels/document.xml.rels"

HYPERLINK_REL_TYPE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink"
)
FIXED_LAYOUT = '<w:tblLayout w:type="fixed"/>'

_RELATIONSHIPS_CLOSE = "</Relationships>"
_TBL_PR_RE = re.compile(
    r"<w:tblPr(?P<attrs>\s[^>]*?)?(?:/>|>(?P<inner>.*?)</w:tblPr>)",
    re.DOTALL,
)
_TBL_LAYOUT_RE = re.compile(r"<w:tblLayout\b", re.IGNORECASE)

# Raised by zipfile for corrupt archives, unsupported compression methods
# and encrypted members.
_UNREADABLE_ZIP = (zipfile.BadZipFile, OSError, ValueError, NotImplementedError, RuntimeError)


# ---------------------------------------------------------------------------
# Part transforms
# ---------------------------------------------------------------------------

def relationship_entry(rel: Relationship) -> str:
    return (
        f'<Relationship Id="{escape_attr(rel.id)}" Type="{HYPERLINK_REL_TYPE}"'
        f' Target="{escape_attr(rel.target)}" TargetMode="External"/>'
    )


def inject_relationships(rels_xml: str, relationships: Iterable[Relationship]) -> str:
    """Append external hyperlink relationships before ``</Relationships>``.

    Returns *rels_xml* untouched when there is nothing to add or the
    closing tag cannot be found.
    """
    if not rels_xml or not isinstance(rels_xml, str):
        return rels_xml or ""
    try:
        entries = [
            relationship_entry(rel)
            for rel in relationships or ()
            if rel is not None and rel.id and rel.target is not None
        ]
        if not entries:
            return rels_xml
        idx = rels_xml.rfind(_RELATIONSHIPS_CLOSE)
        if idx == -1:
            return rels_xml
        return rels_xml[:idx] + "".join(entries) + rels_xml[idx:]
    except Exception:
        logger.warning("Could not inject hyperlink relationships", exc_info=True)
        return rels_xml


def _pin_layout(match: re.Match[str]) -> str:
    attrs = match.group("attrs") or ""
    inner = match.group("inner")
    if inner is None:
        return f"<w:tblPr{attrs.rstrip()}>{FIXED_LAYOUT}</w:tblPr>"
    if _TBL_LAYOUT_RE.search(inner):
        return match.group(0)
    return f"<w:tblPr{attrs}>{FIXED_LAYOUT}{inner}</w:tblPr>"


def enforce_fixed_table_layout(document_xml: str) -> str:
    """Insert a fixed layout directive as first child of each ``w:tblPr``.

    Table properties that already declare a ``w:tblLayout`` are left as
    they are.
    """
    if not document_xml or not isinstance(document_xml, str):
        return document_xml or ""
    try:
        return _TBL_PR_RE.sub(_pin_layout, document_xml)
    except Exception:
        logger.warning("Could not enforce fixed table layout", exc_info=True)
        return document_xml


# ---------------------------------------------------------------------------
# Package level
# ---------------------------------------------------------------------------

def read_part(data: bytes, name: str) -> Optional[str]:
    """Return part *name* of the ZIP *data* as text, or ``None``."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return zf.read(name).decode("utf-8")
    except (KeyError, UnicodeDecodeError, *_UNREADABLE_ZIP):
        return None


def patch_package(
    data: bytes,
    relationships: Iterable[Relationship] = (),
    *,
    fixed_table_layout: bool = True,
) -> bytes:
    """Apply relationship injection and table layout pinning to *data*.

    Only the document part and its relationships part are rewritten; all
    other entries keep their content and order.  An unreadable archive is
    returned as is.
    """
    relationships = list(relationships or ())
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zin:
            infos = zin.infolist()
            contents = {info.filename: zin.read(info) for info in infos}
    except _UNREADABLE_ZIP:
        logger.warning("Rendered package is not a readable ZIP archive", exc_info=True)
        return data

    patched: dict[str, bytes] = {}

    if fixed_table_layout and DOCUMENT_PART in contents:
        _patch_part(contents, patched, DOCUMENT_PART, enforce_fixed_table_layout)

    if relationships and RELATIONSHIPS_PART in contents:
        _patch_part(
            contents,
            patched,
            RELATIONSHIPS_PART,
            lambda xml: inject_relationships(xml, relationships),
        )

    if not patched:
        return data

    logger.debug("Rewriting package parts: %s", ", ".join(sorted(patched)))
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zout:
        for info in infos:
            out_info = zipfile.ZipInfo(info.filename, date_time=info.date_time)
            out_info.compress_type = info.compress_type
            out_info.external_attr = info.external_attr
            zout.writestr(out_info, patched.get(info.filename, contents[info.filename]))
    return buf.getvalue()


def _patch_part(contents, patched, name, transform) -> None:
    try:
        original = contents[name].decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Part %s is not UTF-8, leaving it untouched", name)
        return
    updated = transform(original)
    if updated != original:
        patched[name] = updated.encode("utf-8")
