"""HTML entity decoding and rich-text editor normalisation.

The rich-text editor used by the front end stores its content as a small
HTML subset, optionally wrapped in the editor's own ``div.ql-editor``
container.  The helpers here undo that wrapping and decode the character
references the editor emits.  None of them raise.
"""

from __future__ import annotations

import re

EM_DASH = "\u2014"
NBSP = "\u00a0"

_NAMED_ENTITIES = {
    "nbsp": NBSP,
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
}

_ENTITY_RE = re.compile(
    r"&(?:(?P<named>nbsp|amp|lt|gt|quot)|#(?P<dec>\d+)|#[xX](?P<hex>[0-9a-fA-F]+));",
    re.IGNORECASE,
)

_EDITOR_WRAPPER_RE = re.compile(
    r'^<div[^>]*\bclass="[^"]*ql-editor[^"]*"[^>]*>(.*)</div>\s*$',
    re.IGNORECASE | re.DOTALL,
)

_TAG_RE = re.compile(r"<[^>]*>")
_PLAIN_BREAK_RE = re.compile(r"</p>|<br\s*/?>|</li>|</div>|</h[1-6]>", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _decode_match(match: re.Match[str]) -> str:
    named = match.group("named")
    if named is not None:
        return _NAMED_ENTITIES[named.lower()]
    try:
        if match.group("dec") is not None:
            return chr(int(match.group("dec"), 10))
        return chr(int(match.group("hex"), 16))
    except (ValueError, OverflowError):
        # Out of the Unicode range: keep the reference as written.
        return match.group(0)


def decode_entities(text: str) -> str:
    """Decode the character references produced by the editor.

    Decoding is a single pass, so ``&amp;lt;`` becomes ``&lt;`` and not
    ``<``.  Unknown references are left untouched.
    """
    if not text:
        return ""
    return _ENTITY_RE.sub(_decode_match, str(text))


def unwrap_editor_html(html: str) -> str:
    """Strip the editor's ``div.ql-editor`` container when it wraps everything."""
    if not html or not isinstance(html, str):
        return ""
    s = html.strip()
    m = _EDITOR_WRAPPER_RE.match(s)
    if m:
        s = m.group(1).strip()
    return s


def strip_tags(html: str) -> str:
    return _TAG_RE.sub("", html)


def html_to_plain_text(html: object) -> str:
    """Flatten rich text into newline separated plain text.

    Used for template fields that cannot carry markup.  Blank or non-string
    input renders as an em dash.
    """
    if not html or not isinstance(html, str):
        return EM_DASH
    text = _PLAIN_BREAK_RE.sub("\n", html)
    text = strip_tags(text)
    text = decode_entities(text).replace(NBSP, " ").strip()
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text or EM_DASH
