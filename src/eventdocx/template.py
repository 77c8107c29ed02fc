"""Built-in proposal template.

The template is a regular ``.docx`` package whose body carries Jinja2 tags
understood by :mod:`docxtpl`:

* ``{{ field }}`` for plain values (escaped on render);
* ``{{p field }}`` for fields holding pre-rendered ``w:p`` markup;
* ``{%p for ... %}`` / ``{%tr for ... %}`` for repeated paragraphs and rows.

It is assembled in memory from string-built XML parts so the project does
not ship a binary file.  Deployments normally point
``EVENTDOCX_TEMPLATE`` at their own, branded copy that uses the same tags.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

from eventdocx.markup import R_NS, W_NS, escape_text

DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

_XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

# A4 portrait, 2cm margins, in twentieths of a point
_PAGE_WIDTH = 11906
_PAGE_HEIGHT = 16838
_MARGIN = 1134
_TEXT_WIDTH = _PAGE_WIDTH - 2 * _MARGIN  # 9638

_RUN_DOWN_COLUMNS = [
    ("Time", 1600),
    ("Duration (min)", 1300),
    ("Session", 2600),
    ("Description", 4138),
]
_BUDGET_COLUMNS = [
    ("Item", 1900),
    ("Type", 1000),
    ("Qty", 700),
    ("Price", 1700),
    ("Description", 2538),
    ("Total", 1800),
]


# ---------------------------------------------------------------------------
# Body helpers
# ---------------------------------------------------------------------------

def _p(text: str = "", *, bold: bool = False, center: bool = False, size: int = 0) -> str:
    ppr = '<w:pPr><w:jc w:val="center"/></w:pPr>' if center else ""
    rpr = ""
    if bold or size:
        rpr = "<w:rPr>" + ("<w:b/>" if bold else "") + (
            f'<w:sz w:val="{size}"/>' if size else ""
        ) + "</w:rPr>"
    if not text:
        return f"<w:p>{ppr}</w:p>"
    return (
        f"<w:p>{ppr}<w:r>{rpr}"
        f'<w:t xml:space="preserve">{escape_text(text)}</w:t></w:r></w:p>'
    )


def _labelled(label: str, tag: str) -> str:
    return (
        "<w:p>"
        f'<w:r><w:rPr><w:b/></w:rPr><w:t xml:space="preserve">{escape_text(label)}: </w:t></w:r>'
        f'<w:r><w:t xml:space="preserve">{tag}</w:t></w:r>'
        "</w:p>"
    )


def _cell(content: str, width: int, *, bold: bool = False) -> str:
    return (
        f'<w:tc><w:tcPr><w:tcW w:w="{width}" w:type="dxa"/></w:tcPr>'
        f"{_p(content, bold=bold)}</w:tc>"
    )


def _row(cells: list[str]) -> str:
    return "<w:tr>" + "".join(cells) + "</w:tr>"


def _tag_row(tag: str, widths: list[int]) -> str:
    """A row holding only a ``{%tr %}`` tag; docxtpl replaces the whole row."""
    return _row([_cell(tag, widths[0])] + [_cell("", w) for w in widths[1:]])


def _table(columns: list[tuple[str, int]], body_rows: list[str]) -> str:
    widths = [w for _, w in columns]
    border = 'w:val="single" w:sz="4" w:space="0" w:color="000000"'
    parts = [
        "<w:tbl>",
        "<w:tblPr>",
        '<w:tblStyle w:val="TableGrid"/>',
        f'<w:tblW w:w="{sum(widths)}" w:type="dxa"/>',
        "<w:tblBorders>",
        f"<w:top {border}/><w:left {border}/><w:bottom {border}/>",
        f"<w:right {border}/><w:insideH {border}/><w:insideV {border}/>",
        "</w:tblBorders>",
        "</w:tblPr>",
        "<w:tblGrid>",
        "".join(f'<w:gridCol w:w="{w}"/>' for w in widths),
        "</w:tblGrid>",
        _row([_cell(name, w, bold=True) for name, w in columns]),
        *body_rows,
        "</w:tbl>",
    ]
    return "".join(parts)


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------

def _build_content_types() -> str:
    return (
        _XML_DECL
        + '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels"'
        ' ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Override PartName="/word/document.xml" ContentType='
        '"application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
        '<Override PartName="/word/styles.xml" ContentType='
        '"application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml"/>'
        '<Override PartName="/word/settings.xml" ContentType='
        '"application/vnd.openxmlformats-officedocument.wordprocessingml.settings+xml"/>'
        "</Types>"
    )


def _build_package_rels() -> str:
    return (
        _XML_DECL
        + '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" Type='
        '"http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"'
        ' Target="word/document.xml"/>'
        "</Relationships>"
    )


def _build_document_rels() -> str:
    return (
        _XML_DECL
        + '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" Type='
        '"http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles"'
        ' Target="styles.xml"/>'
        '<Relationship Id="rId2" Type='
        '"http://schemas.openxmlformats.org/officeDocument/2006/relationships/settings"'
        ' Target="settings.xml"/>'
        "</Relationships>"
    )


def _build_styles() -> str:
    return (
        _XML_DECL
        + f'<w:styles xmlns:w="{W_NS}">'
        "<w:docDefaults>"
        '<w:rPrDefault><w:rPr><w:rFonts w:ascii="Calibri" w:hAnsi="Calibri" w:cs="Calibri"/>'
        '<w:sz w:val="22"/><w:szCs w:val="22"/></w:rPr></w:rPrDefault>'
        '<w:pPrDefault><w:pPr><w:spacing w:after="120" w:line="264" w:lineRule="auto"/>'
        "</w:pPr></w:pPrDefault>"
        "</w:docDefaults>"
        '<w:style w:type="paragraph" w:default="1" w:styleId="Normal">'
        '<w:name w:val="Normal"/><w:qFormat/></w:style>'
        '<w:style w:type="table" w:default="1" w:styleId="TableNormal">'
        '<w:name w:val="Normal Table"/><w:uiPriority w:val="99"/><w:semiHidden/>'
        '<w:tblPr><w:tblInd w:w="0" w:type="dxa"/>'
        '<w:tblCellMar><w:top w:w="0" w:type="dxa"/><w:left w:w="108" w:type="dxa"/>'
        '<w:bottom w:w="0" w:type="dxa"/><w:right w:w="108" w:type="dxa"/></w:tblCellMar>'
        "</w:tblPr></w:style>"
        '<w:style w:type="table" w:styleId="TableGrid">'
        '<w:name w:val="Table Grid"/><w:basedOn w:val="TableNormal"/>'
        '<w:pPr><w:spacing w:after="0" w:line="240" w:lineRule="auto"/></w:pPr>'
        "</w:style>"
        "</w:styles>"
    )


def _build_settings() -> str:
    return (
        _XML_DECL
        + f'<w:settings xmlns:w="{W_NS}">'
        '<w:defaultTabStop w:val="720"/>'
        '<w:compat><w:compatSetting w:name="compatibilityMode"'
        ' w:uri="http://schemas.microsoft.com/office/word" w:val="15"/></w:compat>'
        "</w:settings>"
    )


def _build_document() -> str:
    parts: list[str] = []
    a = parts.append

    a(_XML_DECL)
    a(f'<w:document xmlns:w="{W_NS}" xmlns:r="{R_NS}">')
    a("<w:body>")

    a(_p("EVENT PROPOSAL", bold=True, center=True, size=32))
    a(_p("{{ event_name }}", bold=True, center=True, size=28))
    a(_p())
    a(_labelled("Activity type", "{{ activity_type }}"))
    a(_labelled("Date", "{{ activity_date }}"))
    a(_labelled("Time", "{{ time }}"))
    a(_labelled("Location", "{{ activity_location }}"))
    a(_labelled("Target audience", "{{ target_audience }}"))

    a(_p("Description", bold=True))
    a(_p("{{p event_description_formatted }}"))

    a(_p("Activities", bold=True))
    a(_p("{%p for line in activity %}"))
    a(_p("{{ line }}"))
    a(_p("{%p endfor %}"))

    a(_p("Purpose", bold=True))
    a(_p("{%p for line in purpose %}"))
    a(_p("{{ line }}"))
    a(_p("{%p endfor %}"))

    a(_p("Committee", bold=True))
    a(_p("{%p for line in committee_list %}"))
    a(_p("{{ line }}"))
    a(_p("{%p endfor %}"))

    a(_p("Run-down", bold=True))
    rd_widths = [w for _, w in _RUN_DOWN_COLUMNS]
    a(_table(_RUN_DOWN_COLUMNS, [
        _tag_row("{%tr for r in run_down %}", rd_widths),
        _row([
            _cell("{{ r.time }}", rd_widths[0]),
            _cell("{{ r.duration }}", rd_widths[1]),
            _cell("{{ r.name }}", rd_widths[2]),
            _cell("{{p r.description_formatted }}", rd_widths[3]),
        ]),
        _tag_row("{%tr endfor %}", rd_widths),
    ]))
    a(_p())

    a(_p("Budget", bold=True))
    a(_p("{%p for cat in budget_by_category %}"))
    a(_labelled("Category", "{{ cat.name }}"))
    b_widths = [w for _, w in _BUDGET_COLUMNS]
    a(_table(_BUDGET_COLUMNS, [
        # subscript: cat.items would resolve to dict.items
        _tag_row("{%tr for x in cat['items'] %}", b_widths),
        _row([
            _cell("{{ x.item }}", b_widths[0]),
            _cell("{{ x.type }}", b_widths[1]),
            _cell("{{ x.qty }}", b_widths[2]),
            _cell("{{ x.price_display }}", b_widths[3]),
            _cell("{{p x.description_markup }}", b_widths[4]),
            _cell("{{ x.line_total_display }}", b_widths[5]),
        ]),
        _tag_row("{%tr endfor %}", b_widths),
        _row(
            [_cell("Total", b_widths[0], bold=True)]
            + [_cell("", w) for w in b_widths[1:5]]
            + [_cell("{{ cat.total_display }}", b_widths[5], bold=True)]
        ),
    ]))
    a(_p())
    a(_p("{%p endfor %}"))

    a(
        "<w:sectPr>"
        f'<w:pgSz w:w="{_PAGE_WIDTH}" w:h="{_PAGE_HEIGHT}"/>'
        f'<w:pgMar w:top="{_MARGIN}" w:right="{_MARGIN}" w:bottom="{_MARGIN}"'
        f' w:left="{_MARGIN}" w:header="708" w:footer="708" w:gutter="0"/>'
        "</w:sectPr>"
    )
    a("</w:body>")
    a("</w:document>")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_default_template() -> bytes:
    """Return the built-in proposal template as ``.docx`` bytes."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", _build_content_types())
        zf.writestr("_rels/.rels", _build_package_rels())
        zf.writestr("word/document.xml", _build_document())
        zf.writestr("word/_rels/document.xml.rels", _build_document_rels())
        zf.writestr("word/styles.xml", _build_styles())
        zf.writestr("word/settings.xml", _build_settings())
    return buf.getvalue()


def write_default_template(path: str | Path) -> Path:
    """Write the built-in template to *path* so it can be customised."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_default_template())
    return path
