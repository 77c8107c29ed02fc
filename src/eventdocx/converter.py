"""High-level event-to-proposal generation.

Ties together the render data builder, the template collaborator
(:mod:`docxtpl`) and the package post-processor into a single public API::

    generator = ProposalGenerator()                  # built-in template
    doc = generator.generate(event_json)
    Path(doc.filename).write_bytes(doc.content)
"""

from __future__ import annotations

import io
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from docxtpl import DocxTemplate

from eventdocx.hyperlinks import DEFAULT_FIRST_REL_ID, HyperlinkRegistry, Relationship
from eventdocx.package import DOCUMENT_PART, RELATIONSHIPS_PART, patch_package, read_part
from eventdocx.proposal import Event, EventDataError, ProposalDataBuilder
from eventdocx.settings import DEFAULT_FILENAME_SUFFIX, Settings
from eventdocx.template import DOCX_MEDIA_TYPE, build_default_template

logger = logging.getLogger(__name__)

MAX_FILENAME_STEM = 80

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_-]")

TemplateSource = Union[bytes, str, Path, None]


class TemplateError(RuntimeError):
    """The template could not be read or rendered."""


@dataclass
class GeneratedDocument:
    content: bytes
    filename: str
    relationships: list[Relationship] = field(default_factory=list)
    media_type: str = DOCX_MEDIA_TYPE


def proposal_filename(event_name: Optional[str], suffix: str = DEFAULT_FILENAME_SUFFIX) -> str:
    """Download name: the event name reduced to ``[A-Za-z0-9_-]``, max 80 chars."""
    stem = _UNSAFE_FILENAME_RE.sub("_", event_name or "proposal")[:MAX_FILENAME_STEM]
    return f"{stem}{suffix}.docx"


def load_event(path: Union[str, Path], *, encoding: str = "utf-8") -> Event:
    """Read an event from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding=encoding))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EventDataError(f"{path} is not valid JSON: {exc}") from exc
    return Event.from_dict(data)


class ProposalGenerator:
    """Render event proposals into ``.docx`` documents.

    Usage::

        generator = ProposalGenerator("template_pengajuan.docx")
        generator.generate_file("event.json", "out/proposal.docx")

        # or from already loaded data
        doc = generator.generate({"name": "Workshop", "budget": [...]})
    """

    def __init__(
        self,
        template: TemplateSource = None,
        *,
        filename_suffix: str = DEFAULT_FILENAME_SUFFIX,
        default_rel_id: int = DEFAULT_FIRST_REL_ID,
        fixed_table_layout: bool = True,
    ) -> None:
        self.template = template
        self.filename_suffix = filename_suffix
        self.default_rel_id = default_rel_id
        self.fixed_table_layout = fixed_table_layout
        self.data_builder = ProposalDataBuilder()

    @classmethod
    def from_settings(cls, settings: Settings) -> ProposalGenerator:
        return cls(
            settings.template_path,
            filename_suffix=settings.filename_suffix,
            default_rel_id=settings.default_rel_id,
        )

    # -- public API ---------------------------------------------------------

    def load_template(self) -> bytes:
        """Return the template package bytes."""
        if self.template is None:
            return build_default_template()
        if isinstance(self.template, bytes):
            return self.template
        path = Path(self.template)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise TemplateError(f"Template file not found: {path}") from None
        except OSError as exc:
            raise TemplateError(f"Cannot read template {path}: {exc}") from exc

    def generate(self, event: Union[Event, Mapping[str, Any]]) -> GeneratedDocument:
        """Render *event* into a proposal document.

        Raises:
            EventDataError: *event* is not a usable event payload.
            TemplateError: the template is missing or cannot be rendered.
        """
        if not isinstance(event, Event):
            event = Event.from_dict(event)

        template = self.load_template()
        if read_part(template, DOCUMENT_PART) is None:
            raise TemplateError("Template is not a readable .docx package")
        registry = HyperlinkRegistry.from_relationships_xml(
            read_part(template, RELATIONSHIPS_PART), self.default_rel_id,
        )
        context = self.data_builder.build(event, registry)
        logger.debug("Render data for %r: %r", event.name, context)

        rendered = self.render_template(template, context)
        content = patch_package(
            rendered,
            registry.relationships,
            fixed_table_layout=self.fixed_table_layout,
        )
        logger.info(
            "Generated proposal for %r (%d bytes, %d hyperlinks)",
            event.name, len(content), len(registry.relationships),
        )
        return GeneratedDocument(
            content=content,
            filename=proposal_filename(event.name, self.filename_suffix),
            relationships=list(registry.relationships),
        )

    def generate_file(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        *,
        encoding: str = "utf-8",
    ) -> GeneratedDocument:
        """Read an event JSON file and write the proposal to *output_path*."""
        output_path = Path(output_path)
        doc = self.generate(load_event(input_path, encoding=encoding))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(doc.content)
        return doc

    # -- template collaborator ----------------------------------------------

    def render_template(self, template: bytes, context: Mapping[str, Any]) -> bytes:
        """Substitute *context* into *template* with docxtpl.

        Markup fields in *context* are :class:`markupsafe.Markup` and pass
        through autoescaping untouched.
        """
        try:
            tpl = DocxTemplate(io.BytesIO(template))
            tpl.render(dict(context), autoescape=True)
            out = io.BytesIO()
            tpl.save(out)
        except Exception as exc:
            raise TemplateError(f"Failed to render proposal template: {exc}") from exc
        return out.getvalue()
