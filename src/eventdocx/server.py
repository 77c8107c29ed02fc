"""FastAPI web service for proposal generation.

Endpoints::

    GET  /                  Health check alias.
    GET  /health            Health check.
    POST /proposal          Send event JSON, receive the .docx proposal.
    POST /proposal/upload   Upload a template plus event JSON (form field).
    POST /markup            Send rich-text HTML, receive the paragraph markup.

Run::

    uvicorn eventdocx.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

from fastapi import Body, FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from eventdocx import __version__
from eventdocx.converter import GeneratedDocument, ProposalGenerator, TemplateError
from eventdocx.markup import html_to_markup
from eventdocx.proposal import EventDataError
from eventdocx.settings import SettingsError, load_settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="eventdocx",
    description="Event proposal (.docx) generation service",
    version=__version__,
)


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


def _document_response(doc: GeneratedDocument) -> Response:
    return Response(
        content=doc.content,
        media_type=doc.media_type,
        headers={"Content-Disposition": _content_disposition(doc.filename)},
    )


def _generate(event: Any, template: Optional[bytes] = None) -> Response:
    try:
        generator = ProposalGenerator.from_settings(load_settings())
    except SettingsError as exc:
        logger.error("Invalid settings: %s", exc)
        return _error(500, str(exc))
    if template is not None:
        generator.template = template

    try:
        doc = generator.generate(event)
    except EventDataError as exc:
        return _error(422, str(exc))
    except TemplateError as exc:
        logger.error("Proposal generation failed: %s", exc)
        return _error(500, str(exc) or "Failed to generate proposal")
    return _document_response(doc)


@app.get("/")
@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.post("/proposal")
def generate_proposal(event: dict[str, Any] = Body(...)) -> Response:
    """Render the proposal for an event sent as JSON.

    The body is the event as returned by the events API (camelCase keys,
    ``activityType`` and ``committee`` already populated).
    """
    return _generate(event)


@app.post("/proposal/upload")
async def generate_proposal_with_template(
    template: UploadFile = File(...),
    event: str = Form(...),
) -> Response:
    """Render the proposal with an uploaded ``.docx`` template.

    - **template**: proposal template using the eventdocx tags
    - **event**: event JSON as a string
    """
    try:
        payload = json.loads(event)
    except json.JSONDecodeError as exc:
        return _error(422, f"event is not valid JSON: {exc}")
    raw = await template.read()
    return _generate(payload, raw)


@app.post("/markup")
async def convert_markup(html: str = Form("")) -> dict[str, Any]:
    """Convert rich-text HTML to WordprocessingML paragraph markup."""
    result = html_to_markup(html)
    return {"xml": result.xml, "degraded": result.degraded}
