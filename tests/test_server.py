"""Tests for the FastAPI web service."""

from __future__ import annotations

import io
import json
import zipfile

import pytest
from httpx import ASGITransport, AsyncClient

from eventdocx.server import app
from eventdocx.settings import TEMPLATE_ENV
from eventdocx.template import DOCX_MEDIA_TYPE, build_default_template


@pytest.fixture
def client():
    """Create an async test client."""
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.asyncio
class TestHealthEndpoint:

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data

    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
class TestProposalEndpoint:

    async def test_generate(self, client, event_data):
        resp = await client.post("/proposal", json=event_data)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == DOCX_MEDIA_TYPE
        assert "Annual_Workshop_pengajuan.docx" in resp.headers["content-disposition"]
        assert zipfile.is_zipfile(io.BytesIO(resp.content))

    async def test_invalid_event(self, client):
        resp = await client.post("/proposal", json={"activity": "Talks"})
        assert resp.status_code == 422
        data = resp.json()
        assert data["success"] is False
        assert "activity" in data["message"]

    async def test_body_must_be_object(self, client):
        resp = await client.post("/proposal", json=["Talks"])
        assert resp.status_code == 422

    async def test_missing_template(self, client, monkeypatch, tmp_path):
        monkeypatch.setenv(TEMPLATE_ENV, str(tmp_path / "missing.docx"))
        resp = await client.post("/proposal", json={"name": "x"})
        assert resp.status_code == 500
        data = resp.json()
        assert data["success"] is False
        assert "not found" in data["message"]


@pytest.mark.asyncio
class TestUploadEndpoint:

    async def test_generate_with_template(self, client, event_data):
        resp = await client.post(
            "/proposal/upload",
            files={"template": ("template.docx", build_default_template(), DOCX_MEDIA_TYPE)},
            data={"event": json.dumps(event_data)},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == DOCX_MEDIA_TYPE
        assert zipfile.is_zipfile(io.BytesIO(resp.content))

    async def test_invalid_event_json(self, client):
        resp = await client.post(
            "/proposal/upload",
            files={"template": ("template.docx", build_default_template(), DOCX_MEDIA_TYPE)},
            data={"event": "{not json"},
        )
        assert resp.status_code == 422
        assert resp.json()["success"] is False

    async def test_corrupt_template(self, client):
        resp = await client.post(
            "/proposal/upload",
            files={"template": ("template.docx", b"garbage", DOCX_MEDIA_TYPE)},
            data={"event": json.dumps({"name": "x"})},
        )
        assert resp.status_code == 500
        assert resp.json()["success"] is False


@pytest.mark.asyncio
class TestMarkupEndpoint:

    async def test_markup(self, client):
        resp = await client.post("/markup", data={"html": "<p>Hello <b>world</b></p>"})
        assert resp.status_code == 200
        data = resp.json()
        assert "<w:b/>" in data["xml"]
        assert "Hello " in data["xml"]
        assert data["degraded"] is False

    async def test_blank_markup(self, client):
        resp = await client.post("/markup", data={"html": "   "})
        assert resp.status_code == 200
        assert resp.json()["degraded"] is True


@pytest.mark.asyncio
class TestUnreadableTemplate:

    async def test_upload_returns_json_error(self, client, make_unreadable):
        template = make_unreadable(build_default_template())
        resp = await client.post(
            "/proposal/upload",
            files={"template": ("template.docx", template, DOCX_MEDIA_TYPE)},
            data={"event": json.dumps({"name": "x"})},
        )
        assert resp.status_code == 500
        assert resp.headers["content-type"] == "application/json"
        data = resp.json()
        assert data["success"] is False
        assert "not a readable" in data["message"]
