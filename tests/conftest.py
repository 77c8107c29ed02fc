"""Shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from eventdocx.settings import DEFAULT_REL_ID_ENV, FILENAME_SUFFIX_ENV, TEMPLATE_ENV

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SAMPLE_EVENT = FIXTURE_DIR / "event.json"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's EVENTDOCX_* variables out of the tests."""
    for name in (TEMPLATE_ENV, FILENAME_SUFFIX_ENV, DEFAULT_REL_ID_ENV):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def event_data() -> dict:
    return json.loads(SAMPLE_EVENT.read_text(encoding="utf-8"))


def _rewrite_headers(data: bytes, local_offset: int, central_offset: int, value: int, *, flag: bool) -> bytes:
    buf = bytearray(data)
    for signature, offset in ((b"PK\x03\x04", local_offset), (b"PK\x01\x02", central_offset)):
        start = buf.find(signature)
        while start != -1:
            field = slice(start + offset, start + offset + 2)
            current = int.from_bytes(buf[field], "little")
            buf[field] = (current | value if flag else value).to_bytes(2, "little")
            start = buf.find(signature, start + 4)
    return bytes(buf)


def unsupported_compression(data: bytes) -> bytes:
    """Mark every member of the ZIP *data* with compression method 99."""
    return _rewrite_headers(data, 8, 10, 99, flag=False)


def encrypted_members(data: bytes) -> bytes:
    """Set the encryption flag on every member of the ZIP *data*."""
    return _rewrite_headers(data, 6, 8, 0x1, flag=True)


@pytest.fixture(params=[unsupported_compression, encrypted_members], ids=["compression", "encrypted"])
def make_unreadable(request):
    """Turn a ZIP archive into one whose members zipfile refuses to read."""
    return request.param
