"""Tests for environment driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from eventdocx.settings import (
    DEFAULT_FILENAME_SUFFIX,
    DEFAULT_REL_ID_ENV,
    FILENAME_SUFFIX_ENV,
    TEMPLATE_ENV,
    SettingsError,
    load_settings,
)


class TestLoadSettings:

    def test_defaults(self):
        s = load_settings({})
        assert s.template_path is None
        assert s.filename_suffix == DEFAULT_FILENAME_SUFFIX == "_pengajuan"
        assert s.default_rel_id == 100

    def test_values(self):
        s = load_settings({
            TEMPLATE_ENV: "/srv/templates/proposal.docx",
            FILENAME_SUFFIX_ENV: "_proposal",
            DEFAULT_REL_ID_ENV: "7",
        })
        assert s.template_path == Path("/srv/templates/proposal.docx")
        assert s.filename_suffix == "_proposal"
        assert s.default_rel_id == 7

    def test_blank_template_means_builtin(self):
        assert load_settings({TEMPLATE_ENV: "  "}).template_path is None

    def test_empty_suffix_allowed(self):
        assert load_settings({FILENAME_SUFFIX_ENV: ""}).filename_suffix == ""

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv(DEFAULT_REL_ID_ENV, "42")
        assert load_settings().default_rel_id == 42

    @pytest.mark.parametrize("env", [
        {FILENAME_SUFFIX_ENV: "../evil"},
        {DEFAULT_REL_ID_ENV: "abc"},
        {DEFAULT_REL_ID_ENV: "0"},
        {DEFAULT_REL_ID_ENV: "-3"},
    ])
    def test_invalid_values(self, env):
        with pytest.raises(SettingsError):
            load_settings(env)
