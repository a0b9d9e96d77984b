"""Tests for shared/config_store.py — per-tool config overrides."""

from __future__ import annotations

import json

import shared.config_store as config_mod


# ── load_config ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_returns_none_when_missing(self):
        assert config_mod.load_config("nonexistent") is None

    def test_reads_valid_json(self, _isolate_config_dir):
        (_isolate_config_dir / "case-organizer.json").write_text(json.dumps({"key": "value"}))
        assert config_mod.load_config("case-organizer") == {"key": "value"}

    def test_returns_none_on_corrupt_json(self, _isolate_config_dir):
        (_isolate_config_dir / "bad.json").write_text("NOT VALID JSON")
        assert config_mod.load_config("bad") is None

    def test_returns_none_when_not_an_object(self, _isolate_config_dir):
        (_isolate_config_dir / "list.json").write_text("[1, 2]")
        assert config_mod.load_config("list") is None


# ── save_config / get_config_value ───────────────────────────────────────


class TestSaveConfig:
    def test_creates_file(self, _isolate_config_dir):
        config_mod.save_config("new-tool", {"a": 1, "b": "two"})
        data = json.loads((_isolate_config_dir / "new-tool.json").read_text())
        assert data == {"a": 1, "b": "two"}

    def test_overwrites_existing(self):
        config_mod.save_config("tool", {"v": 1})
        config_mod.save_config("tool", {"v": 2})
        assert config_mod.load_config("tool")["v"] == 2


class TestGetConfigValue:
    def test_returns_default_when_no_config(self):
        assert config_mod.get_config_value("missing", "key", "default") == "default"

    def test_returns_value_when_present(self):
        config_mod.save_config("tool", {"timeout": 30})
        assert config_mod.get_config_value("tool", "timeout", 10) == 30

    def test_returns_default_for_missing_key(self):
        config_mod.save_config("tool", {"timeout": 30})
        assert config_mod.get_config_value("tool", "retries", 3) == 3
