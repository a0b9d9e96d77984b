"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

_ROOT = Path(__file__).resolve().parent.parent
for _p in (str(_ROOT), str(_ROOT / "case-organizer")):
    if _p not in sys.path:
        sys.path.insert(0, _p)

import shared.config_store as config_mod  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config_dir(tmp_path: Path):
    """Keep per-tool config overrides out of the real data/config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with patch.object(config_mod, "CONFIG_DIR", config_dir):
        yield config_dir


@pytest.fixture()
def tmp_data_dir(tmp_path: Path):
    """Provide a temporary data directory for case storage."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture()
def sample_case_dict():
    """A stored case with one entry in every sub-collection."""
    return {
        "id": "lq2x7k0a1b2c3d4",
        "title": "Smith v. Jones",
        "description": "Breach of contract",
        "documents": [
            {"id": "d1", "name": "contract.pdf", "content": "data:application/pdf;base64,JVBERi0="},
        ],
        "evidence": [
            {"id": "e1", "name": "insurance-photo.jpg", "tags": ["photo", "damage"]},
        ],
        "timeline": [
            {"id": "t1", "date": "2024-01-05", "title": "Filed", "description": ""},
        ],
        "foia": [
            {"id": "f1", "subject": "Police report", "description": "City PD incident 42"},
        ],
        "witnesses": [
            {"id": "w1", "name": "Ana Ruiz", "description": "Neighbor"},
        ],
        "tasks": [
            {"id": "k1", "title": "Serve subpoena", "status": "open"},
        ],
    }
