"""
Shared pytest fixtures.

Every test gets its own DATA_DIR (and so its own products database) via the
autouse `tmp_data_dir` fixture, and starts with an empty recognizer cache so
no test ever builds real OCR or API clients by accident.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def tmp_data_dir(tmp_path, monkeypatch):
    """Point DATA_DIR and the already-imported database module at a fresh tmp dir."""
    data = tmp_path / "data"
    data.mkdir()
    monkeypatch.setenv("DATA_DIR", str(data))

    import database
    monkeypatch.setattr(database, "DB_PATH", str(data / "bot_data.db"))
    monkeypatch.setattr(database, "_DATA_DIR", data)
    # a lock created on an earlier test's event loop must not leak into this one
    monkeypatch.setattr(database, "_lock", asyncio.Lock())

    yield data


@pytest.fixture(autouse=True)
def empty_recognizer_cache():
    import recognizers.manager as manager
    manager.reset()
    yield
    manager.reset()
