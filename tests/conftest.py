"""Shared fixtures."""

from __future__ import annotations

import pytest

from app.context import AppContext, build_context
from configs.settings import AppConfig, StorageConfig
from fakes import FakeRecorder, MemoryStore


@pytest.fixture
def fake_recorder():
    return FakeRecorder()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def app_context(tmp_path) -> AppContext:
    config = AppConfig(
        storage=StorageConfig(sessions_dir=str(tmp_path / "sessions"), max_sessions=5, min_free_mb=0.0)
    )
    return build_context(config, configure_logs=False)
