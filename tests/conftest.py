"""Pytest configuration for dwicomatic tests."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def _isolate_logging(tmp_path, monkeypatch):
    """Keep JSON logs out of the source tree and reset structlog afterwards."""
    monkeypatch.setenv("DWICOMATIC_LOG_DIR", str(tmp_path / "_logs"))
    yield
    structlog.reset_defaults()
