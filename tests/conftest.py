"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from tes_client.client import TesClient

from .fakes import make_response


@pytest.fixture
def session() -> Mock:
    """Provide a mocked HTTP session."""
    mock_session = Mock(spec=requests.Session)
    mock_session.headers = {}
    mock_session.request.return_value = make_response(200, {})
    return mock_session


@pytest.fixture
def client(session: Mock) -> TesClient:
    """Provide a client wired to the mocked session."""
    return TesClient("http://tes.example.org:8000", session=session)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without TES_* variables or a stray `.env` file."""
    for name in (
        "TES_SERVER",
        "TES_REQUEST_TIMEOUT",
        "TES_CONCURRENCY",
        "TES_POLL_INTERVAL",
        "TES_JSON_INDENT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
