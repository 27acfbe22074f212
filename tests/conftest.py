"""
Global pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest

FAKE_TSSERVER = Path(__file__).parent / "fixtures" / "fake_tsserver.py"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep the developer's config and debug settings out of every test.

    HOME points at an empty directory so ~/.tssemantic/config.yml is never read.
    """
    monkeypatch.delenv("TSSEMANTIC_CONFIG", raising=False)
    monkeypatch.delenv("TSSEMANTIC_DEBUG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def fake_tsserver_command():
    """Command line that starts the fake tsserver with the current interpreter."""
    return [sys.executable, str(FAKE_TSSERVER)]
