from __future__ import annotations

"""
Shared pytest fixtures for the harness test suite.

This module:
- points the harness at `tests/support/fake_cli.py` through the same
  `CLI_HARNESS_*` variables a real project would set,
- gives child processes a generous poll budget so slow CI runners don't
  flake, and
- exposes the resolved config for tests that need to tweak it.
"""

import sys
from dataclasses import replace
from pathlib import Path

import pytest

from cli_harness.config import HarnessConfig, load_config


ROOT_DIR = Path(__file__).resolve().parents[1]
FAKE_CLI_PATH = ROOT_DIR / "tests" / "support" / "fake_cli.py"
CHILD_POLL_TIMEOUT_SEC = 15.0


@pytest.fixture
def fake_cli_env(monkeypatch: pytest.MonkeyPatch) -> Path:
    """Route harness calls to the Python fake CLI for the duration of one test."""
    monkeypatch.delenv("CLI_HARNESS_CONFIG", raising=False)
    monkeypatch.setenv("CLI_HARNESS_RUNTIME", sys.executable)
    monkeypatch.setenv("CLI_HARNESS_CLI_PATH", str(FAKE_CLI_PATH))
    monkeypatch.setenv("CLI_HARNESS_POLL_TIMEOUT_SEC", str(CHILD_POLL_TIMEOUT_SEC))
    monkeypatch.setenv("PYTHONIOENCODING", "utf-8")
    monkeypatch.setenv("PYTHONUNBUFFERED", "1")
    return FAKE_CLI_PATH


@pytest.fixture
def harness_config(fake_cli_env: Path) -> HarnessConfig:
    return load_config()


@pytest.fixture
def fast_fail_config(harness_config: HarnessConfig) -> HarnessConfig:
    """Same fake CLI, but with a short poll budget for tests that expect a timeout."""
    return replace(harness_config, poll_timeout_sec=3.0, input_settle_sec=0.0)
