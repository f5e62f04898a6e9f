"""Pytest configuration for test isolation.

The CLI loads ``.env`` from the current working directory and reads
``EA_AUTO_APPLY_MIN_CONFIDENCE`` / ``EXPENSE_ADVISOR_LOG_LEVEL`` from the
environment. A developer's own ``.env`` or shell settings would otherwise leak
into assertions about thresholds and output, so every test runs from its own
temporary directory with those variables cleared.
"""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("EA_AUTO_APPLY_MIN_CONFIDENCE", raising=False)
    monkeypatch.delenv("EXPENSE_ADVISOR_LOG_LEVEL", raising=False)
