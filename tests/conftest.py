from __future__ import annotations

import pytest

from constellation.core.reporting import RunReport


@pytest.fixture(autouse=True)
def _no_records_dir_override(monkeypatch):
    monkeypatch.delenv("CONSTELLATION_RECORDS_DIR", raising=False)


@pytest.fixture
def report():
    return RunReport(logger=None)
