from __future__ import annotations

import pytest

from tests.support.cloud import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CLOUDSETTLE_API_URL", "CLOUDSETTLE_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)
