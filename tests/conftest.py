from __future__ import annotations

from collections.abc import Iterator

import pytest

from config.settings import get_settings


@pytest.fixture(autouse=True)
def utc_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("AIEXPORT_TIMEZONE", "UTC")
    monkeypatch.setenv("AIEXPORT_TIMESTAMP_FORMAT", "%Y-%m-%d %H:%M:%S")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
