from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

import httpx
import pytest
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent

# Optional local overrides for the test run
load_dotenv(TEST_ROOT / ".env", override=False)

# The application engine is built at import time from DATABASE_URL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOGFIRE_ENABLED", "false")

LOCAL_URL_PREFIXES: Tuple[str, ...] = (
    "http://test",
    "http://localhost",
    "http://127.0.0.1",
    "http://mock",
    "https://mock",
    "/",
)


class ExternalHTTPBlocked(RuntimeError):
    """Raised when a test tries to reach a host outside the ASGI test client."""


def _check_url(url) -> None:
    target = str(url)
    if not target.startswith(LOCAL_URL_PREFIXES):
        raise ExternalHTTPBlocked(f"External HTTP blocked during tests: {target}")


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Only the in-process ASGI app may be called over HTTP."""
    sync_request = httpx.Client.request
    async_request = httpx.AsyncClient.request

    def guarded_sync(self, method, url, *args, **kwargs):
        _check_url(url)
        return sync_request(self, method, url, *args, **kwargs)

    async def guarded_async(self, method, url, *args, **kwargs):
        _check_url(url)
        return await async_request(self, method, url, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "request", guarded_sync)
    monkeypatch.setattr(httpx.AsyncClient, "request", guarded_async)
