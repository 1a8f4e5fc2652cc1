from __future__ import annotations

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from utools_sdk.client import UToolsClient
from utools_sdk.config import ClientConfig
from utools_sdk.observability import ClientObserver

Handler = Callable[[httpx.Request], httpx.Response]


def envelope(data: Any, code: int = 1, msg: str = "SUCCESS", *, as_string: bool = True) -> dict:
    """Build an upstream success envelope; ``data`` is JSON-encoded as a string by default."""
    return {"code": code, "data": json.dumps(data) if as_string else data, "msg": msg}


def make_client(
    handler: Handler,
    observer: Optional[ClientObserver] = None,
    **overrides: Any,
) -> UToolsClient:
    defaults = dict(
        base_url="https://api.example.com",
        api_key="test-key",
        max_retries=2,
        rate_limit=1000.0,
        backoff_seconds=0.0,
        timeout=5.0,
    )
    defaults.update(overrides)
    cfg = ClientConfig(**defaults)
    return UToolsClient(cfg, transport=httpx.MockTransport(handler), observer=observer)


class RecordingObserver(ClientObserver):
    def __init__(self) -> None:
        self.completed: list[tuple[str, str, int]] = []
        self.retries: list[tuple[int, float, str]] = []
        self.resets: list[tuple[str, int]] = []

    def request_completed(self, method: str, path: str, status_code: int, elapsed: float) -> None:
        self.completed.append((method, path, status_code))

    def retry_scheduled(self, method, path, attempt, max_retries, delay, error) -> None:
        self.retries.append((attempt, delay, type(error).__name__))

    def rate_limit_reset(self, method: str, path: str, reset: int) -> None:
        self.resets.append((path, reset))


@pytest.fixture()
def observer() -> RecordingObserver:
    return RecordingObserver()
