"""Single request/response cycle against the uTools proxy."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import httpx

from .errors import TransportError
from .observability import RATE_LIMIT_RESET_THRESHOLD, ClientObserver

API_KEY_PARAM = "apiKey"
RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes
    headers: httpx.Headers

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class HttpTransport:
    def __init__(self, client: httpx.AsyncClient, api_key: str, observer: ClientObserver, user_agent: str) -> None:
        self._client = client
        self._api_key = api_key
        self._observer = observer
        self._user_agent = user_agent

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self._user_agent}

    def _merge_params(self, params: Optional[Mapping[str, str]]) -> Dict[str, str]:
        merged = dict(params or {})
        merged[API_KEY_PARAM] = self._api_key
        return merged

    async def send(self, method: str, path: str, params: Optional[Mapping[str, str]] = None) -> RawResponse:
        method = method.upper()
        merged = self._merge_params(params)
        headers = self._headers()
        if method == "GET":
            request = self._client.build_request(method, path, params=merged, headers=headers)
        elif method == "POST":
            headers["Content-Type"] = FORM_CONTENT_TYPE
            request = self._client.build_request(method, path, data=merged, headers=headers)
        else:
            raise ValueError(f"utools: unsupported method: {method}")

        started = time.perf_counter()
        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as exc:
            raise TransportError(f"utools: http request timed out: {exc}", timeout=True) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"utools: http request: {exc}") from exc
        elapsed = time.perf_counter() - started

        self._observer.request_completed(method, path, response.status_code, elapsed)
        self._check_rate_limit_reset(method, path, response.headers)
        return RawResponse(status_code=response.status_code, body=response.content, headers=response.headers)

    def _check_rate_limit_reset(self, method: str, path: str, headers: httpx.Headers) -> None:
        raw = headers.get(RATE_LIMIT_RESET_HEADER)
        if not raw:
            return
        try:
            reset = int(raw.strip())
        except ValueError:
            return
        if reset < RATE_LIMIT_RESET_THRESHOLD:
            self._observer.rate_limit_reset(method, path, reset)


__all__ = ["HttpTransport", "RawResponse"]
