"""Error types raised by the uTools SDK and the retry classifier."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import httpx

RATE_LIMIT_CODE = 88
SNIPPET_LIMIT = 500


def truncate(text: str, limit: int = SNIPPET_LIMIT) -> str:
    """Shorten ``text`` to ``limit`` characters, appending ``...`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class UToolsError(Exception):
    """Base class for every error raised by the SDK."""


class ConfigError(UToolsError):
    pass


class MissingAPIKeyError(ConfigError):
    def __init__(self) -> None:
        super().__init__("utools: api key is required (set api_key or XCATCH_API_KEY)")


class AuthTokenRequiredError(ConfigError):
    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        super().__init__(f"utools: {endpoint} requires auth_token to be configured")


class TransportError(UToolsError):
    """Connection-level failure: the request never produced an HTTP response."""

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        self.timeout = timeout
        super().__init__(message)


class APIError(UToolsError):
    """Failure reported by the upstream, either by HTTP status or business code."""

    def __init__(self, status_code: int, code: int = 0, message: str = "", raw_body: str = "") -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.raw_body = raw_body
        super().__init__(f"utools: HTTP {status_code}, code={code}, message={message}")

    @property
    def is_rate_limited(self) -> bool:
        return self.code == RATE_LIMIT_CODE or self.status_code == 429

    @property
    def is_forbidden(self) -> bool:
        # upstream answers 403 while an account is temporarily locked
        return self.status_code == 403

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_retryable(self) -> bool:
        if self.is_unauthorized:
            return False
        return self.is_rate_limited or self.is_forbidden


class DecodeError(UToolsError):
    """The response body did not have the expected JSON shape."""

    def __init__(self, stage: str, snippet: str) -> None:
        self.stage = stage
        self.snippet = truncate(snippet)
        super().__init__(f"utools: {stage} (payload: {self.snippet})")


class PaginationError(UToolsError):
    """A page fetch failed; ``pages`` holds everything collected before it."""

    def __init__(self, pages: List[Any], page_number: int, cause: BaseException) -> None:
        self.pages = pages
        self.page_number = page_number
        self.cause = cause
        super().__init__(f"utools: page iterator failed on page {page_number}: {cause}")


def is_retryable(exc: Optional[BaseException]) -> bool:
    if exc is None:
        return False
    if isinstance(exc, (asyncio.CancelledError, asyncio.TimeoutError)):
        return False
    if isinstance(exc, APIError):
        return exc.is_retryable
    if isinstance(exc, TransportError):
        return exc.timeout
    if isinstance(exc, httpx.TimeoutException):
        return True
    return False


__all__ = [
    "APIError",
    "AuthTokenRequiredError",
    "ConfigError",
    "DecodeError",
    "MissingAPIKeyError",
    "PaginationError",
    "TransportError",
    "UToolsError",
    "is_retryable",
    "truncate",
]
