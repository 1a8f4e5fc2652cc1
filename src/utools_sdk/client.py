"""Async Python client for the uTools social-data proxy."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from .config import ClientConfig
from .endpoints import Endpoint, get_endpoint, should_try_next_path
from .envelope import error_from_response, unwrap
from .observability import ClientObserver, LoggingObserver
from .pagination import PageIterator
from .ratelimit import AsyncRateLimiter
from .retry import RetryDriver
from .transport import HttpTransport, RawResponse

logger = logging.getLogger("utools_sdk.client")


class UToolsClient:
    """Shared, concurrency-safe entry point to every upstream operation.

    All calls go through one pipeline: rate limiter, one HTTP exchange,
    envelope unwrapping, and a retry loop for transient failures. A single
    instance may be used by many tasks at once.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        observer: Optional[ClientObserver] = None,
        limiter: Optional[AsyncRateLimiter] = None,
    ) -> None:
        self._config = config.validated()
        self._observer = observer or LoggingObserver()
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=transport,
        )
        self._transport = HttpTransport(
            self._client,
            api_key=self._config.api_key,
            observer=self._observer,
            user_agent=self._config.user_agent,
        )
        self._limiter = limiter or AsyncRateLimiter(self._config.rate_limit, burst=1)
        self._retry = RetryDriver(
            self._limiter,
            self._observer,
            max_retries=self._config.max_retries,
            backoff_seconds=self._config.backoff_seconds,
            max_backoff_seconds=self._config.max_backoff_seconds,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "UToolsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _exchange(self, method: str, path: str, params: Optional[Mapping[str, str]]) -> RawResponse:
        response = await self._transport.send(method, path, params)
        if not response.ok:
            raise error_from_response(response.status_code, response.body)
        return response

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        target: Optional[Any] = None,
    ) -> Any:
        """Perform ``method`` on ``path`` and decode the enveloped payload.

        With ``target=None`` the unwrapped JSON value is returned, otherwise
        it is validated into ``target``.
        """

        async def attempt() -> Any:
            response = await self._exchange(method, path, params)
            return unwrap(response.body, target, status_code=response.status_code)

        return await self._retry.run(attempt, method=method, path=path)

    async def request_raw(self, method: str, path: str, params: Optional[Mapping[str, str]] = None) -> bytes:
        """Like ``request`` but return the response body untouched."""

        async def attempt() -> bytes:
            response = await self._exchange(method, path, params)
            return response.body

        return await self._retry.run(attempt, method=method, path=path)

    async def get(self, path: str, params: Optional[Mapping[str, str]] = None, target: Optional[Any] = None) -> Any:
        return await self.request("GET", path, params, target)

    async def post(self, path: str, params: Optional[Mapping[str, str]] = None, target: Optional[Any] = None) -> Any:
        return await self.request("POST", path, params, target)

    async def get_raw(self, path: str, params: Optional[Mapping[str, str]] = None) -> bytes:
        return await self.request_raw("GET", path, params)

    async def post_raw(self, path: str, params: Optional[Mapping[str, str]] = None) -> bytes:
        return await self.request_raw("POST", path, params)

    def paginate(
        self,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        max_pages: int = 0,
        *,
        cursor: str = "",
    ) -> PageIterator:
        return PageIterator(self, path, params, max_pages, cursor=cursor)

    def _endpoint_params(self, endpoint: Endpoint, arguments: Mapping[str, Any]) -> dict[str, str]:
        return endpoint.build_params(arguments, auth_token=self._config.auth_token, ct0=self._config.ct0)

    async def call(self, name: str, *, target: Optional[Any] = None, **arguments: Any) -> Any:
        """Invoke the named operation from the endpoint table.

        Example::

            profile = await client.call("user_by_screen_name_v2", screen_name="jack")
        """
        endpoint = get_endpoint(name)
        params = self._endpoint_params(endpoint, arguments)
        paths = endpoint.paths
        # upstream renames some endpoints between deployments
        for path, fallback in zip(paths, paths[1:]):
            try:
                return await self.request(endpoint.method, path, params, target)
            except Exception as exc:
                if not should_try_next_path(exc):
                    raise
                logger.info("%s failed on %s (%s), trying %s", name, path, exc, fallback)
        return await self.request(endpoint.method, paths[-1], params, target)

    def paginate_endpoint(self, name: str, max_pages: int = 0, **arguments: Any) -> PageIterator:
        endpoint = get_endpoint(name)
        if not endpoint.paginated:
            raise ValueError(f"utools endpoint {name!r} does not support cursors")
        cursor = arguments.pop("cursor", "") or ""
        params = self._endpoint_params(endpoint, arguments)
        return self.paginate(endpoint.path, params, max_pages, cursor=cursor)

    async def token_sync(self) -> Any:
        """Ask the upstream to refresh its robot token.

        Never called automatically; see ``ClientObserver.rate_limit_reset``.
        """
        return await self.call("token_sync")

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["UToolsClient"]
