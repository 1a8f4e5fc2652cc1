from __future__ import annotations

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import envelope, make_client
from utools_sdk.errors import APIError, DecodeError, MissingAPIKeyError, TransportError
from utools_sdk.client import UToolsClient
from utools_sdk.config import ClientConfig
from utools_sdk.models import UserResult


@pytest.mark.asyncio
async def test_get_raw_returns_http_body_and_get_unwraps() -> None:
    body = {"code": 1, "data": "{\"hello\":\"world\"}", "msg": "SUCCESS"}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["apiKey"] == "test-key"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"].startswith("utools-sdk-python")
        return httpx.Response(200, json=body)

    client = make_client(handler)
    raw = await client.get_raw("/raw")
    assert json.loads(raw) == body

    parsed = await client.get("/raw", target=dict)
    assert parsed == {"hello": "world"}
    await client.close()


@pytest.mark.asyncio
async def test_get_does_not_mutate_caller_params() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=envelope({"ok": True}))

    params = {"userId": "42"}
    client = make_client(handler)
    await client.get("/user", params)
    assert params == {"userId": "42"}
    assert seen == [{"userId": "42", "apiKey": "test-key"}]


@pytest.mark.asyncio
async def test_post_sends_form_encoded_body() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["content_type"] = request.headers["Content-Type"]
        captured["form"] = parse_qs(request.content.decode())
        captured["query"] = dict(request.url.params)
        return httpx.Response(200, json=envelope({"ok": True}, as_string=False))

    client = make_client(handler)
    result = await client.post("/submit", {"tweetId": "9"})

    assert result == {"ok": True}
    assert captured["method"] == "POST"
    assert captured["content_type"].startswith("application/x-www-form-urlencoded")
    assert captured["form"] == {"tweetId": ["9"], "apiKey": ["test-key"]}
    assert captured["query"] == {}


@pytest.mark.asyncio
async def test_typed_decode_into_model() -> None:
    user = {"id_str": "12", "screen_name": "jack", "followers_count": 7, "extra": "ignored"}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=envelope(user))

    client = make_client(handler)
    result = await client.get("/user", target=UserResult)
    assert isinstance(result, UserResult)
    assert result.id == "12"
    assert result.screen_name == "jack"
    assert result.followers_count == 7


@pytest.mark.asyncio
async def test_retries_on_rate_limit_then_succeeds(observer) -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        if hits["count"] == 1:
            return httpx.Response(429, json={"code": 88, "msg": "rate limit"})
        return httpx.Response(200, json=envelope({"ok": True}, as_string=False))

    client = make_client(handler, observer=observer)
    result = await client.get("/retry", target=dict)

    assert result == {"ok": True}
    assert hits["count"] == 2
    assert observer.retries == [(1, 0.0, "APIError")]


@pytest.mark.asyncio
async def test_business_rate_limit_code_on_http_200_is_retried() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        if hits["count"] < 3:
            return httpx.Response(200, json={"code": 88, "msg": "Rate limit exceeded"})
        return httpx.Response(200, json=envelope([1, 2, 3]))

    client = make_client(handler, max_retries=2)
    assert await client.get("/retry") == [1, 2, 3]
    assert hits["count"] == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_last_error() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        return httpx.Response(403, text=f"locked {hits['count']}")

    client = make_client(handler, max_retries=2)
    with pytest.raises(APIError) as excinfo:
        await client.get("/locked")

    assert hits["count"] == 3
    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "locked 3"


@pytest.mark.asyncio
async def test_unauthorized_is_not_retried() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        return httpx.Response(401, json={"code": 1})

    client = make_client(handler, max_retries=3)
    with pytest.raises(APIError) as excinfo:
        await client.get("/secret")

    assert hits["count"] == 1
    assert excinfo.value.is_unauthorized


@pytest.mark.asyncio
async def test_decode_error_is_not_retried() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        return httpx.Response(200, json={"code": 1, "data": "{bad}", "msg": "SUCCESS"})

    client = make_client(handler, max_retries=3)
    with pytest.raises(DecodeError) as excinfo:
        await client.get("/bad", target=dict)

    assert hits["count"] == 1
    assert "{bad}" in excinfo.value.snippet


@pytest.mark.asyncio
async def test_raw_requests_share_retry_policy() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        if hits["count"] == 1:
            return httpx.Response(429, text="slow down")
        return httpx.Response(200, content=b"not json at all")

    client = make_client(handler)
    assert await client.get_raw("/raw") == b"not json at all"
    assert hits["count"] == 2


@pytest.mark.asyncio
async def test_timeouts_are_retried_but_connect_errors_are_not() -> None:
    hits = {"timeout": 0, "connect": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/slow":
            hits["timeout"] += 1
            if hits["timeout"] == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=envelope({"ok": True}))
        hits["connect"] += 1
        raise httpx.ConnectError("refused", request=request)

    client = make_client(handler, max_retries=2)
    assert await client.get("/slow") == {"ok": True}
    assert hits["timeout"] == 2

    with pytest.raises(TransportError) as excinfo:
        await client.get("/down")
    assert hits["connect"] == 1
    assert not excinfo.value.timeout
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_cancellation_aborts_backoff_sleep() -> None:
    hits = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        hits["count"] += 1
        return httpx.Response(429, json={"code": 88, "msg": "rate limit"})

    client = make_client(handler, max_retries=5, backoff_seconds=10.0)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(client.get("/slow"), timeout=0.2)
    assert hits["count"] == 1


@pytest.mark.asyncio
async def test_rate_limit_reset_header_is_reported_without_changing_outcome(observer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        reset = "3" if request.url.path == "/low" else "60"
        return httpx.Response(200, json=envelope({"ok": True}), headers={"x-rate-limit-reset": reset})

    client = make_client(handler, observer=observer)
    assert await client.get("/low") == {"ok": True}
    assert await client.get("/high") == {"ok": True}

    assert observer.resets == [("/low", 3)]
    assert [status for _, _, status in observer.completed] == [200, 200]


@pytest.mark.asyncio
async def test_concurrent_calls_share_one_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=envelope({"n": request.url.params["n"]}))

    client = make_client(handler)
    results = await asyncio.gather(*(client.get("/echo", {"n": str(i)}) for i in range(10)))
    assert [r["n"] for r in results] == [str(i) for i in range(10)]


def test_missing_api_key_fails_before_any_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        raise AssertionError("no request expected")

    with pytest.raises(MissingAPIKeyError):
        UToolsClient(ClientConfig(api_key=""), transport=httpx.MockTransport(handler))


def test_client_validates_config_once() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - unused
        return httpx.Response(200)

    client = make_client(handler, base_url="https://api.example.com/", max_retries=-1, rate_limit=0)
    assert client.config.base_url == "https://api.example.com"
    assert client.config.max_retries == 3
    assert client.config.rate_limit == 5.0


@pytest.mark.asyncio
async def test_async_context_manager_closes_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=envelope({"ok": True}))

    async with make_client(handler) as client:
        assert await client.get("/ping") == {"ok": True}
    assert client._client.is_closed


@pytest.mark.asyncio
async def test_unsupported_method_fails_without_request_or_retry(observer) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200, json=envelope({}))

    client = make_client(handler, observer=observer)

    with pytest.raises(ValueError, match="unsupported method"):
        await client.request("PUT", "/x")

    assert calls["count"] == 0
    assert observer.retries == []
    assert observer.completed == []
