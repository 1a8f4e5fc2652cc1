"""Unwrapping of the upstream ``{"code", "data", "msg"}`` response envelope.

Successful responses usually look like::

    {"code": 1, "data": "{\\"hello\\": \\"world\\"}", "msg": "SUCCESS"}

where ``data`` is itself a JSON document encoded as a string. Some endpoints
put the payload in ``data`` directly, and a few skip the envelope entirely.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import APIError, DecodeError

SUCCESS_CODE = 1


def error_from_response(status_code: int, body: bytes) -> APIError:
    """Build an ``APIError`` for a non-2xx response, parsing what it can."""
    raw = body.decode("utf-8", errors="replace")
    code = 0
    message = ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        if isinstance(parsed.get("code"), int):
            code = parsed["code"]
        for key in ("message", "msg"):
            value = parsed.get(key)
            if isinstance(value, str) and value:
                message = value
                break
    return APIError(status_code=status_code, code=code, message=message or raw, raw_body=raw)


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _convert(value: Any, target: Optional[Any], stage: str, snippet: str) -> Any:
    if target is None:
        return value
    try:
        return _adapter(target).validate_python(value)
    except ValidationError as exc:
        raise DecodeError(f"{stage}: {exc.error_count()} validation error(s)", snippet) from exc


def _loads(text: str, stage: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise DecodeError(f"{stage}: {exc}", text) from exc


def _envelope_code(document: Any) -> Optional[int]:
    """Return the business code when ``document`` is a valid envelope, else None."""
    if not isinstance(document, dict):
        return None
    code = document.get("code", 0)
    if code is None:
        code = 0
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    if "data" not in document and code == 0:
        return None
    return code


def unwrap(body: bytes, target: Optional[Any] = None, status_code: int = 200) -> Any:
    """Decode a 2xx response body, unwrapping the envelope when present.

    With ``target=None`` the decoded JSON value is returned; otherwise the
    value is validated into ``target`` (a pydantic model, ``dict``, ...).
    """
    text = body.decode("utf-8", errors="replace")
    document = _loads(text, "unmarshal response")

    code = _envelope_code(document)
    if code is None:
        return _convert(document, target, "unmarshal response", text)

    if code not in (0, SUCCESS_CODE):
        message = document.get("msg")
        raise APIError(
            status_code=status_code,
            code=code,
            message=message if isinstance(message, str) else "",
            raw_body=text,
        )

    data = document.get("data")
    if isinstance(data, str):
        inner = _loads(data, "unmarshal inner data")
        return _convert(inner, target, "unmarshal inner data", data)
    return _convert(data, target, "unmarshal data field", json.dumps(data, ensure_ascii=False))


__all__ = ["SUCCESS_CODE", "error_from_response", "unwrap"]
