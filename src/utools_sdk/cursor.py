"""Locate pagination cursors inside arbitrary upstream payloads.

Upstream endpoints disagree on where they put cursors. Timeline-style
responses carry cursor entries (``{"cursorType": "Bottom", "value": ...}``,
sometimes under ``content``) inside ``entries`` arrays; legacy endpoints use
top-level ``next_cursor``-style fields. Three strategies are tried in order
until both directions are known:

1. every descendant ``entries`` array, item by item;
2. well-known top-level field names;
3. a depth-first walk over every object carrying a ``cursorType``.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, List, Mapping, NamedTuple, Union

JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Mapping[str, "JSONValue"]]

BOTTOM = "Bottom"
TOP = "Top"
NEXT_FIELDS = ("cursor_bottom", "next_cursor", "next_cursor_str")
PREVIOUS_FIELDS = ("cursor_top", "previous_cursor", "previous_cursor_str")


class Cursors(NamedTuple):
    next: str = ""
    previous: str = ""


class _CursorCollector:
    def __init__(self) -> None:
        self.next = ""
        self.previous = ""

    @property
    def complete(self) -> bool:
        return bool(self.next and self.previous)

    def offer(self, cursor_type: str, value: str) -> None:
        if not value:
            return
        if cursor_type == BOTTOM and not self.next:
            self.next = value
        elif cursor_type == TOP and not self.previous:
            self.previous = value

    def result(self) -> Cursors:
        return Cursors(next=self.next, previous=self.previous)


def _scalar_text(value: JSONValue) -> str:
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _field(item: Mapping[str, JSONValue], name: str) -> str:
    """Read ``name`` directly on ``item`` or, failing that, on ``item["content"]``."""
    text = _scalar_text(item.get(name))
    if text:
        return text
    content = item.get("content")
    if isinstance(content, Mapping):
        return _scalar_text(content.get(name))
    return ""


def _entries_arrays(value: JSONValue) -> Iterator[List[JSONValue]]:
    if isinstance(value, Mapping):
        for key, child in value.items():
            if key == "entries" and isinstance(child, list):
                yield child
            yield from _entries_arrays(child)
    elif isinstance(value, list):
        for child in value:
            yield from _entries_arrays(child)


def _from_entries(payload: JSONValue, found: _CursorCollector) -> None:
    for entries in _entries_arrays(payload):
        for item in entries:
            if isinstance(item, Mapping):
                found.offer(_field(item, "cursorType"), _field(item, "value"))
            if found.complete:
                return


def _from_top_level(payload: JSONValue, found: _CursorCollector) -> None:
    if not isinstance(payload, Mapping):
        return
    if not found.next:
        found.next = _first_field(payload, NEXT_FIELDS)
    if not found.previous:
        found.previous = _first_field(payload, PREVIOUS_FIELDS)


def _first_field(payload: Mapping[str, JSONValue], names: tuple[str, ...]) -> str:
    for name in names:
        text = _scalar_text(payload.get(name))
        if text:
            return text
    return ""


def _walk(value: JSONValue, found: _CursorCollector) -> None:
    if found.complete:
        return
    if isinstance(value, Mapping):
        cursor_type = value.get("cursorType")
        if isinstance(cursor_type, str):
            found.offer(cursor_type, _scalar_text(value.get("value")))
        for child in value.values():
            _walk(child, found)
            if found.complete:
                return
    elif isinstance(value, list):
        for child in value:
            _walk(child, found)
            if found.complete:
                return


def _parse(payload: Any) -> JSONValue:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except ValueError:
            return None
    return payload


def extract_cursors(payload: Any) -> Cursors:
    """Return the ``(next, previous)`` cursors found in ``payload``.

    ``payload`` is a decoded JSON value, or bytes/str holding JSON. Missing
    directions are empty strings.
    """
    document = _parse(payload)
    found = _CursorCollector()
    _from_entries(document, found)
    if not found.complete:
        _from_top_level(document, found)
    if not found.complete:
        _walk(document, found)
    return found.result()


__all__ = ["Cursors", "extract_cursors"]
