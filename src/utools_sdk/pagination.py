"""Cursor-driven pagination on top of the client's retrying GET."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Mapping, Optional, Union

from .cursor import extract_cursors
from .errors import PaginationError

if TYPE_CHECKING:  # pragma: no cover
    from .client import UToolsClient

CURSOR_PARAM = "cursor"


class PageEnd(enum.Enum):
    NO_MORE_PAGES = "no_more_pages"


NO_MORE_PAGES = PageEnd.NO_MORE_PAGES


@dataclass(frozen=True)
class PageResult:
    data: Any
    next_cursor: str = ""
    previous_cursor: str = ""


@dataclass
class PageState:
    path: str
    base_params: Mapping[str, str]
    cursor: str = ""
    has_more: bool = True
    pages_fetched: int = 0
    max_pages: int = 0


class PageIterator:
    """Fetches consecutive pages of ``path``, following the ``cursor`` parameter.

    ``next()`` returns a ``PageResult``, or ``NO_MORE_PAGES`` once the upstream
    stops returning a fresh cursor or ``max_pages`` (when positive) pages have
    been fetched. Errors propagate. Once exhausted the iterator never resumes.

    One iterator must be driven by one task at a time.
    """

    def __init__(
        self,
        client: "UToolsClient",
        path: str,
        params: Optional[Mapping[str, str]] = None,
        max_pages: int = 0,
        *,
        cursor: str = "",
    ) -> None:
        self._client = client
        self.state = PageState(
            path=path,
            base_params=MappingProxyType(dict(params or {})),
            cursor=cursor,
            max_pages=max(0, max_pages),
        )

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    @property
    def pages_fetched(self) -> int:
        return self.state.pages_fetched

    def _request_params(self) -> Dict[str, str]:
        params = dict(self.state.base_params)
        if self.state.cursor:
            params[CURSOR_PARAM] = self.state.cursor
        return params

    async def next(self) -> Union[PageResult, PageEnd]:
        state = self.state
        if not state.has_more:
            return NO_MORE_PAGES
        if state.max_pages > 0 and state.pages_fetched >= state.max_pages:
            state.has_more = False
            return NO_MORE_PAGES

        used_cursor = state.cursor
        data = await self._client.get(state.path, self._request_params())
        state.pages_fetched += 1

        cursors = extract_cursors(data)
        if not cursors.next or cursors.next == used_cursor:
            state.has_more = False
        else:
            state.cursor = cursors.next
        return PageResult(data=data, next_cursor=cursors.next, previous_cursor=cursors.previous)

    def __aiter__(self) -> AsyncIterator[PageResult]:
        return self

    async def __anext__(self) -> PageResult:
        page = await self.next()
        if page is NO_MORE_PAGES:
            raise StopAsyncIteration
        return page

    async def collect_all(self) -> List[Any]:
        """Drive the iterator to exhaustion and return every page payload in order.

        On failure a ``PaginationError`` is raised; its ``pages`` attribute
        keeps the payloads fetched before the failing page.
        """
        pages: List[Any] = []
        while True:
            try:
                page = await self.next()
            except Exception as exc:
                raise PaginationError(pages, self.state.pages_fetched + 1, exc) from exc
            if page is NO_MORE_PAGES:
                return pages
            pages.append(page.data)


__all__ = ["NO_MORE_PAGES", "PageEnd", "PageIterator", "PageResult", "PageState"]
