# -*- coding: utf-8 -*-
#
# Copyright (C) 2015-2026 Dubalu LLC. All rights reserved.
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.
#
"""Paginated search results.

``SearchPages`` walks a query's results window by window using
``from``/``size``. Each window is one request; the next ``from`` is the
previous one plus the number of hits actually returned, and the walk ends
at the first window with no hits (which is not yielded). Windows never reach
past ``max_window``, the engine's result window: the last window is shrunk
to fit and the walk ends once ``from`` reaches it.

Example:
    >>> pages = client.search('myindex', {'match_all': {}}, size=500)
    >>> async for page in pages:
    ...     for doc in search_hits(page):
    ...         print(doc['_id'])
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeAlias

from .collections import DictObject
from .exceptions import ValidationError

logger = logging.getLogger('esclient')

DEFAULT_SIZE = 10000

# Elasticsearch rejects windows with from + size past index.max_result_window.
DEFAULT_MAX_WINDOW = 10000

HIT_META_FIELDS = ('_index', '_type', '_id')


Fetch: TypeAlias = Callable[[int, int], Awaitable[Any]]


def page_hits(page: Any) -> list:
    """The raw hit records of one search response (empty if none)."""
    if isinstance(page, Mapping):
        hits = page.get('hits')
        if isinstance(hits, Mapping):
            return list(hits.get('hits') or ())
    return []


def hit_source(hit: Mapping[str, Any]) -> DictObject:
    """Project a hit to a document.

    The hit's ``_index``, ``_type`` and ``_id`` are merged with the
    requested ``fields`` when present, or with the whole ``_source``.
    """
    doc = DictObject((key, hit[key]) for key in HIT_META_FIELDS if key in hit)
    if 'fields' in hit:
        doc.update(hit['fields'])
    else:
        doc.update(hit.get('_source') or {})
    return doc


def search_hits(result: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[DictObject]:
    """Documents of a search response, or of a sequence of them, in order.

    A ``SearchPages`` is fetched asynchronously, so it is not accepted here;
    use ``await pages.hits()`` instead.
    """
    if isinstance(result, SearchPages):
        raise TypeError("search_hits() cannot fetch a SearchPages; use 'await pages.hits()'")
    if isinstance(result, Mapping):
        return [hit_source(hit) for hit in page_hits(result)]
    return [doc for page in result for doc in search_hits(page)]


def search_total(result: Mapping[str, Any]) -> int | None:
    """Total number of matches reported by a search response.

    Accepts both the plain integer and the ``{"value": n, ...}`` forms.
    """
    hits = result.get('hits') if isinstance(result, Mapping) else None
    if not isinstance(hits, Mapping):
        return None
    total = hits.get('total')
    if isinstance(total, Mapping):
        return total.get('value')
    return total


class SearchPages:
    """Lazy sequence of search response pages.

    Nothing is requested until the sequence is iterated. Pages are fetched
    one at a time, strictly in order, and each at most once: fetched pages
    are kept, so iterating again replays them before fetching more. A
    consumer that stops early causes no further requests.

    Attributes:
        size: Page window size.
        offset: ``from`` of the next page to fetch.
        max_window: Upper bound of ``from + size`` for any request.
        pages: Pages fetched so far.
        exhausted: Whether an empty page has been seen or the result
            window has been reached.
    """

    def __init__(self, fetch: Fetch, size: int = DEFAULT_SIZE, from_: int = 0,
                 max_window: int = DEFAULT_MAX_WINDOW) -> None:
        """Initialize the sequence.

        Args:
            fetch: Coroutine function ``fetch(from_, size)`` returning one
                search response.
            size: Page window size.
            from_: Offset of the first page.
            max_window: The engine's result window
                (``index.max_result_window``). No request asks for hits
                past it.

        Raises:
            ValidationError: If ``size`` or ``max_window`` is not a positive
                integer or ``from_`` is negative.
        """
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValidationError(f"Invalid page size: {size!r}")
        if not isinstance(from_, int) or isinstance(from_, bool) or from_ < 0:
            raise ValidationError(f"Invalid offset: {from_!r}")
        if not isinstance(max_window, int) or isinstance(max_window, bool) or max_window <= 0:
            raise ValidationError(f"Invalid result window: {max_window!r}")
        self.fetch = fetch
        self.size = size
        self.offset = from_
        self.max_window = max_window
        self.pages: list = []
        self.exhausted = False
        self._lock = asyncio.Lock()

    async def _fetch_next(self) -> None:
        if self.offset >= self.max_window:
            logger.debug(f"@@@>> SEARCH WINDOW REACHED: from={self.offset} max_window={self.max_window}")
            self.exhausted = True
            return
        size = min(self.size, self.max_window - self.offset)
        logger.debug(f"@@@>> SEARCH PAGE: from={self.offset} size={size}")
        page = await self.fetch(self.offset, size)
        count = len(page_hits(page))
        if not count:
            self.exhausted = True
            return
        self.pages.append(page)
        self.offset += count

    async def __aiter__(self) -> AsyncIterator[Any]:
        position = 0
        while True:
            if position == len(self.pages):
                async with self._lock:
                    if position == len(self.pages) and not self.exhausted:
                        await self._fetch_next()
                if position == len(self.pages):
                    return
            yield self.pages[position]
            position += 1

    async def hits(self) -> list[DictObject]:
        """Documents of every page, fetching all remaining pages."""
        return [doc async for page in self for doc in search_hits(page)]

    async def total(self) -> int | None:
        """Total reported by the first page, or ``None`` if there is none."""
        async for page in self:
            return search_total(page)
        return None

    def __repr__(self) -> str:
        return (f'<SearchPages fetched={len(self.pages)} offset={self.offset} '
                f'size={self.size} max_window={self.max_window} exhausted={self.exhausted}>')
