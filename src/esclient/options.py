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
"""HTTP options shared by every request a client sends.

``HttpOptions`` is immutable: overriding produces a new instance, so a
default shared by the whole process can never be changed under the feet of
a concurrent caller.

Example:
    >>> opts = HttpOptions().merge({'socket_timeout': 30})
    >>> opts.socket_timeout
    30
    >>> await with_http_options(opts, {'connect_timeout': 5},
    ...                         lambda o: client.options(o).search_once('idx', q))
"""
from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any

import httpx


@dataclasses.dataclass(frozen=True)
class HttpOptions:
    """Per-request HTTP settings.

    Attributes:
        content_type: ``Content-Type`` header for request bodies.
        accept: ``Accept`` header.
        socket_timeout: Read/write timeout, in seconds. ``None`` disables it.
        connect_timeout: Connect timeout, in seconds. ``None`` disables it.
        throw_entire_message: Whether ``TransportError`` messages include
            the whole response body instead of just the status line.
    """

    content_type: str = 'application/json'
    accept: str = 'application/json'
    socket_timeout: float | None = 1.0
    connect_timeout: float | None = 1.0
    throw_entire_message: bool = True

    def merge(self, override: HttpOptions | Mapping[str, Any] | None = None,
            **kwargs) -> HttpOptions:
        """Return a copy with the values in ``override`` and ``kwargs``.

        ``override`` may be another ``HttpOptions`` (all its fields win) or
        a mapping, in which case ``None`` values are ignored. Unknown keys
        raise ``TypeError``.
        """
        if isinstance(override, HttpOptions):
            changes = dataclasses.asdict(override)
        else:
            changes = {k: v for k, v in (override or {}).items() if v is not None}
        changes.update((k, v) for k, v in kwargs.items() if v is not None)
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.socket_timeout, connect=self.connect_timeout)

    @property
    def headers(self) -> dict[str, str]:
        return {
            'content-type': self.content_type,
            'accept': self.accept,
        }


def with_http_options(base: HttpOptions,
        override: HttpOptions | Mapping[str, Any] | None,
        callback: Callable[[HttpOptions], Any]) -> Any:
    """Call ``callback`` with ``base`` merged with ``override``.

    ``base`` is left untouched, so the override ends with the call, however
    it ends. When ``callback`` is a coroutine function the coroutine is
    returned for the caller to await.
    """
    return callback(base.merge(override))
