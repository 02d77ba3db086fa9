# Copyright (c) 2015-2019 Dubalu LLC
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
"""Containers for decoded server responses.

``DictObject`` is the ``object_pairs_hook`` used when decoding JSON
responses, so every nested object allows attribute-style access.
``ResponseObject`` and ``ResponseList`` wrap the top level of a decoded
body and keep a reference to the ``httpx.Response`` it came from.

Example:
    >>> page = await client.search_once('myindex', {'match_all': {}})
    >>> page.took
    3
    >>> page.response.status_code
    200
"""
from __future__ import annotations

from typing import Any


class DictObject(dict):
    """Dictionary with attribute-style access.

    A simple ``dict`` subclass that maps its internal ``__dict__`` to
    itself, allowing keys to be accessed as attributes.

    Example:
        >>> obj = DictObject(name='test', value=42)
        >>> obj.name
        'test'
        >>> obj['name']
        'test'
    """

    def __init__(self, *args, **kwargs):
        dict.__init__(self, *args, **kwargs)
        self.__dict__ = self


class ResponseObject(DictObject):
    """Decoded JSON object annotated with the raw HTTP response.

    The response lives in a slot, so it never shows up as a key.
    """

    __slots__ = ('_response',)

    def __init__(self, *args, response: Any = None, **kwargs):
        DictObject.__init__(self, *args, **kwargs)
        self._response = response

    @property
    def response(self) -> Any:
        return self._response


class ResponseList(list):
    """Decoded JSON array annotated with the raw HTTP response."""

    __slots__ = ('_response',)

    def __init__(self, iterable=(), response: Any = None):
        list.__init__(self, iterable)
        self._response = response

    @property
    def response(self) -> Any:
        return self._response
