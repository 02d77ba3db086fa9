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
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
"""Name validation, URL building and identifier helpers.

Index and type names must be non-empty strings. Document ids are either
non-empty strings or finite real numbers (not booleans); anything else is
rejected with ``ValidationError`` before a request is built.

The identifier helpers turn UUIDs, integers and raw bytes into compact
hexadecimal or base64 strings, handy for generating document ids and
throwaway index names:

    >>> uuid_hex_str()
    '5f0c6b1e2a8d4c7fa1d3b0e9c4f2a817'
    >>> uuid_url_str()
    'XwxrHiqNTH-h07DpxPKoFw'
"""
from __future__ import annotations

import base64
import math
import numbers
import uuid
from collections.abc import Iterable
from typing import Any, TypeAlias
from urllib.parse import quote

from .exceptions import ValidationError


IndexSpec: TypeAlias = str | tuple[str, ...] | list[str] | set[str]
DocId: TypeAlias = str | int | float

INT_WIDTHS = (1, 2, 4, 8)


def valid_index_name(index_name: Any) -> str | None:
    """Return ``index_name`` if it is a non-empty string, else ``None``."""
    if isinstance(index_name, str) and index_name:
        return index_name
    return None


def valid_type(doc_type: Any) -> str | None:
    """Return ``doc_type`` if it is a non-empty string, else ``None``."""
    if isinstance(doc_type, str) and doc_type:
        return doc_type
    return None


def valid_id(id: Any) -> DocId | None:
    """Return ``id`` if it is a valid document id, else ``None``.

    Valid ids are non-empty strings and finite real numbers, which are
    sent verbatim. Booleans are integers to Python but are never accepted
    as ids.
    """
    if isinstance(id, str):
        return id or None
    if isinstance(id, numbers.Real) and not isinstance(id, bool) and math.isfinite(id):
        return id
    return None


def check_index_name(index_name: Any, what: str = 'index name') -> str:
    if valid_index_name(index_name) is None:
        raise ValidationError(f"Invalid {what}: {index_name!r}")
    return index_name


def check_type(doc_type: Any) -> str:
    if valid_type(doc_type) is None:
        raise ValidationError(f"Invalid type name: {doc_type!r}")
    return doc_type


def check_id(id: Any) -> DocId:
    if valid_id(id) is None:
        raise ValidationError(f"Invalid document id: {id!r}")
    return id


def index_list(index_names: IndexSpec) -> list[str]:
    """Normalize one index name or a collection of them to a list.

    Raises:
        ValidationError: If ``index_names`` is neither a valid index name
            nor a collection made only of valid index names.
    """
    if valid_index_name(index_names) is not None:
        return [index_names]
    if isinstance(index_names, Iterable) and not isinstance(index_names, (str, bytes)):
        names = list(index_names)
        if names and all(valid_index_name(name) is not None for name in names):
            return names
    raise ValidationError(f"Invalid index names: {index_names!r}")


def index_list_str(index_names: IndexSpec) -> str:
    return ','.join(index_list(index_names))


def build_url(base: str, *parts: Any) -> str:
    """Join ``base`` and the URL-encoded ``parts`` with ``/``.

    Every part is converted with ``str()`` and fully percent-encoded, so a
    ``/`` inside a part never introduces a new path segment.

    Example:
        >>> build_url('http://localhost:9200', 'idx', 'doc', 'a b')
        'http://localhost:9200/idx/doc/a%20b'
    """
    if not base.endswith('/'):
        base = f'{base}/'
    return base + '/'.join(quote(str(part), safe='') for part in parts)


def to_bytes(value: bytes | bytearray | uuid.UUID | int, width: int = 8) -> bytes:
    """Convert ``value`` to its big-endian byte representation.

    The accepted kinds form a closed set:

    * ``bytes`` / ``bytearray``: returned as ``bytes``.
    * ``uuid.UUID``: its 16 bytes.
    * ``int``: a signed two's complement integer ``width`` bytes wide,
      where ``width`` is one of 1, 2, 4 or 8.

    Raises:
        TypeError: For any other kind of value.
        ValueError: For an unsupported ``width``, or an integer that does
            not fit in it.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, uuid.UUID):
        return value.bytes
    if isinstance(value, int) and not isinstance(value, bool):
        if width not in INT_WIDTHS:
            raise ValueError(f"Unsupported integer width: {width}")
        try:
            return value.to_bytes(width, 'big', signed=True)
        except OverflowError:
            raise ValueError(f"{value} does not fit in {width} bytes") from None
    raise TypeError(f"Cannot convert {type(value).__name__} to bytes")


def hex_str(value: bytes | bytearray | uuid.UUID | int, width: int = 8) -> str:
    return to_bytes(value, width).hex()


def base64_str(value: bytes | bytearray | uuid.UUID | int, width: int = 8) -> str:
    """Standard base64 of ``to_bytes(value)``.

    UUIDs drop the trailing padding, leaving 22 characters.
    """
    encoded = base64.b64encode(to_bytes(value, width)).decode('ascii')
    if isinstance(value, uuid.UUID):
        return encoded[:22]
    return encoded


def base64url_str(value: bytes | bytearray | uuid.UUID | int, width: int = 8) -> str:
    return base64_str(value, width).replace('+', '-').replace('/', '_')


def uuid_url_str() -> str:
    """A random UUID as a 22 character URL-safe string."""
    return base64url_str(uuid.uuid4())


def uuid_hex_str() -> str:
    """A random UUID as a 32 character hexadecimal string."""
    return hex_str(uuid.uuid4())
