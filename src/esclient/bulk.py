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
"""Bulk and multi-search request encoding.

Bulk requests are newline-delimited JSON: one action header line per
operation, followed by a source line for creates, indexes and updates.
``encode_operations`` writes them through a ``PipedBody``, one operation at
a time, so an operation sequence of any length (including lazy generators
and async iterables) is sent without being held in memory.

Example:
    >>> docs = ({'_id': str(n), 'n': n} for n in range(100000))
    >>> result = await client.doc_bulk_for_index('numbers', bulk_index_ops(docs))
    >>> result.ok
    True
"""
from __future__ import annotations

import asyncio
import enum
import logging
import dataclasses
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from typing import Any

from .exceptions import EncodingError, ValidationError
from .streaming import PipedBody, PipeWriter, json_encoder
from .utils import DocId, check_id, check_index_name, check_type, valid_id, valid_index_name, valid_type

logger = logging.getLogger('esclient')

META_FIELDS = ('_index', '_type', '_id')
RETRY_ON_CONFLICT = ('_retry_on_conflict', 'retry_on_conflict')
QUERY_HEADER_FIELDS = ('index', 'type', 'search_type', 'preference', 'routing')


class Action(enum.StrEnum):
    CREATE = 'create'
    INDEX = 'index'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclasses.dataclass
class Operation:
    """One bulk action.

    Attributes:
        action: What to do with the document.
        index: Target index name.
        doc_type: Target type name.
        id: Document id. Optional for ``CREATE``.
        source: The document for ``CREATE``/``INDEX``, the update payload
            for ``UPDATE``. Ignored for ``DELETE`` except for its meta
            fields. Meta fields (``_index``, ``_type``, ``_id``) found here
            are used when the explicit ones are missing.
        params: Extra action header fields, e.g. ``routing``.
    """

    action: Action
    index: str | None = None
    doc_type: str | None = None
    id: DocId | None = None
    source: Mapping[str, Any] | None = None
    params: dict[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        self.action = Action(self.action)

    @classmethod
    def from_mapping(cls, op: Mapping[str, Any]) -> Operation:
        """Build an ``Operation`` from the raw ``{action: {...}}`` form.

        Example:
            >>> Operation.from_mapping({'delete': {'_index': 'i', '_id': 1}})
            Operation(action=<Action.DELETE: 'delete'>, index='i', doc_type=None, id=1, source=None, params={})
        """
        if len(op) != 1:
            raise EncodingError(f"Operation must have exactly one action key: {list(op)!r}")
        action, meta = next(iter(op.items()))
        try:
            action = Action(action)
        except ValueError:
            raise EncodingError(f"Unknown bulk action: {action!r}") from None
        if meta is not None and not isinstance(meta, Mapping):
            raise EncodingError(f"Bulk {action} metadata must be a mapping: {meta!r}")
        meta = dict(meta or {})
        source = meta.pop('source', None)
        return cls(
            action,
            index=meta.pop('_index', None),
            doc_type=meta.pop('_type', None),
            id=meta.pop('_id', None),
            source=source,
            params=meta,
        )


def as_operation(op: Operation | Mapping[str, Any]) -> Operation:
    if isinstance(op, Operation):
        return op
    if isinstance(op, Mapping):
        return Operation.from_mapping(op)
    raise EncodingError(f"Not a bulk operation: {op!r}")


def op_prep(op: Operation | Mapping[str, Any], default_index: str | None = None,
        default_type: str | None = None) -> tuple[dict, dict | None]:
    """Resolve the header and source lines of one operation.

    Meta fields are resolved with the explicit value first, then the value
    embedded in the source, then the defaults. Explicit and embedded values
    must agree when both are present.

    Returns:
        tuple[dict, dict | None]: The action header and the source to send
            (stripped of meta fields), or ``None`` when there is none.

    Raises:
        EncodingError: If the operation is malformed or its metadata is
            inconsistent.
    """
    op = as_operation(op)
    source = op.source
    if source is not None and not isinstance(source, Mapping):
        raise EncodingError(f"Bulk {op.action} source must be a mapping: {source!r}")

    embedded = {}
    if source is not None:
        embedded = {key: source[key] for key in META_FIELDS if source.get(key) is not None}

    meta = {}
    for key, explicit in zip(META_FIELDS, (op.index, op.doc_type, op.id)):
        if explicit is not None:
            if key in embedded and embedded[key] != explicit:
                raise EncodingError(
                    f"Bulk {op.action}: {key} {explicit!r} conflicts with {embedded[key]!r} in source")
            meta[key] = explicit
        elif key in embedded:
            meta[key] = embedded[key]
    if '_index' not in meta and default_index is not None:
        meta['_index'] = default_index
    if '_type' not in meta and default_type is not None:
        meta['_type'] = default_type

    if '_index' in meta and valid_index_name(meta['_index']) is None:
        raise EncodingError(f"Bulk {op.action}: invalid index name {meta['_index']!r}")
    if '_type' in meta and valid_type(meta['_type']) is None:
        raise EncodingError(f"Bulk {op.action}: invalid type name {meta['_type']!r}")
    if '_id' in meta and valid_id(meta['_id']) is None:
        raise EncodingError(f"Bulk {op.action}: invalid document id {meta['_id']!r}")

    if op.action in (Action.UPDATE, Action.DELETE) and '_id' not in meta:
        raise EncodingError(f"Bulk {op.action} requires a document id")

    if op.action == Action.DELETE:
        body = None
    elif source is None:
        raise EncodingError(f"Bulk {op.action} requires a source")
    else:
        body = {k: v for k, v in source.items() if k not in META_FIELDS}

    header = {op.action.value: {**meta, **op.params}}
    return header, body


def encode_lines(*objs: Any) -> str:
    """JSON-encode each of ``objs`` on its own line."""
    try:
        return ''.join(f'{json_encoder.encode(obj)}\n' for obj in objs)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Cannot encode bulk line: {exc}") from exc


async def write_operation(op: Operation | Mapping[str, Any], sink: PipeWriter,
        default_index: str | None = None, default_type: str | None = None) -> None:
    """Write one operation to ``sink``.

    The operation is fully encoded before anything is written, so a
    malformed operation never leaves a partial line behind.
    """
    header, source = op_prep(op, default_index, default_type)
    if source is None:
        await sink.write(encode_lines(header))
    else:
        await sink.write(encode_lines(header, source))


_END = object()


async def aiter_items(items: Iterable | AsyncIterable, threaded: bool = False) -> AsyncIterator:
    """Iterate ``items`` asynchronously.

    Sync iterables are advanced on the event loop unless ``threaded`` is
    set, in which case each item is produced in a worker thread.
    """
    if isinstance(items, AsyncIterable):
        async for item in items:
            yield item
    elif threaded:
        iterator = await asyncio.to_thread(iter, items)
        while (item := await asyncio.to_thread(next, iterator, _END)) is not _END:
            yield item
    else:
        for item in items:
            yield item


def encode_operations(operations: Iterable | AsyncIterable, default_index: str | None = None,
        default_type: str | None = None, threaded: bool = False) -> PipedBody:
    """Stream ``operations`` as a bulk request body.

    Args:
        operations: ``Operation`` instances or raw ``{action: {...}}``
            mappings, as a sync or async iterable. Consumed lazily.
        default_index: Index for operations that name none.
        default_type: Type for operations that name none.
        threaded: Produce items of a sync ``operations`` iterable in a
            worker thread. Without it a sync iterable runs on the event
            loop, so a producer that blocks stalls the upload it feeds.

    Returns:
        PipedBody: The NDJSON body. Encoding stops at the first malformed
            operation; the ones before it are still sent.
    """
    async def writer(sink: PipeWriter) -> None:
        count = 0
        async for op in aiter_items(operations, threaded):
            await write_operation(op, sink, default_index, default_type)
            count += 1
        logger.debug(f"@@@>> BULK: {count} operations encoded")

    return PipedBody(writer)


def _doc_op(action: Action, source: Mapping[str, Any], index: str | None,
        doc_type: str | None, id: DocId | None, id_required: bool,
        params: dict | None = None) -> Operation:
    if not isinstance(source, Mapping):
        raise ValidationError(f"Bulk {action} source must be a mapping: {source!r}")
    if index is None:
        index = source.get('_index')
    if index is not None:
        check_index_name(index)
    if doc_type is None:
        doc_type = source.get('_type')
    if doc_type is not None:
        check_type(doc_type)
    if id is None:
        id = source.get('_id')
    if id is not None or id_required:
        check_id(id)
    return Operation(action, index, doc_type, id, source, params or {})


def doc_bulk_create(source: Mapping[str, Any], index: str | None = None,
        doc_type: str | None = None, id: DocId | None = None) -> Operation:
    """Create operation for ``source``; the id is optional."""
    return _doc_op(Action.CREATE, source, index, doc_type, id, id_required=False)


def doc_bulk_index(source: Mapping[str, Any], index: str | None = None,
        doc_type: str | None = None, id: DocId | None = None) -> Operation:
    """Index (create or replace) operation for ``source``."""
    return _doc_op(Action.INDEX, source, index, doc_type, id, id_required=True)


def doc_bulk_update(source: Mapping[str, Any], index: str | None = None,
        doc_type: str | None = None, id: DocId | None = None, **params) -> Operation:
    """Update operation; ``source`` is the payload (``doc``, ``script``...).

    A ``retry_on_conflict`` (or ``_retry_on_conflict``) key in ``source`` is
    moved to the action header.
    """
    if isinstance(source, Mapping) and any(key in source for key in RETRY_ON_CONFLICT):
        source = dict(source)
        for key in RETRY_ON_CONFLICT:
            if key in source:
                params.setdefault('retry_on_conflict', source.pop(key))
    return _doc_op(Action.UPDATE, source, index, doc_type, id, id_required=True, params=params)


def doc_bulk_delete(id: DocId, index: str | None = None, doc_type: str | None = None) -> Operation:
    check_id(id)
    if index is not None:
        check_index_name(index)
    if doc_type is not None:
        check_type(doc_type)
    return Operation(Action.DELETE, index, doc_type, id)


def bulk_create_ops(docs: Iterable[Mapping[str, Any]]) -> Iterator[Operation]:
    return (doc_bulk_create(doc) for doc in docs)


def bulk_index_ops(docs: Iterable[Mapping[str, Any]]) -> Iterator[Operation]:
    return (doc_bulk_index(doc) for doc in docs)


def bulk_update_ops(docs: Iterable[Mapping[str, Any]]) -> Iterator[Operation]:
    return (doc_bulk_update(doc) for doc in docs)


def bulk_delete_ops(docs: Iterable[Mapping[str, Any]]) -> Iterator[Operation]:
    return (doc_bulk_delete(doc.get('_id'), doc.get('_index'), doc.get('_type')) for doc in docs)


@dataclasses.dataclass
class BulkItem:
    """Outcome of one operation of a bulk request."""

    action: str
    index: str | None = None
    doc_type: str | None = None
    id: Any = None
    version: int | None = None
    status: int | None = None
    ok: bool = False
    error: Any = None

    @classmethod
    def from_response(cls, item: Mapping[str, Any]) -> BulkItem:
        action, outcome = next(iter(item.items()))
        status = outcome.get('status')
        error = outcome.get('error')
        if 'ok' in outcome:
            ok = bool(outcome['ok'])
        else:
            ok = error is None and (status is None or 200 <= status < 300)
        return cls(
            action=action,
            index=outcome.get('_index'),
            doc_type=outcome.get('_type'),
            id=outcome.get('_id'),
            version=outcome.get('_version'),
            status=status,
            ok=ok,
            error=error,
        )


@dataclasses.dataclass
class BulkResult:
    """Parsed bulk response.

    Attributes:
        took: Milliseconds the server spent.
        errors: The server's own ``errors`` flag.
        items: One ``BulkItem`` per operation, in request order.
        raw: The decoded response body.
    """

    took: int | None = None
    errors: bool = False
    items: list[BulkItem] = dataclasses.field(default_factory=list)
    raw: Any = None

    @classmethod
    def from_response(cls, body: Mapping[str, Any]) -> BulkResult:
        items = [BulkItem.from_response(item) for item in body.get('items') or ()]
        errors = body.get('errors')
        if errors is None:
            errors = not all(item.ok for item in items)
        return cls(took=body.get('took'), errors=bool(errors), items=items, raw=body)

    @property
    def ok(self) -> bool:
        return all(item.ok for item in self.items)

    @property
    def failed(self) -> list[BulkItem]:
        return [item for item in self.items if not item.ok]

    def __iter__(self) -> Iterator[BulkItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def split_query(query: Mapping[str, Any]) -> tuple[dict, dict]:
    """Split a multi-search request into its header and body.

    Example:
        >>> split_query({'query': {'match_all': {}}, 'index': 'i', 'size': 5})
        ({'index': 'i'}, {'query': {'match_all': {}}, 'size': 5})
    """
    body = dict(query)
    header = {key: body.pop(key) for key in QUERY_HEADER_FIELDS if key in body}
    return header, body


def bulk_queries(queries: Iterable[Mapping[str, Any]]) -> Iterator[tuple[dict, dict]]:
    return (split_query(query) for query in queries)


def encode_queries(queries: Iterable | AsyncIterable, default_index: str | None = None,
        default_type: str | None = None, threaded: bool = False) -> PipedBody:
    """Stream multi-search requests as an NDJSON body.

    ``queries`` holds ``(header, body)`` pairs from ``bulk_queries`` or the
    plain request mappings themselves. ``threaded`` works as in
    ``encode_operations``.
    """
    async def writer(sink: PipeWriter) -> None:
        async for query in aiter_items(queries, threaded):
            if isinstance(query, tuple):
                header, body = query
                header = dict(header)
            else:
                header, body = split_query(query)
            if default_index is not None:
                header.setdefault('index', default_index)
            if default_type is not None:
                header.setdefault('type', default_type)
            await sink.write(encode_lines(header, body))

    return PipedBody(writer)
