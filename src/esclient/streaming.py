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
"""Streaming request bodies produced by a background writer.

A ``PipedBody`` connects a writer coroutine to an HTTP request body through
a bounded pipe. The writer runs on its own task and writes text into a
``PipeWriter`` sink; httpx reads the other end as an async byte stream and
sends it chunked, so a request body of any size is transmitted with memory
bounded by ``chunk_size * max_chunks``.

The pipe is always closed when the writer finishes, successfully or not,
so the reader never hangs. Whatever the writer wrote before failing is
delivered; the failure itself is logged and kept on the body, and
``raise_for_writer`` turns it into a ``BackgroundTaskError`` once the
request is over.

Example:
    >>> async def writer(sink):
    ...     for doc in docs:
    ...         await sink.write(json.dumps(doc))
    ...         await sink.write('\\n')
    >>> body = PipedBody(writer)
    >>> res = await session.post(url, content=body)
    >>> body.raise_for_writer()
"""
from __future__ import annotations

import json
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any, TypeAlias

from .exceptions import BackgroundTaskError

logger = logging.getLogger('esclient')

CHUNK_SIZE = 64 * 1024
MAX_CHUNKS = 16

EOF = object()

json_encoder = json.JSONEncoder(ensure_ascii=True, separators=(',', ':'))


class PipeWriter:
    """Text sink writing UTF-8 encoded chunks into a pipe.

    Text is buffered until at least ``chunk_size`` bytes are pending, then
    handed to the pipe as one chunk. ``write`` blocks while the pipe is full.
    """

    def __init__(self, queue: asyncio.Queue, chunk_size: int = CHUNK_SIZE,
            encoding: str = 'utf-8') -> None:
        self.queue = queue
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.buffer = bytearray()
        self.closed = False

    async def write(self, text: str) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed pipe")
        self.buffer += text.encode(self.encoding)
        if len(self.buffer) >= self.chunk_size:
            await self.flush()

    async def write_json(self, obj: Any) -> None:
        """Write the JSON encoding of ``obj`` incrementally."""
        for chunk in json_encoder.iterencode(obj):
            await self.write(chunk)

    async def flush(self) -> None:
        if self.buffer:
            chunk = bytes(self.buffer)
            self.buffer.clear()
            await self.queue.put(chunk)

    async def close(self) -> None:
        if not self.closed:
            await self.flush()
            self.closed = True
            await self.queue.put(EOF)


Writer: TypeAlias = Callable[[PipeWriter], Awaitable[Any]]


class PipedBody:
    """Async byte stream fed by ``writer`` running on a background task.

    The task is started the first time the body is iterated and lives until
    ``writer`` returns or fails.

    Attributes:
        task: The writer task, ``None`` until iteration starts.
        exception: The exception the writer died with, if any.
    """

    def __init__(self, writer: Writer, chunk_size: int = CHUNK_SIZE,
            max_chunks: int = MAX_CHUNKS) -> None:
        if writer is None:
            raise ValueError("PipedBody requires a writer")
        self.writer = writer
        self.chunk_size = chunk_size
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_chunks)
        self.task: asyncio.Task | None = None
        self.exception: Exception | None = None

    def start(self) -> asyncio.Task:
        if self.task is None:
            self.task = asyncio.ensure_future(self._run())
        return self.task

    async def _run(self) -> None:
        sink = PipeWriter(self.queue, self.chunk_size)
        try:
            await self.writer(sink)
        except Exception as exc:
            logger.debug("Piped body writer died unexpectedly", exc_info=True)
            self.exception = exc
        await sink.close()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.start()
        while True:
            chunk = await self.queue.get()
            if chunk is EOF:
                break
            yield chunk

    async def read(self) -> bytes:
        """Read the whole stream into memory."""
        return b''.join([chunk async for chunk in self])

    def raise_for_writer(self, result: Any = None) -> None:
        """Raise ``BackgroundTaskError`` if the writer failed.

        Args:
            result: What the request produced with the truncated body; it
                is attached to the error as ``result``.
        """
        if self.exception is not None:
            raise BackgroundTaskError(
                f"Piped body writer failed: {self.exception!r}", result=result) from self.exception

    async def aclose(self) -> None:
        """Cancel the writer if it is still running.

        A writer blocked on a pipe nobody reads anymore would otherwise
        never finish.
        """
        if self.task is not None and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass


def piped_json_body(*mappings: Mapping[str, Any] | None) -> PipedBody:
    """A ``PipedBody`` streaming the JSON encoding of the merged ``mappings``.

    ``None`` entries are skipped, so optional sections can be passed as-is.
    """
    merged = {}
    for mapping in mappings:
        if mapping:
            merged.update(mapping)

    async def writer(sink: PipeWriter) -> None:
        await sink.write_json(merged)

    return PipedBody(writer)
