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
"""Elasticsearch Python client library.

Provides the ``Elasticsearch`` async client class for talking to an
Elasticsearch server over its REST+JSON API: index, alias and mapping
administration, document CRUD, streamed bulk and multi-search requests,
multi-get, and paginated search.

Configuration is read from environment variables (``ELASTICSEARCH_HOST``,
``ELASTICSEARCH_PORT``, ``ELASTICSEARCH_REFRESH``, ``ELASTICSEARCH_TIMEOUT``,
``ELASTICSEARCH_CONNECT_TIMEOUT``), with optional overrides from Django
settings. A module-level ``client`` singleton is created at import time
using these defaults.

Example:
    >>> from esclient import client, search_hits
    >>> await client.index_create('myindex')
    >>> await client.doc_bulk_for_index('myindex', bulk_create_ops(docs))
    >>> async for page in client.search('myindex', {'match_all': {}}):
    ...     search_hits(page)
    [...]
"""
from __future__ import annotations

import os
import copy
import json
import logging
from collections.abc import AsyncIterable, Iterable, Mapping
from typing import Any

try:
    import httpx
except ImportError:
    raise ImportError("esclient requires the installation of the httpx module.")

from .bulk import (
    Action,
    BulkItem,
    BulkResult,
    Operation,
    bulk_create_ops,
    bulk_delete_ops,
    bulk_index_ops,
    bulk_queries,
    bulk_update_ops,
    doc_bulk_create,
    doc_bulk_delete,
    doc_bulk_index,
    doc_bulk_update,
    encode_operations,
    encode_queries,
)
from .collections import DictObject, ResponseList, ResponseObject
from .exceptions import (
    BackgroundTaskError,
    EncodingError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from .options import HttpOptions, with_http_options
from .search import DEFAULT_MAX_WINDOW, DEFAULT_SIZE, SearchPages, page_hits, search_hits, search_total
from .streaming import PipedBody, piped_json_body
from .utils import (
    DocId,
    IndexSpec,
    build_url,
    check_id,
    check_index_name,
    check_type,
    index_list,
    index_list_str,
)


__version__ = '1.0.0'
__all__ = [
    'Elasticsearch',
    'NotFoundError',
    'TransportError',
    'ValidationError',
    'EncodingError',
    'BackgroundTaskError',
    'HttpOptions',
    'DEFAULT_HTTP_OPTIONS',
    'with_http_options',
    'NA',
    'client',
    'ok',
    'parse_refresh',
    'Action',
    'Operation',
    'BulkItem',
    'BulkResult',
    'SearchPages',
    'bulk_create_ops',
    'bulk_index_ops',
    'bulk_update_ops',
    'bulk_delete_ops',
    'bulk_queries',
    'doc_bulk_create',
    'doc_bulk_index',
    'doc_bulk_update',
    'doc_bulk_delete',
    'page_hits',
    'search_hits',
    'search_total',
    'ELASTICSEARCH_HOST',
    'ELASTICSEARCH_PORT',
    'ELASTICSEARCH_REFRESH',
    'ELASTICSEARCH_TIMEOUT',
    'ELASTICSEARCH_CONNECT_TIMEOUT',
]

logger = logging.getLogger('esclient')

NDJSON = 'application/x-ndjson'
META_FIELDS = ('_index', '_type', '_id')
DEFAULT_DOC_TYPE = '_doc'
OK_RESULTS = ('created', 'updated', 'deleted', 'noop')

REFRESH_FALSE = ('', '0', 'false', 'no', 'off')
REFRESH_TRUE = ('1', 'true', 'yes', 'on')


def parse_refresh(value: Any) -> bool | str | None:
    """Normalize a configured ``refresh`` value.

    Strings such as ``"false"`` or ``"0"`` from the environment become
    booleans, and ``"wait_for"`` is kept. Anything else passes through.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text in REFRESH_FALSE:
            return False
        if text in REFRESH_TRUE:
            return True
        if text == 'wait_for':
            return text
    return value


ELASTICSEARCH_HOST = os.environ.get('ELASTICSEARCH_HOST', '127.0.0.1')
ELASTICSEARCH_PORT = os.environ.get('ELASTICSEARCH_PORT', 9200)
ELASTICSEARCH_REFRESH = parse_refresh(os.environ.get('ELASTICSEARCH_REFRESH', False))
ELASTICSEARCH_TIMEOUT = float(os.environ.get('ELASTICSEARCH_TIMEOUT', 1.0))
ELASTICSEARCH_CONNECT_TIMEOUT = float(os.environ.get('ELASTICSEARCH_CONNECT_TIMEOUT', 1.0))

try:
    from django.conf import settings
    ELASTICSEARCH_HOST = getattr(settings, 'ELASTICSEARCH_HOST', ELASTICSEARCH_HOST)
    ELASTICSEARCH_PORT = getattr(settings, 'ELASTICSEARCH_PORT', ELASTICSEARCH_PORT)
    ELASTICSEARCH_REFRESH = parse_refresh(getattr(settings, 'ELASTICSEARCH_REFRESH', ELASTICSEARCH_REFRESH))
    ELASTICSEARCH_TIMEOUT = getattr(settings, 'ELASTICSEARCH_TIMEOUT', ELASTICSEARCH_TIMEOUT)
    ELASTICSEARCH_CONNECT_TIMEOUT = getattr(settings, 'ELASTICSEARCH_CONNECT_TIMEOUT', ELASTICSEARCH_CONNECT_TIMEOUT)
except Exception:
    settings = None

DEFAULT_HTTP_OPTIONS = HttpOptions(
    socket_timeout=ELASTICSEARCH_TIMEOUT,
    connect_timeout=ELASTICSEARCH_CONNECT_TIMEOUT,
)


NA = object()


def ok(response: Any) -> Any:
    """Return ``response`` if it reports success, else ``None``.

    Success is an ``ok`` or ``acknowledged`` flag, a document ``result`` of
    created/updated/deleted/noop, or a shard tally with no failures.
    """
    if not isinstance(response, Mapping):
        return None
    if response.get('ok') or response.get('acknowledged'):
        return response
    if 'result' in response:
        return response if response['result'] in OK_RESULTS else None
    shards = response.get('_shards')
    if isinstance(shards, Mapping) and not shards.get('failed'):
        return response
    return None


def doc_type_of(doc: Mapping[str, Any]) -> str | None:
    return doc.get('_type')


def doc_id_of(doc: Mapping[str, Any]) -> DocId | None:
    return doc.get('_id')


def doc_body(doc: Mapping[str, Any]) -> dict:
    """``doc`` without its meta fields."""
    return {k: v for k, v in doc.items() if k not in META_FIELDS}


class Elasticsearch:
    """Async client for an Elasticsearch server.

    Every API method routes through ``_send_request``, which builds the
    URL, applies the client's ``HttpOptions``, serializes the body, and
    decodes the response.

    Attributes:
        host: Server hostname.
        port: Server port.
        refresh: Default ``refresh`` parameter for write operations.
        http_options: ``HttpOptions`` applied to every request.
        NotFoundError: Reference to the ``NotFoundError`` exception class.
        NA: Sentinel object indicating no default value was provided.

    Example:
        >>> es = Elasticsearch(host='localhost', port=9200)
        >>> await es.index_exists('myindex')
        False
        >>> slow = es.options(socket_timeout=60)
        >>> await slow.doc_bulk(bulk_index_ops(docs))
    """

    NotFoundError = NotFoundError
    NA = NA

    session = httpx.AsyncClient(
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=100),
        trust_env=False,
        follow_redirects=False,
    )

    def __init__(self, host: str | None = None, port: str | int | None = None,
            refresh: bool | str | None = None,
            http_options: HttpOptions | Mapping[str, Any] | None = None,
            session: httpx.AsyncClient | None = None,
            *args, **kwargs) -> None:
        """Initialize the client.

        Args:
            host: Server hostname. If it contains a colon, the part after
                it is used as the port. Defaults to ``ELASTICSEARCH_HOST``.
            port: Server port. Defaults to ``ELASTICSEARCH_PORT``.
            refresh: ``refresh`` parameter sent with writes unless the call
                sets its own. Defaults to ``ELASTICSEARCH_REFRESH``.
            http_options: ``HttpOptions``, or a mapping of overrides merged
                over ``DEFAULT_HTTP_OPTIONS``.
            session: ``httpx.AsyncClient`` to use instead of the shared
                class-level one.
            *args: Additional positional arguments (unused).
            **kwargs: Additional keyword arguments (unused).
        """
        if host is None:
            host = ELASTICSEARCH_HOST
        if port is None:
            port = ELASTICSEARCH_PORT
        if refresh is None:
            refresh = ELASTICSEARCH_REFRESH
        if host and ':' in host:
            host, _, port = host.partition(':')
        self.host = host
        self.port = port
        self.refresh = parse_refresh(refresh)
        if isinstance(http_options, HttpOptions):
            self.http_options = http_options
        else:
            self.http_options = DEFAULT_HTTP_OPTIONS.merge(http_options)
        if session is not None:
            self.session = session

        self.DoesNotExist = NotFoundError

    def options(self, override: HttpOptions | Mapping[str, Any] | None = None,
            **kwargs) -> Elasticsearch:
        """A view of this client with overridden ``HttpOptions``.

        The view shares the session; this client is left untouched.

        Example:
            >>> await es.options(socket_timeout=30).search_once('idx', q)
        """
        other = copy.copy(self)
        other.http_options = self.http_options.merge(override, **kwargs)
        return other

    @property
    def base_url(self) -> str:
        return f'http://{self.host}:{self.port}'

    def _build_url(self, *parts: Any) -> str:
        """Build the full URL for a request.

        Every part is percent-encoded and joined with ``/`` below
        ``base_url``.

        Example:
            >>> es._build_url('idx', '_doc', 'a/b')
            'http://127.0.0.1:9200/idx/_doc/a%2Fb'
        """
        return build_url(self.base_url, *parts)

    def _write_params(self, params: Mapping[str, Any] | None = None) -> dict:
        write_params = {}
        if self.refresh:
            write_params['refresh'] = self.refresh
        if params:
            write_params.update(params)
        return write_params

    async def _send_request(self, method: str, parts: Iterable[Any],
            body: Any = None, default: Any = NA,
            http_options: HttpOptions | Mapping[str, Any] | None = None,
            **kwargs) -> Any:
        """Send an HTTP request to the server.

        Central method through which all API operations are routed. Handles
        URL construction, body serialization, request dispatch, error
        handling, and response deserialization.

        Args:
            method: ``'HEAD'``, ``'GET'``, ``'POST'``, ``'PUT'`` or
                ``'DELETE'``.
            parts: Path segments, percent-encoded and joined with ``/``.
            body: Request body. Mappings and lists are JSON encoded;
                ``PipedBody`` instances, async iterables, ``bytes`` and
                ``str`` are sent as they are.
            default: Value to return on 404. If not provided (``NA``), a
                ``NotFoundError`` is raised instead.
            http_options: Per-call ``HttpOptions`` overrides.
            **kwargs: Additional keyword arguments passed to the underlying
                HTTP request (e.g., ``params``, ``headers``).

        Returns:
            For ``HEAD``, ``True`` on 200 and ``False`` otherwise. For
            200/201 responses, the decoded JSON body as a
            ``ResponseObject`` (or ``ResponseList``) whose ``response``
            attribute holds the ``httpx.Response``; the raw
            ``httpx.Response`` if it cannot be decoded. Other successful
            statuses return the raw ``httpx.Response``.

        Raises:
            NotFoundError: If the response status is 404 and no ``default``
                was provided.
            TransportError: If the response status indicates any other
                error.
            BackgroundTaskError: If ``body`` is a ``PipedBody`` whose writer
                failed.
        """
        options = self.http_options.merge(http_options)
        url = self._build_url(*parts)

        params = kwargs.pop('params', None)
        if params is not None:
            kwargs['params'] = {
                k: ('true' if v else 'false') if isinstance(v, bool) else v
                for k, v in params.items()
                if v is not None and (k not in ('refresh', 'pretty') or v)
            }

        headers = dict(kwargs.pop('headers', None) or {})
        for key, value in options.headers.items():
            headers.setdefault(key, value)
        kwargs['headers'] = headers
        kwargs.setdefault('timeout', options.timeout)

        if body is not None:
            if isinstance(body, (Mapping, list)):
                if logger.isEnabledFor(logging.DEBUG):
                    try:
                        verb_body = json.dumps(body, ensure_ascii=True)
                    except Exception:
                        verb_body = body
                    logger.debug(f"@@@>> {method} URL: {url}  ::  BODY: {verb_body}  ::  KWARGS: {kwargs}")
                body = json.dumps(body, ensure_ascii=True)
            else:
                logger.debug(f"@@@>> {method} URL: {url}  ::  BODY: <{type(body).__name__}>  ::  KWARGS: {kwargs}")
            kwargs['content'] = body
        else:
            logger.debug(f"@@@>> {method} URL: {url}  ::  KWARGS: {kwargs}")

        piped = kwargs['content'] if isinstance(kwargs.get('content'), PipedBody) else None
        try:
            res = await self.session.request(method, url, **kwargs)
        finally:
            if piped is not None:
                await piped.aclose()
        logger.debug(f"@@@RES>> {method} URL: {url}  ::  STATUS: {res.status_code}")

        try:
            result = self._process_response(method, res, default, options)
        except TransportError:
            if piped is not None:
                piped.raise_for_writer(res)
            raise
        if piped is not None:
            piped.raise_for_writer(result)
        return result

    def _process_response(self, method: str, res: httpx.Response, default: Any,
            options: HttpOptions) -> Any:
        status = res.status_code
        if status == 404:
            if method == 'HEAD':
                return False
            if default is not NA:
                return default
            raise self.NotFoundError(self._error_message(res, options),
                                     request=res.request, response=res)
        if status >= 400:
            logger.debug(f"@@@RES>> {status} :: {res.content}")
            raise TransportError(self._error_message(res, options),
                                 request=res.request, response=res)
        if method == 'HEAD':
            return status == 200
        if status not in (200, 201):
            return res

        try:
            content = json.loads(res.content, object_pairs_hook=DictObject)
        except (TypeError, ValueError) as exc:
            logger.debug(f"@@@RES>> Undecodable body: {exc}")
            return res
        if isinstance(content, dict):
            return ResponseObject(content, response=res)
        if isinstance(content, list):
            return ResponseList(content, response=res)
        return content

    @staticmethod
    def _error_message(res: httpx.Response, options: HttpOptions) -> str:
        message = f"{res.status_code} {res.reason_phrase} for {res.request.method} {res.request.url}"
        if options.throw_entire_message:
            message = f"{message} :: {res.text}"
        return message

    async def http_head(self, *parts: Any, kwargs: dict | None = None) -> bool:
        """``True`` if ``HEAD`` answers 200, ``False`` on 404 or other successes."""
        return await self._send_request('HEAD', parts, **(kwargs or {}))

    async def http_get(self, *parts: Any, kwargs: dict | None = None) -> Any:
        return await self._send_request('GET', parts, **(kwargs or {}))

    async def http_post(self, *parts: Any, body: Any = None, kwargs: dict | None = None) -> Any:
        return await self._send_request('POST', parts, body=body, **(kwargs or {}))

    async def http_put(self, *parts: Any, body: Any = None, kwargs: dict | None = None) -> Any:
        return await self._send_request('PUT', parts, body=body, **(kwargs or {}))

    async def http_delete(self, *parts: Any, kwargs: dict | None = None) -> Any:
        return await self._send_request('DELETE', parts, **(kwargs or {}))

    # Indices

    async def index_exists(self, index_names: IndexSpec, kwargs: dict | None = None) -> bool:
        return await self.http_head(index_list_str(index_names), kwargs=kwargs)

    async def index_create(self, index_name: str, mappings: Mapping | None = None,
            settings: Mapping | None = None, kwargs: dict | None = None) -> Any:
        """Create an index, optionally with mappings and settings.

        Returns:
            The response if the server acknowledged it, else ``None``.
        """
        check_index_name(index_name)
        body = {}
        if mappings:
            body['mappings'] = mappings
        if settings:
            body['settings'] = settings
        return ok(await self.http_put(index_name, body=body or None, kwargs=kwargs))

    async def index_refresh(self, index_names: IndexSpec, kwargs: dict | None = None) -> Any:
        return ok(await self.http_post(index_list_str(index_names), '_refresh', kwargs=kwargs))

    async def index_delete(self, index_names: IndexSpec, kwargs: dict | None = None) -> Any:
        """Delete indices; deleting an index that does not exist succeeds.

        Returns:
            The response if acknowledged, ``True`` if the index did not
            exist, ``None`` if ``index_names`` is empty.
        """
        if not index_names:
            return None
        try:
            return ok(await self.http_delete(index_list_str(index_names), kwargs=kwargs))
        except NotFoundError:
            return True

    async def index_settings_get(self, index_names: IndexSpec, kwargs: dict | None = None) -> Any:
        return await self.http_get(index_list_str(index_names), '_settings', kwargs=kwargs)

    async def index_settings_put(self, index_names: IndexSpec, settings: Mapping,
            kwargs: dict | None = None) -> Any:
        if not isinstance(settings, Mapping):
            return None
        return ok(await self.http_put(index_list_str(index_names), '_settings',
                                      body=settings, kwargs=kwargs))

    # Aliases

    async def alias_exists(self, alias_name: str, kwargs: dict | None = None) -> bool:
        check_index_name(alias_name, 'alias name')
        return await self.http_head('_alias', alias_name, kwargs=kwargs)

    async def alias_get(self, alias_name: str, kwargs: dict | None = None) -> list[str] | None:
        """Names of the indices ``alias_name`` points to, ``None`` if it does not exist."""
        check_index_name(alias_name, 'alias name')
        try:
            result = await self.http_get('_alias', alias_name, kwargs=kwargs)
        except NotFoundError:
            return None
        if not isinstance(result, Mapping):
            return None
        return list(result)

    async def alias_add(self, alias_name: str, index_names: IndexSpec,
            kwargs: dict | None = None) -> Any:
        check_index_name(alias_name, 'alias name')
        actions = [
            {'add': {'index': index_name, 'alias': alias_name}}
            for index_name in index_list(index_names)
        ]
        return ok(await self.http_post('_aliases', body={'actions': actions}, kwargs=kwargs))

    async def alias_remove(self, alias_name: str, index_names: IndexSpec,
            kwargs: dict | None = None) -> Any:
        check_index_name(alias_name, 'alias name')
        return ok(await self.http_delete(index_list_str(index_names), '_alias', alias_name,
                                         kwargs=kwargs))

    async def alias_delete(self, alias_name: str, kwargs: dict | None = None) -> bool:
        """Remove ``alias_name`` from every index it points to."""
        results = []
        for index_name in await self.alias_get(alias_name, kwargs=kwargs) or ():
            results.append(await self.alias_remove(alias_name, index_name, kwargs=kwargs))
        return all(results)

    # Mappings

    async def mapping_get(self, index_names: IndexSpec, kwargs: dict | None = None) -> Any:
        return await self.http_get(index_list_str(index_names), '_mapping', kwargs=kwargs)

    async def mapping_put(self, index_name: str, doc_type: str, mapping: Mapping,
            kwargs: dict | None = None) -> Any:
        """Put the mapping of ``doc_type``; only ``mapping[doc_type]`` is sent."""
        check_index_name(index_name)
        check_type(doc_type)
        body = {doc_type: mapping[doc_type]} if doc_type in mapping else {}
        return ok(await self.http_put(index_name, doc_type, '_mapping', body=body, kwargs=kwargs))

    # Documents

    async def doc_create(self, index_name: str, doc: Mapping[str, Any], stream: bool = False,
            kwargs: dict | None = None) -> Any:
        """Create a document; fails if its ``_id`` is already taken.

        The document's ``_type`` (default ``_doc``) and optional ``_id``
        come from its meta fields, which are not sent as part of it.

        Args:
            index_name: Index to create the document in.
            doc: The document.
            stream: Send the body through a ``PipedBody`` instead of
                encoding it up front.
            kwargs: Additional keyword arguments dict passed to
                ``_send_request``.
        """
        check_index_name(index_name)
        doc_type = doc_type_of(doc) or DEFAULT_DOC_TYPE
        check_type(doc_type)
        id = doc_id_of(doc)
        body = piped_json_body(doc_body(doc)) if stream else doc_body(doc)
        kwargs = dict(kwargs or {})
        if id is not None:
            check_id(id)
            kwargs['params'] = self._write_params({'op_type': 'create', **(kwargs.get('params') or {})})
            return await self._send_request('PUT', (index_name, doc_type, id), body=body, **kwargs)
        kwargs['params'] = self._write_params(kwargs.get('params'))
        return await self._send_request('POST', (index_name, doc_type), body=body, **kwargs)

    async def doc_index(self, index_name: str, doc: Mapping[str, Any], stream: bool = False,
            kwargs: dict | None = None) -> Any:
        """Create or replace the document with the ``_id`` found in ``doc``."""
        check_index_name(index_name)
        doc_type = doc_type_of(doc) or DEFAULT_DOC_TYPE
        check_type(doc_type)
        id = check_id(doc_id_of(doc))
        body = piped_json_body(doc_body(doc)) if stream else doc_body(doc)
        kwargs = dict(kwargs or {})
        kwargs['params'] = self._write_params(kwargs.get('params'))
        return await self._send_request('PUT', (index_name, doc_type, id), body=body, **kwargs)

    async def doc_get(self, index_name: str, doc_type: str, id: DocId, default: Any = NA,
            kwargs: dict | None = None) -> Any:
        """Retrieve a document.

        Raises:
            NotFoundError: If the document is not found and no ``default``
                was provided.
        """
        check_index_name(index_name)
        check_type(doc_type)
        check_id(id)
        return await self._send_request('GET', (index_name, doc_type, id), default=default,
                                        **(kwargs or {}))

    async def doc_delete(self, index_name: str, doc_type: str, id: DocId,
            kwargs: dict | None = None) -> Any:
        check_index_name(index_name)
        check_type(doc_type)
        check_id(id)
        kwargs = dict(kwargs or {})
        kwargs['params'] = self._write_params(kwargs.get('params'))
        return await self._send_request('DELETE', (index_name, doc_type, id), **kwargs)

    # Bulk

    async def _bulk(self, parts: tuple, operations: Iterable | AsyncIterable,
            params: Mapping[str, Any] | None, default_index: str | None = None,
            default_type: str | None = None, kwargs: dict | None = None,
            threaded: bool = False) -> BulkResult | Any:
        kwargs = dict(kwargs or {})
        kwargs['params'] = self._write_params(params)
        kwargs['headers'] = {'content-type': NDJSON, **(kwargs.get('headers') or {})}
        body = encode_operations(operations, default_index, default_type, threaded)
        try:
            result = await self._send_request('POST', parts, body=body, **kwargs)
        except BackgroundTaskError as exc:
            if isinstance(exc.result, Mapping):
                exc.result = BulkResult.from_response(exc.result)
            raise
        if isinstance(result, Mapping):
            return BulkResult.from_response(result)
        return result

    async def doc_bulk(self, operations: Iterable | AsyncIterable,
            params: Mapping[str, Any] | None = None, kwargs: dict | None = None,
            threaded: bool = False) -> BulkResult | Any:
        """Send ``operations`` to the cluster-wide bulk endpoint.

        Operations are encoded and streamed as they are consumed, so
        ``operations`` may be a lazy generator or an async iterable of any
        length.

        Args:
            operations: ``Operation`` instances or raw ``{action: {...}}``
                mappings.
            params: Query string parameters, e.g. ``{'refresh': True}``.
            kwargs: Additional keyword arguments dict passed to
                ``_send_request``.
            threaded: Produce the items of a sync ``operations`` iterable
                in a worker thread, for generators that block.

        Returns:
            BulkResult: Per-operation outcomes.

        Raises:
            BackgroundTaskError: If an operation could not be encoded. The
                operations before it were still sent, and their outcomes
                are in the error's ``result``.
        """
        return await self._bulk(('_bulk',), operations, params, kwargs=kwargs, threaded=threaded)

    async def doc_bulk_for_index(self, index_name: str, operations: Iterable | AsyncIterable,
            params: Mapping[str, Any] | None = None, kwargs: dict | None = None,
            threaded: bool = False) -> BulkResult | Any:
        """Like ``doc_bulk``, with ``index_name`` as the default index."""
        check_index_name(index_name)
        return await self._bulk((index_name, '_bulk'), operations, params,
                                default_index=index_name, kwargs=kwargs, threaded=threaded)

    async def doc_bulk_for_index_and_type(self, index_name: str, doc_type: str,
            operations: Iterable | AsyncIterable, params: Mapping[str, Any] | None = None,
            kwargs: dict | None = None, threaded: bool = False) -> BulkResult | Any:
        """Like ``doc_bulk``, with default index and type."""
        check_index_name(index_name)
        check_type(doc_type)
        return await self._bulk((index_name, doc_type, '_bulk'), operations, params,
                                default_index=index_name, default_type=doc_type, kwargs=kwargs,
                                threaded=threaded)

    # Multi-get

    @staticmethod
    def _mget_body(docs: Iterable[Any]) -> dict:
        docs = list(docs)
        if docs and not any(isinstance(doc, Mapping) for doc in docs):
            return {'ids': [check_id(id) for id in docs]}
        return {'docs': [dict(doc) for doc in docs]}

    async def mget(self, docs: Iterable[Mapping[str, Any]], kwargs: dict | None = None) -> Any:
        return await self.http_post('_mget', body=self._mget_body(docs), kwargs=kwargs)

    async def mget_for_index(self, index_name: str, docs: Iterable[Any],
            kwargs: dict | None = None) -> Any:
        check_index_name(index_name)
        return await self.http_post(index_name, '_mget', body=self._mget_body(docs), kwargs=kwargs)

    async def mget_for_index_and_type(self, index_name: str, doc_type: str, docs: Iterable[Any],
            kwargs: dict | None = None) -> Any:
        """Multi-get; ``docs`` may be mappings or bare document ids."""
        check_index_name(index_name)
        check_type(doc_type)
        return await self.http_post(index_name, doc_type, '_mget', body=self._mget_body(docs),
                                    kwargs=kwargs)

    # Multi-search

    async def _msearch(self, parts: tuple, queries: Iterable | AsyncIterable,
            default_index: str | None = None, default_type: str | None = None,
            kwargs: dict | None = None, threaded: bool = False) -> Any:
        kwargs = dict(kwargs or {})
        kwargs['headers'] = {'content-type': NDJSON, **(kwargs.get('headers') or {})}
        body = encode_queries(queries, default_index, default_type, threaded)
        return await self._send_request('POST', parts, body=body, **kwargs)

    async def msearch(self, queries: Iterable | AsyncIterable, kwargs: dict | None = None,
            threaded: bool = False) -> Any:
        """Run several searches in one streamed request.

        Args:
            queries: ``(header, body)`` pairs from ``bulk_queries``, or the
                plain request mappings (``index``/``type`` keys go to the
                header).
            kwargs: Additional keyword arguments dict passed to
                ``_send_request``.
            threaded: As in ``doc_bulk``.

        Returns:
            The decoded response, whose ``responses`` list holds one search
            response per query, in order.
        """
        return await self._msearch(('_msearch',), queries, kwargs=kwargs, threaded=threaded)

    async def msearch_for_index(self, index_name: str, queries: Iterable | AsyncIterable,
            kwargs: dict | None = None, threaded: bool = False) -> Any:
        check_index_name(index_name)
        return await self._msearch((index_name, '_msearch'), queries,
                                   default_index=index_name, kwargs=kwargs, threaded=threaded)

    async def msearch_for_index_and_type(self, index_name: str, doc_type: str,
            queries: Iterable | AsyncIterable, kwargs: dict | None = None,
            threaded: bool = False) -> Any:
        check_index_name(index_name)
        check_type(doc_type)
        return await self._msearch((index_name, doc_type, '_msearch'), queries,
                                   default_index=index_name, default_type=doc_type,
                                   kwargs=kwargs, threaded=threaded)

    # Search

    async def search_once(self, index_names: IndexSpec, query: Mapping | None = None,
            kwargs: dict | None = None, **options) -> Any:
        """Run one search request and return its response.

        Args:
            index_names: Index name(s) to search.
            query: Query DSL clause, sent as the body's ``query``.
            kwargs: Additional keyword arguments dict passed to
                ``_send_request``.
            **options: Search body options (``size``, ``fields``,
                ``sort``...). ``from_`` is sent as ``from``, and
                ``search_type`` goes to the query string.

        Returns:
            ResponseObject: The search response.
        """
        names = index_list_str(index_names)
        kwargs = dict(kwargs or {})
        params = dict(kwargs.get('params') or {})
        search_type = options.pop('search_type', None)
        if search_type is not None:
            params['search_type'] = search_type
        kwargs['params'] = params
        if 'from_' in options:
            options['from'] = options.pop('from_')
        body = {k: v for k, v in options.items() if v is not None}
        if query is not None:
            body = {'query': query, **body}
        return await self._send_request('POST', (names, '_search'), body=body, **kwargs)

    def search(self, index_names: IndexSpec, query: Mapping | None = None,
            size: int = DEFAULT_SIZE, from_: int = 0, max_window: int = DEFAULT_MAX_WINDOW,
            kwargs: dict | None = None, **options) -> SearchPages:
        """Lazily page through every result of ``query``.

        Nothing is sent until the returned ``SearchPages`` is iterated.
        Each page is requested with ``from`` advanced by the number of hits
        the previous pages returned, until a page comes back empty or
        ``from`` reaches ``max_window``. No request asks for hits past
        ``max_window``; the last window is shrunk to fit.

        Args:
            index_names: Index name(s) to search.
            query: Query DSL clause.
            size: Page window size.
            from_: Offset of the first page.
            max_window: The index's ``index.max_result_window``.
            kwargs: Additional keyword arguments dict passed to
                ``_send_request``.
            **options: Search body options, as in ``search_once``.

        Returns:
            SearchPages: Async iterable of search responses.

        Raises:
            ValidationError: If the index names, ``size``, ``from_`` or
                ``max_window`` are invalid.
        """
        names = index_list_str(index_names)

        async def fetch(offset: int, window: int) -> Any:
            return await self.search_once(names, query, kwargs=kwargs,
                                          from_=offset, size=window, **options)

        return SearchPages(fetch, size=size, from_=from_, max_window=max_window)

    async def search_count(self, index_names: IndexSpec, query: Mapping | None = None,
            kwargs: dict | None = None, **options) -> int | None:
        """Number of documents matching ``query``, from a single request."""
        options.pop('from_', None)
        options['size'] = 0
        return search_total(await self.search_once(index_names, query, kwargs=kwargs, **options))


client = Elasticsearch(host=ELASTICSEARCH_HOST, port=ELASTICSEARCH_PORT, refresh=ELASTICSEARCH_REFRESH)
