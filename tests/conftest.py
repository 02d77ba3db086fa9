"""Shared fixtures: an in-memory Elasticsearch served through httpx.MockTransport."""
from __future__ import annotations

import json
import itertools
from urllib.parse import unquote

import httpx
import pytest

from esclient import Elasticsearch


def _flatten_settings(settings):
    settings = dict(settings or {})
    settings.update(settings.pop('index', None) or {})
    return {k: str(v) for k, v in settings.items()}


def _matches(query, doc_id, source):
    if not query or 'match_all' in query:
        return True
    if 'term' in query:
        (field, value), = query['term'].items()
        return source.get(field) == value
    if 'terms' in query:
        clause = {k: v for k, v in query['terms'].items() if k != 'execution'}
        (field, values), = clause.items()
        return source.get(field) in values
    if 'match' in query:
        (field, value), = query['match'].items()
        return str(value).lower() in str(source.get(field, '')).lower().split()
    if 'ids' in query:
        return doc_id in [str(v) for v in query['ids']['values']]
    if 'bool' in query:
        clause = query['bool']
        return (all(_matches(q, doc_id, source) for q in clause.get('must', ()))
                and (not clause.get('should') or any(_matches(q, doc_id, source) for q in clause['should']))
                and not any(_matches(q, doc_id, source) for q in clause.get('must_not', ())))
    raise ValueError(f"Unsupported query: {query!r}")


class FakeElasticsearch:
    """Just enough of the Elasticsearch REST API for the client tests.

    Documents become visible immediately, so ``refresh`` is accepted and
    ignored. Every request is recorded in ``requests``.
    """

    def __init__(self):
        self.indices = {}
        self.requests = []
        self.ids = itertools.count(1)
        self.max_result_window = 10000

    def __call__(self, request: httpx.Request) -> httpx.Response:
        parts = [unquote(p) for p in request.url.raw_path.decode().split('?')[0].split('/') if p]
        content = request.content
        self.requests.append({
            'method': request.method,
            'parts': parts,
            'params': dict(request.url.params),
            'headers': request.headers,
            'content': content,
        })
        body = None
        if content and not request.headers.get('content-type', '').startswith('application/x-ndjson'):
            body = json.loads(content)
        return self.route(request.method, parts, dict(request.url.params), body, content)

    # helpers

    def _json(self, status, data=None):
        return httpx.Response(status, json=data if data is not None else {})

    def _missing(self, names):
        return [name for name in names if name not in self.indices]

    def _resolve(self, expression):
        names = []
        for name in expression.split(','):
            if name in self.indices:
                names.append(name)
            else:
                names.extend(n for n, idx in self.indices.items() if name in idx['aliases'])
        return names

    def _not_found(self, what):
        return self._json(404, {'error': {'type': 'index_not_found_exception', 'reason': what}, 'status': 404})

    def _hit(self, index, doc_type, doc_id, source):
        return {'_index': index, '_type': doc_type, '_id': doc_id, '_score': 1.0, '_source': source}

    def _write(self, index, doc_type, doc_id, source, create=False):
        idx = self.indices.setdefault(index, {'settings': {}, 'aliases': set(), 'mappings': {}, 'docs': {}})
        if doc_id is None:
            doc_id = f'auto{next(self.ids)}'
        doc_id = str(doc_id)
        existing = idx['docs'].get(doc_id)
        if create and existing is not None:
            return 409, {'_index': index, '_type': doc_type, '_id': doc_id,
                         'error': {'type': 'version_conflict_engine_exception'}}
        version = existing[2] + 1 if existing else 1
        idx['docs'][doc_id] = (doc_type, source, version)
        return (200 if existing else 201), {
            '_index': index, '_type': doc_type, '_id': doc_id, '_version': version,
            'result': 'updated' if existing else 'created',
            '_shards': {'total': 1, 'successful': 1, 'failed': 0},
        }

    def _delete(self, index, doc_type, doc_id):
        idx = self.indices.get(index)
        doc_id = str(doc_id)
        if idx is None or doc_id not in idx['docs']:
            return 404, {'_index': index, '_type': doc_type, '_id': doc_id, 'result': 'not_found'}
        del idx['docs'][doc_id]
        return 200, {'_index': index, '_type': doc_type, '_id': doc_id, 'result': 'deleted'}

    def _window_error(self, body):
        body = body or {}
        end = body.get('from', 0) + body.get('size', 10)
        if end > self.max_result_window:
            return {'error': {'type': 'illegal_argument_exception',
                              'reason': f'Result window is too large, from + size must be less than or equal '
                                        f'to: [{self.max_result_window}] but was [{end}].'},
                    'status': 400}
        return None

    def _search(self, names, body):
        body = body or {}
        hits = [
            self._hit(name, doc_type, doc_id, source)
            for name in names
            for doc_id, (doc_type, source, _) in self.indices[name]['docs'].items()
            if _matches(body.get('query'), doc_id, source)
        ]
        start = body.get('from', 0)
        size = body.get('size', 10)
        page = hits[start:start + size]
        if body.get('fields'):
            for hit in page:
                source = hit.pop('_source')
                hit['fields'] = {f: source[f] for f in body['fields'] if f in source}
        return {'took': 1, 'timed_out': False,
                'hits': {'total': {'value': len(hits), 'relation': 'eq'}, 'max_score': 1.0, 'hits': page}}

    def _bulk(self, default_index, default_type, content):
        lines = [json.loads(line) for line in content.decode().splitlines() if line]
        items = []
        errors = False
        while lines:
            (action, meta), = lines.pop(0).items()
            index = meta.get('_index', default_index)
            doc_type = meta.get('_type', default_type or '_doc')
            doc_id = meta.get('_id')
            if action == 'delete':
                status, outcome = self._delete(index, doc_type, doc_id)
            else:
                source = lines.pop(0)
                if action == 'update':
                    existing = self.indices.get(index, {}).get('docs', {}).get(str(doc_id))
                    if existing is None:
                        status, outcome = 404, {'_index': index, '_type': doc_type, '_id': doc_id,
                                                'error': {'type': 'document_missing_exception'}}
                    else:
                        status, outcome = self._write(index, doc_type, doc_id,
                                                      {**existing[1], **source.get('doc', {})})
                else:
                    status, outcome = self._write(index, doc_type, doc_id, source,
                                                  create=action == 'create')
            outcome['status'] = status
            errors = errors or 'error' in outcome
            items.append({action: outcome})
        return {'took': 1, 'errors': errors, 'items': items}

    # routing

    def route(self, method, parts, params, body, content):
        head, *rest = parts or ['']

        if head == '_bulk':
            return self._json(200, self._bulk(None, None, content))
        if head == '_aliases':
            for action in body['actions']:
                (kind, target), = action.items()
                aliases = self.indices[target['index']]['aliases']
                if kind == 'add':
                    aliases.add(target['alias'])
                else:
                    aliases.discard(target['alias'])
            return self._json(200, {'acknowledged': True})
        if head == '_alias':
            name = rest[0]
            owners = [n for n, idx in self.indices.items() if name in idx['aliases']]
            if method == 'HEAD':
                return httpx.Response(200 if owners else 404)
            if not owners:
                return self._json(404, {'error': f'alias [{name}] missing', 'status': 404})
            return self._json(200, {n: {'aliases': {name: {}}} for n in owners})
        if head in ('_mget', '_msearch'):
            return self.route(method, [None, head], params, body, content)

        names = head.split(',') if head else []
        if not rest:
            if method == 'HEAD':
                return httpx.Response(404 if self._missing(names) else 200)
            if method == 'PUT':
                if head in self.indices:
                    return self._json(400, {'error': {'type': 'resource_already_exists_exception'}})
                body = body or {}
                self.indices[head] = {'settings': _flatten_settings(body.get('settings')),
                                      'aliases': set(), 'mappings': body.get('mappings') or {},
                                      'docs': {}}
                return self._json(200, {'acknowledged': True, 'index': head})
            if method == 'DELETE':
                if self._missing(names):
                    return self._not_found(head)
                for name in names:
                    del self.indices[name]
                return self._json(200, {'acknowledged': True})

        verb = rest[-1] if rest else None
        if verb in ('_bulk', '_mget', '_msearch'):
            default_index = head
            default_type = rest[0] if len(rest) == 2 else None
            if verb == '_bulk':
                return self._json(200, self._bulk(default_index, default_type, content))
            if verb == '_mget':
                entries = body.get('docs') or [{'_id': i} for i in body.get('ids', ())]
                docs = []
                for entry in entries:
                    index = entry.get('_index', default_index)
                    doc_id = str(entry['_id'])
                    found = self.indices.get(index, {}).get('docs', {}).get(doc_id)
                    if found is None:
                        docs.append({'_index': index, '_id': doc_id, 'found': False})
                    else:
                        docs.append({'_index': index, '_type': found[0], '_id': doc_id,
                                     '_version': found[2], 'found': True, '_source': found[1]})
                return self._json(200, {'docs': docs})
            lines = [json.loads(line) for line in content.decode().splitlines() if line]
            responses = []
            for header, query in zip(lines[::2], lines[1::2]):
                index = header.get('index', default_index)
                responses.append(self._window_error(query) or self._search(self._resolve(index), query))
            return self._json(200, {'responses': responses})

        if verb == '_refresh':
            if self._missing(names):
                return self._not_found(head)
            return self._json(200, {'_shards': {'total': len(names), 'successful': len(names), 'failed': 0}})
        if verb == '_settings':
            if self._missing(names):
                return self._not_found(head)
            if method == 'PUT':
                for name in names:
                    self.indices[name]['settings'].update(_flatten_settings(body))
                return self._json(200, {'acknowledged': True})
            return self._json(200, {n: {'settings': {'index': dict(self.indices[n]['settings'])}}
                                    for n in names})
        if verb == '_mapping':
            if method == 'PUT':
                self.indices[head]['mappings'].update(body)
                return self._json(200, {'acknowledged': True})
            return self._json(200, {n: {'mappings': self.indices[n]['mappings']} for n in names})
        if len(rest) == 2 and rest[0] == '_alias':
            for name in names:
                self.indices[name]['aliases'].discard(rest[1])
            return self._json(200, {'acknowledged': True})
        if verb == '_search':
            resolved = self._resolve(head)
            if not resolved:
                return self._not_found(head)
            error = self._window_error(body)
            if error:
                return self._json(400, error)
            return self._json(200, self._search(resolved, body))

        if len(rest) == 1 and method == 'POST':
            status, outcome = self._write(head, rest[0], None, body)
            return self._json(status, outcome)
        if len(rest) == 2:
            doc_type, doc_id = rest
            if method == 'PUT':
                status, outcome = self._write(head, doc_type, doc_id, body,
                                              create=params.get('op_type') == 'create')
                return self._json(status, outcome)
            if method == 'DELETE':
                status, outcome = self._delete(head, doc_type, doc_id)
                return self._json(status, outcome)
            if method == 'GET':
                found = self.indices.get(head, {}).get('docs', {}).get(doc_id)
                if found is None:
                    return self._json(404, {'_index': head, '_type': doc_type, '_id': doc_id, 'found': False})
                return self._json(200, {'_index': head, '_type': found[0], '_id': doc_id,
                                        '_version': found[2], 'found': True, '_source': found[1]})

        return self._json(400, {'error': f'No handler for {method} /{"/".join(parts)}'})


@pytest.fixture
def fake_es():
    return FakeElasticsearch()


@pytest.fixture
async def es(fake_es):
    session = httpx.AsyncClient(transport=httpx.MockTransport(fake_es))
    yield Elasticsearch(host='localhost', port=9200, session=session)
    await session.aclose()
