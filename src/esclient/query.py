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
"""Small helpers building query DSL clauses.

    >>> bool_(must=[term('subject', 'subject')], must_not=[ids(['a'])])
    {'bool': {'must': [{'term': {'subject': 'subject'}}], 'must_not': [{'ids': {'values': ['a']}}]}}
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .exceptions import ValidationError

TERMS_EXECUTIONS = ('plain', 'bool', 'and', 'or')


def _require(condition: Any, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def term(field: str, value: Any) -> dict:
    _require(field and value is not None, "term requires a field and a value")
    return {'term': {field: value}}


def terms(field: str, values: Sequence[Any], execution: str | None = None) -> dict:
    _require(field, "terms requires a field")
    clause = {field: list(values)}
    if execution is not None:
        _require(execution in TERMS_EXECUTIONS, f"Invalid terms execution: {execution!r}")
        clause['execution'] = execution
    return {'terms': clause}


def match(field: str, query: Any) -> dict:
    _require(field and query is not None, "match requires a field and a query")
    return {'match': {field: query}}


def match_all() -> dict:
    return {'match_all': {}}


def bool_(must: Sequence[dict] | None = None, should: Sequence[dict] | None = None,
        must_not: Sequence[dict] | None = None) -> dict:
    """``bool`` query; at least one of the clause lists must be non-empty."""
    _require(must or should or must_not, "bool requires at least one clause")
    clause = {}
    if must:
        clause['must'] = list(must)
    if should:
        clause['should'] = list(should)
    if must_not:
        clause['must_not'] = list(must_not)
    return {'bool': clause}


def filtered(query: dict, filter: dict) -> dict:
    _require(query and filter, "filtered requires a query and a filter")
    return {'filtered': {'query': query, 'filter': filter}}


def range_(field: str, lt: Any = None, lte: Any = None, gt: Any = None, gte: Any = None) -> dict:
    bounds = {k: v for k, v in (('lt', lt), ('lte', lte), ('gt', gt), ('gte', gte)) if v is not None}
    _require(field and bounds, "range requires a field and at least one bound")
    return {'range': {field: bounds}}


def ids(values: Sequence[Any]) -> dict:
    _require(values, "ids requires at least one id")
    return {'ids': {'values': list(values)}}


def not_(filter: dict) -> dict:
    return {'not': filter}
