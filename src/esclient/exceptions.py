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
"""Exceptions raised by the Elasticsearch client.

``TransportError`` is an ``httpx.HTTPStatusError``, so callers already
handling httpx status errors keep working. ``NotFoundError`` additionally
inherits from Django's ``ObjectDoesNotExist`` when Django is available.
"""
from __future__ import annotations

import httpx

try:
    from django.core.exceptions import ObjectDoesNotExist
except ImportError:
    ObjectDoesNotExist = Exception


class ValidationError(ValueError):
    """Raised when an index name, type name or document id is invalid.

    Always raised at the call boundary, before any request is sent.
    """


class EncodingError(ValueError):
    """Raised when a bulk operation cannot be encoded.

    Operations written before the failing one have already been sent.
    """


class BackgroundTaskError(RuntimeError):
    """Raised after a request whose piped body writer failed.

    The writer's exception is available as ``__cause__``; whatever the
    request produced from the truncated body is kept in ``result``.
    """

    def __init__(self, *args, result=None):
        super().__init__(*args)
        self.result = result


class TransportError(httpx.HTTPStatusError):
    """Raised when the server answers with an error status."""

    @property
    def status_code(self) -> int:
        return self.response.status_code


class NotFoundError(TransportError, ObjectDoesNotExist):
    """Raised when the server answers 404.

    Inherits from Django's ``ObjectDoesNotExist`` when Django is available.
    """
