# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""HTTP utilities for typeskit.

Provides a managed :class:`httpx.AsyncClient` with connection pooling
and a retrying request helper with exponential backoff.

Used by :mod:`typeskit.backends.registry` to fetch packuments.

Usage::

    from typeskit.net import http_client, request_with_retry

    async with http_client(timeout=10) as client:
        response = await request_with_retry(client, 'GET', 'https://registry.npmjs.org/lodash')
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Final

import httpx

from typeskit.errors import E, TypesKitError
from typeskit.logging import get_logger

log = get_logger('typeskit.net')

DEFAULT_POOL_SIZE: Final[int] = 10
DEFAULT_TIMEOUT: Final[float] = 30.0

MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_BASE: Final[float] = 1.0

# Rate limiting and transient server errors.
RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    headers: dict[str, str] | None = None,
) -> AsyncGenerator[httpx.AsyncClient]:
    """Create a managed async HTTP client with connection pooling.

    Args:
        pool_size: Maximum number of connections in the pool.
        timeout: Request timeout in seconds.
        headers: Optional default headers.

    Yields:
        An :class:`httpx.AsyncClient` instance.
    """
    limits = httpx.Limits(
        max_connections=pool_size,
        max_keepalive_connections=pool_size,
    )
    async with httpx.AsyncClient(
        limits=limits,
        timeout=httpx.Timeout(timeout),
        headers=headers or {},
        follow_redirects=True,
    ) as client:
        yield client


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = RETRY_BACKOFF_BASE,
    **kwargs: object,
) -> httpx.Response:
    """Make an HTTP request, retrying transient failures.

    Retries on 429, 5xx, connection errors, and timeouts, sleeping
    ``backoff_base * 2**attempt`` seconds between attempts.

    Returns:
        The first non-retryable :class:`httpx.Response`. A 404 is a
        normal response here; callers decide what it means.

    Raises:
        TypesKitError: ``TK-REGISTRY-UNAVAILABLE`` once every attempt
            has failed.
    """
    last_error = ''

    for attempt in range(max_retries + 1):
        delay = backoff_base * (2**attempt)
        try:
            response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            last_error = str(exc) or type(exc).__name__
            log.warning('http_retry_error', url=url, error=last_error, attempt=attempt + 1, delay=delay)
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response
            last_error = f'HTTP {response.status_code}'
            log.warning('http_retry', url=url, status=response.status_code, attempt=attempt + 1, delay=delay)

        if attempt < max_retries:
            await asyncio.sleep(delay)

    raise TypesKitError(
        code=E.REGISTRY_UNAVAILABLE,
        message=f'{method} {url} failed after {max_retries + 1} attempts: {last_error}',
        hint='Check network access to the registry, or set "registry" in typeskit.toml.',
    )


__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'RETRYABLE_STATUS_CODES',
    'http_client',
    'request_with_retry',
]
