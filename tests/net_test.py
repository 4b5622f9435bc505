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

"""Tests for typeskit.net module."""

from __future__ import annotations

import httpx
import pytest
from typeskit.errors import E, TypesKitError
from typeskit.logging import configure_logging
from typeskit.net import request_with_retry

configure_logging(quiet=True)


def _client(statuses: list[int]) -> tuple[httpx.AsyncClient, list[str]]:
    """Return a client answering with ``statuses`` in order, and its request log."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(statuses[min(len(seen), len(statuses)) - 1])

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


class TestRequestWithRetry:
    """Tests for request_with_retry()."""

    @pytest.mark.asyncio
    async def test_successful_request(self) -> None:
        """A 200 is returned immediately."""
        client, seen = _client([200])
        async with client:
            response = await request_with_retry(client, 'GET', 'https://registry.test/lodash')
        assert response.status_code == 200
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_404_not_retried(self) -> None:
        """404 is not in RETRYABLE_STATUS_CODES."""
        client, seen = _client([404])
        async with client:
            response = await request_with_retry(client, 'GET', 'https://registry.test/nope', max_retries=3)
        assert response.status_code == 404
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self) -> None:
        """5xx and 429 are retried until a good answer arrives."""
        client, seen = _client([503, 429, 200])
        async with client:
            response = await request_with_retry(client, 'GET', 'https://registry.test/lodash', backoff_base=0)
        assert response.status_code == 200
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_gives_up(self) -> None:
        """Exhausted retries raise TK-REGISTRY-UNAVAILABLE."""
        client, seen = _client([502])
        async with client:
            with pytest.raises(TypesKitError) as exc_info:
                await request_with_retry(client, 'GET', 'https://registry.test/lodash', max_retries=2, backoff_base=0)
        assert exc_info.value.code == E.REGISTRY_UNAVAILABLE
        assert 'HTTP 502' in str(exc_info.value)
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        """Connection errors are retried like transient statuses."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TypesKitError) as exc_info:
                await request_with_retry(client, 'GET', 'https://registry.test/x', max_retries=1, backoff_base=0)
        assert 'connection refused' in str(exc_info.value)
