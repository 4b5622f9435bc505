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

"""Tests for typeskit.ranges."""

from __future__ import annotations

import pytest
from typeskit.ranges import Outcome, resolve_companion_range
from typeskit.structs import parse_descriptor

from tests._fakes import FakeResolver


class TestResolveCompanionRange:
    """Tests for resolve_companion_range()."""

    @pytest.mark.asyncio()
    async def test_semver_range_uses_major(self) -> None:
        """A semver range is coerced directly without asking the resolver."""
        resolver = FakeResolver()
        result = await resolve_companion_range(parse_descriptor('foo@^4.2.1'), resolver)
        assert result.outcome is Outcome.OK
        assert result.range == '^4'
        assert resolver.calls == []

    @pytest.mark.asyncio()
    async def test_npm_protocol_range(self) -> None:
        """The protocol prefix is ignored."""
        result = await resolve_companion_range(parse_descriptor('foo@npm:~2.1.0'), FakeResolver())
        assert result.range == '^2'

    @pytest.mark.asyncio()
    async def test_partial_version(self) -> None:
        """Partial versions coerce leniently."""
        result = await resolve_companion_range(parse_descriptor('foo@18.2'), FakeResolver())
        assert result.range == '^18'

    @pytest.mark.asyncio()
    async def test_tag_goes_through_resolver(self) -> None:
        """A dist-tag is turned into the first candidate's version."""
        resolver = FakeResolver({'next': ['14.1.0', '13.5.6']}, tags={'next': {'latest': '14.1.0'}})
        result = await resolve_companion_range(parse_descriptor('next@latest'), resolver)
        assert result.outcome is Outcome.OK
        assert result.range == '^14'
        assert [str(c) for c in resolver.calls] == ['next@latest']

    @pytest.mark.asyncio()
    async def test_companion_scope_skipped(self) -> None:
        """Companions never get companions."""
        result = await resolve_companion_range(parse_descriptor('@types/node@^20.0.0'), FakeResolver())
        assert result.outcome is Outcome.SKIPPED
        assert result.range is None

    @pytest.mark.asyncio()
    async def test_resolver_failure_is_not_raised(self) -> None:
        """Resolver exceptions become a failed outcome."""
        resolver = FakeResolver(failing={'foo'})
        result = await resolve_companion_range(parse_descriptor('foo@beta'), resolver)
        assert result.outcome is Outcome.FAILED
        assert 'connection refused' in result.reason

    @pytest.mark.asyncio()
    async def test_no_candidates(self) -> None:
        """An unknown tag yields a failed outcome."""
        result = await resolve_companion_range(parse_descriptor('foo@canary'), FakeResolver({'foo': ['1.0.0']}))
        assert result.outcome is Outcome.FAILED

    @pytest.mark.asyncio()
    async def test_wildcard_not_coercible(self) -> None:
        """'*' is a valid range with no version in it."""
        result = await resolve_companion_range(parse_descriptor('foo@*'), FakeResolver())
        assert result.outcome is Outcome.FAILED
        assert not result.ok
