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

"""Companion range computation.

Companion packages are versioned independently of the library they
describe, so only the library's major version carries a compatibility
signal. The companion range is therefore always ``^<major>``::

    lodash@^4.17.21        → ^4
    react@18.2             → ^18
    next@npm:latest        → resolver says 14.1.0 → ^14
    left-pad@git:repo#main → resolver fails       → failed (no companion)
    @types/node@^20        → skipped (already a companion)

Resolver problems never escape this module: they come back as a
:class:`RangeResult` with outcome ``failed`` and a reason, and the caller
decides what to do with it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from typeskit.backends import Resolver
from typeskit.companion import DEFAULT_COMPANION_SCOPE, is_companion
from typeskit.logging import get_logger
from typeskit.semver import coerce, is_valid_range
from typeskit.structs import Descriptor, parse_range

log = get_logger('typeskit.ranges')


class Outcome(str, Enum):
    """Result of a reconciliation step."""

    OK = 'ok'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass(frozen=True)
class RangeResult:
    """Outcome of :func:`resolve_companion_range`.

    Attributes:
        outcome: ``ok`` with a range, or why there is none.
        range: The caret range, set only when ``outcome`` is ``ok``.
        reason: Human-readable explanation for ``skipped``/``failed``.
    """

    outcome: Outcome
    range: str | None = None
    reason: str = ''

    @property
    def ok(self) -> bool:
        """Whether a range was produced."""
        return self.outcome is Outcome.OK


async def resolve_companion_range(
    descriptor: Descriptor,
    resolver: Resolver,
    *,
    scope: str = DEFAULT_COMPANION_SCOPE,
) -> RangeResult:
    """Compute the companion range for ``descriptor``.

    When the descriptor's selector is not a semver range (a dist-tag
    like ``latest``, an alias, a URL), the resolver is asked for
    candidates and the first one's version is used instead.

    Args:
        descriptor: The dependency that was just added.
        resolver: Used only for non-semver selectors.
        scope: The companion scope; descriptors already in it are skipped.

    Returns:
        A :class:`RangeResult`. Never raises for resolver failures.
    """
    if is_companion(descriptor.ident, scope=scope):
        return RangeResult(Outcome.SKIPPED, reason=f'{descriptor.ident} is already a companion package')

    selector = parse_range(descriptor.range).selector
    if not is_valid_range(selector):
        try:
            candidates = await resolver.get_candidates(descriptor)
        except Exception as exc:  # noqa: BLE001 - any resolver failure means "no companion"
            log.debug('companion_range_resolution_failed', descriptor=str(descriptor), error=str(exc))
            return RangeResult(Outcome.FAILED, reason=f'could not resolve {descriptor}: {exc}')
        if not candidates:
            log.debug('companion_range_no_candidates', descriptor=str(descriptor))
            return RangeResult(Outcome.FAILED, reason=f'no candidates for {descriptor}')
        selector = parse_range(candidates[0].reference).selector

    version = coerce(selector)
    if version is None:
        log.debug('companion_range_not_coercible', descriptor=str(descriptor), selector=selector)
        return RangeResult(Outcome.FAILED, reason=f'{selector!r} does not contain a version')

    return RangeResult(Outcome.OK, range=f'^{version.major}')


__all__ = [
    'Outcome',
    'RangeResult',
    'resolve_companion_range',
]
