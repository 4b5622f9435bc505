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

"""npm-flavored semver helpers.

Only the pieces typeskit needs, following the node ``semver`` package's
behavior:

- :func:`coerce`: lenient "find a version in this string" used to turn
  ``4.2``, ``v4``, or ``4.2.1-beta.3`` into a concrete version.
- :func:`is_valid_range`: whether a selector is a semver range at all
  (``^1.2.0``, ``1.x || >=3``) or something else such as a dist-tag
  (``latest``, ``next``).
- :func:`satisfies`: whether a version matches a range. Used to decide if
  a plain range points at a local workspace and to filter registry
  versions.

Range desugaring::

    ^1.2.3       → >=1.2.3 <2.0.0-0
    ^0.2.3       → >=0.2.3 <0.3.0-0
    ~1.2.3       → >=1.2.3 <1.3.0-0
    1.x          → >=1.0.0 <2.0.0-0
    1.2 - 2.3    → >=1.2.0 <2.4.0-0
    <=1.2        → <1.3.0-0

Pre-release versions only satisfy a comparator set when one of its
comparators names a pre-release on the same ``major.minor.patch``.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

_NUM = r'0|[1-9]\d*'
_VERSION_RE = re.compile(
    rf'^v?({_NUM})\.({_NUM})\.({_NUM})'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$'
)
_COERCE_RE = re.compile(r'(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])')
_XR = r'\*|[xX]|\d+'
_PARTIAL_RE = re.compile(
    rf'^v?({_XR})(?:\.({_XR})(?:\.({_XR})'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?)?)?$'
)
_COMPARATOR_RE = re.compile(r'^(<=|>=|<|>|=|~>|~|\^)?(.*)$')
_HYPHEN_RE = re.compile(r'^\s*(\S+)\s+-\s+(\S+)\s*$')
_OPERATOR_SPACE_RE = re.compile(r'(<=|>=|<|>|=|~>|~|\^)\s+')


@dataclass(frozen=True)
class Version:
    """A parsed ``major.minor.patch[-prerelease]`` version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        """Return the canonical version string."""
        base = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            return f'{base}-{".".join(self.prerelease)}'
        return base

    @property
    def release(self) -> tuple[int, int, int]:
        """The ``(major, minor, patch)`` triple."""
        return (self.major, self.minor, self.patch)


# A comparator is an operator paired with a version; a comparator set is
# a conjunction; a range is a disjunction of comparator sets.
Comparator = tuple[str, Version]

_FLOOR = Version(0, 0, 0, ('0',))


def _compare_identifiers(a: str, b: str) -> int:
    """Compare two pre-release identifiers."""
    a_num, b_num = a.isdigit(), b.isdigit()
    if a_num and b_num:
        return (int(a) > int(b)) - (int(a) < int(b))
    if a_num:
        return -1
    if b_num:
        return 1
    return (a > b) - (a < b)


def compare(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 following semver precedence."""
    if a.release != b.release:
        return -1 if a.release < b.release else 1
    if not a.prerelease and not b.prerelease:
        return 0
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1
    for left, right in zip(a.prerelease, b.prerelease):
        result = _compare_identifiers(left, right)
        if result:
            return result
    return (len(a.prerelease) > len(b.prerelease)) - (len(a.prerelease) < len(b.prerelease))


version_key = functools.cmp_to_key(compare)


def parse_version(text: str) -> Version | None:
    """Parse a strict version string, or return ``None``."""
    match = _VERSION_RE.match(text.strip())
    if not match:
        return None
    major, minor, patch, pre = match.groups()
    return Version(int(major), int(minor), int(patch), tuple(pre.split('.')) if pre else ())


def coerce(text: str) -> Version | None:
    """Find the first version-looking run of digits in ``text``.

    Missing minor/patch components default to ``0`` and pre-release or
    build metadata is dropped, so ``"v4.2"`` becomes ``4.2.0`` and
    ``"^1.2.3-beta.1"`` becomes ``1.2.3``. Returns ``None`` when
    ``text`` contains no digits at all.
    """
    match = _COERCE_RE.search(text)
    if not match:
        return None
    major, minor, patch = match.groups()
    return Version(int(major), int(minor or 0), int(patch or 0))


def _xr(value: str | None) -> int | None:
    """Convert an x-range component to an int, ``None`` meaning wildcard."""
    if value is None or value in ('*', 'x', 'X'):
        return None
    return int(value)


def _upper(major: int, minor: int = 0, patch: int = 0) -> Comparator:
    """Exclusive upper bound that also excludes pre-releases of the bound."""
    return ('<', Version(major, minor, patch, ('0',)))


def _desugar(op: str, partial: str) -> list[Comparator] | None:
    """Turn one comparator token into primitive comparators."""
    match = _PARTIAL_RE.match(partial)
    if not match:
        return None
    major, minor, patch = _xr(match.group(1)), _xr(match.group(2)), _xr(match.group(3))
    pre = tuple(match.group(4).split('.')) if match.group(4) else ()
    # A wildcard swallows everything after it: "1.x.3" means "1.x".
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None

    if op == '^':
        if major is None:
            return []
        if minor is None:
            return [('>=', Version(major, 0, 0)), _upper(major + 1)]
        if patch is None:
            if major == 0:
                return [('>=', Version(0, minor, 0)), _upper(0, minor + 1)]
            return [('>=', Version(major, minor, 0)), _upper(major + 1)]
        lower = ('>=', Version(major, minor, patch, pre))
        if major:
            return [lower, _upper(major + 1)]
        if minor:
            return [lower, _upper(0, minor + 1)]
        return [lower, _upper(0, 0, patch + 1)]

    if op in ('~', '~>'):
        if major is None:
            return []
        if minor is None:
            return [('>=', Version(major, 0, 0)), _upper(major + 1)]
        if patch is None:
            return [('>=', Version(major, minor, 0)), _upper(major, minor + 1)]
        return [('>=', Version(major, minor, patch, pre)), _upper(major, minor + 1)]

    if op in ('', '='):
        if major is None:
            return []
        if minor is None:
            return [('>=', Version(major, 0, 0)), _upper(major + 1)]
        if patch is None:
            return [('>=', Version(major, minor, 0)), _upper(major, minor + 1)]
        return [('=', Version(major, minor, patch, pre))]

    if op == '>':
        if major is None:
            return [('<', _FLOOR)]
        if minor is None:
            return [('>=', Version(major + 1, 0, 0))]
        if patch is None:
            return [('>=', Version(major, minor + 1, 0))]
        return [('>', Version(major, minor, patch, pre))]

    if op == '>=':
        if major is None:
            return []
        return [('>=', Version(major, minor or 0, patch or 0, pre))]

    if op == '<':
        if major is None:
            return [('<', _FLOOR)]
        if minor is None:
            return [_upper(major)]
        if patch is None:
            return [_upper(major, minor)]
        return [('<', Version(major, minor, patch, pre))]

    # op == '<='
    if major is None:
        return []
    if minor is None:
        return [_upper(major + 1)]
    if patch is None:
        return [_upper(major, minor + 1)]
    return [('<=', Version(major, minor, patch, pre))]


def _parse_hyphen(lower: str, upper: str) -> list[Comparator] | None:
    """Desugar ``A - B`` into ``>=A`` plus an inclusive upper bound on ``B``."""
    low = _desugar('>=', lower)
    high = _desugar('<=', upper)
    if low is None or high is None:
        return None
    return low + high


def _parse_comparator_set(text: str) -> list[Comparator] | None:
    """Parse one ``||``-separated alternative."""
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        return _parse_hyphen(hyphen.group(1), hyphen.group(2))

    comparators: list[Comparator] = []
    for token in _OPERATOR_SPACE_RE.sub(r'\1', text).split():
        match = _COMPARATOR_RE.match(token)
        if match is None:
            return None
        desugared = _desugar(match.group(1) or '', match.group(2))
        if desugared is None:
            return None
        comparators.extend(desugared)
    return comparators


def parse_range(text: str) -> list[list[Comparator]] | None:
    """Parse a range into comparator sets, or ``None`` if it is not a range."""
    sets: list[list[Comparator]] = []
    for alternative in text.split('||'):
        parsed = _parse_comparator_set(alternative.strip())
        if parsed is None:
            return None
        sets.append(parsed)
    return sets


def is_valid_range(text: str) -> bool:
    """Return ``True`` if ``text`` parses as a semver range.

    Dist-tags such as ``latest`` or ``next`` are not ranges.
    """
    return parse_range(text) is not None


def _test(op: str, version: Version, bound: Version) -> bool:
    """Evaluate a single primitive comparator."""
    result = compare(version, bound)
    if op == '<':
        return result < 0
    if op == '<=':
        return result <= 0
    if op == '>':
        return result > 0
    if op == '>=':
        return result >= 0
    return result == 0


def _test_set(comparators: list[Comparator], version: Version) -> bool:
    """Evaluate one comparator set, applying the pre-release rule."""
    if not all(_test(op, version, bound) for op, bound in comparators):
        return False
    if not version.prerelease:
        return True
    return any(bound.prerelease and bound.release == version.release and bound != _FLOOR for _, bound in comparators)


def satisfies(version: str | Version, range_: str) -> bool:
    """Return ``True`` if ``version`` matches ``range_``.

    Invalid versions and invalid ranges never match.
    """
    parsed = parse_version(version) if isinstance(version, str) else version
    sets = parse_range(range_)
    if parsed is None or sets is None:
        return False
    return any(_test_set(comparators, parsed) for comparators in sets)


def sorted_desc(versions: list[str]) -> list[str]:
    """Sort valid version strings newest first, dropping invalid ones."""
    parsed = [(v, parse_version(v)) for v in versions]
    valid = [(v, p) for v, p in parsed if p is not None]
    valid.sort(key=lambda item: version_key(item[1]), reverse=True)
    return [v for v, _ in valid]


__all__ = [
    'Version',
    'coerce',
    'compare',
    'is_valid_range',
    'parse_range',
    'parse_version',
    'satisfies',
    'sorted_desc',
]
