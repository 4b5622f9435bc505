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

"""Package identities, descriptors, and range parsing.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Ident               │ The "who": an optional scope plus a name,      │
    │                     │ e.g. ``@babel/core`` or ``lodash``.            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Descriptor          │ The "who + which": an ident plus the range     │
    │                     │ string written in package.json, e.g.           │
    │                     │ ``lodash@^4.17.0`` or ``react@npm:next``.      │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ident_hash /        │ Stable hashes used as dictionary keys. Two     │
    │ descriptor_hash     │ descriptors are the same request only when     │
    │                     │ both ident and range match.                    │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ RangeSpec           │ A range split into protocol, source, selector  │
    │                     │ and params: ``npm:^1.2.0`` → selector ``^1.2.0``│
    └─────────────────────┴────────────────────────────────────────────────┘

Range anatomy::

    [protocol:]selector[#source-selector][::params]

    "^1.2.0"               → protocol=None    selector="^1.2.0"
    "npm:latest"           → protocol="npm:"  selector="latest"
    "workspace:^"          → protocol="workspace:" selector="^"
    "git:repo#main"        → protocol="git:"  source="repo" selector="main"
"""

from __future__ import annotations

import hashlib
import re
import urllib.parse
from dataclasses import dataclass

from typeskit.errors import E, TypesKitError

_IDENT_RE = re.compile(r'^(?:@([^/]+?)/)?([^@/]+)$')
_DESCRIPTOR_RE = re.compile(r'^(?:@([^/]+?)/)?([^@/]+?)(?:@(.+))?$')
_RANGE_RE = re.compile(r'^([^#:]*:)?((?:(?!::)[^#])*)(?:#((?:(?!::).)*))?(?:::(.*))?$')


def make_hash(*parts: str) -> str:
    """Return a SHA-256 hex digest over ``parts``."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part.encode('utf-8'))
        digest.update(b'\0')
    return digest.hexdigest()


@dataclass(frozen=True, eq=False)
class Ident:
    """A package identity: optional scope plus name.

    Equality and hashing go through :attr:`ident_hash`, never through
    string comparison of the display form.

    Attributes:
        scope: Scope without the leading ``@`` (``"babel"``), or ``None``.
        name: Bare package name (``"core"``).
    """

    scope: str | None
    name: str

    @property
    def ident_hash(self) -> str:
        """Stable hash identifying this package across the graph."""
        return make_hash(self.scope or '', self.name)

    def __eq__(self, other: object) -> bool:
        """Compare by :attr:`ident_hash`."""
        if not isinstance(other, Ident):
            return NotImplemented
        return self.ident_hash == other.ident_hash

    def __hash__(self) -> int:
        """Hash by :attr:`ident_hash`."""
        return hash(self.ident_hash)

    def __str__(self) -> str:
        """Return the npm display form (``@scope/name`` or ``name``)."""
        return stringify_ident(self)


@dataclass(frozen=True, eq=False)
class Descriptor:
    """A dependency request: an :class:`Ident` paired with a range.

    Attributes:
        ident: The requested package.
        range: The range exactly as written in the manifest.
    """

    ident: Ident
    range: str

    @property
    def scope(self) -> str | None:
        """Shortcut for ``ident.scope``."""
        return self.ident.scope

    @property
    def name(self) -> str:
        """Shortcut for ``ident.name``."""
        return self.ident.name

    @property
    def ident_hash(self) -> str:
        """Shortcut for ``ident.ident_hash``."""
        return self.ident.ident_hash

    @property
    def descriptor_hash(self) -> str:
        """Stable hash of ident and range together."""
        return make_hash(self.ident.ident_hash, self.range)

    def __eq__(self, other: object) -> bool:
        """Compare by :attr:`descriptor_hash`."""
        if not isinstance(other, Descriptor):
            return NotImplemented
        return self.descriptor_hash == other.descriptor_hash

    def __hash__(self) -> int:
        """Hash by :attr:`descriptor_hash`."""
        return hash(self.descriptor_hash)

    def __str__(self) -> str:
        """Return ``name@range``."""
        return stringify_descriptor(self)


@dataclass(frozen=True)
class RangeSpec:
    """A range split into its components.

    Attributes:
        protocol: Protocol prefix including the colon (``"npm:"``), or ``None``.
        source: Source part when a ``#`` selector is present, or ``None``.
        selector: The part version logic consumes (``"^1.2.0"``, ``"latest"``).
        params: Query parameters after ``::``, or ``None``.
    """

    protocol: str | None
    source: str | None
    selector: str
    params: dict[str, list[str]] | None = None


def make_ident(scope: str | None, name: str) -> Ident:
    """Build an :class:`Ident`, treating an empty scope as unscoped."""
    return Ident(scope=scope or None, name=name)


def make_descriptor(ident: Ident, range_: str) -> Descriptor:
    """Build a :class:`Descriptor` for ``ident`` at ``range_``."""
    return Descriptor(ident=ident, range=range_)


def parse_ident(text: str) -> Ident:
    """Parse ``@scope/name`` or ``name`` into an :class:`Ident`.

    Raises:
        TypesKitError: If ``text`` is not a valid package name.
    """
    match = _IDENT_RE.match(text.strip())
    if not match:
        raise TypesKitError(
            code=E.DESCRIPTOR_INVALID,
            message=f'Invalid package name: {text!r}',
            hint='Use "name" or "@scope/name".',
        )
    return make_ident(match.group(1), match.group(2))


def parse_descriptor(text: str, *, default_range: str | None = None) -> Descriptor:
    """Parse ``name@range`` (or ``@scope/name@range``) into a :class:`Descriptor`.

    Args:
        text: The descriptor string.
        default_range: Range to use when ``text`` has none. When ``None``
            a missing range is an error.

    Raises:
        TypesKitError: If the string is malformed or lacks a range.
    """
    match = _DESCRIPTOR_RE.match(text.strip())
    if not match:
        raise TypesKitError(
            code=E.DESCRIPTOR_INVALID,
            message=f'Invalid descriptor: {text!r}',
            hint='Use "name@range" or "@scope/name@range".',
        )
    range_ = match.group(3) or default_range
    if range_ is None:
        raise TypesKitError(
            code=E.DESCRIPTOR_INVALID,
            message=f'Descriptor {text!r} has no range',
            hint='Add a range, e.g. "lodash@^4.17.0".',
        )
    return make_descriptor(make_ident(match.group(1), match.group(2)), range_)


def parse_range(range_: str) -> RangeSpec:
    """Split a range into protocol, source, selector, and params."""
    match = _RANGE_RE.match(range_)
    if match is None:
        # The pattern accepts any string that has no '::' inside a selector;
        # fall back to treating the whole thing as a selector.
        return RangeSpec(protocol=None, source=None, selector=range_)
    protocol, body, hash_part, params = match.groups()
    return RangeSpec(
        protocol=protocol,
        source=body if hash_part is not None else None,
        selector=hash_part if hash_part is not None else body,
        params=urllib.parse.parse_qs(params) if params else None,
    )


def stringify_ident(ident: Ident) -> str:
    """Return ``@scope/name`` or ``name``."""
    if ident.scope:
        return f'@{ident.scope}/{ident.name}'
    return ident.name


def stringify_descriptor(descriptor: Descriptor) -> str:
    """Return ``@scope/name@range`` or ``name@range``."""
    return f'{stringify_ident(descriptor.ident)}@{descriptor.range}'


__all__ = [
    'Descriptor',
    'Ident',
    'RangeSpec',
    'make_descriptor',
    'make_hash',
    'make_ident',
    'parse_descriptor',
    'parse_ident',
    'parse_range',
    'stringify_descriptor',
    'stringify_ident',
]
