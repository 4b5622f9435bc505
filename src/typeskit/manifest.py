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

"""In-memory model of a workspace's ``package.json``.

The four dependency sections are kept as ``{ident_hash: Descriptor}``
maps so that lookups never depend on how a name happens to be spelled.
Everything else in the file is carried along untouched in
:attr:`Manifest.raw` and written back by :meth:`Manifest.export_raw`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typeskit.errors import E, TypesKitError
from typeskit.structs import Descriptor, parse_ident


class DependencyKind(str, Enum):
    """A dependency section of ``package.json``."""

    REGULAR = 'dependencies'
    DEVELOPMENT = 'devDependencies'
    PEER = 'peerDependencies'
    OPTIONAL = 'optionalDependencies'


#: Iteration order used everywhere a workspace's dependencies are walked.
ALL_KINDS: tuple[DependencyKind, ...] = (
    DependencyKind.REGULAR,
    DependencyKind.DEVELOPMENT,
    DependencyKind.PEER,
    DependencyKind.OPTIONAL,
)


@dataclass
class Manifest:
    """Parsed ``package.json``.

    Attributes:
        name: The package name, or ``None`` for a nameless root manifest.
        version: The ``version`` field, or ``None``.
        sections: Dependency maps keyed by ident hash, one per kind.
        raw: The full decoded JSON payload.
    """

    name: str | None = None
    version: str | None = None
    sections: dict[DependencyKind, dict[str, Descriptor]] = field(
        default_factory=lambda: {kind: {} for kind in ALL_KINDS},
    )
    raw: dict[str, Any] = field(default_factory=dict)  # noqa: ANN401 - JSON payload

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Manifest:  # noqa: ANN401 - JSON payload
        """Build a manifest from a decoded ``package.json`` payload.

        Raises:
            TypesKitError: If a dependency section is not an object or a
                dependency name is not a valid package name.
        """
        manifest = cls(
            name=raw.get('name') if isinstance(raw.get('name'), str) else None,
            version=raw.get('version') if isinstance(raw.get('version'), str) else None,
            raw=raw,
        )
        for kind in ALL_KINDS:
            section = raw.get(kind.value)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise TypesKitError(
                    code=E.WORKSPACE_PARSE_ERROR,
                    message=f'"{kind.value}" in {manifest.name or "package.json"} is not an object',
                    hint=f'"{kind.value}" must map package names to ranges.',
                )
            for name, range_ in section.items():
                descriptor = Descriptor(ident=parse_ident(name), range=str(range_))
                manifest.sections[kind][descriptor.ident_hash] = descriptor
        return manifest

    def get(self, kind: DependencyKind, ident_hash: str) -> Descriptor | None:
        """Return the descriptor for ``ident_hash`` in ``kind``, if any."""
        return self.sections[kind].get(ident_hash)

    def set(self, kind: DependencyKind, descriptor: Descriptor) -> None:
        """Insert or replace ``descriptor`` in ``kind``."""
        self.sections[kind][descriptor.ident_hash] = descriptor

    def delete(self, kind: DependencyKind, ident_hash: str) -> bool:
        """Remove ``ident_hash`` from ``kind``; return whether it was present."""
        return self.sections[kind].pop(ident_hash, None) is not None

    def export_raw(self) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
        """Return the raw payload with dependency sections rewritten.

        Sections are emitted with keys sorted by package name, matching
        what npm and Yarn write. Empty sections are dropped.
        """
        data = dict(self.raw)
        for kind in ALL_KINDS:
            entries = self.sections[kind]
            if not entries:
                if kind.value in data:
                    del data[kind.value]
                continue
            data[kind.value] = {str(d.ident): d.range for d in sorted(entries.values(), key=lambda d: str(d.ident))}
        return data


__all__ = [
    'ALL_KINDS',
    'DependencyKind',
    'Manifest',
]
