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

"""Protocol-based backend layer for typeskit.

Everything the reconciliation core needs from the outside world goes
through the injectable protocols defined here, so tests can swap in
in-memory fakes:

- :class:`Resolver`: turn a descriptor into concrete candidates
  (default: :class:`NpmRegistry`).
- :class:`DeclarationsLookup`: does a library ship its own type
  declarations? (default: :class:`NpmRegistry`).
- :class:`DocumentStorage`: read and write JSON documents such as
  ``tsconfig.json`` (default: :class:`JsonDocumentStorage`).

All methods are async because they involve network or file I/O.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from typeskit.backends._io import JsonDocumentStorage as JsonDocumentStorage
from typeskit.backends._types import Candidate as Candidate
from typeskit.backends.registry import NpmRegistry as NpmRegistry
from typeskit.structs import Descriptor

__all__ = [
    'Candidate',
    'DeclarationsLookup',
    'DocumentStorage',
    'JsonDocumentStorage',
    'NpmRegistry',
    'Resolver',
]


@runtime_checkable
class Resolver(Protocol):
    """Protocol for candidate resolution."""

    async def get_candidates(self, descriptor: Descriptor) -> list[Candidate]:
        """Return candidates for ``descriptor``, best first.

        May raise on network or protocol failures. An empty list means
        nothing matches.
        """
        ...


@runtime_checkable
class DeclarationsLookup(Protocol):
    """Protocol for the "ships its own typings" check."""

    async def has_own_declarations(self, descriptor: Descriptor) -> bool:
        """Return ``True`` if no companion package is needed for ``descriptor``."""
        ...


@runtime_checkable
class DocumentStorage(Protocol):
    """Protocol for JSON document persistence."""

    async def read_json(self, path: Path) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
        """Return the JSON object at ``path``.

        Raises on a missing or unparsable document.
        """
        ...

    async def write_json(self, path: Path, data: dict[str, Any]) -> None:  # noqa: ANN401 - JSON payload
        """Persist ``data`` at ``path``."""
        ...
