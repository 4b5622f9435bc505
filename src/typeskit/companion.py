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

"""Companion ("types") identity derivation.

A companion is the declarations-only package published for a library
that ships without its own typings::

    lodash          → @types/lodash
    @babel/core     → @types/babel__core
    @types/node     → (no companion: already a companion)

The mapping is a pure function of the original ident. Callers check
:func:`is_companion` first, so a companion never gets a companion of its
own.
"""

from __future__ import annotations

from typeskit.structs import Descriptor, Ident, make_descriptor, make_ident

#: Scope that holds companion declaration packages on the public registry.
DEFAULT_COMPANION_SCOPE = 'types'


def companion_name(ident: Ident) -> str:
    """Return the companion package name (without scope) for ``ident``."""
    if ident.scope:
        return f'{ident.scope}__{ident.name}'
    return ident.name


def companion_ident(ident: Ident, *, scope: str = DEFAULT_COMPANION_SCOPE) -> Ident:
    """Return the companion :class:`Ident` for ``ident``."""
    return make_ident(scope, companion_name(ident))


def is_companion(ident: Ident, *, scope: str = DEFAULT_COMPANION_SCOPE) -> bool:
    """Return ``True`` if ``ident`` already lives in the companion scope."""
    return ident.scope == scope


def companion_descriptor(descriptor: Descriptor, range_: str, *, scope: str = DEFAULT_COMPANION_SCOPE) -> Descriptor:
    """Return the companion descriptor for ``descriptor`` at ``range_``."""
    return make_descriptor(companion_ident(descriptor.ident, scope=scope), range_)


__all__ = [
    'DEFAULT_COMPANION_SCOPE',
    'companion_descriptor',
    'companion_ident',
    'companion_name',
    'is_companion',
]
