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

"""Shared types for the backends subpackage."""

from __future__ import annotations

from dataclasses import dataclass

from typeskit.structs import Ident

__all__ = [
    'Candidate',
]


@dataclass(frozen=True)
class Candidate:
    """A concrete package version a resolver offers for a descriptor.

    Attributes:
        ident: The package the candidate belongs to.
        reference: Locator reference, e.g. ``"npm:4.17.21"``. Its range
            selector is the concrete version.
    """

    ident: Ident
    reference: str
