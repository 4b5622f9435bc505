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

"""Shared test fakes for typeskit.

Provides in-memory implementations of the Resolver, DeclarationsLookup
and DocumentStorage protocols, plus helpers that build a
:class:`~typeskit.project.Project` without touching the filesystem.

Usage::

    from tests._fakes import FakeDeclarations, FakeResolver, MemoryStorage, make_project

    resolver = FakeResolver({'@types/foo': ['2.0.1', '1.0.0']})
    project = make_project({'packages/app': {'name': 'app'}})
"""

from tests._fakes._backends import (
    FakeDeclarations as FakeDeclarations,
    FakeResolver as FakeResolver,
    MemoryStorage as MemoryStorage,
)
from tests._fakes._project import ROOT as ROOT, make_project as make_project, make_workspace as make_workspace

__all__ = [
    'ROOT',
    'FakeDeclarations',
    'FakeResolver',
    'MemoryStorage',
    'make_project',
    'make_workspace',
]
