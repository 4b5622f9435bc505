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

"""Publish-time manifest adjustments.

In a workspace, ``types`` usually points at the TypeScript sources so
editors resolve them without a build. The packed tarball must point at
the emitted declarations instead, which live under ``publishConfig``::

    {
      "types": "./src/index.ts",
      "publishConfig": {"types": "./dist/index.d.ts"}
    }

becomes, in the published ``package.json``::

    {
      "types": "./dist/index.d.ts",
      "publishConfig": {"types": "./dist/index.d.ts"}
    }
"""

from __future__ import annotations

from typing import Any

_OVERRIDABLE_FIELDS = ('typings', 'types')


def adjust_publish_manifest(raw_manifest: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
    """Copy ``publishConfig.typings``/``publishConfig.types`` to the top level.

    Each field is handled on its own and only when the override is
    truthy; nothing else is touched. ``raw_manifest`` is modified in
    place and also returned.
    """
    publish_config = raw_manifest.get('publishConfig')
    if not isinstance(publish_config, dict):
        return raw_manifest
    for key in _OVERRIDABLE_FIELDS:
        value = publish_config.get(key)
        if value:
            raw_manifest[key] = value
    return raw_manifest


__all__ = [
    'adjust_publish_manifest',
]
