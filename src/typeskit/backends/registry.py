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

"""npm registry backend for typeskit.

:class:`NpmRegistry` implements both the
:class:`~typeskit.backends.Resolver` and the
:class:`~typeskit.backends.DeclarationsLookup` protocols on top of the
npm registry API.

API endpoint used:

- ``GET /{package}``: full package metadata ("packument") with
  ``dist-tags`` and per-version manifests.

Scoped packages (e.g. ``@types/babel__core``) are URL-encoded as
``@types%2Fbabel__core`` in the URL path.

Candidate selection::

    "^4.17.0"          → every published version satisfying the range,
                         newest first
    "latest" / "next"  → the version the dist-tag points at
    "npm:lodash@^4"    → alias: resolve ``lodash`` at ``^4``
    "git:..." etc.     → unsupported, raises TK-RESOLUTION-FAILED

Packuments are cached per instance so one reconciliation run fetches each
package at most once.
"""

from __future__ import annotations

import urllib.parse
from typing import Any

from typeskit.backends._types import Candidate
from typeskit.companion import DEFAULT_COMPANION_SCOPE, companion_ident
from typeskit.errors import E, TypesKitError
from typeskit.logging import get_logger
from typeskit.net import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT, http_client, request_with_retry
from typeskit.semver import is_valid_range, satisfies, sorted_desc
from typeskit.structs import Descriptor, Ident, parse_descriptor, parse_range

log = get_logger('typeskit.backends.registry')

_NPM_PROTOCOL = 'npm:'


def _encode_package_name(name: str) -> str:
    """URL-encode a package name for the registry API.

    Scoped packages like ``@types/node`` must be encoded as
    ``@types%2Fnode``. Unscoped packages are returned as-is.
    """
    if name.startswith('@'):
        return urllib.parse.quote(name, safe='@')
    return name


def _select_versions(packument: dict[str, Any], selector: str) -> list[str]:  # noqa: ANN401 - JSON payload
    """Return the published versions matching ``selector``, newest first."""
    versions = packument.get('versions')
    published = list(versions) if isinstance(versions, dict) else []
    if is_valid_range(selector):
        return [v for v in sorted_desc(published) if satisfies(v, selector)]
    dist_tags = packument.get('dist-tags')
    tagged = dist_tags.get(selector) if isinstance(dist_tags, dict) else None
    if isinstance(tagged, str) and tagged in published:
        return [tagged]
    return []


def _version_manifest(packument: dict[str, Any], version: str | None) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
    """Return the manifest of ``version`` (or of ``latest``), or an empty dict."""
    versions = packument.get('versions')
    if not isinstance(versions, dict):
        return {}
    if version is None:
        dist_tags = packument.get('dist-tags')
        version = dist_tags.get('latest') if isinstance(dist_tags, dict) else None
    manifest = versions.get(version) if version else None
    return manifest if isinstance(manifest, dict) else {}


class NpmRegistry:
    """Resolver and declarations lookup backed by the npm registry.

    Args:
        base_url: Base URL for the npm registry API.
        pool_size: HTTP connection pool size.
        timeout: HTTP request timeout in seconds.
        companion_scope: Scope that holds companion packages.
    """

    #: Base URL for the production npm registry.
    DEFAULT_BASE_URL: str = 'https://registry.npmjs.org'

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        pool_size: int = DEFAULT_POOL_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        companion_scope: str = DEFAULT_COMPANION_SCOPE,
    ) -> None:
        """Initialize with the npm registry base URL."""
        self._base_url = base_url.rstrip('/')
        self._pool_size = pool_size
        self._timeout = timeout
        self._companion_scope = companion_scope
        self._packuments: dict[str, dict[str, Any] | None] = {}  # noqa: ANN401 - JSON payload

    async def fetch_packument(self, ident: Ident) -> dict[str, Any] | None:  # noqa: ANN401 - JSON payload
        """Return the packument for ``ident``, or ``None`` if it is not published.

        Raises:
            TypesKitError: ``TK-REGISTRY-UNAVAILABLE`` when the registry
                cannot be reached or answers with an unexpected status.
        """
        name = str(ident)
        if name in self._packuments:
            return self._packuments[name]

        url = f'{self._base_url}/{_encode_package_name(name)}'
        async with http_client(pool_size=self._pool_size, timeout=self._timeout) as client:
            response = await request_with_retry(client, 'GET', url)

        if response.status_code == 404:
            log.debug('packument_not_found', package=name)
            self._packuments[name] = None
            return None
        if response.status_code != 200:
            raise TypesKitError(
                code=E.REGISTRY_UNAVAILABLE,
                message=f'GET {url} returned HTTP {response.status_code}',
                hint='Check the "registry" setting and your registry credentials.',
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise TypesKitError(
                code=E.REGISTRY_UNAVAILABLE,
                message=f'GET {url} returned a body that is not JSON',
            ) from exc
        if not isinstance(data, dict):
            raise TypesKitError(
                code=E.REGISTRY_UNAVAILABLE,
                message=f'GET {url} returned a body that is not a JSON object',
            )

        log.debug('packument_fetched', package=name, versions=len(data.get('versions') or {}))
        self._packuments[name] = data
        return data

    def _target(self, descriptor: Descriptor) -> tuple[Ident, str]:
        """Return the ident and selector to look up for ``descriptor``.

        Follows ``npm:name@range`` aliases and rejects protocols the
        registry cannot serve.
        """
        spec = parse_range(descriptor.range)
        if spec.protocol not in (None, _NPM_PROTOCOL):
            raise TypesKitError(
                code=E.RESOLUTION_FAILED,
                message=f'Cannot resolve {descriptor} against the npm registry',
                hint=f'The {spec.protocol} protocol is not served by a registry.',
            )
        selector = spec.selector
        if spec.protocol == _NPM_PROTOCOL and '@' in selector[1:]:
            alias = parse_descriptor(selector)
            return alias.ident, alias.range
        return descriptor.ident, selector

    async def get_candidates(self, descriptor: Descriptor) -> list[Candidate]:
        """Return the published versions satisfying ``descriptor``, newest first.

        Raises:
            TypesKitError: When the registry is unavailable or the
                descriptor uses a non-registry protocol.
        """
        ident, selector = self._target(descriptor)
        packument = await self.fetch_packument(ident)
        if packument is None:
            return []
        versions = _select_versions(packument, selector)
        log.debug('candidates', descriptor=str(descriptor), count=len(versions))
        return [Candidate(ident=ident, reference=f'{_NPM_PROTOCOL}{version}') for version in versions]

    async def has_own_declarations(self, descriptor: Descriptor) -> bool:
        """Return ``True`` if the library needs no companion package.

        A library needs no companion when the manifest of the version it
        resolves to (or of ``latest``) declares ``types`` or ``typings``,
        or when the companion package's latest release is deprecated,
        which is how stub companions for self-typed libraries are
        published.
        """
        ident, selector = self._target(descriptor)
        packument = await self.fetch_packument(ident)
        if packument is not None:
            matching = _select_versions(packument, selector)
            manifest = _version_manifest(packument, matching[0] if matching else None)
            if manifest.get('types') or manifest.get('typings'):
                log.debug('bundled_declarations', package=str(ident))
                return True

        companion = await self.fetch_packument(companion_ident(ident, scope=self._companion_scope))
        if companion is not None and _version_manifest(companion, None).get('deprecated'):
            log.debug('companion_deprecated', package=str(ident))
            return True
        return False


__all__ = [
    'NpmRegistry',
]
