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

"""Configuration reader for typeskit.

Reads ``typeskit.toml`` from the project root and returns a validated
:class:`TypesKitConfig`. Keys are flat, top-level, and all optional; a
missing file means "use the defaults".

Validation Pipeline::

    typeskit.toml
    ┌──────────────────────┐
    │ auto_type = false    │  ← typo!
    └──────────┬───────────┘
               │
               ▼
    ┌──────────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key       │────→│ TK-CONFIG-INVALID-KEY:       │
    │    detection         │     │ hint: "Did you mean          │
    └──────────┬───────────┘     │       'auto_types'?"         │
               │                 └──────────────────────────────┘
               ▼
    ┌──────────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check        │────→│ TK-CONFIG-INVALID-VALUE:     │
    │    each value        │     │ 'tsconfig' must be str       │
    └──────────┬───────────┘     └──────────────────────────────┘
               │
               ▼
    ┌──────────────────────┐
    │ TypesKitConfig()     │  ← frozen dataclass, ready to use
    └──────────────────────┘

Supported keys in ``typeskit.toml``::

    auto_types             = true                           # companion add/remove
    sync_references        = true                           # tsconfig references
    companion_scope        = "types"                        # @types/...
    tsconfig               = "tsconfig.json"                # per-workspace document
    registry               = "https://registry.npmjs.org"   # npm registry
    transparent_workspaces = true                           # "^1.0.0" may link locally
    exclude                = ["examples-*"]                 # skipped by sync
    http_pool_size         = 10
    http_timeout           = 30

Usage::

    from typeskit.config import load_config

    cfg = load_config(Path('/path/to/monorepo'))
    print(cfg.tsconfig)  # "tsconfig.json"
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from typeskit.errors import E, TypesKitError
from typeskit.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = 'typeskit.toml'

VALID_KEYS: frozenset[str] = frozenset({
    'auto_types',
    'companion_scope',
    'exclude',
    'http_pool_size',
    'http_timeout',
    'registry',
    'sync_references',
    'transparent_workspaces',
    'tsconfig',
})


@dataclass(frozen=True)
class TypesKitConfig:
    """Validated typeskit settings.

    Attributes:
        auto_types: Add and remove companion packages alongside their
            libraries.
        sync_references: Keep ``tsconfig.json`` references in sync with
            local workspace dependencies.
        companion_scope: Scope holding companion packages.
        tsconfig: Name of the per-workspace document to manage.
        registry: npm registry base URL.
        transparent_workspaces: Let plain semver ranges resolve to a
            local workspace whose version satisfies them.
        exclude: Workspace name or path globs the synchronizer skips.
        http_pool_size: HTTP connection pool size.
        http_timeout: HTTP timeout in seconds.
        config_path: Where the settings came from, ``None`` for defaults.
    """

    auto_types: bool = True
    sync_references: bool = True
    companion_scope: str = 'types'
    tsconfig: str = 'tsconfig.json'
    registry: str = 'https://registry.npmjs.org'
    transparent_workspaces: bool = True
    exclude: list[str] = field(default_factory=list)
    http_pool_size: int = 10
    http_timeout: float = 30.0
    config_path: Path | None = None


_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'auto_types': bool,
    'sync_references': bool,
    'companion_scope': str,
    'tsconfig': str,
    'registry': str,
    'transparent_workspaces': bool,
    'exclude': list,
    'http_pool_size': int,
    'http_timeout': (int, float),
}


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP[key]
    # bool is an int subclass; never accept it for numeric keys.
    wrong_bool = isinstance(value, bool) and expected is not bool
    if wrong_bool or not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else ' or '.join(t.__name__ for t in expected)
        raise TypesKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _validate_values(raw: dict[str, Any]) -> None:  # noqa: ANN401 - dynamic config values
    """Check value constraints beyond plain types."""
    for item in raw.get('exclude', []):
        if not isinstance(item, str):
            raise TypesKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'exclude' entries must be strings, got {type(item).__name__}",
            )
    if 'http_pool_size' in raw and raw['http_pool_size'] < 1:
        raise TypesKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'http_pool_size' must be at least 1, got {raw['http_pool_size']}",
        )
    if 'http_timeout' in raw and raw['http_timeout'] <= 0:
        raise TypesKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'http_timeout' must be positive, got {raw['http_timeout']}",
        )
    for key in ('companion_scope', 'tsconfig'):
        if key in raw and not raw[key].strip():
            raise TypesKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' must not be empty",
            )
    if raw.get('companion_scope', '').startswith('@'):
        raise TypesKitError(
            code=E.CONFIG_INVALID_VALUE,
            message="'companion_scope' must not start with '@'",
            hint='Write the scope bare, e.g. companion_scope = "types".',
        )


def load_config(project_root: Path) -> TypesKitConfig:
    """Load and validate configuration from ``typeskit.toml``.

    Args:
        project_root: Directory that may contain ``typeskit.toml``.

    Returns:
        A validated :class:`TypesKitConfig`.

    Raises:
        TypesKitError: If the file cannot be read or parsed, or contains
            an unknown key or a value of the wrong type.
    """
    config_path = project_root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_typeskit_config', path=str(config_path))
        return TypesKitConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise TypesKitError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise TypesKitError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to parse {config_path}: {exc}',
            hint='Check the TOML syntax.',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401 - dynamic config values

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            raise TypesKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=f"Did you mean '{suggestion}'?" if suggestion else 'Valid keys: ' + ', '.join(sorted(VALID_KEYS)),
            )

    for key, value in raw.items():
        _validate_value_type(key, value)
    _validate_values(raw)

    logger.debug('config_loaded', path=str(config_path), keys=sorted(raw))
    return TypesKitConfig(**raw, config_path=config_path)


__all__ = [
    'CONFIG_FILENAME',
    'VALID_KEYS',
    'TypesKitConfig',
    'load_config',
]
