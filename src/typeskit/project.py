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

"""Workspace and project model, plus project discovery.

Project structure::

    monorepo/
    ├── package.json             # root workspace, "workspaces": ["packages/*"]
    ├── pnpm-workspace.yaml      # alternative source of member globs
    ├── typeskit.toml            # optional settings
    └── packages/
        ├── app/
        │   ├── package.json     # depends on "@acme/lib": "workspace:^"
        │   └── tsconfig.json    # references: [{"path": "../lib"}]
        └── lib/
            ├── package.json
            └── tsconfig.json

Local edge resolution::

    "workspace:^" / "workspace:*" / "workspace:~"   → always local
    "workspace:packages/lib"                         → local if the path matches
    "workspace:^1.2.0"                               → local if the version satisfies
    "^1.2.0" / "npm:^1.2.0"                          → local if transparent
                                                       workspaces are on and the
                                                       version satisfies
    "virtual:<hash>#workspace:^"                     → devirtualized first

The root ``package.json`` is always a workspace, even when it has no
name. Member globs starting with ``!`` exclude directories.
"""

from __future__ import annotations

import fnmatch
import posixpath
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from typeskit.backends._io import dump_json, parse_json_object, read_file, write_file
from typeskit.errors import E, TypesKitError
from typeskit.logging import get_logger
from typeskit.manifest import ALL_KINDS, Manifest
from typeskit.semver import is_valid_range, satisfies
from typeskit.structs import Descriptor, Ident, parse_ident

log = get_logger('typeskit.project')

CONFIG_MARKER = 'typeskit.toml'
PNPM_WORKSPACE_FILE = 'pnpm-workspace.yaml'
MANIFEST_FILE = 'package.json'

_WORKSPACE_PROTOCOL = 'workspace:'
_VIRTUAL_PROTOCOL = 'virtual:'


@dataclass
class Workspace:
    """A single package of the project.

    Attributes:
        cwd: Absolute path to the workspace directory.
        relative_cwd: POSIX path relative to the project root (``"."``
            for the root workspace).
        manifest: Parsed ``package.json``.
    """

    cwd: Path
    relative_cwd: PurePosixPath
    manifest: Manifest

    @property
    def name(self) -> str | None:
        """The ``name`` field of the manifest."""
        return self.manifest.name

    @property
    def ident(self) -> Ident | None:
        """The workspace's own ident, or ``None`` for a nameless workspace."""
        return parse_ident(self.manifest.name) if self.manifest.name else None

    @property
    def manifest_path(self) -> Path:
        """Absolute path to ``package.json``."""
        return self.cwd / MANIFEST_FILE

    @property
    def dependencies(self) -> dict[str, Descriptor]:
        """Every declared dependency, keyed by ident hash.

        Kinds are walked in :data:`~typeskit.manifest.ALL_KINDS` order
        and the first occurrence of an ident wins.
        """
        merged: dict[str, Descriptor] = {}
        for kind in ALL_KINDS:
            for ident_hash, descriptor in self.manifest.sections[kind].items():
                merged.setdefault(ident_hash, descriptor)
        return merged

    def accepts(self, range_: str, *, transparent: bool = True) -> bool:
        """Return ``True`` if a dependency at ``range_`` may link to this workspace."""
        protocol, sep, pathname = range_.partition(':')
        if not sep:
            protocol, pathname = '', range_
        else:
            protocol += ':'

        if protocol == _WORKSPACE_PROTOCOL:
            if pathname in ('*', '^', '~'):
                return True
            if posixpath.normpath(pathname) == str(self.relative_cwd):
                return True

        if not is_valid_range(pathname):
            return False
        if protocol == _WORKSPACE_PROTOCOL:
            return satisfies(self.manifest.version or '0.0.0', pathname)
        if not transparent or self.manifest.version is None:
            return False
        return satisfies(self.manifest.version, pathname)

    def __str__(self) -> str:
        """Return the name, or the relative path for nameless workspaces."""
        return self.name or str(self.relative_cwd)


@dataclass
class Project:
    """All workspaces of a monorepo.

    Attributes:
        root: Absolute path to the project root.
        workspaces: Root workspace first, then members sorted by path.
        transparent_workspaces: Whether plain semver ranges may link to
            local workspaces.
    """

    root: Path
    workspaces: list[Workspace] = field(default_factory=list)
    transparent_workspaces: bool = True

    @property
    def top_level_workspace(self) -> Workspace:
        """The workspace at the project root."""
        return self.workspaces[0]

    def try_workspace_by_ident(self, ident: Ident) -> Workspace | None:
        """Return the workspace named ``ident``, if any."""
        for workspace in self.workspaces:
            if workspace.ident is not None and workspace.ident == ident:
                return workspace
        return None

    def try_workspace_by_descriptor(self, descriptor: Descriptor) -> Workspace | None:
        """Return the local workspace ``descriptor`` resolves to, if any."""
        range_ = descriptor.range
        if range_.startswith(_VIRTUAL_PROTOCOL) and '#' in range_:
            range_ = range_.split('#', 1)[1]
        workspace = self.try_workspace_by_ident(descriptor.ident)
        if workspace is None or not workspace.accepts(range_, transparent=self.transparent_workspaces):
            return None
        return workspace

    def get_workspace(self, selector: str) -> Workspace:
        """Find a workspace by name or by path relative to the root.

        Raises:
            TypesKitError: ``TK-WORKSPACE-UNKNOWN`` if nothing matches.
        """
        normalized = posixpath.normpath(selector.replace('\\', '/'))
        for workspace in self.workspaces:
            if workspace.name == selector or str(workspace.relative_cwd) == normalized:
                return workspace
        raise TypesKitError(
            code=E.WORKSPACE_UNKNOWN,
            message=f'No workspace matches {selector!r}',
            hint='Known workspaces: ' + ', '.join(str(w) for w in self.workspaces),
        )

    def workspace_for_path(self, path: Path) -> Workspace:
        """Return the innermost workspace containing ``path``.

        Falls back to the root workspace.
        """
        resolved = path.resolve()
        best = self.top_level_workspace
        for workspace in self.workspaces:
            if resolved == workspace.cwd or workspace.cwd in resolved.parents:
                if len(workspace.cwd.parts) > len(best.cwd.parts):
                    best = workspace
        return best


def parse_workspace_yaml(text: str) -> dict[str, list[str]]:
    """Minimal YAML reader for ``pnpm-workspace.yaml``.

    The file is always a handful of keys holding flat string lists::

        packages:
          - 'packages/*'
          - '!packages/scratch'

    Anything fancier (anchors, flow sequences) is not supported.
    """
    result: dict[str, list[str]] = {}
    current_key: str | None = None

    for line in text.splitlines():
        stripped = line.split(' #', 1)[0].strip()
        if not stripped or stripped.startswith('#'):
            continue

        if stripped.endswith(':') and not stripped.startswith('-'):
            current_key = stripped[:-1].strip()
            result[current_key] = []
            continue

        if stripped.startswith('-') and current_key is not None:
            value = stripped[1:].strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            result[current_key].append(value)

    return result


def _workspace_globs(root_manifest: dict[str, object], yaml_text: str | None) -> list[str]:
    """Return member globs from ``package.json`` or ``pnpm-workspace.yaml``."""
    declared = root_manifest.get('workspaces')
    if isinstance(declared, dict):
        declared = declared.get('packages')
    if declared is not None:
        if not isinstance(declared, list) or not all(isinstance(p, str) for p in declared):
            raise TypesKitError(
                code=E.WORKSPACE_PARSE_ERROR,
                message='"workspaces" in the root package.json must be a list of globs',
                hint='Use "workspaces": ["packages/*"] or {"packages": ["packages/*"]}.',
            )
        return list(declared)
    if yaml_text is not None:
        return parse_workspace_yaml(yaml_text).get('packages', [])
    return []


def _glob(root: Path, pattern: str) -> list[Path]:
    """Expand one member glob relative to ``root``."""
    pattern = pattern.rstrip('/')
    while pattern.startswith('./'):
        pattern = pattern[2:]
    if pattern in ('', '.'):
        return [root]
    return sorted(root.glob(pattern))


def expand_member_globs(root: Path, patterns: list[str]) -> list[Path]:
    """Expand member globs to directories containing a ``package.json``.

    ``!``-prefixed patterns exclude directories. The root itself is
    never returned.
    """
    include = [p for p in patterns if not p.startswith('!')]
    exclude = [p[1:] for p in patterns if p.startswith('!')]
    root = root.resolve()

    found: set[Path] = set()
    for pattern in include:
        for candidate in _glob(root, pattern):
            if candidate.is_dir() and (candidate / MANIFEST_FILE).is_file() and 'node_modules' not in candidate.parts:
                found.add(candidate.resolve())

    excluded: set[Path] = set()
    for pattern in exclude:
        excluded.update(c.resolve() for c in _glob(root, pattern))

    result = sorted(found - excluded - {root})
    log.debug('expanded_member_globs', include=include, exclude=exclude, count=len(result))
    return result


async def load_workspace(root: Path, cwd: Path) -> Workspace:
    """Read and parse the ``package.json`` in ``cwd``."""
    path = cwd / MANIFEST_FILE
    raw = parse_json_object(await read_file(path), path, code=E.WORKSPACE_PARSE_ERROR)
    relative = PurePosixPath(cwd.relative_to(root).as_posix()) if cwd != root else PurePosixPath('.')
    return Workspace(cwd=cwd, relative_cwd=relative, manifest=Manifest.from_raw(raw))


async def discover_project(root: Path, *, transparent_workspaces: bool = True) -> Project:
    """Load the project rooted at ``root``.

    Raises:
        TypesKitError: If a manifest cannot be parsed or two workspaces
            share a name.
    """
    root = root.resolve()
    top = await load_workspace(root, root)

    yaml_path = root / PNPM_WORKSPACE_FILE
    yaml_text = await read_file(yaml_path) if yaml_path.is_file() else None
    patterns = _workspace_globs(top.manifest.raw, yaml_text)

    workspaces = [top]
    for cwd in expand_member_globs(root, patterns):
        workspaces.append(await load_workspace(root, cwd))

    seen: dict[str, Workspace] = {}
    for workspace in workspaces:
        if workspace.name is None:
            continue
        if workspace.name in seen:
            raise TypesKitError(
                code=E.WORKSPACE_DUPLICATE_PACKAGE,
                message=f"Duplicate package name '{workspace.name}' at {workspace.relative_cwd} "
                f'and {seen[workspace.name].relative_cwd}',
                hint='Each workspace in the project must have a unique name.',
            )
        seen[workspace.name] = workspace

    log.info('discovered_workspaces', root=str(root), count=len(workspaces))
    return Project(root=root, workspaces=workspaces, transparent_workspaces=transparent_workspaces)


def find_project_root(start: Path) -> Path:
    """Walk up from ``start`` to the project root.

    The root is the nearest directory holding ``typeskit.toml``,
    ``pnpm-workspace.yaml``, or a ``package.json`` that declares
    ``workspaces``. Without any of those, the nearest directory with a
    ``package.json`` is used.

    Raises:
        TypesKitError: ``TK-WORKSPACE-NOT-FOUND`` if no ``package.json``
            exists at or above ``start``.
    """
    start = start.resolve()
    nearest_manifest: Path | None = None
    for directory in (start, *start.parents):
        manifest_path = directory / MANIFEST_FILE
        if (directory / CONFIG_MARKER).is_file() or (directory / PNPM_WORKSPACE_FILE).is_file():
            return directory
        if manifest_path.is_file():
            if nearest_manifest is None:
                nearest_manifest = directory
            if _declares_workspaces(manifest_path):
                return directory
    if nearest_manifest is not None:
        return nearest_manifest
    raise TypesKitError(
        code=E.WORKSPACE_NOT_FOUND,
        message=f'No package.json found at or above {start}',
        hint='Run typeskit inside a JavaScript or TypeScript project.',
    )


def _declares_workspaces(manifest_path: Path) -> bool:
    """Return ``True`` if ``manifest_path`` has a ``workspaces`` field."""
    try:
        data = parse_json_object(manifest_path.read_text(encoding='utf-8'), manifest_path)
    except (OSError, TypesKitError):
        log.debug('unreadable_manifest', path=str(manifest_path))
        return False
    return 'workspaces' in data


async def persist_manifest(workspace: Workspace) -> None:
    """Write the workspace's manifest back to ``package.json``."""
    await write_file(workspace.manifest_path, dump_json(workspace.manifest.export_raw()), code=E.MANIFEST_WRITE_FAILED)
    log.info('manifest_written', workspace=str(workspace), path=str(workspace.manifest_path))


def filter_workspaces(workspaces: list[Workspace], exclude: list[str]) -> list[Workspace]:
    """Drop workspaces whose name or relative path matches an ``exclude`` glob."""
    if not exclude:
        return list(workspaces)
    return [
        w
        for w in workspaces
        if not any(fnmatch.fnmatch(w.name or '', pat) or fnmatch.fnmatch(str(w.relative_cwd), pat) for pat in exclude)
    ]


__all__ = [
    'Project',
    'Workspace',
    'discover_project',
    'expand_member_globs',
    'filter_workspaces',
    'find_project_root',
    'load_workspace',
    'parse_workspace_yaml',
    'persist_manifest',
]
