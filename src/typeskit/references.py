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

"""TypeScript project references synchronizer.

Mirrors the local dependency graph into each workspace's
``tsconfig.json`` ``references`` list::

    packages/app/package.json              packages/app/tsconfig.json
    ┌────────────────────────────────┐     ┌──────────────────────────┐
    │ "dependencies": {              │     │ "references": [          │
    │   "@acme/lib": "workspace:^",  │ ──→ │   {"path": "../lib"},    │
    │   "lodash": "^4.17.21"         │     │   {"path": "../test"}    │
    │ },                             │     │ ]                        │
    │ "devDependencies": {           │     │                          │
    │   "@acme/test": "workspace:*"  │ ──→ │ lodash is not local and  │
    │ }                              │     │ never appears            │
    └────────────────────────────────┘     └──────────────────────────┘

Rules:

- References are compared as a *set* of paths. Reordering entries by
  hand never triggers a rewrite.
- When a rewrite happens the list is rebuilt in dependency order.
- Only ``references`` is touched; every other key is kept.
- A missing or broken document is replaced by a fresh one.
- A workspace with no local dependencies loses a non-empty list.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

from typeskit.backends import DocumentStorage
from typeskit.errors import E, TypesKitError
from typeskit.logging import get_logger
from typeskit.manifest import ALL_KINDS
from typeskit.project import Project, Workspace

log = get_logger('typeskit.references')

DEFAULT_DOCUMENT = 'tsconfig.json'


@dataclass(frozen=True)
class ReferencesPlan:
    """Result of :func:`plan_references`.

    Attributes:
        document: The document to persist (a new dict, never the input).
        changed: Whether the document must be written.
    """

    document: dict[str, Any]  # noqa: ANN401 - JSON payload
    changed: bool


@dataclass
class SyncReport:
    """Summary of a :func:`sync_references` pass.

    Attributes:
        written: Workspaces whose document was (or, in dry-run mode,
            would be) rewritten.
        unchanged: Workspaces whose document already matched.
    """

    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)


def _relative_posix(source: Path, target: Path) -> str:
    """Return the POSIX path to ``target`` as seen from ``source``."""
    return PurePath(os.path.relpath(target, source)).as_posix()


def local_dependency_paths(project: Project, workspace: Workspace) -> list[str]:
    """Return relative paths to the local workspaces ``workspace`` depends on.

    Every entry of every dependency kind is resolved on its own, in
    :data:`~typeskit.manifest.ALL_KINDS` order, so an ident that is
    external in one section and local in another still yields an edge.
    Self-edges are dropped and each target is listed once.
    """
    paths: list[str] = []
    for kind in ALL_KINDS:
        for descriptor in workspace.manifest.sections[kind].values():
            target = project.try_workspace_by_descriptor(descriptor)
            if target is None or target is workspace:
                continue
            path = _relative_posix(workspace.cwd, target.cwd)
            if path not in paths:
                paths.append(path)
    return paths


def _existing_paths(document: dict[str, Any]) -> set[str]:  # noqa: ANN401 - JSON payload
    """Collect the ``path`` of every well-formed entry in ``references``."""
    references = document.get('references')
    if not isinstance(references, list):
        return set()
    return {ref['path'] for ref in references if isinstance(ref, dict) and isinstance(ref.get('path'), str)}


def plan_references(
    document: dict[str, Any],  # noqa: ANN401 - JSON payload
    paths: list[str],
    *,
    readable: bool = True,
) -> ReferencesPlan:
    """Decide the new ``references`` list for one document.

    Args:
        document: The current document (empty when it could not be read).
        paths: Output of :func:`local_dependency_paths`.
        readable: ``False`` when the document could not be read; the
            result is then always marked changed.
    """
    updated = dict(document)
    changed = not readable

    if not paths:
        references = updated.get('references')
        if isinstance(references, list) and references:
            del updated['references']
            changed = True
        return ReferencesPlan(document=updated, changed=changed)

    if _existing_paths(document) != set(paths):
        changed = True
    updated['references'] = [{'path': path} for path in paths]
    return ReferencesPlan(document=updated, changed=changed)


async def sync_references(
    project: Project,
    storage: DocumentStorage,
    *,
    filename: str = DEFAULT_DOCUMENT,
    workspaces: list[Workspace] | None = None,
    dry_run: bool = False,
) -> SyncReport:
    """Bring every workspace's ``references`` in line with its local dependencies.

    Workspaces are processed one at a time, each with its own read, plan,
    and conditional write.

    Args:
        project: The project whose dependency graph is mirrored.
        storage: Reads and writes the documents.
        filename: Document name inside each workspace directory.
        workspaces: Subset to process; defaults to every workspace.
        dry_run: Plan and report without writing.

    Raises:
        TypesKitError: ``TK-DOCUMENT-WRITE-FAILED`` if a document cannot
            be written.
    """
    report = SyncReport()
    for workspace in project.workspaces if workspaces is None else workspaces:
        path = workspace.cwd / filename
        paths = local_dependency_paths(project, workspace)

        try:
            document = await storage.read_json(path)
            readable = True
        except Exception as exc:  # noqa: BLE001 - an unreadable document is regenerated
            log.debug('document_unreadable', workspace=str(workspace), path=str(path), error=str(exc))
            document, readable = {}, False

        plan = plan_references(document, paths, readable=readable)
        if not plan.changed:
            report.unchanged.append(str(workspace))
            continue

        report.written.append(str(workspace))
        if dry_run:
            log.info('references_would_change', workspace=str(workspace), references=paths)
            continue

        try:
            await storage.write_json(path, plan.document)
        except TypesKitError:
            raise
        except OSError as exc:
            raise TypesKitError(
                code=E.DOCUMENT_WRITE_FAILED,
                message=f'Failed to write {path}: {exc}',
                hint=f'Check file permissions for {workspace.cwd}.',
            ) from exc
        log.info('references_written', workspace=str(workspace), references=paths)

    log.info('references_synced', written=len(report.written), unchanged=len(report.unchanged))
    return report


__all__ = [
    'DEFAULT_DOCUMENT',
    'ReferencesPlan',
    'SyncReport',
    'local_dependency_paths',
    'plan_references',
    'sync_references',
]
