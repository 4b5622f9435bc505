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

"""Lifecycle hooks for typeskit.

:class:`TypesPlugin` is the thin adapter between a package manager's
lifecycle events and the planning functions in :mod:`typeskit.reconcile`,
:mod:`typeskit.references` and :mod:`typeskit.publish`:

- ``after_workspace_dependency_addition``: add the companion package.
- ``after_workspace_dependency_removal``: drop the companion package.
- ``after_all_installed``: sync ``tsconfig.json`` references.
- ``before_workspace_packing``: promote ``publishConfig`` typings.

Usage::

    from typeskit.hooks import TypesPlugin

    plugin = TypesPlugin(project, resolver=registry, declarations=registry, storage=JsonDocumentStorage())
    await plugin.dispatch('after_workspace_dependency_addition', workspace, DependencyKind.REGULAR, descriptor)
    await plugin.dispatch('after_all_installed', project)
"""

from __future__ import annotations

import inspect
from typing import Any

from typeskit.backends import DeclarationsLookup, DocumentStorage, Resolver
from typeskit.config import TypesKitConfig
from typeskit.logging import get_logger, hook_context
from typeskit.manifest import DependencyKind
from typeskit.project import Project, Workspace, filter_workspaces
from typeskit.publish import adjust_publish_manifest
from typeskit.ranges import Outcome
from typeskit.reconcile import ReconcilePlan, apply_mutations, plan_addition, plan_removal
from typeskit.references import SyncReport, sync_references
from typeskit.structs import Descriptor

log = get_logger('typeskit.hooks')

#: Every event :meth:`TypesPlugin.dispatch` accepts.
EVENTS: tuple[str, ...] = (
    'after_workspace_dependency_addition',
    'after_workspace_dependency_removal',
    'after_all_installed',
    'before_workspace_packing',
)


class TypesPlugin:
    """Applies companion and reference plans to a project.

    Args:
        project: The project the events belong to.
        resolver: Candidate resolver for companion ranges and registry lookups.
        declarations: Decides whether a library ships its own typings.
        storage: Reads and writes ``tsconfig.json`` documents.
        config: Settings; defaults apply when omitted.
    """

    def __init__(
        self,
        project: Project,
        *,
        resolver: Resolver,
        declarations: DeclarationsLookup,
        storage: DocumentStorage,
        config: TypesKitConfig | None = None,
    ) -> None:
        """Initialize with the project and its collaborators."""
        self._project = project
        self._resolver = resolver
        self._declarations = declarations
        self._storage = storage
        self._config = config or TypesKitConfig()

    async def after_workspace_dependency_addition(
        self,
        workspace: Workspace,
        kind: DependencyKind,
        descriptor: Descriptor,
    ) -> ReconcilePlan:
        """Add the companion of ``descriptor`` to ``workspace`` when one is needed."""
        if not self._config.auto_types:
            return ReconcilePlan(Outcome.SKIPPED, reason='auto_types is disabled')

        plan = await plan_addition(
            self._project,
            workspace,
            descriptor,
            resolver=self._resolver,
            declarations=self._declarations,
            scope=self._config.companion_scope,
        )
        if plan.outcome is Outcome.OK:
            apply_mutations(workspace.manifest, plan.mutations)
            log.info(
                'companion_added',
                workspace=str(workspace),
                dependency=str(descriptor),
                kind=kind.value,
                source=plan.source,
                changes=[str(m) for m in plan.mutations],
            )
        else:
            log.debug('companion_not_added', workspace=str(workspace), dependency=str(descriptor), reason=plan.reason)
        return plan

    async def after_workspace_dependency_removal(
        self,
        workspace: Workspace,
        kind: DependencyKind,
        descriptor: Descriptor,
    ) -> ReconcilePlan:
        """Drop the companion of ``descriptor`` from every section of ``workspace``."""
        if not self._config.auto_types:
            return ReconcilePlan(Outcome.SKIPPED, reason='auto_types is disabled')

        plan = plan_removal(workspace, descriptor, scope=self._config.companion_scope)
        if plan.outcome is Outcome.OK:
            apply_mutations(workspace.manifest, plan.mutations)
            log.info(
                'companion_removed',
                workspace=str(workspace),
                dependency=str(descriptor),
                kind=kind.value,
                changes=[str(m) for m in plan.mutations],
            )
        return plan

    async def after_all_installed(self, project: Project, *, dry_run: bool = False) -> SyncReport:
        """Sync ``references`` for every workspace not excluded by config."""
        if not self._config.sync_references:
            log.debug('references_sync_disabled')
            return SyncReport()
        return await sync_references(
            project,
            self._storage,
            filename=self._config.tsconfig,
            workspaces=filter_workspaces(project.workspaces, self._config.exclude),
            dry_run=dry_run,
        )

    def before_workspace_packing(self, workspace: Workspace, raw_manifest: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
        """Promote ``publishConfig`` typings in the payload about to be packed."""
        adjusted = adjust_publish_manifest(raw_manifest)
        log.debug('publish_manifest_adjusted', workspace=str(workspace))
        return adjusted

    async def dispatch(self, event: str, *args: Any, **kwargs: Any) -> Any:  # noqa: ANN401 - handler-specific
        """Run the handler for ``event``.

        Log lines emitted by the handler carry ``hook_event`` and, when the
        first argument is a workspace, ``workspace``.

        Raises:
            ValueError: If ``event`` is not one of :data:`EVENTS`.
        """
        if event not in EVENTS:
            msg = f"Unknown hook event: '{event}'"
            raise ValueError(msg)
        target = args[0] if args else None
        context = {'workspace': str(target)} if isinstance(target, Workspace) else {}
        with hook_context(event, **context):
            log.debug('hook_dispatched')
            result = getattr(self, event)(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        return result


__all__ = [
    'EVENTS',
    'TypesPlugin',
]
