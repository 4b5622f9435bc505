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

"""Companion dependency reconciliation.

Decides which companion entries a workspace should gain or lose when one
of its dependencies is added or removed. The functions here never touch
the workspace: they return a :class:`ReconcilePlan` listing
:class:`DependencyMutation` items, and :func:`apply_mutations` (called
by :mod:`typeskit.hooks`) carries them out.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Sibling propagation │ If another workspace already depends on the    │
    │                     │ same library at the same range AND already has │
    │                     │ its companion, copy that companion entry.      │
    │                     │ Keeps the whole repo on one companion range.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Registry lookup     │ Nobody has the companion yet: ask the resolver │
    │                     │ whether ``@types/<lib>@^<major>`` exists and   │
    │                     │ add it as a dev dependency if it does.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Removal             │ Drop the companion from every section of the   │
    │                     │ workspace. No registry, no siblings.           │
    └─────────────────────┴────────────────────────────────────────────────┘

Addition decision flow::

    descriptor added to W
        │
        ├── in companion scope? ───────────────→ skipped
        ├── ships own declarations? ───────────→ skipped
        ├── companion range (see ranges.py) ──→ failed / skipped
        ├── sibling with same descriptor
        │   and a companion entry? ────────────→ ok: copy sibling entries
        └── resolver has candidates
            for the companion? ── no ──────────→ skipped / failed
                                 └─ yes ───────→ ok: devDependencies
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from typeskit.backends import DeclarationsLookup, Resolver
from typeskit.companion import DEFAULT_COMPANION_SCOPE, companion_descriptor, companion_ident, is_companion
from typeskit.logging import get_logger
from typeskit.manifest import ALL_KINDS, DependencyKind, Manifest
from typeskit.project import Project, Workspace
from typeskit.ranges import Outcome, resolve_companion_range
from typeskit.structs import Descriptor, Ident

log = get_logger('typeskit.reconcile')


class MutationAction(str, Enum):
    """What a :class:`DependencyMutation` does."""

    SET = 'set'
    DELETE = 'delete'


@dataclass(frozen=True)
class DependencyMutation:
    """One change to a workspace's dependency sections.

    Attributes:
        action: ``set`` inserts or replaces, ``delete`` removes.
        kind: The dependency section to change.
        ident: The package concerned.
        range: The range to set; ``None`` for deletions.
    """

    action: MutationAction
    kind: DependencyKind
    ident: Ident
    range: str | None = None

    @property
    def descriptor(self) -> Descriptor:
        """The descriptor being set."""
        if self.range is None:
            msg = 'delete mutations carry no descriptor'
            raise ValueError(msg)
        return Descriptor(ident=self.ident, range=self.range)

    def __str__(self) -> str:
        """Return a one-line description, e.g. ``set devDependencies @types/foo@^2``."""
        target = str(self.ident) if self.range is None else f'{self.ident}@{self.range}'
        return f'{self.action.value} {self.kind.value} {target}'


@dataclass(frozen=True)
class ReconcilePlan:
    """Result of planning an addition or removal.

    Attributes:
        outcome: ``ok`` when there is something to apply.
        mutations: Changes to apply to the triggering workspace.
        reason: Why nothing is applied, for ``skipped``/``failed``.
        source: ``"sibling"`` or ``"registry"`` for addition plans.
    """

    outcome: Outcome
    mutations: tuple[DependencyMutation, ...] = field(default_factory=tuple)
    reason: str = ''
    source: str | None = None


def _sibling_companions(
    project: Project,
    descriptor: Descriptor,
    companion: Ident,
) -> list[tuple[DependencyKind, Descriptor]] | None:
    """Return the companion entries of the first matching sibling workspace.

    A sibling matches when its regular or development section holds
    exactly ``descriptor`` (same ident and range) and any of its sections
    holds ``companion``.
    """
    companion_hash = companion.ident_hash
    for workspace in project.workspaces:
        manifest = workspace.manifest
        regular = manifest.get(DependencyKind.REGULAR, descriptor.ident_hash)
        development = manifest.get(DependencyKind.DEVELOPMENT, descriptor.ident_hash)
        if regular != descriptor and development != descriptor:
            continue
        found: list[tuple[DependencyKind, Descriptor]] = []
        for kind in ALL_KINDS:
            existing = manifest.get(kind, companion_hash)
            if existing is not None:
                found.append((kind, existing))
        if found:
            log.debug('sibling_companion_found', sibling=str(workspace), companion=str(companion))
            return found
    return None


async def plan_addition(
    project: Project,
    workspace: Workspace,
    descriptor: Descriptor,
    *,
    resolver: Resolver,
    declarations: DeclarationsLookup,
    scope: str = DEFAULT_COMPANION_SCOPE,
) -> ReconcilePlan:
    """Plan the companion changes for ``descriptor`` being added to ``workspace``.

    Sibling propagation always runs before the registry lookup. Neither
    declarations lookups nor resolver queries can make this raise: their
    failures come back as ``failed`` plans.

    Args:
        project: The project, scanned for sibling workspaces.
        workspace: The workspace that gained ``descriptor``.
        descriptor: The dependency that was added.
        resolver: Used for tag selectors and for the registry lookup.
        declarations: Decides whether the library ships its own typings.
        scope: The companion scope.
    """
    if is_companion(descriptor.ident, scope=scope):
        return ReconcilePlan(Outcome.SKIPPED, reason=f'{descriptor.ident} is already a companion package')

    try:
        bundled = await declarations.has_own_declarations(descriptor)
    except Exception as exc:  # noqa: BLE001 - lookup failures mean "no companion"
        log.debug('declarations_lookup_failed', descriptor=str(descriptor), error=str(exc))
        return ReconcilePlan(Outcome.FAILED, reason=f'declarations lookup failed for {descriptor}: {exc}')
    if bundled:
        return ReconcilePlan(Outcome.SKIPPED, reason=f'{descriptor.ident} ships its own declarations')

    range_result = await resolve_companion_range(descriptor, resolver, scope=scope)
    if not range_result.ok or range_result.range is None:
        return ReconcilePlan(range_result.outcome, reason=range_result.reason)

    companion = companion_descriptor(descriptor, range_result.range, scope=scope)

    siblings = _sibling_companions(project, descriptor, companion.ident)
    if siblings is not None:
        mutations = tuple(
            DependencyMutation(MutationAction.SET, kind, existing.ident, existing.range) for kind, existing in siblings
        )
        return ReconcilePlan(Outcome.OK, mutations=mutations, source='sibling')

    try:
        candidates = await resolver.get_candidates(companion)
    except Exception as exc:  # noqa: BLE001 - an unresolvable companion is never added
        log.debug('companion_lookup_failed', companion=str(companion), error=str(exc))
        return ReconcilePlan(Outcome.FAILED, reason=f'could not resolve {companion}: {exc}')
    if not candidates:
        log.debug('companion_not_published', companion=str(companion))
        return ReconcilePlan(Outcome.SKIPPED, reason=f'{companion} has no published versions')

    mutation = DependencyMutation(MutationAction.SET, DependencyKind.DEVELOPMENT, companion.ident, companion.range)
    return ReconcilePlan(Outcome.OK, mutations=(mutation,), source='registry')


def plan_removal(
    workspace: Workspace,
    descriptor: Descriptor,
    *,
    scope: str = DEFAULT_COMPANION_SCOPE,
) -> ReconcilePlan:
    """Plan dropping the companion of ``descriptor`` from every section of ``workspace``."""
    if is_companion(descriptor.ident, scope=scope):
        return ReconcilePlan(Outcome.SKIPPED, reason=f'{descriptor.ident} is already a companion package')

    companion = companion_ident(descriptor.ident, scope=scope)
    mutations = tuple(
        DependencyMutation(MutationAction.DELETE, kind, companion)
        for kind in ALL_KINDS
        if workspace.manifest.get(kind, companion.ident_hash) is not None
    )
    if not mutations:
        return ReconcilePlan(Outcome.SKIPPED, reason=f'{workspace} does not depend on {companion}')
    return ReconcilePlan(Outcome.OK, mutations=mutations)


def apply_mutations(manifest: Manifest, mutations: tuple[DependencyMutation, ...]) -> None:
    """Apply ``mutations`` to ``manifest`` in order."""
    for mutation in mutations:
        if mutation.action is MutationAction.SET:
            manifest.set(mutation.kind, mutation.descriptor)
        else:
            manifest.delete(mutation.kind, mutation.ident.ident_hash)


__all__ = [
    'DependencyMutation',
    'MutationAction',
    'ReconcilePlan',
    'apply_mutations',
    'plan_addition',
    'plan_removal',
]
