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

"""Tests for typeskit.hooks."""

from __future__ import annotations

import pytest
import structlog
from typeskit.config import TypesKitConfig
from typeskit.hooks import EVENTS, TypesPlugin
from typeskit.manifest import DependencyKind
from typeskit.project import Project
from typeskit.ranges import Outcome
from typeskit.structs import parse_descriptor

from tests._fakes import ROOT, FakeDeclarations, FakeResolver, MemoryStorage, make_project


def _project() -> Project:
    return make_project({
        'examples/demo': {'name': 'demo', 'dependencies': {'@acme/lib': 'workspace:*'}},
        'packages/app': {'name': '@acme/app', 'dependencies': {'foo': '^2.0.0', '@acme/lib': 'workspace:^'}},
        'packages/lib': {'name': '@acme/lib', 'version': '1.0.0', 'devDependencies': {'@types/foo': '^2'}},
    })


def _plugin(project: Project, storage: MemoryStorage | None = None, **config: object) -> TypesPlugin:
    return TypesPlugin(
        project,
        resolver=FakeResolver({'@types/foo': ['2.0.1']}),
        declarations=FakeDeclarations(),
        storage=storage or MemoryStorage(),
        config=TypesKitConfig(**config),  # type: ignore[arg-type]
    )


class TestDependencyHooks:
    """Tests for the addition and removal hooks."""

    @pytest.mark.asyncio()
    async def test_addition_applies_plan(self) -> None:
        """The companion lands in the workspace manifest."""
        project = _project()
        app = project.get_workspace('@acme/app')
        plan = await _plugin(project).after_workspace_dependency_addition(
            app,
            DependencyKind.REGULAR,
            parse_descriptor('foo@^2.0.0'),
        )
        assert plan.outcome is Outcome.OK
        assert app.manifest.export_raw()['devDependencies'] == {'@types/foo': '^2'}

    @pytest.mark.asyncio()
    async def test_auto_types_disabled(self) -> None:
        """Nothing is planned or applied when auto_types is off."""
        project = _project()
        app = project.get_workspace('@acme/app')
        plan = await _plugin(project, auto_types=False).after_workspace_dependency_addition(
            app,
            DependencyKind.REGULAR,
            parse_descriptor('foo@^2.0.0'),
        )
        assert plan.outcome is Outcome.SKIPPED
        assert 'devDependencies' not in app.manifest.export_raw()

    @pytest.mark.asyncio()
    async def test_removal_applies_plan(self) -> None:
        """The companion disappears with its library."""
        project = _project()
        lib = project.get_workspace('@acme/lib')
        plan = await _plugin(project).after_workspace_dependency_removal(
            lib,
            DependencyKind.REGULAR,
            parse_descriptor('foo@^2.0.0'),
        )
        assert plan.outcome is Outcome.OK
        assert 'devDependencies' not in lib.manifest.export_raw()


class TestAfterAllInstalled:
    """Tests for the references hook."""

    @pytest.mark.asyncio()
    async def test_exclude(self) -> None:
        """Excluded workspaces are never read or written."""
        project = _project()
        storage = MemoryStorage()
        report = await _plugin(project, storage, exclude=['examples/*']).after_all_installed(project)
        assert 'demo' not in report.written
        assert ROOT / 'examples' / 'demo' / 'tsconfig.json' not in storage.documents
        assert storage.documents[ROOT / 'packages' / 'app' / 'tsconfig.json'] == {'references': [{'path': '../lib'}]}

    @pytest.mark.asyncio()
    async def test_custom_document(self) -> None:
        """The configured document name is used."""
        project = _project()
        storage = MemoryStorage()
        await _plugin(project, storage, tsconfig='tsconfig.build.json').after_all_installed(project)
        assert ROOT / 'packages' / 'app' / 'tsconfig.build.json' in storage.documents

    @pytest.mark.asyncio()
    async def test_disabled(self) -> None:
        """sync_references = false skips the pass entirely."""
        project = _project()
        storage = MemoryStorage()
        report = await _plugin(project, storage, sync_references=False).after_all_installed(project)
        assert report.written == []
        assert storage.writes == []


class TestDispatch:
    """Tests for TypesPlugin.dispatch()."""

    @pytest.mark.asyncio()
    async def test_unknown_event(self) -> None:
        """Unknown events raise ValueError."""
        with pytest.raises(ValueError, match="Unknown hook event: 'after_install'"):
            await _plugin(_project()).dispatch('after_install')

    @pytest.mark.asyncio()
    async def test_sync_handler(self) -> None:
        """Synchronous handlers are dispatched too."""
        project = _project()
        payload = {'types': './src/index.ts', 'publishConfig': {'types': './dist/index.d.ts'}}
        result = await _plugin(project).dispatch(
            'before_workspace_packing',
            project.get_workspace('@acme/lib'),
            payload,
        )
        assert result['types'] == './dist/index.d.ts'

    @pytest.mark.asyncio()
    async def test_async_handler(self) -> None:
        """Coroutine handlers are awaited."""
        project = _project()
        report = await _plugin(project).dispatch('after_all_installed', project, dry_run=True)
        assert '@acme/app' in report.written

    @pytest.mark.asyncio()
    async def test_handler_sees_hook_context(self) -> None:
        """Handlers log with the event and workspace bound, and the binding ends with the call."""
        project = _project()
        plugin = _plugin(project)
        seen: dict[str, object] = {}

        def handler(workspace: object, payload: dict[str, object]) -> dict[str, object]:
            seen.update(structlog.contextvars.get_contextvars())
            return payload

        plugin.before_workspace_packing = handler  # type: ignore[method-assign]
        await plugin.dispatch('before_workspace_packing', project.get_workspace('@acme/lib'), {})
        assert seen['hook_event'] == 'before_workspace_packing'
        assert seen['workspace'] == '@acme/lib'
        assert 'hook_event' not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio()
    async def test_project_argument_binds_no_workspace(self) -> None:
        """Project-wide events bind only the event name."""
        project = _project()
        plugin = _plugin(project)
        seen: dict[str, object] = {}

        async def handler(target: object, **kwargs: object) -> None:
            seen.update(structlog.contextvars.get_contextvars())

        plugin.after_all_installed = handler  # type: ignore[method-assign]
        await plugin.dispatch('after_all_installed', project)
        assert seen['hook_event'] == 'after_all_installed'
        assert 'workspace' not in seen

    def test_events(self) -> None:
        """Every event name is a handler method."""
        plugin = _plugin(_project())
        assert all(callable(getattr(plugin, event)) for event in EVENTS)
