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

"""Tests for the typeskit CLI."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import pytest
from typeskit import __version__
from typeskit.cli import build_parser, main

PACKUMENTS: dict[str, Any] = {
    '/lodash': {'dist-tags': {'latest': '4.17.21'}, 'versions': {'4.17.20': {}, '4.17.21': {}}},
    '/@types%2Flodash': {'dist-tags': {'latest': '4.14.202'}, 'versions': {'4.14.202': {}}},
}


def _write(path: Path, data: dict[str, Any]) -> None:  # noqa: ANN401
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + '\n', encoding='utf-8')


def _read(path: Path) -> dict[str, Any]:  # noqa: ANN401
    return json.loads(path.read_text(encoding='utf-8'))


@pytest.fixture()
def monorepo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A two-package monorepo with the CWD at its root."""
    _write(tmp_path / 'package.json', {'name': 'monorepo', 'private': True, 'workspaces': ['packages/*']})
    _write(
        tmp_path / 'packages' / 'app' / 'package.json',
        {'name': '@acme/app', 'dependencies': {'@acme/lib': 'workspace:^'}},
    )
    _write(
        tmp_path / 'packages' / 'lib' / 'package.json',
        {
            'name': '@acme/lib',
            'version': '1.0.0',
            'types': './src/index.ts',
            'publishConfig': {'types': './dist/index.d.ts'},
        },
    )
    (tmp_path / 'typeskit.toml').write_text('http_timeout = 5\n', encoding='utf-8')
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def registry(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Serve PACKUMENTS instead of the real registry; return the requested URLs."""
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        """Return the packument whose path suffix matches."""
        requested.append(str(request.url))
        for suffix, body in PACKUMENTS.items():
            if str(request.url).endswith(suffix):
                return httpx.Response(200, text=json.dumps(body))
        return httpx.Response(404, text='Not found')

    @asynccontextmanager
    async def _client_cm(**kw: Any) -> AsyncGenerator[httpx.AsyncClient]:  # noqa: ANN401
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            yield client

    monkeypatch.setattr('typeskit.backends.registry.http_client', _client_cm)
    return requested


class TestBuildParser:
    """Tests for build_parser()."""

    def test_add_flags(self) -> None:
        """add accepts a workspace and a dependency kind."""
        args = build_parser().parse_args(['add', 'lodash@^4', '-w', 'packages/app', '-D'])
        assert args.command == 'add'
        assert args.descriptor == 'lodash@^4'
        assert args.workspace == 'packages/app'
        assert args.dev is True

    def test_kinds_are_exclusive(self) -> None:
        """--dev and --peer cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['add', 'lodash', '--dev', '--peer'])

    def test_sync_dry_run(self) -> None:
        """sync has a --dry-run flag."""
        args = build_parser().parse_args(['-q', 'sync', '--dry-run'])
        assert args.quiet is True
        assert args.dry_run is True

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the package version and exits 0."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(['--version'])
        assert exc_info.value.code == 0
        assert f'typeskit {__version__}' in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Running without a subcommand prints help and exits 2."""
        assert main([]) == 2
        assert 'please provide a command' in capsys.readouterr().err

    def test_explain(self, capsys: pytest.CaptureFixture[str]) -> None:
        """explain prints the catalogue entry."""
        assert main(['explain', 'TK-WORKSPACE-NOT-FOUND']) == 0
        assert 'No package.json was found' in capsys.readouterr().out

    def test_explain_unknown(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Unknown codes exit 1."""
        assert main(['explain', 'TK-NOPE']) == 1
        assert 'Unknown error code' in capsys.readouterr().out

    def test_outside_a_project(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Commands needing a project fail cleanly without one."""
        monkeypatch.chdir(tmp_path)
        assert main(['-q', 'sync']) == 1
        assert 'TK-WORKSPACE-NOT-FOUND' in capsys.readouterr().err

    def test_sync(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """sync writes references for local edges."""
        assert main(['-q', 'sync']) == 0
        assert _read(monorepo / 'packages' / 'app' / 'tsconfig.json') == {'references': [{'path': '../lib'}]}
        assert 'updated @acme/app' in capsys.readouterr().out

        assert main(['-q', 'sync']) == 0
        assert 'references are up to date' in capsys.readouterr().out

    def test_sync_dry_run(self, monorepo: Path) -> None:
        """Dry runs leave the tree alone."""
        assert main(['-q', 'sync', '--dry-run']) == 0
        assert not (monorepo / 'packages' / 'app' / 'tsconfig.json').exists()

    @pytest.mark.usefixtures('registry')
    def test_add_with_companion(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """add records the dependency and its companion."""
        assert main(['-q', 'add', 'lodash@^4.17.21', '-w', 'packages/app']) == 0
        manifest = _read(monorepo / 'packages' / 'app' / 'package.json')
        assert manifest['dependencies'] == {'@acme/lib': 'workspace:^', 'lodash': '^4.17.21'}
        assert manifest['devDependencies'] == {'@types/lodash': '^4'}
        assert 'set devDependencies @types/lodash@^4' in capsys.readouterr().out

    @pytest.mark.usefixtures('registry')
    def test_add_without_range(self, monorepo: Path) -> None:
        """A bare name is added at ^latest."""
        assert main(['-q', 'add', 'lodash', '-w', '@acme/app']) == 0
        manifest = _read(monorepo / 'packages' / 'app' / 'package.json')
        assert manifest['dependencies']['lodash'] == '^4.17.21'

    def test_add_fetches_each_packument_once(self, monorepo: Path, registry: list[str]) -> None:
        """Resolving the bare name and planning the companion share one registry cache."""
        assert main(['-q', 'add', 'lodash', '-w', '@acme/app']) == 0
        assert [url for url in registry if url.endswith('/lodash')] == ['https://registry.npmjs.org/lodash']

    @pytest.mark.usefixtures('registry')
    def test_remove(self, monorepo: Path) -> None:
        """remove drops the dependency and its companion, then resyncs."""
        assert main(['-q', 'add', 'lodash@^4.17.21', '-w', 'packages/app']) == 0
        assert main(['-q', 'remove', '@acme/lib', '-w', 'packages/app']) == 0
        assert main(['-q', 'remove', 'lodash', '-w', 'packages/app']) == 0
        manifest = _read(monorepo / 'packages' / 'app' / 'package.json')
        assert 'dependencies' not in manifest
        assert 'devDependencies' not in manifest
        assert _read(monorepo / 'packages' / 'app' / 'tsconfig.json') == {}

    def test_remove_unknown(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Removing something that is not there is an error."""
        assert main(['-q', 'remove', 'left-pad', '-w', 'packages/app']) == 1
        assert 'TK-DESCRIPTOR-INVALID' in capsys.readouterr().err

    def test_unknown_workspace(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An unknown -w value is reported."""
        assert main(['-q', 'pack-manifest', '-w', 'packages/nope']) == 1
        assert 'TK-WORKSPACE-UNKNOWN' in capsys.readouterr().err

    def test_pack_manifest(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """pack-manifest prints the publish-time manifest and leaves the file alone."""
        assert main(['-q', 'pack-manifest', '-w', '@acme/lib']) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload['types'] == './dist/index.d.ts'
        assert _read(monorepo / 'packages' / 'lib' / 'package.json')['types'] == './src/index.ts'

    @pytest.mark.usefixtures('registry')
    def test_companion(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """companion prints the companion descriptor."""
        assert main(['-q', 'companion', 'lodash@latest']) == 0
        assert capsys.readouterr().out.strip() == '@types/lodash@^4'

    def test_companion_of_companion(self, monorepo: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Companions have no companion."""
        assert main(['-q', 'companion', '@types/node@^20']) == 1
        assert 'no companion' in capsys.readouterr().err
