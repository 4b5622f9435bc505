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

"""Tests for typeskit.config."""

from __future__ import annotations

from pathlib import Path

import pytest
from typeskit.config import CONFIG_FILENAME, TypesKitConfig, load_config
from typeskit.errors import E, TypesKitError


def _write(root: Path, text: str) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(text, encoding='utf-8')
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No typeskit.toml means every default applies."""
        config = load_config(tmp_path)
        assert config == TypesKitConfig()
        assert config.auto_types is True
        assert config.companion_scope == 'types'
        assert config.config_path is None

    def test_reads_values(self, tmp_path: Path) -> None:
        """Every supported key round-trips into the dataclass."""
        path = _write(
            tmp_path,
            'auto_types = false\n'
            'sync_references = true\n'
            'companion_scope = "typings"\n'
            'tsconfig = "tsconfig.build.json"\n'
            'registry = "http://localhost:4873"\n'
            'transparent_workspaces = false\n'
            'exclude = ["examples-*", "docs"]\n'
            'http_pool_size = 4\n'
            'http_timeout = 5\n',
        )
        config = load_config(tmp_path)
        assert config.auto_types is False
        assert config.companion_scope == 'typings'
        assert config.tsconfig == 'tsconfig.build.json'
        assert config.registry == 'http://localhost:4873'
        assert config.transparent_workspaces is False
        assert config.exclude == ['examples-*', 'docs']
        assert config.http_pool_size == 4
        assert config.http_timeout == 5
        assert config.config_path == path

    def test_unknown_key_suggests(self, tmp_path: Path) -> None:
        """Typos get a did-you-mean hint."""
        _write(tmp_path, 'auto_type = false\n')
        with pytest.raises(TypesKitError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == E.CONFIG_INVALID_KEY
        assert "Did you mean 'auto_types'?" in exc_info.value.hint

    def test_unknown_key_lists_valid_keys(self, tmp_path: Path) -> None:
        """Keys with no close match list every valid key."""
        _write(tmp_path, 'zzz = 1\n')
        with pytest.raises(TypesKitError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.hint.startswith('Valid keys: ')

    @pytest.mark.parametrize(
        'text',
        [
            'auto_types = "yes"\n',
            'http_pool_size = true\n',
            'http_timeout = "fast"\n',
            'exclude = "docs"\n',
            'exclude = [1, 2]\n',
            'http_pool_size = 0\n',
            'http_timeout = 0\n',
            'tsconfig = "  "\n',
            'companion_scope = "@types"\n',
        ],
    )
    def test_invalid_values(self, tmp_path: Path, text: str) -> None:
        """Wrong types and out-of-range values are rejected."""
        _write(tmp_path, text)
        with pytest.raises(TypesKitError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == E.CONFIG_INVALID_VALUE

    def test_bad_toml(self, tmp_path: Path) -> None:
        """Syntax errors are reported, not raised raw."""
        _write(tmp_path, 'auto_types = = true\n')
        with pytest.raises(TypesKitError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == E.CONFIG_NOT_FOUND
