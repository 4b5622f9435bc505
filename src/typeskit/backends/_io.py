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

"""Shared async file I/O helpers.

Every read and write of ``package.json`` and ``tsconfig.json`` goes
through these helpers so the event loop is never blocked and every
failure surfaces as a :class:`~typeskit.errors.TypesKitError` with a
useful hint.

JSON is written the way npm writes it: two-space indentation, non-ASCII
characters kept as-is, and a trailing newline.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiofiles

from typeskit.errors import E, ErrorCode, TypesKitError


async def read_file(path: Path) -> str:
    """Read a UTF-8 text file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, encoding='utf-8') as f:
            return await f.read()
    except OSError as exc:
        raise TypesKitError(
            code=E.DOCUMENT_READ_FAILED,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


async def write_file(path: Path, content: str, *, code: ErrorCode = E.DOCUMENT_WRITE_FAILED) -> None:
    """Write a UTF-8 text file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, mode='w', encoding='utf-8') as f:
            await f.write(content)
    except OSError as exc:
        raise TypesKitError(
            code=code,
            message=f'Failed to write {path}: {exc}',
            hint=f'Check file permissions for {path}.',
        ) from exc


def parse_json_object(
    text: str,
    path: Path,
    *,
    code: ErrorCode = E.DOCUMENT_READ_FAILED,
) -> dict[str, Any]:  # noqa: ANN401 - JSON dict values are inherently untyped
    """Parse JSON text that must hold an object at the top level."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TypesKitError(
            code=code,
            message=f'Failed to parse {path}: {exc}',
            hint=f'Check that {path} contains valid JSON.',
        ) from exc
    if not isinstance(data, dict):
        raise TypesKitError(
            code=code,
            message=f'{path} is not a JSON object',
            hint=f'Expected a JSON object (dict) at the top level of {path}.',
        )
    return data


def dump_json(data: dict[str, Any]) -> str:  # noqa: ANN401 - JSON payload
    """Serialize ``data`` with two-space indentation and a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + '\n'


class JsonDocumentStorage:
    """File-backed :class:`~typeskit.backends.DocumentStorage`."""

    async def read_json(self, path: Path) -> dict[str, Any]:  # noqa: ANN401 - JSON payload
        """Read and decode the JSON object at ``path``.

        Raises:
            TypesKitError: ``TK-DOCUMENT-READ-FAILED`` if the file is
                missing, unreadable, or not a JSON object.
        """
        return parse_json_object(await read_file(path), path)

    async def write_json(self, path: Path, data: dict[str, Any]) -> None:  # noqa: ANN401 - JSON payload
        """Encode ``data`` and write it to ``path``.

        Raises:
            TypesKitError: ``TK-DOCUMENT-WRITE-FAILED`` on any OS error.
        """
        await write_file(path, dump_json(data))


__all__ = [
    'JsonDocumentStorage',
    'dump_json',
    'parse_json_object',
    'read_file',
    'write_file',
]
