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

"""Structured error system for typeskit.

Every error carries a unique ``TK-NAMED-KEY`` code, a human-readable
message, and an optional hint with a suggested fix.

Code categories::

    TK-CONFIG-*       typeskit.toml errors
    TK-WORKSPACE-*    Workspace discovery errors
    TK-DESCRIPTOR-*   Malformed dependency descriptors
    TK-RESOLUTION-*   Registry / resolver failures
    TK-DOCUMENT-*     tsconfig.json read/write errors
    TK-MANIFEST-*     package.json write errors

Only a few of these ever reach the user. Resolution failures in
particular are caught at the boundary of the reconciliation step that
triggered them and turned into a no-op (see :mod:`typeskit.ranges`).

Usage::

    from typeskit.errors import E, TypesKitError

    raise TypesKitError(
        code=E.DOCUMENT_WRITE_FAILED,
        message=f'Failed to write {path}',
        hint='Check file permissions.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all typeskit diagnostic codes."""

    # Configuration
    CONFIG_NOT_FOUND = 'TK-CONFIG-NOT-FOUND'
    CONFIG_INVALID_KEY = 'TK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'TK-CONFIG-INVALID-VALUE'

    # Workspace discovery
    WORKSPACE_NOT_FOUND = 'TK-WORKSPACE-NOT-FOUND'
    WORKSPACE_PARSE_ERROR = 'TK-WORKSPACE-PARSE-ERROR'
    WORKSPACE_DUPLICATE_PACKAGE = 'TK-WORKSPACE-DUPLICATE-PACKAGE'
    WORKSPACE_UNKNOWN = 'TK-WORKSPACE-UNKNOWN'

    # Descriptors
    DESCRIPTOR_INVALID = 'TK-DESCRIPTOR-INVALID'

    # Resolution
    RESOLUTION_FAILED = 'TK-RESOLUTION-FAILED'
    REGISTRY_UNAVAILABLE = 'TK-REGISTRY-UNAVAILABLE'

    # Documents and manifests
    DOCUMENT_READ_FAILED = 'TK-DOCUMENT-READ-FAILED'
    DOCUMENT_WRITE_FAILED = 'TK-DOCUMENT-WRITE-FAILED'
    MANIFEST_WRITE_FAILED = 'TK-MANIFEST-WRITE-FAILED'


E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``TK-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class TypesKitError(Exception):
    """Base exception for all typeskit errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='typeskit.toml contains a key typeskit does not recognize.',
        hint='Check the spelling; the error message suggests the closest valid key.',
    ),
    E.WORKSPACE_NOT_FOUND: ErrorInfo(
        code=E.WORKSPACE_NOT_FOUND,
        message='No package.json was found in or above the current directory.',
        hint='Run typeskit inside a JavaScript or TypeScript project. In a monorepo the root is the '
        'directory with typeskit.toml, pnpm-workspace.yaml, or a package.json declaring "workspaces".',
    ),
    E.WORKSPACE_UNKNOWN: ErrorInfo(
        code=E.WORKSPACE_UNKNOWN,
        message='The requested workspace is not part of the project.',
        hint='Pass a workspace name (e.g. @acme/app) or a path relative to the project root.',
    ),
    E.RESOLUTION_FAILED: ErrorInfo(
        code=E.RESOLUTION_FAILED,
        message='A descriptor could not be resolved against the registry.',
        hint='Companion types are skipped silently when this happens; re-run with --verbose to see why.',
    ),
    E.DOCUMENT_WRITE_FAILED: ErrorInfo(
        code=E.DOCUMENT_WRITE_FAILED,
        message='A tsconfig.json could not be written; project references are stale.',
        hint='Check file permissions for the workspace directory.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code, or ``None`` if unknown."""
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: TypesKitError, *, file: TextIO | None = None) -> None:
    """Render an error in compiler style.

    Output format::

        error[TK-DOCUMENT-WRITE-FAILED]: Failed to write packages/app/tsconfig.json
          |
          = hint: Check file permissions for packages/app.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(f'[bold red]error\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]')
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'TypesKitError',
    'explain',
    'render_error',
]
