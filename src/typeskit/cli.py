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

"""CLI entry point for typeskit.

Constructs backend instances and injects them into :class:`TypesPlugin`.

Subcommands::

    typeskit sync           Sync tsconfig.json references with local deps
    typeskit add            Add a dependency (and its companion types)
    typeskit remove         Remove a dependency (and its companion types)
    typeskit pack-manifest  Print the package.json that would be published
    typeskit companion      Show the companion package for a dependency
    typeskit explain        Explain an error code

Usage::

    # Preview reference changes:
    typeskit sync --dry-run

    # Add lodash to packages/app; @types/lodash follows as a dev dependency:
    typeskit add lodash@^4.17.21 -w packages/app

    # Explain an error:
    typeskit explain TK-DOCUMENT-WRITE-FAILED
"""

from __future__ import annotations

import argparse
import asyncio
import copy
import json
import sys
from pathlib import Path

from rich_argparse import RichHelpFormatter

from typeskit import __version__
from typeskit.backends import JsonDocumentStorage, NpmRegistry
from typeskit.companion import companion_descriptor
from typeskit.config import TypesKitConfig, load_config
from typeskit.errors import E, TypesKitError, explain, render_error
from typeskit.hooks import TypesPlugin
from typeskit.logging import configure_logging, get_logger
from typeskit.manifest import ALL_KINDS, DependencyKind
from typeskit.project import Project, Workspace, discover_project, find_project_root, persist_manifest
from typeskit.ranges import resolve_companion_range
from typeskit.semver import coerce
from typeskit.structs import Descriptor, make_descriptor, parse_descriptor, parse_ident, parse_range

logger = get_logger(__name__)


def _create_registry(config: TypesKitConfig) -> NpmRegistry:
    """Build the npm registry backend from config."""
    return NpmRegistry(
        base_url=config.registry,
        pool_size=config.http_pool_size,
        timeout=config.http_timeout,
        companion_scope=config.companion_scope,
    )


async def _load(args: argparse.Namespace) -> tuple[NpmRegistry, Project, TypesPlugin]:
    """Discover the project around CWD and wire up the plugin.

    The returned registry is the one the plugin resolves through, so
    callers share its packument cache.
    """
    root = find_project_root(Path.cwd())
    config = load_config(root)
    project = await discover_project(root, transparent_workspaces=config.transparent_workspaces)
    registry = _create_registry(config)
    plugin = TypesPlugin(
        project,
        resolver=registry,
        declarations=registry,
        storage=JsonDocumentStorage(),
        config=config,
    )
    return registry, project, plugin


def _target_workspace(project: Project, selector: str | None) -> Workspace:
    """Return the workspace named by ``-w``, or the one containing CWD."""
    if selector:
        return project.get_workspace(selector)
    return project.workspace_for_path(Path.cwd())


def _dependency_kind(args: argparse.Namespace) -> DependencyKind:
    """Map ``--dev``/``--peer``/``--optional`` to a dependency section."""
    if args.dev:
        return DependencyKind.DEVELOPMENT
    if args.peer:
        return DependencyKind.PEER
    if args.optional:
        return DependencyKind.OPTIONAL
    return DependencyKind.REGULAR


def _print_report(written: list[str], *, dry_run: bool) -> None:
    """Print which workspaces had their references rewritten."""
    verb = 'would update' if dry_run else 'updated'
    for name in written:
        print(f'  {verb} {name}')  # noqa: T201 - CLI output
    if not written:
        print('  references are up to date')  # noqa: T201 - CLI output


async def _cmd_sync(args: argparse.Namespace) -> int:
    """Handle the ``sync`` subcommand."""
    _registry, project, plugin = await _load(args)
    report = await plugin.after_all_installed(project, dry_run=args.dry_run)
    _print_report(report.written, dry_run=args.dry_run)
    return 0


async def _default_range(registry: NpmRegistry, text: str) -> Descriptor:
    """Turn ``name`` (no range) into ``name@^<latest>``."""
    descriptor = parse_descriptor(text, default_range='')
    if descriptor.range:
        return descriptor
    candidates = await registry.get_candidates(make_descriptor(descriptor.ident, 'latest'))
    version = coerce(parse_range(candidates[0].reference).selector) if candidates else None
    if version is None:
        raise TypesKitError(
            code=E.RESOLUTION_FAILED,
            message=f'No published version of {descriptor.ident} found',
            hint='Pass an explicit range, e.g. "name@^1.0.0".',
        )
    return make_descriptor(descriptor.ident, f'^{version}')


async def _cmd_add(args: argparse.Namespace) -> int:
    """Handle the ``add`` subcommand."""
    registry, project, plugin = await _load(args)
    workspace = _target_workspace(project, args.workspace)
    descriptor = await _default_range(registry, args.descriptor)
    kind = _dependency_kind(args)

    workspace.manifest.set(kind, descriptor)
    plan = await plugin.after_workspace_dependency_addition(workspace, kind, descriptor)
    await persist_manifest(workspace)

    print(f'  added {descriptor} to {kind.value} of {workspace}')  # noqa: T201 - CLI output
    for mutation in plan.mutations:
        print(f'  {mutation}')  # noqa: T201 - CLI output

    report = await plugin.after_all_installed(project)
    _print_report(report.written, dry_run=False)
    return 0


async def _cmd_remove(args: argparse.Namespace) -> int:
    """Handle the ``remove`` subcommand."""
    _registry, project, plugin = await _load(args)
    workspace = _target_workspace(project, args.workspace)
    ident = parse_ident(args.name)

    removed: list[tuple[DependencyKind, Descriptor]] = []
    for kind in ALL_KINDS:
        existing = workspace.manifest.get(kind, ident.ident_hash)
        if existing is not None:
            workspace.manifest.delete(kind, ident.ident_hash)
            removed.append((kind, existing))
    if not removed:
        raise TypesKitError(
            code=E.DESCRIPTOR_INVALID,
            message=f'{ident} is not a dependency of {workspace}',
            hint='Check the name, or pass -w to pick another workspace.',
        )

    for kind, descriptor in removed:
        plan = await plugin.after_workspace_dependency_removal(workspace, kind, descriptor)
        print(f'  removed {descriptor} from {kind.value} of {workspace}')  # noqa: T201 - CLI output
        for mutation in plan.mutations:
            print(f'  {mutation}')  # noqa: T201 - CLI output
    await persist_manifest(workspace)

    report = await plugin.after_all_installed(project)
    _print_report(report.written, dry_run=False)
    return 0


async def _cmd_pack_manifest(args: argparse.Namespace) -> int:
    """Handle the ``pack-manifest`` subcommand."""
    _registry, project, plugin = await _load(args)
    workspace = _target_workspace(project, args.workspace)
    payload = plugin.before_workspace_packing(workspace, copy.deepcopy(workspace.manifest.raw))
    print(json.dumps(payload, indent=2, ensure_ascii=False))  # noqa: T201 - CLI output
    return 0


async def _cmd_companion(args: argparse.Namespace) -> int:
    """Handle the ``companion`` subcommand."""
    root = find_project_root(Path.cwd())
    config = load_config(root)
    descriptor = parse_descriptor(args.descriptor, default_range='latest')
    result = await resolve_companion_range(descriptor, _create_registry(config), scope=config.companion_scope)
    if not result.ok or result.range is None:
        print(f'no companion: {result.reason}', file=sys.stderr)  # noqa: T201 - CLI output
        return 1
    print(companion_descriptor(descriptor, result.range, scope=config.companion_scope))  # noqa: T201 - CLI output
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def _add_workspace_flag(parser: argparse.ArgumentParser) -> None:
    """Add the shared ``--workspace/-w`` option."""
    parser.add_argument(
        '--workspace',
        '-w',
        metavar='WORKSPACE',
        default=None,
        help='Workspace name or path relative to the project root. Defaults to the one containing CWD.',
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='typeskit',
        description='Companion types and TypeScript project references for JavaScript monorepos.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('--verbose', '-v', action='store_true', help='Show debug logs.')
    verbosity.add_argument('--quiet', '-q', action='store_true', help='Only show warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines.')

    subparsers = parser.add_subparsers(dest='command')

    sync_parser = subparsers.add_parser(
        'sync',
        help='Sync tsconfig.json references with local workspace dependencies.',
    )
    sync_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report what would change without writing.',
    )

    add_parser = subparsers.add_parser(
        'add',
        help='Add a dependency and its companion types package.',
    )
    add_parser.add_argument('descriptor', help='Dependency to add, e.g. lodash@^4.17.21 or lodash.')
    _add_workspace_flag(add_parser)
    kind_group = add_parser.add_mutually_exclusive_group()
    kind_group.add_argument('--dev', '-D', action='store_true', help='Add to devDependencies.')
    kind_group.add_argument('--peer', '-P', action='store_true', help='Add to peerDependencies.')
    kind_group.add_argument('--optional', '-O', action='store_true', help='Add to optionalDependencies.')

    remove_parser = subparsers.add_parser(
        'remove',
        help='Remove a dependency and its companion types package.',
    )
    remove_parser.add_argument('name', help='Package name, e.g. lodash or @babel/core.')
    _add_workspace_flag(remove_parser)

    pack_parser = subparsers.add_parser(
        'pack-manifest',
        help='Print the package.json that would be published.',
    )
    _add_workspace_flag(pack_parser)

    companion_parser = subparsers.add_parser(
        'companion',
        help='Show the companion types package for a dependency.',
    )
    companion_parser.add_argument('descriptor', help='Dependency, e.g. react@^18.2.0 or next@latest.')

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
    )
    explain_parser.add_argument('code', help='Error code, e.g. TK-DOCUMENT-WRITE-FAILED.')

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'sync':
            return asyncio.run(_cmd_sync(args))
        if command == 'add':
            return asyncio.run(_cmd_add(args))
        if command == 'remove':
            return asyncio.run(_cmd_remove(args))
        if command == 'pack-manifest':
            return asyncio.run(_cmd_pack_manifest(args))
        if command == 'companion':
            return asyncio.run(_cmd_companion(args))
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except TypesKitError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
