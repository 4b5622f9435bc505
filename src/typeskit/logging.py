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

"""Structured logging for typeskit.

Configures `structlog <https://www.structlog.org/>`_ for the CLI and the
hook adapters. Two renderers are available:

- **Console** (default): human-readable, colored when stderr is a TTY.
- **JSON** (``--json-log``): one JSON object per line, for CI logs.

Output always goes to stderr so ``typeskit pack-manifest`` can be piped.
httpx logs one INFO line per request; those are only shown with
``--verbose``.

Inside a lifecycle hook, :func:`hook_context` binds the event name (and
the workspace, when there is one) to every log line, so interleaved
registry and document events can be traced back to the hook that caused
them::

    with hook_context('after_all_installed'):
        log.info('references_written', references=['../lib'])
    # -> references_written hook_event=after_all_installed references=[...]

Usage::

    from typeskit.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger('typeskit.references')
    log.info('references_written', workspace='packages/app', count=2)
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for typeskit.

    Args:
        verbose: Enable debug-level output.
        quiet: Only show warnings and errors.
        json_log: Render JSON lines instead of console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )
    logging.getLogger('httpx').setLevel(logging.DEBUG if verbose and not quiet else logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'typeskit') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger named ``name``."""
    return structlog.get_logger(name)


@contextlib.contextmanager
def hook_context(event: str, **context: object) -> Iterator[None]:
    """Bind ``hook_event=event`` and ``context`` to log lines emitted in the block.

    Bindings are restored on exit, including when the block raises.
    """
    with structlog.contextvars.bound_contextvars(hook_event=event, **context):
        yield


__all__ = [
    'configure_logging',
    'get_logger',
    'hook_context',
]
