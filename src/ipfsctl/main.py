"""Process entry point: parse, configure, dispatch, render, exit.

Every outcome, success, fatal error, or interrupt, funnels through
:meth:`LifecycleGuard.exit`, so profiling artifacts are flushed exactly
once and the process status is decided in one place.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError

from ipfsctl.cli import Invocation, parse
from ipfsctl.config.discovery import config_filename, load_config, resolve_config_root
from ipfsctl.config.logging import configure_logging
from ipfsctl.config.settings import RunSettings
from ipfsctl.core.request import Context, Request
from ipfsctl.dispatch.router import ExecutionRouter
from ipfsctl.errors import IpfsctlError, UsageError
from ipfsctl.lifecycle import LifecycleGuard
from ipfsctl.output.renderer import ResponseRenderer, format_error, print_help

if TYPE_CHECKING:
    from ipfsctl.config.settings import Encoding

logger = logging.getLogger(__name__)


def _encoding_for(invocation: Invocation, settings: RunSettings) -> Encoding:
    if settings.encoding is not None:
        return settings.encoding
    command = invocation.command
    if command is not None and command.text is not None:
        return "text"
    return "json"


def create_request(invocation: Invocation, settings: RunSettings) -> Request:
    """Resolve the config root, load its document, and build the Request.

    A missing config document is not an error here: ``init`` needs to run
    without one, and the router reports its absence where it matters.
    """
    root = resolve_config_root(settings.config_root)
    config = load_config(config_filename(root))
    return Request(
        path=invocation.path,
        settings=settings,
        encoding=_encoding_for(invocation, settings),
        context=Context(config_root=root, config=config),
        params=invocation.params,
    )


def _report(exc: IpfsctlError, path: tuple[str, ...] = ()) -> int:
    click.echo(format_error(exc.message), err=True)
    if exc.show_help:
        print_help(path, err=True)
    return exc.exit_code


def run(argv: Sequence[str], guard: LifecycleGuard) -> int:
    """Run one invocation and return its exit status."""
    try:
        parsed = parse(argv)
    except UsageError as exc:
        if exc.help_requested:
            print_help(exc.path, err=True)
            return exc.exit_code
        return _report(exc, exc.path)
    except IpfsctlError as exc:
        return _report(exc)
    if isinstance(parsed, int):
        return parsed
    invocation = parsed

    try:
        settings = RunSettings.from_cli(**invocation.explicit)
    except ValidationError as exc:
        click.echo(str(exc), err=True)
        return 1

    configure_logging(verbose=settings.verbose, log_json=settings.log_json, debug=settings.debug)

    if settings.help or not invocation.path:
        print_help(invocation.path)
        return 0

    command_set = invocation.command_set
    assert command_set is not None
    try:
        request = create_request(invocation, settings)
    except IpfsctlError as exc:
        return _report(exc)

    renderer = ResponseRenderer()
    command = invocation.command
    if command is None or command.run is None:
        return renderer.render(command_set.call(request))

    guard.start_profiling(settings)
    router = ExecutionRouter(settings)
    try:
        with router.dispatch(request, command_set) as response:
            return renderer.render(response)
    except IpfsctlError as exc:
        logger.debug("'%s' failed", request.command_path, exc_info=True)
        return _report(exc)


def main(argv: Sequence[str] | None = None, *, guard: LifecycleGuard | None = None) -> NoReturn:
    """Console-script entry point."""
    if argv is None:
        argv = sys.argv[1:]
    if guard is None:
        guard = LifecycleGuard()
    guard.install()
    try:
        code = run(argv, guard)
    except Exception:
        logger.exception("Unexpected failure")
        code = 1
    guard.exit(code)
