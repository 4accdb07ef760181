"""ResponseRenderer — turn a Response into process output and an exit intent.

* Error: ``ERROR: <message>`` on stderr; usage faults get help text too.
  Exit intent 1.
* Success: the payload is copied verbatim to binary stdout.  Exit intent 0.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, BinaryIO

import click

from ipfsctl.cli import HelpContext
from ipfsctl.core.response import ErrorType
from ipfsctl.errors import IpfsctlError

if TYPE_CHECKING:
    from ipfsctl.core.response import Response

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "

HelpFactory = Callable[[tuple[str, ...]], HelpContext]


def format_error(message: str) -> str:
    """One error line followed by a blank line."""
    return f"{ERROR_PREFIX}{message}\n"


def print_help(
    path: tuple[str, ...], *, err: bool = False, factory: HelpFactory = HelpContext
) -> None:
    """Print help for *path*; a failure to build it is only logged."""
    try:
        text = factory(path).render()
    except IpfsctlError as exc:
        logger.error("Cannot generate help text: %s", exc.message)
        return
    click.echo(text, err=err)


class ResponseRenderer:
    """Writes one Response.

    Args:
        out: Binary stream for success payloads (default: stdout).
        help_factory: Builds the HelpContext for usage faults.
    """

    def __init__(
        self,
        *,
        out: BinaryIO | None = None,
        help_factory: HelpFactory = HelpContext,
    ) -> None:
        self._out = out
        self._help_factory = help_factory

    def render(self, response: Response) -> int:
        """Write *response* and return the exit status it calls for."""
        error = response.error
        if error is not None:
            click.echo(format_error(error.message), err=True)
            if error.code is ErrorType.CLIENT:
                print_help(response.request.path, err=True, factory=self._help_factory)
            return 1

        try:
            chunks = response.reader()
        except IpfsctlError as exc:
            click.echo(format_error(exc.message), err=True)
            return 1

        out = self._out if self._out is not None else click.get_binary_stream("stdout")
        try:
            for chunk in chunks:
                out.write(chunk)
        except (IpfsctlError, OSError) as exc:
            path = response.request.command_path
            logger.warning("Output copy for '%s' stopped early: %s", path, exc)
        finally:
            out.flush()
        return 0
