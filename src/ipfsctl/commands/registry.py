"""Command registry — Command definitions and the CommandSet entry point.

A Command pairs business logic (``run``) with the click parameters that
describe its grammar.  The CLI builds click commands from these
definitions; execution always goes through :meth:`CommandSet.call`,
whether the request runs in-process or inside the daemon.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ipfsctl.core.response import CommandError, ErrorType, Response, TextMarshaller

if TYPE_CHECKING:
    import click

    from ipfsctl.core.request import Request

logger = logging.getLogger(__name__)

NOT_CALLABLE = "This command can't be called directly. Try one of its subcommands."


@dataclass
class Command:
    """A node in a command tree.

    Attributes:
        run: Business logic; None for pure groups.
        params: click Arguments/Options describing the command's grammar.
        text: Marshaller used when the output encoding is ``text``.
        examples: Usage examples shown by ``--examples``.
    """

    name: str
    help: str = ""
    run: Callable[[Request], Any] | None = None
    params: list[click.Parameter] = field(default_factory=list)
    text: TextMarshaller | None = None
    subcommands: dict[str, Command] = field(default_factory=dict)
    examples: str | None = None

    @classmethod
    def group(cls, name: str, help: str, children: Iterable[Command], **kwargs: Any) -> Command:
        return cls(name, help, subcommands={c.name: c for c in children}, **kwargs)


class CommandSet:
    """A named tree of commands sharing one root."""

    def __init__(
        self, name: str, commands: Iterable[Command], *, client_only: bool = False
    ) -> None:
        self.name = name
        self.client_only = client_only
        self.commands: dict[str, Command] = {c.name: c for c in commands}

    def __repr__(self) -> str:
        return f"CommandSet({self.name!r})"

    def __contains__(self, name: str) -> bool:
        return name in self.commands

    def resolve(self, path: Sequence[str]) -> Command | None:
        """Return the command at *path*, or None if any segment is unknown."""
        if not path:
            return None
        cmd = self.commands.get(path[0])
        for segment in path[1:]:
            if cmd is None:
                return None
            cmd = cmd.subcommands.get(segment)
        return cmd

    def call(self, request: Request) -> Response:
        """Execute *request* against this set and wrap the outcome in a Response."""
        cmd = self.resolve(request.path)
        if cmd is None:
            error = CommandError(f"Unknown command '{request.command_path}'", ErrorType.CLIENT)
            return Response.failure(request, error)
        if cmd.run is None:
            return Response.failure(request, CommandError(NOT_CALLABLE, ErrorType.CLIENT))

        logger.debug("Calling %s in set %s", request.command_path, self.name)
        try:
            value = cmd.run(request)
        except CommandError as exc:
            return Response.failure(request, exc)
        except Exception as exc:
            logger.debug("Command %s failed", request.command_path, exc_info=True)
            return Response.failure(request, CommandError(str(exc) or type(exc).__name__))
        return Response.of(request, value, text=cmd.text)
