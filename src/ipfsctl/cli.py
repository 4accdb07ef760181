"""Command-line grammar for ipfsctl, built with click from the command sets.

:func:`parse` turns an argument vector into an :class:`Invocation` (or an
exit code, when click already handled the arguments itself, e.g.
``--examples``).  It never executes business logic: leaf callbacks only
capture what was typed.  :class:`HelpContext` renders help text for any
command path.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import click
from click.core import ParameterSource

from ipfsctl.commands._base import IpfsCommand, IpfsGroup
from ipfsctl.errors import IpfsctlError, UsageError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ipfsctl.commands.registry import Command, CommandSet

PROG_NAME = "ipfsctl"

ROOT_HELP = """\
ipfsctl — talk to a running daemon, or run commands against a local node.

\b
Basic commands:
    init                    Initialize a config root
    add FILE                Add a file to the content store
    cat KEY                 Show content stored under KEY

\b
Node commands:
    id                      Show node identity
    refs local              List locally stored keys
    config show|get         Inspect the configuration
    version                 Show version information

\b
Tool commands:
    migrations versions     List published migration versions
    migrations fetch        Download a migration artifact

Use 'ipfsctl <command> --help' to learn more about each command.
"""

GLOBAL_OPTION_NAMES = (
    "config_root",
    "debug",
    "help",
    "local",
    "online",
    "encoding",
    "verbose",
    "log_json",
)


HELP_FLAGS = ("-h", "--help")


class _HelpRequested(Exception):
    """Raised by the eager help flag so missing arguments do not mask help."""

    def __init__(self, ctx: click.Context) -> None:
        super().__init__(ctx.command_path)
        self.ctx = ctx


def _request_help(ctx: click.Context, _param: click.Parameter, value: bool) -> bool:
    if value and not ctx.resilient_parsing:
        raise _HelpRequested(ctx)
    return value


def _asks_for_help(argv: Sequence[str]) -> bool:
    for token in argv:
        if token == "--":
            return False
        if token in HELP_FLAGS:
            return True
    return False


def _global_options() -> list[click.Parameter]:
    """Fresh global options; attached to the root and to every command."""
    return [
        click.Option(
            ["-c", "--config", "config_root"],
            default=None,
            help="Path to the config root.",
        ),
        click.Option(["-D", "--debug"], is_flag=True, help="Debug logging and profiling."),
        click.Option(
            [*HELP_FLAGS, "help"],
            is_flag=True,
            is_eager=True,
            callback=_request_help,
            help="Show help and exit.",
        ),
        click.Option(
            ["-L", "--local"],
            is_flag=True,
            help="Run against an in-process node even if a daemon is running.",
        ),
        click.Option(["--online"], is_flag=True, help="Start the local node in online mode."),
        click.Option(
            ["--enc", "--encoding", "encoding"],
            type=click.Choice(["json", "text"]),
            default=None,
            help="Output encoding.",
        ),
        click.Option(["-v", "--verbose"], is_flag=True, help="Detailed log output."),
        click.Option(["--log-json"], is_flag=True, help="Structured JSON log output to stderr."),
    ]


@dataclass(frozen=True)
class Invocation:
    """What the user typed, before any config is loaded.

    Attributes:
        path: Command path, ``()`` for the bare program.
        command_set: Set the command belongs to (None for the bare program).
        params: Command-specific values keyed by parameter name.
        explicit: Global options given explicitly on the command line.
    """

    path: tuple[str, ...]
    command_set: CommandSet | None
    params: dict[str, Any] = field(default_factory=dict)
    explicit: dict[str, Any] = field(default_factory=dict)

    @property
    def command(self) -> Command | None:
        if self.command_set is None:
            return None
        return self.command_set.resolve(self.path)


def _explicit_globals(ctx: click.Context) -> dict[str, Any]:
    """Collect global options typed anywhere on the path; deepest wins."""
    chain: list[click.Context] = []
    current: click.Context | None = ctx
    while current is not None:
        chain.append(current)
        current = current.parent

    explicit: dict[str, Any] = {}
    for c in reversed(chain):
        for name in GLOBAL_OPTION_NAMES:
            if c.get_parameter_source(name) is ParameterSource.COMMANDLINE:
                explicit[name] = c.params[name]
    return explicit


def _capture(path: tuple[str, ...], command_set: CommandSet | None) -> Callable[..., Invocation]:
    def callback(**values: Any) -> Invocation:
        ctx = click.get_current_context()
        params = {k: v for k, v in values.items() if k not in GLOBAL_OPTION_NAMES}
        return Invocation(path, command_set, params, _explicit_globals(ctx))

    return callback


def _to_click(cmd: Command, path: tuple[str, ...], command_set: CommandSet) -> click.Command:
    params = [*cmd.params, *_global_options()]
    callback = _capture(path, command_set)
    if cmd.subcommands:
        group = IpfsGroup(
            cmd.name, help=cmd.help, params=params, callback=callback, examples=cmd.examples
        )
        for sub in cmd.subcommands.values():
            group.add_command(_to_click(sub, (*path, sub.name), command_set))
        return group
    return IpfsCommand(
        cmd.name, help=cmd.help, params=params, callback=callback, examples=cmd.examples
    )


def build_cli() -> IpfsGroup:
    """Build the root click group from every command set."""
    from ipfsctl.commands import command_sets

    root = IpfsGroup(
        PROG_NAME,
        help=ROOT_HELP,
        params=_global_options(),
        callback=_capture((), None),
    )
    for command_set in command_sets():
        for cmd in command_set.commands.values():
            if cmd.name not in root.commands:
                root.add_command(_to_click(cmd, (cmd.name,), command_set))
    return root


def _command_set_for(path: tuple[str, ...]) -> CommandSet | None:
    from ipfsctl.commands import command_sets

    for command_set in command_sets():
        if command_set.resolve(path) is not None:
            return command_set
    return None


def _path_of(ctx: click.Context | None) -> tuple[str, ...]:
    if ctx is None:
        return ()
    return tuple(ctx.command_path.split()[1:])


def parse(argv: Sequence[str]) -> Invocation | int:
    """Parse *argv* (without the program name).

    Returns an exit code instead of an Invocation when click finished the
    invocation on its own.  A help flag ends parsing early, so help is
    shown even when required arguments are missing.  Raises UsageError
    for grammar errors, marked when a help flag was also given, and IpfsctlError for other click failures.
    """
    root = build_cli()
    try:
        result = root.main(args=list(argv), prog_name=PROG_NAME, standalone_mode=False)
    except _HelpRequested as exc:
        explicit = _explicit_globals(exc.ctx.parent) if exc.ctx.parent else {}
        path = _path_of(exc.ctx)
        return Invocation(path, _command_set_for(path), {}, {**explicit, "help": True})
    except click.UsageError as exc:
        path = _path_of(exc.ctx)
        help_requested = _asks_for_help(argv)
        raise UsageError(exc.format_message(), path, help_requested=help_requested) from exc
    except click.ClickException as exc:
        raise IpfsctlError(exc.format_message()) from exc
    except click.Abort as exc:
        raise IpfsctlError("aborted") from exc
    return result


@dataclass(frozen=True)
class HelpContext:
    """Immutable description of the help text to show.

    Building help never touches the live command tree used for parsing:
    every render builds its own.  The bare program gets the hand-written
    root help without click's generated subcommand listing.
    """

    path: tuple[str, ...] = ()
    program: str = PROG_NAME

    def render(self) -> str:
        root = build_cli()
        if not self.path:
            bare = click.Command(
                self.program, help=ROOT_HELP, params=root.params, add_help_option=False
            )
            return bare.get_help(click.Context(bare, info_name=self.program))

        ctx = click.Context(root, info_name=self.program)
        cmd: click.Command = root
        for segment in self.path:
            sub = cmd.get_command(ctx, segment) if isinstance(cmd, click.Group) else None
            if sub is None:
                raise UsageError(f"Unknown command '{' '.join(self.path)}'", self.path)
            ctx = click.Context(sub, info_name=segment, parent=ctx)
            cmd = sub
        return cmd.get_help(ctx)
