"""click base classes for the generated command tree.

Both classes turn click's own ``--help`` off: ``-h/--help`` is one of the
global options, so a help request is parsed like every other flag.  A
command built with ``examples`` text also gets an eager ``--examples``
flag that prints them and stops, and its help epilog points at it.
"""

from __future__ import annotations

from typing import Any

import click

EXAMPLES_HINT = "Run with --examples for usage examples."


def _examples_option(examples: str) -> click.Option:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class _IpfsMixin:
    examples: str | None

    def _setup_examples(self, params: list[click.Parameter], examples: str | None) -> None:
        self.examples = examples
        if examples:
            params.append(_examples_option(examples))

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_epilog(ctx, formatter)  # type: ignore[misc]
        if self.examples:
            formatter.write_paragraph()
            formatter.write_text(EXAMPLES_HINT)


class IpfsCommand(_IpfsMixin, click.Command):
    """Leaf command; ``examples`` adds an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("add_help_option", False)
        super().__init__(*args, **kwargs)
        self._setup_examples(self.params, examples)


class IpfsGroup(_IpfsMixin, click.Group):
    """Command group that also runs when no subcommand is given.

    Running a bare group is how ``ipfsctl`` and ``ipfsctl config`` reach
    the dispatcher, which answers with help or a usage error.
    """

    command_class = IpfsCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("add_help_option", False)
        kwargs.setdefault("invoke_without_command", True)
        super().__init__(*args, **kwargs)
        self._setup_examples(self.params, examples)
