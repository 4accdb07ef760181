"""Tests for the ipfsctl command-line grammar."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from ipfsctl.cli import ROOT_HELP, HelpContext, Invocation, build_cli, parse
from ipfsctl.commands.client import CLIENT_ROOT
from ipfsctl.commands.core import ROOT
from ipfsctl.errors import UsageError


def _parse(argv: list[str]) -> Invocation:
    result = parse(argv)
    assert isinstance(result, Invocation)
    return result


class TestParse:
    def test_bare_program(self) -> None:
        invocation = _parse([])
        assert invocation.path == ()
        assert invocation.command_set is None
        assert invocation.command is None

    def test_leaf_command(self) -> None:
        invocation = _parse(["config", "get", "Addresses.API"])
        assert invocation.path == ("config", "get")
        assert invocation.command_set is ROOT
        assert invocation.params == {"key": "Addresses.API"}
        assert invocation.explicit == {}

    def test_client_only_command(self) -> None:
        invocation = _parse(["init", "--force"])
        assert invocation.command_set is CLIENT_ROOT
        assert invocation.params == {"force": True}

    def test_file_argument_is_path(self, tmp_path: Path) -> None:
        source = tmp_path / "a.txt"
        source.write_text("a")
        assert _parse(["add", str(source)]).params == {"file": source}

    def test_globals_before_command(self) -> None:
        invocation = _parse(["-L", "--enc", "text", "-c", "/srv/node", "id"])
        assert invocation.explicit == {
            "local": True,
            "encoding": "text",
            "config_root": "/srv/node",
        }
        assert invocation.params == {}

    def test_globals_after_command(self) -> None:
        invocation = _parse(["refs", "local", "--local", "-D"])
        assert invocation.explicit == {"local": True, "debug": True}

    def test_deepest_global_wins(self) -> None:
        invocation = _parse(["--enc=json", "config", "show", "--enc=text"])
        assert invocation.explicit == {"encoding": "text"}

    def test_defaults_are_not_explicit(self) -> None:
        assert "local" not in _parse(["id"]).explicit


class TestHelpFlag:
    def test_root(self) -> None:
        invocation = _parse(["-h"])
        assert invocation.path == ()
        assert invocation.explicit == {"help": True}

    def test_missing_argument_does_not_mask_help(self) -> None:
        invocation = _parse(["cat", "--help"])
        assert invocation.path == ("cat",)
        assert invocation.command_set is ROOT
        assert invocation.explicit["help"] is True

    def test_parent_globals_kept(self) -> None:
        invocation = _parse(["-L", "migrations", "fetch", "-h"])
        assert invocation.path == ("migrations", "fetch")
        assert invocation.command_set is CLIENT_ROOT
        assert invocation.explicit == {"local": True, "help": True}


class TestUsageErrors:
    def test_unknown_command(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse(["nope"])
        assert "nope" in excinfo.value.message
        assert excinfo.value.path == ()

    def test_missing_argument_reports_deepest_path(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse(["config", "get"])
        assert excinfo.value.path == ("config", "get")
        assert "KEY" in excinfo.value.message

    def test_bad_choice(self) -> None:
        with pytest.raises(UsageError):
            parse(["--enc", "xml", "id"])

    def test_unknown_option(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse(["id", "--bogus"])
        assert excinfo.value.path == ("id",)
        assert excinfo.value.help_requested is False

    def test_error_alongside_help_flag(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse(["cat", "--bogus", "-h"])
        assert excinfo.value.path == ("cat",)
        assert excinfo.value.help_requested is True

    def test_help_after_separator_is_an_argument(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse(["id", "--bogus", "--", "-h"])
        assert excinfo.value.help_requested is False


class TestHelpContext:
    def test_root_help_is_hand_written(self) -> None:
        text = HelpContext().render()
        assert "Basic commands:" in text
        assert "--local" in text
        assert "Commands:\n" not in text.replace("Basic commands:\n", "")

    def test_command_help(self) -> None:
        text = HelpContext(("config", "get")).render()
        assert "Usage: ipfsctl config get" in text
        assert "KEY" in text
        assert "--encoding" in text

    def test_examples_hint_in_help(self) -> None:
        assert "--examples" in HelpContext(("add",)).render()
        assert "--examples" not in HelpContext(("cat",)).render()

    def test_group_help_lists_subcommands(self) -> None:
        text = HelpContext(("migrations",)).render()
        assert "versions" in text
        assert "fetch" in text

    def test_unknown_path(self) -> None:
        with pytest.raises(UsageError):
            HelpContext(("nope",)).render()

    def test_root_help_text_constant(self) -> None:
        assert "ipfsctl <command> --help" in ROOT_HELP


# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["add", "--examples"], ["ipfsctl add notes.txt", "--local"]),
    (["init", "--examples"], ["ipfsctl init", "--force"]),
    (["migrations", "fetch", "--examples"], ["-o dist.tgz"]),
]


@pytest.mark.parametrize(("args", "keywords"), EXAMPLES_COMMANDS)
def test_examples(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(build_cli(), args)
    assert result.exit_code == 0
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_through_parse(capsys: pytest.CaptureFixture[str]) -> None:
    assert parse(["add", "--examples"]) == 0
    assert "ipfsctl add notes.txt" in capsys.readouterr().out
