"""Command sets for ipfsctl.

Provides command_sets() which uses deferred imports to keep
``ipfsctl --help`` fast as the command tree grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ipfsctl.commands.registry import CommandSet


def command_sets() -> tuple[CommandSet, ...]:
    """Return every command set, client-only set first.

    Parsing tries the sets in this order, so a client-only command
    shadows a core command of the same name.
    """
    from ipfsctl.commands.client import CLIENT_ROOT
    from ipfsctl.commands.core import ROOT

    return (CLIENT_ROOT, ROOT)
