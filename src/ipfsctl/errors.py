"""Fatal error taxonomy for an ipfsctl invocation.

Every class here terminates the invocation with exit status 1 once it
reaches :func:`ipfsctl.main.main`, except :class:`ProfilingError`, which
is only ever logged.  In-band command failures travel inside a Response
as :class:`ipfsctl.core.response.CommandError` instead.
"""

from __future__ import annotations


class IpfsctlError(Exception):
    """Base class for errors that end an invocation."""

    exit_code: int = 1
    show_help: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UsageError(IpfsctlError):
    """Bad arguments or options; help text accompanies the message.

    ``path`` is the deepest command path the parser resolved before the
    failure, so help can be shown for the command the user was calling.
    ``help_requested`` marks a failure on a line that also asked for help;
    only the help is shown then.
    """

    show_help = True

    def __init__(
        self, message: str, path: tuple[str, ...] = (), *, help_requested: bool = False
    ) -> None:
        super().__init__(message)
        self.path = path
        self.help_requested = help_requested


class ConstructionError(IpfsctlError):
    """The local node or the remote client could not be initialized."""


class TransportError(IpfsctlError):
    """A network failure while dispatching or fetching."""


class FetchError(TransportError):
    """A distribution gateway GET failed or answered with status >= 400."""


class FetchCancelled(FetchError):
    """The caller cancelled an in-flight fetch."""


class RenderError(IpfsctlError):
    """The response stream could not be opened or marshalled."""


class ProfilingError(IpfsctlError):
    """Profiling artifacts could not be written.  Never fatal."""

    exit_code = 0
