"""Response and CommandError — the universal command contract.

INVARIANT: a Response carries exactly one of a success payload or a
CommandError.  Both the local path (CommandSet.call) and the remote path
(DaemonClient.send) produce this type, so rendering never needs to know
which path ran.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from ipfsctl.errors import RenderError

if TYPE_CHECKING:
    from ipfsctl.core.request import Request

TextMarshaller = Callable[[Any], str]


class ErrorType(IntEnum):
    """Classification carried by a CommandError (and on the wire as ``Code``)."""

    NORMAL = 0
    CLIENT = 1


class CommandError(Exception):
    """In-band command failure.

    ``ErrorType.CLIENT`` marks a usage fault: the renderer follows the
    message with help text for the invoked command.
    """

    def __init__(self, message: str, code: ErrorType = ErrorType.NORMAL) -> None:
        super().__init__(message)
        self.message = message
        self.code = ErrorType(code)

    def __repr__(self) -> str:
        return f"CommandError({self.message!r}, code={self.code.name})"


class Response:
    """Outcome of one command execution.

    Use the constructors :meth:`of`, :meth:`failure`, and :meth:`streaming`
    rather than ``__init__``.  :meth:`close` releases whatever backs the
    payload (a generator, an HTTP body) and is safe to call repeatedly.
    """

    def __init__(
        self,
        request: Request,
        *,
        value: Any = None,
        chunks: Iterable[bytes] | None = None,
        error: CommandError | None = None,
        text: TextMarshaller | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.request = request
        self.error = error
        self._value = value
        self._chunks = chunks
        self._text = text
        self._on_close = on_close
        self._opened = False
        self._closed = False

    @classmethod
    def of(cls, request: Request, value: Any, *, text: TextMarshaller | None = None) -> Response:
        """Success response holding a command's return value."""
        return cls(request, value=value, text=text)

    @classmethod
    def failure(cls, request: Request, error: CommandError) -> Response:
        return cls(request, error=error)

    @classmethod
    def streaming(
        cls,
        request: Request,
        chunks: Iterable[bytes],
        *,
        on_close: Callable[[], None] | None = None,
    ) -> Response:
        """Success response whose body is already encoded (e.g. from a daemon)."""
        return cls(request, chunks=chunks, on_close=on_close)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def value(self) -> Any:
        return self._value

    def reader(self) -> Iterator[bytes]:
        """Open the success payload as a stream of encoded chunks.

        Raises RenderError when the response holds an error, has already
        been opened, or its value cannot be marshalled.
        """
        if self.error is not None:
            raise RenderError(f"response for '{self.request.command_path}' carries an error")
        if self._opened:
            raise RenderError("response stream was already read")
        self._opened = True

        if self._chunks is not None:
            return iter(self._chunks)
        value = self._value
        if isinstance(value, (bytes, bytearray)):
            return iter([bytes(value)])
        if isinstance(value, Iterator):
            return value
        return iter([self._marshal(value)])

    def _marshal(self, value: Any) -> bytes:
        if self.request.encoding == "text":
            if self._text is not None:
                return _terminated(self._text(value)).encode("utf-8")
            if isinstance(value, str):
                return _terminated(value).encode("utf-8")
        try:
            payload = to_jsonable_python(value, by_alias=True)
            return (json.dumps(payload, indent=2) + "\n").encode("utf-8")
        except (TypeError, ValueError, PydanticSerializationError) as exc:
            msg = f"cannot encode output as {self.request.encoding}: {exc}"
            raise RenderError(msg) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for backing in (self._chunks, self._value):
            close = getattr(backing, "close", None)
            if callable(close):
                close()
        if self._on_close is not None:
            self._on_close()


def _terminated(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"
