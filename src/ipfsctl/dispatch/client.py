"""DaemonClient — forwards a Request to a running daemon's HTTP API.

Wire contract: ``POST /api/v0/<path...>`` with command params as query
arguments (file params as multipart uploads).  A 2xx answer streams the
already-encoded output; anything else carries a JSON body
``{"Message": str, "Code": int}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import ExitStack
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from ipfsctl.core.response import CommandError, ErrorType, Response
from ipfsctl.errors import TransportError

if TYPE_CHECKING:
    from ipfsctl.core.request import Request

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v0"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_error(response: httpx.Response, body: bytes) -> CommandError:
    try:
        payload = json.loads(body)
        message = str(payload["Message"])
        code = int(payload.get("Code", ErrorType.NORMAL))
    except (ValueError, TypeError, KeyError, AttributeError):
        text = body.decode("utf-8", errors="replace").strip()
        return CommandError(f"{response.status_code} {response.reason_phrase}: {text}")
    try:
        error_type = ErrorType(code)
    except ValueError:
        error_type = ErrorType.NORMAL
    return CommandError(message, error_type)


class DaemonClient:
    """HTTP client bound to one daemon API address (``host:port``)."""

    def __init__(
        self,
        host: str,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.host = host
        self._client = httpx.Client(base_url=f"http://{host}", timeout=timeout, transport=transport)

    def __enter__(self) -> DaemonClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _iter_body(self, response: httpx.Response) -> Iterator[bytes]:
        try:
            yield from response.iter_bytes()
        except httpx.HTTPError as exc:
            msg = f"daemon at {self.host} dropped the response: {exc}"
            raise TransportError(msg) from exc

    def send(self, request: Request) -> Response:
        """Send *request* and return the daemon's Response.

        Raises TransportError when the daemon cannot be reached.  The
        returned Response owns the HTTP body; close it when done.
        """
        url = API_PREFIX + "/" + "/".join(request.path)
        query: list[tuple[str, str]] = [
            ("encoding", request.encoding),
            ("stream-channels", "true"),
        ]

        with ExitStack() as stack:
            files: list[tuple[str, tuple[str, Any]]] = []
            for name, value in request.params.items():
                if value is None:
                    continue
                if isinstance(value, Path):
                    try:
                        handle = stack.enter_context(value.open("rb"))
                    except OSError as exc:
                        error = CommandError(f"cannot read {value}: {exc}")
                        return Response.failure(request, error)
                    files.append((name, (value.name, handle)))
                elif isinstance(value, (list, tuple)):
                    query.extend((name, _query_value(v)) for v in value)
                else:
                    query.append((name, _query_value(value)))

            http_request = self._client.build_request(
                "POST", url, params=query, files=files or None
            )
            logger.debug("POST %s to daemon at %s", url, self.host)
            try:
                response = self._client.send(http_request, stream=True)
            except httpx.HTTPError as exc:
                msg = f"cannot reach daemon at {self.host}: {exc}"
                raise TransportError(msg) from exc

        if response.is_success:
            return Response.streaming(request, self._iter_body(response), on_close=response.close)

        try:
            body = response.read()
        except httpx.HTTPError as exc:
            msg = f"daemon at {self.host} dropped the error response: {exc}"
            raise TransportError(msg) from exc
        finally:
            response.close()
        return Response.failure(request, _decode_error(response, body))
