"""HttpFetcher: single-attempt, size-bounded GET against a distribution gateway.

There is no retry: every failure surfaces once, to the caller.

A fetch given a *cancel* event stays responsive to it while blocked on the
network.  The request is sent from a worker thread the caller stops waiting
on, and a watcher thread shuts down the response socket, which wakes a read
that is parked in ``recv``.
"""

from __future__ import annotations

import io
import logging
import posixpath
import socket
import threading
from concurrent.futures import Future
from typing import Protocol

import httpx

from ipfsctl.errors import FetchCancelled, FetchError
from ipfsctl.migrations.limit import LimitReadCloser

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://ipfs.io"
DEFAULT_DIST_PATH = "/ipns/dist.ipfs.tech"
DEFAULT_FETCH_LIMIT = 1024 * 1024 * 512
CHUNK_SIZE = 64 * 1024
CANCEL_POLL_INTERVAL = 0.05


class Fetcher(Protocol):
    """Retrieves a named file from a distribution site."""

    def fetch(self, file_path: str, *, cancel: threading.Event | None = None) -> io.RawIOBase:
        """Return a readable stream the caller must close, or raise FetchError."""
        ...


def join_dist_path(dist_path: str, file_path: str) -> str:
    """Join *dist_path* and *file_path* into one rooted, clean URL path.

    >>> join_dist_path("/a/", "/b")
    '/a/b'
    """
    segments = [s.strip("/") for s in (dist_path, file_path)]
    return posixpath.normpath("/" + "/".join(s for s in segments if s))


def _response_socket(response: httpx.Response) -> socket.socket | None:
    stream = response.extensions.get("network_stream")
    if stream is None:
        return None
    sock = stream.get_extra_info("socket")
    return sock if isinstance(sock, socket.socket) else None


def _close_abandoned(future: Future[httpx.Response]) -> None:
    if not future.cancelled() and future.exception() is None:
        future.result().close()


class HttpBodyStream(io.RawIOBase):
    """Raw stream over a streaming httpx response body.

    Closing releases the connection.  Once *cancel* is set, a blocked read
    is woken and every read raises FetchCancelled.
    """

    def __init__(self, response: httpx.Response, cancel: threading.Event | None = None) -> None:
        super().__init__()
        self.response = response
        self._cancel = cancel
        self._chunks = response.iter_bytes()
        self._pending = b""
        if cancel is not None:
            threading.Thread(target=self._watch, name="ipfsctl-fetch-cancel", daemon=True).start()

    def readable(self) -> bool:
        return True

    def _watch(self) -> None:
        assert self._cancel is not None
        while not self.response.is_closed:
            if self._cancel.wait(CANCEL_POLL_INTERVAL):
                self._interrupt()
                return

    def _interrupt(self) -> None:
        sock = _response_socket(self.response)
        if sock is None or self.response.is_closed:
            return
        logger.debug("Interrupting GET %s", self.response.url)
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            # The reader closed the connection first.
            logger.debug("Socket already closed: %s", exc)

    def _check_cancelled(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            self.close()
            raise FetchCancelled(f"GET {self.response.url} error: fetch cancelled")

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        self._check_cancelled()
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as exc:
                self._check_cancelled()
                msg = f"GET {self.response.url} error: {exc}"
                raise FetchError(msg) from exc
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self.response.close()
        finally:
            super().close()


class HttpFetcher:
    """Fetches files over HTTP from a gateway-hosted distribution path.

    Specifying "" for *dist_path* or *gateway* selects the default.
    Specifying 0 for *fetch_limit* selects the default ceiling; a
    negative value disables the ceiling.
    """

    def __init__(
        self,
        dist_path: str = "",
        gateway: str = "",
        user_agent: str = "",
        fetch_limit: int = 0,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.dist_path = DEFAULT_DIST_PATH
        if dist_path:
            self.dist_path = dist_path if dist_path.startswith("/") else "/" + dist_path
        self.gateway = gateway.rstrip("/") if gateway else DEFAULT_GATEWAY_URL
        self.user_agent = user_agent

        self.limit = DEFAULT_FETCH_LIMIT
        if fetch_limit < 0:
            self.limit = 0
        elif fetch_limit > 0:
            self.limit = fetch_limit

        self._client = httpx.Client(transport=transport, timeout=timeout, follow_redirects=True)

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def url_for(self, file_path: str) -> str:
        return self.gateway + join_dist_path(self.dist_path, file_path)

    def _send(self, request: httpx.Request, cancel: threading.Event | None) -> httpx.Response:
        if cancel is None:
            return self._client.send(request, stream=True)

        future: Future[httpx.Response] = Future()

        def send() -> None:
            try:
                future.set_result(self._client.send(request, stream=True))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=send, name="ipfsctl-fetch", daemon=True).start()
        while True:
            try:
                return future.result(timeout=CANCEL_POLL_INTERVAL)
            except TimeoutError:
                if cancel.is_set():
                    future.add_done_callback(_close_abandoned)
                    raise FetchCancelled(f"GET {request.url} error: fetch cancelled") from None

    def fetch(self, file_path: str, *, cancel: threading.Event | None = None) -> io.RawIOBase:
        """Fetch *file_path* from the configured distribution site.

        Returns a readable stream on success, which the caller must close.
        Raises FetchError on transport failure or a status >= 400, with the
        server's error body folded into the message, and FetchCancelled
        once *cancel* is set.
        """
        url = self.url_for(file_path)
        if cancel is not None and cancel.is_set():
            raise FetchCancelled(f"GET {url} error: fetch cancelled")

        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        request = self._client.build_request("GET", url, headers=headers)
        logger.debug("GET %s", url)
        try:
            response = self._send(request, cancel)
        except httpx.HTTPError as exc:
            msg = f"GET {url} error: {exc}"
            raise FetchError(msg) from exc

        stream = HttpBodyStream(response, cancel)
        if response.status_code >= 400:
            with stream:
                try:
                    body = stream.readall()
                except FetchCancelled:
                    raise
                except FetchError as exc:
                    msg = f"error reading error body: {exc.__cause__}"
                    raise FetchError(msg) from exc.__cause__
            text = body.decode("utf-8", errors="replace")
            msg = f"GET {url} error: {response.status_code} {response.reason_phrase}: {text}"
            raise FetchError(msg)

        if self.limit:
            return LimitReadCloser(stream, self.limit, cancel)
        return stream
