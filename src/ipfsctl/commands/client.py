"""Client-only command set — commands with no daemon equivalent.

These always run in the client process and never touch the dispatch
decision: ``init`` creates the config root a daemon would need, and the
``migrations`` commands pull artifacts straight from a distribution
gateway.
"""

from __future__ import annotations

import hashlib
import io
import secrets
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from ipfsctl import __version__
from ipfsctl.commands.registry import Command, CommandSet
from ipfsctl.config.discovery import config_filename, write_config
from ipfsctl.config.models import IdentityConfig, NodeConfig
from ipfsctl.core.node import DATASTORE_DIRNAME
from ipfsctl.core.response import CommandError
from ipfsctl.migrations.dist import (
    dist_versions,
    fetch_to_file,
    fetcher_from_config,
    latest_version,
)
from ipfsctl.migrations.fetcher import CHUNK_SIZE

if TYPE_CHECKING:
    from ipfsctl.core.request import Request
    from ipfsctl.migrations.fetcher import HttpFetcher

USER_AGENT = f"ipfsctl/{__version__}"


# --- init ---


def generate_peer_id() -> str:
    """Return a fresh random peer identity."""
    return "Qm" + hashlib.sha256(secrets.token_bytes(32)).hexdigest()[:44]


def _init(request: Request) -> dict[str, str]:
    root = request.context.config_root
    path = config_filename(root)
    if path.exists() and not request.param("force", False):
        raise CommandError(f"ipfsctl configuration file already exists at {path}")

    config = NodeConfig(identity=IdentityConfig(peer_id=generate_peer_id()))
    write_config(path, config)
    (root / DATASTORE_DIRNAME).mkdir(parents=True, exist_ok=True)
    return {"PeerID": config.identity.peer_id, "Root": str(root)}


init = Command(
    "init",
    "Initialize a config root with a fresh identity.",
    run=_init,
    params=[click.Option(["-f", "--force"], is_flag=True, help="Overwrite an existing config.")],
    text=lambda v: f"initialized ipfsctl node at {v['Root']}\npeer identity: {v['PeerID']}",
    examples="  ipfsctl init\n  ipfsctl -c /tmp/node init --force",
)


# --- migrations ---


def _fetcher(request: Request) -> HttpFetcher:
    config = request.context.config
    return fetcher_from_config(
        config.migrations if config else None,
        timeout=request.param("timeout"),
        user_agent=USER_AGENT,
    )


def _versions(request: Request) -> list[str]:
    name = request.param("name")
    with _fetcher(request) as fetcher:
        if request.param("latest", False):
            return [latest_version(fetcher, name)]
        return dist_versions(fetcher, name)


class _Download:
    """Chunk iterator over a fetched artifact; owns the fetcher and the stream."""

    def __init__(self, fetcher: HttpFetcher, stream: io.RawIOBase) -> None:
        self._fetcher = fetcher
        self._stream = stream

    def __iter__(self) -> _Download:
        return self

    def __next__(self) -> bytes:
        chunk = self._stream.read(CHUNK_SIZE)
        if not chunk:
            self.close()
            raise StopIteration
        return chunk

    def close(self) -> None:
        try:
            self._stream.close()
        finally:
            self._fetcher.close()


def _fetch(request: Request) -> Any:
    file_path: str = request.param("path")
    output: Path | None = request.param("output")
    fetcher = _fetcher(request)
    if output is None:
        try:
            return _Download(fetcher, fetcher.fetch(file_path))
        except BaseException:
            fetcher.close()
            raise
    with fetcher:
        written = fetch_to_file(fetcher, file_path, output)
    return {"Path": str(output), "Bytes": written}


_TIMEOUT = click.Option(
    ["--timeout"],
    type=float,
    default=None,
    help="Network timeout in seconds.",
)

migrations = Command.group(
    "migrations",
    "Retrieve repository migration artifacts from the distribution gateway.",
    [
        Command(
            "versions",
            "List the versions published for distribution NAME.",
            run=_versions,
            params=[
                click.Argument(["name"]),
                click.Option(["--latest"], is_flag=True, help="Only print the newest version."),
                _TIMEOUT,
            ],
            text=lambda versions: "\n".join(versions),
        ),
        Command(
            "fetch",
            "Fetch PATH from the distribution gateway.",
            run=_fetch,
            params=[
                click.Argument(["path"]),
                click.Option(
                    ["-o", "--output"],
                    type=click.Path(dir_okay=False, writable=True, path_type=Path),
                    default=None,
                    help="Write to a file instead of stdout.",
                ),
                _TIMEOUT,
            ],
            text=lambda v: f"wrote {v['Bytes']} bytes to {v['Path']}",
            examples="""\
  ipfsctl migrations fetch fs-repo-migrations/versions
  ipfsctl migrations fetch fs-repo-migrations/v2.0.2/dist.tar.gz -o dist.tgz""",
        ),
    ],
)


CLIENT_ROOT = CommandSet("client", [init, migrations], client_only=True)
