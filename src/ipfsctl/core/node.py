"""In-process execution node.

A Node owns a file-backed content store keyed by sha256 digest plus the
peer identity from the config document.  It is created by the router for
a single invocation and closed before the process exits.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from ipfsctl.config.models import NodeConfig
from ipfsctl.errors import ConstructionError

logger = logging.getLogger(__name__)

DATASTORE_DIRNAME = "datastore"
CHUNK_SIZE = 64 * 1024


class Node:
    """Live node handle.  Use :func:`construct_node` to build one."""

    def __init__(self, config: NodeConfig, datastore: Path, *, online: bool = False) -> None:
        self.config = config
        self.datastore = datastore
        self.online = online
        self._closed = False

    @property
    def peer_id(self) -> str:
        return self.config.identity.peer_id

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("node is closed")

    def _block_path(self, key: str) -> Path:
        return self.datastore / key[:2] / key

    def put(self, stream: BinaryIO) -> tuple[str, int]:
        """Store *stream*'s content and return ``(key, size)``."""
        self._check_open()
        digest = hashlib.sha256()
        size = 0
        fd, tmp_name = tempfile.mkstemp(dir=self.datastore, prefix=".put-")
        try:
            with os.fdopen(fd, "wb") as tmp:
                while chunk := stream.read(CHUNK_SIZE):
                    digest.update(chunk)
                    tmp.write(chunk)
                    size += len(chunk)
            key = digest.hexdigest()
            target = self._block_path(key)
            target.parent.mkdir(exist_ok=True)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Stored block %s (%d bytes)", key, size)
        return key, size

    def has(self, key: str) -> bool:
        self._check_open()
        return len(key) > 2 and self._block_path(key).is_file()

    def get(self, key: str) -> Iterator[bytes]:
        """Stream the content stored under *key*.  Raises KeyError if absent."""
        self._check_open()
        if not self.has(key):
            raise KeyError(key)
        return _read_chunks(self._block_path(key))

    def keys(self) -> list[str]:
        self._check_open()
        return sorted(p.name for p in self.datastore.glob("??/*") if p.is_file())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Node closed: %s", self.datastore)


def _read_chunks(path: Path) -> Iterator[bytes]:
    with path.open("rb") as fh:
        while chunk := fh.read(CHUNK_SIZE):
            yield chunk


def construct_node(config_root: Path, config: NodeConfig | None, *, online: bool = False) -> Node:
    """Build a Node against the loaded configuration.

    Raises ConstructionError when there is no config document, the
    identity is missing, or the datastore directory cannot be created.
    """
    if config is None:
        msg = f"no configuration found at {config_root} (run 'ipfsctl init')"
        raise ConstructionError(msg)
    if not config.identity.peer_id:
        raise ConstructionError("configuration has no Identity.PeerID (run 'ipfsctl init')")

    datastore = config_root / DATASTORE_DIRNAME
    if config.datastore.path:
        datastore = Path(config.datastore.path).expanduser()
    try:
        datastore.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"cannot open datastore {datastore}: {exc}"
        raise ConstructionError(msg) from exc

    logger.debug("Constructed node %s (online=%s)", config.identity.peer_id, online)
    return Node(config, datastore, online=online)
