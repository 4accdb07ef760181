"""Shared pytest fixtures and test helpers for ipfsctl tests."""

from __future__ import annotations

import logging
import signal
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from ipfsctl.config.discovery import config_filename, write_config
from ipfsctl.config.models import IdentityConfig, NodeConfig
from ipfsctl.config.settings import RunSettings
from ipfsctl.core.request import Context, Request

PEER_ID = "QmTestPeer0000000000000000000000000000000000"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the user's environment and home directory out of every test."""
    for name in (
        "IPFS_PATH",
        "IPFSCTL_CONFIG_ROOT",
        "IPFSCTL_DEBUG",
        "IPFSCTL_HELP",
        "IPFSCTL_LOCAL",
        "IPFSCTL_ONLINE",
        "IPFSCTL_ENCODING",
        "IPFSCTL_VERBOSE",
        "IPFSCTL_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture(autouse=True)
def _restore_process_state() -> Generator[None]:
    """Restore logging handlers and the SIGINT handler after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    ipfsctl_logger = logging.getLogger("ipfsctl")
    ipfsctl_level = ipfsctl_logger.level
    sigint = signal.getsignal(signal.SIGINT)
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    ipfsctl_logger.setLevel(ipfsctl_level)
    signal.signal(signal.SIGINT, sigint)


@pytest.fixture
def config_root(tmp_path: Path) -> Path:
    """Initialized config root: a config document with an identity and a datastore."""
    root = tmp_path / "node"
    write_config(config_filename(root), NodeConfig(identity=IdentityConfig(peer_id=PEER_ID)))
    (root / "datastore").mkdir()
    return root


@pytest.fixture
def node_config() -> NodeConfig:
    return NodeConfig(identity=IdentityConfig(peer_id=PEER_ID))


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_request(
    path: tuple[str, ...],
    root: Path,
    /,
    *,
    config: NodeConfig | None = None,
    encoding: str = "json",
    settings: RunSettings | None = None,
    **params: Any,
) -> Request:
    """Build a Request without going through the CLI."""
    return Request(
        path=path,
        settings=settings or RunSettings(),
        encoding=encoding,  # type: ignore[arg-type]
        context=Context(config_root=root, config=config),
        params=params,
    )
