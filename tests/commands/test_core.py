"""Tests for the core command set run against an in-process node."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from ipfsctl import __version__
from ipfsctl.commands.core import ROOT
from ipfsctl.config.discovery import config_filename, load_config
from ipfsctl.config.models import NodeConfig
from ipfsctl.core.node import Node, construct_node
from ipfsctl.core.request import Request
from ipfsctl.core.response import Response
from tests.conftest import PEER_ID, make_request


@pytest.fixture
def config(config_root: Path) -> NodeConfig:
    loaded = load_config(config_filename(config_root))
    assert loaded is not None
    return loaded


@pytest.fixture
def node(config_root: Path, config: NodeConfig) -> Node:
    n = construct_node(config_root, config)
    try:
        yield n
    finally:
        n.close()


def _call(
    path: tuple[str, ...],
    root: Path,
    config: NodeConfig | None,
    node: Node | None,
    *,
    encoding: str = "json",
    **params: object,
) -> Response:
    request: Request = make_request(path, root, config=config, encoding=encoding, **params)
    request.context.node = node
    return ROOT.call(request)


def _text(response: Response) -> str:
    return b"".join(response.reader()).decode()


class TestVersion:
    def test_json(self, tmp_path: Path) -> None:
        response = _call(("version",), tmp_path, None, None)
        assert json.loads(_text(response)) == {"Version": __version__}

    def test_text(self, tmp_path: Path) -> None:
        response = _call(("version",), tmp_path, None, None, encoding="text")
        assert _text(response) == f"ipfsctl version {__version__}\n"


class TestId:
    def test_reports_identity(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        response = _call(("id",), config_root, config, node)
        payload = json.loads(_text(response))
        assert payload["ID"] == PEER_ID
        assert payload["Online"] is False
        assert payload["Addresses"][0] == config.addresses.api

    def test_text_grid(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        text = _text(_call(("id",), config_root, config, node, encoding="text"))
        assert "ID" in text
        assert PEER_ID in text

    def test_without_node(self, tmp_path: Path) -> None:
        response = _call(("id",), tmp_path, None, None)
        assert response.error is not None
        assert "must run against a node" in response.error.message


class TestConfig:
    def test_show(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        text = _text(_call(("config", "show"), config_root, config, node, encoding="text"))
        assert json.loads(text)["Identity"]["PeerID"] == PEER_ID

    def test_get_scalar(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        response = _call(
            ("config", "get"), config_root, config, node, encoding="text", key="Addresses.API"
        )
        assert _text(response) == f"{config.addresses.api}\n"

    def test_get_section(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        response = _call(("config", "get"), config_root, config, node, key="Identity")
        assert json.loads(_text(response)) == {"Key": "Identity", "Value": {"PeerID": PEER_ID}}

    def test_get_unknown_key(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        response = _call(("config", "get"), config_root, config, node, key="Nope.Missing")
        assert response.error is not None
        assert "Nope.Missing" in response.error.message

    def test_group_alone_is_client_error(self, config_root: Path, config: NodeConfig) -> None:
        response = _call(("config",), config_root, config, None)
        assert response.error is not None
        assert response.error.code.name == "CLIENT"


class TestContent:
    def test_add_then_cat(
        self, config_root: Path, config: NodeConfig, node: Node, tmp_path: Path
    ) -> None:
        source = tmp_path / "hello.txt"
        source.write_bytes(b"hello world\n")

        added = _call(("add",), config_root, config, node, encoding="text", file=source)
        key = hashlib.sha256(b"hello world\n").hexdigest()
        assert _text(added) == f"added {key} hello.txt\n"

        response = _call(("cat",), config_root, config, node, key=key)
        try:
            assert b"".join(response.reader()) == b"hello world\n"
        finally:
            response.close()

    def test_cat_missing(self, config_root: Path, config: NodeConfig, node: Node) -> None:
        response = _call(("cat",), config_root, config, node, key="ff" * 32)
        assert response.error is not None
        assert "not found" in response.error.message

    def test_refs_local(
        self, config_root: Path, config: NodeConfig, node: Node, tmp_path: Path
    ) -> None:
        source = tmp_path / "a.bin"
        source.write_bytes(b"a")
        _call(("add",), config_root, config, node, file=source)
        text = _text(_call(("refs", "local"), config_root, config, node, encoding="text"))
        assert text == hashlib.sha256(b"a").hexdigest() + "\n"
