"""Tests for API multiaddr parsing."""

import pytest

from ipfsctl.dispatch.address import dial_args
from ipfsctl.errors import ConstructionError


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("/ip4/127.0.0.1/tcp/5001", ("tcp4", "127.0.0.1:5001")),
        ("/ip6/::1/tcp/5001", ("tcp6", "[::1]:5001")),
        ("/dns/node.local/tcp/80", ("tcp", "node.local:80")),
        ("/dns4/node.local/tcp/80", ("tcp4", "node.local:80")),
        ("/dns6/node.local/tcp/80", ("tcp6", "node.local:80")),
    ],
)
def test_dialable(address: str, expected: tuple[str, str]) -> None:
    assert dial_args(address) == expected


@pytest.mark.parametrize(
    "address",
    [
        "127.0.0.1:5001",
        "/ip4/127.0.0.1/udp/5001",
        "/unix/tmp/sock/tcp/1",
        "/ip4//tcp/5001",
        "/ip4/127.0.0.1/tcp/http",
        "/ip4/127.0.0.1/tcp/70000",
    ],
)
def test_rejected(address: str) -> None:
    with pytest.raises(ConstructionError, match="invalid API address"):
        dial_args(address)
