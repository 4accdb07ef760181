"""API address parsing.

The config stores the daemon API address in multiaddr form, e.g.
``/ip4/127.0.0.1/tcp/5001``.  Only the TCP transports a client can dial
are accepted.
"""

from __future__ import annotations

from ipfsctl.errors import ConstructionError

_HOST_PROTOCOLS = {"ip4", "ip6", "dns", "dns4", "dns6"}


def _invalid(address: str, reason: str) -> ConstructionError:
    return ConstructionError(f"invalid API address {address!r}: {reason}")


def dial_args(address: str) -> tuple[str, str]:
    """Return ``(network, "host:port")`` for a dialable multiaddr.

    >>> dial_args("/ip4/127.0.0.1/tcp/5001")
    ('tcp4', '127.0.0.1:5001')
    """
    parts = address.strip().split("/")
    if len(parts) != 5 or parts[0] != "":
        raise _invalid(address, "expected /<proto>/<host>/tcp/<port>")

    _, proto, host, transport, port = parts
    if proto not in _HOST_PROTOCOLS:
        raise _invalid(address, f"unsupported protocol {proto!r}")
    if transport != "tcp":
        raise _invalid(address, "only tcp is dialable")
    if not host:
        raise _invalid(address, "empty host")
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise _invalid(address, f"bad port {port!r}")

    if proto == "ip6":
        return "tcp6", f"[{host}]:{port}"
    if proto == "dns6":
        return "tcp6", f"{host}:{port}"
    if proto == "dns":
        return "tcp", f"{host}:{port}"
    return "tcp4", f"{host}:{port}"
