"""Core command set — commands that run against a node.

Every command here runs either in-process (the router attaches a local
node) or inside the daemon; the functions only ever look at the Request.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from ipfsctl import __version__
from ipfsctl.commands.registry import Command, CommandSet
from ipfsctl.core.response import CommandError
from ipfsctl.output.console import render_fields

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ipfsctl.config.models import NodeConfig
    from ipfsctl.core.node import Node
    from ipfsctl.core.request import Request


def _node(request: Request) -> Node:
    node = request.context.node
    if node is None:
        raise CommandError("this command must run against a node")
    return node


def _config(request: Request) -> NodeConfig:
    config = request.context.config
    if config is None:
        raise CommandError("no configuration loaded (run 'ipfsctl init')")
    return config


# --- version ---


def _version(request: Request) -> dict[str, str]:
    return {"Version": __version__}


version = Command(
    "version",
    "Show ipfsctl version information.",
    run=_version,
    text=lambda v: f"ipfsctl version {v['Version']}",
)


# --- id ---


def _id(request: Request) -> dict[str, Any]:
    node = _node(request)
    return {
        "ID": node.peer_id,
        "Addresses": [node.config.addresses.api, node.config.addresses.gateway],
        "AgentVersion": f"ipfsctl/{__version__}",
        "Online": node.online,
    }


node_id = Command(
    "id",
    "Show the identity of the node.",
    run=_id,
    text=lambda v: render_fields(v, value_style="ipfs.id"),
)


# --- config ---


def _config_show(request: Request) -> NodeConfig:
    return _config(request)


def _lookup(document: dict[str, Any], key: str) -> Any:
    value: Any = document
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            raise CommandError(f"Failed to get config value: key {key!r} has no value")
        value = value[part]
    return value


def _config_get(request: Request) -> dict[str, Any]:
    key = request.param("key")
    document = _config(request).model_dump(by_alias=True, mode="json")
    return {"Key": key, "Value": _lookup(document, key)}


def _config_value_text(result: dict[str, Any]) -> str:
    value = result["Value"]
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)


config = Command.group(
    "config",
    "Inspect the node configuration.",
    [
        Command(
            "show",
            "Print the whole configuration document.",
            run=_config_show,
            text=lambda c: c.model_dump_json(by_alias=True, indent=2),
        ),
        Command(
            "get",
            "Print a single configuration value, e.g. Addresses.API.",
            run=_config_get,
            params=[click.Argument(["key"])],
            text=_config_value_text,
        ),
    ],
)


# --- add / cat / refs ---


def _add(request: Request) -> dict[str, Any]:
    path: Path = request.param("file")
    with path.open("rb") as fh:
        key, size = _node(request).put(fh)
    return {"Hash": key, "Name": path.name, "Size": size}


add = Command(
    "add",
    "Add a file to the node's content store.",
    run=_add,
    params=[click.Argument(["file"], type=click.Path(exists=True, dir_okay=False, path_type=Path))],
    text=lambda v: f"added {v['Hash']} {v['Name']}",
    examples="  ipfsctl add notes.txt\n  ipfsctl --local add notes.txt",
)


def _cat(request: Request) -> Iterator[bytes]:
    key = request.param("key")
    try:
        return _node(request).get(key)
    except KeyError:
        raise CommandError(f"block {key} not found") from None


cat = Command(
    "cat",
    "Write the content stored under KEY to stdout.",
    run=_cat,
    params=[click.Argument(["key"])],
)


def _refs_local(request: Request) -> list[str]:
    return _node(request).keys()


refs = Command.group(
    "refs",
    "List references held by the node.",
    [
        Command(
            "local",
            "List every key in the local content store.",
            run=_refs_local,
            text=lambda keys: "\n".join(keys),
        ),
    ],
)


ROOT = CommandSet("core", [version, node_id, config, add, cat, refs])
