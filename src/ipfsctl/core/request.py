"""Request and Context: one invocation's input, built once after parsing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ipfsctl.config.models import NodeConfig
    from ipfsctl.config.settings import Encoding, RunSettings
    from ipfsctl.core.node import Node


@dataclass
class Context:
    """Execution context owned by a single Request.

    ``node`` stays None when a remote daemon handles the request; on the
    local path it is set exactly once by the router, which also closes it.
    """

    config_root: Path
    config: NodeConfig | None = None
    node: Node | None = None


@dataclass(frozen=True)
class Request:
    """A parsed command invocation.

    Attributes:
        path: Command-name segments, e.g. ``("config", "get")``.
        settings: Validated global options.
        params: Command-specific arguments and options, keyed by name.
        encoding: Output encoding chosen for this invocation.
        context: Mutable execution context (config and node handle).
    """

    path: tuple[str, ...]
    settings: RunSettings
    encoding: Encoding
    context: Context
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def param(self, name: str, default: Any = None) -> Any:
        """Return a command-specific parameter, or *default* when absent."""
        value = self.params.get(name)
        return default if value is None else value

    @property
    def command_path(self) -> str:
        return " ".join(self.path)
