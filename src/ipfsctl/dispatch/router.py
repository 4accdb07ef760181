"""ExecutionRouter — decide where a request runs, then run it there.

Routing rule: a request goes to the daemon **iff** the daemon lock for
its config root is held **and** the user did not ask for ``--local``.
Everything else runs against a node constructed in-process.  Client-only
commands skip the decision entirely.

The decision is made once per invocation; nothing re-probes the lock
after it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from ipfsctl.core.lock import is_locked
from ipfsctl.core.node import Node, construct_node
from ipfsctl.dispatch.address import dial_args
from ipfsctl.dispatch.client import DaemonClient
from ipfsctl.errors import ConstructionError

if TYPE_CHECKING:
    from ipfsctl.commands.registry import CommandSet
    from ipfsctl.config.models import NodeConfig
    from ipfsctl.config.settings import RunSettings
    from ipfsctl.core.request import Request
    from ipfsctl.core.response import Response

logger = logging.getLogger(__name__)

LockProbe = Callable[[Path], bool]
NodeFactory = Callable[..., Node]
ClientFactory = Callable[[str], DaemonClient]


class Route(Enum):
    CLIENT = "client"
    LOCAL = "local"
    REMOTE = "remote"


def use_daemon(locked: bool, local: bool | None) -> bool:
    """The routing rule.  ``local=None`` (flag never given) counts as False."""
    return locked and not local


class ExecutionRouter:
    """Chooses and drives one of the two execution paths.

    Collaborators are injectable so the decision can be exercised without
    a real lock file, node, or daemon.
    """

    def __init__(
        self,
        settings: RunSettings,
        *,
        lock_probe: LockProbe = is_locked,
        node_factory: NodeFactory = construct_node,
        client_factory: ClientFactory = DaemonClient,
    ) -> None:
        self.settings = settings
        self._lock_probe = lock_probe
        self._node_factory = node_factory
        self._client_factory = client_factory

    def choose(self, request: Request, command_set: CommandSet) -> Route:
        if command_set.client_only:
            return Route.CLIENT
        locked = self._lock_probe(request.context.config_root)
        if use_daemon(locked, self.settings.local):
            return Route.REMOTE
        return Route.LOCAL

    @contextmanager
    def dispatch(self, request: Request, command_set: CommandSet) -> Iterator[Response]:
        """Execute *request* and yield its Response.

        Everything the chosen path acquired (node, HTTP body, client) is
        released when the ``with`` block exits, whether rendering inside
        it succeeded or raised.
        """
        route = self.choose(request, command_set)
        logger.debug("Dispatching '%s' via %s path", request.command_path, route.value)

        if route is Route.CLIENT:
            yield from self._respond(command_set.call(request))
        elif route is Route.REMOTE:
            yield from self._remote(request, request.context.config)
        else:
            yield from self._local(request, command_set)

    def _respond(self, response: Response) -> Iterator[Response]:
        try:
            yield response
        finally:
            response.close()

    def _remote(self, request: Request, config: NodeConfig | None) -> Iterator[Response]:
        if config is None:
            root = request.context.config_root
            msg = f"daemon is running but no configuration found at {root}"
            raise ConstructionError(msg)
        _, host = dial_args(config.addresses.api)
        with self._client_factory(host) as client:
            yield from self._respond(client.send(request))

    def _local(self, request: Request, command_set: CommandSet) -> Iterator[Response]:
        ctx = request.context
        node = self._node_factory(ctx.config_root, ctx.config, online=self.settings.online)
        try:
            ctx.node = node
            yield from self._respond(command_set.call(request))
        finally:
            node.close()
