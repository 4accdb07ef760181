"""Run settings — global CLI flags and env vars in one validated object.

Priority chain (highest to lowest):
  1. Init kwargs: global flags given explicitly on the command line
  2. Env vars: ``IPFSCTL_*`` prefix
  3. Code defaults

Built exactly once per invocation by :func:`ipfsctl.main.run` and shared
with the request, the router, and the lifecycle guard.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic_settings import BaseSettings

Encoding = Literal["json", "text"]


class RunSettings(BaseSettings):
    """Validated global options for a single invocation.

    Attributes:
        config_root: Explicit ``--config`` override, or None for discovery.
        local: Tri-state. None when ``--local`` was never given, which the
            router treats the same as False.
        encoding: Explicit output encoding, or None to let the command's
            marshallers decide.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "IPFSCTL_",
    }

    config_root: str | None = None
    debug: bool = False
    help: bool = False
    local: bool | None = None
    online: bool = False
    encoding: Encoding | None = None
    verbose: bool = False
    log_json: bool = False

    @classmethod
    def from_cli(cls, **explicit: Any) -> RunSettings:
        """Construct settings from the flags the user actually typed.

        Flags left at their click defaults must not be passed here, or
        they would mask the ``IPFSCTL_*`` environment.
        """
        return cls(**explicit)
