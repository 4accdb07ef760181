"""Config root resolution and document loading.

The config root is the directory holding the ``config`` document, the
datastore, and the daemon lock file.  Resolution order:

  1. ``--config`` / ``IPFSCTL_CONFIG_ROOT`` (already folded into RunSettings)
  2. ``IPFS_PATH`` env var
  3. ``~/.ipfsctl``
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import ValidationError

from ipfsctl.config.models import NodeConfig
from ipfsctl.errors import ConstructionError

CONFIG_FILENAME = "config"
CONFIG_ROOT_ENV_VAR = "IPFS_PATH"
DEFAULT_CONFIG_ROOT = "~/.ipfsctl"


def resolve_config_root(option: str | None = None) -> Path:
    """Return the config root for this invocation.

    An explicit *option* wins; then ``IPFS_PATH``; then the default.
    ``~`` is expanded in every case.
    """
    if option:
        return Path(option).expanduser()
    env_root = os.environ.get(CONFIG_ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser()
    return Path(DEFAULT_CONFIG_ROOT).expanduser()


def config_filename(root: Path) -> Path:
    """Path of the config document inside *root*."""
    return root / CONFIG_FILENAME


def load_config(path: Path) -> NodeConfig | None:
    """Load and validate the config document at *path*.

    Returns None when the file does not exist (``ipfsctl init`` has not
    run yet).  An unreadable or malformed document raises ConstructionError.
    """
    if not path.is_file():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"cannot read config {path}: {exc}"
        raise ConstructionError(msg) from exc
    try:
        return NodeConfig.model_validate_json(raw)
    except ValidationError as exc:
        msg = f"Invalid config in {path}: {exc}"
        raise ConstructionError(msg) from exc


def write_config(path: Path, config: NodeConfig) -> None:
    """Serialize *config* to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8")
