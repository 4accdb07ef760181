"""Distribution lookups built on a Fetcher.

A distribution ``<name>`` publishes ``<name>/versions``: one version per
line, e.g. ``v1.0.0``.  Artifacts live below ``<name>/<version>/``.
"""

from __future__ import annotations

import re
import threading
from pathlib import Path

from ipfsctl.config.models import MigrationsConfig
from ipfsctl.errors import FetchError
from ipfsctl.migrations.fetcher import CHUNK_SIZE, Fetcher, HttpFetcher

_NUMBER = re.compile(r"\d+")


def fetcher_from_config(
    config: MigrationsConfig | None = None,
    *,
    timeout: float | None = None,
    user_agent: str = "",
) -> HttpFetcher:
    """Build an HttpFetcher from the ``Migrations`` config section.

    *user_agent* applies only when the config does not set one.
    """
    config = config or MigrationsConfig()
    return HttpFetcher(
        dist_path=config.dist_path,
        gateway=config.gateway,
        user_agent=config.user_agent or user_agent,
        fetch_limit=config.fetch_limit,
        timeout=timeout,
    )


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(n) for n in _NUMBER.findall(version))


def dist_versions(
    fetcher: Fetcher,
    dist: str,
    *,
    newest_first: bool = True,
    cancel: threading.Event | None = None,
) -> list[str]:
    """Return the versions published for *dist*, sorted by numeric components."""
    with fetcher.fetch(f"{dist}/versions", cancel=cancel) as stream:
        raw = stream.read()
    versions = [line.strip() for line in raw.decode("utf-8").splitlines() if line.strip()]
    return sorted(versions, key=_version_key, reverse=newest_first)


def latest_version(fetcher: Fetcher, dist: str, *, cancel: threading.Event | None = None) -> str:
    versions = dist_versions(fetcher, dist, cancel=cancel)
    if not versions:
        raise FetchError(f"no versions published for {dist}")
    return versions[0]


def fetch_to_file(
    fetcher: Fetcher,
    file_path: str,
    dest: Path,
    *,
    cancel: threading.Event | None = None,
) -> int:
    """Copy the artifact at *file_path* into *dest*; return the bytes written.

    A partially written *dest* is removed when the fetch fails.
    """
    written = 0
    with fetcher.fetch(file_path, cancel=cancel) as stream:
        try:
            with dest.open("wb") as out:
                while chunk := stream.read(CHUNK_SIZE):
                    out.write(chunk)
                    written += len(chunk)
        except BaseException:
            dest.unlink(missing_ok=True)
            raise
    return written
