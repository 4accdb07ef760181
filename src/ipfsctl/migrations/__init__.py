"""Migration artifact retrieval from a distribution gateway.

:class:`HttpFetcher` performs a single bounded GET per artifact;
:mod:`ipfsctl.migrations.dist` builds version lookups on top of it.
"""

from ipfsctl.migrations.fetcher import Fetcher, HttpFetcher
from ipfsctl.migrations.limit import LimitReadCloser

__all__ = ["Fetcher", "HttpFetcher", "LimitReadCloser"]
