"""Command-line client that dispatches to a daemon or an in-process node."""

__version__ = "0.1.0"
