"""Request and response types, the in-process node, and the daemon lock probe.

This layer depends on stdlib, pydantic, and the config layer.
It must never import from dispatch, commands, or output.
"""
