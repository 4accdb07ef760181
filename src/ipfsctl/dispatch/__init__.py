"""Choosing between the daemon and an in-process node, then executing there."""
