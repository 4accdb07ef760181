"""Run settings, the config document, and logging setup."""
