"""Runtime configuration."""

from config.settings import Settings  # noqa: F401
