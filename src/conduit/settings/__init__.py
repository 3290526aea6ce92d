"""Application settings."""

from .settings import CliSettings, Settings

__all__ = ["CliSettings", "Settings"]
