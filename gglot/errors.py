from __future__ import annotations


class GglotError(Exception):
    """Base class for errors that abort a sync run."""


class ConfigError(GglotError):
    """Raised before any file is touched when the run cannot be configured."""


class TranslationError(GglotError):
    """Raised when the remote translation call fails."""


__all__ = ["GglotError", "ConfigError", "TranslationError"]
