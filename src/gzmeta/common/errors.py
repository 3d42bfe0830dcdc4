"""Base error definitions for gzmeta packages."""

from typing import Any, Dict


class GzMetaError(Exception):
    """Base exception for all gzmeta errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(GzMetaError):
    """Configuration is invalid or missing."""
    pass
