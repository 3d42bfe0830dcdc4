"""Common utilities for gzmeta packages."""

from .config import ConfigLoader
from .logging import setup_logging, configure_logging, get_logger, LogContext
from .logging_config import LoggingConfig
from .errors import GzMetaError, ConfigurationError
from .checksums import (
    crc32, update_crc32, crc32_stream, compute_crc32, compute_crc32_hex
)

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'configure_logging',
    'get_logger',
    'LogContext',
    'GzMetaError',
    'ConfigurationError',
    'crc32',
    'update_crc32',
    'crc32_stream',
    'compute_crc32',
    'compute_crc32_hex',
]
