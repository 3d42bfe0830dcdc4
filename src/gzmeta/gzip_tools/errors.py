"""Gzip metadata errors."""

from gzmeta.common import GzMetaError


class GzipMetadataError(GzMetaError):
    """Gzip metadata processing failed."""
    pass


class HeaderEncodingError(GzipMetadataError):
    """A header value cannot be stored in a gzip header."""
    pass


class CorruptedHeaderError(GzipMetadataError):
    """Stored header CRC16 does not match the header bytes."""
    pass


class TruncatedHeaderError(GzipMetadataError):
    """Data ended before the gzip header was complete."""
    pass
