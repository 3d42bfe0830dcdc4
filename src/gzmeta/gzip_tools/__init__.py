"""Read and write gzip header metadata (RFC 1952) around a gzip codec."""

from .header import (
    GzipFlags, GzipHeader, MTIME_NOT_SET, GZIP_OS_NAMES,
    encode_mtime, decode_mtime,
)
from .stream import GzipMetadataStream, WriteState
from .codec import GzipCompressStream, open_gzip_reader
from .file_tools import (
    GzipMetadata, compressed_gzip_path, gzip_compress, gzip_decompress,
    gzip_compress_with_metadata, gzip_decompress_with_metadata, read_gzip_metadata,
)
from .errors import (
    GzipMetadataError, HeaderEncodingError, CorruptedHeaderError, TruncatedHeaderError
)

__all__ = [
    'GzipFlags',
    'GzipHeader',
    'MTIME_NOT_SET',
    'GZIP_OS_NAMES',
    'encode_mtime',
    'decode_mtime',
    'GzipMetadataStream',
    'WriteState',
    'GzipCompressStream',
    'open_gzip_reader',
    'GzipMetadata',
    'compressed_gzip_path',
    'gzip_compress',
    'gzip_decompress',
    'gzip_compress_with_metadata',
    'gzip_decompress_with_metadata',
    'read_gzip_metadata',
    'GzipMetadataError',
    'HeaderEncodingError',
    'CorruptedHeaderError',
    'TruncatedHeaderError',
]
