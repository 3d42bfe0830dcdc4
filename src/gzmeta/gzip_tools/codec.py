"""Gzip compressor and decompressor used underneath the metadata stream."""

import gzip
import io
import zlib
from typing import BinaryIO

# zlib window bits for a gzip wrapper around the deflate data
GZIP_WBITS = 16 + zlib.MAX_WBITS
DEFAULT_COMPRESSION_LEVEL = 6


class GzipCompressStream(io.RawIOBase):
    """
    Write-only stream that gzip-compresses everything written to it.

    zlib produces the gzip header, the deflate data and the trailer. Each
    piece of output zlib returns is passed to the sink in one write call,
    so the default 10-byte header arrives whole in the first write.
    The sink is flushed but not closed by close().
    """

    def __init__(self, sink: BinaryIO, level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        super().__init__()
        level = int(level)
        if level < 0 or level > 9:
            raise ValueError(f"Compression level must be between 0 and 9 (inclusive), got {level}")
        self._sink = sink
        self._level = level
        self._compressor = zlib.compressobj(level, zlib.DEFLATED, GZIP_WBITS)
        self._size = 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def size(self) -> int:
        """Number of uncompressed bytes written so far."""
        return self._size

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        data = bytes(b)
        if data:
            chunk = self._compressor.compress(data)
            if chunk:
                self._sink.write(chunk)
            self._size += len(data)
        return len(data)

    def flush(self) -> None:
        if not self.closed:
            self._sink.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            tail = self._compressor.flush(zlib.Z_FINISH)
            if tail:
                self._sink.write(tail)
        finally:
            super().close()


def open_gzip_reader(source: BinaryIO) -> gzip.GzipFile:
    """Decompress gzip data read from source; invalid data raises gzip.BadGzipFile."""
    return gzip.GzipFile(fileobj=source, mode='rb')
