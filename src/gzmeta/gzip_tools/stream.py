"""
Stream decorator that reads or writes the metadata of a gzip file.

The decorator sits between a file-like object and a gzip compressor or
decompressor. Compression and decompression are left entirely to that codec;
this layer only touches the header fields RFC 1952 defines for the original
filename, a comment, the modification time and the header CRC16.

Writing: the compressor is expected to write its whole default header in a
single call of at least 10 bytes at position 0. That call is rewritten to
carry the metadata, every later call goes straight through.

Reading: if the wrapped stream can seek, the header is parsed when the
decorator is created and the stream is rewound to offset 0 so the
decompressor reads the complete file again. A non-seekable stream is left
alone and no metadata is available.
"""

import enum
import io
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

from .errors import HeaderEncodingError, TruncatedHeaderError
from .header import (
    FIXED_HEADER_SIZE, MTIME_NOT_SET, GzipFlags, GzipHeader, Timestamp,
    encode_header_string, encode_mtime, header_crc16, parse_header_buffer, read_header,
)

logger = logging.getLogger(__name__)


class WriteState(enum.Enum):
    """Progress of the write-mode header injection."""
    AWAITING_HEADER = "awaiting_header"
    PASSTHROUGH = "passthrough"


def _is_set(text: Optional[str]) -> bool:
    return bool(text) and not text.isspace()


class GzipMetadataStream(io.RawIOBase):
    """
    Wraps another binary stream to read or write gzip header metadata.

    A stream is either for reading or for writing, never both. The wrapped
    stream is not closed when this one is, unless `owns_stream` is True.

    Metadata properties:
        internal_filename       stored original filename, or None
        internal_comment        stored comment, or None
        internal_last_modified  stored modification time; MTIME_NOT_SET when
                                reading a header whose MTIME is 0
        header_crc              CRC16 stored (reading) or written (writing)
        header_corrupted        reading: the header was cut off, or with
                                check_header_crc the stored CRC16 did not match
        header_read             reading: the header was parsed
    """

    def __init__(self, stream: BinaryIO, mode: str = 'rb', *,
                 last_modified: Timestamp = None,
                 filename: Optional[str] = None,
                 comment: Optional[str] = None,
                 header_crc: bool = False,
                 owns_stream: bool = False) -> None:
        """
        Args:
            stream: The stream to wrap
            mode: 'rb' to read metadata, 'wb' to write it
            last_modified: (writing) modification time of the original file,
                a datetime or seconds since the epoch
            filename: (writing) original filename, without any directories
            comment: (writing) free text comment
            header_crc: when writing, add a header CRC16; when reading,
                verify it if the header has one
            owns_stream: close the wrapped stream when this one is closed
        """
        super().__init__()
        if mode not in ('rb', 'wb'):
            raise ValueError(f"Mode must be 'rb' or 'wb', got {mode!r}")
        self._stream = stream
        self._writing = mode == 'wb'
        self._add_or_check_header_crc = header_crc
        self.owns_stream = owns_stream

        self._filename: Optional[str] = None
        self._comment: Optional[str] = None
        self._last_modified: Timestamp = MTIME_NOT_SET
        self._header_crc: Optional[int] = None
        self._header_corrupted = False
        self._header_read = False
        self._header: Optional[GzipHeader] = None

        if self._writing:
            if _is_set(filename) and ('/' in filename or '\\' in filename):
                raise HeaderEncodingError(f"Gzip filename must not contain directories: {filename!r}", filename=filename)
            self._filename = filename
            self._comment = comment
            self._last_modified = MTIME_NOT_SET if last_modified is None else last_modified
            # Fail now rather than on the first write
            for text in (filename, comment):
                if _is_set(text):
                    encode_header_string(text)
            encode_mtime(self._last_modified)
            self._write_state = WriteState.AWAITING_HEADER
            self._bytes_written = 0
        else:
            self._read_metadata()

    @classmethod
    def for_writing(cls, stream: BinaryIO, last_modified: Timestamp = None,
                    filename: Optional[str] = None, comment: Optional[str] = None,
                    add_header_crc: bool = False) -> 'GzipMetadataStream':
        """Wrap an output stream to add metadata to the gzip header written through it."""
        return cls(stream, 'wb', last_modified=last_modified, filename=filename,
                   comment=comment, header_crc=add_header_crc)

    @classmethod
    def for_writing_file(cls, stream: BinaryIO, input_path: Path,
                         comment: Optional[str] = None,
                         add_header_crc: bool = False) -> 'GzipMetadataStream':
        """Wrap an output stream, using the name and last write time of the file being compressed."""
        input_path = Path(input_path)
        last_modified = datetime.fromtimestamp(input_path.stat().st_mtime, tz=timezone.utc)
        return cls.for_writing(stream, last_modified, input_path.name, comment, add_header_crc)

    @classmethod
    def for_reading(cls, stream: BinaryIO, check_header_crc: bool = False) -> 'GzipMetadataStream':
        """Wrap an input stream and read the gzip header metadata from it."""
        return cls(stream, 'rb', header_crc=check_header_crc)

    # Metadata
    @property
    def internal_filename(self) -> Optional[str]:
        return self._filename

    @property
    def internal_comment(self) -> Optional[str]:
        return self._comment

    @property
    def internal_last_modified(self) -> Timestamp:
        """
        Modification time as given (writing) or as stored (reading).

        Read values are always aware UTC datetimes with whole seconds, so a
        naive or fractional time written out reads back equal only when
        compared through timestamp().
        """
        return self._last_modified

    @property
    def header_crc(self) -> Optional[int]:
        return self._header_crc

    @property
    def header_corrupted(self) -> bool:
        return self._header_corrupted

    @property
    def header_read(self) -> bool:
        return self._header_read

    @property
    def header(self) -> Optional[GzipHeader]:
        """The parsed (reading) or rewritten (writing) header, if any."""
        return self._header

    @property
    def extra_field(self) -> Optional[bytes]:
        return self._header.extra_field if self._header is not None else None

    @property
    def add_or_check_header_crc(self) -> bool:
        return self._add_or_check_header_crc

    @property
    def write_state(self) -> Optional[WriteState]:
        return self._write_state if self._writing else None

    @property
    def raw(self) -> BinaryIO:
        return self._stream

    @property
    def name(self):
        return getattr(self._stream, 'name', '')

    # Capabilities
    def readable(self) -> bool:
        return not self._writing and self._stream.readable()

    def writable(self) -> bool:
        return self._writing and self._stream.writable()

    def seekable(self) -> bool:
        seekable = getattr(self._stream, 'seekable', None)
        return bool(seekable and seekable())

    # Passthrough
    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._stream.seek(offset, whence)

    def tell(self) -> int:
        return self._stream.tell()

    def truncate(self, size: Optional[int] = None) -> int:
        return self._stream.truncate(size)

    @property
    def length(self) -> int:
        """Length of the wrapped stream."""
        pos = self._stream.tell()
        end = self._stream.seek(0, io.SEEK_END)
        self._stream.seek(pos)
        return end

    def flush(self) -> None:
        if not getattr(self._stream, 'closed', False):
            self._stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            if self.owns_stream:
                self._stream.close()

    def __repr__(self) -> str:
        mode = 'wb' if self._writing else 'rb'
        return f"<GzipMetadataStream mode={mode!r} stream={self._stream!r}>"

    # Reading
    def read(self, size: int = -1) -> bytes:
        self._check_mode(writing=False)
        return self._stream.read(size)

    def readinto(self, b) -> int:
        self._check_mode(writing=False)
        data = self._stream.read(len(b))
        if not data:
            return 0
        n = len(data)
        b[:n] = data
        return n

    def _read_metadata(self) -> None:
        if not self.seekable():
            # Reading the header would consume bytes the decompressor needs
            logger.debug("Wrapped stream cannot seek, gzip metadata not read")
            return

        # The header and its CRC16 always start at offset 0
        self._stream.seek(0)
        try:
            header, prefix = read_header(self._stream.read)
        except TruncatedHeaderError as e:
            header = e.context['header']
            self._header_corrupted = True
            logger.warning(f"Gzip header is truncated: {e.message}",
                           extra={"extra_fields": {"stream": self.name}})
        else:
            if header.header_crc is not None and self._add_or_check_header_crc:
                self._header_corrupted = header.header_crc != header_crc16(prefix)
                if self._header_corrupted:
                    logger.warning(
                        "Gzip header CRC16 mismatch",
                        extra={"extra_fields": {
                            "stream": self.name,
                            "stored": f"{header.header_crc:04x}",
                            "computed": f"{header_crc16(prefix):04x}",
                        }},
                    )

        if not header.is_gzip:
            logger.debug("Stream does not start with a gzip header")

        self._header = header
        self._filename = header.filename
        self._comment = header.comment
        self._last_modified = header.last_modified
        self._header_crc = header.header_crc

        # The decompressor has to see the whole header again
        self._stream.seek(0)
        self._header_read = True
        logger.debug(f"Read gzip header: filename={header.filename!r}, mtime={header.mtime}, flags={header.flags!r}")

    # Writing
    def write(self, b) -> int:
        self._check_mode(writing=True)
        data = bytes(b)
        if not data:
            return 0
        if self._write_state is WriteState.AWAITING_HEADER:
            self._write_state = WriteState.PASSTHROUGH
            if self._position() == 0 and len(data) >= FIXED_HEADER_SIZE:
                self._stream.write(self._inject_metadata(data))
                self._bytes_written += len(data)
                return len(data)
        written = self._stream.write(data)
        written = len(data) if written is None else written
        self._bytes_written += written
        return written

    def _position(self) -> int:
        if self.seekable():
            return self._stream.tell()
        return self._bytes_written

    def _inject_metadata(self, data: bytes) -> bytes:
        """Rewrite the compressor's default header in data to carry our metadata."""
        try:
            header, header_size = parse_header_buffer(data)
        except TruncatedHeaderError as e:
            logger.warning(f"Compressor header not contained in its first write, metadata not added: {e.message}")
            return data
        if not header.is_gzip:
            logger.warning("First write does not start with a gzip header, metadata not added")
            return data

        if _is_set(self._filename) and not header.flags & GzipFlags.FNAME:
            header.flags |= GzipFlags.FNAME
            header.filename = self._filename
        if _is_set(self._comment) and not header.flags & GzipFlags.FCOMMENT:
            header.flags |= GzipFlags.FCOMMENT
            header.comment = self._comment
        if self._add_or_check_header_crc:
            # An existing CRC16 slot is recomputed in place, never duplicated
            header.flags |= GzipFlags.FHCRC

        mtime = encode_mtime(self._last_modified)
        if mtime > 0:
            header.mtime = mtime

        out = header.to_bytes()
        self._header = header
        if header.flags & GzipFlags.FHCRC:
            self._header_crc = header.header_crc
        logger.debug(f"Wrote gzip header: filename={header.filename!r}, mtime={header.mtime}, flags={header.flags!r}")
        return out + data[header_size:]

    def _check_mode(self, writing: bool) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self._writing != writing:
            raise io.UnsupportedOperation('Cannot write to a read-only gzip metadata stream' if writing
                                          else 'Cannot read from a write-only gzip metadata stream')
