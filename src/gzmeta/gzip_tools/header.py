"""Gzip header model (RFC 1952, section 2.3).

GZIP header {Little-Endian}
1F 8B CM FG [MTIME (4)] XF OS
  CM = 08 - deflate compression method
  FG = 01 - file is probably ASCII text
       02 - CRC16 for header is present
       04 - extra field is present
       08 - original file name is present
       10 - comment is present
  MTIME = mod. time as secs since 00:00:00 GMT 01/01/70 of the orig file, or 0
  XF = 2 for max compression, 4 for fastest compression
  OS = the filesystem where the file came from
[XLEN (2) + extra field]
[filename, ISO-8859-1, zero terminated]
[comment, ISO-8859-1, zero terminated]
[CRC16 = low 16 bits of the CRC32 of all header bytes before it]
<compressed data>
"""

import enum
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple, Union

from gzmeta.common import crc32
from .errors import HeaderEncodingError, TruncatedHeaderError

__all__ = [
    'GzipFlags', 'GzipHeader', 'GZIP_MAGIC', 'CM_DEFLATE', 'FIXED_HEADER_SIZE',
    'HEADER_CHARSET', 'UNIX_EPOCH', 'MTIME_NOT_SET', 'GZIP_OS_NAMES',
    'encode_mtime', 'decode_mtime', 'encode_header_string', 'header_crc16',
    'read_header', 'parse_header_buffer',
]


class GzipFlags(enum.IntFlag):
    """FLG bits of the gzip header."""
    FTEXT = 0x01
    FHCRC = 0x02
    FEXTRA = 0x04
    FNAME = 0x08
    FCOMMENT = 0x10
    RESERVED1 = 0x20
    RESERVED2 = 0x40
    RESERVED3 = 0x80


GZIP_MAGIC = b"\x1f\x8b"
CM_DEFLATE = 8
FIXED_HEADER_SIZE = 10
HEADER_CHARSET = "iso-8859-1"

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Returned when MTIME is 0; earlier than any timestamp a header can hold
MTIME_NOT_SET = datetime.min.replace(tzinfo=timezone.utc)

GZIP_OS_NAMES = {
    0: 'FAT',
    1: 'Amiga',
    2: 'VMS',
    3: 'Unix',
    4: 'VM/CMS',
    5: 'Atari TOS',
    6: 'HPFS',
    7: 'Macintosh',
    8: 'Z-System',
    9: 'CP/M',
    10: 'TOPS-20',
    11: 'NTFS',
    12: 'QDOS',
    13: 'Acorn RISCOS',
    255: 'Unknown',
}

_uint16 = struct.Struct('<H')
_uint32 = struct.Struct('<L')

Timestamp = Union[datetime, int, float, None]


def encode_mtime(value: Timestamp) -> int:
    """
    Convert a modification time to the MTIME header value.

    Naive datetimes are taken as local time. Anything at or before the Unix
    epoch (and None) encodes as 0, meaning "not set". Fractions of a second
    are truncated.

    Raises:
        HeaderEncodingError: If the time does not fit in 32 bits
    """
    if value is None:
        return 0
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            if value.year < 1970:
                return 0
            seconds = value.timestamp()
        else:
            seconds = (value - UNIX_EPOCH).total_seconds()
    else:
        seconds = float(value)
    if seconds <= 0:
        return 0
    seconds = int(seconds)
    if seconds > 0xFFFFFFFF:
        raise HeaderEncodingError(f"Modification time is too late for a gzip header: {value}", mtime=value)
    return seconds


def decode_mtime(mtime: int) -> datetime:
    """Convert an MTIME header value to an aware UTC datetime, or MTIME_NOT_SET for 0."""
    if mtime == 0:
        return MTIME_NOT_SET
    return UNIX_EPOCH + timedelta(seconds=mtime)


def encode_header_string(text: str) -> bytes:
    """
    Encode a filename or comment as ISO-8859-1 with a zero terminator.

    Anything from an embedded NUL onwards is dropped.

    Raises:
        HeaderEncodingError: If the text has characters outside ISO-8859-1
    """
    i = text.find('\x00')
    if i >= 0:
        text = text[:i]
    try:
        return text.encode(HEADER_CHARSET) + b'\x00'
    except UnicodeEncodeError as e:
        raise HeaderEncodingError(f"Cannot store {text!r} in a gzip header: {e.reason}", text=text) from e


def header_crc16(data: bytes) -> int:
    """Low 16 bits of the CRC-32 of the header bytes."""
    return crc32(data) & 0xFFFF


@dataclass
class GzipHeader:
    """Fields of a single gzip member header."""

    flags: GzipFlags = GzipFlags(0)
    mtime: int = 0
    extra_flags: int = 0
    os_id: int = 255
    extra_field: Optional[bytes] = None
    filename: Optional[str] = None
    comment: Optional[str] = None
    header_crc: Optional[int] = None
    magic1: int = 0x1F
    magic2: int = 0x8B
    compression_method: int = CM_DEFLATE

    @property
    def is_gzip(self) -> bool:
        """True if the magic bytes and compression method are the gzip ones."""
        return (self.magic1, self.magic2, self.compression_method) == (0x1F, 0x8B, CM_DEFLATE)

    @property
    def last_modified(self) -> datetime:
        return decode_mtime(self.mtime)

    @property
    def os_name(self) -> str:
        return GZIP_OS_NAMES.get(self.os_id, 'Unknown')

    def to_bytes(self) -> bytes:
        """
        Serialize the header, including the CRC16 when FHCRC is set.

        The sections written follow `flags`; a flagged but missing extra
        field, filename or comment is written empty. When FHCRC is set the
        checksum is computed over the serialized bytes and stored in
        `header_crc`.
        """
        out = bytearray(FIXED_HEADER_SIZE)
        out[0] = self.magic1
        out[1] = self.magic2
        out[2] = self.compression_method
        out[3] = int(self.flags) & 0xFF
        _uint32.pack_into(out, 4, self.mtime)
        out[8] = self.extra_flags
        out[9] = self.os_id
        if self.flags & GzipFlags.FEXTRA:
            extra = self.extra_field or b''
            if len(extra) > 0xFFFF:
                raise HeaderEncodingError("Gzip extra field is too long", length=len(extra))
            out += _uint16.pack(len(extra))
            out += extra
        if self.flags & GzipFlags.FNAME:
            out += encode_header_string(self.filename or '')
        if self.flags & GzipFlags.FCOMMENT:
            out += encode_header_string(self.comment or '')
        if self.flags & GzipFlags.FHCRC:
            self.header_crc = header_crc16(out)
            out += _uint16.pack(self.header_crc)
        return bytes(out)


def _read_header_str(read: Callable[[int], bytes], header: GzipHeader, field: str) -> str:
    """Read a zero-terminated ISO-8859-1 string one byte at a time."""
    s = bytearray()
    while True:
        c = read(1)
        if not c:
            # Keep what was read so the caller can still report it
            setattr(header, field, s.decode(HEADER_CHARSET))
            raise TruncatedHeaderError(f"Gzip header ended inside the {field}", header=header, field=field)
        if c == b'\x00':
            break
        s += c
    return s.decode(HEADER_CHARSET)


def read_header(read: Callable[[int], bytes]) -> Tuple[GzipHeader, bytes]:
    """
    Parse a gzip header using the given read function.

    The magic bytes and compression method are recorded, not validated.

    Args:
        read: Function returning up to n bytes, and b'' at end of data

    Returns:
        The header and the raw header bytes that precede the CRC16 field
        (the whole header when FHCRC is not set). With FHCRC set,
        `header.header_crc` holds the stored value.

    Raises:
        TruncatedHeaderError: If the data ends before the header does. The
            partially filled header is available as `context['header']`.
    """
    raw = bytearray()

    def read_exact(n: int, what: str) -> bytes:
        data = read(n) or b''
        raw.extend(data)
        if len(data) != n:
            raise TruncatedHeaderError(f"Gzip header ended inside the {what}", header=header, field=what)
        return data

    def read_tracked(n: int) -> bytes:
        data = read(n) or b''
        raw.extend(data)
        return data

    header = GzipHeader()
    fixed = read_exact(FIXED_HEADER_SIZE, 'fixed header')
    header.magic1, header.magic2, header.compression_method = fixed[0], fixed[1], fixed[2]
    header.flags = GzipFlags(fixed[3])
    header.mtime = _uint32.unpack_from(fixed, 4)[0]
    header.extra_flags = fixed[8]
    header.os_id = fixed[9]
    if header.flags & GzipFlags.FEXTRA:
        xlen = _uint16.unpack(read_exact(2, 'extra field'))[0]
        header.extra_field = read_exact(xlen, 'extra field')
    if header.flags & GzipFlags.FNAME:
        header.filename = _read_header_str(read_tracked, header, 'filename')
    if header.flags & GzipFlags.FCOMMENT:
        header.comment = _read_header_str(read_tracked, header, 'comment')
    prefix = bytes(raw)
    if header.flags & GzipFlags.FHCRC:
        header.header_crc = _uint16.unpack(read_exact(2, 'header CRC'))[0]
    return header, prefix


def parse_header_buffer(data: bytes) -> Tuple[GzipHeader, int]:
    """
    Parse a gzip header at the start of a buffer.

    Returns:
        The header and the number of bytes it occupies in the buffer

    Raises:
        TruncatedHeaderError: If the buffer ends before the header does
    """
    view = memoryview(data)
    pos = 0

    def read(n: int) -> bytes:
        nonlocal pos
        chunk = bytes(view[pos:pos + n])
        pos += len(chunk)
        return chunk

    header, _ = read_header(read)
    return header, pos
