"""CRC-32 engine (RFC 1952, section 8) and file checksum utilities."""

import zlib
from pathlib import Path
from typing import BinaryIO, Iterable, Tuple

# Constants for checksum calculation
CRC32_POLYNOMIAL = 0xEDB88320
CRC32_CHUNK_SIZE = 65536  # 64 KB chunks


def _make_crc_table() -> Tuple[int, ...]:
    """Build the table of CRCs of all 8-bit messages."""
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = CRC32_POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return tuple(table)


# Built once at import time and never mutated afterwards
CRC32_TABLE = _make_crc_table()


def update_crc32(crc: int, data: Iterable[int]) -> int:
    """
    Update a running CRC-32 with the given bytes.

    The running value starts at 0. One's-complement pre- and
    post-conditioning is done here, so callers never apply it themselves.

    Args:
        crc: Running CRC-32 (0 for a new checksum)
        data: bytes, bytearray, memoryview or any iterable of byte values

    Returns:
        Updated CRC-32 as unsigned 32-bit integer

    Example:
        >>> crc = 0
        >>> for chunk in (b"1234", b"56789"):
        ...     crc = update_crc32(crc, chunk)
        >>> hex(crc)
        '0xcbf43926'
    """
    table = CRC32_TABLE
    c = (crc ^ 0xFFFFFFFF) & 0xFFFFFFFF
    for b in data:
        c = table[(c ^ b) & 0xFF] ^ (c >> 8)
    return c ^ 0xFFFFFFFF


def crc32(data: Iterable[int]) -> int:
    """Return the CRC-32 of the given bytes."""
    return update_crc32(0, data)


def crc32_stream(stream: BinaryIO, chunk_size: int = CRC32_CHUNK_SIZE) -> int:
    """
    Compute the CRC-32 of everything remaining in a binary stream.

    Reads in chunks of at most chunk_size bytes, so memory use does not
    depend on the stream length.

    Args:
        stream: Readable binary stream
        chunk_size: Read buffer size in bytes

    Returns:
        CRC-32 as unsigned 32-bit integer
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    crc = 0
    while chunk := stream.read(chunk_size):
        crc = update_crc32(crc, chunk)
    return crc


def compute_crc32(file_path: Path) -> int:
    """
    Compute CRC32 checksum of entire file.

    Uses zlib for speed on large files; the result is the same as
    crc32_stream() over the file contents.

    Args:
        file_path: Path to the file

    Returns:
        CRC32 checksum as unsigned 32-bit integer

    Raises:
        OSError: If file cannot be read
    """
    crc = 0
    with open(file_path, 'rb') as f:
        while chunk := f.read(CRC32_CHUNK_SIZE):
            crc = zlib.crc32(chunk, crc)

    return crc & 0xFFFFFFFF


def compute_crc32_hex(file_path: Path) -> str:
    """
    Compute CRC32 checksum of entire file as hex string.

    Args:
        file_path: Path to the file

    Returns:
        CRC32 checksum as 8-character hex string (e.g., "a1b2c3d4")

    Raises:
        OSError: If file cannot be read
    """
    crc_int = compute_crc32(file_path)
    return f"{crc_int:08x}"
