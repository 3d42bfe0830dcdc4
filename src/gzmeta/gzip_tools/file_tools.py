"""Compress and decompress files, with or without gzip header metadata."""

import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PureWindowsPath
from typing import Optional, Union

from .codec import DEFAULT_COMPRESSION_LEVEL, GzipCompressStream, open_gzip_reader
from .errors import CorruptedHeaderError
from .header import MTIME_NOT_SET
from .stream import GzipMetadataStream

logger = logging.getLogger(__name__)

# Copy buffer size
CHUNK_SIZE = 1024 * 1024  # 1 MB

PathLike = Union[str, os.PathLike]


@dataclass
class GzipMetadata:
    """Metadata read from a gzip header."""
    filename: Optional[str]
    comment: Optional[str]
    last_modified: datetime
    header_crc: Optional[int]
    header_corrupted: bool
    header_read: bool
    os_name: Optional[str] = None
    extra_field: Optional[bytes] = None

    @property
    def has_last_modified(self) -> bool:
        return self.last_modified != MTIME_NOT_SET


def compressed_gzip_path(file: PathLike, directory: Optional[PathLike] = None,
                         name: Optional[PathLike] = None) -> Path:
    """
    Construct the path of the .gz file to create for file.

    Args:
        file: File to compress
        directory: Directory for the .gz file (default: the directory of file)
        name: Name for the .gz file (default: name of file plus .gz); only
            its final path component is used

    Returns:
        Path to the .gz file
    """
    file = Path(file)
    if not directory and not name:
        return file.with_name(file.name + ".gz")

    gz_name = Path(name).name if name else file.name + ".gz"
    return Path(directory or file.parent) / gz_name


def _stored_name(filename: Optional[str]) -> Optional[str]:
    """Final path component of a stored filename, or None if unusable."""
    if not filename or filename.isspace():
        return None
    # Strip both kinds of separator regardless of platform
    name = PureWindowsPath(filename).name
    if name in ('', '.', '..'):
        return None
    return name


def _without_gz_extension(file: Path) -> Path:
    out = file.with_suffix('')
    if out == file:
        raise ValueError(f"Unable to determine output filename for {file}")
    return out


def gzip_compress(file: PathLike, directory: Optional[PathLike] = None,
                  name: Optional[PathLike] = None,
                  compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> Path:
    """
    Compress a file, storing only the minimal gzip header.

    The .gz file gets the modification time of the source file.

    Returns:
        Path to the .gz file
    """
    file = Path(file)
    out = compressed_gzip_path(file, directory, name)

    with open(file, 'rb') as src, open(out, 'wb') as dst:
        with GzipCompressStream(dst, compression_level) as gz:
            shutil.copyfileobj(src, gz, CHUNK_SIZE)

    st = file.stat()
    os.utime(out, ns=(st.st_atime_ns, st.st_mtime_ns))
    logger.info(f"Compressed {file} -> {out}")
    return out


def gzip_decompress(file: PathLike, directory: Optional[PathLike] = None,
                    name: Optional[PathLike] = None) -> Path:
    """
    Decompress a gzip file, ignoring any stored metadata.

    The output is the .gz path without its extension unless directory or
    name are given. Its modification time is never later than the .gz file's.

    Returns:
        Path to the decompressed file
    """
    file = Path(file)
    if directory or name:
        name_or_path = Path(name) if name else _without_gz_extension(file)
        out = Path(directory or file.parent) / name_or_path.name
    else:
        out = _without_gz_extension(file)

    with open(file, 'rb') as src, open_gzip_reader(src) as gz, open(out, 'wb') as dst:
        shutil.copyfileobj(gz, dst, CHUNK_SIZE)

    gz_mtime_ns = file.stat().st_mtime_ns
    out_st = out.stat()
    if out_st.st_mtime_ns > gz_mtime_ns:
        os.utime(out, ns=(out_st.st_atime_ns, gz_mtime_ns))
    logger.info(f"Decompressed {file} -> {out}")
    return out


def gzip_compress_with_metadata(file: PathLike, directory: Optional[PathLike] = None,
                                name: Optional[PathLike] = None,
                                store_filename: bool = True,
                                comment: Optional[str] = None,
                                add_header_crc: bool = False,
                                compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> Path:
    """
    Compress a file and store its name and last write time in the gzip header.

    The .gz file keeps its own (current) modification time since the source
    time is in the header.

    Args:
        file: File to compress
        directory: Directory for the .gz file (default: the directory of file)
        name: Name for the .gz file (default: name of file plus .gz)
        store_filename: Store the name of file in the header
        comment: Optional comment for the header
        add_header_crc: Add a CRC16 of the header
        compression_level: Deflate compression level, 0 to 9

    Returns:
        Path to the .gz file
    """
    file = Path(file)
    out = compressed_gzip_path(file, directory, name)
    last_modified = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
    stored_filename = file.name if store_filename else None

    with open(file, 'rb') as src, open(out, 'wb') as dst:
        metadata = GzipMetadataStream.for_writing(dst, last_modified, stored_filename, comment, add_header_crc)
        with metadata, GzipCompressStream(metadata, compression_level) as gz:
            shutil.copyfileobj(src, gz, CHUNK_SIZE)

    logger.info(
        f"Compressed {file} -> {out} with metadata",
        extra={"extra_fields": {
            "filename": stored_filename,
            "comment": comment,
            "header_crc": metadata.header_crc,
        }},
    )
    return out


def gzip_decompress_with_metadata(file: PathLike, directory: Optional[PathLike] = None,
                                  use_stored_filename: bool = True,
                                  check_header_crc: bool = False) -> Path:
    """
    Decompress a gzip file, restoring the stored filename and modification time.

    Args:
        file: The .gz file
        directory: Directory for the output (default: the directory of file)
        use_stored_filename: Name the output after the filename in the
            header when there is one; otherwise (or when False) the .gz name
            without its extension is used
        check_header_crc: Verify the header CRC16 first

    Returns:
        Path to the decompressed file

    Raises:
        CorruptedHeaderError: If check_header_crc is set and the header is
            corrupted
    """
    file = Path(file)
    out_dir = Path(directory) if directory else file.parent
    last_modified = file.stat().st_mtime

    with open(file, 'rb') as src, GzipMetadataStream.for_reading(src, check_header_crc) as metadata:
        if check_header_crc and metadata.header_corrupted:
            raise CorruptedHeaderError(
                f"Gzip header of {file} is corrupted",
                path=str(file),
                header_crc=metadata.header_crc,
            )
        if metadata.internal_last_modified != MTIME_NOT_SET:
            last_modified = metadata.internal_last_modified.timestamp()

        stored = _stored_name(metadata.internal_filename) if use_stored_filename else None
        out = out_dir / (stored or _without_gz_extension(file).name)

        with open_gzip_reader(metadata) as gz, open(out, 'wb') as dst:
            shutil.copyfileobj(gz, dst, CHUNK_SIZE)

    os.utime(out, (out.stat().st_atime, last_modified))
    logger.info(f"Decompressed {file} -> {out}")
    return out


def read_gzip_metadata(file: PathLike, check_header_crc: bool = False) -> GzipMetadata:
    """Read the header metadata of a gzip file without decompressing it."""
    with open(file, 'rb') as src, GzipMetadataStream.for_reading(src, check_header_crc) as metadata:
        header = metadata.header
        return GzipMetadata(
            filename=metadata.internal_filename,
            comment=metadata.internal_comment,
            last_modified=metadata.internal_last_modified,
            header_crc=metadata.header_crc,
            header_corrupted=metadata.header_corrupted,
            header_read=metadata.header_read,
            os_name=header.os_name if header else None,
            extra_field=metadata.extra_field,
        )
