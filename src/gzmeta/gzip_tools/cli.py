"""Command line interface for gzip metadata tools."""

import argparse
import gzip
import sys
import zlib
from pathlib import Path
from typing import List, Optional

from .config import GzMetaConfig
from .file_tools import (
    gzip_compress, gzip_compress_with_metadata, gzip_decompress,
    gzip_decompress_with_metadata, read_gzip_metadata,
)
from gzmeta.common import (
    ConfigLoader, GzMetaError, LogContext, compute_crc32_hex, configure_logging, get_logger,
)

APP_NAME = "gzmeta"

# Errors reported without a traceback
_EXPECTED_ERRORS = (GzMetaError, OSError, EOFError, gzip.BadGzipFile, zlib.error, ValueError)


def compress_command(config: GzMetaConfig, files: List[Path],
                     output_dir: Optional[Path] = None,
                     comment: Optional[str] = None,
                     header_crc: Optional[bool] = None,
                     store_filename: Optional[bool] = None,
                     plain: bool = False) -> int:
    """Compress files, storing metadata unless plain is set.

    Returns:
        Exit code (0 for success)
    """
    logger = get_logger(__package__ or __name__)
    opts = config.gzip
    comment = comment if comment is not None else opts.comment
    header_crc = header_crc if header_crc is not None else opts.add_header_crc
    store_filename = store_filename if store_filename is not None else opts.store_filename

    failed = 0
    for file in files:
        with LogContext(logger, command="compress", file=str(file)):
            try:
                if plain:
                    out = gzip_compress(file, output_dir, compression_level=opts.compression_level)
                else:
                    out = gzip_compress_with_metadata(
                        file, output_dir,
                        store_filename=store_filename,
                        comment=comment,
                        add_header_crc=header_crc,
                        compression_level=opts.compression_level,
                    )
                logger.debug(f"Created {out}")
            except _EXPECTED_ERRORS as e:
                logger.error(f"Failed to compress {file}: {e}")
                failed += 1

    return 1 if failed else 0


def decompress_command(config: GzMetaConfig, files: List[Path],
                       output_dir: Optional[Path] = None,
                       check_crc: Optional[bool] = None,
                       use_stored_filename: Optional[bool] = None,
                       plain: bool = False) -> int:
    """Decompress files, restoring stored metadata unless plain is set.

    Returns:
        Exit code (0 for success)
    """
    logger = get_logger(__package__ or __name__)
    opts = config.gzip
    check_crc = check_crc if check_crc is not None else opts.check_header_crc
    use_stored_filename = use_stored_filename if use_stored_filename is not None else opts.use_stored_filename

    failed = 0
    for file in files:
        with LogContext(logger, command="decompress", file=str(file)):
            try:
                if plain:
                    out = gzip_decompress(file, output_dir)
                else:
                    out = gzip_decompress_with_metadata(
                        file, output_dir,
                        use_stored_filename=use_stored_filename,
                        check_header_crc=check_crc,
                    )
                logger.debug(f"Created {out}")
            except _EXPECTED_ERRORS as e:
                logger.error(f"Failed to decompress {file}: {e}")
                failed += 1

    return 1 if failed else 0


def info_command(files: List[Path], check_crc: bool = True) -> int:
    """Print the header metadata of gzip files.

    Returns:
        Exit code (0 for success, 1 if a file failed or has a corrupted header)
    """
    logger = get_logger(__package__ or __name__)
    status = 0
    for file in files:
        with LogContext(logger, command="info", file=str(file)):
            try:
                metadata = read_gzip_metadata(file, check_header_crc=check_crc)
            except OSError as e:
                logger.error(f"Cannot read {file}: {e}")
                status = 1
                continue

        print(f"{file}:")
        print(f"  filename:      {metadata.filename if metadata.filename is not None else '-'}")
        print(f"  comment:       {metadata.comment if metadata.comment is not None else '-'}")
        mtime = metadata.last_modified.isoformat() if metadata.has_last_modified else '-'
        print(f"  last modified: {mtime}")
        print(f"  os:            {metadata.os_name or '-'}")
        if metadata.extra_field is not None:
            print(f"  extra field:   {len(metadata.extra_field)} bytes")
        if metadata.header_crc is not None:
            state = "CORRUPTED" if metadata.header_corrupted else "ok"
            print(f"  header crc:    {metadata.header_crc:04x} ({state})")
        if metadata.header_corrupted:
            status = 1
    return status


def crc32_command(files: List[Path]) -> int:
    """Print the CRC32 of each file.

    Returns:
        Exit code (0 for success)
    """
    logger = get_logger(__package__ or __name__)
    status = 0
    for file in files:
        with LogContext(logger, command="crc32", file=str(file)):
            try:
                print(f"{compute_crc32_hex(file)}  {file}")
            except OSError as e:
                logger.error(f"Cannot read {file}: {e}")
                status = 1
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Compress and decompress gzip files, keeping filename, comment and timestamp metadata"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compress = subparsers.add_parser("compress", help="Compress files to .gz")
    compress.add_argument("files", nargs="+", type=Path)
    compress.add_argument("--output-dir", type=Path, help="Directory for the .gz files")
    compress.add_argument("--comment", help="Comment to store in the gzip header")
    compress.add_argument("--header-crc", action="store_true", default=None,
                          help="Add a CRC16 of the gzip header")
    compress.add_argument("--no-name", action="store_true",
                          help="Do not store the original filename")
    compress.add_argument("--plain", action="store_true",
                          help="Store no metadata at all")

    decompress = subparsers.add_parser("decompress", help="Decompress .gz files")
    decompress.add_argument("files", nargs="+", type=Path)
    decompress.add_argument("--output-dir", type=Path, help="Directory for the decompressed files")
    decompress.add_argument("--check-crc", action="store_true", default=None,
                            help="Fail if the gzip header CRC16 does not match")
    decompress.add_argument("--ignore-stored-name", action="store_true",
                            help="Name output after the .gz file, not the stored filename")
    decompress.add_argument("--plain", action="store_true",
                            help="Ignore stored metadata")

    info = subparsers.add_parser("info", help="Show gzip header metadata")
    info.add_argument("files", nargs="+", type=Path)
    info.add_argument("--no-check-crc", action="store_true",
                      help="Do not verify the gzip header CRC16")

    crc = subparsers.add_parser("crc32", help="Print the CRC32 of files")
    crc.add_argument("files", nargs="+", type=Path)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the gzmeta command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config
    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=GzMetaConfig
    )
    try:
        config = loader.load(defaults_path=args.config)
    except GzMetaError as e:
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 1

    # Setup logging with config values
    configure_logging(config.logging, level=args.log_level)

    if args.command == "compress":
        return compress_command(
            config, args.files,
            output_dir=args.output_dir,
            comment=args.comment,
            header_crc=args.header_crc,
            store_filename=False if args.no_name else None,
            plain=args.plain,
        )
    if args.command == "decompress":
        return decompress_command(
            config, args.files,
            output_dir=args.output_dir,
            check_crc=args.check_crc,
            use_stored_filename=False if args.ignore_stored_name else None,
            plain=args.plain,
        )
    if args.command == "info":
        return info_command(args.files, check_crc=not args.no_check_crc)
    return crc32_command(args.files)


if __name__ == "__main__":
    sys.exit(main())
