"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Command-line interface for zipchunk (``zipchunk``).

Supported commands (via ``python -m zipchunk``):

- ``compress``   : Pack a directory into one or more size-bounded archives
- ``decompress`` : Rebuild a directory from the archives in another directory

Example usages:

    # Pack ./photos into ./out, no archive holding more than 100MB of content
    python -m zipchunk compress photos out --max-file-size 100MB

    # Rebuild the tree from every archive in ./out
    python -m zipchunk decompress out restored

Exit codes: 0 on success, 2 when an input is missing or an argument is
invalid, 1 on I/O failure and 130 when interrupted.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import ArchiverError, ErrorKind
from .options import CompressionOptions, DecompressionOptions
from .registry import DEFAULT_ARCHIVER, default_registry

_EXIT_CODES = {
    ErrorKind.NOT_FOUND: 2,
    ErrorKind.INVALID_ARGUMENT: 2,
    ErrorKind.UNSUPPORTED_ARCHIVER: 2,
    ErrorKind.IO_FAILURE: 1,
}

_SIZE_SUFFIXES = (
    ("TB", 1024 ** 4),
    ("GB", 1024 ** 3),
    ("MB", 1024 ** 2),
    ("KB", 1024),
)


def _print_error(message: str, exit_code: int = 1, suggestion: Optional[str] = None) -> None:
    """Print an error message to stderr and exit with the given code.

    Args:
        message: Error message to display.
        exit_code: Exit code to use.
        suggestion: Optional suggestion to help the user resolve the error.
    """
    sys.stderr.write(f"zipchunk: {message}\n")
    if suggestion:
        sys.stderr.write(f"zipchunk: Suggestion: {suggestion}\n")
    sys.exit(exit_code)


def _parse_size(size_str: str) -> int:
    """
    Parse a size string (e.g., "64MB", "100KB", "1GB") into bytes.

    Args:
        size_str: Size string with optional suffix (KB, MB, GB, TB).

    Returns:
        Size in bytes.

    Raises:
        ValueError: If size string is invalid.
    """
    size_str = size_str.strip().upper()

    try:
        return int(size_str)
    except ValueError:
        pass

    for suffix, multiplier in _SIZE_SUFFIXES:
        if size_str.endswith(suffix):
            try:
                return int(size_str[: -len(suffix)].strip()) * multiplier
            except ValueError:
                break
    raise ValueError(f"Invalid size format: {size_str} (expected number or number with KB/MB/GB/TB suffix)")


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="zipchunk",
        description="zipchunk - Size-bounded chunked ZIP archiving (library and CLI).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr. Repeat for per-entry detail.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # compress
    p_compress = subparsers.add_parser("compress", help="Pack a directory into size-bounded archives")
    p_compress.add_argument("input", type=Path, help="Directory to archive")
    p_compress.add_argument("output", type=Path, help="Directory receiving the archives (created if missing)")
    p_compress.add_argument(
        "--max-file-size",
        type=str,
        default="0",
        metavar="SIZE",
        help="Maximum uncompressed content per archive (e.g., '100MB', '1GB'). "
             "0 writes a single archive.",
    )
    p_compress.add_argument(
        "--buffer-size",
        type=str,
        default=None,
        metavar="SIZE",
        help="Bytes held in memory per copy (default: 1024).",
    )
    p_compress.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Number of archives written in parallel (default: chosen by the thread pool).",
    )
    p_compress.add_argument(
        "--archiver",
        type=str,
        default=DEFAULT_ARCHIVER,
        metavar="NAME",
        help=f"Archiver to use (default: {DEFAULT_ARCHIVER}).",
    )

    # decompress
    p_decompress = subparsers.add_parser("decompress", help="Rebuild a directory from chunked archives")
    p_decompress.add_argument("input", type=Path, help="Directory holding the archives")
    p_decompress.add_argument("output", type=Path, help="Directory to rebuild into (created if missing)")
    p_decompress.add_argument(
        "--buffer-size",
        type=str,
        default=None,
        metavar="SIZE",
        help="Bytes held in memory per copy (default: 1024).",
    )
    p_decompress.add_argument(
        "--archiver",
        type=str,
        default=DEFAULT_ARCHIVER,
        metavar="NAME",
        help=f"Archiver to use (default: {DEFAULT_ARCHIVER}).",
    )

    return parser


def _cmd_compress(args: argparse.Namespace) -> None:
    try:
        max_file_size = _parse_size(args.max_file_size)
        buffer_size = _parse_size(args.buffer_size) if args.buffer_size is not None else None
    except ValueError as e:
        _print_error(str(e), exit_code=2)

    extra = {} if buffer_size is None else {"buffer_size": buffer_size}
    options = CompressionOptions(
        args.input,
        args.output,
        max_file_size=max_file_size,
        max_workers=args.workers,
        **extra,
    )
    archiver = default_registry().create(args.archiver)
    for archive in archiver.compress(options):
        print(f"Created {archive}")


def _cmd_decompress(args: argparse.Namespace) -> None:
    try:
        buffer_size = _parse_size(args.buffer_size) if args.buffer_size is not None else None
    except ValueError as e:
        _print_error(str(e), exit_code=2)

    extra = {} if buffer_size is None else {"buffer_size": buffer_size}
    options = DecompressionOptions(args.input, args.output, **extra)
    archiver = default_registry().create(args.archiver)
    archives = archiver.decompress(options)
    print(f"Restored {options.output} from {len(archives)} archive(s)")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the zipchunk CLI.

    This function is invoked when running:

        python -m zipchunk ...

    or, if the console script is installed, via:

        zipchunk ...
    """
    if argv is None:
        argv = sys.argv[1:]

    # With no arguments, show a short banner and quick examples.
    if not argv:
        print(f"zipchunk - chunked ZIP archiver (version {__version__})")
        print("Copyright (c) 2025 DNAi inc. - Apache License 2.0")
        print()
        print("Quick examples (CLI):")
        print("  python -m zipchunk compress folder out --max-file-size 100MB")
        print("  python -m zipchunk decompress out restored")
        print()
        print('For full help, run: "python -m zipchunk --help"')
        return

    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "compress":
            _cmd_compress(args)
        elif args.command == "decompress":
            _cmd_decompress(args)
        else:
            parser.error(f"Unknown command: {args.command!r}")
    except ArchiverError as e:
        suggestion = None
        if e.kind is ErrorKind.UNSUPPORTED_ARCHIVER:
            suggestion = f"Available archivers: {', '.join(default_registry().names())}"
        elif e.kind is ErrorKind.IO_FAILURE and e.__cause__ is not None:
            suggestion = "Check that the paths are readable and writable and that there is enough free space."
        _print_error(str(e), exit_code=_EXIT_CODES[e.kind], suggestion=suggestion)
    except KeyboardInterrupt:
        _print_error("Interrupted by user", exit_code=130)


if __name__ == "__main__":
    main()
