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
Utility functions for zipchunk.

This module provides helpers for incremental CRC-32, DOS date/time conversion,
exact reads and writes, bounded stream copies and safe extraction paths.
"""

import zlib
from datetime import datetime
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO, Optional

from .errors import InvalidArgumentError, ZipFormatError


def crc32(data: bytes, value: int = 0) -> int:
    """Update a running CRC-32 with *data*.

    Args:
        data: Bytes to fold into the checksum.
        value: CRC-32 of everything seen so far (0 to start).

    Returns:
        CRC-32 value as unsigned 32-bit integer.
    """
    return zlib.crc32(data, value) & 0xFFFFFFFF


def dos_datetime_to_timestamp(dos_date: int, dos_time: int) -> datetime:
    """Convert DOS date and time to Python datetime.

    DOS date format (16 bits):
        Bits 0-4: Day (1-31)
        Bits 5-8: Month (1-12)
        Bits 9-15: Year - 1980

    DOS time format (16 bits):
        Bits 0-4: Second / 2
        Bits 5-10: Minute (0-59)
        Bits 11-15: Hour (0-23)

    Invalid values map to 1980-01-01 00:00:00.
    """
    day = dos_date & 0x1F
    month = (dos_date >> 5) & 0x0F
    year = ((dos_date >> 9) & 0x7F) + 1980

    second = (dos_time & 0x1F) * 2
    minute = (dos_time >> 5) & 0x3F
    hour = (dos_time >> 11) & 0x1F

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return datetime(1980, 1, 1, 0, 0, 0)


def timestamp_to_dos_datetime(dt: datetime) -> tuple[int, int]:
    """Convert Python datetime to DOS date and time.

    Years outside 1980-2107 are clamped to the representable range.

    Args:
        dt: datetime object to convert.

    Returns:
        Tuple of (dos_date, dos_time) as 16-bit unsigned integers.
    """
    year = min(max(dt.year - 1980, 0), 127)
    dos_date = dt.day | (dt.month << 5) | (year << 9)
    dos_time = (dt.second // 2) | (dt.minute << 5) | (dt.hour << 11)
    return (dos_date & 0xFFFF, dos_time & 0xFFFF)


def read_exact(f: BinaryIO, size: int) -> bytes:
    """Read exactly 'size' bytes from file, raising ZipFormatError on short read."""
    if size < 0:
        raise ZipFormatError(f"Invalid read size: {size} (must be non-negative)")

    data = f.read(size)
    if len(data) != size:
        raise ZipFormatError(
            f"Unexpected end of file: expected {size} bytes, got {len(data)}"
        )
    return data


def write_all(f: BinaryIO, data: bytes) -> int:
    """Write *data* to *f*, raising ZipFormatError on a short write.

    Returns:
        Number of bytes written (always ``len(data)``).
    """
    written = f.write(data)
    if written is not None and written != len(data):
        raise ZipFormatError(
            f"Write operation failed: expected to write {len(data)} bytes, wrote {written} bytes"
        )
    return len(data)


def copy_stream(
    source: BinaryIO,
    destination: BinaryIO,
    buffer_size: int,
    length: Optional[int] = None,
) -> int:
    """Copy bytes from *source* to *destination* through a fixed-size buffer.

    Args:
        source: Binary stream to read from.
        destination: Binary stream to write to.
        buffer_size: Maximum number of bytes held in memory per read.
        length: Number of bytes to copy, or None to copy until end of stream.

    Returns:
        Number of bytes copied. Less than *length* only if *source* ran dry.
    """
    if buffer_size <= 0:
        raise InvalidArgumentError(f"Buffer size must be positive, got {buffer_size}")

    copied = 0
    while length is None or copied < length:
        want = buffer_size if length is None else min(buffer_size, length - copied)
        block = source.read(want)
        if not block:
            break
        destination.write(block)
        copied += len(block)
    return copied


def safe_extract_path(output_dir: Path, entry_name: str) -> Path:
    """Map an archive entry name to a path beneath *output_dir*.

    Args:
        output_dir: Directory entries are extracted into.
        entry_name: POSIX-style entry name from the archive.

    Returns:
        The destination path.

    Raises:
        InvalidArgumentError: If the name is absolute, has a drive, or would
            climb out of *output_dir* through "..".
    """
    name = PurePosixPath(entry_name)
    if name.is_absolute() or ".." in name.parts or PureWindowsPath(entry_name).drive:
        raise InvalidArgumentError(f"Refusing to extract '{entry_name}' outside of '{output_dir}'")
    parts = [part for part in name.parts if part not in ("", ".")]
    if not parts:
        raise InvalidArgumentError(f"Entry name '{entry_name}' does not name a path")
    return output_dir.joinpath(*parts)
