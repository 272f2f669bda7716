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
ZIP archive reader implementation.

This module provides the ZipReader class. Entries are located through the
central directory and their data is streamed back one buffer at a time, with
the CRC-32 checked once the last byte has been produced.
"""

import io
import os
import zlib
from typing import BinaryIO, Iterator, Optional

from .constants import (
    COMP_DEFLATE,
    COMP_STORED,
    DEFAULT_BUFFER_SIZE,
    END_OF_CENTRAL_DIR_SIZE,
    FLAG_ENCRYPTED,
    FLAG_UTF8,
    ZIP64_LOCATOR_SIZE,
)
from .errors import (
    InvalidArgumentError,
    ZipCompressionError,
    ZipCrcError,
    ZipFormatError,
    ZipUnsupportedFeature,
)
from .structures import (
    EndOfCentralDirectory,
    Zip64EndOfCentralDirectory,
    ZipEntry,
    parse_central_directory_header,
    parse_eocd,
    parse_local_file_header,
    parse_zip64_eocd,
    parse_zip64_locator,
    resolve_zip64_values,
)
from .utils import crc32, read_exact

# The EOCD is at least 22 bytes and may be followed by a comment of up to 65535
_MAX_EOCD_SCAN = 65535 + END_OF_CENTRAL_DIR_SIZE


class ZipReader:
    """Reader for ZIP and ZIP64 archives.

    Example:
        with ZipReader("archive.zip") as z:
            for entry in z.entries():
                for block in z.iter_bytes(entry, buffer_size=8192):
                    ...
    """

    def __init__(self, file: str | os.PathLike | BinaryIO):
        """Initialize ZipReader with a file path or seekable file-like object.

        Raises:
            OSError: If the archive file cannot be opened.
            ZipFormatError: If the file is not a valid ZIP archive.
        """
        if isinstance(file, (str, os.PathLike)):
            self._file = open(file, "rb")
            self._should_close = True
        else:
            for method in ("read", "seek", "tell"):
                if not hasattr(file, method):
                    raise ZipFormatError(f"File-like object must have a {method}() method")
            self._file = file
            self._should_close = False

        self._entries: list[ZipEntry] = []
        self._closed: bool = False

        try:
            self._file.seek(0, io.SEEK_END)
            self._file_size = self._file.tell()
            self._parse_central_directory(self._find_eocd())
        except Exception:
            self.close()
            raise

    def _find_eocd(self) -> EndOfCentralDirectory | Zip64EndOfCentralDirectory:
        """Locate the end records, preferring the ZIP64 record when present.

        Raises:
            ZipFormatError: If no End of Central Directory record is found.
        """
        max_scan = min(_MAX_EOCD_SCAN, self._file_size)
        self._file.seek(self._file_size - max_scan)
        data = self._file.read(max_scan)

        eocd_pos = data.rfind(b"PK\x05\x06")
        if eocd_pos == -1:
            raise ZipFormatError("End of Central Directory record not found")
        absolute_pos = self._file_size - len(data) + eocd_pos

        self._file.seek(absolute_pos)
        eocd = parse_eocd(self._file)

        # A ZIP64 locator, if any, sits immediately before the classic record
        if absolute_pos >= ZIP64_LOCATOR_SIZE:
            self._file.seek(absolute_pos - ZIP64_LOCATOR_SIZE)
            if read_exact(self._file, 4) == b"PK\x06\x07":
                self._file.seek(absolute_pos - ZIP64_LOCATOR_SIZE)
                locator = parse_zip64_locator(self._file)
                if not 0 <= locator.zip64_eocd_offset < self._file_size:
                    raise ZipFormatError(
                        f"Invalid ZIP64 EOCD offset: {locator.zip64_eocd_offset} (file size: {self._file_size})"
                    )
                self._file.seek(locator.zip64_eocd_offset)
                return parse_zip64_eocd(self._file)

        return eocd

    def _parse_central_directory(self, eocd: EndOfCentralDirectory | Zip64EndOfCentralDirectory) -> None:
        cd_offset = eocd.cd_offset
        cd_size = eocd.cd_size
        num_entries = eocd.cd_records_total

        if cd_offset + cd_size > self._file_size:
            raise ZipFormatError(
                f"Central directory extends beyond file: offset {cd_offset}, size {cd_size} "
                f"(file size: {self._file_size})"
            )

        self._file.seek(cd_offset)
        for _ in range(num_entries):
            header = parse_central_directory_header(self._file)

            if header.flags & FLAG_UTF8:
                name = header.filename.decode("utf-8")
            else:
                name = header.filename.decode("cp437")
            name = name.replace("\\", "/")

            is_dir = name.endswith("/") or bool((header.external_attrs >> 16) & 0o040000)
            uncompressed_size, compressed_size, local_header_offset = resolve_zip64_values(
                header.extra, header.uncompressed_size, header.compressed_size, header.local_header_offset
            )

            self._entries.append(
                ZipEntry(
                    name=name,
                    is_dir=is_dir,
                    compressed_size=compressed_size,
                    uncompressed_size=uncompressed_size,
                    crc32=header.crc32,
                    compression_method=header.compression_method,
                    flags=header.flags,
                    date_time=header.date_time,
                    local_header_offset=local_header_offset,
                )
            )

    def entries(self) -> list[ZipEntry]:
        """Return all entries in the order their data is stored in the archive."""
        return sorted(self._entries, key=lambda entry: entry.local_header_offset)

    def list(self) -> list[str]:
        """List entry names in stored order."""
        return [entry.name for entry in self.entries()]

    def get_info(self, name: str) -> Optional[ZipEntry]:
        """Get metadata for the first entry named *name*, or None."""
        name = name.replace("\\", "/")
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def _data_offset(self, entry: ZipEntry) -> int:
        if not 0 <= entry.local_header_offset < self._file_size:
            raise ZipFormatError(
                f"Invalid local header offset for entry '{entry.name}': {entry.local_header_offset} "
                f"(file size: {self._file_size})"
            )
        self._file.seek(entry.local_header_offset)
        parse_local_file_header(self._file)
        data_offset = self._file.tell()
        if data_offset + entry.compressed_size > self._file_size:
            raise ZipFormatError(f"Compressed data extends beyond file for entry '{entry.name}'")
        return data_offset

    def iter_bytes(self, entry: ZipEntry, buffer_size: int = DEFAULT_BUFFER_SIZE) -> Iterator[bytes]:
        """Yield the decompressed data of *entry* in blocks of at most *buffer_size* bytes.

        The CRC-32 is checked after the last block, so a consumer that writes
        blocks as they arrive may have written corrupt data before the error.

        Raises:
            InvalidArgumentError: If *buffer_size* is not positive.
            ZipUnsupportedFeature: If the entry is encrypted or uses another
                method than stored or deflate.
            ZipCompressionError: If inflating fails or the stream is truncated.
            ZipCrcError: If the CRC-32 does not match.
        """
        if buffer_size <= 0:
            raise InvalidArgumentError(f"Buffer size must be positive, got {buffer_size}")
        if self._closed or self._file is None:
            raise ZipFormatError("Archive is closed")
        if entry.is_dir:
            return
        if entry.flags & FLAG_ENCRYPTED:
            raise ZipUnsupportedFeature(f"Entry '{entry.name}' is encrypted (encryption not supported)")
        if entry.compression_method not in (COMP_STORED, COMP_DEFLATE):
            raise ZipUnsupportedFeature(f"Unsupported compression method: {entry.compression_method}")

        position = self._data_offset(entry)
        remaining = entry.compressed_size
        decompressor = zlib.decompressobj(-zlib.MAX_WBITS) if entry.compression_method == COMP_DEFLATE else None
        running_crc = 0
        produced = 0

        def read_compressed() -> bytes:
            nonlocal position, remaining
            # Re-seek on every read; the caller may use the file between blocks
            self._file.seek(position)
            data = read_exact(self._file, min(buffer_size, remaining))
            position += len(data)
            remaining -= len(data)
            return data

        try:
            if decompressor is None:
                while remaining > 0:
                    block = read_compressed()
                    running_crc = crc32(block, running_crc)
                    produced += len(block)
                    yield block
            else:
                pending = b""
                while not decompressor.eof:
                    if pending:
                        data = pending
                    elif remaining > 0:
                        data = read_compressed()
                    else:
                        # Input exhausted; drain output still held by the decompressor
                        data = b""
                    block = decompressor.decompress(data, buffer_size)
                    pending = decompressor.unconsumed_tail
                    if block:
                        running_crc = crc32(block, running_crc)
                        produced += len(block)
                        yield block
                    elif not data:
                        break
                if not decompressor.eof:
                    raise ZipCompressionError(f"Deflate stream of entry '{entry.name}' is truncated")
        except zlib.error as e:
            raise ZipCompressionError(f"Deflate decompression failed for entry '{entry.name}': {e}") from e

        if produced != entry.uncompressed_size:
            raise ZipFormatError(
                f"Size mismatch for entry '{entry.name}': expected {entry.uncompressed_size}, got {produced}"
            )
        if running_crc != entry.crc32:
            raise ZipCrcError(
                f"CRC32 mismatch for entry '{entry.name}': expected 0x{entry.crc32:08X}, got 0x{running_crc:08X}"
            )

    def read(self, name: str) -> bytes:
        """Return the whole decompressed content of the entry named *name*.

        Raises:
            KeyError: If no entry has that name.
        """
        entry = self.get_info(name)
        if entry is None:
            raise KeyError(f"Entry not found: {name}")
        return b"".join(self.iter_bytes(entry, buffer_size=max(entry.uncompressed_size, DEFAULT_BUFFER_SIZE)))

    def close(self) -> None:
        """Close the archive file."""
        if self._closed:
            return
        if self._should_close and self._file is not None:
            self._file.close()
        self._file = None
        self._closed = True

    def __enter__(self) -> "ZipReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
