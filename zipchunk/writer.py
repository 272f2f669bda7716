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
Streaming ZIP archive writer.

This module provides the ZipWriter class. Entry data is never held in memory
as a whole: it is read, checksummed and deflated one buffer at a time, and the
sizes and CRC-32 are recorded in a data descriptor after the data.
"""

import io
import os
import zlib
from datetime import datetime
from typing import BinaryIO, Optional

from .constants import (
    COMP_DEFLATE,
    COMP_STORED,
    DEFAULT_BUFFER_SIZE,
    EXTERNAL_ATTR_DIR,
    EXTERNAL_ATTR_FILE,
    FLAG_DATA_DESCRIPTOR,
    FLAG_UTF8,
    MAX_CD_OFFSET,
    MAX_CD_SIZE,
    MAX_ENTRIES,
    MAX_FILE_SIZE,
    VERSION_DEFAULT,
    VERSION_MADE_BY_DEFAULT,
    VERSION_ZIP64,
    ZIP64_SIZE_HEADROOM,
)
from .errors import InvalidArgumentError, ZipCompressionError, ZipFormatError
from .structures import (
    CentralDirectoryHeader,
    EndOfCentralDirectory,
    LocalFileHeader,
    Zip64EndOfCentralDirectory,
    Zip64Locator,
    build_zip64_extra_field,
    data_descriptor_bytes,
)
from .utils import crc32, timestamp_to_dos_datetime, write_all


class ZipWriter:
    """Streaming writer for ZIP and ZIP64 archives.

    Every file entry is deflated and followed by a data descriptor, so the
    writer needs neither the entry size in advance nor a seekable output.
    Directory entries are stored with no data.

    Example:
        with ZipWriter("archive.zip") as z:
            z.add_directory("docs/")
            z.add_file("docs/report.pdf", "/path/to/report.pdf", buffer_size=8192)
    """

    def __init__(self, file: str | os.PathLike | BinaryIO, compression_level: int = zlib.Z_DEFAULT_COMPRESSION):
        """Initialize ZipWriter with a file path or file-like object.

        Args:
            file: Path of the archive to create, or a binary file-like object
                opened for writing.
            compression_level: zlib compression level used for file entries.

        Raises:
            OSError: If the archive file cannot be created.
            ZipFormatError: If a file-like object without write() is given.
        """
        if isinstance(file, (str, os.PathLike)):
            self._file = open(file, "wb")
            self._should_close = True
        else:
            if not hasattr(file, "write"):
                raise ZipFormatError("File-like object must have a write() method")
            self._file = file
            self._should_close = False

        self._compression_level = compression_level
        self._central_headers: list[CentralDirectoryHeader] = []
        self._current_offset: int = 0
        self._closed: bool = False

    @property
    def entry_count(self) -> int:
        return len(self._central_headers)

    def _write(self, data: bytes) -> None:
        if self._closed or self._file is None:
            raise ZipFormatError("Archive is closed")
        self._current_offset += write_all(self._file, data)

    @staticmethod
    def _encode_name(name: str) -> bytes:
        """Normalize and validate an entry name, returning its UTF-8 bytes."""
        name = name.replace("\\", "/")
        if not name or name == "/":
            raise ZipFormatError("Entry name cannot be empty")
        if "\x00" in name:
            raise ZipFormatError("Entry name cannot contain null bytes")
        try:
            name_bytes = name.encode("utf-8")
        except UnicodeEncodeError as e:
            # Undecodable file system names arrive surrogate-escaped
            raise ZipFormatError(f"Entry name {name!r} is not valid UTF-8") from e
        if len(name_bytes) > 0xFFFF:
            raise ZipFormatError(f"Entry name too long: {len(name_bytes)} bytes")
        return name_bytes

    def _add_central_header(
        self,
        name_bytes: bytes,
        method: int,
        flags: int,
        dos_date: int,
        dos_time: int,
        crc32_val: int,
        compressed_size: int,
        uncompressed_size: int,
        local_header_offset: int,
        external_attrs: int,
    ) -> None:
        # Saturate the 32-bit fields that do not fit and carry them in a ZIP64 extra
        zip64_values = []
        stored_uncompressed = uncompressed_size
        stored_compressed = compressed_size
        stored_offset = local_header_offset
        if uncompressed_size >= MAX_FILE_SIZE:
            zip64_values.append(uncompressed_size)
            stored_uncompressed = MAX_FILE_SIZE
        if compressed_size >= MAX_FILE_SIZE:
            zip64_values.append(compressed_size)
            stored_compressed = MAX_FILE_SIZE
        if local_header_offset >= MAX_FILE_SIZE:
            zip64_values.append(local_header_offset)
            stored_offset = MAX_FILE_SIZE

        extra = build_zip64_extra_field(*zip64_values) if zip64_values else b""
        self._central_headers.append(
            CentralDirectoryHeader(
                version_made_by=VERSION_MADE_BY_DEFAULT,
                version=VERSION_ZIP64 if zip64_values else VERSION_DEFAULT,
                flags=flags,
                compression_method=method,
                mod_time=dos_time,
                mod_date=dos_date,
                crc32=crc32_val,
                compressed_size=stored_compressed,
                uncompressed_size=stored_uncompressed,
                disk_num=0,
                internal_attrs=0,
                external_attrs=external_attrs,
                local_header_offset=stored_offset,
                filename=name_bytes,
                extra=extra,
            )
        )

    def add_directory(self, name: str, date_time: Optional[datetime] = None) -> None:
        """Add an empty directory entry.

        Args:
            name: Entry name; a trailing "/" is appended if missing.
            date_time: Modification time to record (defaults to now).
        """
        if not name.endswith("/"):
            name += "/"
        name_bytes = self._encode_name(name)
        dos_date, dos_time = timestamp_to_dos_datetime(date_time or datetime.now())
        local_header_offset = self._current_offset

        self._write(
            LocalFileHeader(
                version=VERSION_DEFAULT,
                flags=FLAG_UTF8,
                compression_method=COMP_STORED,
                mod_time=dos_time,
                mod_date=dos_date,
                crc32=0,
                compressed_size=0,
                uncompressed_size=0,
                filename=name_bytes,
            ).to_bytes()
        )
        self._add_central_header(
            name_bytes, COMP_STORED, FLAG_UTF8, dos_date, dos_time, 0, 0, 0, local_header_offset, EXTERNAL_ATTR_DIR
        )

    def add_stream(
        self,
        name: str,
        stream: BinaryIO,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        size_hint: Optional[int] = None,
        date_time: Optional[datetime] = None,
    ) -> int:
        """Add a deflated file entry whose data is read from *stream*.

        Args:
            name: Entry name (path within the archive).
            stream: Binary file-like object positioned at the data to store.
            buffer_size: Number of bytes read from *stream* per iteration.
            size_hint: Expected number of bytes; entries that may exceed the
                32-bit limit get ZIP64 local headers and data descriptors.
            date_time: Modification time to record (defaults to now).

        Returns:
            Number of uncompressed bytes written.

        Raises:
            InvalidArgumentError: If *buffer_size* is not positive.
            ZipFormatError: If the archive is closed or the name is invalid,
                or a stream without a size hint outgrows classic ZIP sizes.
            ZipCompressionError: If deflate fails.
        """
        if buffer_size <= 0:
            raise InvalidArgumentError(f"Buffer size must be positive, got {buffer_size}")
        name_bytes = self._encode_name(name)
        if name_bytes.endswith(b"/"):
            raise ZipFormatError(f"File entry name cannot end with '/': {name}")

        is_zip64 = size_hint is not None and size_hint * ZIP64_SIZE_HEADROOM > MAX_FILE_SIZE
        flags = FLAG_UTF8 | FLAG_DATA_DESCRIPTOR
        dos_date, dos_time = timestamp_to_dos_datetime(date_time or datetime.now())
        local_header_offset = self._current_offset

        # CRC-32 and sizes are unknown until the data has been written; they
        # follow in the data descriptor.
        self._write(
            LocalFileHeader(
                version=VERSION_ZIP64 if is_zip64 else VERSION_DEFAULT,
                flags=flags,
                compression_method=COMP_DEFLATE,
                mod_time=dos_time,
                mod_date=dos_date,
                crc32=0,
                compressed_size=MAX_FILE_SIZE if is_zip64 else 0,
                uncompressed_size=MAX_FILE_SIZE if is_zip64 else 0,
                filename=name_bytes,
                extra=build_zip64_extra_field(0, 0) if is_zip64 else b"",
            ).to_bytes()
        )

        entry_crc32 = 0
        uncompressed_size = 0
        data_start = self._current_offset
        try:
            compressor = zlib.compressobj(self._compression_level, zlib.DEFLATED, -zlib.MAX_WBITS)
            while True:
                block = stream.read(buffer_size)
                if not block:
                    break
                entry_crc32 = crc32(block, entry_crc32)
                uncompressed_size += len(block)
                compressed = compressor.compress(block)
                if compressed:
                    self._write(compressed)
            tail = compressor.flush()
        except zlib.error as e:
            raise ZipCompressionError(f"Deflate compression failed for '{name}': {e}") from e
        if tail:
            self._write(tail)
        compressed_size = self._current_offset - data_start

        if not is_zip64 and max(compressed_size, uncompressed_size) >= MAX_FILE_SIZE:
            raise ZipFormatError(f"Entry '{name}' outgrew classic ZIP sizes; pass a size_hint")

        self._write(data_descriptor_bytes(entry_crc32, compressed_size, uncompressed_size, is_zip64))
        self._add_central_header(
            name_bytes,
            COMP_DEFLATE,
            flags,
            dos_date,
            dos_time,
            entry_crc32,
            compressed_size,
            uncompressed_size,
            local_header_offset,
            EXTERNAL_ATTR_FILE,
        )
        return uncompressed_size

    def add_file(self, name_in_zip: str, source_path: str | os.PathLike, buffer_size: int = DEFAULT_BUFFER_SIZE) -> int:
        """Add a file from disk, streaming it through *buffer_size* bytes at a time.

        The file's modification time is recorded on the entry.

        Returns:
            Number of bytes read from the source file.

        Raises:
            OSError: If the source file cannot be opened or read.
        """
        stat = os.stat(source_path)
        with open(source_path, "rb") as f:
            return self.add_stream(
                name_in_zip,
                f,
                buffer_size=buffer_size,
                size_hint=stat.st_size,
                date_time=datetime.fromtimestamp(stat.st_mtime),
            )

    def add_bytes(self, name: str, data: bytes) -> int:
        """Add a file entry from an in-memory buffer."""
        return self.add_stream(name, io.BytesIO(data), buffer_size=max(len(data), 1), size_hint=len(data))

    def _write_central_directory(self) -> tuple[int, int]:
        cd_offset = self._current_offset
        for header in self._central_headers:
            self._write(header.to_bytes())
        return cd_offset, self._current_offset - cd_offset

    def _write_end_records(self, cd_offset: int, cd_size: int) -> None:
        num_entries = len(self._central_headers)
        needs_zip64 = num_entries >= MAX_ENTRIES or cd_size >= MAX_CD_SIZE or cd_offset >= MAX_CD_OFFSET

        if needs_zip64:
            zip64_eocd_offset = self._current_offset
            self._write(
                Zip64EndOfCentralDirectory(
                    version_made_by=VERSION_MADE_BY_DEFAULT,
                    version_needed=VERSION_ZIP64,
                    disk_num=0,
                    cd_disk=0,
                    cd_records_on_disk=num_entries,
                    cd_records_total=num_entries,
                    cd_size=cd_size,
                    cd_offset=cd_offset,
                ).to_bytes()
            )
            self._write(Zip64Locator(disk_num=0, zip64_eocd_offset=zip64_eocd_offset, total_disks=1).to_bytes())

        self._write(
            EndOfCentralDirectory(
                disk_num=0,
                cd_disk=0,
                cd_records_on_disk=min(num_entries, MAX_ENTRIES),
                cd_records_total=min(num_entries, MAX_ENTRIES),
                cd_size=min(cd_size, MAX_CD_SIZE),
                cd_offset=min(cd_offset, MAX_CD_OFFSET),
            ).to_bytes()
        )

    def _release(self) -> None:
        if self._should_close and self._file is not None:
            self._file.close()
        self._file = None
        self._closed = True

    def close(self) -> None:
        """Write the central directory and end records, then close the archive."""
        if self._closed:
            return
        try:
            cd_offset, cd_size = self._write_central_directory()
            self._write_end_records(cd_offset, cd_size)
        finally:
            self._release()

    def abort(self) -> None:
        """Close the underlying file without finalizing the archive.

        Whatever was written so far stays on disk; it has no central directory.
        """
        if not self._closed:
            self._release()

    def __enter__(self) -> "ZipWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
