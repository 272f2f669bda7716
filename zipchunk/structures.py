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
ZIP structure definitions, parsing and serialization.

Each on-disk record is a dataclass with a ``to_bytes`` method used by the
writer and a ``parse_*`` function used by the reader. Only the records a
single-disk archive needs are modelled.
"""

import struct
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from .constants import (
    CENTRAL_DIR_HEADER,
    DATA_DESCRIPTOR,
    END_OF_CENTRAL_DIR,
    LOCAL_FILE_HEADER,
    MAX_FILE_SIZE,
    ZIP64_END_OF_CENTRAL_DIR,
    ZIP64_END_OF_CENTRAL_DIR_LOCATOR,
    ZIP64_END_OF_CENTRAL_DIR_SIZE,
    ZIP64_EXTRA_FIELD_TAG,
)
from .errors import ZipFormatError
from .utils import dos_datetime_to_timestamp, read_exact

_LOCAL_HEADER_FORMAT = "<IHHHHHIIIHH"
_CENTRAL_HEADER_FORMAT = "<IHHHHHHIIIHHHHHII"
_EOCD_FORMAT = "<IHHHHIIH"
_ZIP64_EOCD_FORMAT = "<IQHHIIQQQQ"
_ZIP64_LOCATOR_FORMAT = "<IIQI"


def _check_signature(actual: int, expected: int, record: str) -> None:
    if actual != expected:
        raise ZipFormatError(
            f"Invalid {record} signature: 0x{actual:08X}, expected 0x{expected:08X}"
        )


@dataclass
class LocalFileHeader:
    """Local file header structure.

    This header appears before each entry's compressed data in the archive.
    """

    version: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    filename: bytes
    extra: bytes = b""

    @property
    def date_time(self) -> datetime:
        """Get modification date/time as datetime object."""
        return dos_datetime_to_timestamp(self.mod_date, self.mod_time)

    def to_bytes(self) -> bytes:
        fixed = struct.pack(
            _LOCAL_HEADER_FORMAT,
            LOCAL_FILE_HEADER,
            self.version,
            self.flags,
            self.compression_method,
            self.mod_time,
            self.mod_date,
            self.crc32,
            self.compressed_size,
            self.uncompressed_size,
            len(self.filename),
            len(self.extra),
        )
        return fixed + self.filename + self.extra


@dataclass
class CentralDirectoryHeader:
    """Central directory header structure.

    This header appears in the central directory and contains information
    about an entry, including a pointer to its local file header.
    """

    version_made_by: int
    version: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    disk_num: int
    internal_attrs: int
    external_attrs: int
    local_header_offset: int
    filename: bytes
    extra: bytes = b""
    comment: bytes = b""

    @property
    def date_time(self) -> datetime:
        """Get modification date/time as datetime object."""
        return dos_datetime_to_timestamp(self.mod_date, self.mod_time)

    def to_bytes(self) -> bytes:
        fixed = struct.pack(
            _CENTRAL_HEADER_FORMAT,
            CENTRAL_DIR_HEADER,
            self.version_made_by,
            self.version,
            self.flags,
            self.compression_method,
            self.mod_time,
            self.mod_date,
            self.crc32,
            self.compressed_size,
            self.uncompressed_size,
            len(self.filename),
            len(self.extra),
            len(self.comment),
            self.disk_num,
            self.internal_attrs,
            self.external_attrs,
            self.local_header_offset,
        )
        return fixed + self.filename + self.extra + self.comment


@dataclass
class EndOfCentralDirectory:
    """End of Central Directory record.

    This record marks the end of the central directory and contains
    information needed to locate it.
    """

    disk_num: int
    cd_disk: int
    cd_records_on_disk: int
    cd_records_total: int
    cd_size: int
    cd_offset: int
    comment: bytes = b""

    def to_bytes(self) -> bytes:
        fixed = struct.pack(
            _EOCD_FORMAT,
            END_OF_CENTRAL_DIR,
            self.disk_num,
            self.cd_disk,
            self.cd_records_on_disk,
            self.cd_records_total,
            self.cd_size,
            self.cd_offset,
            len(self.comment),
        )
        return fixed + self.comment


@dataclass
class Zip64EndOfCentralDirectory:
    """ZIP64 End of Central Directory record.

    Written when the entry count, the central directory size or its offset
    does not fit the classic record.
    """

    version_made_by: int
    version_needed: int
    disk_num: int
    cd_disk: int
    cd_records_on_disk: int
    cd_records_total: int
    cd_size: int
    cd_offset: int

    def to_bytes(self) -> bytes:
        # The size field excludes the signature and the size field itself
        return struct.pack(
            _ZIP64_EOCD_FORMAT,
            ZIP64_END_OF_CENTRAL_DIR,
            ZIP64_END_OF_CENTRAL_DIR_SIZE - 12,
            self.version_made_by,
            self.version_needed,
            self.disk_num,
            self.cd_disk,
            self.cd_records_on_disk,
            self.cd_records_total,
            self.cd_size,
            self.cd_offset,
        )


@dataclass
class Zip64Locator:
    """ZIP64 End of Central Directory Locator."""

    disk_num: int
    zip64_eocd_offset: int
    total_disks: int

    def to_bytes(self) -> bytes:
        return struct.pack(
            _ZIP64_LOCATOR_FORMAT,
            ZIP64_END_OF_CENTRAL_DIR_LOCATOR,
            self.disk_num,
            self.zip64_eocd_offset,
            self.total_disks,
        )


@dataclass
class ZipEntry:
    """ZIP entry metadata.

    Combines the central directory header with any ZIP64 extra field so that
    sizes and offsets are always the full 64-bit values.
    """

    name: str
    is_dir: bool
    compressed_size: int
    uncompressed_size: int
    crc32: int
    compression_method: int
    flags: int
    date_time: datetime
    local_header_offset: int


def parse_local_file_header(f: BinaryIO) -> LocalFileHeader:
    """Parse a local file header from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or file is truncated.
    """
    fields = struct.unpack(_LOCAL_HEADER_FORMAT, read_exact(f, struct.calcsize(_LOCAL_HEADER_FORMAT)))
    _check_signature(fields[0], LOCAL_FILE_HEADER, "local file header")
    filename_len, extra_len = fields[9], fields[10]

    return LocalFileHeader(
        version=fields[1],
        flags=fields[2],
        compression_method=fields[3],
        mod_time=fields[4],
        mod_date=fields[5],
        crc32=fields[6],
        compressed_size=fields[7],
        uncompressed_size=fields[8],
        filename=read_exact(f, filename_len),
        extra=read_exact(f, extra_len),
    )


def parse_central_directory_header(f: BinaryIO) -> CentralDirectoryHeader:
    """Parse a central directory header from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or file is truncated.
    """
    fields = struct.unpack(_CENTRAL_HEADER_FORMAT, read_exact(f, struct.calcsize(_CENTRAL_HEADER_FORMAT)))
    _check_signature(fields[0], CENTRAL_DIR_HEADER, "central directory header")
    filename_len, extra_len, comment_len = fields[10], fields[11], fields[12]

    return CentralDirectoryHeader(
        version_made_by=fields[1],
        version=fields[2],
        flags=fields[3],
        compression_method=fields[4],
        mod_time=fields[5],
        mod_date=fields[6],
        crc32=fields[7],
        compressed_size=fields[8],
        uncompressed_size=fields[9],
        disk_num=fields[13],
        internal_attrs=fields[14],
        external_attrs=fields[15],
        local_header_offset=fields[16],
        filename=read_exact(f, filename_len),
        extra=read_exact(f, extra_len),
        comment=read_exact(f, comment_len),
    )


def parse_eocd(f: BinaryIO) -> EndOfCentralDirectory:
    """Parse an End of Central Directory record from the current file position."""
    fields = struct.unpack(_EOCD_FORMAT, read_exact(f, struct.calcsize(_EOCD_FORMAT)))
    _check_signature(fields[0], END_OF_CENTRAL_DIR, "EOCD")

    return EndOfCentralDirectory(
        disk_num=fields[1],
        cd_disk=fields[2],
        cd_records_on_disk=fields[3],
        cd_records_total=fields[4],
        cd_size=fields[5],
        cd_offset=fields[6],
        comment=read_exact(f, fields[7]),
    )


def parse_zip64_eocd(f: BinaryIO) -> Zip64EndOfCentralDirectory:
    """Parse a ZIP64 End of Central Directory record from the current file position."""
    fields = struct.unpack(_ZIP64_EOCD_FORMAT, read_exact(f, struct.calcsize(_ZIP64_EOCD_FORMAT)))
    _check_signature(fields[0], ZIP64_END_OF_CENTRAL_DIR, "ZIP64 EOCD")

    return Zip64EndOfCentralDirectory(
        version_made_by=fields[2],
        version_needed=fields[3],
        disk_num=fields[4],
        cd_disk=fields[5],
        cd_records_on_disk=fields[6],
        cd_records_total=fields[7],
        cd_size=fields[8],
        cd_offset=fields[9],
    )


def parse_zip64_locator(f: BinaryIO) -> Zip64Locator:
    """Parse a ZIP64 locator from the current file position."""
    fields = struct.unpack(_ZIP64_LOCATOR_FORMAT, read_exact(f, struct.calcsize(_ZIP64_LOCATOR_FORMAT)))
    _check_signature(fields[0], ZIP64_END_OF_CENTRAL_DIR_LOCATOR, "ZIP64 locator")

    return Zip64Locator(disk_num=fields[1], zip64_eocd_offset=fields[2], total_disks=fields[3])


def build_zip64_extra_field(*values: int) -> bytes:
    """Build a ZIP64 extra field holding the given 64-bit values in order.

    Callers pass the values whose 32-bit header fields were set to
    0xFFFFFFFF, in the order original size, compressed size, local header
    offset.
    """
    body = b"".join(struct.pack("<Q", value) for value in values)
    return struct.pack("<HH", ZIP64_EXTRA_FIELD_TAG, len(body)) + body


def resolve_zip64_values(
    extra_data: bytes,
    uncompressed_size: int,
    compressed_size: int,
    local_header_offset: int,
) -> tuple[int, int, int]:
    """Replace saturated 32-bit header values with their ZIP64 counterparts.

    A ZIP64 extra field only carries the values whose header field is
    0xFFFFFFFF, in a fixed order. Values that are not saturated are returned
    unchanged.

    Args:
        extra_data: Raw extra field bytes of a central directory header.
        uncompressed_size: Header value for the uncompressed size.
        compressed_size: Header value for the compressed size.
        local_header_offset: Header value for the local header offset.

    Returns:
        Tuple of (uncompressed_size, compressed_size, local_header_offset).

    Raises:
        ZipFormatError: If a saturated value has no ZIP64 counterpart.
    """
    values = [uncompressed_size, compressed_size, local_header_offset]
    if MAX_FILE_SIZE not in values:
        return uncompressed_size, compressed_size, local_header_offset

    pos = 0
    field_data = None
    while pos + 4 <= len(extra_data):
        tag, size = struct.unpack("<HH", extra_data[pos : pos + 4])
        pos += 4
        if pos + size > len(extra_data):
            break
        if tag == ZIP64_EXTRA_FIELD_TAG:
            field_data = extra_data[pos : pos + size]
            break
        pos += size

    if field_data is None:
        raise ZipFormatError("Saturated size or offset without a ZIP64 extra field")

    field_pos = 0
    for index, value in enumerate(values):
        if value != MAX_FILE_SIZE:
            continue
        if field_pos + 8 > len(field_data):
            raise ZipFormatError("ZIP64 extra field is shorter than its header requires")
        values[index] = struct.unpack("<Q", field_data[field_pos : field_pos + 8])[0]
        field_pos += 8

    return values[0], values[1], values[2]


def data_descriptor_bytes(crc32_val: int, compressed_size: int, uncompressed_size: int, is_zip64: bool) -> bytes:
    """Serialize a data descriptor, with signature, for an entry just written."""
    if is_zip64:
        return struct.pack("<IIQQ", DATA_DESCRIPTOR, crc32_val, compressed_size, uncompressed_size)
    return struct.pack("<IIII", DATA_DESCRIPTOR, crc32_val, compressed_size, uncompressed_size)
