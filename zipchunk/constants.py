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
Constants shared by the zip codec and the chunking engine.

The first half mirrors the on-disk ZIP/ZIP64 record layout; the second half
holds the naming and sizing conventions of chunked archives.
"""

# ZIP file signatures (magic numbers)
LOCAL_FILE_HEADER = 0x04034B50  # "PK\x03\x04"
CENTRAL_DIR_HEADER = 0x02014B50  # "PK\x01\x02"
END_OF_CENTRAL_DIR = 0x06054B50  # "PK\x05\x06"
ZIP64_END_OF_CENTRAL_DIR = 0x06064B50  # "PK\x06\x06"
ZIP64_END_OF_CENTRAL_DIR_LOCATOR = 0x07064B50  # "PK\x06\x07"
DATA_DESCRIPTOR = 0x08074B50  # "PK\x07\x08"

# Compression methods
COMP_STORED = 0
COMP_DEFLATE = 8

# General purpose bit flags
FLAG_ENCRYPTED = 0x0001
FLAG_DATA_DESCRIPTOR = 0x0008
FLAG_UTF8 = 0x0800

# Version needed to extract / made by
VERSION_DEFAULT = 20
VERSION_ZIP64 = 45
VERSION_MADE_BY_DEFAULT = (3 << 8) | 63  # host Unix, APPNOTE 6.3

# Classic ZIP limits (32-bit)
MAX_FILE_SIZE = 0xFFFFFFFF
MAX_ENTRIES = 0xFFFF
MAX_CD_SIZE = 0xFFFFFFFF
MAX_CD_OFFSET = 0xFFFFFFFF

ZIP64_EXTRA_FIELD_TAG = 0x0001

# Fixed record sizes
END_OF_CENTRAL_DIR_SIZE = 22
ZIP64_END_OF_CENTRAL_DIR_SIZE = 56
ZIP64_LOCATOR_SIZE = 20

# Unix mode bits stored in the upper half of the external attributes
EXTERNAL_ATTR_FILE = 0o100644 << 16
EXTERNAL_ATTR_DIR = (0o040755 << 16) | 0x10  # 0x10 is the MS-DOS directory bit

# Headroom applied to an entry's source size when deciding up front whether it
# needs ZIP64 records; deflate can expand incompressible input slightly.
ZIP64_SIZE_HEADROOM = 1.05

# Chunked archive conventions
ARCHIVE_SUFFIX = ".zip"
PART_INFIX = ".part."
DEFAULT_BUFFER_SIZE = 1024
SPLIT_COPY_BUFFER_SIZE = 64 * 1024
STAGING_PREFIX = "compress-"

# Housekeeping files written by desktop file managers
SKIPPED_FILE_NAMES = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})
