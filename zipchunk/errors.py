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
Exception types raised by zipchunk.

Every error carries an :class:`ErrorKind` so callers can branch on the kind of
failure without matching on exception classes or messages. The zip codec has
its own family rooted at :class:`ZipError`; all of them are I/O failures from
the point of view of a compress or decompress call.
"""

import enum


class ErrorKind(enum.Enum):
    """Kinds of failure a compress or decompress call can end with."""

    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    IO_FAILURE = "io_failure"
    UNSUPPORTED_ARCHIVER = "unsupported_archiver"


class ArchiverError(Exception):
    """Base exception class for all zipchunk errors.

    Subclasses pin :attr:`kind`; the underlying cause, when there is one, is
    chained with ``raise ... from``.
    """

    kind: ErrorKind = ErrorKind.IO_FAILURE


class NotFoundError(ArchiverError):
    """Raised when the input path does not exist or the input directory is empty."""

    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(ArchiverError):
    """Raised when an option value or a path has the wrong type or range.

    This exception is raised when:
    - The input or output path exists but is not a directory
    - A buffer size or worker count is not positive
    - A decompression input holds no archives
    - An archive entry would be extracted outside the output directory
    """

    kind = ErrorKind.INVALID_ARGUMENT


class IOFailureError(ArchiverError):
    """Raised when reading or writing fails during walk, split, write or reassembly."""

    kind = ErrorKind.IO_FAILURE


class UnsupportedArchiverError(ArchiverError):
    """Raised when no archiver is registered under the requested name."""

    kind = ErrorKind.UNSUPPORTED_ARCHIVER


class ZipError(IOFailureError):
    """Base exception class for all ZIP container errors."""

    pass


class ZipFormatError(ZipError):
    """Raised when a ZIP file has an invalid format or structure.

    This exception is raised when:
    - Required signatures are missing or incorrect
    - File structure is truncated or corrupted
    - An entry name is empty or contains null bytes
    """

    pass


class ZipUnsupportedFeature(ZipError):
    """Raised when encountering an unsupported ZIP feature.

    This exception is raised when:
    - Compression method is neither stored nor deflate
    - An entry is encrypted
    """

    pass


class ZipCrcError(ZipError):
    """Raised when the CRC-32 of decompressed data does not match the archive."""

    pass


class ZipCompressionError(ZipError):
    """Raised when deflating or inflating entry data fails."""

    pass
