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
zipchunk - Size-bounded chunked ZIP archiving in pure Python.

This library packs a directory tree into one or more zip archives whose
uncompressed content stays below a configured size, splitting oversized files
across archives, and rebuilds the tree byte for byte from those archives. It
uses only Python standard library modules.
"""

from .archiver import Archiver, ZipArchiver, write_chunk
from .errors import (
    ArchiverError,
    ErrorKind,
    InvalidArgumentError,
    IOFailureError,
    NotFoundError,
    UnsupportedArchiverError,
)
from .options import CompressionOptions, DecompressionOptions
from .reader import ZipReader
from .registry import ArchiverRegistry, default_registry
from .writer import ZipWriter

__all__ = [
    "Archiver",
    "ArchiverError",
    "ArchiverRegistry",
    "CompressionOptions",
    "DecompressionOptions",
    "ErrorKind",
    "InvalidArgumentError",
    "IOFailureError",
    "NotFoundError",
    "UnsupportedArchiverError",
    "ZipArchiver",
    "ZipReader",
    "ZipWriter",
    "default_registry",
    "write_chunk",
]

__version__ = "0.1.0"
