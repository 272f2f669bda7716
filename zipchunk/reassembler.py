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
Reconstruction of a directory tree from one or more chunked archives.

Fragments of a split file are spread over consecutive archives, one or more
per archive, in index order. Processing archives by ascending numeric part
index, and each archive's entries in stored order, therefore appends every
fragment in the order it was cut. This module never relies on directory
listing order.
"""

import logging
from pathlib import Path

from .constants import ARCHIVE_SUFFIX
from .errors import InvalidArgumentError, IOFailureError
from .options import DecompressionOptions
from .reader import ZipReader
from .splitter import part_index, unpart_name
from .utils import safe_extract_path

logger = logging.getLogger(__name__)


def archive_sort_key(path: Path) -> tuple[int, str]:
    """Sort key placing ``x.zip`` first, then ``x.part.0.zip``, ``x.part.1.zip``, ...

    Indices are compared as numbers, so ``part.10`` follows ``part.9``.
    """
    stem = path.name[: -len(ARCHIVE_SUFFIX)] if path.name.endswith(ARCHIVE_SUFFIX) else path.name
    index = part_index(stem)
    return (-1 if index is None else index, path.name)


def list_archives(input_dir: Path) -> list[Path]:
    """Return the archives in *input_dir* in reassembly order.

    Raises:
        InvalidArgumentError: If the directory holds no archive.
        IOFailureError: If the directory cannot be listed.
    """
    try:
        archives = [
            path for path in input_dir.iterdir()
            if path.name.endswith(ARCHIVE_SUFFIX) and path.is_file()
        ]
    except OSError as e:
        raise IOFailureError(f"Unable to list '{input_dir}': {e}") from e

    if not archives:
        raise InvalidArgumentError(f"Input '{input_dir}' contains no '{ARCHIVE_SUFFIX}' archives")
    return sorted(archives, key=archive_sort_key)


def reassemble_archive(archive: Path, output_dir: Path, buffer_size: int) -> int:
    """Extract one archive into *output_dir*, appending file entries.

    Directory entries are created. File entries have any ``.part.<N>`` infix
    removed from their name and their bytes appended to the destination,
    which is created if needed.

    Returns:
        Number of bytes appended.

    Raises:
        InvalidArgumentError: If an entry name would escape *output_dir*.
        IOFailureError: If the archive is unreadable or a destination cannot
            be written. Bytes appended before the failure stay on disk.
    """
    appended = 0
    try:
        with ZipReader(archive) as z:
            for entry in z.entries():
                target = safe_extract_path(output_dir, entry.name)
                if entry.is_dir:
                    target.mkdir(parents=True, exist_ok=True)
                    logger.debug("Created directory %s", target)
                    continue

                target = target.with_name(unpart_name(target.name))
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, "ab") as out:
                    for block in z.iter_bytes(entry, buffer_size=buffer_size):
                        out.write(block)
                        appended += len(block)
                logger.debug("Appended %s (%d bytes) to %s", entry.name, entry.uncompressed_size, target)
    except OSError as e:
        raise IOFailureError(f"Unable to extract '{archive}': {e}") from e

    logger.info("Extracted %s", archive)
    return appended


def reassemble(options: DecompressionOptions) -> list[Path]:
    """Rebuild the original tree from every archive in ``options.input``.

    Archives are processed one at a time; this must stay sequential because
    appends to a split file have to follow fragment order.

    Returns:
        The archives processed, in processing order.
    """
    archives = list_archives(options.input)
    for archive in archives:
        reassemble_archive(archive, options.output, options.buffer_size)
    return archives
