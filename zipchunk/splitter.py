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
Splitting of oversized files into ordered fragments, and fragment naming.

A fragment of ``report.pdf`` is named ``report.part.<N>.pdf``; a fragment of
``README`` is named ``README.part.<N>``. Fragment indices start at 0 and are
contiguous, and the fragments concatenated in index order are the original
file.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .constants import PART_INFIX, SPLIT_COPY_BUFFER_SIZE
from .errors import InvalidArgumentError, IOFailureError
from .utils import copy_stream

logger = logging.getLogger(__name__)

_PART_NAME = re.compile(r"^(?P<base>.*)\.part\.(?P<index>\d+)(?P<ext>\.[^.]*)?$")


def part_name(name: str, index: int) -> str:
    """Insert ``.part.<index>`` before the final extension of *name*.

    >>> part_name("data.zip", 3)
    'data.part.3.zip'
    >>> part_name("README", 0)
    'README.part.0'
    """
    dot = name.rfind(".")
    if dot == -1:
        return f"{name}{PART_INFIX}{index}"
    return f"{name[:dot]}{PART_INFIX}{index}{name[dot:]}"


def unpart_name(name: str) -> str:
    """Strip a ``.part.<N>`` infix from a file name, if it has one.

    >>> unpart_name("report.part.12.pdf")
    'report.pdf'
    >>> unpart_name("notes.txt")
    'notes.txt'
    """
    match = _PART_NAME.match(name)
    if match is None:
        return name
    return match.group("base") + (match.group("ext") or "")


def part_index(name: str) -> Optional[int]:
    """Return the numeric ``.part.<N>`` index of *name*, or None if it has none."""
    match = _PART_NAME.match(name)
    if match is None:
        return None
    return int(match.group("index"))


def split_file(path: Path, size: int, limit: int, destination: Path) -> list[Path]:
    """Cut *path* into fragments of *limit* bytes, the remainder last.

    The source is read once, sequentially, through a fixed copy buffer.
    Fragments are written into *destination*, which is created if needed.

    Args:
        path: File to split.
        size: Size of the file in bytes, as observed by the caller.
        limit: Size of every fragment but the last.
        destination: Directory receiving the fragments.

    Returns:
        Fragment paths in index order; ``ceil(size / limit)`` of them.

    Raises:
        InvalidArgumentError: If ``size > limit > 0`` does not hold.
        IOFailureError: If reading or writing fails, or the file is shorter
            or longer than *size*.
    """
    if not size > limit > 0:
        raise InvalidArgumentError(f"Cannot split {size} bytes by a limit of {limit}")

    full_parts, remainder = divmod(size, limit)
    lengths = [limit] * full_parts + ([remainder] if remainder else [])
    fragments: list[Path] = []

    try:
        destination.mkdir(parents=True, exist_ok=True)
        with open(path, "rb") as source:
            for index, length in enumerate(lengths):
                fragment = destination / part_name(path.name, index)
                with open(fragment, "wb") as out:
                    copied = copy_stream(source, out, SPLIT_COPY_BUFFER_SIZE, length)
                fragments.append(fragment)
                if copied != length:
                    raise IOFailureError(
                        f"'{path}' ended after {index * limit + copied} of {size} bytes while splitting"
                    )
            if source.read(1):
                raise IOFailureError(f"'{path}' grew beyond {size} bytes while splitting")
    except OSError as e:
        raise IOFailureError(f"Unable to split '{path}': {e}") from e

    logger.debug("Split %s (%d bytes) into %d fragments", path, size, len(fragments))
    return fragments
