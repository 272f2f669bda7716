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
Grouping of a directory tree into size-bounded chunks.

The tree is walked in pre-order with children sorted by name, and every entry
is folded into an explicit accumulator. Files larger than the limit are split
into fragments in a staging area and folded in as if they were ordinary files.
The order produced here is the order entries are written into archives and
the order they are expected back when reassembling.
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from .constants import SKIPPED_FILE_NAMES, STAGING_PREFIX
from .errors import IOFailureError
from .splitter import split_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkEntry:
    """A file, directory or fragment on disk, and the root its archive name is relative to."""

    path: Path
    root: Path
    size: int = 0
    is_dir: bool = False

    @property
    def arcname(self) -> str:
        """POSIX path relative to :attr:`root`; directories end with "/"."""
        name = self.path.relative_to(self.root).as_posix()
        return name + "/" if self.is_dir else name


@dataclass
class Chunk:
    """Ordered entries destined for one archive, with their aggregate size."""

    entries: list[ChunkEntry] = field(default_factory=list)
    size: int = 0

    def __len__(self) -> int:
        return len(self.entries)


class StagingArea:
    """Scratch directory holding fragments for the duration of one compress call.

    The directory is created on first access to :attr:`root`, so runs that
    split nothing never touch the temporary directory.
    """

    def __init__(self, parent: Optional[Path] = None):
        self._parent = parent
        self._root: Optional[Path] = None

    @property
    def created(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self._parent))
            logger.debug("Created staging area %s", self._root)
        return self._root

    def cleanup(self) -> None:
        """Delete the staging directory and everything in it."""
        if self._root is None:
            return
        root, self._root = self._root, None
        try:
            shutil.rmtree(root)
        except OSError as e:
            raise IOFailureError(f"Unable to remove staging area '{root}': {e}") from e
        logger.debug("Removed staging area %s", root)

    def __enter__(self) -> "StagingArea":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()


@dataclass
class _Accumulator:
    """State threaded through the step functions of :func:`walk`.

    Mutable: :func:`_append` extends :attr:`current` in place, :func:`_close`
    moves it to :attr:`closed` and opens a new chunk.
    """

    closed: list[Chunk] = field(default_factory=list)
    current: Chunk = field(default_factory=Chunk)


def iter_tree(directory: Path, root: Optional[Path] = None) -> Iterator[ChunkEntry]:
    """Yield every directory and regular file beneath *directory*, in pre-order.

    Entries are made relative to *root*, which defaults to *directory*.
    Children are visited in name order. Housekeeping files left by desktop
    file managers are skipped, symbolic links to directories are not followed
    and other special files are ignored.

    Raises:
        OSError: If a directory cannot be listed or a file cannot be stat'ed.
    """
    root = root or directory
    with os.scandir(directory) as it:
        children = sorted(it, key=lambda child: child.name)

    for child in children:
        path = Path(child.path)
        if child.is_dir(follow_symlinks=False):
            yield ChunkEntry(path, root=root, is_dir=True)
            yield from iter_tree(path, root)
        elif child.is_file():
            if child.name in SKIPPED_FILE_NAMES:
                continue
            yield ChunkEntry(path, root=root, size=child.stat().st_size)
        else:
            logger.debug("Skipping %s: not a regular file or directory", path)


def _append(acc: _Accumulator, entry: ChunkEntry) -> _Accumulator:
    acc.current.entries.append(entry)
    acc.current.size += entry.size
    logger.debug("'%s' added to chunk %d", entry.arcname, len(acc.closed))
    return acc


def _close(acc: _Accumulator) -> _Accumulator:
    if acc.current.entries:
        acc.closed.append(acc.current)
        acc.current = Chunk()
    return acc


def _add_file(acc: _Accumulator, entry: ChunkEntry, limit: int, input_root: Path, staging: StagingArea) -> _Accumulator:
    if limit <= 0:
        return _append(acc, entry)

    if entry.size > limit:
        destination = staging.root / entry.path.parent.relative_to(input_root)
        fragments = split_file(entry.path, entry.size, limit, destination)
        for index, fragment in enumerate(fragments):
            size = limit if index < len(fragments) - 1 else entry.size - limit * index
            acc = _add_file(acc, ChunkEntry(fragment, root=staging.root, size=size), limit, input_root, staging)
        return acc

    if acc.current.size + entry.size > limit:
        acc = _close(acc)
    return _append(acc, entry)


def walk(input_root: Path, limit: int, staging: StagingArea) -> list[Chunk]:
    """Group the tree beneath *input_root* into ordered chunks.

    Args:
        input_root: Directory to walk. The root itself is not an entry.
        limit: Maximum aggregate size of a chunk in bytes; <= 0 puts every
            entry into a single chunk.
        staging: Where fragments of files larger than *limit* are written.

    Returns:
        Chunks in traversal order. Every chunk's size is <= *limit* when a
        limit is set. Empty only if the tree holds nothing but skipped files.

    Raises:
        IOFailureError: If the tree cannot be read or a file cannot be split.
    """
    acc = _Accumulator()
    try:
        for entry in iter_tree(input_root):
            if entry.is_dir:
                acc = _append(acc, entry)
            else:
                acc = _add_file(acc, entry, limit, input_root, staging)
    except OSError as e:
        raise IOFailureError(f"Unable to walk '{input_root}': {e}") from e

    chunks = list(_close(acc).closed)
    logger.info("Grouped %s into %d chunk(s)", input_root, len(chunks))
    return chunks
