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
Compress and decompress orchestration.

This module provides the Archiver interface and ZipArchiver, which validates
its arguments, groups the input tree into chunks, writes one archive per chunk
(in parallel when there are several) and reverses the process.
"""

import abc
import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path

from .chunker import Chunk, StagingArea, walk
from .constants import ARCHIVE_SUFFIX
from .errors import IOFailureError, NotFoundError
from .options import CompressionOptions, DecompressionOptions, IOOptions
from .reassembler import reassemble
from .splitter import part_name
from .validator import check_arguments
from .writer import ZipWriter

logger = logging.getLogger(__name__)


class Archiver(abc.ABC):
    """Packs a directory into archives and unpacks them again."""

    @abc.abstractmethod
    def compress(self, options: CompressionOptions) -> list[Path]:
        """Archive ``options.input`` into ``options.output``; return the archives written."""

    @abc.abstractmethod
    def decompress(self, options: DecompressionOptions) -> list[Path]:
        """Restore the tree held by the archives in ``options.input``; return the archives read."""


def write_chunk(chunk: Chunk, destination: Path, options: IOOptions) -> Path:
    """Write every entry of *chunk* into a new archive at *destination*.

    Entries are written in chunk order. Directories become empty entries whose
    names end with "/"; files are streamed through ``options.buffer_size``.

    Args:
        chunk: Entries to archive.
        destination: Path of the archive to create. Overwritten if it exists.
        options: Options of the running call.

    Returns:
        *destination*.

    Raises:
        IOFailureError: If a source cannot be read or the archive cannot be
            written. The partial archive is left on disk without a central
            directory.
    """
    try:
        with ZipWriter(destination) as z:
            for entry in chunk.entries:
                if entry.is_dir:
                    z.add_directory(entry.arcname)
                else:
                    z.add_file(entry.arcname, entry.path, buffer_size=options.buffer_size)
                logger.debug("Wrote %s to %s", entry.arcname, destination.name)
    except OSError as e:
        raise IOFailureError(f"Unable to write '{destination}': {e}") from e

    logger.info("Wrote %s (%d entries, %d bytes of content)", destination, len(chunk), chunk.size)
    return destination


class ZipArchiver(Archiver):
    """Archiver producing zip files of bounded uncompressed content.

    Example:
        archiver = ZipArchiver()
        archiver.compress(CompressionOptions("photos", "out", max_file_size=100 * 1024 * 1024))
        archiver.decompress(DecompressionOptions("out", "restored"))
    """

    def compress(self, options: CompressionOptions) -> list[Path]:
        check_arguments(options)
        base = options.input.resolve().name

        with StagingArea() as staging:
            chunks = walk(options.input, options.max_file_size, staging)
            if not chunks:
                raise NotFoundError(f"Input '{options.input}' holds nothing to archive")

            if len(chunks) == 1:
                return [write_chunk(chunks[0], options.output / f"{base}{ARCHIVE_SUFFIX}", options)]

            jobs = [
                (chunk, options.output / part_name(f"{base}{ARCHIVE_SUFFIX}", index))
                for index, chunk in enumerate(chunks)
            ]
            return self._write_parallel(jobs, options)

    def _write_parallel(self, jobs: list[tuple[Chunk, Path]], options: CompressionOptions) -> list[Path]:
        """Write each (chunk, destination) pair on a thread pool, failing fast.

        The first error raised by any write is re-raised once every running
        write has returned. Writes not yet started when it happened are
        cancelled or return without writing.
        """
        failed = threading.Event()
        errors: list[Exception] = []
        lock = threading.Lock()

        def run(chunk: Chunk, destination: Path) -> Path | None:
            if failed.is_set():
                logger.debug("Skipping %s after an earlier failure", destination.name)
                return None
            try:
                return write_chunk(chunk, destination, options)
            except Exception as e:
                with lock:
                    errors.append(e)
                failed.set()
                raise

        with ThreadPoolExecutor(max_workers=options.max_workers, thread_name_prefix="zipchunk-writer") as pool:
            futures = [pool.submit(run, chunk, destination) for chunk, destination in jobs]
            _, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            for future in not_done:
                future.cancel()

        if errors:
            raise errors[0]
        return [future.result() for future in futures]

    def decompress(self, options: DecompressionOptions) -> list[Path]:
        check_arguments(options)
        return reassemble(options)
