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
Immutable options for one compress or decompress call.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_BUFFER_SIZE
from .errors import InvalidArgumentError


@dataclass(frozen=True)
class IOOptions:
    """Options shared by compression and decompression.

    Attributes:
        input: Directory to read from.
        output: Directory to write to; created if it does not exist.
        buffer_size: Bytes held in memory per stream copy. Must be positive.
    """

    input: Path
    output: Path
    buffer_size: int = DEFAULT_BUFFER_SIZE

    def __post_init__(self) -> None:
        # Accept str and other path-likes; the dataclass is frozen
        object.__setattr__(self, "input", Path(os.fspath(self.input)))
        object.__setattr__(self, "output", Path(os.fspath(self.output)))
        if self.buffer_size <= 0:
            raise InvalidArgumentError(f"Buffer size must not be <= 0, got {self.buffer_size}")


@dataclass(frozen=True)
class CompressionOptions(IOOptions):
    """Options for compression.

    Attributes:
        max_file_size: Upper bound in bytes on the uncompressed content of
            each archive. A value <= 0 disables chunking.
        max_workers: Number of threads writing archives in parallel, or None
            to let the executor pick.
    """

    max_file_size: int = 0
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.max_workers is not None and self.max_workers <= 0:
            raise InvalidArgumentError(f"Worker count must be positive, got {self.max_workers}")


@dataclass(frozen=True)
class DecompressionOptions(IOOptions):
    """Options for decompression."""

    pass
