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
Shared fixtures for building and comparing directory trees.
"""

import os
import random
from pathlib import Path
from typing import Optional


def write_tree(root: Path, layout: dict[str, Optional[bytes]]) -> Path:
    """Create *layout* beneath *root*; a value of None makes a directory."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in layout.items():
        path = root / name
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
    return root


def read_tree(root: Path) -> dict[str, Optional[bytes]]:
    """Inverse of :func:`write_tree`: every path beneath *root* mapped to its content."""
    tree: dict[str, Optional[bytes]] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        for name in dirnames:
            tree[(base / name).relative_to(root).as_posix()] = None
        for name in filenames:
            tree[(base / name).relative_to(root).as_posix()] = (base / name).read_bytes()
    return tree


def random_bytes(size: int, seed: int = 0) -> bytes:
    return random.Random(seed).randbytes(size)
