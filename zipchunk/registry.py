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
Name-keyed lookup of archiver implementations.
"""

from typing import Callable

from .archiver import Archiver, ZipArchiver
from .errors import InvalidArgumentError, UnsupportedArchiverError

DEFAULT_ARCHIVER = "zip"


class ArchiverRegistry:
    """Maps stable archiver names to factories."""

    def __init__(self):
        self._factories: dict[str, Callable[[], Archiver]] = {}

    def register(self, name: str, factory: Callable[[], Archiver]) -> None:
        """Register *factory* under *name*.

        Raises:
            InvalidArgumentError: If *name* is empty or already registered.
        """
        if not name:
            raise InvalidArgumentError("Archiver name must not be empty")
        if name in self._factories:
            raise InvalidArgumentError(f"Archiver '{name}' is already registered")
        self._factories[name] = factory

    def create(self, name: str) -> Archiver:
        """Instantiate the archiver registered under *name*.

        Raises:
            UnsupportedArchiverError: If no archiver has that name.
        """
        factory = self._factories.get(name)
        if factory is None:
            known = ", ".join(self.names()) or "none"
            raise UnsupportedArchiverError(f"Unsupported archiver '{name}' (available: {known})")
        return factory()

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories


def default_registry() -> ArchiverRegistry:
    """Return a registry holding the built-in archivers."""
    registry = ArchiverRegistry()
    registry.register(DEFAULT_ARCHIVER, ZipArchiver)
    return registry
