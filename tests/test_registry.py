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

import unittest

from zipchunk.archiver import ZipArchiver
from zipchunk.errors import (
    ArchiverError,
    ErrorKind,
    InvalidArgumentError,
    IOFailureError,
    NotFoundError,
    UnsupportedArchiverError,
    ZipCrcError,
    ZipFormatError,
)
from zipchunk.registry import ArchiverRegistry, default_registry


class TestArchiverRegistry(unittest.TestCase):
    """Test name-keyed archiver lookup."""

    def test_default_registry_has_zip(self):
        registry = default_registry()
        self.assertEqual(registry.names(), ["zip"])
        self.assertIn("zip", registry)
        self.assertIsInstance(registry.create("zip"), ZipArchiver)

    def test_create_returns_fresh_instances(self):
        registry = default_registry()
        self.assertIsNot(registry.create("zip"), registry.create("zip"))

    def test_unknown_name(self):
        with self.assertRaises(UnsupportedArchiverError) as ctx:
            default_registry().create("rar")
        self.assertIs(ctx.exception.kind, ErrorKind.UNSUPPORTED_ARCHIVER)
        self.assertIn("zip", str(ctx.exception))

    def test_register_rejects_duplicates_and_empty_names(self):
        registry = ArchiverRegistry()
        registry.register("custom", ZipArchiver)
        with self.assertRaises(InvalidArgumentError):
            registry.register("custom", ZipArchiver)
        with self.assertRaises(InvalidArgumentError):
            registry.register("", ZipArchiver)
        self.assertEqual(registry.names(), ["custom"])


class TestErrorKinds(unittest.TestCase):
    """Test that every error carries the kind callers branch on."""

    def test_kinds(self):
        cases = [
            (NotFoundError, ErrorKind.NOT_FOUND),
            (InvalidArgumentError, ErrorKind.INVALID_ARGUMENT),
            (IOFailureError, ErrorKind.IO_FAILURE),
            (UnsupportedArchiverError, ErrorKind.UNSUPPORTED_ARCHIVER),
            (ZipFormatError, ErrorKind.IO_FAILURE),
            (ZipCrcError, ErrorKind.IO_FAILURE),
        ]
        for error_type, kind in cases:
            with self.subTest(error_type=error_type.__name__):
                error = error_type("message")
                self.assertIsInstance(error, ArchiverError)
                self.assertIs(error.kind, kind)


if __name__ == "__main__":
    unittest.main()
