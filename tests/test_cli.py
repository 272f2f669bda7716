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

import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from zipchunk import __version__
from zipchunk.__main__ import _parse_size, main
from zipchunk.errors import IOFailureError

from tests.helpers import random_bytes, read_tree, write_tree


class TestParseSize(unittest.TestCase):
    """Test parsing of human-readable sizes."""

    def test_valid_sizes(self):
        cases = [
            ("12", 12),
            ("0", 0),
            ("1kb", 1024),
            ("64MB", 64 * 1024 ** 2),
            (" 5 GB ", 5 * 1024 ** 3),
            ("2TB", 2 * 1024 ** 4),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                self.assertEqual(_parse_size(text), expected)

    def test_invalid_sizes(self):
        for text in ("abc", "MB", "1.5MB", "10PB"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    _parse_size(text)


class TestCLI(unittest.TestCase):
    """Test the command-line front end."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            try:
                main([str(arg) for arg in argv])
            except SystemExit as e:
                code = e.code
        return code, stdout.getvalue(), stderr.getvalue()

    def test_compress_then_decompress(self):
        source = write_tree(self.root / "photos", {
            "a.jpg": random_bytes(3000, seed=1),
            "album/b.jpg": random_bytes(1500, seed=2),
        })
        out = self.root / "out"
        code, stdout, _ = self.run_cli("compress", source, out, "--max-file-size", "1KB", "--buffer-size", "512")
        self.assertEqual(code, 0)
        self.assertIn("photos.part.0.zip", stdout)
        self.assertTrue((out / "photos.part.4.zip").exists())

        restored = self.root / "restored"
        code, stdout, _ = self.run_cli("decompress", out, restored)
        self.assertEqual(code, 0)
        self.assertIn("Restored", stdout)
        self.assertEqual(read_tree(restored), read_tree(source))

    def test_missing_input_exits_2(self):
        code, _, stderr = self.run_cli("compress", self.root / "missing", self.root / "out")
        self.assertEqual(code, 2)
        self.assertTrue(stderr.startswith("zipchunk: Input"))

    def test_bad_size_exits_2(self):
        source = write_tree(self.root / "data", {"a.txt": b"a"})
        code, _, stderr = self.run_cli("compress", source, self.root / "out", "--max-file-size", "lots")
        self.assertEqual(code, 2)
        self.assertIn("Invalid size format", stderr)

    def test_zero_buffer_exits_2(self):
        source = write_tree(self.root / "data", {"a.txt": b"a"})
        code, _, stderr = self.run_cli("compress", source, self.root / "out", "--buffer-size", "0")
        self.assertEqual(code, 2)
        self.assertIn("Buffer size", stderr)

    def test_unknown_archiver_exits_2(self):
        source = write_tree(self.root / "data", {"a.txt": b"a"})
        code, _, stderr = self.run_cli("compress", source, self.root / "out", "--archiver", "rar")
        self.assertEqual(code, 2)
        self.assertIn("Available archivers: zip", stderr)

    def test_io_failure_exits_1(self):
        source = write_tree(self.root / "data", {"a.txt": b"a"})
        with mock.patch("zipchunk.archiver.write_chunk", side_effect=IOFailureError("disk full")):
            code, _, stderr = self.run_cli("compress", source, self.root / "out")
        self.assertEqual(code, 1)
        self.assertIn("zipchunk: disk full", stderr)

    def test_interrupt_exits_130(self):
        source = write_tree(self.root / "data", {"a.txt": b"a"})
        with mock.patch("zipchunk.archiver.ZipArchiver.compress", side_effect=KeyboardInterrupt):
            code, _, stderr = self.run_cli("compress", source, self.root / "out")
        self.assertEqual(code, 130)
        self.assertIn("Interrupted", stderr)

    def test_version(self):
        code, stdout, _ = self.run_cli("--version")
        self.assertEqual(code, 0)
        self.assertIn(__version__, stdout)

    def test_banner_without_arguments(self):
        code, stdout, _ = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn("Quick examples", stdout)


if __name__ == "__main__":
    unittest.main()
