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

import io
import tempfile
import unittest
import zipfile
from datetime import datetime
from pathlib import Path

from zipchunk.errors import ErrorKind, InvalidArgumentError, ZipCrcError, ZipFormatError, ZipUnsupportedFeature
from zipchunk.reader import ZipReader
from zipchunk.structures import build_zip64_extra_field, resolve_zip64_values
from zipchunk.utils import dos_datetime_to_timestamp, safe_extract_path, timestamp_to_dos_datetime
from zipchunk.writer import ZipWriter

from tests.helpers import random_bytes


class TestZipWriter(unittest.TestCase):
    """Test archives produced by the streaming writer."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_readable_by_standard_library(self):
        source = self.root / "report.bin"
        source.write_bytes(random_bytes(50000))
        archive = self.root / "out.zip"

        with ZipWriter(archive) as z:
            z.add_directory("docs")
            z.add_file("docs/report.bin", source, buffer_size=1024)
            z.add_bytes("docs/empty.txt", b"")
            z.add_bytes("notes/ünïcode.txt", "héllo".encode("utf-8"))
            self.assertEqual(z.entry_count, 4)

        with zipfile.ZipFile(archive) as zf:
            self.assertIsNone(zf.testzip())
            self.assertEqual(
                zf.namelist(),
                ["docs/", "docs/report.bin", "docs/empty.txt", "notes/ünïcode.txt"],
            )
            self.assertTrue(zf.getinfo("docs/").is_dir())
            self.assertEqual(zf.read("docs/report.bin"), source.read_bytes())
            self.assertEqual(zf.read("docs/empty.txt"), b"")
            self.assertEqual(zf.read("notes/ünïcode.txt").decode("utf-8"), "héllo")

    def test_writes_to_unseekable_stream(self):
        class Sink(io.RawIOBase):
            def __init__(self):
                self.data = bytearray()

            def writable(self):
                return True

            def write(self, b):
                self.data.extend(b)
                return len(b)

        sink = Sink()
        with ZipWriter(sink) as z:
            z.add_bytes("a.txt", b"a" * 1000)
        with zipfile.ZipFile(io.BytesIO(bytes(sink.data))) as zf:
            self.assertEqual(zf.read("a.txt"), b"a" * 1000)

    def test_rejects_invalid_names_and_buffers(self):
        with ZipWriter(io.BytesIO()) as z:
            with self.assertRaises(ZipFormatError):
                z.add_bytes("", b"x")
            with self.assertRaises(ZipFormatError):
                z.add_bytes("dir/", b"x")
            with self.assertRaises(ZipFormatError):
                z.add_bytes("bad\udcff.txt", b"x")
            with self.assertRaises(InvalidArgumentError):
                z.add_stream("a.txt", io.BytesIO(b"x"), buffer_size=0)

    def test_aborted_archive_has_no_central_directory(self):
        archive = self.root / "partial.zip"
        with self.assertRaises(RuntimeError):
            with ZipWriter(archive) as z:
                z.add_bytes("a.txt", b"a" * 100)
                raise RuntimeError("boom")
        self.assertTrue(archive.exists())
        self.assertFalse(zipfile.is_zipfile(archive))


class TestZipReader(unittest.TestCase):
    """Test reading archives and streaming entry data."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_round_trip_through_small_buffers(self):
        content = random_bytes(20000, seed=7) + b"z" * 20000
        buffer = io.BytesIO()
        with ZipWriter(buffer) as z:
            z.add_directory("dir/")
            z.add_bytes("dir/data.bin", content)

        with ZipReader(io.BytesIO(buffer.getvalue())) as z:
            self.assertEqual(z.list(), ["dir/", "dir/data.bin"])
            entry = z.get_info("dir/data.bin")
            blocks = list(z.iter_bytes(entry, buffer_size=100))
            self.assertTrue(all(len(block) <= 100 for block in blocks))
            self.assertEqual(b"".join(blocks), content)
            self.assertEqual(list(z.iter_bytes(z.get_info("dir/"))), [])

    def test_reads_standard_library_archives(self):
        archive = self.root / "std.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr(zipfile.ZipInfo("stored.txt"), b"plain text")
            zf.writestr("deflated.txt", b"d" * 5000, compress_type=zipfile.ZIP_DEFLATED)
            zf.writestr("folder/", b"")

        with ZipReader(archive) as z:
            self.assertEqual(z.list(), ["stored.txt", "deflated.txt", "folder/"])
            self.assertEqual(z.read("stored.txt"), b"plain text")
            self.assertEqual(z.read("deflated.txt"), b"d" * 5000)
            self.assertTrue(z.get_info("folder/").is_dir)
            with self.assertRaises(KeyError):
                z.read("missing.txt")

    def test_crc_mismatch(self):
        archive = self.root / "corrupt.zip"
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("a.txt", b"hello world")

        data = bytearray(archive.read_bytes())
        # Stored data follows the 30-byte local header and the name
        data[30 + len("a.txt")] ^= 0xFF
        archive.write_bytes(bytes(data))

        with ZipReader(archive) as z:
            with self.assertRaises(ZipCrcError) as ctx:
                z.read("a.txt")
        self.assertIs(ctx.exception.kind, ErrorKind.IO_FAILURE)

    def test_encrypted_entry_is_unsupported(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("secret.txt", b"not really encrypted")

        # Set the encryption bit in the central directory header's flags
        data = bytearray(buffer.getvalue())
        data[data.rfind(b"PK\x01\x02") + 8] |= 0x1

        with ZipReader(io.BytesIO(bytes(data))) as z:
            with self.assertRaises(ZipUnsupportedFeature):
                z.read("secret.txt")

    def test_not_a_zip(self):
        path = self.root / "plain.zip"
        path.write_bytes(b"this is not an archive")
        with self.assertRaises(ZipFormatError):
            ZipReader(path)


class TestCodecHelpers(unittest.TestCase):
    """Test ZIP64 extra fields, DOS timestamps and extraction paths."""

    def test_zip64_extra_field_resolves_saturated_values(self):
        extra = build_zip64_extra_field(5_000_000_000, 4_900_000_000)
        self.assertEqual(
            resolve_zip64_values(extra, 0xFFFFFFFF, 0xFFFFFFFF, 123),
            (5_000_000_000, 4_900_000_000, 123),
        )
        self.assertEqual(resolve_zip64_values(b"", 10, 8, 0), (10, 8, 0))

    def test_dos_datetime(self):
        moment = datetime(2024, 2, 29, 13, 45, 58)
        self.assertEqual(dos_datetime_to_timestamp(*timestamp_to_dos_datetime(moment)), moment)
        self.assertEqual(dos_datetime_to_timestamp(0, 0), datetime(1980, 1, 1))
        early = timestamp_to_dos_datetime(datetime(1970, 1, 1))
        self.assertEqual(dos_datetime_to_timestamp(*early).year, 1980)

    def test_safe_extract_path(self):
        root = Path("/restore")
        self.assertEqual(safe_extract_path(root, "a/b.txt"), root / "a" / "b.txt")
        self.assertEqual(safe_extract_path(root, "./a//b/"), root / "a" / "b")
        for name in ("/etc/passwd", "../escape.txt", "a/../../escape.txt", "C:/windows.txt", "", "./"):
            with self.subTest(name=name):
                with self.assertRaises(InvalidArgumentError):
                    safe_extract_path(root, name)


if __name__ == "__main__":
    unittest.main()
