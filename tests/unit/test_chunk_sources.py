#!/usr/bin/env python3
"""
Tests for source adapters and source construction.
"""

import io
from collections.abc import Callable
from pathlib import Path

import pytest

from get_chunk.exceptions import SourceOpenError
from get_chunk.sources import BufferedFileSource, FileSource, MemorySource, Source, open_source
from tests.fixtures.readers import HELLO


class TrickleHandle(io.RawIOBase):
    """Raw handle that returns at most two bytes per read."""

    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray) -> int:  # type: ignore[override]
        data = self._inner.read(min(2, len(buffer)))
        buffer[: len(data)] = data
        return len(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._inner.seek(offset, whence)

    def tell(self) -> int:
        return self._inner.tell()


class TestMemorySource:
    def test_reads_in_order(self) -> None:
        source = MemorySource(HELLO)

        assert source.size() == 13
        assert source.read_up_to(5) == b"Hello"
        assert source.read_up_to(100) == b", world!"
        assert source.read_up_to(4) == b""

    def test_seek_is_absolute(self) -> None:
        source = MemorySource(HELLO)
        source.read_up_to(5)
        source.seek(7)

        assert source.read_up_to(5) == b"world"

    def test_seek_past_end_reads_nothing(self) -> None:
        source = MemorySource(HELLO)
        source.seek(100)

        assert source.read_up_to(4) == b""

    def test_negative_seek_fails(self) -> None:
        with pytest.raises(OSError, match="Negative"):
            MemorySource(HELLO).seek(-1)

    def test_copy_of_detaches_from_buffer(self) -> None:
        buffer = bytearray(HELLO)
        source = MemorySource.copy_of(buffer)
        buffer[:5] = b"HELLO"

        assert source.read_up_to(5) == b"Hello"

    def test_read_after_close_fails(self) -> None:
        source = MemorySource(HELLO)
        source.close()

        with pytest.raises(ValueError):
            source.read_up_to(1)


class TestFileSource:
    def test_size_from_descriptor(self, hello_file: Path) -> None:
        with open(hello_file, "rb", buffering=0) as handle:
            assert FileSource(handle).size() == 13

    def test_size_by_seeking_without_descriptor(self) -> None:
        handle = io.BytesIO(HELLO)
        handle.seek(3)
        source = FileSource(handle)

        assert source.size() == 13
        assert handle.tell() == 3

    def test_explicit_size_skips_probe(self) -> None:
        assert FileSource(io.BytesIO(HELLO), size=99).size() == 99

    def test_short_reads_are_combined(self) -> None:
        source = FileSource(TrickleHandle(HELLO))  # type: ignore[arg-type]

        assert source.read_up_to(7) == b"Hello, "
        assert source.read_up_to(100) == b"world!"
        assert source.read_up_to(1) == b""

    def test_closed_handle_cannot_be_sized(self) -> None:
        handle = io.BytesIO(HELLO)
        handle.close()

        with pytest.raises(SourceOpenError, match="Cannot determine size"):
            FileSource(handle)

    def test_close_closes_handle(self, hello_file: Path) -> None:
        handle = open(hello_file, "rb")
        FileSource(handle).close()

        assert handle.closed


class TestBufferedFileSource:
    def test_from_path(self, hello_file: Path) -> None:
        with BufferedFileSource.from_path(hello_file) as source:
            assert source.size() == 13
            assert source.read_up_to(13) == HELLO

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(SourceOpenError) as exc_info:
            BufferedFileSource.from_path(tmp_path / "missing.bin")

        assert exc_info.value.path == str(tmp_path / "missing.bin")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_wraps_raw_handle(self, hello_file: Path) -> None:
        raw = open(hello_file, "rb", buffering=0)
        source = BufferedFileSource(raw)

        assert isinstance(source.handle, io.BufferedReader)
        assert source.read_up_to(5) == b"Hello"
        source.close()


class TestOpenSource:
    def test_source_passes_through(self) -> None:
        source = MemorySource(HELLO)

        assert open_source(source) is source

    @pytest.mark.parametrize("as_path", [str, Path])
    def test_path_opens_buffered_file(self, hello_file: Path, as_path: Callable[[Path], object]) -> None:
        source = open_source(as_path(hello_file))  # type: ignore[arg-type]

        assert isinstance(source, BufferedFileSource)
        source.close()

    def test_bytes_by_value(self) -> None:
        source = open_source(HELLO)

        assert isinstance(source, MemorySource)
        assert source.read_up_to(13) == HELLO

    @pytest.mark.parametrize("buffer", [bytearray(HELLO), memoryview(HELLO)])
    def test_borrowed_buffers_are_copied(self, buffer: bytearray | memoryview) -> None:
        source = open_source(buffer)

        assert isinstance(source, MemorySource)
        assert source.read_up_to(13) == HELLO

    def test_slice_of_bytes(self) -> None:
        assert open_source(HELLO[7:12]).read_up_to(100) == b"world"

    def test_buffered_handle(self, hello_file: Path) -> None:
        with open(hello_file, "rb") as handle:
            assert isinstance(open_source(handle), BufferedFileSource)

    def test_raw_handle(self, hello_file: Path) -> None:
        with open(hello_file, "rb", buffering=0) as handle:
            source = open_source(handle)

            assert type(source) is FileSource

    def test_text_handle_rejected(self, hello_file: Path) -> None:
        with open(hello_file) as handle, pytest.raises(TypeError, match="binary mode"):
            open_source(handle)  # type: ignore[arg-type]

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(TypeError, match="Cannot read chunks from int"):
            open_source(42)  # type: ignore[arg-type]

    def test_sources_are_context_managers(self) -> None:
        with open_source(HELLO) as source:
            assert isinstance(source, Source)
