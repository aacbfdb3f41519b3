#!/usr/bin/env python3
"""
Byte sources readable in bounded increments.

A source is a seekable, readable byte container owned by exactly one reader.
File handles and in-memory buffers are adapted to the same small interface so
both readers behave identically whatever backs them.
"""

import io
import os
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Union

from .exceptions import SourceOpenError


class Source(ABC):
    """Capability interface every backing store implements."""

    @abstractmethod
    def size(self) -> int:
        """Total size of the source in bytes."""

    @abstractmethod
    def seek(self, offset: int) -> None:
        """Move to an absolute byte offset."""

    @abstractmethod
    def read_up_to(self, max_len: int) -> bytes:
        """Read at most max_len bytes; fewer only at the end of the data."""

    def close(self) -> None:  # noqa: B027
        """Release the backing store. No-op unless overridden."""

    def __enter__(self) -> "Source":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class FileSource(Source):
    """
    Source over an owned binary file handle.

    Unbuffered handles may return short reads, so read_up_to keeps reading
    until it has max_len bytes or the handle reports end of file.
    """

    def __init__(self, handle: BinaryIO, size: int | None = None):
        """
        Args:
            handle: Binary handle supporting read and seek
            size: Known total size; probed from the handle when omitted

        Raises:
            SourceOpenError: If the size cannot be determined
        """
        self._handle = handle
        self._size = size if size is not None else self._probe_size(handle)

    @staticmethod
    def _probe_size(handle: BinaryIO) -> int:
        name = getattr(handle, "name", None)
        try:
            try:
                return os.fstat(handle.fileno()).st_size
            except (AttributeError, io.UnsupportedOperation):
                # No descriptor behind the handle, measure by seeking
                position = handle.tell()
                end = handle.seek(0, io.SEEK_END)
                handle.seek(position)
                return end
        except (OSError, ValueError) as e:
            raise SourceOpenError(f"Cannot determine size of source: {e}", path=str(name) if name else None) from e

    @property
    def handle(self) -> BinaryIO:
        return self._handle

    def size(self) -> int:
        return self._size

    def seek(self, offset: int) -> None:
        self._handle.seek(offset)

    def read_up_to(self, max_len: int) -> bytes:
        parts: list[bytes] = []
        remaining = max_len
        while remaining > 0:
            data = self._handle.read(remaining)
            if not data:
                break
            parts.append(data)
            remaining -= len(data)
        return b"".join(parts)

    def close(self) -> None:
        self._handle.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={getattr(self._handle, 'name', None)!r}, size={self._size})"


class BufferedFileSource(FileSource):
    """Source over a buffered file handle, wrapping raw handles when needed."""

    def __init__(self, handle: BinaryIO, size: int | None = None, buffer_size: int = io.DEFAULT_BUFFER_SIZE):
        if isinstance(handle, io.RawIOBase):
            handle = io.BufferedReader(handle, buffer_size=buffer_size)  # type: ignore[assignment]
        super().__init__(handle, size)

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "BufferedFileSource":
        """
        Open a file for buffered binary reading.

        Raises:
            SourceOpenError: If the file cannot be opened or sized
        """
        try:
            handle = open(path, "rb")  # noqa: SIM115
        except OSError as e:
            raise SourceOpenError(f"Cannot open {os.fspath(path)}: {e}", path=os.fspath(path)) from e

        try:
            return cls(handle)
        except SourceOpenError:
            handle.close()
            raise


class MemorySource(Source):
    """Source over an in-memory buffer owned by value."""

    def __init__(self, data: bytes):
        if not isinstance(data, bytes):
            data = bytes(data)
        self._data = data
        self._position = 0
        self._closed = False

    @classmethod
    def copy_of(cls, buffer: bytes | bytearray | memoryview) -> "MemorySource":
        """Copy a borrowed buffer so later changes to it are not observed."""
        return cls(bytes(buffer))

    def size(self) -> int:
        return len(self._data)

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise OSError(f"Negative seek position {offset}")
        self._position = offset

    def read_up_to(self, max_len: int) -> bytes:
        if self._closed:
            raise ValueError("read from closed memory source")
        start = min(self._position, len(self._data))
        end = min(start + max(max_len, 0), len(self._data))
        self._position = end
        return self._data[start:end]

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        return f"MemorySource(size={len(self._data)}, position={self._position})"


SourceLike = Union[Source, str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]


def open_source(obj: SourceLike) -> Source:
    """
    Adapt an object to a Source.

    Paths are opened as buffered files, bytes are used by value, bytearray and
    memoryview buffers are copied, and binary file handles are wrapped.

    Raises:
        SourceOpenError: If a path cannot be opened or a handle cannot be sized
        TypeError: If the object cannot be adapted
    """
    if isinstance(obj, Source):
        return obj
    if isinstance(obj, str | os.PathLike):
        return BufferedFileSource.from_path(obj)
    if isinstance(obj, bytes):
        return MemorySource(obj)
    if isinstance(obj, bytearray | memoryview):
        return MemorySource.copy_of(obj)
    if isinstance(obj, io.BufferedReader | io.BufferedRandom):
        return BufferedFileSource(obj)
    if isinstance(obj, io.TextIOBase):
        raise TypeError("Text handles are not supported, open the file in binary mode")
    if hasattr(obj, "read") and hasattr(obj, "seek"):
        return FileSource(obj)
    raise TypeError(f"Cannot read chunks from {type(obj).__name__}")


__all__ = [
    "BufferedFileSource",
    "FileSource",
    "MemorySource",
    "Source",
    "SourceLike",
    "open_source",
]
