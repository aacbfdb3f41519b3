#!/usr/bin/env python3

"""
Exceptions raised by chunk readers.

Every failure is surfaced once to the caller of the operation that failed and
is never retried internally. Running out of data is not an error: readers
signal it by ending iteration.
"""

from typing import Any


class ChunkReaderError(Exception):
    """Base exception for all chunk reader errors."""

    def __init__(self, detail: str, error_code: str | None = None) -> None:
        """Initialize base reader error.

        Args:
            detail: Error description
            error_code: Specific error code for categorization
        """
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code or self.__class__.__name__

    def __str__(self) -> str:
        return self.detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_code": self.error_code,
            "detail": self.detail,
            "type": self.__class__.__name__,
        }


class SourceOpenError(ChunkReaderError):
    """Raised when a source cannot be opened or its size cannot be queried."""

    def __init__(self, detail: str, path: str | None = None) -> None:
        super().__init__(detail, "SOURCE_OPEN_FAILED")
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path is not None:
            result["path"] = self.path
        return result


class SourceSeekError(ChunkReaderError):
    """Raised when the configured start offset cannot be applied."""

    def __init__(self, detail: str, offset: int) -> None:
        super().__init__(detail, "SOURCE_SEEK_FAILED")
        self.offset = offset

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["offset"] = self.offset
        return result


class SourceReadError(ChunkReaderError):
    """Raised when a bounded read fails. The reader is completed afterwards."""

    def __init__(self, detail: str, bytes_requested: int | None = None) -> None:
        super().__init__(detail, "SOURCE_READ_FAILED")
        self.bytes_requested = bytes_requested

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.bytes_requested is not None:
            result["bytes_requested"] = self.bytes_requested
        return result


class ReadTaskError(ChunkReaderError):
    """Raised when the background read task itself fails.

    This is independent of any I/O error the task may carry: it covers the
    executor refusing the work, the future being cancelled, or the worker
    dying with something other than an I/O error.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(detail, "READ_TASK_FAILED")


class ReaderStateError(ChunkReaderError):
    """Raised when a reader is used in a way its current state does not allow."""

    def __init__(self, detail: str, state: str | None = None) -> None:
        super().__init__(detail, "READER_STATE_INVALID")
        self.state = state

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.state is not None:
            result["state"] = self.state
        return result
