#!/usr/bin/env python3
"""
Asynchronous chunk stream.

ChunkStream yields the same chunks as ChunkIterator, but every physical read
runs on an executor so the event loop is never blocked. Exclusivity of the
source is guaranteed by ownership rather than by a lock: while a read is in
flight the stream holds nothing but the future, and the ReadState travels to
the worker and back with the result.

Example:
    async with await ChunkStream.open("big.bin") as stream:
        async for data in stream.set_mode(Bytes(1 << 20)):
            await consume(data)
"""

import asyncio
import io
import logging
import os
from collections.abc import AsyncIterator
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any

import aiofiles.os  # type: ignore[import-untyped]

from .base import ChunkReaderBase
from .config import ReaderSettings
from .config import settings as default_settings
from .exceptions import ReaderStateError, ReadTaskError, SourceOpenError, SourceReadError
from .memory import MemoryProbe
from .policy import SizingMode
from .sources import BufferedFileSource, SourceLike
from .state import Chunk, ReadState

logger = logging.getLogger(__name__)


class PollState(Enum):
    """Result of a poll that has no data yet."""

    PENDING = "pending"


@dataclass
class _ReadOutcome:
    """What a background read hands back: the state, plus a chunk, an I/O error or a crash."""

    state: ReadState
    chunk: Chunk | None = None
    error: SourceReadError | None = None
    crash: Exception | None = None


# Stream phases. Exactly one holds the ReadState at any time.


@dataclass
class _Idle:
    state: ReadState


@dataclass
class _Pending:
    future: "asyncio.Future[_ReadOutcome]"


@dataclass
class _Completed:
    # None when a task failure lost the state along with the worker
    state: ReadState | None


def _read_in_background(state: ReadState) -> _ReadOutcome:
    try:
        chunk = state.read_chunk()
    except SourceReadError as e:
        return _ReadOutcome(state=state, error=e)
    except Exception as e:
        # Hand the state back so the source can still be closed
        return _ReadOutcome(state=state, crash=e)
    return _ReadOutcome(state=state, chunk=chunk)


class ChunkStream(ChunkReaderBase):
    """
    Poll-driven asynchronous stream over a source.

    poll_next() never blocks: it starts a background read when none is in
    flight, reports PollState.PENDING while one is running, and returns its
    bytes (or None at the end) once it has finished. Async iteration drives
    poll_next() and awaits the outstanding read between polls.

    If the stream is dropped while a read is in flight, the read still runs to
    completion on its worker and its result is discarded.
    """

    reader_name = "stream"

    def __init__(
        self,
        source: SourceLike,
        mode: SizingMode | None = None,
        memory_probe: MemoryProbe | None = None,
        include_swap: bool | None = None,
        settings: ReaderSettings | None = None,
        executor: Executor | None = None,
    ):
        """
        Open a source for asynchronous chunked reading.

        Args:
            source: Path, bytes-like buffer, binary file handle or Source
            mode: Sizing mode; defaults to the configured DEFAULT_MODE
            memory_probe: Memory probe; the host probe when omitted
            include_swap: Count swap as available memory; configured default when omitted
            settings: Settings overriding the module defaults
            executor: Executor running the reads; the loop's default when omitted

        Raises:
            SourceOpenError: If the source cannot be opened or sized
        """
        reader_settings = settings or default_settings
        state = ReadState.open(source, mode or reader_settings.default_mode)
        self._phase: _Idle | _Pending | _Completed = _Idle(state)
        self._executor = executor
        super().__init__(state, memory_probe, include_swap, reader_settings)

    @classmethod
    async def open(cls, path: str | os.PathLike[str], **kwargs: Any) -> "ChunkStream":
        """
        Open a file without blocking the event loop.

        Accepts the same keyword arguments as the constructor.

        Raises:
            SourceOpenError: If the file cannot be opened or sized
        """
        try:
            stat = await aiofiles.os.stat(path)
        except OSError as e:
            raise SourceOpenError(f"Cannot stat {os.fspath(path)}: {e}", path=os.fspath(path)) from e

        loop = asyncio.get_running_loop()
        try:
            handle = await loop.run_in_executor(kwargs.get("executor"), partial(io.open, path, "rb"))
        except OSError as e:
            raise SourceOpenError(f"Cannot open {os.fspath(path)}: {e}", path=os.fspath(path)) from e

        return cls(BufferedFileSource(handle, size=stat.st_size), **kwargs)

    def _owned_state(self, action: str) -> ReadState:
        phase = self._phase
        if isinstance(phase, _Pending):
            raise ReaderStateError(f"Cannot {action} while a read is in flight", state="pending")
        if phase.state is None:
            raise ReaderStateError(f"Cannot {action}: the stream failed and its source is gone", state="completed")
        return phase.state

    @property
    def is_read_complete(self) -> bool:
        return isinstance(self._phase, _Completed)

    @property
    def is_pending(self) -> bool:
        return isinstance(self._phase, _Pending)

    def poll_next(self) -> bytes | None | PollState:
        """
        Advance the stream without blocking.

        Must be called from a running event loop.

        Returns:
            The next chunk's bytes, None once the source is exhausted, or
            PollState.PENDING while a read is still running.

        Raises:
            SourceReadError: If the background read failed
            ReadTaskError: If the background task could not run or was lost
            ReaderStateError: If no event loop is running
        """
        available = self._probe_memory()
        phase = self._phase

        if isinstance(phase, _Completed):
            return None

        if isinstance(phase, _Idle):
            phase = self._spawn(phase.state, available)

        if not phase.future.done():
            return PollState.PENDING
        return self._reclaim(phase.future)

    def _spawn(self, state: ReadState, available: float) -> _Pending:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise ReaderStateError("ChunkStream must be polled from a running event loop", state="idle") from e

        self._started = True
        self._plan(state, available)

        try:
            future = loop.run_in_executor(self._executor, _read_in_background, state)
        except RuntimeError as e:
            self._phase = _Completed(state)
            error = ReadTaskError(f"Could not schedule background read: {e}")
            self._record_failure(error)
            raise error from e

        # The state now belongs to the worker
        pending = _Pending(future)
        self._phase = pending
        return pending

    def _reclaim(self, future: "asyncio.Future[_ReadOutcome]") -> bytes | None:
        try:
            outcome = future.result()
        except asyncio.CancelledError as e:
            self._phase = _Completed(None)
            error = ReadTaskError("Background read was cancelled")
            self._record_failure(error)
            raise error from e
        except Exception as e:
            self._phase = _Completed(None)
            error = ReadTaskError(f"Background read failed: {e}")
            self._record_failure(error)
            raise error from e

        if outcome.crash is not None:
            self._phase = _Completed(outcome.state)
            error = ReadTaskError(f"Background read failed: {outcome.crash}")
            self._record_failure(error)
            raise error from outcome.crash

        if outcome.error is not None:
            self._phase = _Completed(outcome.state)
            self._record_failure(outcome.error)
            raise outcome.error

        chunk = outcome.chunk
        if chunk is None or chunk.is_empty:
            self._phase = _Completed(outcome.state)
            logger.info(f"Source exhausted after {int(self._file_size)} bytes")
            return None

        self._phase = _Idle(outcome.state)
        logger.debug(f"Read {len(chunk)} bytes at {chunk.measured_throughput:.0f} bytes/s")
        self._record_chunk(len(chunk))
        return chunk.payload

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        while True:
            result = self.poll_next()
            if result is PollState.PENDING:
                phase = self._phase
                if not isinstance(phase, _Pending):
                    raise ReaderStateError("Poll reported a pending read but none is in flight", state="idle")
                await asyncio.wait((phase.future,))
                continue
            if result is None:
                raise StopAsyncIteration
            return result

    async def aclose(self) -> None:
        """Wait for any read in flight, then close the source."""
        phase = self._phase
        state: ReadState | None
        if isinstance(phase, _Pending):
            await asyncio.wait((phase.future,))
            future = phase.future
            if future.cancelled() or future.exception() is not None:
                state = None
            else:
                state = future.result().state
        else:
            state = phase.state

        self._phase = _Completed(state)
        if state is not None:
            state.close()

    async def __aenter__(self) -> "ChunkStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"ChunkStream(phase={type(self._phase).__name__.lstrip('_').lower()}, size={self._file_size:.0f})"
