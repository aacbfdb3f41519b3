#!/usr/bin/env python3
"""
Blocking chunk iterator.

ChunkIterator pulls a source in chunks whose size is recomputed before every
read from the sizing mode, the throughput of the previous read and a fresh
memory reading. Each read blocks the calling thread until it completes.

Example:
    with ChunkIterator("big.bin").set_mode(Percent(10)) as chunks:
        for data in chunks:
            consume(data)
"""

import logging
from collections.abc import Iterator
from typing import Any

from .base import ChunkReaderBase
from .config import ReaderSettings
from .config import settings as default_settings
from .exceptions import ChunkReaderError
from .memory import MemoryProbe
from .policy import SizingMode
from .sources import SourceLike
from .state import Chunk, ReadState

logger = logging.getLogger(__name__)


class ChunkIterator(ChunkReaderBase):
    """
    Synchronous pull iterator over a source.

    Iteration stops the first time a read returns no data. A read error is
    raised once as SourceReadError, after which the iterator is finished.
    """

    reader_name = "iterator"

    def __init__(
        self,
        source: SourceLike,
        mode: SizingMode | None = None,
        memory_probe: MemoryProbe | None = None,
        include_swap: bool | None = None,
        settings: ReaderSettings | None = None,
    ):
        """
        Open a source for chunked reading.

        Args:
            source: Path, bytes-like buffer, binary file handle or Source
            mode: Sizing mode; defaults to the configured DEFAULT_MODE
            memory_probe: Memory probe; the host probe when omitted
            include_swap: Count swap as available memory; configured default when omitted
            settings: Settings overriding the module defaults

        Raises:
            SourceOpenError: If the source cannot be opened or sized
        """
        reader_settings = settings or default_settings
        self._state = ReadState.open(source, mode or reader_settings.default_mode)
        super().__init__(self._state, memory_probe, include_swap, reader_settings)

    def _owned_state(self, action: str) -> ReadState:
        return self._state

    @property
    def is_read_complete(self) -> bool:
        return self._state.read_complete

    def read_chunk(self) -> Chunk:
        """
        Run one sizing and read cycle.

        Returns:
            The chunk read. An empty payload signals the end of the source and
            is returned by every call once the source is exhausted.

        Raises:
            SourceReadError: If the read fails
        """
        state = self._state
        if state.read_complete:
            return Chunk(payload=b"", measured_throughput=state.metadata.throughput.achieved)

        self._started = True
        self._plan(state, self._probe_memory())

        try:
            chunk = state.read_chunk()
        except ChunkReaderError as e:
            self._record_failure(e)
            raise

        if chunk.is_empty:
            logger.info(f"Source exhausted after {int(self._file_size)} bytes")
        else:
            logger.debug(f"Read {len(chunk)} bytes at {chunk.measured_throughput:.0f} bytes/s")
            self._record_chunk(len(chunk))
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        chunk = self.read_chunk()
        if chunk.is_empty:
            raise StopIteration
        return chunk.payload

    def close(self) -> None:
        """Close the underlying source."""
        self._state.read_complete = True
        self._state.close()

    def __enter__(self) -> "ChunkIterator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ChunkIterator(state={self._state!r})"
