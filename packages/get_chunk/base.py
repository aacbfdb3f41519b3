#!/usr/bin/env python3
"""
Configuration and introspection shared by ChunkIterator and ChunkStream.
"""

import logging
from abc import ABC, abstractmethod
from typing import Self

from . import metrics
from .config import ReaderSettings
from .config import settings as default_settings
from .exceptions import ReaderStateError
from .memory import MemoryProbe, SystemMemoryProbe
from .policy import SizingMode, ThroughputState
from .state import ReadState, percent_to_offset

logger = logging.getLogger(__name__)


class ChunkReaderBase(ABC):
    """
    Base class for chunk readers.

    Subclasses decide when their ReadState is available for configuration;
    the stream, for instance, gives it away while a read is in flight.
    """

    reader_name = "reader"

    def __init__(
        self,
        state: ReadState,
        memory_probe: MemoryProbe | None = None,
        include_swap: bool | None = None,
        settings: ReaderSettings | None = None,
    ):
        self._settings = settings or default_settings
        self._probe = memory_probe or SystemMemoryProbe()
        self._include_swap = self._settings.INCLUDE_SWAP if include_swap is None else include_swap
        self._file_size = state.metadata.total_size
        self._started = False
        self._last_available = 0.0

        logger.info(
            f"Opened {self.reader_name} over {state.source!r} "
            f"(size={self._file_size:.0f} bytes, mode={state.metadata.mode})"
        )

    @abstractmethod
    def _owned_state(self, action: str) -> ReadState:
        """Return the ReadState, or raise ReaderStateError if it is not held."""

    # Introspection

    @property
    def file_size(self) -> float:
        """Total size of the source in bytes, fixed at open time."""
        return self._file_size

    @property
    @abstractmethod
    def is_read_complete(self) -> bool:
        """Whether the source has been exhausted."""

    @property
    def mode(self) -> SizingMode:
        return self._owned_state("read the sizing mode").metadata.mode

    @property
    def start_position(self) -> int:
        return self._owned_state("read the start position").metadata.start_offset

    @property
    def throughput(self) -> ThroughputState:
        state = self._owned_state("read the throughput")
        return ThroughputState(state.metadata.throughput.prev_target, state.metadata.throughput.achieved)

    @property
    def swap_included(self) -> bool:
        return self._include_swap

    @property
    def last_available_memory(self) -> float:
        """Memory reported by the most recent probe, in bytes."""
        return self._last_available

    # Configuration

    def set_mode(self, mode: SizingMode) -> Self:
        """Switch the sizing mode; allowed between reads."""
        self._owned_state("change the sizing mode").metadata.mode = mode
        return self

    def set_start_position_bytes(self, position: int) -> Self:
        """
        Start reading at an absolute byte offset, clamped to the source size.

        Raises:
            ReaderStateError: If reading has already started
            SourceSeekError: If the seek fails
        """
        state = self._owned_state("set the start position")
        if self._started:
            raise ReaderStateError("Start position can only be set before the first read", state="reading")
        state.apply_start_offset(position)
        return self

    def set_start_position_percent(self, percent: float) -> Self:
        """
        Start reading at a percentage of the source size.

        Raises:
            ReaderStateError: If reading has already started
            SourceSeekError: If the seek fails
        """
        state = self._owned_state("set the start position")
        return self.set_start_position_bytes(percent_to_offset(state.metadata.total_size, percent))

    def include_swap(self, include: bool = True) -> Self:
        """Count swap space as available memory when sizing chunks."""
        self._include_swap = include
        return self

    # Helpers for subclasses

    def _probe_memory(self) -> float:
        self._last_available = self._probe.available(self._include_swap)
        return self._last_available

    def _plan(self, state: ReadState, available: float) -> float:
        target = state.plan_next_read(available)
        if self._settings.METRICS_ENABLED:
            metrics.record_target_size(target)
        return target

    def _record_chunk(self, size: int) -> None:
        if self._settings.METRICS_ENABLED:
            metrics.record_chunk_read(self.reader_name, size)

    def _record_failure(self, error: Exception) -> None:
        logger.error(f"{self.reader_name} failed: {error}")
        if self._settings.METRICS_ENABLED:
            metrics.record_read_failure(self.reader_name, type(error).__name__)
