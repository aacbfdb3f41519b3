#!/usr/bin/env python3
"""
Reader state shared by the synchronous and asynchronous front-ends.

ReadState bundles a source with its metadata and completion flag. It is the
unit of ownership: the iterator keeps it for its whole life, the stream hands
it to a background task for the duration of each read and takes it back when
the task finishes.
"""

import logging
import time
from dataclasses import dataclass, field

from .exceptions import SourceOpenError, SourceReadError, SourceSeekError
from .policy import Auto, SizingMode, ThroughputState, calculate_chunk_size
from .sources import Source, SourceLike, open_source

logger = logging.getLogger(__name__)

# Floor for a physical read so a target below one byte still makes progress
MIN_READ_BYTES = 1


@dataclass
class Chunk:
    """Bytes produced by one read and the throughput measured for it."""

    payload: bytes
    measured_throughput: float

    def __len__(self) -> int:
        return len(self.payload)

    @property
    def is_empty(self) -> bool:
        return not self.payload


@dataclass
class SourceMetadata:
    """Sizing inputs tracked for a source across reads."""

    total_size: float
    start_offset: int = 0
    mode: SizingMode = field(default_factory=Auto)
    throughput: ThroughputState = field(default_factory=ThroughputState)


class ReadState:
    """Source, metadata and completion flag owned by a single reader."""

    def __init__(self, source: Source, mode: SizingMode | None = None):
        try:
            total_size = float(source.size())
        except (OSError, ValueError) as e:
            raise SourceOpenError(f"Cannot determine size of source: {e}") from e

        self.source = source
        self.metadata = SourceMetadata(total_size=total_size, mode=mode or Auto())
        self.read_complete = False

    @classmethod
    def open(cls, source: SourceLike, mode: SizingMode | None = None) -> "ReadState":
        """
        Adapt source and build its state, closing it again if sizing fails.

        Raises:
            SourceOpenError: If the source cannot be opened or sized
        """
        adapted = open_source(source)
        try:
            return cls(adapted, mode)
        except SourceOpenError:
            adapted.close()
            raise

    def apply_start_offset(self, offset: int) -> int:
        """
        Seek to offset, clamped to [0, total_size].

        Returns:
            The offset actually applied

        Raises:
            SourceSeekError: If the source refuses the seek
        """
        total = int(self.metadata.total_size)
        clamped = min(max(offset, 0), total)
        if clamped != offset:
            logger.warning(f"Start offset {offset} clamped to {clamped} (source size {total})")

        try:
            self.source.seek(clamped)
        except (OSError, ValueError) as e:
            raise SourceSeekError(f"Cannot seek to offset {clamped}: {e}", offset=clamped) from e

        self.metadata.start_offset = clamped
        return clamped

    def plan_next_read(self, available: float) -> float:
        """Compute the next target from the throughput history and store it."""
        throughput = self.metadata.throughput
        target = calculate_chunk_size(
            throughput.prev_target,
            throughput.achieved,
            self.metadata.total_size,
            available,
            self.metadata.mode,
        )
        throughput.prev_target = target
        logger.debug(f"Next target {target:.0f} bytes (mode={self.metadata.mode}, available={available:.0f})")
        return target

    def read_chunk(self) -> Chunk:
        """
        Perform one timed read bounded by the planned target.

        An empty chunk marks the state complete. When the read takes no
        measurable time the previous throughput is carried over.

        Raises:
            SourceReadError: If the source fails during the read
        """
        throughput = self.metadata.throughput
        limit = max(MIN_READ_BYTES, int(throughput.prev_target))

        started = time.perf_counter()
        try:
            payload = self.source.read_up_to(limit)
        except (OSError, ValueError) as e:
            self.read_complete = True
            raise SourceReadError(f"Read of {limit} bytes failed: {e}", bytes_requested=limit) from e
        elapsed = time.perf_counter() - started

        if not payload:
            self.read_complete = True

        if elapsed > 0:
            throughput.achieved = len(payload) / elapsed

        return Chunk(payload=payload, measured_throughput=throughput.achieved)

    def close(self) -> None:
        self.source.close()

    def __repr__(self) -> str:
        return (
            f"ReadState(source={self.source!r}, size={self.metadata.total_size:.0f}, "
            f"mode={self.metadata.mode}, complete={self.read_complete})"
        )


def percent_to_offset(total_size: float, percent: float) -> int:
    """Byte offset at percent of total_size, with percent clamped to [0, 100]."""
    return int(total_size * (min(max(percent, 0.0), 100.0) / 100.0))
