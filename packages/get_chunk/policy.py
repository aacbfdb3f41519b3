#!/usr/bin/env python3
"""
Chunk sizing policy.

Computes the number of bytes to request on the next read from the active
sizing mode, the throughput observed on the previous read, the source size and
the memory currently available. Whatever the mode, the result never exceeds
MEMORY_CEILING_RATIO of the available memory at the moment of computation.

Auto mode reacts asymmetrically: a drop in throughput shrinks the next target
by up to 45%, a rise grows it by at most 15%.
"""

import re
from dataclasses import dataclass
from typing import Union

from .memory import MEMORY_CEILING_RATIO

UNSET = -1.0

# Share of the source requested by the first Auto read
INITIAL_PROBE_FRACTION = 0.001
MAX_SHRINK = 0.45
MAX_GROWTH = 0.15
MIN_PERCENT = 0.1
MAX_PERCENT = 100.0


@dataclass(frozen=True)
class Auto:
    """Adapt the chunk size to the measured throughput."""

    def __str__(self) -> str:
        return "auto"


@dataclass(frozen=True)
class Percent:
    """Read a fixed percentage of the source per chunk, clamped to [0.1, 100]."""

    percent: float

    @property
    def effective(self) -> float:
        return min(max(self.percent, MIN_PERCENT), MAX_PERCENT)

    def __str__(self) -> str:
        return f"{self.percent:g}%"


@dataclass(frozen=True)
class Bytes:
    """Read a fixed number of bytes per chunk."""

    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Byte count must be non-negative, got {self.count}")

    def __str__(self) -> str:
        return str(self.count)


SizingMode = Union[Auto, Percent, Bytes]

_MODE_PATTERN = re.compile(r"^\s*(?:(?P<auto>auto)|(?P<percent>\d+(?:\.\d+)?)\s*%|(?P<bytes>\d+))\s*$", re.IGNORECASE)


def parse_sizing_mode(value: str) -> SizingMode:
    """
    Build a sizing mode from its text form.

    Accepts "auto", a percentage such as "12.5%", or a plain byte count.

    Raises:
        ValueError: If the text matches none of the forms
    """
    match = _MODE_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Invalid sizing mode: {value!r} (expected 'auto', '<percent>%' or '<bytes>')")
    if match.group("auto"):
        return Auto()
    if match.group("percent"):
        return Percent(float(match.group("percent")))
    return Bytes(int(match.group("bytes")))


@dataclass
class ThroughputState:
    """
    Feedback carried between reads.

    prev_target is the size requested on the most recent read and achieved is
    the bytes/second measured on it. Both start at UNSET.
    """

    prev_target: float = UNSET
    achieved: float = UNSET

    @property
    def has_target(self) -> bool:
        return self.prev_target > 0

    @property
    def has_measurement(self) -> bool:
        return self.achieved > 0


def _auto_chunk(prev_target: float, achieved: float, total_size: float) -> float:
    if prev_target <= 0:
        return total_size * INITIAL_PROBE_FRACTION
    if achieved <= 0:
        return prev_target
    if achieved < prev_target:
        return prev_target * (1.0 - min(MAX_SHRINK, (prev_target - achieved) / prev_target))
    return prev_target * (1.0 + min(MAX_GROWTH, (achieved - prev_target) / prev_target))


def calculate_chunk_size(
    prev_target: float,
    achieved: float,
    total_size: float,
    available: float,
    mode: SizingMode,
) -> float:
    """
    Compute the next target chunk size in bytes.

    Args:
        prev_target: Size requested on the previous read, UNSET if none
        achieved: Throughput of the previous read in bytes/second, UNSET if none
        total_size: Total size of the source in bytes
        available: Memory available right now in bytes
        mode: Active sizing mode

    Returns:
        Target size, never above MEMORY_CEILING_RATIO of available
    """
    if isinstance(mode, Auto):
        target = _auto_chunk(prev_target, achieved, total_size)
    elif isinstance(mode, Percent):
        target = total_size * (mode.effective / 100.0)
    elif isinstance(mode, Bytes):
        target = min(float(mode.count), total_size)
    else:
        raise TypeError(f"Unknown sizing mode: {mode!r}")

    return min(target, max(available, 0.0) * MEMORY_CEILING_RATIO)


__all__ = [
    "Auto",
    "Bytes",
    "Percent",
    "SizingMode",
    "ThroughputState",
    "UNSET",
    "calculate_chunk_size",
    "parse_sizing_mode",
]
