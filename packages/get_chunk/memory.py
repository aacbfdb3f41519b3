#!/usr/bin/env python3
"""
Host memory probing for chunk sizing.

Readers ask a probe for the currently available memory before every read and
never cache the answer. Each reader owns its own probe; readers do not share
or coordinate memory budgets.
"""

import logging
from abc import ABC, abstractmethod

import psutil

logger = logging.getLogger(__name__)

# Fraction of available memory a single chunk may claim
MEMORY_CEILING_RATIO = 0.85


class MemoryProbe(ABC):
    """Interface for querying available host memory."""

    @abstractmethod
    def available(self, include_swap: bool = False) -> float:
        """Return the bytes of memory available right now."""

    def ceiling(self, include_swap: bool = False) -> float:
        """Largest chunk size allowed by the current memory snapshot."""
        return self.available(include_swap) * MEMORY_CEILING_RATIO


class SystemMemoryProbe(MemoryProbe):
    """
    Probe backed by psutil.

    A failed host query does not propagate: the last value read successfully
    is returned instead (zero before the first success).
    """

    def __init__(self) -> None:
        self._last_available = 0.0

    def available(self, include_swap: bool = False) -> float:
        try:
            available = float(psutil.virtual_memory().available)
            if include_swap:
                available += float(psutil.swap_memory().free)
        except Exception as e:
            logger.warning(f"Failed to query available memory, using last known value: {e}")
            return self._last_available

        self._last_available = available
        return available

    def __repr__(self) -> str:
        return f"SystemMemoryProbe(last_available={self._last_available:.0f})"


class FixedMemoryProbe(MemoryProbe):
    """Probe reporting constant values, for tests and deterministic runs."""

    def __init__(self, ram: float, swap: float = 0.0) -> None:
        self.ram = float(ram)
        self.swap = float(swap)
        self.calls = 0

    def available(self, include_swap: bool = False) -> float:
        self.calls += 1
        return self.ram + self.swap if include_swap else self.ram

    def __repr__(self) -> str:
        return f"FixedMemoryProbe(ram={self.ram:.0f}, swap={self.swap:.0f})"
