"""Memory-aware adaptive chunk readers for files and in-memory buffers.

Two front-ends produce the same chunk sequence for a given source:

- ChunkIterator: blocking pull iterator
- ChunkStream: asyncio stream that runs each read on an executor

Chunk sizes come from a sizing mode (Auto, Percent or Bytes) and are always
capped at 85% of the memory available when the size is computed.
"""

from .config import ReaderSettings, settings
from .exceptions import (
    ChunkReaderError,
    ReaderStateError,
    ReadTaskError,
    SourceOpenError,
    SourceReadError,
    SourceSeekError,
)
from .iterator import ChunkIterator
from .memory import MEMORY_CEILING_RATIO, FixedMemoryProbe, MemoryProbe, SystemMemoryProbe
from .policy import Auto, Bytes, Percent, SizingMode, ThroughputState, calculate_chunk_size, parse_sizing_mode
from .sources import BufferedFileSource, FileSource, MemorySource, Source, open_source
from .state import Chunk
from .stream import ChunkStream, PollState

__all__ = [
    "Auto",
    "BufferedFileSource",
    "Bytes",
    "Chunk",
    "ChunkIterator",
    "ChunkReaderError",
    "ChunkStream",
    "FileSource",
    "FixedMemoryProbe",
    "MEMORY_CEILING_RATIO",
    "MemoryProbe",
    "MemorySource",
    "Percent",
    "PollState",
    "ReadTaskError",
    "ReaderSettings",
    "ReaderStateError",
    "SizingMode",
    "Source",
    "SourceOpenError",
    "SourceReadError",
    "SourceSeekError",
    "SystemMemoryProbe",
    "ThroughputState",
    "calculate_chunk_size",
    "open_source",
    "parse_sizing_mode",
    "settings",
]
