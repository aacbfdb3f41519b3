#!/usr/bin/env python3
"""
End-to-end checks that both readers reproduce files exactly and agree with each other.
"""

import hashlib
from collections.abc import Callable
from pathlib import Path

import pytest

from get_chunk import Auto, Bytes, ChunkIterator, ChunkStream, Percent, SizingMode
from get_chunk.memory import FixedMemoryProbe
from tests.fixtures.readers import KIB, sha256_of

MODES = [Auto(), Percent(3.0), Percent(50.0), Percent(100.0), Bytes(1000), Bytes(4097), Bytes(10**9)]


@pytest.mark.parametrize("size", [300 * KIB, 512 * KIB + 7, 700 * KIB])
@pytest.mark.parametrize("mode", MODES, ids=str)
class TestReaderParity:
    @pytest.mark.asyncio()
    async def test_stream_and_iterator_agree(
        self, make_file: Callable[..., Path], memory: FixedMemoryProbe, size: int, mode: SizingMode
    ) -> None:
        path = make_file(size=size)
        expected = sha256_of(path)

        with ChunkIterator(path, mode, memory_probe=memory) as reader:
            iterator_chunks = list(reader)
        async with await ChunkStream.open(path, mode=mode, memory_probe=memory) as stream:
            stream_digest = hashlib.sha256()
            async for chunk in stream:
                stream_digest.update(chunk)

        assert hashlib.sha256(b"".join(iterator_chunks)).hexdigest() == expected
        assert stream_digest.hexdigest() == expected
        assert all(iterator_chunks)

    @pytest.mark.asyncio()
    async def test_tight_memory_still_reproduces_file(
        self, make_file: Callable[..., Path], size: int, mode: SizingMode
    ) -> None:
        path = make_file(size=size)
        probe = FixedMemoryProbe(ram=64 * KIB)

        async with ChunkStream(path, mode, memory_probe=probe) as stream:
            chunks = [chunk async for chunk in stream]

        assert max(len(chunk) for chunk in chunks) <= int(64 * KIB * 0.85)
        assert hashlib.sha256(b"".join(chunks)).hexdigest() == sha256_of(path)
