"""Shared test configuration and fixtures."""

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from get_chunk.memory import FixedMemoryProbe
from tests.fixtures.readers import GIB, HELLO, SAMPLE_TEXT, ManualExecutor


@pytest.fixture()
def memory() -> FixedMemoryProbe:
    """Plenty of memory so the ceiling never interferes."""
    return FixedMemoryProbe(ram=8 * GIB)


@pytest.fixture()
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing random or given content to a temporary file."""
    counter = 0

    def _make(size: int | None = None, content: bytes | None = None) -> Path:
        nonlocal counter
        counter += 1
        path = tmp_path / f"source-{counter}.bin"
        if content is None:
            content = os.urandom(size or 0)
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture()
def hello_file(make_file: Callable[..., Path]) -> Path:
    return make_file(content=HELLO)


@pytest.fixture()
def sample_file(make_file: Callable[..., Path]) -> Path:
    return make_file(content=SAMPLE_TEXT)


@pytest.fixture()
def manual_executor() -> ManualExecutor:
    return ManualExecutor()
