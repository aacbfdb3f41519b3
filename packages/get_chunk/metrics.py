#!/usr/bin/env python3
"""
Prometheus metrics for chunk readers.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram

# Package-local registry so embedding applications choose whether to expose it
registry = CollectorRegistry()

chunks_read = Counter(
    "get_chunk_chunks_read_total",
    "Non-empty chunks returned by readers",
    ["reader"],
    registry=registry,
)

bytes_read = Counter(
    "get_chunk_bytes_read_total",
    "Bytes returned by readers",
    ["reader"],
    registry=registry,
)

target_size = Histogram(
    "get_chunk_target_size_bytes",
    "Target chunk size computed before each read",
    buckets=(1024, 16 * 1024, 64 * 1024, 256 * 1024, 1024**2, 16 * 1024**2, 256 * 1024**2, 1024**3),
    registry=registry,
)

read_failures = Counter(
    "get_chunk_read_failures_total",
    "Failed reads by reader and error type",
    ["reader", "error_type"],
    registry=registry,
)


def record_target_size(size: float) -> None:
    """Record a computed target size"""
    target_size.observe(size)


def record_chunk_read(reader: str, size: int) -> None:
    """Record a chunk handed to the caller"""
    chunks_read.labels(reader=reader).inc()
    bytes_read.labels(reader=reader).inc(size)


def record_read_failure(reader: str, error_type: str) -> None:
    """Record a read or task failure"""
    read_failures.labels(reader=reader, error_type=error_type).inc()


__all__ = [
    "bytes_read",
    "chunks_read",
    "read_failures",
    "record_chunk_read",
    "record_read_failure",
    "record_target_size",
    "registry",
    "target_size",
]
