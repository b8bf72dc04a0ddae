"""Derived throughput metrics and human-readable formatting."""

from __future__ import annotations

NANOS_PER_SECOND = 1e9
BYTES_PER_MB = 1e6


def ops_per_second(avg_ns: float) -> float:
    if avg_ns <= 0:
        return float("inf")
    return NANOS_PER_SECOND / avg_ns


def bytes_per_second(size: int, avg_ns: float, bytes_per_element: int) -> float:
    """Bytes moved per second assuming ``bytes_per_element`` per element per call."""

    return size * bytes_per_element * ops_per_second(avg_ns)


def mb_per_second(size: int, avg_ns: float, bytes_per_element: int) -> float:
    return bytes_per_second(size, avg_ns, bytes_per_element) / BYTES_PER_MB


def format_duration(ns: float) -> str:
    if ns < 1_000:
        return f"{ns:.0f} ns"
    if ns < 1_000_000:
        return f"{ns / 1_000:.2f} µs"
    if ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    return f"{ns / 1_000_000_000:.2f} s"


def format_ops(ns: float) -> str:
    if ns <= 0:
        return "-"
    ops = ops_per_second(ns)
    if ops > 1e6:
        return f"{ops / 1e6:.2f} M/s"
    if ops > 1e3:
        return f"{ops / 1e3:.2f} k/s"
    return f"{ops:.0f} /s"


def format_throughput(size: int, ns: float, bytes_per_element: int) -> str:
    if ns <= 0:
        return "-"
    return f"{mb_per_second(size, ns, bytes_per_element):.2f} MB/s"


__all__ = [
    "bytes_per_second",
    "format_duration",
    "format_ops",
    "format_throughput",
    "mb_per_second",
    "ops_per_second",
]
