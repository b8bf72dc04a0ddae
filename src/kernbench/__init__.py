"""Adaptive kernel micro-benchmark harness."""

from . import batch, config, contracts, core, io, kernels, report

__all__ = [
    "batch",
    "config",
    "contracts",
    "core",
    "io",
    "kernels",
    "report",
]
