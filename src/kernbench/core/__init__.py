"""Measurement core: request/record types and the adaptive driver."""

from .driver import BenchmarkDriver, RecordCallback, run
from .models import NANOS_PER_MILLI, BenchmarkRequest, MeasurementRecord, RunAccumulator

__all__ = [
    "NANOS_PER_MILLI",
    "BenchmarkDriver",
    "BenchmarkRequest",
    "MeasurementRecord",
    "RecordCallback",
    "RunAccumulator",
    "run",
]
