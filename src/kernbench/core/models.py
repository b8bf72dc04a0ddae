"""Value types exchanged between the benchmark driver and its callers."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from kernbench.contracts.error import InvalidRequestError, InvariantError

NANOS_PER_MILLI = 1_000_000


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class BenchmarkRequest:
    """Sizes to measure and the minimum cumulative time to spend on each."""

    sizes: tuple[int, ...]
    min_time_budget_ns: float
    warmup: int = 0
    max_repetitions: int | None = None

    def __post_init__(self) -> None:
        try:
            sizes = tuple(self.sizes)
        except TypeError as exc:
            raise InvalidRequestError(f"sizes must be a sequence, got {self.sizes!r}") from exc
        object.__setattr__(self, "sizes", sizes)

    @classmethod
    def from_millis(
        cls,
        sizes: Sequence[int],
        min_time_ms: float,
        *,
        warmup: int = 0,
        max_repetitions: int | None = None,
    ) -> BenchmarkRequest:
        if isinstance(min_time_ms, bool) or not isinstance(min_time_ms, int | float):
            raise InvalidRequestError(f"min_time_ms must be a number, got {min_time_ms!r}")
        return cls(
            sizes,
            min_time_ms * NANOS_PER_MILLI,
            warmup=warmup,
            max_repetitions=max_repetitions,
        )

    def validate(self) -> None:
        if not self.sizes:
            raise InvalidRequestError(
                "sizes must be a non-empty sequence", hint="Pass at least one input size"
            )
        for idx, size in enumerate(self.sizes):
            if not _is_positive_int(size):
                raise InvalidRequestError(f"sizes[{idx}] must be a positive integer, got {size!r}")
        budget = self.min_time_budget_ns
        if isinstance(budget, bool) or not isinstance(budget, int | float):
            raise InvalidRequestError(f"min_time_budget_ns must be a number, got {budget!r}")
        if not math.isfinite(budget) or budget <= 0:
            raise InvalidRequestError(f"min_time_budget_ns must be positive and finite, got {budget!r}")
        if isinstance(self.warmup, bool) or not isinstance(self.warmup, int) or self.warmup < 0:
            raise InvalidRequestError(f"warmup must be a non-negative integer, got {self.warmup!r}")
        if self.max_repetitions is not None and not _is_positive_int(self.max_repetitions):
            raise InvalidRequestError(
                f"max_repetitions must be a positive integer or None, got {self.max_repetitions!r}"
            )


@dataclass(frozen=True)
class MeasurementRecord:
    """Outcome for one requested size: an average duration or an error, never both."""

    size: int
    avg_duration_ns: float | None = None
    error: str | None = None
    repetitions: int = 0
    total_ns: float = 0.0

    def __post_init__(self) -> None:
        if (self.avg_duration_ns is None) == (self.error is None):
            raise InvariantError("MeasurementRecord needs exactly one of avg_duration_ns or error")
        if self.error is not None and not self.error:
            raise InvariantError("error message must be non-empty")

    @classmethod
    def success(cls, size: int, *, total_ns: float, repetitions: int) -> MeasurementRecord:
        return cls(
            size=size,
            avg_duration_ns=total_ns / repetitions,
            repetitions=repetitions,
            total_ns=total_ns,
        )

    @classmethod
    def failure(cls, size: int, message: str) -> MeasurementRecord:
        return cls(size=size, error=message or "unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {
                "size": self.size,
                "avg_ns": self.avg_duration_ns,
                "repetitions": self.repetitions,
                "total_ns": self.total_ns,
            }
        return {"size": self.size, "error": self.error}


@dataclass
class RunAccumulator:
    repetitions: int = 0
    total_ns: float = 0

    def add(self, elapsed_ns: float) -> None:
        self.repetitions += 1
        self.total_ns += elapsed_ns

    def reached(self, budget_ns: float) -> bool:
        return self.total_ns >= budget_ns


__all__ = [
    "NANOS_PER_MILLI",
    "BenchmarkRequest",
    "MeasurementRecord",
    "RunAccumulator",
]
