"""Adaptive benchmark driver.

For each requested size the driver allocates one input buffer, invokes the
kernel until the cumulative reported time reaches the minimum-time budget, and
emits a :class:`MeasurementRecord`. Failures are confined to the size that
produced them; the returned list always mirrors the requested sizes in order
(or, when cancelled, the prefix that was measured).
"""

from __future__ import annotations

import asyncio
import logging
import math
import numbers
import threading
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from kernbench.contracts.error import AllocationError, KernelError, KernelExecutionError
from kernbench.kernels.base import KernelRunner

from .models import BenchmarkRequest, MeasurementRecord, RunAccumulator

logger = logging.getLogger(__name__)

RecordCallback = Callable[[MeasurementRecord], None]


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    if isinstance(exc, KernelError):
        return message or type(exc).__name__
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class BenchmarkDriver:
    """Measures a kernel runner over a sequence of input sizes."""

    def __init__(
        self,
        runner: KernelRunner,
        *,
        on_record: RecordCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.runner = runner
        self.on_record = on_record
        self.cancel_event = cancel_event

    def run(self, request: BenchmarkRequest) -> list[MeasurementRecord]:
        return list(self._iter_records(request))

    async def run_async(self, request: BenchmarkRequest) -> list[MeasurementRecord]:
        """Same as :meth:`run`, yielding to the event loop between sizes."""

        records: list[MeasurementRecord] = []
        for record in self._iter_records(request):
            records.append(record)
            await asyncio.sleep(0)
        return records

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _iter_records(self, request: BenchmarkRequest) -> Iterator[MeasurementRecord]:
        request.validate()
        total = len(request.sizes)
        logger.debug(
            "Benchmarking %s over %d size(s) with budget %.0f ns",
            getattr(self.runner, "name", type(self.runner).__name__),
            total,
            request.min_time_budget_ns,
        )
        for idx, size in enumerate(request.sizes):
            if self._cancelled():
                logger.info("Benchmark cancelled after %d of %d size(s)", idx, total)
                return
            record = self.measure_size(size, request)
            if self.on_record is not None:
                self.on_record(record)
            yield record

    def measure_size(self, size: int, request: BenchmarkRequest) -> MeasurementRecord:
        try:
            buffer = self.runner.allocate_input(size)
        except AllocationError as exc:
            logger.warning("Allocation failed for size %d: %s", size, exc)
            return MeasurementRecord.failure(size, _describe(exc))
        except Exception as exc:  # noqa: BLE001 - runner bugs become per-size failures
            logger.exception("Unexpected error allocating input for size %d", size)
            return MeasurementRecord.failure(size, _describe(exc))

        try:
            return self._measure_allocated(size, buffer, request)
        finally:
            self._release(size, buffer)

    def _measure_allocated(
        self, size: int, buffer: Any, request: BenchmarkRequest
    ) -> MeasurementRecord:
        acc = RunAccumulator()
        try:
            for _ in range(request.warmup):
                self._invoke(size, buffer)
            while True:
                acc.add(self._invoke(size, buffer))
                if acc.reached(request.min_time_budget_ns):
                    break
                if request.max_repetitions is not None and acc.repetitions >= request.max_repetitions:
                    logger.warning(
                        "Size %d hit the repetition cap (%d) before reaching the time budget",
                        size,
                        request.max_repetitions,
                    )
                    break
        except KernelExecutionError as exc:
            logger.warning("Kernel failed for size %d after %d run(s): %s", size, acc.repetitions, exc)
            return MeasurementRecord.failure(size, _describe(exc))
        except Exception as exc:  # noqa: BLE001 - runner bugs become per-size failures
            logger.exception("Unexpected kernel error for size %d", size)
            return MeasurementRecord.failure(size, _describe(exc))

        record = MeasurementRecord.success(size, total_ns=acc.total_ns, repetitions=acc.repetitions)
        logger.debug(
            "size=%d repetitions=%d avg_ns=%.1f", size, record.repetitions, record.avg_duration_ns
        )
        return record

    def _invoke(self, size: int, buffer: Any) -> float:
        elapsed = self.runner.invoke(size, buffer)
        if (
            isinstance(elapsed, bool)
            or not isinstance(elapsed, numbers.Real)
            or not math.isfinite(elapsed)
            or elapsed < 0
        ):
            raise KernelExecutionError(
                f"kernel reported an invalid elapsed time: {elapsed!r}", size=size
            )
        return elapsed

    def _release(self, size: int, buffer: Any) -> None:
        try:
            self.runner.release_input(buffer)
        except Exception:  # noqa: BLE001 - release is best-effort
            logger.warning("Releasing input for size %d failed", size, exc_info=True)


def run(
    sizes: Sequence[int],
    min_time_budget_ns: float,
    runner: KernelRunner,
    *,
    warmup: int = 0,
    max_repetitions: int | None = None,
    on_record: RecordCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> list[MeasurementRecord]:
    """Measure ``runner`` for every size and return one record per size, in order."""

    request = BenchmarkRequest(
        sizes, min_time_budget_ns, warmup=warmup, max_repetitions=max_repetitions
    )
    driver = BenchmarkDriver(runner, on_record=on_record, cancel_event=cancel_event)
    return driver.run(request)


__all__ = ["BenchmarkDriver", "RecordCallback", "run"]
