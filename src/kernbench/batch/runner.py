"""Batch runner: measure several kernel suites from one TOML spec."""

from __future__ import annotations

import logging
import re
import threading
import time
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from kernbench.contracts.error import BadInputError, EnvelopeError
from kernbench.core.driver import BenchmarkDriver
from kernbench.core.models import NANOS_PER_MILLI, BenchmarkRequest
from kernbench.io.summary import build_summary, write_summary
from kernbench.kernels import DEFAULT_MAX_ELEMENTS, DEFAULT_SEED, KernelRunner, build_runner
from kernbench.report.markdown import SuiteReport, write_report

logger = logging.getLogger(__name__)

RunnerBuilder = Callable[..., KernelRunner]


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "suite"


@dataclass
class SuiteSpec:
    name: str
    kernel: str
    sizes: list[int]
    min_time_ms: float = 500.0
    warmup: int = 1
    max_repetitions: int | None = None
    bytes_per_element: int | None = None
    max_elements: int = DEFAULT_MAX_ELEMENTS
    seed: int = DEFAULT_SEED


@dataclass
class BatchSpec:
    suites: list[SuiteSpec]
    report_path: Path
    working_dir: Path
    html_report_path: Path | None = None
    json_summary_dir: Path | None = None


def _int_list(value: Any, label: str) -> list[int]:
    if not isinstance(value, list) or not value:
        raise BadInputError(f"{label} must be a non-empty array of integers")
    out: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise BadInputError(f"{label} entries must be integers, got {item!r}")
        out.append(item)
    return out


def _int_field(table: dict[str, Any], key: str, default: int, label: str, *, minimum: int) -> int:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadInputError(f"{label} {key} must be an integer, got {value!r}")
    if value < minimum:
        raise BadInputError(f"{label} {key} must be >= {minimum}, got {value}")
    return value


def load_spec(path: Path) -> BatchSpec:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise BadInputError(f"Invalid TOML in batch spec {path}: {exc}") from exc
    batch = data.get("batch")
    if not isinstance(batch, dict):
        raise BadInputError("Missing [batch] table in spec")

    report = batch.get("report") or "reports/bench_report.md"
    report_path = (path.parent / report).resolve()
    html_report_value = batch.get("html_report")
    html_report_path = (path.parent / html_report_value).resolve() if html_report_value else None
    summary_dir_value = batch.get("json_summary_dir")
    summary_dir = (path.parent / summary_dir_value).resolve() if summary_dir_value else None

    suites_data = batch.get("suites")
    if not isinstance(suites_data, list) or not suites_data:
        raise BadInputError("[batch.suites] must be a non-empty array")

    suites: list[SuiteSpec] = []
    seen: set[str] = set()
    for idx, suite_dict in enumerate(suites_data, 1):
        if not isinstance(suite_dict, dict):
            raise BadInputError(f"Suite #{idx} must be a table")
        name = str(suite_dict.get("name") or f"suite-{idx}")
        if name in seen:
            raise BadInputError(f"Duplicate suite name '{name}'")
        seen.add(name)
        kernel = suite_dict.get("kernel")
        if not isinstance(kernel, str) or not kernel.strip():
            raise BadInputError(f"Suite '{name}' missing 'kernel' field")
        sizes = _int_list(suite_dict.get("sizes"), f"Suite '{name}' sizes")
        min_time_ms = suite_dict.get("min_time_ms", 500.0)
        if isinstance(min_time_ms, bool) or not isinstance(min_time_ms, int | float):
            raise BadInputError(f"Suite '{name}' min_time_ms must be a number")
        label = f"Suite '{name}'"
        # 0 disables the cap / uses the kernel default
        max_repetitions = _int_field(suite_dict, "max_repetitions", 0, label, minimum=0) or None
        bytes_per_element = _int_field(suite_dict, "bytes_per_element", 0, label, minimum=0) or None
        suites.append(
            SuiteSpec(
                name=name,
                kernel=kernel.strip().lower(),
                sizes=sizes,
                min_time_ms=float(min_time_ms),
                warmup=_int_field(suite_dict, "warmup", 1, label, minimum=0),
                max_repetitions=max_repetitions,
                bytes_per_element=bytes_per_element,
                max_elements=_int_field(
                    suite_dict, "max_elements", DEFAULT_MAX_ELEMENTS, label, minimum=1
                ),
                seed=_int_field(suite_dict, "seed", DEFAULT_SEED, label, minimum=0),
            )
        )

    return BatchSpec(
        suites=suites,
        report_path=report_path,
        working_dir=path.parent.resolve(),
        html_report_path=html_report_path,
        json_summary_dir=summary_dir,
    )


@dataclass
class SuiteResult:
    spec: SuiteSpec
    report: SuiteReport
    summary_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.report.error is None and self.report.failed_sizes == 0


class BatchRunner:
    def __init__(
        self,
        spec: BatchSpec,
        *,
        runner_builder: RunnerBuilder = build_runner,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.spec = spec
        self.runner_builder = runner_builder
        self.cancel_event = cancel_event

    def run(self) -> list[SuiteResult]:
        results: list[SuiteResult] = []
        for suite in self.spec.suites:
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info("Batch cancelled before suite %s", suite.name)
                break
            results.append(self._run_suite(suite))
        write_report(
            [result.report for result in results],
            self.spec.report_path,
            html_report_path=self.spec.html_report_path,
        )
        return results

    def _run_suite(self, suite: SuiteSpec) -> SuiteResult:
        min_time_ns = suite.min_time_ms * NANOS_PER_MILLI
        start = time.perf_counter()
        try:
            if suite.bytes_per_element is not None and suite.bytes_per_element < 0:
                raise BadInputError(
                    f"Suite '{suite.name}' bytes_per_element must be >= 0, "
                    f"got {suite.bytes_per_element}"
                )
            runner = self.runner_builder(
                suite.kernel, max_elements=suite.max_elements, seed=suite.seed
            )
            bytes_per_element = suite.bytes_per_element or runner.bytes_per_element
            request = BenchmarkRequest(
                suite.sizes,
                min_time_ns,
                warmup=suite.warmup,
                max_repetitions=suite.max_repetitions,
            )
            driver = BenchmarkDriver(runner, cancel_event=self.cancel_event)
            records = driver.run(request)
        except EnvelopeError as exc:
            logger.error("Suite %s could not run: %s", suite.name, exc)
            report = SuiteReport(
                name=suite.name,
                kernel=suite.kernel,
                min_time_ns=min_time_ns,
                bytes_per_element=max(suite.bytes_per_element or 0, 0),
                error=str(exc),
                duration_seconds=time.perf_counter() - start,
            )
            return SuiteResult(spec=suite, report=report)

        report = SuiteReport(
            name=suite.name,
            kernel=suite.kernel,
            min_time_ns=min_time_ns,
            bytes_per_element=bytes_per_element,
            records=records,
            duration_seconds=time.perf_counter() - start,
        )
        if report.failed_sizes:
            logger.warning(
                "Suite %s finished with %d failed size(s)", suite.name, report.failed_sizes
            )
        result = SuiteResult(spec=suite, report=report)
        if self.spec.json_summary_dir is not None:
            summary = build_summary(
                records,
                kernel=suite.kernel,
                min_time_ns=min_time_ns,
                bytes_per_element=bytes_per_element,
            )
            result.summary_path = write_summary(
                summary, self.spec.json_summary_dir / f"{_slug(suite.name)}.json"
            )
        return result


__all__ = [
    "BatchRunner",
    "BatchSpec",
    "SuiteResult",
    "SuiteSpec",
    "load_spec",
]
