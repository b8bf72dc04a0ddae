"""JSON summary documents for CI and downstream dashboards."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from kernbench.contracts.error import BadInputError, IOErrorEnvelope
from kernbench.core.models import MeasurementRecord
from kernbench.report.throughput import mb_per_second, ops_per_second

logger = logging.getLogger(__name__)

SUMMARY_SCHEMA = "kernbench.summary.v1"


class SummaryRecord(BaseModel):
    """One size's outcome plus derived throughput."""

    size: int = Field(..., gt=0, description="Input size (elements) that was measured.")
    avg_ns: float | None = Field(default=None, ge=0, description="Mean duration per call.")
    repetitions: int = Field(default=0, ge=0, description="Timed invocations used for the mean.")
    total_ns: float = Field(default=0.0, ge=0, description="Cumulative timed duration.")
    ops_per_second: float | None = Field(default=None, ge=0)
    mb_per_second: float | None = Field(default=None, ge=0)
    error: str | None = Field(default=None, description="Failure message when the size failed.")

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> SummaryRecord:
        if (self.avg_ns is None) == (self.error is None):
            raise ValueError("record needs exactly one of avg_ns or error")
        return self

    @classmethod
    def from_record(cls, record: MeasurementRecord, bytes_per_element: int) -> SummaryRecord:
        if not record.ok or record.avg_duration_ns is None:
            return cls(size=record.size, error=record.error)
        avg = record.avg_duration_ns
        return cls(
            size=record.size,
            avg_ns=avg,
            repetitions=record.repetitions,
            total_ns=record.total_ns,
            ops_per_second=ops_per_second(avg) if avg > 0 else None,
            mb_per_second=mb_per_second(record.size, avg, bytes_per_element) if avg > 0 else None,
        )

    def to_record(self) -> MeasurementRecord:
        if self.error is not None:
            return MeasurementRecord.failure(self.size, self.error)
        return MeasurementRecord(
            size=self.size,
            avg_duration_ns=self.avg_ns,
            repetitions=self.repetitions,
            total_ns=self.total_ns,
        )


class BenchmarkSummary(BaseModel):
    """Top-level summary document written by ``kernbench run --json-summary-out``."""

    schema_id: str = Field(default=SUMMARY_SCHEMA, alias="schema")
    kernel: str
    min_time_ns: float = Field(..., gt=0)
    bytes_per_element: int = Field(..., ge=0)
    generated_at: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(timespec="seconds")
    )
    records: list[SummaryRecord]

    model_config = {"populate_by_name": True}

    @field_validator("schema_id")
    @classmethod
    def _known_schema(cls, value: str) -> str:
        if value != SUMMARY_SCHEMA:
            raise ValueError(f"unsupported summary schema {value!r}")
        return value

    @property
    def failed(self) -> int:
        return sum(1 for record in self.records if record.error is not None)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def build_summary(
    records: Sequence[MeasurementRecord],
    *,
    kernel: str,
    min_time_ns: float,
    bytes_per_element: int,
) -> BenchmarkSummary:
    return BenchmarkSummary(
        kernel=kernel,
        min_time_ns=min_time_ns,
        bytes_per_element=bytes_per_element,
        records=[SummaryRecord.from_record(record, bytes_per_element) for record in records],
    )


def write_summary(summary: BenchmarkSummary, path: str | Path) -> Path:
    """Atomically write ``summary`` as JSON."""

    out_path = Path(path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=out_path.name, suffix=".tmp", dir=out_path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(summary.to_json())
            handle.write("\n")
        os.replace(tmp_name, out_path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise IOErrorEnvelope(f"Failed to write summary {out_path}: {exc}") from exc
    logger.info("Wrote JSON summary to %s", out_path)
    return out_path


def load_summary(path: str | Path) -> BenchmarkSummary:
    in_path = Path(path)
    try:
        payload = json.loads(in_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise BadInputError(f"Summary {in_path} is not valid JSON: {exc}") from exc
    try:
        return BenchmarkSummary.model_validate(payload)
    except ValidationError as exc:
        raise BadInputError(f"Summary {in_path} failed validation: {exc}") from exc


__all__ = [
    "SUMMARY_SCHEMA",
    "BenchmarkSummary",
    "SummaryRecord",
    "build_summary",
    "load_summary",
    "write_summary",
]
