from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from kernbench.contracts.error import BadInputError
from kernbench.core.models import MeasurementRecord
from kernbench.io import (
    SUMMARY_SCHEMA,
    BenchmarkSummary,
    SummaryRecord,
    build_summary,
    load_default_schema,
    load_summary,
    validate_document,
    write_summary,
)
from kernbench.io import validate_summary


def _records() -> list[MeasurementRecord]:
    return [
        MeasurementRecord.success(1024, total_ns=4_000.0, repetitions=4),
        MeasurementRecord.failure(2048, "allocation failed"),
    ]


def test_build_summary_derives_throughput() -> None:
    summary = build_summary(_records(), kernel="fft", min_time_ns=1e6, bytes_per_element=16)
    ok, failed = summary.records
    assert ok.avg_ns == pytest.approx(1_000.0)
    assert ok.ops_per_second == pytest.approx(1e6)
    assert ok.mb_per_second == pytest.approx(16_384.0)
    assert failed.error == "allocation failed"
    assert failed.avg_ns is None and failed.mb_per_second is None
    assert summary.failed == 1


def test_summary_json_uses_schema_alias() -> None:
    summary = build_summary(_records(), kernel="fft", min_time_ns=1e6, bytes_per_element=16)
    payload = json.loads(summary.to_json())
    assert payload["schema"] == SUMMARY_SCHEMA
    assert "schema_id" not in payload
    assert validate_document(payload, load_default_schema()) == []


def test_write_and_load_summary(tmp_path: Path) -> None:
    summary = build_summary(_records(), kernel="rfft", min_time_ns=5e8, bytes_per_element=8)
    path = write_summary(summary, tmp_path / "nested" / "summary.json")
    assert path.exists()
    assert not list(path.parent.glob("*.tmp"))

    loaded = load_summary(path)
    assert loaded.kernel == "rfft"
    assert [record.to_record() for record in loaded.records] == _records()


def test_load_summary_rejects_bad_documents(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(BadInputError, match="not valid JSON"):
        load_summary(path)

    path.write_text(json.dumps({"schema": "other.v2", "kernel": "fft"}), encoding="utf-8")
    with pytest.raises(BadInputError, match="failed validation"):
        load_summary(path)


def test_summary_record_requires_one_outcome() -> None:
    with pytest.raises(ValidationError):
        SummaryRecord(size=16)
    with pytest.raises(ValidationError):
        SummaryRecord(size=16, avg_ns=1.0, error="both")


def test_summary_model_rejects_unknown_schema() -> None:
    with pytest.raises(ValidationError):
        BenchmarkSummary(
            schema="kernbench.summary.v0",
            kernel="fft",
            min_time_ns=1.0,
            bytes_per_element=0,
            records=[],
        )


def _document() -> dict[str, object]:
    summary = build_summary(_records(), kernel="fft", min_time_ns=1e6, bytes_per_element=16)
    return json.loads(summary.to_json())


def test_validator_flags_schema_violations() -> None:
    document = _document()
    document["records"][0]["error"] = "also failed"  # type: ignore[index]
    problems = validate_document(document, load_default_schema())
    assert problems
    assert any("records" in problem for problem in problems)


def test_validator_flags_inconsistent_totals() -> None:
    document = _document()
    document["records"][0]["total_ns"] = 1.0  # type: ignore[index]
    problems = validate_document(document, load_default_schema())
    assert problems == [
        "records[0]: avg_ns * repetitions (4000.0) does not match total_ns (1.0)"
    ]


def test_validator_cli_exit_codes(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = tmp_path / "good.json"
    good.write_text(json.dumps(_document()), encoding="utf-8")
    assert validate_summary.main([str(good)]) == 0
    assert "summary valid" in capsys.readouterr().out

    bad = tmp_path / "bad.json"
    document = _document()
    document.pop("kernel")
    bad.write_text(json.dumps(document), encoding="utf-8")
    assert validate_summary.main([str(bad)]) == 1
    assert "'kernel' is a required property" in capsys.readouterr().err

    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")
    assert validate_summary.main([str(broken)]) == 1
    assert "not valid JSON" in capsys.readouterr().err
