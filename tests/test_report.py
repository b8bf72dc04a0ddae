from __future__ import annotations

from pathlib import Path

import pytest

from kernbench.core.models import MeasurementRecord
from kernbench.report import (
    SuiteReport,
    markdown_to_html,
    render_markdown,
    render_text_table,
    write_report,
)
from kernbench.report.throughput import (
    format_duration,
    format_ops,
    format_throughput,
    mb_per_second,
    ops_per_second,
)


def _ok(size: int, avg_ns: float, reps: int = 10) -> MeasurementRecord:
    return MeasurementRecord.success(size, total_ns=avg_ns * reps, repetitions=reps)


@pytest.mark.parametrize(
    ("ns", "expected"),
    [
        (512, "512 ns"),
        (1_500, "1.50 µs"),
        (2_500_000, "2.50 ms"),
        (3_000_000_000, "3.00 s"),
    ],
)
def test_format_duration_units(ns: float, expected: str) -> None:
    assert format_duration(ns) == expected


@pytest.mark.parametrize(
    ("ns", "expected"),
    [
        (100, "10.00 M/s"),
        (100_000, "10.00 k/s"),
        (10_000_000, "100 /s"),
        (0, "-"),
    ],
)
def test_format_ops_units(ns: float, expected: str) -> None:
    assert format_ops(ns) == expected


def test_throughput_uses_bytes_per_element() -> None:
    # 1024 complex64 elements in and out every microsecond.
    assert mb_per_second(1024, 1_000, 16) == pytest.approx(16_384.0)
    assert format_throughput(1024, 1_000, 16) == "16384.00 MB/s"
    assert format_throughput(1024, 0, 16) == "-"
    assert ops_per_second(0) == float("inf")


def test_text_table_lists_successes_and_failures() -> None:
    records = [_ok(16, 1_000, reps=3), MeasurementRecord.failure(32, "out of memory")]
    table = render_text_table(records, 16).splitlines()
    assert table[0].split() == ["size", "time/op", "ops/s", "throughput", "reps", "error"]
    assert "1.00 µs" in table[1]
    assert table[1].split()[-1] == "3"
    assert table[2].endswith("out of memory")
    assert "error" in table[2]


def test_markdown_report_has_overview_and_comparison() -> None:
    fast = SuiteReport("fft-fast", "fft", 1e6, 16, records=[_ok(1024, 1_000)])
    slow = SuiteReport(
        "fft-slow",
        "fft",
        1e6,
        16,
        records=[_ok(1024, 2_000), MeasurementRecord.failure(2048, "bad | pipe")],
    )
    broken = SuiteReport("dct", "dct", 1e6, 0, error="Unknown kernel: 'dct'")
    markdown = render_markdown([fast, slow, broken], title="Nightly")

    assert markdown.startswith("# Nightly")
    assert "| fft-slow | fft | 1.00 ms | 2 | 1 |" in markdown
    assert "| dct | dct | 1.00 ms | 0 | all |" in markdown
    assert "## Comparative Summary" in markdown
    assert "| fft-fast | 16,384.00 | 0.0% |" in markdown
    assert "| fft-slow | 8,192.00 | -50.0% |" in markdown
    assert "Suite failed: Unknown kernel: 'dct'" in markdown
    assert "bad / pipe" in markdown


def test_single_suite_skips_comparison() -> None:
    markdown = render_markdown([SuiteReport("only", "fft", 1e6, 16, records=[_ok(16, 10)])])
    assert "Comparative Summary" not in markdown


def test_html_escapes_content() -> None:
    html = markdown_to_html("# <Report>\n\n| a | b |\n|---|---|\n| <x> | 1 |\n")
    assert "<h1>&lt;Report&gt;</h1>" in html
    assert "<th>a</th>" in html
    assert "<td>&lt;x&gt;</td>" in html
    assert html.endswith("</body></html>")


def test_write_report_creates_both_files(tmp_path: Path) -> None:
    suite = SuiteReport("fft", "fft", 5e8, 16, records=[_ok(16, 1_000)])
    md_path = tmp_path / "out" / "report.md"
    html_path = tmp_path / "out" / "report.html"
    markdown = write_report([suite], md_path, html_report_path=html_path)
    assert md_path.read_text(encoding="utf-8") == markdown
    assert "<table>" in html_path.read_text(encoding="utf-8")
