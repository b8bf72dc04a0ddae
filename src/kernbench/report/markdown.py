"""Markdown, HTML and plain-text renderings of benchmark results."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from html import escape
from pathlib import Path

from kernbench.core.models import MeasurementRecord

from .throughput import format_duration, format_ops, format_throughput, mb_per_second

logger = logging.getLogger(__name__)

REPORT_TITLE = "Kernel Benchmark Report"
_MAX_SUMMARY_ROWS = 500
_MAX_CELL_CHARS = 120


@dataclass
class SuiteReport:
    """Measurements for one kernel configuration, ready for rendering."""

    name: str
    kernel: str
    min_time_ns: float
    bytes_per_element: int
    records: list[MeasurementRecord] = field(default_factory=list)
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def failed_sizes(self) -> int:
        return sum(1 for record in self.records if not record.ok)

    def peak_mb_per_second(self) -> float | None:
        values = [
            mb_per_second(record.size, record.avg_duration_ns, self.bytes_per_element)
            for record in self.records
            if record.ok and record.avg_duration_ns
        ]
        return max(values) if values else None


def clean_text(value: str, *, max_chars: int = 4000) -> str:
    sanitized = []
    for ch in value:
        if ch in {"\n", "\t"} or " " <= ch <= "\ufffd":
            sanitized.append(ch)
    cleaned = "".join(sanitized)
    if len(cleaned) > max_chars:
        return cleaned[:max_chars] + "…"
    return cleaned


def _cell(value: str) -> str:
    return clean_text(value, max_chars=_MAX_CELL_CHARS).replace("|", "/").replace("\n", " ")


def _record_cells(record: MeasurementRecord, bytes_per_element: int) -> list[str]:
    if not record.ok or record.avg_duration_ns is None:
        return [str(record.size), "error", "-", "-", "-", _cell(record.error or "")]
    avg = record.avg_duration_ns
    return [
        str(record.size),
        format_duration(avg),
        format_ops(avg),
        format_throughput(record.size, avg, bytes_per_element),
        str(record.repetitions),
        "",
    ]


def render_text_table(records: Sequence[MeasurementRecord], bytes_per_element: int) -> str:
    """Fixed-width table for terminal output."""

    header = ["size", "time/op", "ops/s", "throughput", "reps", "error"]
    rows = [header] + [_record_cells(record, bytes_per_element) for record in records]
    widths = [max(len(row[idx]) for row in rows) for idx in range(len(header))]
    lines = []
    for row in rows:
        padded = [
            cell.rjust(widths[idx]) if idx < 5 else cell for idx, cell in enumerate(row)
        ]
        lines.append("  ".join(padded).rstrip())
    return "\n".join(lines)


def render_markdown(suites: Iterable[SuiteReport], *, title: str = REPORT_TITLE) -> str:
    suite_list = list(suites)
    lines = [
        f"# {title}",
        "",
        f"Generated: {time.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]

    lines.append("| Suite | Kernel | Budget | Sizes | Failed | Duration (s) | Peak MB/s |")
    lines.append("|---|---|---:|---:|---:|---:|---:|")
    for suite in suite_list:
        peak = suite.peak_mb_per_second()
        peak_fmt = f"{peak:,.2f}" if peak is not None else "-"
        failed = "all" if suite.error else str(suite.failed_sizes)
        lines.append(
            f"| {_cell(suite.name)} | {_cell(suite.kernel)} | "
            f"{format_duration(suite.min_time_ns)} | {len(suite.records)} | {failed} | "
            f"{suite.duration_seconds:.2f} | {peak_fmt} |"
        )
    lines.append("")

    ranked = [(suite, suite.peak_mb_per_second()) for suite in suite_list]
    ranked_ok = [(suite, peak) for suite, peak in ranked if peak is not None][:_MAX_SUMMARY_ROWS]
    if len(ranked_ok) > 1:
        lines.append("## Comparative Summary")
        lines.append("")
        lines.append("| Suite | Peak MB/s | Δ vs. max |")
        lines.append("|---|---:|---:|")
        best = max(peak for _, peak in ranked_ok)
        for suite, peak in sorted(ranked_ok, key=lambda item: item[1], reverse=True):
            delta = 0.0 if best <= 0 else (peak - best) / best * 100
            delta_fmt = "0.0%" if abs(delta) < 0.05 else f"{delta:+.1f}%"
            lines.append(f"| {_cell(suite.name)} | {peak:,.2f} | {delta_fmt} |")
        lines.append("")

    for suite in suite_list:
        lines.append(f"## {_cell(suite.name)}")
        lines.append("")
        if suite.error:
            lines.append(f"Suite failed: {_cell(suite.error)}")
            lines.append("")
            continue
        lines.append("| Size | Time/op | Ops/s | Throughput | Repetitions | Error |")
        lines.append("|---:|---:|---:|---:|---:|---|")
        for record in suite.records:
            lines.append("| " + " | ".join(_record_cells(record, suite.bytes_per_element)) + " |")
        lines.append("")

    return "\n".join(lines)


def markdown_to_html(markdown: str, *, title: str = REPORT_TITLE) -> str:
    body_lines: list[str] = []
    in_table = False
    header_row = True

    for raw_line in markdown.splitlines():
        line = raw_line.rstrip()
        if line.startswith("|") and line.endswith("|"):
            cells = [cell.strip() for cell in line.strip("|").split("|")]
            if all(cell.replace("-", "").replace(":", "").strip() == "" for cell in cells):
                continue
            if not in_table:
                body_lines.append("<table>")
                in_table = True
                header_row = True
            tag = "th" if header_row else "td"
            row = "".join(f"<{tag}>{escape(cell)}</{tag}>" for cell in cells)
            body_lines.append(f"<tr>{row}</tr>")
            header_row = False
            continue

        if in_table:
            body_lines.append("</table>")
            in_table = False
            header_row = True

        if line.startswith("# "):
            body_lines.append(f"<h1>{escape(line[2:])}</h1>")
        elif line.startswith("## "):
            body_lines.append(f"<h2>{escape(line[3:])}</h2>")
        elif line:
            body_lines.append(f"<p>{escape(line)}</p>")

    if in_table:
        body_lines.append("</table>")

    html_body = "\n".join(body_lines)
    style_rules = (
        "body{font-family:system-ui,Arial,sans-serif;margin:24px;}"
        "table{border-collapse:collapse;margin:16px 0;}"
        "td,th{border:1px solid #cbd5f5;padding:6px 10px;}"
        "td{font-variant-numeric:tabular-nums;}"
    )
    head = (
        "<!DOCTYPE html>"
        "<html><head><meta charset='utf-8'/>"
        f"<title>{escape(title)}</title>"
        f"<style>{style_rules}</style></head><body>"
    )
    return head + html_body + "</body></html>"


def write_report(
    suites: Iterable[SuiteReport],
    report_path: Path,
    *,
    html_report_path: Path | None = None,
    title: str = REPORT_TITLE,
) -> str:
    """Write the Markdown report (and optional HTML twin); return the Markdown."""

    markdown = render_markdown(suites, title=title)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(markdown, encoding="utf-8")
    logger.info("Wrote benchmark report to %s", report_path)
    if html_report_path is not None:
        html_report_path.parent.mkdir(parents=True, exist_ok=True)
        html_report_path.write_text(markdown_to_html(markdown, title=title), encoding="utf-8")
        logger.info("Wrote HTML report to %s", html_report_path)
    return markdown


__all__ = [
    "REPORT_TITLE",
    "SuiteReport",
    "clean_text",
    "markdown_to_html",
    "render_markdown",
    "render_text_table",
    "write_report",
]
