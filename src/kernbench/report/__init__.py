"""Presentation helpers: derived throughput and report rendering."""

from .markdown import (
    REPORT_TITLE,
    SuiteReport,
    clean_text,
    markdown_to_html,
    render_markdown,
    render_text_table,
    write_report,
)
from .throughput import (
    bytes_per_second,
    format_duration,
    format_ops,
    format_throughput,
    mb_per_second,
    ops_per_second,
)

__all__ = [
    "REPORT_TITLE",
    "SuiteReport",
    "bytes_per_second",
    "clean_text",
    "format_duration",
    "format_ops",
    "format_throughput",
    "markdown_to_html",
    "mb_per_second",
    "ops_per_second",
    "render_markdown",
    "render_text_table",
    "write_report",
]
