"""Summary persistence and validation helpers."""

from .summary import (
    SUMMARY_SCHEMA,
    BenchmarkSummary,
    SummaryRecord,
    build_summary,
    load_summary,
    write_summary,
)
from .validate_summary import load_default_schema, validate_document

__all__ = [
    "SUMMARY_SCHEMA",
    "BenchmarkSummary",
    "SummaryRecord",
    "build_summary",
    "load_default_schema",
    "load_summary",
    "validate_document",
    "write_summary",
]
