"""Batch execution of several benchmark suites from a TOML spec."""

from .runner import BatchRunner, BatchSpec, SuiteResult, SuiteSpec, load_spec

__all__ = ["BatchRunner", "BatchSpec", "SuiteResult", "SuiteSpec", "load_spec"]
