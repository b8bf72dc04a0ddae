"""
app.py

Command-line front end for the kernbench harness:
- run: adaptive per-size measurement of a registered kernel
- batch: several suites from a TOML spec with a combined report
- validate-summary: schema check for JSON summaries
- config-init / kernels: configuration and discovery helpers
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from kernbench.batch.runner import BatchRunner, load_spec
from kernbench.cli.commands import CLIContext, register_subcommands
from kernbench.config import (
    CONFIG_ENV_VAR,
    AppConfig,
    clone_config,
    format_app_config_to_toml,
    load_app_config,
)
from kernbench.contracts.error import BadInputError, IOErrorEnvelope, PolicyError, guard_cli
from kernbench.core.driver import BenchmarkDriver
from kernbench.core.models import BenchmarkRequest
from kernbench.io.summary import build_summary, write_summary
from kernbench.io.validate_summary import load_default_schema, validate_document
from kernbench.kernels import available_kernels, build_runner
from kernbench.report.markdown import SuiteReport, render_text_table, write_report

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("kernbench")

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    level: int = logging.INFO,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    logger.setLevel(level)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


# --------------------------------------------------------------------
# Benchmark entry points
# --------------------------------------------------------------------
def run_benchmark(
    *,
    kernel: str | None = None,
    sizes: tuple[int, ...] | None = None,
    min_time_ms: float | None = None,
    warmup: int | None = None,
    max_repetitions: int | None = None,
    bytes_per_element: int | None = None,
    seed: int | None = None,
    json_summary_out: str | None = None,
    report_out: str | None = None,
    html_report_out: str | None = None,
) -> dict[str, Any]:
    """Measure one kernel across sizes; flags override the loaded config."""

    cfg = clone_config(APP_CONFIG)
    bench = cfg.bench
    if kernel is not None:
        bench.kernel = kernel.strip().lower()
    if sizes is not None:
        bench.sizes = sizes
    if min_time_ms is not None:
        bench.min_time_ms = min_time_ms
    if warmup is not None:
        bench.warmup = warmup
    if max_repetitions is not None:
        bench.max_repetitions = max_repetitions
    if bytes_per_element is not None:
        cfg.report.bytes_per_element = bytes_per_element
    if seed is not None:
        bench.seed = seed

    request = BenchmarkRequest.from_millis(
        bench.sizes,
        bench.min_time_ms,
        warmup=bench.warmup,
        max_repetitions=bench.repetition_cap,
    )
    request.validate()
    cfg.validate()
    runner = build_runner(bench.kernel, max_elements=bench.max_elements, seed=bench.seed)
    bpe = cfg.report.bytes_per_element or runner.bytes_per_element

    logger.info(
        "Running %s over %d size(s), budget %.1f ms per size",
        bench.kernel,
        len(request.sizes),
        bench.min_time_ms,
    )
    records = BenchmarkDriver(runner).run(request)
    failed = sum(1 for record in records if not record.ok)
    if failed:
        logger.warning("%d of %d size(s) failed", failed, len(records))

    result: dict[str, Any] = {
        "kernel": bench.kernel,
        "min_time_ns": request.min_time_budget_ns,
        "bytes_per_element": bpe,
        "failed": failed,
        "records": [record.to_dict() for record in records],
        "table": render_text_table(records, bpe),
    }
    if json_summary_out:
        summary = build_summary(
            records,
            kernel=bench.kernel,
            min_time_ns=request.min_time_budget_ns,
            bytes_per_element=bpe,
        )
        result["json_summary"] = str(write_summary(summary, json_summary_out))
    if report_out or html_report_out:
        report_path = Path(report_out) if report_out else Path(str(html_report_out)).with_suffix(".md")
        suite = SuiteReport(
            name=bench.kernel,
            kernel=bench.kernel,
            min_time_ns=request.min_time_budget_ns,
            bytes_per_element=bpe,
            records=records,
        )
        write_report(
            [suite],
            report_path,
            html_report_path=Path(html_report_out) if html_report_out else None,
        )
        result["report"] = str(report_path)
        if html_report_out:
            result["html_report"] = str(html_report_out)
    return result


def run_batch(spec_path: str) -> dict[str, Any]:
    path = Path(spec_path).expanduser().resolve()
    spec = load_spec(path)
    results = BatchRunner(spec).run()
    suites = []
    for result in results:
        entry: dict[str, Any] = {
            "name": result.spec.name,
            "kernel": result.spec.kernel,
            "ok": result.ok,
            "failed_sizes": result.report.failed_sizes,
        }
        if result.report.error:
            entry["error"] = result.report.error
        if result.summary_path is not None:
            entry["json_summary"] = str(result.summary_path)
        suites.append(entry)
    payload: dict[str, Any] = {"report": str(spec.report_path), "suites": suites}
    if spec.html_report_path is not None:
        payload["html_report"] = str(spec.html_report_path)
    return payload


def validate_summary_file(path: str, schema_path: str | None = None) -> list[str]:
    summary_path = Path(path)
    try:
        document = json.loads(summary_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise BadInputError(f"Summary {summary_path} is not valid JSON: {exc}") from exc
    if schema_path:
        schema = json.loads(Path(schema_path).read_text(encoding="utf-8"))
    else:
        schema = load_default_schema()
    return validate_document(document, schema)


def write_config(outfile: str, *, force: bool = False) -> Path:
    out_path = Path(outfile).expanduser().resolve()
    if out_path.exists() and not force:
        raise PolicyError(
            f"Refusing to overwrite existing config {out_path}", hint="Pass --force to overwrite"
        )
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(format_app_config_to_toml(APP_CONFIG), encoding="utf-8")
    except OSError as exc:
        raise IOErrorEnvelope(f"Failed to write config {out_path}: {exc}") from exc
    return out_path


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description=(
            "Adaptive kernel micro-benchmark harness: per-size timing, throughput, "
            "reports, JSON summaries, and batch suites."
        )
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument("--verbose", action="store_true", help="Log per-size details at DEBUG level")
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help=f"Path to TOML config file (env: {CONFIG_ENV_VAR})",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        run_benchmark=run_benchmark,
        run_batch=run_batch,
        validate_summary=validate_summary_file,
        write_config=write_config,
        list_kernels=available_kernels,
        logger=logger,
        json_enabled=lambda: OUTPUT_JSON,
        guard=guard_cli,
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")

    def _load_config(_: argparse.Namespace) -> int:
        cfg_path = args.config or os.getenv(CONFIG_ENV_VAR)
        set_app_config(load_app_config(cfg_path))
        if cfg_path:
            logger.info("Loaded config from %s", cfg_path)
        return 0

    guard_cli(_load_config)(args)
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


if __name__ == "__main__":
    console_main()
