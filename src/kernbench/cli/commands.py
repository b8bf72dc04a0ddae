from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from kernbench.config import parse_sizes
from kernbench.contracts.error import Exit


@dataclass
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    run_benchmark: Callable[..., dict[str, Any]]
    run_batch: Callable[[str], dict[str, Any]]
    validate_summary: Callable[..., list[str]]
    write_config: Callable[..., Path]
    list_kernels: Callable[[], list[str]]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: str | None,
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "run",
        "Measure a kernel across input sizes with an adaptive repetition loop.",
        lambda parser: _configure_run(parser, ctx),
    )
    _register(
        "batch",
        "Run several benchmark suites from a TOML spec and write a combined report.",
        lambda parser: _configure_batch(parser, ctx),
    )
    _register(
        "validate-summary",
        "Validate a JSON summary against the bundled schema.",
        lambda parser: _configure_validate_summary(parser, ctx),
    )
    _register(
        "config-init",
        "Write the effective configuration as a TOML file.",
        lambda parser: _configure_config_init(parser, ctx),
    )
    _register(
        "kernels",
        "List registered kernels.",
        lambda parser: _configure_kernels(parser, ctx),
    )

    return handlers


def _configure_run(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--kernel", default=None, help="Kernel name (default: config bench.kernel)")
    parser.add_argument(
        "--sizes",
        default=None,
        help="Comma-separated input sizes, e.g. 16,32,64",
    )
    parser.add_argument(
        "--min-time-ms",
        type=float,
        default=None,
        help="Minimum accumulated time per size in milliseconds",
    )
    parser.add_argument("--warmup", type=int, default=None, help="Untimed calls per size")
    parser.add_argument(
        "--max-repetitions",
        type=int,
        default=None,
        help="Upper bound on timed calls per size (0 disables the cap)",
    )
    parser.add_argument(
        "--bytes-per-element",
        type=int,
        default=None,
        help="Bytes per element for throughput (0 uses the kernel default)",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed for the generated kernel input"
    )
    parser.add_argument("--json-summary-out", default=None, help="Write a JSON summary here")
    parser.add_argument("--report", default=None, help="Write a Markdown report here")
    parser.add_argument("--html-report", default=None, help="Also render the report as HTML")

    def handler(args: argparse.Namespace) -> int:
        result = ctx.run_benchmark(
            kernel=args.kernel,
            sizes=parse_sizes(args.sizes) if args.sizes is not None else None,
            min_time_ms=args.min_time_ms,
            warmup=args.warmup,
            max_repetitions=args.max_repetitions,
            bytes_per_element=args.bytes_per_element,
            seed=args.seed,
            json_summary_out=args.json_summary_out,
            report_out=args.report,
            html_report_out=args.html_report,
        )
        table = result.pop("table")
        ctx.emit_success("run", text=table, data=result)
        return int(Exit.OK)

    return handler


def _configure_batch(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--spec", required=True, help="Path to the batch TOML spec")

    def handler(args: argparse.Namespace) -> int:
        result = ctx.run_batch(args.spec)
        failed = [suite["name"] for suite in result["suites"] if "error" in suite]
        text = f"Batch report written to {result['report']}"
        if failed:
            text += f" ({len(failed)} suite(s) could not run: {', '.join(failed)})"
        ctx.emit_success("batch", text=text, data=result)
        return int(Exit.OK) if not failed else 1

    return handler


def _configure_validate_summary(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("file", help="Path to the JSON summary")
    parser.add_argument("--schema", default=None, help="Optional schema JSON path")

    def handler(args: argparse.Namespace) -> int:
        problems = ctx.validate_summary(args.file, args.schema)
        if problems:
            for problem in problems:
                ctx.logger.error("%s: %s", args.file, problem)
            if ctx.json_enabled():
                ctx.emit_success(
                    "validate-summary",
                    data={"ok": False, "file": args.file, "problems": problems},
                )
            return 1
        ctx.emit_success(
            "validate-summary",
            text=f"{args.file}: summary valid",
            data={"file": args.file, "problems": []},
        )
        return int(Exit.OK)

    return handler


def _configure_config_init(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--out", default="kernbench.toml", help="Output TOML path")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    def handler(args: argparse.Namespace) -> int:
        path = ctx.write_config(args.out, force=args.force)
        ctx.emit_success(
            "config-init", text=f"Wrote config to {path}", data={"path": str(path)}
        )
        return int(Exit.OK)

    return handler


def _configure_kernels(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    def handler(args: argparse.Namespace) -> int:
        names = ctx.list_kernels()
        ctx.emit_success("kernels", text="\n".join(names), data={"kernels": names})
        return int(Exit.OK)

    return handler


__all__ = ["CLIContext", "register_subcommands"]
