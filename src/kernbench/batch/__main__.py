"""Command-line entry point for the batch suite runner."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from .runner import BatchRunner, load_spec


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run kernbench suites from a TOML batch spec.")
    parser.add_argument("--spec", required=True, help="Path to the TOML batch specification.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    spec_path = Path(args.spec).expanduser().resolve()
    spec = load_spec(spec_path)
    results = BatchRunner(spec).run()
    return 0 if all(result.report.error is None for result in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
