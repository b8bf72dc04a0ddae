from __future__ import annotations

import argparse
import json
import math
import sys
from collections.abc import Sequence
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator


def _default_schema_text() -> str:
    schema_resource = resources.files("kernbench.contracts") / "summary_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        return stream.read()


def _load_schema_text(custom_schema: Path | None) -> str:
    if custom_schema is None:
        return _default_schema_text()
    return custom_schema.read_text(encoding="utf-8")


def _record_problems(record: dict[str, Any], idx: int) -> list[str]:
    avg = record.get("avg_ns")
    if not isinstance(avg, int | float):
        return []
    problems: list[str] = []
    reps = record.get("repetitions", 0)
    if not isinstance(reps, int) or reps < 1:
        problems.append(f"records[{idx}]: successful record needs repetitions >= 1, got {reps!r}")
        return problems
    total = record.get("total_ns")
    if isinstance(total, int | float) and not math.isclose(avg * reps, total, rel_tol=1e-6, abs_tol=1e-6):
        problems.append(
            f"records[{idx}]: avg_ns * repetitions ({avg * reps}) does not match total_ns ({total})"
        )
    return problems


def validate_document(document: Any, schema: dict[str, Any]) -> list[str]:
    """Return a list of human-readable problems; empty means valid."""

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda err: list(err.path))
    problems = [f"{err.message} @ {list(err.path)}" for err in errors]
    if problems:
        return problems
    for idx, record in enumerate(document.get("records", [])):
        problems.extend(_record_problems(record, idx))
    return problems


def load_default_schema() -> dict[str, Any]:
    return json.loads(_default_schema_text())


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate a kernbench JSON summary against kernbench.summary.v1",
    )
    parser.add_argument("summary", type=Path, help="Path to the JSON summary file")
    parser.add_argument(
        "--schema",
        type=Path,
        default=None,
        help="Schema JSON path (default: bundled kernbench.summary.v1 schema)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _create_parser()
    args = parser.parse_args(argv)

    schema = json.loads(_load_schema_text(args.schema))
    try:
        document = json.loads(args.summary.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"[invalid] {args.summary}: not valid JSON ({exc})", file=sys.stderr)
        return 1

    problems = validate_document(document, schema)
    if problems:
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        print(f"Validation finished: {len(problems)} problem(s)", file=sys.stderr)
        return 1
    print("Validation finished: summary valid")
    return 0


def console_main() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(console_main())
