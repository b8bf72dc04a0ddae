"""Typed configuration loader for kernbench."""

from __future__ import annotations

import math
import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .kernels import DEFAULT_MAX_ELEMENTS, DEFAULT_SEED, available_kernels

DEFAULT_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256, 512, 1024, 2048, 4096, 8192)
CONFIG_ENV_VAR = "KERNBENCH_CONFIG"


def _require_int(value: Any, label: str, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadInputError(f"{label} must be an integer, got {value!r}")
    if value < minimum:
        raise BadInputError(f"{label} must be >= {minimum}, got {value}")


def parse_sizes(raw: str) -> tuple[int, ...]:
    """Parse ``"16,32, 64"`` into a tuple of ints."""

    parts = [part.strip() for part in raw.split(",")]
    try:
        return tuple(int(part) for part in parts if part)
    except ValueError as exc:
        raise BadInputError(
            f"Invalid size list {raw!r}", hint="Use comma-separated integers, e.g. 16,32,64"
        ) from exc


@dataclass
class BenchPolicy:
    kernel: str = "fft"
    sizes: tuple[int, ...] = DEFAULT_SIZES
    min_time_ms: float = 500.0
    warmup: int = 1
    max_repetitions: int = 0
    max_elements: int = DEFAULT_MAX_ELEMENTS
    seed: int = DEFAULT_SEED

    def validate(self) -> None:
        if not isinstance(self.kernel, str) or self.kernel not in available_kernels():
            raise BadInputError(
                f"Unknown kernel: {self.kernel!r}",
                hint=f"bench.kernel must be one of: {', '.join(available_kernels())}",
            )
        if not self.sizes:
            raise BadInputError("bench.sizes must not be empty")
        for size in self.sizes:
            if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
                raise BadInputError(f"bench.sizes entries must be positive integers, got {size!r}")
        if isinstance(self.min_time_ms, bool) or not isinstance(self.min_time_ms, int | float):
            raise BadInputError(f"bench.min_time_ms must be a number, got {self.min_time_ms!r}")
        if not math.isfinite(self.min_time_ms) or self.min_time_ms <= 0:
            raise BadInputError("bench.min_time_ms must be > 0")
        _require_int(self.warmup, "bench.warmup", minimum=0)
        # 0 disables the cap
        _require_int(self.max_repetitions, "bench.max_repetitions", minimum=0)
        _require_int(self.max_elements, "bench.max_elements", minimum=1)
        _require_int(self.seed, "bench.seed", minimum=0)

    @property
    def repetition_cap(self) -> int | None:
        return self.max_repetitions or None


@dataclass
class ReportPolicy:
    bytes_per_element: int = 0

    def validate(self) -> None:
        # 0 uses the kernel default
        _require_int(self.bytes_per_element, "report.bytes_per_element", minimum=0)


@dataclass
class AppConfig:
    bench: BenchPolicy = field(default_factory=BenchPolicy)
    report: ReportPolicy = field(default_factory=ReportPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        bench_data = data.get("bench", {})
        if not isinstance(bench_data, dict):
            raise BadInputError("[bench] section must be a table")
        bench_kwargs = dict(bench_data)
        if "sizes" in bench_kwargs:
            raw_sizes = bench_kwargs["sizes"]
            if isinstance(raw_sizes, str):
                bench_kwargs["sizes"] = parse_sizes(raw_sizes)
            elif isinstance(raw_sizes, list):
                bench_kwargs["sizes"] = tuple(raw_sizes)
            else:
                raise BadInputError("bench.sizes must be an array of integers")
        if "min_time_ms" in bench_kwargs:
            try:
                bench_kwargs["min_time_ms"] = float(bench_kwargs["min_time_ms"])
            except (TypeError, ValueError) as exc:
                raise BadInputError("bench.min_time_ms must be a number") from exc
        try:
            bench = BenchPolicy(**bench_kwargs)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [bench]: {exc}") from exc

        report_data = data.get("report", {})
        if not isinstance(report_data, dict):
            raise BadInputError("[report] section must be a table")
        try:
            report = ReportPolicy(**report_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [report]: {exc}") from exc
        return cls(bench=bench, report=report)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        bench_mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "KERNBENCH_KERNEL": ("kernel", lambda raw: raw.strip().lower()),
            "KERNBENCH_SIZES": ("sizes", parse_sizes),
            "KERNBENCH_MIN_TIME_MS": ("min_time_ms", float),
            "KERNBENCH_WARMUP": ("warmup", int),
            "KERNBENCH_MAX_REPETITIONS": ("max_repetitions", int),
            "KERNBENCH_MAX_ELEMENTS": ("max_elements", int),
            "KERNBENCH_SEED": ("seed", int),
        }
        for key, (attr, caster) in bench_mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except (ValueError, BadInputError) as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.bench, attr, value)

        raw_bpe = env.get("KERNBENCH_BYTES_PER_ELEMENT")
        if raw_bpe is not None:
            try:
                self.report.bytes_per_element = int(raw_bpe)
            except ValueError as exc:
                raise BadInputError(
                    f"Invalid env override KERNBENCH_BYTES_PER_ELEMENT={raw_bpe!r}"
                ) from exc

    def validate(self) -> None:
        self.bench.validate()
        self.report.validate()


def _format_float(value: float) -> str:
    text = f"{value:.6f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if "." not in text:
        text += ".0"
    return text


def format_app_config_to_toml(cfg: AppConfig) -> str:
    bench = cfg.bench
    sizes = ", ".join(str(size) for size in bench.sizes)
    lines = [
        "[bench]",
        f'kernel = "{bench.kernel}"',
        f"sizes = [{sizes}]",
        f"min_time_ms = {_format_float(bench.min_time_ms)}",
        f"warmup = {bench.warmup}",
        f"max_repetitions = {bench.max_repetitions}",
        f"max_elements = {bench.max_elements}",
        f"seed = {bench.seed}",
        "",
        "[report]",
        f"bytes_per_element = {cfg.report.bytes_per_element}",
        "",
    ]
    return "\n".join(lines)


def clone_config(cfg: AppConfig) -> AppConfig:
    return AppConfig(bench=replace(cfg.bench), report=replace(cfg.report))


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "DEFAULT_SIZES",
    "AppConfig",
    "BenchPolicy",
    "ReportPolicy",
    "clone_config",
    "format_app_config_to_toml",
    "load_app_config",
    "parse_sizes",
]
