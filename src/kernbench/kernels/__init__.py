"""Kernel runners and the name registry used by the CLI and batch specs."""

from __future__ import annotations

from collections.abc import Callable

from kernbench.contracts.error import BadInputError

from .base import KernelRunner
from .fft import (
    DEFAULT_MAX_ELEMENTS,
    DEFAULT_SEED,
    ComplexFFTRunner,
    FFTInput,
    InverseFFTRunner,
    RealFFTRunner,
    RoundTripFFTRunner,
)

RunnerFactory = Callable[..., KernelRunner]

KERNELS: dict[str, RunnerFactory] = {
    "fft": ComplexFFTRunner,
    "ifft": InverseFFTRunner,
    "fft-roundtrip": RoundTripFFTRunner,
    "rfft": RealFFTRunner,
}


def available_kernels() -> list[str]:
    return sorted(KERNELS)


def build_runner(
    name: str, *, max_elements: int = DEFAULT_MAX_ELEMENTS, seed: int = DEFAULT_SEED
) -> KernelRunner:
    """Instantiate the runner registered under ``name``."""

    key = (name or "").strip().lower()
    factory = KERNELS.get(key)
    if factory is None:
        raise BadInputError(
            f"Unknown kernel: {name!r}",
            hint=f"Choose one of: {', '.join(available_kernels())}",
        )
    return factory(max_elements=max_elements, seed=seed)


__all__ = [
    "DEFAULT_MAX_ELEMENTS",
    "DEFAULT_SEED",
    "KERNELS",
    "ComplexFFTRunner",
    "FFTInput",
    "InverseFFTRunner",
    "KernelRunner",
    "RealFFTRunner",
    "RoundTripFFTRunner",
    "RunnerFactory",
    "available_kernels",
    "build_runner",
]
