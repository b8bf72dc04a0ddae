"""FFT kernel runners backed by ``numpy.fft``."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from kernbench.contracts.error import AllocationError, KernelExecutionError

DEFAULT_MAX_ELEMENTS = 1 << 24
DEFAULT_SEED = 1


@dataclass
class FFTInput:
    """Pre-allocated source buffer for one size."""

    size: int
    src: np.ndarray


class _NumpyTransformRunner(ABC):
    name = "numpy"
    bytes_per_element = 16

    def __init__(
        self, *, max_elements: int = DEFAULT_MAX_ELEMENTS, seed: int = DEFAULT_SEED
    ) -> None:
        if max_elements <= 0:
            raise ValueError("max_elements must be > 0")
        self.max_elements = max_elements
        self._rng = np.random.default_rng(seed)
        self.live_buffers = 0

    @abstractmethod
    def _fill(self, size: int) -> np.ndarray:
        """Build the seeded input the kernel reads on every call."""

    @abstractmethod
    def _transform(self, src: np.ndarray) -> np.ndarray: ...

    def allocate_input(self, size: int) -> FFTInput:
        if size > self.max_elements:
            raise AllocationError(
                f"size {size} exceeds the {self.name} limit of {self.max_elements} elements",
                size=size,
            )
        try:
            src = self._fill(size)
        except MemoryError as exc:
            raise AllocationError(f"unable to allocate {size} elements: {exc}", size=size) from exc
        self.live_buffers += 1
        return FFTInput(size=size, src=src)

    def invoke(self, size: int, buffer: FFTInput) -> int:
        if buffer.size != size or buffer.src.shape[0] != size:
            raise KernelExecutionError(
                f"buffer length {buffer.src.shape[0]} does not match size {size}", size=size
            )
        start = time.perf_counter_ns()
        try:
            self._transform(buffer.src)
        except (ValueError, MemoryError) as exc:
            raise KernelExecutionError(f"{self.name} failed for size {size}: {exc}", size=size) from exc
        return time.perf_counter_ns() - start

    def release_input(self, buffer: FFTInput) -> None:
        self.live_buffers = max(0, self.live_buffers - 1)


class ComplexFFTRunner(_NumpyTransformRunner):
    """Forward complex-to-complex FFT over complex64 input."""

    name = "fft"
    # 8 bytes input + 8 bytes output per complex64 element
    bytes_per_element = 16

    def _fill(self, size: int) -> np.ndarray:
        real = self._rng.standard_normal(size, dtype=np.float32)
        imag = self._rng.standard_normal(size, dtype=np.float32)
        return (real + 1j * imag).astype(np.complex64)

    def _transform(self, src: np.ndarray) -> np.ndarray:
        return np.fft.fft(src)


class InverseFFTRunner(_NumpyTransformRunner):
    """Inverse complex FFT over a pre-computed complex64 spectrum."""

    name = "ifft"
    bytes_per_element = 16

    def _fill(self, size: int) -> np.ndarray:
        real = self._rng.standard_normal(size, dtype=np.float32)
        imag = self._rng.standard_normal(size, dtype=np.float32)
        return np.fft.fft(real + 1j * imag).astype(np.complex64)

    def _transform(self, src: np.ndarray) -> np.ndarray:
        return np.fft.ifft(src)


class RoundTripFFTRunner(ComplexFFTRunner):
    """Forward FFT followed by the inverse on the result."""

    name = "fft-roundtrip"
    # two passes, each reading and writing one complex64 per element
    bytes_per_element = 32

    def _transform(self, src: np.ndarray) -> np.ndarray:
        return np.fft.ifft(np.fft.fft(src))


class RealFFTRunner(_NumpyTransformRunner):
    """Forward real-to-complex FFT over float32 input."""

    name = "rfft"
    # 4 bytes input + n/2+1 complex64 outputs, ~4 bytes per input element
    bytes_per_element = 8

    def _fill(self, size: int) -> np.ndarray:
        return self._rng.standard_normal(size, dtype=np.float32)

    def _transform(self, src: np.ndarray) -> np.ndarray:
        return np.fft.rfft(src)


__all__ = [
    "DEFAULT_MAX_ELEMENTS",
    "DEFAULT_SEED",
    "ComplexFFTRunner",
    "FFTInput",
    "InverseFFTRunner",
    "RealFFTRunner",
    "RoundTripFFTRunner",
]
