from __future__ import annotations

import numpy as np
import pytest

from kernbench.contracts.error import AllocationError, BadInputError, KernelExecutionError
from kernbench.core import run
from kernbench.kernels import (
    ComplexFFTRunner,
    FFTInput,
    InverseFFTRunner,
    KernelRunner,
    RealFFTRunner,
    RoundTripFFTRunner,
    available_kernels,
    build_runner,
)
from kernbench.kernels.fft import _NumpyTransformRunner


def test_registry_lists_bundled_kernels() -> None:
    assert available_kernels() == ["fft", "fft-roundtrip", "ifft", "rfft"]
    assert isinstance(build_runner(" FFT "), ComplexFFTRunner)
    assert isinstance(build_runner("IFFT"), InverseFFTRunner)
    assert isinstance(build_runner("fft-roundtrip"), RoundTripFFTRunner)
    assert isinstance(build_runner("rfft"), RealFFTRunner)


def test_unknown_kernel_is_bad_input() -> None:
    with pytest.raises(BadInputError) as excinfo:
        build_runner("dct")
    assert "fft, fft-roundtrip, ifft, rfft" in (excinfo.value.hint or "")


@pytest.mark.parametrize(
    ("runner", "dtype", "bpe"),
    [
        (ComplexFFTRunner(), np.complex64, 16),
        (InverseFFTRunner(), np.complex64, 16),
        (RoundTripFFTRunner(), np.complex64, 32),
        (RealFFTRunner(), np.float32, 8),
    ],
)
def test_runner_satisfies_protocol(runner: KernelRunner, dtype: type, bpe: int) -> None:
    assert isinstance(runner, KernelRunner)
    assert runner.bytes_per_element == bpe
    buffer = runner.allocate_input(64)
    assert buffer.src.dtype == dtype
    assert buffer.src.shape == (64,)
    elapsed = runner.invoke(64, buffer)
    assert elapsed >= 0
    runner.release_input(buffer)


def test_allocation_limit_raises_allocation_error() -> None:
    runner = ComplexFFTRunner(max_elements=128)
    with pytest.raises(AllocationError) as excinfo:
        runner.allocate_input(256)
    assert excinfo.value.size == 256


def test_mismatched_buffer_is_execution_error() -> None:
    runner = RealFFTRunner()
    buffer = runner.allocate_input(32)
    with pytest.raises(KernelExecutionError):
        runner.invoke(64, buffer)


def test_seeded_inputs_are_reproducible() -> None:
    first = ComplexFFTRunner(seed=7).allocate_input(16)
    second = ComplexFFTRunner(seed=7).allocate_input(16)
    np.testing.assert_array_equal(first.src, second.src)
    assert isinstance(first, FFTInput)


def test_build_runner_threads_seed() -> None:
    built = build_runner("fft", seed=7).allocate_input(16)
    direct = ComplexFFTRunner(seed=7).allocate_input(16)
    other = build_runner("fft", seed=8).allocate_input(16)
    np.testing.assert_array_equal(built.src, direct.src)
    assert not np.array_equal(built.src, other.src)


def test_inverse_input_is_a_spectrum() -> None:
    rng = np.random.default_rng(3)
    real = rng.standard_normal(32, dtype=np.float32)
    imag = rng.standard_normal(32, dtype=np.float32)
    buffer = InverseFFTRunner(seed=3).allocate_input(32)
    np.testing.assert_allclose(buffer.src, np.fft.fft(real + 1j * imag), rtol=1e-4, atol=1e-4)


def test_round_trip_recovers_input() -> None:
    runner = RoundTripFFTRunner(seed=5)
    buffer = runner.allocate_input(128)
    assert np.allclose(runner._transform(buffer.src), buffer.src, atol=1e-5)


def test_transform_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        _NumpyTransformRunner()  # type: ignore[abstract]


def test_driver_with_real_kernel_isolates_oversized_input() -> None:
    runner = ComplexFFTRunner(max_elements=1024)
    records = run([16, 4096, 64], 50_000, runner)
    assert [r.size for r in records] == [16, 4096, 64]
    assert [r.ok for r in records] == [True, False, True]
    assert all(r.repetitions >= 1 for r in records if r.ok)
    assert runner.live_buffers == 0


@pytest.mark.slow
def test_default_budget_on_real_kernel() -> None:
    records = run([1024, 8192], 500_000_000, RealFFTRunner(), warmup=1)
    assert all(record.ok for record in records)
    assert all(record.total_ns >= 500_000_000 for record in records)
