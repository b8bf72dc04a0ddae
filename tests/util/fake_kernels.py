"""Deterministic kernel runners for driver, batch, and CLI tests."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from kernbench.contracts.error import AllocationError, KernelExecutionError


@dataclass
class FixedCostRunner:
    """Reports a fixed elapsed time per call without doing any work.

    ``fail_after`` maps a size to the number of successful calls before the
    kernel starts raising; ``alloc_fail`` lists sizes whose allocation fails.
    """

    cost_ns: float | Callable[[int], Any] = 1_000_000.0
    name: str = "fake"
    bytes_per_element: int = 16
    fail_after: dict[int, int] = field(default_factory=dict)
    alloc_fail: set[int] = field(default_factory=set)
    release_fails: bool = False
    calls: Counter[int] = field(default_factory=Counter)
    allocated: list[int] = field(default_factory=list)
    released: list[int] = field(default_factory=list)

    def allocate_input(self, size: int) -> dict[str, int]:
        if size in self.alloc_fail:
            raise AllocationError(f"cannot allocate {size} elements", size=size)
        self.allocated.append(size)
        return {"size": size}

    def invoke(self, size: int, buffer: dict[str, int]) -> Any:
        assert buffer["size"] == size
        limit = self.fail_after.get(size)
        if limit is not None and self.calls[size] >= limit:
            self.calls[size] += 1
            raise KernelExecutionError(f"kernel failed at size {size}", size=size)
        self.calls[size] += 1
        if callable(self.cost_ns):
            return self.cost_ns(size)
        return self.cost_ns

    def release_input(self, buffer: dict[str, int]) -> None:
        self.released.append(buffer["size"])
        if self.release_fails:
            raise RuntimeError("release exploded")


def fake_builder(runner: FixedCostRunner) -> Callable[..., FixedCostRunner]:
    """Return a ``build_runner`` stand-in that hands out ``runner`` for any name."""

    def _build(name: str, *, max_elements: int = 0, seed: int = 0) -> FixedCostRunner:
        del max_elements, seed
        runner.name = name
        return runner

    return _build
