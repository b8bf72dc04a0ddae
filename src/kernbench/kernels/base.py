"""Kernel runner protocol consumed by the benchmark driver."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KernelRunner(Protocol):
    """Executes one kernel call per ``invoke`` and reports how long it took.

    Implementations raise :class:`~kernbench.contracts.error.AllocationError`
    from ``allocate_input`` and
    :class:`~kernbench.contracts.error.KernelExecutionError` from ``invoke``.
    ``release_input`` is best-effort and should not raise.
    """

    name: str
    bytes_per_element: int

    def allocate_input(self, size: int) -> Any: ...

    def invoke(self, size: int, buffer: Any) -> float: ...

    def release_input(self, buffer: Any) -> None: ...


__all__ = ["KernelRunner"]
