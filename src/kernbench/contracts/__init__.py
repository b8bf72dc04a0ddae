"""Contract helpers for kernbench."""

from .error import (
    AllocationError,
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvalidRequestError,
    InvariantError,
    IOErrorEnvelope,
    KernelError,
    KernelExecutionError,
    PolicyError,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvalidRequestError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "KernelError",
    "AllocationError",
    "KernelExecutionError",
    "guard_cli",
    "die",
]
