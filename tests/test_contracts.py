from __future__ import annotations

import json

import pytest

from kernbench.contracts import (
    AllocationError,
    BadInputError,
    ErrorEnvelope,
    Exit,
    InvalidRequestError,
    InvariantError,
    IOErrorEnvelope,
    KernelError,
    KernelExecutionError,
    guard_cli,
)


def test_error_envelope_omits_empty_hint() -> None:
    assert json.loads(ErrorEnvelope("BadInput", "nope").to_json()) == {
        "error": "BadInput",
        "detail": "nope",
    }


@pytest.mark.parametrize(
    ("exc", "code", "label"),
    [
        (InvalidRequestError("sizes must be a non-empty sequence"), Exit.BAD_INPUT, "BadInput"),
        (InvariantError("record has both outcomes"), Exit.INVARIANT, "Invariant"),
        (IOErrorEnvelope("disk full"), Exit.IO, "IO"),
    ],
)
def test_guard_cli_maps_envelope_errors(
    exc: Exception, code: Exit, label: str, capsys: pytest.CaptureFixture[str]
) -> None:
    @guard_cli
    def handler() -> int:
        raise exc

    with pytest.raises(SystemExit) as excinfo:
        handler()
    assert excinfo.value.code == int(code)
    envelope = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert envelope["error"] == label
    assert envelope["detail"] == str(exc)


def test_kernel_errors_are_not_envelope_errors() -> None:
    assert issubclass(AllocationError, KernelError)
    assert issubclass(KernelExecutionError, KernelError)
    assert not issubclass(KernelError, BadInputError)
    assert KernelExecutionError("boom", size=64).size == 64
