import logging
import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

SLOW_MODE = os.getenv("KERNBENCH_SLOW_TESTS") == "1"


@pytest.fixture(autouse=True)
def _reset_kernbench_logger() -> Iterator[None]:
    """CLI tests install handlers on the package logger; drop them afterwards."""

    logger = logging.getLogger("kernbench")
    before = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in before:
            handler.close()
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture(autouse=True)
def _clear_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("KERNBENCH_") and key != "KERNBENCH_SLOW_TESTS":
            monkeypatch.delenv(key, raising=False)


def pytest_configure(config: pytest.Config) -> None:
    """Ensure custom marks remain registered even when pytest.ini isn't picked up."""
    config.addinivalue_line("markers", "slow: exercises real kernels with real time budgets")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    if SLOW_MODE:
        return

    skip_slow = pytest.mark.skip(reason="set KERNBENCH_SLOW_TESTS=1 to run slow tests")
    for item in items:
        if item.get_closest_marker("slow") is not None:
            item.add_marker(skip_slow)
