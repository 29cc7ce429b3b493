"""Shared test fixtures for procsampler."""

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from procsampler.metrics import MetricStore
from procsampler.sampler import new_process_store

FIXTURES = Path(__file__).parent / "fixtures"

PS_HEADER = "  RSS      VSZ      TIME     UTIME"


@pytest.fixture
def proc_root() -> Path:
    """First-pass fixture process tree."""
    return FIXTURES / "proc"


@pytest.fixture
def proc2_root() -> Path:
    """Second-pass fixture process tree (same pids, later tick counts)."""
    return FIXTURES / "proc2"


@pytest.fixture
def missing_root(tmp_path: Path) -> Path:
    """A process root that does not exist, forcing the ps fallback."""
    return tmp_path / "no-proc"


@pytest.fixture
def store() -> MetricStore:
    return new_process_store()


def ps_output(rss: str, vsz: str, time: str, utime: str) -> str:
    """Build ps output with a header and one data line."""
    return f"{PS_HEADER}\n {rss:>6} {vsz:>8} {time:>9} {utime:>9}\n"


class FakePs:
    """Command runner that replays canned ps outputs and records argv."""

    def __init__(self, *outputs: str) -> None:
        self.outputs = list(outputs)
        self.calls: list[list[str]] = []

    def __call__(self, argv: list[str]) -> str:
        self.calls.append(argv)
        return self.outputs.pop(0)


def failing_ps(argv: list[str]) -> str:
    """Runner that behaves like ps given an unknown pid."""
    raise subprocess.CalledProcessError(1, argv, output=PS_HEADER + "\n")


@pytest.fixture
def fake_ps() -> Callable[..., FakePs]:
    return FakePs


@pytest.fixture
def ps_text() -> Callable[[str, str, str, str], str]:
    return ps_output


@pytest.fixture
def ps_unknown_pid() -> Callable[[list[str]], str]:
    return failing_ps


@pytest.fixture
def clean_logging():
    """Undo structlog and root logger changes made by logging.configure()."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
