"""Fallback reader built on the ``ps`` command.

Used on hosts without /proc (macOS, FreeBSD). ``ps`` is asked for four
columns: rss and vsz in KB, then total and user CPU time as ``MM:SS.CC``.
"""

import re
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple

import structlog

log = structlog.get_logger()

KIB = 1024
PS_COLUMNS = "rss,vsz,time,utime"

# minutes:seconds.centiseconds
CPU_TIME_PATTERN = re.compile(r"(\d+):(\d\d)\.(\d\d)")

# argv -> combined stdout text
CommandRunner = Callable[[list[str]], str]


class PsOutputError(ValueError):
    """ps produced output that does not have the expected shape."""


class DurationParseError(ValueError):
    """A CPU time field did not match ``MM:SS.CC``."""


class CpuTime(NamedTuple):
    """A parsed ``MM:SS.CC`` duration."""

    minutes: int
    seconds: int
    centiseconds: int

    @property
    def ticks(self) -> int:
        """Duration in 1/100 second ticks."""
        return self.minutes * 60 * 100 + self.seconds * 100 + self.centiseconds


@dataclass
class PsReading:
    """One parsed ps data line.

    rss/vsz are in bytes. CPU times are None when the field failed to parse.
    """

    rss: int
    vsz: int
    total_time: CpuTime | None
    user_time: CpuTime | None


def parse_cpu_time(text: str) -> CpuTime:
    """Parse ``MM:SS.CC``.

    Raises:
        DurationParseError: If text does not match the pattern.
    """
    match = CPU_TIME_PATTERN.fullmatch(text)
    if match is None:
        raise DurationParseError(f"Unrecognized CPU time: {text!r}")
    minutes, seconds, centiseconds = (int(g) for g in match.groups())
    return CpuTime(minutes, seconds, centiseconds)


def _soft_cpu_time(text: str, field_name: str, line: str) -> CpuTime | None:
    try:
        return parse_cpu_time(text)
    except DurationParseError:
        log.warning("cpu_time_unparsed", field=field_name, value=text, line=line)
        return None


def parse_ps_output(output: str) -> PsReading:
    """Parse ps output: one header line, one data line of four fields.

    Memory fields are required; CPU time fields are optional.

    Raises:
        PsOutputError: If the output lacks a data line or has the wrong field count.
        ValueError: If a memory field is not an integer.
    """
    lines = output.splitlines()
    if len(lines) < 2:
        raise PsOutputError(f"Expected header and data line from ps, got: {output!r}")

    line = lines[1]
    fields = line.split()
    if len(fields) != 4:
        raise PsOutputError(f"Expected 4 fields from ps, got {len(fields)}: {line!r}")

    return PsReading(
        rss=KIB * int(fields[0]),
        vsz=KIB * int(fields[1]),
        total_time=_soft_cpu_time(fields[2], "time", line),
        user_time=_soft_cpu_time(fields[3], "utime", line),
    )


def ps_argv(pid: int, command: str = "ps") -> list[str]:
    return [command, "So", PS_COLUMNS, "-p", str(pid)]


def subprocess_runner(timeout: float | None = None) -> CommandRunner:
    """Build a runner that executes argv and returns its output.

    Raises (from the returned runner):
        subprocess.CalledProcessError: On non-zero exit (e.g. unknown pid).
        subprocess.TimeoutExpired: If timeout is set and exceeded.
        FileNotFoundError: If the command is not installed.
    """

    def run(argv: list[str]) -> str:
        result = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=True,
            timeout=timeout,
        )
        return result.stdout

    return run


def read_ps(pid: int, runner: CommandRunner, command: str = "ps") -> PsReading:
    """Run ps for pid and parse the result."""
    return parse_ps_output(runner(ps_argv(pid, command)))
