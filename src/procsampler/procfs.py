"""Per-process readers for the /proc filesystem.

Reads ``<root>/<pid>/status`` for memory and ``<root>/<pid>/stat`` for CPU
ticks. The root is injectable so fixture trees can stand in for /proc.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

KIB = 1024

# 0-based field positions in /proc/<pid>/stat
STAT_UTIME = 13
STAT_STIME = 14
STAT_CUTIME = 15
STAT_CSTIME = 16


class StatusLabel(Enum):
    """Recognized /proc/<pid>/status labels and the reading they fill."""

    VmRSS = "rss"
    VmSize = "vsz"


_LABELS = {f"{label.name}:": label for label in StatusLabel}


@dataclass
class MemoryReading:
    """Memory usage in bytes. None when the label was absent (kernel threads)."""

    rss: int | None = None
    vsz: int | None = None


@dataclass
class CpuReading:
    """Cumulative CPU time in kernel ticks."""

    user: int
    system: int
    total_user: int  # Reaped children, user
    total_system: int  # Reaped children, kernel


def pid_dir(root: Path, pid: int) -> Path:
    return root / str(pid)


def parse_status(text: str) -> MemoryReading:
    """Parse a status document into a MemoryReading.

    Raises:
        ValueError: If a recognized label carries a non-integer value.
    """
    reading = MemoryReading()
    for line in text.splitlines():
        items = line.split()
        if not items:
            continue
        label = _LABELS.get(items[0])
        if label is None:
            continue
        if len(items) < 2:
            raise ValueError(f"Missing value for {label.name} in status line: {line!r}")
        setattr(reading, label.value, KIB * int(items[1]))
    return reading


def parse_stat(text: str) -> CpuReading:
    """Parse a stat document into a CpuReading.

    Fields are taken by fixed position from the whitespace-split record.

    Raises:
        ValueError: If the record is too short or a tick field is not an integer.
    """
    fields = text.split()
    if len(fields) <= STAT_CSTIME:
        raise ValueError(f"stat record has {len(fields)} fields, expected > {STAT_CSTIME}")
    return CpuReading(
        user=int(fields[STAT_UTIME]),
        system=int(fields[STAT_STIME]),
        total_user=int(fields[STAT_CUTIME]),
        total_system=int(fields[STAT_CSTIME]),
    )


def read_memory(root: Path, pid: int) -> MemoryReading:
    """Read and parse ``<root>/<pid>/status``."""
    return parse_status((pid_dir(root, pid) / "status").read_text())


def read_cpu(root: Path, pid: int) -> CpuReading:
    """Read and parse ``<root>/<pid>/stat``."""
    return parse_stat((pid_dir(root, pid) / "stat").read_text())
