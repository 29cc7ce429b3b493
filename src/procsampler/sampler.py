"""Process sampler: picks a data source per call and fills a MetricStore."""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from procsampler import procfs, pscmd
from procsampler.metrics import MetricStore, display_in_mb, display_percent, tick_percentage

log = structlog.get_logger()

MEMORY = "memory"
CPU = "cpu"


def new_process_store(
    *values: int | float,
    cycle_seconds: float = 15,
    clock_ticks: int = 100,
) -> MetricStore:
    """Create a store with the process metrics declared.

    Declaration order (used by fill): memory.rss, memory.vsz, cpu.user,
    cpu.system, cpu.total_user, cpu.total_system.
    """
    store = MetricStore(cycle_ticks=round(cycle_seconds * clock_ticks))
    store.declare_gauge(MEMORY, "rss", None, display_in_mb)
    store.declare_gauge(MEMORY, "vsz", None, display_in_mb)
    store.declare_counter(CPU, "user", tick_percentage, display_percent)
    store.declare_counter(CPU, "system", tick_percentage, display_percent)
    store.declare_counter(CPU, "total_user", tick_percentage, display_percent)
    store.declare_counter(CPU, "total_system", tick_percentage, display_percent)
    if values:
        store.fill(*values)
    return store


class ProcessSource(ABC):
    """Strategy for reading one process's resource usage into a store."""

    name: str

    @abstractmethod
    def collect(self, pid: int, store: MetricStore) -> None:
        """Read pid's usage and save it into store.

        Errors propagate unchanged. Metrics saved before a failure keep
        their new values.
        """


class StructuredSource(ProcessSource):
    """Reads /proc/<pid>/status and /proc/<pid>/stat."""

    name = "procfs"

    def __init__(self, root: Path) -> None:
        self.root = root

    def collect(self, pid: int, store: MetricStore) -> None:
        mem = procfs.read_memory(self.root, pid)
        if mem.rss is not None:
            store.save(MEMORY, "rss", mem.rss)
        if mem.vsz is not None:
            store.save(MEMORY, "vsz", mem.vsz)

        cpu = procfs.read_cpu(self.root, pid)
        store.save(CPU, "user", cpu.user)
        store.save(CPU, "system", cpu.system)
        store.save(CPU, "total_user", cpu.total_user)
        store.save(CPU, "total_system", cpu.total_system)


class CommandFallbackSource(ProcessSource):
    """Reads ps output. Children's CPU time is not available here."""

    name = "ps"

    def __init__(self, runner: pscmd.CommandRunner, command: str = "ps") -> None:
        self.runner = runner
        self.command = command

    def collect(self, pid: int, store: MetricStore) -> None:
        reading = pscmd.read_ps(pid, self.runner, self.command)
        store.save(MEMORY, "rss", reading.rss)
        store.save(MEMORY, "vsz", reading.vsz)

        if reading.user_time is None:
            return
        user_ticks = reading.user_time.ticks
        store.save(CPU, "user", user_ticks)
        if reading.total_time is not None:
            store.save(CPU, "system", reading.total_time.ticks - user_ticks)


class ProcessSampler:
    """Samples a process into a store, choosing procfs or ps on each call.

    The choice is made by checking whether proc_root exists, so the same
    sampler works on hosts with and without /proc.

    Args:
        store: Store to write into. Reuse it across calls to keep counter deltas.
        proc_root: Structured process-information root.
        runner: Command runner for the ps fallback.
        ps_command: Name or path of the ps executable.
    """

    def __init__(
        self,
        store: MetricStore,
        proc_root: Path | str = "/proc",
        runner: pscmd.CommandRunner | None = None,
        ps_command: str = "ps",
    ) -> None:
        self.store = store
        self.proc_root = Path(proc_root)
        self.structured = StructuredSource(self.proc_root)
        self.fallback = CommandFallbackSource(runner or pscmd.subprocess_runner(), ps_command)

    def select_source(self) -> ProcessSource:
        """Return the source to use on this host right now."""
        if self.proc_root.exists():
            return self.structured
        return self.fallback

    def collect(self, pid: int) -> None:
        """Take one sample of pid. Blocks on file or subprocess I/O."""
        source = self.select_source()
        log.debug("source_selected", source=source.name, pid=pid)
        try:
            source.collect(pid, self.store)
        except Exception as e:
            log.warning("collect_failed", source=source.name, pid=pid, error=str(e))
            raise

    async def collect_async(self, pid: int) -> None:
        """Run collect in the default executor (file and subprocess I/O block)."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.collect, pid)
