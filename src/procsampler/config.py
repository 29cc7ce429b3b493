"""Configuration system for procsampler."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

VALID_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class SamplerConfig:
    """Process sampling configuration."""

    proc_root: str = "/proc"  # Structured root; ps is used when it is missing
    ps_command: str = "ps"
    ps_timeout: float = 0.0  # Seconds; 0 disables the timeout
    cycle_seconds: float = 15.0  # Sampling cycle, the CPU percentage window
    clock_ticks: int = 100  # Kernel ticks per second (CLK_TCK)

    @property
    def cycle_ticks(self) -> int:
        """Sampling cycle in kernel ticks."""
        return round(self.cycle_seconds * self.clock_ticks)

    @property
    def command_timeout(self) -> float | None:
        return self.ps_timeout if self.ps_timeout > 0 else None


@dataclass
class LoggingConfig:
    """Log output configuration."""

    level: str = "info"
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "procsampler"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "procsampler"

    @property
    def log_path(self) -> Path:
        return self.state_dir / "sampler.log"

    def to_toml(self) -> str:
        doc = tomlkit.document()
        for name in ("sampler", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())
        return tomlkit.dumps(doc)

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_toml())

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            sampler=_load_sampler_config(data.get("sampler", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _number(name: str, value: object, *, integer: bool = False) -> int | float:
    """Return a TOML numeric value, raising ValueError for anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if integer and not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value) if integer else float(value)


def _load_sampler_config(data: dict) -> SamplerConfig:
    """Load sampler config from TOML data, using dataclass defaults for missing fields."""
    d = SamplerConfig()

    cycle_seconds = _number("cycle_seconds", data.get("cycle_seconds", d.cycle_seconds))
    clock_ticks = _number("clock_ticks", data.get("clock_ticks", d.clock_ticks), integer=True)
    ps_timeout = _number("ps_timeout", data.get("ps_timeout", d.ps_timeout))

    if cycle_seconds <= 0:
        raise ValueError(f"cycle_seconds must be > 0, got {cycle_seconds}")
    if clock_ticks <= 0:
        raise ValueError(f"clock_ticks must be > 0, got {clock_ticks}")
    if ps_timeout < 0:
        raise ValueError(f"ps_timeout must be >= 0, got {ps_timeout}")

    config = SamplerConfig(
        proc_root=str(data.get("proc_root", d.proc_root)),
        ps_command=str(data.get("ps_command", d.ps_command)),
        ps_timeout=ps_timeout,
        cycle_seconds=cycle_seconds,
        clock_ticks=clock_ticks,
    )
    if config.cycle_ticks < 1:
        raise ValueError(
            f"cycle_seconds * clock_ticks must be at least 1 tick, "
            f"got {cycle_seconds} * {clock_ticks}"
        )
    return config


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data."""
    d = LoggingConfig()
    level = str(data.get("level", d.level)).lower()
    if level not in VALID_LEVELS:
        raise ValueError(f"Invalid logging level: {level!r}. Must be one of {VALID_LEVELS}")
    max_bytes = _number("log_max_bytes", data.get("log_max_bytes", d.log_max_bytes), integer=True)
    backups = _number(
        "log_backup_count", data.get("log_backup_count", d.log_backup_count), integer=True
    )
    if max_bytes < 0 or backups < 0:
        raise ValueError("log_max_bytes and log_backup_count must be >= 0")
    return LoggingConfig(level=level, log_max_bytes=max_bytes, log_backup_count=backups)
