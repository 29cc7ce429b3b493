"""Console and structured logging.

Console output uses Rich markup. JSON file output via structlog stays
separate (machine-parseable, no colors).
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from procsampler.config import Config
    from procsampler.metrics import MetricStore

_console = Console(highlight=False)


class Icon:
    """Icon vocabulary for console output."""

    OK = "[bold green]✓[/]"
    FAIL = "[bold red]✗[/]"
    SAMPLE = "[cyan]●[/]"


_LEVEL_STYLES = {
    "info": "[bright_blue]\\[info][/]",
    "warn": "[yellow]\\[warn][/]",
    "error": "[bold red]\\[err][/] ",
}


def log(level: str, msg: str, icon: str = "") -> None:
    """Print a log message with timestamp and level.

    Args:
        level: Log level (info, warn, error)
        msg: Message to print (can include Rich markup)
        icon: Optional icon to show after level (e.g., Icon.OK)
    """
    ts = datetime.now().strftime("%H:%M:%S")
    lvl = _LEVEL_STYLES.get(level, f"[{level}]")
    icon_part = f" {icon}" if icon else ""
    _console.print(f"[dim]{ts}[/] {lvl}{icon_part} {msg}")


def info(msg: str, icon: str = "") -> None:
    log("info", msg, icon)


def warn(msg: str, icon: str = "") -> None:
    log("warn", msg, icon)


def error(msg: str, icon: str = "") -> None:
    log("error", msg, icon)


# ─────────────────────────────────────────────────────────────────────────────
# Domain Helpers
# ─────────────────────────────────────────────────────────────────────────────


def source_selected(source: str, pid: int) -> None:
    """Log which data source a sample will use."""
    info(f"Sampling PID [cyan]{pid}[/] via [bold]{source}[/]")


def sample_collected(pid: int, index: int, store: MetricStore) -> None:
    """Log one sample's display values."""
    parts = [
        f"{family}.{name}=[cyan]{store.display(family, name)}[/]"
        for family in store.families()
        for name in store.metrics(family)
    ]
    info(f"[dim]#{index}[/] PID {pid}: {', '.join(parts)}", Icon.SAMPLE)


def sample_failed(pid: int, error_msg: str) -> None:
    """Log sample collection failed."""
    error(f"Sample of PID {pid} failed: {escape(error_msg)}", Icon.FAIL)


def config_created(path: str) -> None:
    info(f"Created config at [cyan]{path}[/]", Icon.OK)


# ─────────────────────────────────────────────────────────────────────────────
# Structlog Configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_quiet() -> None:
    """Drop library log events below ERROR.

    Used when only the console helpers should report, so a failed sample is
    not printed a second time by structlog's default stdout logger.
    """
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.ERROR))


def configure(config: Config) -> None:
    """Configure structlog to write JSON lines to a rotating log file.

    Args:
        config: Application config with paths and logging settings
    """
    config.state_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, config.logging.level.upper())

    file_handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.logging.log_max_bytes,
        backupCount=config.logging.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
            ],
        )
    )

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(level)
    stdlib_root.handlers.clear()
    stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
