"""CLI commands for procsampler."""

import click


@click.group()
@click.version_option(package_name="procsampler")
def main() -> None:
    """Sample memory and CPU usage of a process."""
    pass


@main.command()
@click.argument("pid", type=int)
@click.option(
    "--count",
    "-n",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of samples",
)
@click.option(
    "--interval", "-i", type=click.FloatRange(min=0.1), help="Seconds between samples [config]"
)
@click.option("--proc-root", type=click.Path(), help="Process information root [config]")
@click.option("--log", "log_to_file", is_flag=True, help="Also write JSON logs to the state dir")
def sample(
    pid: int, count: int, interval: float | None, proc_root: str | None, log_to_file: bool
) -> None:
    """Collect COUNT samples of PID and print them."""
    import time

    from procsampler import logging as plog
    from procsampler.config import Config
    from procsampler.pscmd import subprocess_runner
    from procsampler.sampler import ProcessSampler, new_process_store

    config = Config.load()
    cfg = config.sampler
    if log_to_file:
        plog.configure(config)
    else:
        plog.configure_quiet()
    if interval is None:
        interval = cfg.cycle_seconds
    elif round(interval * cfg.clock_ticks) < 1:
        raise click.BadParameter(
            f"{interval}s is less than one clock tick at {cfg.clock_ticks} ticks/s",
            param_hint="'--interval'",
        )

    store = new_process_store(cycle_seconds=interval, clock_ticks=cfg.clock_ticks)
    sampler = ProcessSampler(
        store,
        proc_root=proc_root or cfg.proc_root,
        runner=subprocess_runner(cfg.command_timeout),
        ps_command=cfg.ps_command,
    )
    plog.source_selected(sampler.select_source().name, pid)

    for index in range(1, count + 1):
        try:
            sampler.collect(pid)
        except Exception as e:
            plog.sample_failed(pid, str(e))
            raise SystemExit(1)
        plog.sample_collected(pid, index, store)
        if index < count:
            time.sleep(interval)


@main.group()
def config() -> None:
    """Show or create the config file."""
    pass


@config.command("show")
def config_show() -> None:
    """Print the effective configuration as TOML."""
    from procsampler.config import Config

    click.echo(Config.load().to_toml(), nl=False)


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(force: bool) -> None:
    """Write a default config file."""
    from procsampler import logging as plog
    from procsampler.config import Config

    cfg = Config()
    if cfg.config_path.exists() and not force:
        click.echo(f"Config already exists at {cfg.config_path} (use --force to overwrite)")
        raise SystemExit(1)
    cfg.save()
    plog.config_created(str(cfg.config_path))
