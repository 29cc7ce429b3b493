"""Tests for configuration system."""

import pytest

from procsampler.config import Config, LoggingConfig, SamplerConfig


def test_sampler_config_defaults():
    """SamplerConfig has correct defaults."""
    config = SamplerConfig()
    assert config.proc_root == "/proc"
    assert config.ps_command == "ps"
    assert config.cycle_seconds == 15.0
    assert config.clock_ticks == 100
    assert config.cycle_ticks == 1500
    assert config.command_timeout is None


def test_command_timeout_when_set():
    assert SamplerConfig(ps_timeout=2.5).command_timeout == 2.5


def test_logging_config_defaults():
    config = LoggingConfig()
    assert config.level == "info"
    assert config.log_backup_count == 3


def test_config_paths():
    """Config provides correct data paths."""
    config = Config()
    assert "procsampler" in str(config.config_dir)
    assert config.config_path.name == "config.toml"
    assert config.log_path.parent == config.state_dir


def test_load_missing_file_returns_defaults(tmp_path):
    config = Config.load(tmp_path / "missing.toml")
    assert config == Config()


def test_save_load_preserves_values(tmp_path):
    """Config.save() writes values Config.load() reads back."""
    path = tmp_path / "nested" / "config.toml"
    config = Config()
    config.sampler.proc_root = "/host/proc"
    config.sampler.cycle_seconds = 30.0
    config.logging.level = "debug"
    config.save(path)

    content = path.read_text()
    assert 'proc_root = "/host/proc"' in content
    assert "[logging]" in content

    loaded = Config.load(path)
    assert loaded.sampler.proc_root == "/host/proc"
    assert loaded.sampler.cycle_ticks == 3000
    assert loaded.logging.level == "debug"


def test_load_partial_file_uses_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[sampler]\nps_command = "/bin/ps"\n')
    config = Config.load(path)
    assert config.sampler.ps_command == "/bin/ps"
    assert config.sampler.proc_root == "/proc"
    assert config.logging == LoggingConfig()


def test_load_malformed_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[sampler\nproc_root = ")
    with pytest.raises(ValueError, match="Failed to parse config file"):
        Config.load(path)


@pytest.mark.parametrize(
    "body",
    [
        "[sampler]\ncycle_seconds = 0\n",
        "[sampler]\nclock_ticks = -1\n",
        "[sampler]\nps_timeout = -0.5\n",
        '[sampler]\ncycle_seconds = "15"\n',
        "[sampler]\ncycle_seconds = true\n",
        "[sampler]\nclock_ticks = 0.5\n",
        "[sampler]\ncycle_seconds = 0.001\n",
        "[sampler]\ncycle_seconds = 0.4\nclock_ticks = 1\n",
        '[logging]\nlevel = "loud"\n',
        '[logging]\nlog_max_bytes = "5MB"\n',
    ],
)
def test_load_rejects_invalid_values(tmp_path, body):
    path = tmp_path / "config.toml"
    path.write_text(body)
    with pytest.raises(ValueError):
        Config.load(path)


def test_load_accepts_integer_cycle_seconds(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[sampler]\ncycle_seconds = 5\n")
    config = Config.load(path)
    assert config.sampler.cycle_seconds == 5.0
    assert config.sampler.cycle_ticks == 500
