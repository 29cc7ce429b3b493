"""Tests for console helpers and structlog configuration."""

import json
import logging
from unittest.mock import patch

import pytest
import structlog

from procsampler import logging as plog
from procsampler.config import Config
from procsampler.sampler import new_process_store


pytestmark = pytest.mark.usefixtures("clean_logging")


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    with patch.object(Config, "state_dir", tmp_path / "state"):
        yield cfg


def test_configure_writes_json_lines(config):
    plog.configure(config)
    structlog.get_logger().info("sample_taken", pid=42)
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = config.log_path.read_text().splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "sample_taken"
    assert record["pid"] == 42
    assert record["level"] == "info"
    assert "ts" in record


def test_configure_respects_level(config):
    config.logging.level = "warning"
    plog.configure(config)
    structlog.get_logger().info("too_quiet")
    structlog.get_logger().warning("loud_enough")
    for handler in logging.getLogger().handlers:
        handler.flush()

    events = [json.loads(line)["event"] for line in config.log_path.read_text().splitlines()]
    assert events == ["loud_enough"]


def test_sample_collected_prints_every_metric(capsys):
    store = new_process_store(1024 * 1024, 2048 * 1024, 12, 3)
    plog.sample_collected(4242, 1, store)
    out = capsys.readouterr().out
    assert "PID 4242" in out
    assert "memory.rss=1.0m" in out
    assert "cpu.user=12%" in out
    assert "cpu.total_system=0%" in out


def test_sample_failed(capsys):
    plog.sample_failed(7, "No such file")
    out = capsys.readouterr().out
    assert "Sample of PID 7 failed: No such file" in out


def test_configure_quiet_drops_warnings(capsys):
    plog.configure_quiet()
    structlog.get_logger().warning("collect_failed", pid=1)
    structlog.get_logger().error("still_shown")
    out = capsys.readouterr().out
    assert "collect_failed" not in out
    assert "still_shown" in out
