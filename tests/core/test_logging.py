"""
Tests for channel-aware logging configuration.
"""

from glossa.core.logging import (
    LogChannel,
    LogLevel,
    RunLogger,
    configure_logging,
    get_current_config,
    get_logger,
)


def test_configure_from_arguments():
    configure_logging(level="verbose", format="json", channels=["pipeline", "merge"], force=True)
    config = get_current_config()
    assert config["level"] == "VERBOSE"
    assert config["format"] == "json"
    assert config["channels"] == ["MERGE", "PIPELINE"]
    configure_logging(level="info", format="console", force=True)


def test_configure_from_environment(monkeypatch):
    monkeypatch.setenv("GLOSSA_LOG_LEVEL", "silent")
    monkeypatch.setenv("GLOSSA_LOG_CHANNELS", "provider,bogus")
    configure_logging(force=True)
    config = get_current_config()
    assert config["level"] == "SILENT"
    assert config["channels"] == ["PROVIDER"]
    monkeypatch.delenv("GLOSSA_LOG_LEVEL")
    monkeypatch.delenv("GLOSSA_LOG_CHANNELS")
    configure_logging(force=True)


def test_level_parsing():
    assert LogLevel.from_string("DEBUG") == LogLevel.DEBUG
    assert LogLevel.from_string("warning") == LogLevel.INFO
    assert LogChannel.from_string("resolve") == LogChannel.RESOLVE
    assert LogChannel.from_string("nope") is None


def test_run_logger_returns_durations():
    run_log = RunLogger("run-1")
    run_log.extension_start("a")
    assert run_log.extension_end("a", nodes=3) >= 0
    assert run_log.extension_error("never-started", "ValueError", "x") >= 0
    assert run_log.run_complete("completed") >= 0


def test_channel_logger_bind():
    logger = get_logger("execute").bind(extension_id="a")
    logger.info("bound_event", detail=1)
    assert logger.channel == LogChannel.EXECUTE
