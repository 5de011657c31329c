from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

import pytest

from overlay_engine.runtime import telemetry


class FakeConfig:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def __getattr__(self, name: str):
        def record(value: Any) -> None:
            self.calls.append((name, value))

        return record


class FakeLogger:
    def __init__(self) -> None:
        self.records: List[Tuple[str, str, Dict[str, str]]] = []
        self.context: Dict[str, str] = {}
        self.profiled: List[str] = []
        self.components: List[str] = []

    def add_context(self, key: str, value: str) -> None:
        self.context[key] = value

    def remove_context(self, key: str) -> None:
        self.context.pop(key, None)

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        self.profiled.append(name)
        yield

    @contextmanager
    def track_component(self, name: str) -> Iterator[None]:
        self.components.append(name)
        yield

    def info_with(self, message: str, pairs) -> None:
        self.records.append(("info", message, dict(pairs)))

    def warning_with(self, message: str, pairs) -> None:
        self.records.append(("warning", message, dict(pairs)))

    def error_with(self, message: str, pairs) -> None:
        self.records.append(("error", message, dict(pairs)))


def make_logger(monkeypatch: pytest.MonkeyPatch) -> FakeLogger:
    logger = FakeLogger()
    monkeypatch.setattr(telemetry, "get_logger", lambda name=None: logger)
    return logger


def test_settings_follow_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OVERLAY_ENGINE_LOG_LEVEL", "debug")
    monkeypatch.setenv("OVERLAY_ENGINE_DISABLE_CONSOLE", "yes")
    monkeypatch.setenv("OVERLAY_ENGINE_LOG_BUFFERED", "1")
    monkeypatch.setenv("OVERLAY_ENGINE_LOG_BUFFER_SIZE", "64")

    settings = telemetry.TelemetrySettings.from_env()

    assert settings.level == "DEBUG"
    assert not settings.console
    assert settings.buffer_size == 64
    assert settings.logger_name == "overlay_engine"


def test_build_config_applies_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    config = FakeConfig()

    class FakeTelelog:
        Config = staticmethod(lambda: config)

    monkeypatch.setattr(telemetry, "tl", FakeTelelog)
    settings = telemetry.TelemetrySettings(
        level="WARNING", console=False, json=True, log_file="engine.log", buffer_size=16
    )

    assert telemetry.build_config(settings) is config
    assert config.calls == [
        ("with_min_level", "WARNING"),
        ("with_console_output", False),
        ("with_json_format", True),
        ("with_file_output", "engine.log"),
        ("with_buffering", True),
        ("with_buffer_size", 16),
        ("with_profiling", True),
    ]


def test_record_event_uses_structured_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = make_logger(monkeypatch)

    telemetry.record_event("commit.delta", level="warning", data={"records": 3})

    assert logger.records == [
        ("warning", "event::commit.delta", {"event": "commit.delta", "records": "3"})
    ]


def test_span_tracks_component_and_clears_context(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = make_logger(monkeypatch)

    with telemetry.span("operation::commit", component="operations", metadata={"force": True}) as handle:
        assert logger.context == {"force": "True"}
        handle.cancel("stop requested")

    assert logger.profiled == ["operation::commit"]
    assert logger.components == ["operations"]
    assert logger.context == {}
    level, message, payload = logger.records[0]
    assert (level, message) == ("warning", "span::cancel")
    assert payload["reason"] == "stop requested"
    assert payload["component"] == "operations"


def test_span_reports_failure_and_reraises(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = make_logger(monkeypatch)

    with pytest.raises(RuntimeError):
        with telemetry.span("buffer::commit", component=True):
            raise RuntimeError("disk full")

    assert logger.components == ["buffer::commit"]
    assert logger.records[-1][:2] == ("error", "span::fail")
    assert logger.records[-1][2]["reason"] == "disk full"
