"""Telemetry for the engine, built directly on telelog.

Modules only use four entry points: ``configure`` to (re)build the telelog
configuration, ``get_logger`` for a cached logger, ``record_event`` for
structured ``event::<name>`` records and ``span`` to profile a block while
tracking it as a component.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

from .config import env_flag, env_value

tl = cast(Any, telelog)


@dataclass(frozen=True, slots=True)
class TelemetrySettings:
    """Logger options read from ``OVERLAY_ENGINE_*`` variables."""

    logger_name: str = "overlay_engine"
    level: str = "INFO"
    console: bool = True
    colored: bool = True
    json: bool = False
    log_file: str = ""
    buffer_size: Optional[int] = None

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        buffer_size = None
        if env_flag("LOG_BUFFERED", False):
            buffer_size = int(env_value("LOG_BUFFER_SIZE") or "2048")
        return cls(
            logger_name=env_value("LOGGER") or "overlay_engine",
            level=(env_value("LOG_LEVEL") or "INFO").upper(),
            console=not env_flag("DISABLE_CONSOLE", False),
            colored=not env_flag("NO_COLOR", False),
            json=env_flag("LOG_JSON", False),
            log_file=env_value("LOG_FILE") or "",
            buffer_size=buffer_size,
        )


def build_config(settings: TelemetrySettings) -> Any:
    config = tl.Config()
    config.with_min_level(settings.level)
    config.with_console_output(settings.console)
    if settings.console:
        config.with_colored_output(settings.colored)
    if settings.json:
        config.with_json_format(True)
    if settings.log_file:
        config.with_file_output(settings.log_file)
    if settings.buffer_size is not None:
        config.with_buffering(True)
        config.with_buffer_size(settings.buffer_size)
    config.with_profiling(True)
    return config


_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None
_ACTIVE_SETTINGS: Optional[TelemetrySettings] = None


def configure(
    *, config: Optional[Any] = None, settings: Optional[TelemetrySettings] = None
) -> None:
    """Adopt ``config`` as-is, or build one from ``settings`` (default: env).

    Loggers handed out earlier keep their old configuration; the cache is
    cleared so later ``get_logger`` calls pick up the new one.
    """

    global _ACTIVE_CONFIG, _ACTIVE_SETTINGS
    _ACTIVE_SETTINGS = settings or TelemetrySettings.from_env()
    _ACTIVE_CONFIG = config if config is not None else build_config(_ACTIVE_SETTINGS)
    _LOGGER_CACHE.clear()


def _ensure_config() -> Tuple[Any, TelemetrySettings]:
    if _ACTIVE_CONFIG is None or _ACTIVE_SETTINGS is None:
        configure()
    assert _ACTIVE_SETTINGS is not None
    return _ACTIVE_CONFIG, _ACTIVE_SETTINGS


def get_logger(name: Optional[str] = None) -> Any:
    config, settings = _ensure_config()
    logger_name = name or settings.logger_name
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, config)
    return _LOGGER_CACHE[logger_name]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


def _log(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, [(str(key), _stringify(value)) for key, value in payload.items()])
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _log(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by ``span``; metadata added here rides on later span records."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def fail(self, reason: str) -> None:
        self._emit("error", "span::fail", reason)

    def cancel(self, reason: str | None = None) -> None:
        self._emit("warning", "span::cancel", reason)

    def _emit(self, level: str, message: str, reason: Optional[str]) -> None:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        if reason:
            payload["reason"] = reason
        _log(self.logger, level, message, payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the block under ``name``.

    ``component=True`` also tracks the block as component ``name``; a string
    names the component explicitly. ``metadata`` is pushed as logger context
    for the duration of the block and dropped afterwards.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    context = {key: _stringify(value) for key, value in (metadata or {}).items()}

    for key, value in context.items():
        log.add_context(key, value)
    try:
        with ExitStack() as stack:
            if component_name:
                stack.enter_context(log.track_component(component_name))
            stack.enter_context(log.profile(name))
            handle = SpanHandle(log, name, component_name, dict(context))
            try:
                yield handle
            except Exception as exc:
                handle.fail(str(exc))
                raise
    finally:
        for key in context:
            log.remove_context(key)


__all__ = [
    "SpanHandle",
    "TelemetrySettings",
    "build_config",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
