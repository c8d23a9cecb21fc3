"""Structured JSONL runtime logging for AppMenu."""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from appmenu.paths import runtime_log_path

LogLevel = Literal["off", "error", "warning", "info", "debug"]

LEVEL_ENV = "APPMENU_LOG_LEVEL"
FILE_ENV = "APPMENU_LOG_FILE"

_SEVERITY: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
    "off": 100,
}
_ALIASES = {"warn": "warning", "none": "off", "disabled": "off", "0": "off"}

_runtime_logger: "RuntimeLogger | None" = None


def parse_level(value: str | None, default: LogLevel = "warning") -> LogLevel:
    if not value:
        return default
    normalized = value.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in _SEVERITY:
        return default
    return normalized  # type: ignore[return-value]


@dataclass(slots=True)
class _Sink:
    path: Path
    lock: threading.Lock = field(default_factory=threading.Lock)

    def write(self, line: str) -> None:
        with self.lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")


@dataclass(slots=True)
class RuntimeLogger:
    """Level-filtered event logger; every record is one JSON object per line.

    ``bind`` returns a logger sharing the same sink whose records carry the
    bound fields, so components can tag their events without repeating them.
    """

    level: LogLevel
    sink: _Sink
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def sink_path(self) -> Path:
        return self.sink.path

    def enabled(self, level: str) -> bool:
        threshold = _SEVERITY.get(self.level, _SEVERITY["warning"])
        if threshold >= _SEVERITY["off"]:
            return False
        return _SEVERITY.get(level, _SEVERITY["debug"]) >= threshold

    def bind(self, **context: Any) -> "RuntimeLogger":
        return RuntimeLogger(level=self.level, sink=self.sink, context={**self.context, **context})

    def log(self, level: str, event: str, **fields: Any) -> None:
        if not self.enabled(level):
            return
        record = {
            "ts": datetime.now(UTC).isoformat(),
            "level": level,
            "event": event,
            "pid": os.getpid(),
            "thread": threading.current_thread().name,
            **self.context,
            **fields,
        }
        self.sink.write(json.dumps(record, sort_keys=True, default=str))

    def debug(self, event: str, **fields: Any) -> None:
        self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log("error", event, **fields)


class _SilentLogger(RuntimeLogger):
    def __init__(self) -> None:
        super().__init__(level="off", sink=_Sink(Path(os.devnull)))

    def bind(self, **context: Any) -> RuntimeLogger:  # noqa: ARG002
        return self

    def log(self, level: str, event: str, **fields: Any) -> None:  # noqa: ARG002
        return


def configure_runtime_logging(
    *,
    level: str | None = None,
    log_file: str | Path | None = None,
) -> RuntimeLogger:
    global _runtime_logger

    effective_level = parse_level(level or os.getenv(LEVEL_ENV))
    if effective_level == "off":
        _runtime_logger = _SilentLogger()
        return _runtime_logger

    target = log_file or os.getenv(FILE_ENV)
    sink_path = Path(target).expanduser().resolve() if target else runtime_log_path()
    _runtime_logger = RuntimeLogger(level=effective_level, sink=_Sink(sink_path))
    _runtime_logger.info("logging.configured", configured_level=effective_level, sink_path=str(sink_path))
    return _runtime_logger


def get_runtime_logger(**context: Any) -> RuntimeLogger:
    global _runtime_logger
    if _runtime_logger is None:
        _runtime_logger = configure_runtime_logging()
    if context:
        return _runtime_logger.bind(**context)
    return _runtime_logger
