"""Newline-delimited JSON events for catalog runs.

Every event carries ``run_id``, ``ts``, ``phase``, ``status`` and ``message``
plus free-form fields. Events go to a stream (stdout by default) and, when a
path is given, are appended to a JSONL file as well. Child loggers created
with :meth:`JsonLogger.bind` write through the same sink, so closing the root
logger silences all of them.
"""
from __future__ import annotations

import json
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Dict, Iterator, Optional

__all__ = ["JsonLogger", "get_logger", "log_event", "timed_event", "new_run_id"]

LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "WARNING": 30, "ERROR": 40}
STATUS_LEVELS = {"debug": 10, "warn": 30, "error": 40}

# Never written out, whatever the caller passes.
REDACTED_FIELDS = frozenset({"password", "wp_app_pass", "s3_secret_key", "secret"})


def new_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S%f")


@dataclass
class _Sink:
    stream: IO[str]
    file_handle: Optional[IO[str]] = None
    closed: bool = False

    def write(self, line: str) -> None:
        self.stream.write(line)
        self.stream.flush()
        if self.file_handle is not None:
            self.file_handle.write(line)
            self.file_handle.flush()

    def close(self) -> None:
        self.closed = True
        if self.file_handle is not None:
            self.file_handle.close()
            self.file_handle = None


def _open_log_file(raw_path: str | None) -> tuple[str | None, Optional[IO[str]]]:
    if not raw_path:
        return None, None
    path = Path(raw_path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path), open(path, "a", encoding="utf-8")


class JsonLogger:
    """Emit newline-delimited JSON events."""

    def __init__(
        self,
        run_id: Optional[str] = None,
        stream=None,
        *,
        log_file_path: str | None = None,
        level: str = "INFO",
    ):
        self.run_id = run_id or new_run_id()
        self.level = level.upper()
        self.threshold = LEVELS.get(self.level, LEVELS["INFO"])
        self.default_context: Dict[str, Any] = {"run_id": self.run_id}
        self.log_file_path, file_handle = _open_log_file(log_file_path)
        self._sink = _Sink(stream=stream or sys.stdout, file_handle=file_handle)
        self._is_root = True

    def bind(self, **kwargs: Any) -> "JsonLogger":
        child = object.__new__(JsonLogger)
        child.run_id = self.run_id
        child.level = self.level
        child.threshold = self.threshold
        child.default_context = {**self.default_context, **kwargs}
        child.log_file_path = self.log_file_path
        child._sink = self._sink
        child._is_root = False
        return child

    @property
    def closed(self) -> bool:
        return self._sink.closed

    @property
    def debug_enabled(self) -> bool:
        return self.threshold <= LEVELS["DEBUG"]

    def _emit(self, payload: Dict[str, Any]) -> None:
        event = {**self.default_context, **payload}
        event.setdefault("ts", datetime.now(timezone.utc).isoformat())
        for key in REDACTED_FIELDS.intersection(event):
            event[key] = "***"
        self._sink.write(json.dumps(event, default=str, ensure_ascii=False) + "\n")

    def info(self, *, phase: str, status: str = "ok", message: str = "", **fields: Any) -> None:
        if self.closed:
            return
        if STATUS_LEVELS.get(status, LEVELS["INFO"]) < self.threshold:
            return
        self._emit({"phase": phase, "status": status, "message": message, **fields})

    def debug(self, *, phase: str, message: str, **fields: Any) -> None:
        self.info(phase=phase, status="debug", message=message, **fields)

    def warn(self, *, phase: str, message: str, **fields: Any) -> None:
        self.info(phase=phase, status="warn", message=message, **fields)

    def error(self, *, phase: str, message: str, **fields: Any) -> None:
        self.info(phase=phase, status="error", message=message, **fields)

    def close(self) -> None:
        if self._is_root and not self.closed:
            self._sink.close()


def get_logger(
    run_id: Optional[str] = None,
    *,
    log_file_path: str | None = None,
    level: str = "INFO",
) -> JsonLogger:
    return JsonLogger(run_id=run_id, log_file_path=log_file_path, level=level)


def log_event(*, logger: JsonLogger, phase: str, status: str = "ok", message: str = "", **extras: Any) -> None:
    logger.info(phase=phase, status=status, message=message, **extras)


@contextmanager
def timed_event(*, logger: JsonLogger, phase: str, message: str = "", **fields: Any) -> Iterator[None]:
    """Log ``message`` with ``duration_ms`` once the block finishes, or its failure."""

    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        logger.error(
            phase=phase,
            message=f"{message} failed: {exc}",
            duration_ms=int((time.perf_counter() - start) * 1000),
            extras={"exception": repr(exc)},
            **fields,
        )
        raise
    logger.info(phase=phase, message=message, duration_ms=int((time.perf_counter() - start) * 1000), **fields)
