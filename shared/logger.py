"""
elfspan Logging
===============

:class:`SpanLogger` is the decoder's logging front end.  It writes to the
stdlib logger ``elfspan.<tool_name>`` and stamps every record with:

    tool_name   the component the logger belongs to (``"decoder"``)
    stage       the pipeline stage in scope, tracked per thread and task
    fields      keyword arguments given to the log call

Handlers are installed only on request, i.e. when ``console_output`` or
``log_file`` is given.  A bare ``SpanLogger("decoder")`` sends records
through whatever the host application configured for ``elfspan`` and
never touches existing handlers or levels.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Library loggers stay silent until the application adds a handler.
logging.getLogger("elfspan").addHandler(logging.NullHandler())

_STAGE: ContextVar[str | None] = ContextVar("elfspan_stage", default=None)

_LEVEL_COLOURS = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
    }
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record.

    ``{"timestamp", "level", "logger", "message", "tool_name", "stage", "fields"}``;
    ``stage`` and ``fields`` are left out when empty.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("tool_name", "stage", "fields"):
            value = getattr(record, key, None)
            if value:
                entry[key] = value
        return json.dumps(entry, ensure_ascii=False, default=str)


class StageTimer:
    """Wall-clock duration of a :meth:`SpanLogger.timed` block."""

    def __init__(self) -> None:
        self.started = time.perf_counter()
        self.stopped: float | None = None

    @property
    def elapsed(self) -> float:
        """Seconds since the block opened, frozen once it closes."""
        end = time.perf_counter() if self.stopped is None else self.stopped
        return end - self.started


class SpanLogger:
    """Stage-aware logger for one elfspan component.

    Usage::

        log = SpanLogger("decoder", log_file="elfspan.log", json_logs=True)
        with log.stage("dynamic"):
            log.warning("No DT_NULL terminator", section_index=7)
        log.close()

    Args:
        tool_name:      Component name; the stdlib logger is ``elfspan.<tool_name>``.
        log_level:      Level name.  With handlers requested it defaults to
                        INFO; without them it is applied only when given.
        log_file:       Rotating log file to write.
        json_logs:      Write the file as JSON lines.
        console_output: Log to stderr through rich.
        max_bytes:      Rotation size of the log file.
        backup_count:   Rotated files to keep.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str | None = None,
        log_file: str | Path | None = None,
        json_logs: bool = False,
        console_output: bool = False,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self._tool_name = tool_name
        self._logger = logging.getLogger(f"elfspan.{tool_name}")
        self._installed: list[logging.Handler] = []

        if console_output or log_file:
            level = _parse_level(log_level or "INFO")
            handlers: list[logging.Handler] = []
            if console_output:
                handlers.append(
                    RichHandler(
                        console=Console(theme=_LEVEL_COLOURS, stderr=True),
                        show_path=False,
                        markup=False,
                    )
                )
            if log_file:
                path = Path(log_file)
                path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = RotatingFileHandler(
                    path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
                )
                file_handler.setFormatter(
                    JsonLineFormatter() if json_logs else logging.Formatter(_TEXT_FORMAT)
                )
                handlers.append(file_handler)
            self._replace_handlers(level, handlers)
        elif log_level is not None:
            self._logger.setLevel(_parse_level(log_level))

    def _replace_handlers(self, level: int, handlers: list[logging.Handler]) -> None:
        for old in list(self._logger.handlers):
            self._logger.removeHandler(old)
            old.close()
        for handler in handlers:
            handler.setLevel(level)
            self._logger.addHandler(handler)
        self._logger.setLevel(level)
        self._logger.propagate = False
        self._installed = handlers

    def close(self) -> None:
        """Detach and close the handlers this instance installed."""
        for handler in self._installed:
            self._logger.removeHandler(handler)
            handler.close()
        if self._installed and not self._logger.handlers:
            self._logger.propagate = True
        self._installed = []

    # ------------------------------------------------------------------ #
    #  Scopes
    # ------------------------------------------------------------------ #

    @contextmanager
    def stage(self, name: str) -> Iterator[SpanLogger]:
        """Tag records logged inside the block with stage *name*."""
        token = _STAGE.set(name)
        try:
            yield self
        finally:
            _STAGE.reset(token)

    @contextmanager
    def timed(self, label: str) -> Iterator[StageTimer]:
        """Time the block and log its duration at DEBUG."""
        timer = StageTimer()
        try:
            yield timer
        finally:
            timer.stopped = time.perf_counter()
            self.debug("%s took %.3f ms", label, timer.elapsed * 1000)

    # ------------------------------------------------------------------ #
    #  Records
    # ------------------------------------------------------------------ #

    def _log(self, level: int, msg: str, args: tuple[Any, ...], fields: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {"tool_name": self._tool_name, "stage": _STAGE.get(), "fields": fields}
        self._logger.log(level, msg, *args, extra=extra)

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, args, fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, args, fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        """Log a WARNING; decode anomalies arrive here."""
        self._log(logging.WARNING, msg, args, fields)

    @property
    def tool_name(self) -> str:
        return self._tool_name
