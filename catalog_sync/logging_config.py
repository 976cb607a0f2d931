"""Logging for the catalog sync.

Operators get a short colored console line per message. Every record also
lands in a daily ``sync_YYYYMMDD.jsonl`` file as one JSON object, so a
scheduled deployment can be audited after the fact: which run fetched what,
how many rows each recovery dropped, when the vector store was replaced.

Records logged inside ``sync_run()`` carry the same ``run_id``, which ties
together the events of one scheduled or manual sync.
"""

import contextvars
import json
import logging
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_sync_event",
    "sync_run",
    "current_run_id",
    "LOG_DIR",
]

LOG_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER = "catalog_sync"

_run_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("sync_run_id", default=None)


def current_run_id() -> Optional[str]:
    return _run_id.get()


@contextmanager
def sync_run(run_id: Optional[str] = None) -> Iterator[str]:
    """Tag every record logged in this block with one run id.

    Nested blocks keep the outer id, so a full Dropbox run and the batch
    build it calls share it.
    """
    outer = _run_id.get()
    if outer is not None:
        yield outer
        return
    token = _run_id.set(run_id or uuid.uuid4().hex[:12])
    try:
        yield _run_id.get()
    finally:
        _run_id.reset(token)


class RunContextFilter(logging.Filter):
    """Stamps ``record.run_id`` from the active sync run (None outside one)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()
        return True


class SyncEventFormatter(logging.Formatter):
    """Formats a record as one JSON line.

    Structured events (see ``log_sync_event``) add ``event_type`` and merge
    their data keys into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        run_id = getattr(record, "run_id", None)
        if run_id:
            entry["run_id"] = run_id
        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type
            entry.update(getattr(record, "event_data", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class DailyJSONLHandler(logging.FileHandler):
    """Appends to ``<prefix>_<YYYYMMDD>.jsonl``, switching files at midnight."""

    def __init__(self, log_dir: Path, prefix: str = "sync"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self._day = self._today()
        super().__init__(self._path_for(self._day), mode="a", encoding="utf-8", delay=True)

    @staticmethod
    def _today() -> str:
        return datetime.now().strftime("%Y%m%d")

    def _path_for(self, day: str) -> Path:
        return self.log_dir / f"{self.prefix}_{day}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        day = self._today()
        if day != self._day:
            self._day = day
            self.close()
            # FileHandler reopens lazily on the next write
            self.baseFilename = str(self._path_for(day).resolve())
        super().emit(record)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] message``, level colored when writing to a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool):
        super().__init__("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
        self.use_color = use_color

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno) if self.use_color else None
        if not color:
            return super().formatMessage(record)
        # Color a copy so the file handler still sees the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().formatMessage(colored)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging for the catalog sync.

    Args:
        level: Console and package logger level (default: INFO)
        log_to_file: Whether to write the daily JSONL file
        log_to_console: Whether to log to stdout
        log_dir: Custom log directory (default: project logs/)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    run_filter = RunContextFilter()

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter(use_color=sys.stdout.isatty()))
        logger.addHandler(console_handler)

    if log_to_file:
        file_handler = DailyJSONLHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(SyncEventFormatter())
        file_handler.addFilter(run_filter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger under the package namespace ('tree' -> 'catalog_sync.tree')."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_sync_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> None:
    """Log a structured sync event.

    Args:
        event_type: Type of event (e.g., 'sync_start', 'sync_counters')
        data: Event-specific data; an optional 'message' key becomes the text
        level: Log level
        logger_name: Logger to use
    """
    get_logger(logger_name).log(
        level,
        data.get("message", event_type),
        extra={
            "event_type": event_type,
            "event_data": {k: v for k, v in data.items() if k != "message"},
        },
    )
