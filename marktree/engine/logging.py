"""
MarkTree Logging — Standard logger setup plus a structured JSONL operation log.

Implements:
- configure_logging: root handler with text or JSON formatting
- FileLogger: per-object-type, per-category log files (daily rotation)
- Log entry builders for folder operations and security events
- Global init / log / shutdown helpers used by the services
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("marktree.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "folders": ["execution", "security"],
    "bookmarks": ["execution", "security"],
    "system": ["execution"],
}

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    """Render std-logging records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str, separators=(",", ":"))


def configure_logging(level: str = "INFO", fmt: str = "text") -> logging.Handler:
    """
    Configure the "marktree" logger hierarchy.

    Replaces any handler installed by a previous call so re-bootstrapping
    does not duplicate output.
    """
    root = logging.getLogger("marktree")
    for handler in list(root.handlers):
        if getattr(handler, "_marktree_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    handler._marktree_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in OBJECT_TYPE_CATEGORIES.get(entry.object_type, []):
            raise ValueError(f"Unknown log target {entry.object_type}/{entry.category}")

        file_path = self._resolve_path(entry.object_type, entry.category)
        with self._file_locks[str(file_path)]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def read_today(self, object_type: str, category: str) -> List[Dict[str, Any]]:
        """Return today's entries for one object_type/category, oldest first."""
        path = self._resolve_path(object_type, category)
        if not path.exists():
            return []
        entries = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    user_id: Optional[Any] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if user_id is not None:
        entry["user_id"] = user_id
    entry.update(extra)
    return entry


def log_folder_operation(
    operation: str,
    user_id: Any,
    folder_ids: List[Any],
    duration_ms: Optional[float] = None,
    **extra: Any,
) -> LogEntry:
    """Build a folder tree operation entry (create/update/delete/copy)."""
    data = _base_entry(
        event=f"folder_{operation}",
        level="INFO",
        user_id=user_id,
        operation=operation,
        folder_ids=folder_ids,
        folder_count=len(folder_ids),
        **extra,
    )
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 2)
    return LogEntry("folders", "execution", data)


def log_bookmark_operation(
    operation: str,
    user_id: Any,
    bookmark_id: Any,
    folder_id: Any,
) -> LogEntry:
    """Build a bookmark create/delete entry."""
    data = _base_entry(
        event=f"bookmark_{operation}",
        level="INFO",
        user_id=user_id,
        operation=operation,
        bookmark_id=bookmark_id,
        folder_id=folder_id,
    )
    return LogEntry("bookmarks", "execution", data)


def log_security_event(
    object_type: str,
    record_id: Any,
    owner_id: Any,
    user_id: Any,
    operation: Optional[str] = None,
) -> LogEntry:
    """Build an access-denied entry for an owner mismatch."""
    data = _base_entry(
        event="access_denied",
        level="WARNING",
        user_id=user_id,
        record_id=record_id,
        owner_id=owner_id,
    )
    if operation:
        data["operation"] = operation
    return LogEntry(object_type, "security", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger Singleton
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = "logs") -> FileLogger:
    """Initialize the global structured file logger."""
    global _file_logger
    _file_logger = FileLogger(log_dir=log_dir)
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write an entry to the global file logger. No-op when not initialized."""
    if _file_logger is None:
        logger.debug(f"Structured log not initialized, dropped {entry.data.get('event')}")
        return False
    try:
        _file_logger.write(entry)
    except OSError as e:
        logger.error(f"Failed to write structured log entry: {e}")
        return False
    return True


def shutdown_logging() -> None:
    """Detach the global file logger."""
    global _file_logger
    _file_logger = None
