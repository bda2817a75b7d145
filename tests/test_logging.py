"""Unit tests for marktree.engine.logging — formatter setup, FileLogger, entry builders."""

import json
import logging

import pytest

from marktree.engine.logging import (
    OBJECT_TYPE_CATEGORIES,
    FileLogger,
    JsonFormatter,
    LogEntry,
    configure_logging,
    get_file_logger,
    init_logging,
    log,
    log_bookmark_operation,
    log_folder_operation,
    log_security_event,
    shutdown_logging,
)


class TestObjectTypeCategories:

    def test_known_types(self):
        assert set(OBJECT_TYPE_CATEGORIES) == {"folders", "bookmarks", "system"}

    def test_folders_have_security(self):
        assert "security" in OBJECT_TYPE_CATEGORIES["folders"]


class TestLogEntry:

    def test_to_json(self):
        entry = LogEntry("folders", "execution", {"event": "folder_create"})
        assert json.loads(entry.to_json()) == {"event": "folder_create"}


class TestConfigureLogging:

    def test_sets_level(self):
        configure_logging("DEBUG")
        assert logging.getLogger("marktree").level == logging.DEBUG

    def test_does_not_stack_handlers(self):
        configure_logging("INFO")
        configure_logging("INFO", fmt="json")
        ours = [h for h in logging.getLogger("marktree").handlers if getattr(h, "_marktree_handler", False)]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, JsonFormatter)

    def test_json_formatter(self):
        record = logging.LogRecord("marktree.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "marktree.test"


class TestFileLogger:

    def test_creates_directories(self, tmp_path):
        FileLogger(str(tmp_path))
        assert (tmp_path / "folders" / "execution").is_dir()
        assert (tmp_path / "bookmarks" / "security").is_dir()

    def test_write_and_read(self, tmp_path):
        fl = FileLogger(str(tmp_path))
        fl.write(log_folder_operation("create", 1, [10, 11]))
        fl.write(log_folder_operation("delete", 1, [10]))
        entries = fl.read_today("folders", "execution")
        assert [e["event"] for e in entries] == ["folder_create", "folder_delete"]
        assert entries[0]["folder_count"] == 2

    def test_unknown_target_rejected(self, tmp_path):
        fl = FileLogger(str(tmp_path))
        with pytest.raises(ValueError):
            fl.write(LogEntry("system", "security", {}))

    def test_read_missing_file(self, tmp_path):
        assert FileLogger(str(tmp_path)).read_today("system", "execution") == []


class TestEntryBuilders:

    def test_folder_operation(self):
        entry = log_folder_operation("copy", 2, [5, 6, 7], duration_ms=1.23456, source_folder_id=1)
        assert entry.object_type == "folders"
        assert entry.category == "execution"
        assert entry.data["event"] == "folder_copy"
        assert entry.data["user_id"] == 2
        assert entry.data["duration_ms"] == 1.23
        assert entry.data["source_folder_id"] == 1

    def test_bookmark_operation(self):
        entry = log_bookmark_operation("delete", 1, 9, 3)
        assert entry.object_type == "bookmarks"
        assert entry.data["bookmark_id"] == 9
        assert entry.data["folder_id"] == 3

    def test_security_event(self):
        entry = log_security_event("folders", 4, owner_id=1, user_id=2, operation="update")
        assert entry.category == "security"
        assert entry.data["event"] == "access_denied"
        assert entry.data["level"] == "WARNING"
        assert entry.data["operation"] == "update"


class TestGlobalLogger:

    def test_log_without_init_is_noop(self):
        assert get_file_logger() is None
        assert log(log_folder_operation("create", 1, [1])) is False

    def test_init_log_shutdown(self, tmp_path):
        fl = init_logging(str(tmp_path))
        assert log(log_folder_operation("create", 1, [1])) is True
        assert len(fl.read_today("folders", "execution")) == 1
        shutdown_logging()
        assert get_file_logger() is None
