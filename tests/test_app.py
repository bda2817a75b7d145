"""Unit tests for marktree.app — bootstrap and service wiring."""

import logging

import pytest
import yaml

import marktree.engine.config as cfg_mod
from marktree.app import MarkTreeApp, init_app
from marktree.bookmarks.service import BookmarkService, TagService
from marktree.db.base import engine_registry
from marktree.db.session import session_scope
from marktree.engine.config import DatabaseConfig, LoggingConfig, MarkTreeConfig, get_config
from marktree.engine.errors import ConfigError
from marktree.engine.logging import get_file_logger
from marktree.folders import FoldersCreateDto, FolderService, FolderUpdateDto


@pytest.fixture
def app(tmp_path):
    config = MarkTreeConfig(
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'marktree.db'}", create_tables=True),
        logging=LoggingConfig(enabled=True, directory=str(tmp_path / "logs")),
    )
    application = init_app(config=config)
    yield application
    application.shutdown()


class TestInitApp:

    def test_returns_app(self, app):
        assert isinstance(app, MarkTreeApp)
        assert "marktree" in engine_registry.registered_names

    def test_file_logger_enabled(self, app, tmp_path):
        assert get_file_logger() is not None
        assert get_file_logger().log_dir == tmp_path / "logs"

    def test_level_applied(self, app):
        assert logging.getLogger("marktree").level == logging.INFO

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text(yaml.safe_dump({
            "marktree": {"environment": "staging"},
            "database": {"url": f"sqlite:///{tmp_path / 'y.db'}", "create_tables": True},
        }))
        application = init_app(str(path))
        try:
            assert application.config.environment == "staging"
            assert get_file_logger() is None
        finally:
            application.shutdown()

    def test_shutdown_forgets_loaded_config(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text(yaml.safe_dump({
            "database": {"url": f"sqlite:///{tmp_path / 'y.db'}", "create_tables": True},
        }))
        application = init_app(str(path))
        assert get_config() is application.config

        application.shutdown()

        assert cfg_mod._config is None

    def test_unreachable_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing' / 'marktree.db'}"
        config = MarkTreeConfig(database=DatabaseConfig(url=url))
        with pytest.raises(ConfigError, match="not reachable"):
            init_app(config=config)
        assert engine_registry.registered_names == []

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text("marktree:\n  environment: moon\n")
        with pytest.raises(ConfigError):
            init_app(str(path))


class TestServiceWiring:

    def test_collaborators(self, app):
        with session_scope() as session:
            folders = app.folder_service(session)
            assert isinstance(folders, FolderService)
            assert isinstance(folders._tags, TagService)
            assert isinstance(folders._bookmarks, BookmarkService)
            assert folders._bookmarks.session is session

    def test_end_to_end(self, app):
        with session_scope() as session:
            created = app.folder_service(session).create_folders(
                FoldersCreateDto(folders=[FolderUpdateDto(folder_name="Inbox")]), 1
            )
            folder_id = created[0].folder_id

        with session_scope() as session:
            roots = app.folder_service(session).get_root_folders_by_user_id(1)
            assert [r.folder_id for r in roots] == [folder_id]

    def test_shutdown(self, tmp_path):
        config = MarkTreeConfig(database=DatabaseConfig(url="sqlite://", create_tables=True))
        application = init_app(config=config)
        application.shutdown()
        assert engine_registry.registered_names == []
