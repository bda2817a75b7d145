"""
MarkTree bootstrap — config → logging → database → services.

Usage:
    app = init_app("marktree.yaml")
    with session_scope() as session:
        folders = app.folder_service(session)
        folders.create_folders(FoldersCreateDto(folders=[...]), user_id=1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from marktree.bookmarks.service import BookmarkService, TagService
from marktree.db.base import engine_registry
from marktree.db.session import ENGINE_NAME, close_all_sessions, init_db
from marktree.engine.config import MarkTreeConfig, load_config, reset_config
from marktree.engine.errors import ConfigError
from marktree.engine.logging import configure_logging, init_logging, shutdown_logging
from marktree.folders.service import FolderService

logger = logging.getLogger("marktree.app")


@dataclass
class MarkTreeApp:
    config: MarkTreeConfig
    session_factory: sessionmaker

    def tag_service(self, session: Session) -> TagService:
        return TagService(session)

    def bookmark_service(self, session: Session) -> BookmarkService:
        return BookmarkService(session)

    def folder_service(self, session: Session) -> FolderService:
        """FolderService wired with collaborators sharing ``session``."""
        return FolderService(
            session,
            tag_service=self.tag_service(session),
            bookmark_service=self.bookmark_service(session),
        )

    def shutdown(self) -> None:
        shutdown_logging()
        close_all_sessions()
        reset_config()


def init_app(config_path: Optional[str] = None, config: Optional[MarkTreeConfig] = None) -> MarkTreeApp:
    """Load configuration (unless given) and bring up logging and the database."""
    if config is None:
        config = load_config(config_path)

    configure_logging(config.logging.level, config.logging.format)
    if config.logging.enabled:
        init_logging(config.logging.directory)

    db = config.database
    factory = init_db(
        db.url,
        create_tables=db.create_tables,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        pool_pre_ping=db.pool_pre_ping,
    )
    if not engine_registry.health_check(ENGINE_NAME):
        url = engine_registry.get(ENGINE_NAME).url.render_as_string(hide_password=True)
        close_all_sessions()
        raise ConfigError(f"Database is not reachable: {url}", config_key="database.url")

    logger.info(f"{config.name} started (environment={config.environment})")
    return MarkTreeApp(config=config, session_factory=factory)
