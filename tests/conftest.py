"""
MarkTree Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from marktree.bookmarks.schemas import BookmarkCreateDto
from marktree.bookmarks.service import BookmarkService, TagService
from marktree.db.base import Base
from marktree.db.models import Bookmark, Folder, FolderHistory
from marktree.folders.schemas import FoldersCreateDto, FolderUpdateDto
from marktree.folders.service import FolderService

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset module-level singletons between tests."""
    import marktree.engine.config as cfg_mod
    import marktree.engine.logging as log_mod

    cfg_mod._config = None
    log_mod._file_logger = None
    yield
    cfg_mod._config = None
    log_mod._file_logger = None


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine)
    s = factory()
    yield s
    s.close()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def tag_service(session):
    return TagService(session)


@pytest.fixture
def bookmark_service(session, clock):
    return BookmarkService(session, clock=clock)


@pytest.fixture
def folder_service(session, tag_service, bookmark_service, clock):
    return FolderService(session, tag_service, bookmark_service, clock=clock)


# ---------------------------------------------------------------------------
# Tree builders
# ---------------------------------------------------------------------------

class TreeBuilder:
    """Small helper to build folder trees through the public services."""

    def __init__(self, folder_service: FolderService, bookmark_service: BookmarkService):
        self.folders = folder_service
        self.bookmarks = bookmark_service

    def folder(
        self,
        name: str,
        user_id: int = 1,
        parent: Optional[Folder] = None,
        tag_id: Optional[int] = None,
    ) -> Folder:
        created = self.folders.create_folders(
            FoldersCreateDto(folders=[FolderUpdateDto(
                parent_folder_id=parent.folder_id if parent is not None else None,
                tag_id=tag_id,
                folder_name=name,
            )]),
            user_id,
        )
        return created[0]

    def bookmark(self, folder: Folder, name: str, user_id: int = 1) -> Bookmark:
        return self.bookmarks.create_bookmark(
            BookmarkCreateDto(
                bookmark_name=name,
                bookmark_url=f"https://example.com/{name.lower()}",
                folder_id=folder.folder_id,
            ),
            user_id,
        )

    def chain(self, names: List[str], user_id: int = 1, with_bookmarks: bool = True) -> List[Folder]:
        """Build names[0] → names[1] → ... with one bookmark per folder."""
        folders: List[Folder] = []
        parent = None
        for name in names:
            parent = self.folder(name, user_id=user_id, parent=parent)
            if with_bookmarks:
                self.bookmark(parent, f"{name}-link", user_id=user_id)
            folders.append(parent)
        return folders


@pytest.fixture
def tree(folder_service, bookmark_service):
    return TreeBuilder(folder_service, bookmark_service)


# ---------------------------------------------------------------------------
# Row counters
# ---------------------------------------------------------------------------

def count_rows(session: Session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


def histories_for(session: Session, folder_id: int) -> List[FolderHistory]:
    stmt = (
        select(FolderHistory)
        .where(FolderHistory.folder_id == folder_id)
        .order_by(FolderHistory.folder_history_id)
    )
    return list(session.scalars(stmt))


@pytest.fixture
def count(session):
    """count(Model) -> number of rows in the model's table."""
    return lambda model: count_rows(session, model)


@pytest.fixture
def history(session):
    """history(folder_id) -> snapshots of that folder, oldest first."""
    return lambda folder_id: histories_for(session, folder_id)
