"""
MarkTree Tag & Bookmark Services — collaborators of the folder tree engine.

The engine only relies on:
    TagService.get_tag(tag_id) -> Tag | None
    BookmarkService.find_all_by_folder(folder) -> list[Bookmark]
    BookmarkService.create_bookmark(dto, user_id) -> Bookmark
    BookmarkService.delete_bookmark(bookmark_id, user_id) -> None

Mutating calls are transactional and join the engine's transaction when
invoked from inside a folder operation on the same session.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from marktree.bookmarks.schemas import BookmarkCreateDto
from marktree.db.base import RecordStatus, utcnow
from marktree.db.models import Bookmark, Folder, Tag
from marktree.db.session import after_commit, transactional
from marktree.engine.errors import BadRequestError, NotFoundError
from marktree.engine.logging import log, log_bookmark_operation
from marktree.engine.security import validate_user_access

logger = logging.getLogger("marktree.bookmarks.service")


class TagService:

    def __init__(self, session: Session):
        self.session = session

    def get_tag(self, tag_id: Optional[int]) -> Optional[Tag]:
        """Tag by id, or None when the id is absent or unknown."""
        if tag_id is None:
            return None
        return self.session.get(Tag, tag_id)

    @transactional
    def create_tag(self, tag_name: str) -> Tag:
        if not tag_name or not tag_name.strip():
            raise BadRequestError("Tag name is required", record_type="tag", operation="create")
        tag = Tag(tag_name=tag_name.strip())
        self.session.add(tag)
        self.session.flush()
        return tag


class BookmarkService:

    def __init__(self, session: Session, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self._clock = clock

    def find_all_by_folder(self, folder: Folder) -> List[Bookmark]:
        """Active bookmarks of a folder, oldest first."""
        stmt = (
            select(Bookmark)
            .where(Bookmark.folder_id == folder.folder_id, Bookmark.status == RecordStatus.ACTIVE)
            .order_by(Bookmark.bookmark_id)
        )
        return list(self.session.scalars(stmt))

    def get_by_bookmark_id(self, bookmark_id: int) -> Bookmark:
        stmt = select(Bookmark).where(
            Bookmark.bookmark_id == bookmark_id, Bookmark.status == RecordStatus.ACTIVE
        )
        bookmark = self.session.scalars(stmt).one_or_none()
        if bookmark is None:
            raise NotFoundError(
                f"Bookmark {bookmark_id} not found",
                record_type="bookmark",
                record_id=bookmark_id,
            )
        return bookmark

    @transactional
    def create_bookmark(self, dto: BookmarkCreateDto, user_id: int) -> Bookmark:
        missing = [
            name for name in ("bookmark_name", "bookmark_url")
            if not (getattr(dto, name) or "").strip()
        ]
        if missing:
            raise BadRequestError(
                f"Bookmark fields are required: {', '.join(missing)}",
                record_type="bookmark",
                user_id=user_id,
                operation="create",
                validation_errors=[{"field": name, "error": "blank"} for name in missing],
            )

        folder = self.session.get(Folder, dto.folder_id)
        if folder is None or not folder.is_active:
            raise NotFoundError(
                f"Folder {dto.folder_id} not found",
                record_type="folder",
                record_id=dto.folder_id,
                operation="create_bookmark",
            )
        validate_user_access(folder.user_id, user_id, "folder", folder.folder_id, "create_bookmark")

        now = self._clock()
        bookmark = Bookmark(
            folder=folder,
            folder_id=folder.folder_id,
            user_id=user_id,
            bookmark_name=dto.bookmark_name,
            bookmark_url=dto.bookmark_url,
            status=RecordStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            updated_by=user_id,
        )
        self.session.add(bookmark)
        self.session.flush()
        logger.debug(f"User {user_id} created bookmark {bookmark.bookmark_id} in folder {folder.folder_id}")
        entry = log_bookmark_operation("create", user_id, bookmark.bookmark_id, folder.folder_id)
        after_commit(self.session, log, entry)
        return bookmark

    @transactional
    def delete_bookmark(self, bookmark_id: int, user_id: int) -> None:
        bookmark = self.get_by_bookmark_id(bookmark_id)
        validate_user_access(bookmark.user_id, user_id, "bookmark", bookmark_id, "delete")
        bookmark.delete(user_id, self._clock())
        self.session.flush()
        logger.debug(f"User {user_id} deleted bookmark {bookmark_id}")
        entry = log_bookmark_operation("delete", user_id, bookmark_id, bookmark.folder_id)
        after_commit(self.session, log, entry)
