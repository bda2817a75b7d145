"""
MarkTree Models — SQLAlchemy tables for the bookmark folder tree.

Tables:
1. tags              — Optional label attached to a folder
2. folders           — Folder tree node (self-referencing parent, soft delete)
3. folder_histories  — Append-only snapshot per folder create/update/delete
4. bookmarks         — Bookmark entries, each inside exactly one folder
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from marktree.db.base import AuditMixin, Base, RecordStatus, SoftDeleteMixin, utcnow


# ---------------------------------------------------------------------------
# 1. Tags
# ---------------------------------------------------------------------------

class Tag(Base, AuditMixin):
    __tablename__ = "tags"

    tag_id = Column(Integer, primary_key=True, autoincrement=True)
    tag_name = Column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Tag(id={self.tag_id}, name='{self.tag_name}')>"


# ---------------------------------------------------------------------------
# 2. Folders
# ---------------------------------------------------------------------------

class Folder(Base, AuditMixin, SoftDeleteMixin):
    """
    Folder tree node.

    ``parent`` is None for a root folder. A parent always belongs to the
    same user; the service layer enforces this before calling ``build`` or
    ``update``, which perform no validation of their own.
    """

    __tablename__ = "folders"

    folder_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    folder_name = Column(String(255), nullable=False)
    parent_folder_id = Column(Integer, ForeignKey("folders.folder_id"), nullable=True)
    tag_id = Column(Integer, ForeignKey("tags.tag_id"), nullable=True)

    parent = relationship("Folder", remote_side=[folder_id], lazy="joined", join_depth=1)
    tag = relationship("Tag", lazy="joined")

    __table_args__ = (
        Index("idx_folders_parent_status", "parent_folder_id", "status"),
        Index("idx_folders_user_parent", "user_id", "parent_folder_id"),
    )

    @classmethod
    def build(
        cls,
        parent: Optional["Folder"],
        user_id: int,
        tag: Optional[Tag],
        folder_name: str,
        now: datetime,
    ) -> "Folder":
        """New ACTIVE folder stamped with ``now``."""
        return cls(
            parent=parent,
            user_id=user_id,
            tag=tag,
            folder_name=folder_name,
            status=RecordStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            updated_by=user_id,
        )

    def update(
        self,
        parent: Optional["Folder"],
        tag: Optional[Tag],
        folder_name: str,
        user_id: int,
        now: datetime,
    ) -> None:
        self.parent = parent
        self.tag = tag
        self.folder_name = folder_name
        self.updated_by = user_id
        self.updated_at = now

    def delete(self, user_id: int, now: datetime) -> None:
        self.status = RecordStatus.DELETED
        self.updated_by = user_id
        self.updated_at = now

    @property
    def is_root(self) -> bool:
        return self.parent_folder_id is None and self.parent is None

    def __repr__(self) -> str:
        return (
            f"<Folder(id={self.folder_id}, name='{self.folder_name}', "
            f"user_id={self.user_id}, status={self.status})>"
        )


# ---------------------------------------------------------------------------
# 3. Folder History
# ---------------------------------------------------------------------------

class FolderHistory(Base):
    """Immutable snapshot of a folder, written once per mutation."""

    __tablename__ = "folder_histories"

    folder_history_id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(Integer, ForeignKey("folders.folder_id"), nullable=False, index=True)
    parent_folder_id = Column(Integer, nullable=True)
    tag_id = Column(Integer, nullable=True)
    folder_name = Column(String(255), nullable=False)
    user_id = Column(Integer, nullable=False)
    status = Column(Enum(RecordStatus, name="record_status"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    folder = relationship("Folder")

    @classmethod
    def create(cls, folder: Folder, now: datetime) -> "FolderHistory":
        """Snapshot ``folder`` as it is now. The folder must already be flushed."""
        return cls(
            folder_id=folder.folder_id,
            parent_folder_id=folder.parent.folder_id if folder.parent is not None else None,
            tag_id=folder.tag.tag_id if folder.tag is not None else None,
            folder_name=folder.folder_name,
            user_id=folder.user_id,
            status=folder.status,
            created_at=now,
        )

    def __repr__(self) -> str:
        return (
            f"<FolderHistory(id={self.folder_history_id}, folder_id={self.folder_id}, "
            f"status={self.status})>"
        )


# ---------------------------------------------------------------------------
# 4. Bookmarks
# ---------------------------------------------------------------------------

class Bookmark(Base, AuditMixin, SoftDeleteMixin):
    __tablename__ = "bookmarks"

    bookmark_id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(Integer, ForeignKey("folders.folder_id"), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)
    bookmark_name = Column(String(255), nullable=False)
    bookmark_url = Column(Text, nullable=False)

    folder = relationship("Folder")

    __table_args__ = (
        Index("idx_bookmarks_folder_status", "folder_id", "status"),
    )

    def delete(self, user_id: int, now: datetime) -> None:
        self.status = RecordStatus.DELETED
        self.updated_by = user_id
        self.updated_at = now

    def __repr__(self) -> str:
        return f"<Bookmark(id={self.bookmark_id}, name='{self.bookmark_name}', folder_id={self.folder_id})>"
