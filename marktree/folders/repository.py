"""
MarkTree Folder Repositories — Query surface over the folders and
folder_histories tables.

Every folder query filters on RecordStatus.ACTIVE; soft-deleted folders are
invisible to the engine. Writes only add + flush, so they join whatever
transaction the caller has open.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from marktree.db.base import RecordStatus
from marktree.db.models import Folder, FolderHistory


class FolderRepository:
    """Active-folder queries plus save/save_all."""

    def __init__(self, session: Session):
        self.session = session

    def _active(self):
        return select(Folder).where(Folder.status == RecordStatus.ACTIVE)

    def find_active_by_id(self, folder_id: Optional[int]) -> Optional[Folder]:
        if folder_id is None:
            return None
        stmt = self._active().where(Folder.folder_id == folder_id)
        return self.session.scalars(stmt).unique().one_or_none()

    def find_active_sub_folders(self, parent_folder_id: int) -> List[Folder]:
        """Direct active children of a folder, oldest first."""
        stmt = (
            self._active()
            .where(Folder.parent_folder_id == parent_folder_id)
            .order_by(Folder.folder_id)
        )
        return list(self.session.scalars(stmt).unique())

    def find_by_folder_and_user_id(self, folder: Folder, user_id: int) -> List[Folder]:
        """Active children of ``folder`` owned by ``user_id``."""
        stmt = (
            self._active()
            .where(Folder.parent_folder_id == folder.folder_id, Folder.user_id == user_id)
            .order_by(Folder.folder_id)
        )
        return list(self.session.scalars(stmt).unique())

    def find_by_user_id_and_folder_is_null(self, user_id: int) -> List[Folder]:
        """Active root folders of a user."""
        stmt = (
            self._active()
            .where(Folder.user_id == user_id, Folder.parent_folder_id.is_(None))
            .order_by(Folder.folder_id)
        )
        return list(self.session.scalars(stmt).unique())

    def save(self, folder: Folder) -> Folder:
        self.session.add(folder)
        self.session.flush()
        return folder

    def save_all(self, folders: Iterable[Folder]) -> List[Folder]:
        folders = list(folders)
        self.session.add_all(folders)
        self.session.flush()
        return folders


class FolderHistoryRepository:
    """Append-only writes for folder snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, history: FolderHistory) -> FolderHistory:
        self.session.add(history)
        self.session.flush()
        return history

    def save_all(self, histories: Iterable[FolderHistory]) -> List[FolderHistory]:
        histories = list(histories)
        self.session.add_all(histories)
        self.session.flush()
        return histories
