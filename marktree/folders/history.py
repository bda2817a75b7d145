"""
MarkTree Folder History Recorder — audit trail for folder mutations.

One FolderHistory row is written per folder create/update/delete event.
The engine never reads these rows back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List

from marktree.db.models import Folder, FolderHistory
from marktree.folders.repository import FolderHistoryRepository

logger = logging.getLogger("marktree.folders.history")


class FolderHistoryRecorder:

    def __init__(self, repository: FolderHistoryRepository):
        self._repository = repository

    @staticmethod
    def create(folder: Folder, now: datetime) -> FolderHistory:
        return FolderHistory.create(folder, now)

    def save(self, history: FolderHistory) -> FolderHistory:
        return self._repository.save(history)

    def save_all(self, histories: Iterable[FolderHistory]) -> List[FolderHistory]:
        return self._repository.save_all(histories)

    def record(self, folder: Folder, now: datetime) -> FolderHistory:
        """Snapshot and persist a single folder."""
        return self.save(self.create(folder, now))

    def record_all(self, folders: Iterable[Folder], now: datetime) -> List[FolderHistory]:
        """Snapshot and persist many folders in one bulk write."""
        histories = self.save_all(self.create(folder, now) for folder in folders)
        logger.debug(f"Recorded {len(histories)} folder snapshot(s)")
        return histories
