"""
MarkTree Folder Service — the folder tree engine.

Handles:
- Batch folder creation (validated up front, two bulk writes)
- Folder update with ownership and cycle checks
- Cascade delete of a folder, its active descendants and their bookmarks
- Deep copy of a folder tree, bookmarks included, into a new root
- Nested hierarchy DTOs for one folder or all roots of a user

Every tree walk uses an explicit stack so depth is bounded by memory, not
by the interpreter recursion limit. Every public mutation is one
transaction: folder rows, history rows and delegated bookmark writes commit
together or not at all.

Concurrency: cross-request races (two deletes on the same subtree) are left
to the database's row locking; work-lists are local to each call.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from marktree.bookmarks.service import BookmarkService, TagService
from marktree.db.base import utcnow
from marktree.db.models import Folder
from marktree.db.session import after_commit, transactional
from marktree.engine.errors import BadRequestError, NotFoundError
from marktree.engine.logging import log, log_folder_operation
from marktree.engine.security import validate_user_access
from marktree.folders.history import FolderHistoryRecorder
from marktree.folders.repository import FolderHistoryRepository, FolderRepository
from marktree.folders.schemas import (
    BookmarkCreateDto,
    BookmarkDto,
    FolderDto,
    FolderHierarchyDto,
    FoldersCreateDto,
    FolderUpdateDto,
)

logger = logging.getLogger("marktree.folders.service")


class FolderService:
    """
    Folder tree engine bound to one SQLAlchemy session.

    Usage:
        service = FolderService(session, TagService(session), BookmarkService(session))
        service.create_folders(FoldersCreateDto(folders=[...]), user_id=1)
    """

    def __init__(
        self,
        session: Session,
        tag_service: TagService,
        bookmark_service: BookmarkService,
        folder_repository: Optional[FolderRepository] = None,
        history_recorder: Optional[FolderHistoryRecorder] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self._tags = tag_service
        self._bookmarks = bookmark_service
        self._folders = folder_repository or FolderRepository(session)
        self._history = history_recorder or FolderHistoryRecorder(FolderHistoryRepository(session))
        self._clock = clock

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------

    def get_by_folder_id(self, folder_id: int) -> Folder:
        folder = self._folders.find_active_by_id(folder_id)
        if folder is None:
            raise NotFoundError(
                f"Folder {folder_id} not found",
                record_type="folder",
                record_id=folder_id,
            )
        return folder

    def get_parent_folder(self, parent_folder_id: Optional[int], user_id: int) -> Optional[Folder]:
        """
        Resolve the parent for a create/update.

        None means the folder is (or becomes) a root. Otherwise the parent
        must be active and owned by ``user_id``.
        """
        if parent_folder_id is None:
            return None
        parent = self.get_by_folder_id(parent_folder_id)
        validate_user_access(parent.user_id, user_id, "folder", parent.folder_id, "resolve_parent")
        return parent

    def get_active_sub_folders(self, folder: Folder) -> List[Folder]:
        return self._folders.find_active_sub_folders(folder.folder_id)

    def get_root_folders_by_user_id(self, user_id: int) -> List[FolderDto]:
        """Flat list of the user's active roots, without children."""
        return [FolderDto.from_entity(f) for f in self._folders.find_by_user_id_and_folder_is_null(user_id)]

    # -------------------------------------------------------------------
    # Create / Update
    # -------------------------------------------------------------------

    @transactional
    def create_folders(self, dto: FoldersCreateDto, user_id: int) -> List[Folder]:
        """
        Create every folder in ``dto`` or none of them.

        Names are checked for the whole batch before anything is resolved or
        written. Folders go out in one bulk save, their snapshots in another.
        """
        started = time.perf_counter()
        now = self._clock()

        blank = [i for i, entry in enumerate(dto.folders) if _is_blank(entry.folder_name)]
        if blank:
            raise BadRequestError(
                "Folder name is required",
                record_type="folder",
                user_id=user_id,
                operation="create",
                validation_errors=[{"index": i, "field": "folder_name", "error": "blank"} for i in blank],
            )

        folders = [
            Folder.build(
                parent=self.get_parent_folder(entry.parent_folder_id, user_id),
                user_id=user_id,
                tag=self._tags.get_tag(entry.tag_id),
                folder_name=entry.folder_name,
                now=now,
            )
            for entry in dto.folders
        ]
        self._folders.save_all(folders)
        self._history.record_all(folders, now)

        folder_ids = [f.folder_id for f in folders]
        logger.info(f"User {user_id} created {len(folders)} folder(s): {folder_ids}")
        entry = log_folder_operation("create", user_id, folder_ids, _elapsed_ms(started))
        after_commit(self.session, log, entry)
        return folders

    @transactional
    def update_folder(self, folder_id: int, dto: FolderUpdateDto, user_id: int) -> Folder:
        started = time.perf_counter()
        now = self._clock()

        folder = self.get_by_folder_id(folder_id)
        validate_user_access(folder.user_id, user_id, "folder", folder_id, "update")
        if _is_blank(dto.folder_name):
            raise BadRequestError(
                "Folder name is required",
                record_type="folder",
                record_id=folder_id,
                user_id=user_id,
                operation="update",
                validation_errors=[{"field": "folder_name", "error": "blank"}],
            )

        parent = self.get_parent_folder(dto.parent_folder_id, user_id)
        if parent is not None:
            self._reject_cycle(folder, parent)
        tag = self._tags.get_tag(dto.tag_id)

        folder.update(parent, tag, dto.folder_name, user_id, now)
        self._folders.save(folder)
        self._history.record(folder, now)

        logger.info(f"User {user_id} updated folder {folder_id}")
        entry = log_folder_operation("update", user_id, [folder_id], _elapsed_ms(started))
        after_commit(self.session, log, entry)
        return folder

    def _reject_cycle(self, folder: Folder, new_parent: Folder) -> None:
        """Fail if ``new_parent`` is ``folder`` or lies underneath it."""
        seen = set()
        node: Optional[Folder] = new_parent
        while node is not None and node.folder_id not in seen:
            if node.folder_id == folder.folder_id:
                raise BadRequestError(
                    f"Folder {folder.folder_id} cannot be moved under itself or its descendant "
                    f"{new_parent.folder_id}",
                    record_type="folder",
                    record_id=folder.folder_id,
                    operation="update",
                )
            seen.add(node.folder_id)
            node = node.parent

    # -------------------------------------------------------------------
    # Cascade delete
    # -------------------------------------------------------------------

    @transactional
    def delete_folder(self, folder_id: int, user_id: int) -> List[Folder]:
        """
        Soft-delete a folder, all of its active descendants and every
        bookmark inside them. Returns the folders that were deleted.
        """
        started = time.perf_counter()
        now = self._clock()

        folder = self.get_by_folder_id(folder_id)
        validate_user_access(folder.user_id, user_id, "folder", folder_id, "delete")

        deleted = self.delete_folder_and_sub_folders(folder, user_id, now)

        folder_ids = [f.folder_id for f in deleted]
        logger.info(f"User {user_id} deleted folder {folder_id} and {len(deleted) - 1} descendant(s)")
        entry = log_folder_operation("delete", user_id, folder_ids, _elapsed_ms(started), root_folder_id=folder_id)
        after_commit(self.session, log, entry)
        return deleted

    @transactional
    def delete_folder_and_sub_folders(self, folder: Folder, user_id: int, now: datetime) -> List[Folder]:
        """
        Pre-order walk: for each popped folder, queue its active children,
        delete its bookmarks, then mark it deleted. Folders already deleted
        are skipped, so a repeated walk is a no-op.
        """
        validate_user_access(folder.user_id, user_id, "folder", folder.folder_id, "delete")
        stack: List[Folder] = [folder]
        deleted: List[Folder] = []

        while stack:
            current = stack.pop()
            if not current.is_active:
                continue

            stack.extend(self.get_active_sub_folders(current))

            for bookmark in self._bookmarks.find_all_by_folder(current):
                self._bookmarks.delete_bookmark(bookmark.bookmark_id, user_id)
            current.delete(user_id, now)
            deleted.append(current)

        self._folders.save_all(deleted)
        self._history.record_all(deleted, now)
        return deleted

    # -------------------------------------------------------------------
    # Deep copy
    # -------------------------------------------------------------------

    @transactional
    def copy_parent_folder(self, parent_folder_id: int, user_id: int) -> Folder:
        """
        Copy an active folder tree into a new root owned by ``user_id``.

        Names, tags and bookmarks are copied for the source folder and every
        active descendant. The source may belong to any user.
        """
        started = time.perf_counter()
        now = self._clock()

        source = self.get_by_folder_id(parent_folder_id)
        copy_root = self._folders.save(Folder.build(None, user_id, source.tag, source.folder_name, now))
        self._history.record(copy_root, now)
        self._copy_bookmarks(source, copy_root, user_id)

        created = [copy_root] + self.copy_sub_folders(source, copy_root, user_id, now)

        logger.info(
            f"User {user_id} copied folder {parent_folder_id} into {copy_root.folder_id} "
            f"({len(created)} folder(s))"
        )
        entry = log_folder_operation(
            "copy", user_id, [f.folder_id for f in created], _elapsed_ms(started),
            source_folder_id=parent_folder_id,
        )
        after_commit(self.session, log, entry)
        return copy_root

    @transactional
    def copy_sub_folders(self, source: Folder, target: Folder, user_id: int, now: datetime) -> List[Folder]:
        """
        Copy the active descendants of ``source`` under ``target``, with
        their bookmarks, and snapshot each created folder once.
        """
        validate_user_access(target.user_id, user_id, "folder", target.folder_id, "copy")
        stack: List[Tuple[Folder, Folder]] = [(source, target)]
        created: List[Folder] = []

        while stack:
            current_source, current_copy = stack.pop()
            for sub_folder in self.get_active_sub_folders(current_source):
                sub_copy = self._folders.save(
                    Folder.build(current_copy, user_id, sub_folder.tag, sub_folder.folder_name, now)
                )
                created.append(sub_copy)
                self._copy_bookmarks(sub_folder, sub_copy, user_id)
                stack.append((sub_folder, sub_copy))

        self._history.record_all(created, now)
        return created

    def _copy_bookmarks(self, source: Folder, target: Folder, user_id: int) -> None:
        for bookmark in self._bookmarks.find_all_by_folder(source):
            self._bookmarks.create_bookmark(
                BookmarkCreateDto(
                    bookmark_name=bookmark.bookmark_name,
                    bookmark_url=bookmark.bookmark_url,
                    folder_id=target.folder_id,
                ),
                user_id,
            )

    # -------------------------------------------------------------------
    # Hierarchy (read-only)
    # -------------------------------------------------------------------

    def get_folder_hierarchy_by_parent_folder_id(self, parent_folder_id: int) -> FolderHierarchyDto:
        parent = self.get_by_folder_id(parent_folder_id)
        return FolderHierarchyDto(roots=[self.map_folder_to_dto(parent)])

    def get_folder_hierarchy_by_user_id(self, user_id: int) -> FolderHierarchyDto:
        roots = self._folders.find_by_user_id_and_folder_is_null(user_id)
        return FolderHierarchyDto(roots=[self.map_folder_to_dto(root) for root in roots])

    def map_folder_to_dto(self, folder: Folder) -> FolderDto:
        """
        Build the nested DTO for ``folder`` and its active descendants.

        Bookmarks are queried per node while walking (one query per folder).
        Sub-folders keep repository order within each node.
        """
        root_dto = FolderDto.from_entity(folder)
        stack: List[Tuple[Folder, FolderDto]] = [(folder, root_dto)]

        while stack:
            current, current_dto = stack.pop()
            current_dto.bookmarks = [
                BookmarkDto.from_entity(b) for b in self._bookmarks.find_all_by_folder(current)
            ]
            for sub_folder in self.get_active_sub_folders(current):
                sub_dto = FolderDto.from_entity(sub_folder)
                current_dto.sub_folders.append(sub_dto)
                stack.append((sub_folder, sub_dto))

        return root_dto


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
