"""
MarkTree Folder DTOs — Pydantic models crossing the service boundary.

Input:  FolderUpdateDto, FoldersCreateDto
Output: FolderHierarchyDto → FolderDto (nested) → TagDto, BookmarkDto
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from marktree.bookmarks.schemas import BookmarkCreateDto, BookmarkDto, TagDto
from marktree.db.models import Folder

__all__ = [
    "BookmarkCreateDto",
    "BookmarkDto",
    "FolderDto",
    "FolderHierarchyDto",
    "FoldersCreateDto",
    "FolderUpdateDto",
    "TagDto",
]


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class FolderUpdateDto(BaseModel):
    """One folder to create, or the new state of an existing folder."""

    parent_folder_id: Optional[int] = Field(default=None, description="None makes the folder a root")
    tag_id: Optional[int] = Field(default=None, description="Unknown ids resolve to no tag")
    folder_name: Optional[str] = Field(default=None, description="Required, non-blank")


class FoldersCreateDto(BaseModel):
    folders: List[FolderUpdateDto] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class FolderDto(BaseModel):
    folder_id: int
    folder_name: str
    parent_folder_id: Optional[int] = None
    tag: Optional[TagDto] = None
    sub_folders: List["FolderDto"] = Field(default_factory=list)
    bookmarks: List[BookmarkDto] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, folder: Folder) -> "FolderDto":
        """Node without children or bookmarks; the engine fills those in."""
        return cls(
            folder_id=folder.folder_id,
            folder_name=folder.folder_name,
            parent_folder_id=folder.parent_folder_id,
            tag=TagDto.from_entity(folder.tag) if folder.tag is not None else None,
        )

    def count_folders(self) -> int:
        """Number of folders in this subtree, including this node."""
        total = 0
        stack = [self]
        while stack:
            node = stack.pop()
            total += 1
            stack.extend(node.sub_folders)
        return total


class FolderHierarchyDto(BaseModel):
    roots: List[FolderDto] = Field(default_factory=list)


FolderDto.model_rebuild()
