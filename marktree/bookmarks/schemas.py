"""
MarkTree Bookmark & Tag DTOs.

Input:  BookmarkCreateDto
Output: TagDto, BookmarkDto (embedded in folder hierarchy nodes)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from marktree.db.models import Bookmark, Tag


class BookmarkCreateDto(BaseModel):
    bookmark_name: Optional[str] = None
    bookmark_url: Optional[str] = None
    folder_id: int


class TagDto(BaseModel):
    tag_id: int
    tag_name: str

    @classmethod
    def from_entity(cls, tag: Tag) -> "TagDto":
        return cls(tag_id=tag.tag_id, tag_name=tag.tag_name)


class BookmarkDto(BaseModel):
    bookmark_id: int
    bookmark_name: str
    bookmark_url: str

    @classmethod
    def from_entity(cls, bookmark: Bookmark) -> "BookmarkDto":
        return cls(
            bookmark_id=bookmark.bookmark_id,
            bookmark_name=bookmark.bookmark_name,
            bookmark_url=bookmark.bookmark_url,
        )
