"""
MarkTree Folder Tree.

Repositories, history recorder and the FolderService tree engine.
"""

from marktree.folders.schemas import (
    FolderDto,
    FolderHierarchyDto,
    FoldersCreateDto,
    FolderUpdateDto,
)
from marktree.folders.service import FolderService

__all__ = [
    "FolderDto",
    "FolderHierarchyDto",
    "FoldersCreateDto",
    "FolderUpdateDto",
    "FolderService",
]
