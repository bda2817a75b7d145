"""
MarkTree — Bookmark folder tree engine.

Folders nest arbitrarily deep, carry an optional tag and hold bookmarks.
The engine creates, updates, cascade-deletes, deep-copies and serialises
folder trees with per-user ownership and an append-only audit history.
"""

__version__ = "1.0.0"
__all__ = ["app", "bookmarks", "db", "engine", "folders"]
