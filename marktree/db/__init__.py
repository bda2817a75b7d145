"""MarkTree Database — declarative base, session handling, ORM models."""
