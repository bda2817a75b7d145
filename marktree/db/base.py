"""
MarkTree Database Base — SQLAlchemy declarative base, mixins, and engine registry.

Provides:
- Base: SQLAlchemy declarative base for all models
- RecordStatus: ACTIVE / DELETED soft-delete state
- AuditMixin: created_at, updated_at, updated_by
- SoftDeleteMixin: status column filtered by every active query
- EngineRegistry: named engines + session factories
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, Enum, Integer, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all MarkTree models."""
    pass


class RecordStatus(str, enum.Enum):
    """Soft-delete state. DELETED is terminal."""

    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


class AuditMixin:
    """Adds created_at, updated_at, updated_by columns."""
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_by = Column(Integer, nullable=True)


class SoftDeleteMixin:
    """Adds the status column used for soft delete."""
    status = Column(
        Enum(RecordStatus, name="record_status"),
        default=RecordStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE


class EngineRegistry:
    """
    Registry of named SQLAlchemy engines and their session factories.

    Usage:
        registry = EngineRegistry()
        registry.register("marktree", "postgresql://...")
        session = registry.get_session("marktree")
    """

    def __init__(self):
        self._engines: Dict[str, Engine] = {}
        self._session_factories: Dict[str, sessionmaker] = {}

    def register(
        self,
        name: str,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        pool_pre_ping: bool = True,
        **kwargs: Any,
    ) -> Engine:
        """Register a new database engine. SQLite URLs skip the pool settings."""
        if url.startswith("sqlite"):
            engine = create_engine(url, **kwargs)
        else:
            engine = create_engine(
                url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=pool_pre_ping,
                **kwargs,
            )
        if name in self._engines:
            self._engines[name].dispose()
        self._engines[name] = engine
        self._session_factories[name] = sessionmaker(bind=engine)
        return engine

    def get(self, name: str) -> Engine:
        """Get a registered engine by name."""
        if name not in self._engines:
            raise KeyError(f"Engine '{name}' not registered. Available: {list(self._engines.keys())}")
        return self._engines[name]

    def get_session(self, name: str = "marktree") -> Session:
        """Get a new session for a registered engine."""
        if name not in self._session_factories:
            raise KeyError(f"Session factory '{name}' not found. Available: {list(self._session_factories.keys())}")
        return self._session_factories[name]()

    def dispose(self, name: Optional[str] = None) -> None:
        """Dispose one or all engines (close connection pools)."""
        if name:
            engine = self._engines.pop(name, None)
            self._session_factories.pop(name, None)
            if engine is not None:
                engine.dispose()
        else:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
            self._session_factories.clear()

    @property
    def registered_names(self) -> list:
        return list(self._engines.keys())

    def health_check(self, name: str) -> bool:
        """Check if an engine can connect."""
        try:
            with self.get(name).connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


# Global engine registry singleton
engine_registry = EngineRegistry()
