"""
MarkTree Database Session Management.

Provides the single entry point for DB initialisation, a context manager
for standalone unit-of-work access, and the ``transactional`` decorator
that gives every service operation an all-or-nothing boundary.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, List, Optional, Tuple, TypeVar

from sqlalchemy.orm import Session, scoped_session, sessionmaker

from marktree.db.base import Base, engine_registry

logger = logging.getLogger("marktree.db.session")

ENGINE_NAME = "marktree"

# Marker stored in Session.info while a transactional call is running
_TX_MARKER = "marktree_tx_depth"

# Callbacks waiting for the outermost commit
_AFTER_COMMIT = "marktree_after_commit"

_session_factory: Optional[scoped_session] = None

F = TypeVar("F", bound=Callable[..., Any])


def init_db(
    db_url: str,
    create_tables: bool = False,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
) -> sessionmaker:
    """
    Register the MarkTree engine and build its session factories.

    Args:
        db_url:        SQLAlchemy URL (postgresql://..., sqlite:///...).
        create_tables: Run Base.metadata.create_all() — dev/bootstrap only.
        echo:          Echo SQL statements.

    Returns:
        A plain ``sessionmaker`` bound to the engine. ``get_session()``
        hands out thread-scoped sessions from the same engine.
    """
    global _session_factory

    engine = engine_registry.register(
        ENGINE_NAME, db_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        echo=echo,
    )

    if create_tables:
        Base.metadata.create_all(engine)
        logger.info(f"Created tables on {engine.url.render_as_string(hide_password=True)}")

    factory = sessionmaker(bind=engine)
    _session_factory = scoped_session(factory)
    return factory


def get_session() -> Session:
    """Get a thread-scoped session for the MarkTree database."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Context manager for sessions with auto-commit/rollback.

    Usage:
        with session_scope() as session:
            service = app.folder_service(session)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def after_commit(session: Session, callback: Callable[..., Any], *args: Any) -> None:
    """
    Run ``callback(*args)`` once the outermost transactional call on
    ``session`` has committed. Discarded if that call rolls back.
    Runs immediately when no transactional call is in progress.
    """
    if not session.info.get(_TX_MARKER):
        callback(*args)
        return
    session.info.setdefault(_AFTER_COMMIT, []).append((callback, args))


def transactional(method: F) -> F:
    """
    Run a service method as one all-or-nothing unit of work.

    The decorated method's instance must expose ``session``. The outermost
    call commits on success and rolls back on any exception; nested calls
    (a collaborator invoked from inside another transactional method on
    the same session) join the running transaction. Callbacks queued with
    ``after_commit`` run after the outermost commit.
    """

    @functools.wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        session: Session = self.session
        depth = session.info.get(_TX_MARKER, 0)
        session.info[_TX_MARKER] = depth + 1
        pending: List[Tuple[Callable[..., Any], tuple]] = []
        try:
            result = method(self, *args, **kwargs)
            if depth == 0:
                session.commit()
        except Exception:
            if depth == 0:
                session.rollback()
                logger.debug(f"Rolled back {method.__qualname__}")
            raise
        finally:
            if depth == 0:
                session.info.pop(_TX_MARKER, None)
                pending = session.info.pop(_AFTER_COMMIT, [])
            else:
                session.info[_TX_MARKER] = depth

        for callback, callback_args in pending:
            callback(*callback_args)
        return result

    return wrapper  # type: ignore[return-value]


def close_all_sessions() -> None:
    """Close all sessions and dispose all engines. Used during shutdown."""
    global _session_factory
    if _session_factory:
        _session_factory.remove()
        _session_factory = None
    engine_registry.dispose()
