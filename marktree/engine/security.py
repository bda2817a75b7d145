"""
MarkTree Security — Owner-equality guard shared by every service.

There is no group/permission model: a record may be read or mutated only by
the user whose id is stored on it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from marktree.engine.errors import ForbiddenError
from marktree.engine.logging import log, log_security_event

logger = logging.getLogger("marktree.engine.security")


def validate_user_access(
    owner_id: Any,
    user_id: Any,
    record_type: str = "folder",
    record_id: Optional[Any] = None,
    operation: Optional[str] = None,
) -> None:
    """
    Raise ForbiddenError unless ``user_id`` owns the record.

    Args:
        owner_id: user_id stored on the record.
        user_id: the requesting user.
        record_type: "folder" or "bookmark", used for the message and logs.
        record_id: primary key of the record, for context.
        operation: calling operation name, for context.
    """
    if owner_id == user_id:
        return

    logger.warning(
        f"Access denied: user {user_id} on {record_type} {record_id} owned by {owner_id}"
        + (f" ({operation})" if operation else "")
    )
    log(log_security_event(
        object_type=f"{record_type}s",
        record_id=record_id,
        owner_id=owner_id,
        user_id=user_id,
        operation=operation,
    ))
    raise ForbiddenError(
        f"{record_type.capitalize()} {record_id} is not accessible",
        record_type=record_type,
        record_id=record_id,
        user_id=user_id,
        owner_id=owner_id,
        operation=operation,
    )
