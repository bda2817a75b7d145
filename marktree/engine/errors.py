"""
MarkTree Error Hierarchy — Structured exceptions for the folder tree engine.

Every error carries a message plus free-form context (record_type, record_id,
user_id, operation ...) so the controller layer can log it and map it to a
response without string matching.

Hierarchy:
    MarkTreeError
    ├── NotFoundError        — Folder / parent / bookmark missing or soft-deleted
    ├── BadRequestError      — Blank names, cyclic parenting, invalid input
    │   └── ForbiddenError   — Owner mismatch (caught as BadRequest too)
    └── ConfigError          — Invalid marktree.yaml or unreachable database
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class MarkTreeError(Exception):
    """
    Base error for all MarkTree failures.
    All context is serializable to JSON.
    """

    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.record_type: Optional[str] = context.get("record_type")
        self.record_id: Optional[Any] = context.get("record_id")
        self.user_id: Optional[Any] = context.get("user_id")
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "status_code": self.status_code,
            "message": self.message,
            "record_type": self.record_type,
            "record_id": self.record_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("record_type", "record_id", "user_id", "operation")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.record_type:
            parts.append(f"record={self.record_type}:{self.record_id}")
        if self.user_id is not None:
            parts.append(f"user_id={self.user_id}")
        return " | ".join(parts)


class NotFoundError(MarkTreeError):
    """Requested record does not exist or has been soft-deleted."""

    status_code = 404


class BadRequestError(MarkTreeError):
    """
    Input rejected before any write happened.
    Includes field-level error details when available.
    """

    status_code = 400

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class ForbiddenError(BadRequestError):
    """
    The requesting user does not own the record.
    Subclasses BadRequestError so callers that only distinguish
    "missing" from "invalid" keep working.
    """

    status_code = 403

    def __init__(self, message: str, **context: Any):
        self.owner_id: Optional[Any] = context.get("owner_id")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["owner_id"] = self.owner_id
        return d


class ConfigError(MarkTreeError):
    """Configuration error — invalid marktree.yaml or unreachable database."""
    pass
