"""
Session store contract.

The engine is a pure consumer of this interface; persistence semantics belong
to the store. Field dicts passed to create/update use the keys of
AuditSession.to_dict() minus "id", with answers as a list of dicts.
"""

from __future__ import annotations

import uuid
from typing import Any, Protocol

from loguru import logger

from .exceptions import SessionStoreError
from .models import AuditSession

SESSION_FIELDS = (
    "department_id",
    "auditor_id",
    "auditor_name",
    "date",
    "answers",
    "total_points",
    "max_points",
    "percentage",
    "completed",
)


class SessionStore(Protocol):
    """Async persistence port for audit sessions."""

    async def find_incomplete(self, department_id: str, auditor_id: str) -> AuditSession | None:
        """Return one completed=False session for the pair, or None."""
        ...

    async def create(self, fields: dict[str, Any]) -> str:
        """Insert a session row and return its id."""
        ...

    async def update(self, session_id: str, fields: dict[str, Any]) -> None:
        """Patch a session row with the given (partial) fields."""
        ...

    async def get(self, session_id: str) -> AuditSession | None:
        ...

    async def list_sessions(
        self,
        department_id: str | None = None,
        completed: bool | None = None,
    ) -> list[AuditSession]:
        ...


def check_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Reject keys that are not session columns."""
    unknown = set(fields) - set(SESSION_FIELDS)
    if unknown:
        raise SessionStoreError(f"Unknown session fields: {sorted(unknown)}")
    return fields


class InMemorySessionStore:
    """
    Dict-backed SessionStore.

    Used by tests and by the CLI's --memory flag. Sessions keep insertion
    order, so find_incomplete returns the oldest matching row first.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, AuditSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def find_incomplete(self, department_id: str, auditor_id: str) -> AuditSession | None:
        matches = [
            s
            for s in self._sessions.values()
            if s.department_id == department_id and s.auditor_id == auditor_id and not s.completed
        ]
        if len(matches) > 1:
            logger.warning(
                "{} incomplete sessions for department={} auditor={}; returning the first",
                len(matches),
                department_id,
                auditor_id,
            )
        return AuditSession.from_dict(matches[0].to_dict()) if matches else None

    async def create(self, fields: dict[str, Any]) -> str:
        check_fields(fields)
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = AuditSession.from_dict({**fields, "id": session_id})
        return session_id

    async def update(self, session_id: str, fields: dict[str, Any]) -> None:
        check_fields(fields)
        existing = self._sessions.get(session_id)
        if existing is None:
            raise SessionStoreError(f"Session not found: {session_id}")
        self._sessions[session_id] = AuditSession.from_dict({**existing.to_dict(), **fields})

    async def get(self, session_id: str) -> AuditSession | None:
        session = self._sessions.get(session_id)
        return AuditSession.from_dict(session.to_dict()) if session else None

    async def list_sessions(
        self,
        department_id: str | None = None,
        completed: bool | None = None,
    ) -> list[AuditSession]:
        sessions = [
            s
            for s in self._sessions.values()
            if (department_id is None or s.department_id == department_id)
            and (completed is None or s.completed == completed)
        ]
        return sorted(sessions, key=lambda s: s.date, reverse=True)
