"""
SQLAlchemy-backed session store.

Implements the async SessionStore port on top of synchronous SQLAlchemy
sessions. Each call runs in a worker thread via asyncio.to_thread so store
I/O is a suspension point for the event loop, not a blocking call.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.audit.exceptions import SessionStoreError
from src.audit.models import AuditSession
from src.audit.store import check_fields
from src.db.database import Database, get_database
from src.db.models import AuditSessionRow


class SqlSessionStore:
    """SessionStore backed by the audit_sessions table."""

    def __init__(self, database: Database | None = None, create_tables: bool = True):
        self.db = database or get_database()
        if create_tables:
            self.db.init_db()

    # =========================================================================
    # SessionStore port
    # =========================================================================

    async def find_incomplete(self, department_id: str, auditor_id: str) -> AuditSession | None:
        return await asyncio.to_thread(self._find_incomplete, department_id, auditor_id)

    async def create(self, fields: dict[str, Any]) -> str:
        return await asyncio.to_thread(self._create, dict(fields))

    async def update(self, session_id: str, fields: dict[str, Any]) -> None:
        await asyncio.to_thread(self._update, session_id, dict(fields))

    async def get(self, session_id: str) -> AuditSession | None:
        return await asyncio.to_thread(self._get, session_id)

    async def list_sessions(
        self,
        department_id: str | None = None,
        completed: bool | None = None,
    ) -> list[AuditSession]:
        return await asyncio.to_thread(self._list, department_id, completed)

    # =========================================================================
    # Sync implementations
    # =========================================================================

    def _find_incomplete(self, department_id: str, auditor_id: str) -> AuditSession | None:
        stmt = (
            select(AuditSessionRow)
            .where(
                AuditSessionRow.department_id == department_id,
                AuditSessionRow.auditor_id == auditor_id,
                AuditSessionRow.completed.is_(False),
            )
            .order_by(AuditSessionRow.created_at, AuditSessionRow.id)
        )
        try:
            with self.db.session_scope() as session:
                rows = session.scalars(stmt).all()
                if len(rows) > 1:
                    logger.warning(
                        "{} incomplete sessions for department={} auditor={}; adopting {}",
                        len(rows),
                        department_id,
                        auditor_id,
                        rows[0].id,
                    )
                return rows[0].to_domain() if rows else None
        except SQLAlchemyError as exc:
            raise SessionStoreError(f"find_incomplete failed: {exc}") from exc

    def _create(self, fields: dict[str, Any]) -> str:
        check_fields(fields)
        try:
            with self.db.session_scope() as session:
                row = AuditSessionRow(**fields)
                session.add(row)
                session.flush()
                logger.debug("Created audit session {}", row.id)
                return row.id
        except SQLAlchemyError as exc:
            raise SessionStoreError(f"create failed: {exc}") from exc

    def _update(self, session_id: str, fields: dict[str, Any]) -> None:
        check_fields(fields)
        try:
            with self.db.session_scope() as session:
                row = session.get(AuditSessionRow, session_id)
                if row is None:
                    raise SessionStoreError(f"Session not found: {session_id}")
                for key, value in fields.items():
                    setattr(row, key, value)
        except SQLAlchemyError as exc:
            raise SessionStoreError(f"update failed: {exc}") from exc

    def _get(self, session_id: str) -> AuditSession | None:
        try:
            with self.db.session_scope() as session:
                row = session.get(AuditSessionRow, session_id)
                return row.to_domain() if row else None
        except SQLAlchemyError as exc:
            raise SessionStoreError(f"get failed: {exc}") from exc

    def _list(self, department_id: str | None, completed: bool | None) -> list[AuditSession]:
        stmt = select(AuditSessionRow).order_by(AuditSessionRow.date.desc())
        if department_id is not None:
            stmt = stmt.where(AuditSessionRow.department_id == department_id)
        if completed is not None:
            stmt = stmt.where(AuditSessionRow.completed.is_(completed))
        try:
            with self.db.session_scope() as session:
                return [row.to_domain() for row in session.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            raise SessionStoreError(f"list failed: {exc}") from exc
