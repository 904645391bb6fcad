"""
Audit session table.

One row per audit attempt. Rows start as completed=False while autosave
writes the draft and are flipped to completed=True by the finalize write.
Answers are stored as a JSON list so each write replaces the full state.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.audit.models import Answer, AuditSession

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditSessionRow(Base):
    __tablename__ = "audit_sessions"
    __table_args__ = (
        Index("ix_audit_sessions_resume", "department_id", "auditor_id", "completed"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    department_id: Mapped[str] = mapped_column(String(64), nullable=False)
    auditor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    auditor_name: Mapped[str] = mapped_column(String(200), default="")
    date: Mapped[str] = mapped_column(String(40), default="")
    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    max_points: Mapped[int] = mapped_column(Integer, default=0)
    percentage: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def to_domain(self) -> AuditSession:
        return AuditSession(
            id=self.id,
            department_id=self.department_id,
            auditor_id=self.auditor_id,
            auditor_name=self.auditor_name,
            date=self.date,
            answers=[Answer.from_dict(a) for a in (self.answers or [])],
            total_points=self.total_points,
            max_points=self.max_points,
            percentage=self.percentage,
            completed=self.completed,
        )

    def __repr__(self) -> str:
        return f"<AuditSessionRow {self.id} dept={self.department_id} completed={self.completed}>"
