"""
Domain types for store department audits.

Questions and departments come from an external, already-validated catalog
and are treated as read-only. Answers and sessions are what the engine
produces and hands to the session store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AnswerType(str, Enum):
    """Which answer buttons a question offers."""

    YES_NO = "yes_no"
    YES_NO_PARTIAL = "yes_no_partial"


class AnswerValue(str, Enum):
    """A recorded answer."""

    YES = "yes"
    NO = "no"
    PARTIAL = "partial"


@dataclass(frozen=True)
class Question:
    """A single weighted checklist question."""

    id: str
    risk_category: str
    text: str
    criteria: str = ""
    answer_type: AnswerType = AnswerType.YES_NO
    points_yes: int = 0
    points_partial: int = 0
    points_no: int = 0

    @property
    def allows_partial(self) -> bool:
        return self.answer_type == AnswerType.YES_NO_PARTIAL


@dataclass(frozen=True)
class Department:
    """A store department with its ordered question list."""

    id: str
    name: str
    questions: tuple[Question, ...] = ()
    icon: str = ""


@dataclass(frozen=True)
class Auditor:
    """The person conducting the audit, supplied by the host."""

    id: str
    name: str


@dataclass(frozen=True)
class Answer:
    """
    One answer in a draft or persisted session.

    The question_text / risk_category / points_max fields are a snapshot of
    the question at write time so a results view still reads correctly after
    the catalog changes.
    """

    question_id: str
    value: AnswerValue
    points: int
    question_text: str | None = None
    risk_category: str | None = None
    points_max: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the store's record format."""
        data: dict[str, Any] = {
            "question_id": self.question_id,
            "value": self.value.value,
            "points": self.points,
        }
        if self.question_text is not None:
            data["question_text"] = self.question_text
        if self.risk_category is not None:
            data["risk_category"] = self.risk_category
        if self.points_max is not None:
            data["points_max"] = self.points_max
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Answer":
        """Create from a store record."""
        return cls(
            question_id=data["question_id"],
            value=AnswerValue(data["value"]),
            points=int(data.get("points", 0)),
            question_text=data.get("question_text"),
            risk_category=data.get("risk_category"),
            points_max=data.get("points_max"),
        )


@dataclass
class AuditSession:
    """A persisted audit session row."""

    id: str
    department_id: str
    auditor_id: str
    auditor_name: str
    date: str  # ISO format
    answers: list[Answer] = field(default_factory=list)
    total_points: int = 0
    max_points: int = 0
    percentage: int = 0
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "department_id": self.department_id,
            "auditor_id": self.auditor_id,
            "auditor_name": self.auditor_name,
            "date": self.date,
            "answers": [a.to_dict() for a in self.answers],
            "total_points": self.total_points,
            "max_points": self.max_points,
            "percentage": self.percentage,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditSession":
        return cls(
            id=str(data["id"]),
            department_id=data["department_id"],
            auditor_id=data["auditor_id"],
            auditor_name=data.get("auditor_name", ""),
            date=data.get("date", ""),
            answers=[Answer.from_dict(a) for a in data.get("answers", [])],
            total_points=int(data.get("total_points", 0)),
            max_points=int(data.get("max_points", 0)),
            percentage=int(data.get("percentage", 0)),
            completed=bool(data.get("completed", False)),
        )
