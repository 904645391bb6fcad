"""
Draft state for one audit attempt.

DraftState is an immutable value. Every transition (see navigation.py)
returns a new DraftState, so the engine can swap state atomically and the
autosave snapshot accessor always observes a consistent answer map.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping

from .models import Answer
from .scoring import score
from .sequencer import QuestionSequence


class AuditMode(str, Enum):
    """Traversal mode."""

    LINEAR = "linear"
    SKIPPED_REVIEW = "skipped_review"


@dataclass(frozen=True)
class DraftState:
    """In-memory, not-yet-finalized audit attempt."""

    session_id: str | None = None
    answers: Mapping[str, Answer] = field(default_factory=dict)
    cursor_index: int = 0
    mode: AuditMode = AuditMode.LINEAR
    skipped_indices: tuple[int, ...] = ()
    confirming: bool = False

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    def is_answered(self, question_id: str) -> bool:
        return question_id in self.answers

    def with_session_id(self, session_id: str) -> "DraftState":
        return replace(self, session_id=session_id)

    def answer_list(self, sequence: QuestionSequence) -> list[Answer]:
        """Answers in flattened question order."""
        return [self.answers[q.id] for q in sequence if q.id in self.answers]


def empty_draft() -> DraftState:
    return DraftState()


def unanswered_indices(state: DraftState, sequence: QuestionSequence) -> tuple[int, ...]:
    """Sorted flattened indices of questions without an answer."""
    return tuple(i for i, q in enumerate(sequence) if q.id not in state.answers)


def first_gap_index(state: DraftState, sequence: QuestionSequence) -> int:
    """First unanswered index, or the last question when nothing is missing."""
    gaps = unanswered_indices(state, sequence)
    if gaps:
        return gaps[0]
    return max(sequence.last_index, 0)


def progress_fraction(state: DraftState, sequence: QuestionSequence) -> float:
    if len(sequence) == 0:
        return 0.0
    return state.answered_count / len(sequence)


@dataclass(frozen=True)
class AuditContext:
    """Department, auditor and question sequence of one attempt."""

    department_id: str
    auditor_id: str
    auditor_name: str
    sequence: QuestionSequence

    def session_fields(self, state: DraftState, completed: bool, date: str | None = None) -> dict:
        """Full store field set for the draft, scored against every question."""
        result = score(state.answers, self.sequence)
        fields = {
            "department_id": self.department_id,
            "auditor_id": self.auditor_id,
            "auditor_name": self.auditor_name,
            "answers": [a.to_dict() for a in state.answer_list(self.sequence)],
            "total_points": result.total_points,
            "max_points": result.max_points,
            "percentage": result.percentage,
            "completed": completed,
        }
        if date is not None:
            fields["date"] = date
        return fields
