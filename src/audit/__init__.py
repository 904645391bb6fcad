"""
Audit: weighted checklist conduct engine for store department audits.

Components:
- sequencer: category grouping and the flattened question order
- state / navigation: draft state and its pure transitions
- scoring: points, totals and percentage
- reconciler: resume an incomplete session
- autosave: debounced background persistence
- finalization: skip confirmation and the completed write
- input_adapter: key dispatch for hosts
- engine: one audit attempt, composed from the above
"""

from .engine import AuditEngine
from .exceptions import AuditError, EngineStateError, FinalizeError, SessionStoreError
from .finalization import FinishResult, FinishStatus
from .input_adapter import InputAdapter, InputChannel, Key
from .models import Answer, AnswerType, AnswerValue, Auditor, AuditSession, Department, Question
from .scoring import Score, category_breakdown, grade_label, points, score, score_band
from .sequencer import QuestionSequence, sequence_questions
from .state import AuditMode, DraftState
from .store import InMemorySessionStore, SessionStore

__all__ = [
    "AuditEngine",
    "AuditError",
    "EngineStateError",
    "FinalizeError",
    "SessionStoreError",
    "FinishResult",
    "FinishStatus",
    "InputAdapter",
    "InputChannel",
    "Key",
    "Answer",
    "AnswerType",
    "AnswerValue",
    "Auditor",
    "AuditSession",
    "Department",
    "Question",
    "Score",
    "category_breakdown",
    "grade_label",
    "points",
    "score",
    "score_band",
    "QuestionSequence",
    "sequence_questions",
    "AuditMode",
    "DraftState",
    "InMemorySessionStore",
    "SessionStore",
]
