"""
Resume an interrupted audit.

Looks up the auditor's incomplete session for the department and replays it
into a fresh DraftState. The store contract does not forbid several
incomplete rows for one (department, auditor) pair; whichever the store
returns first is adopted.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from .navigation import build_answer
from .sequencer import QuestionSequence
from .state import DraftState, empty_draft, first_gap_index
from .store import SessionStore


async def reconcile(
    store: SessionStore,
    sequence: QuestionSequence,
    department_id: str,
    auditor_id: str,
) -> DraftState:
    """
    Seed a draft from the store.

    Returns:
        An empty draft when nothing is in progress; otherwise a draft with
        the stored session id, its answers, and the cursor on the first
        unanswered question (or the last question if all are answered).
    """
    existing = await store.find_incomplete(department_id, auditor_id)
    if existing is None:
        logger.debug("No incomplete session for department={} auditor={}", department_id, auditor_id)
        return empty_draft()

    questions = {q.id: q for q in sequence}
    answers = {}
    for answer in existing.answers:
        question = questions.get(answer.question_id)
        if question is None:
            logger.warning(
                "Dropping answer for unknown question {} from session {}",
                answer.question_id,
                existing.id,
            )
            continue
        # Points and snapshot follow the current question weights
        answers[answer.question_id] = build_answer(question, answer.value)

    draft = DraftState(session_id=existing.id, answers=answers)
    draft = replace(draft, cursor_index=first_gap_index(draft, sequence))
    logger.info(
        "Resuming session {} ({}/{} answered, cursor at {})",
        existing.id,
        len(answers),
        len(sequence),
        draft.cursor_index,
    )
    return draft
