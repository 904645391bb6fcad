"""
Navigation and answer-capture transitions.

All functions are pure: they take a DraftState and return a new one (or the
same one when the transition is a no-op). Two traversal modes exist:

- LINEAR walks the flattened question list and stops at both ends.
- SKIPPED_REVIEW cycles through skipped_indices only, wrapping last <-> first.
  It is entered exclusively through enter_review(), which the finalization
  controller calls, and left either explicitly (exit_review) or once every
  skipped question has been answered.
"""

from __future__ import annotations

from dataclasses import replace

from .models import Answer, AnswerValue, Question
from .scoring import points
from .sequencer import QuestionSequence
from .state import AuditMode, DraftState


def _next_skipped(skipped: tuple[int, ...], cursor: int) -> int:
    for index in skipped:
        if index > cursor:
            return index
    return skipped[0]


def _previous_skipped(skipped: tuple[int, ...], cursor: int) -> int:
    for index in reversed(skipped):
        if index < cursor:
            return index
    return skipped[-1]


def next_question(state: DraftState, sequence: QuestionSequence) -> DraftState:
    if len(sequence) == 0:
        return state
    if state.mode == AuditMode.SKIPPED_REVIEW and state.skipped_indices:
        return replace(state, cursor_index=_next_skipped(state.skipped_indices, state.cursor_index))
    if state.cursor_index >= sequence.last_index:
        return state
    return replace(state, cursor_index=state.cursor_index + 1)


def previous_question(state: DraftState, sequence: QuestionSequence) -> DraftState:
    if len(sequence) == 0:
        return state
    if state.mode == AuditMode.SKIPPED_REVIEW and state.skipped_indices:
        return replace(
            state, cursor_index=_previous_skipped(state.skipped_indices, state.cursor_index)
        )
    if state.cursor_index <= 0:
        return state
    return replace(state, cursor_index=state.cursor_index - 1)


def jump_to(state: DraftState, sequence: QuestionSequence, index: int) -> DraftState:
    """Move straight to a question. In review only skipped questions are reachable."""
    if not 0 <= index < len(sequence):
        return state
    if state.mode == AuditMode.SKIPPED_REVIEW and index not in state.skipped_indices:
        return state
    return replace(state, cursor_index=index)


def enter_review(state: DraftState, skipped: tuple[int, ...]) -> DraftState:
    """Start reviewing skipped questions at the first one."""
    skipped = tuple(sorted(skipped))
    if not skipped:
        return replace(state, mode=AuditMode.LINEAR, skipped_indices=(), confirming=False)
    return replace(
        state,
        mode=AuditMode.SKIPPED_REVIEW,
        skipped_indices=skipped,
        cursor_index=skipped[0],
        confirming=False,
    )


def exit_review(state: DraftState) -> DraftState:
    """Back to linear traversal at the current position."""
    if state.mode == AuditMode.LINEAR:
        return state
    return replace(state, mode=AuditMode.LINEAR, skipped_indices=())


def build_answer(question: Question, value: AnswerValue) -> Answer:
    return Answer(
        question_id=question.id,
        value=value,
        points=points(question, value),
        question_text=question.text,
        risk_category=question.risk_category,
        points_max=question.points_yes,
    )


def record_answer(
    state: DraftState,
    sequence: QuestionSequence,
    value: AnswerValue,
    advance: bool = True,
) -> DraftState:
    """
    Record an answer for the question under the cursor.

    Overwrites any previous answer to the same question. In review the
    question leaves skipped_indices and the cursor moves to the next skipped
    question; when none remain the mode reverts to LINEAR in place.
    """
    if len(sequence) == 0:
        return state

    cursor = state.cursor_index
    question = sequence[cursor]
    answers = dict(state.answers)
    answers[question.id] = build_answer(question, value)

    if state.mode == AuditMode.SKIPPED_REVIEW:
        remaining = tuple(i for i in state.skipped_indices if i != cursor)
        if not remaining:
            return replace(state, answers=answers, mode=AuditMode.LINEAR, skipped_indices=())
        return replace(
            state,
            answers=answers,
            skipped_indices=remaining,
            cursor_index=_next_skipped(remaining, cursor),
        )

    if advance and cursor < sequence.last_index:
        cursor += 1
    return replace(state, answers=answers, cursor_index=cursor)
