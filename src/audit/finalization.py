"""
Finish flow for an audit attempt.

Finishing with unanswered questions opens a blocking confirmation that
offers two ways out: review the skipped questions, or submit anyway.
Submitting writes the session with completed=True. Skipped questions are not
written as answers; they still count towards max points.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from loguru import logger

from .autosave import AutosaveScheduler, utc_now_iso
from .exceptions import EngineStateError, FinalizeError
from .navigation import enter_review
from .scoring import Score, score
from .state import AuditContext, AuditMode, DraftState, unanswered_indices
from .store import SessionStore


class FinishStatus(str, Enum):
    UNAVAILABLE = "unavailable"
    CONFIRMATION_REQUIRED = "confirmation_required"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class FinishResult:
    """Outcome of a finish request or a submit."""

    status: FinishStatus
    skipped_indices: tuple[int, ...] = ()
    session_id: str | None = None
    score: Score | None = None


def can_finish(state: DraftState, total_questions: int) -> bool:
    """Finish is offered on the last question, once everything is answered, or in review."""
    if total_questions == 0:
        return False
    if state.mode == AuditMode.SKIPPED_REVIEW:
        return True
    if state.answered_count == total_questions:
        return True
    return state.cursor_index == total_questions - 1


class FinalizationController:
    """Drives the confirmation dialog and performs the terminal write."""

    def __init__(
        self,
        store: SessionStore,
        context: AuditContext,
        autosave: AutosaveScheduler,
        snapshot: Callable[[], DraftState | None],
        clock: Callable[[], str] = utc_now_iso,
    ):
        self._store = store
        self._context = context
        self._autosave = autosave
        self._snapshot = snapshot
        self._clock = clock
        self.submitting = False

    def request_finish(self, state: DraftState) -> tuple[DraftState, FinishResult | None]:
        """
        Handle the Finish action.

        Returns:
            (new_state, result). A result of None means nothing is missing and
            the caller should go straight to submit().
        """
        if not can_finish(state, len(self._context.sequence)):
            return state, FinishResult(status=FinishStatus.UNAVAILABLE)

        gaps = unanswered_indices(state, self._context.sequence)
        if not gaps:
            return state, None

        if not state.confirming:
            logger.info("{} question(s) unanswered, asking for confirmation", len(gaps))
            state = replace(state, skipped_indices=gaps, confirming=True)
        return state, FinishResult(
            status=FinishStatus.CONFIRMATION_REQUIRED,
            skipped_indices=state.skipped_indices,
        )

    def review_skipped(self, state: DraftState) -> DraftState:
        if not state.confirming:
            return state
        return enter_review(state, state.skipped_indices)

    def cancel_confirmation(self, state: DraftState) -> DraftState:
        if not state.confirming:
            return state
        if state.mode == AuditMode.LINEAR:
            return replace(state, confirming=False, skipped_indices=())
        return replace(state, confirming=False)

    async def submit(self) -> FinishResult:
        """
        Write the session as completed.

        Raises:
            FinalizeError: the store call failed. The draft is left untouched
                and submit() can be called again.
            EngineStateError: a submit is already running or there is no draft.
        """
        if self.submitting:
            raise EngineStateError("Finalize write already in flight")

        self.submitting = True
        try:
            # No autosave may land after the completed write
            self._autosave.cancel()
            await self._autosave.drain()

            state = self._snapshot()
            if state is None:
                raise EngineStateError("No draft to finalize")

            result = score(state.answers, self._context.sequence)
            fields = self._context.session_fields(state, completed=True, date=self._clock())
            try:
                if state.session_id is not None:
                    await self._store.update(state.session_id, fields)
                    session_id = state.session_id
                else:
                    session_id = await self._store.create(fields)
            except Exception as exc:  # Any store failure is retryable
                logger.error("Finalize failed for session {}: {}", state.session_id, exc)
                # Re-arm the timer cancelled above so the draft still gets saved
                self._autosave.schedule()
                raise FinalizeError(f"Could not save audit: {exc}", state.session_id) from exc
        finally:
            self.submitting = False

        logger.info(
            "Audit completed: session={} score={}/{} ({}%)",
            session_id,
            result.total_points,
            result.max_points,
            result.percentage,
        )
        return FinishResult(status=FinishStatus.SUBMITTED, session_id=session_id, score=result)
