"""
Audit conduct engine.

One AuditEngine instance owns one audit attempt for one (department, auditor)
pair. It composes the pure draft transitions with the two store writers
(autosave and finalization) and exposes what a host UI needs to render the
current flashcard.

Usage:
    async with AuditEngine(department, auditor, store) as engine:
        engine.answer(AnswerValue.YES)
        engine.next()
        result = await engine.finish()
        if result.status == FinishStatus.CONFIRMATION_REQUIRED:
            result = await engine.submit_anyway()
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from config import get_settings

from . import navigation
from .autosave import AutosaveScheduler, utc_now_iso
from .exceptions import EngineStateError
from .finalization import FinalizationController, FinishResult, FinishStatus, can_finish
from .models import Answer, AnswerValue, Auditor, Department, Question
from .reconciler import reconcile
from .scoring import Score, score
from .sequencer import QuestionSequence, sequence_questions
from .state import AuditContext, AuditMode, DraftState, progress_fraction
from .store import SessionStore


class AuditEngine:
    """State machine plus persistence for a single audit attempt."""

    def __init__(
        self,
        department: Department,
        auditor: Auditor,
        store: SessionStore,
        debounce_seconds: float | None = None,
        advance_on_answer: bool | None = None,
        on_finished: Callable[[str], None] | None = None,
        clock: Callable[[], str] = utc_now_iso,
    ):
        settings = get_settings()
        self.department = department
        self.auditor = auditor
        self.store = store
        self.sequence: QuestionSequence = sequence_questions(department.questions)
        self.context = AuditContext(
            department_id=department.id,
            auditor_id=auditor.id,
            auditor_name=auditor.name,
            sequence=self.sequence,
        )
        self.advance_on_answer = (
            settings.advance_on_answer if advance_on_answer is None else advance_on_answer
        )
        self.on_finished = on_finished
        self.result_id: str | None = None

        self._state: DraftState | None = None
        self._mount_started = False
        self._finished = False

        self.autosave = AutosaveScheduler(
            store,
            self.context,
            snapshot=self._snapshot,
            on_session_created=self._adopt_session_id,
            delay=settings.autosave_debounce_seconds if debounce_seconds is None else debounce_seconds,
            clock=clock,
        )
        self.finalizer = FinalizationController(
            store, self.context, self.autosave, snapshot=self._snapshot, clock=clock
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def mount(self) -> None:
        """Seed the draft from the store. Runs once; later calls are no-ops."""
        if self._mount_started:
            return
        self._mount_started = True
        self._state = await reconcile(self.store, self.sequence, self.department.id, self.auditor.id)
        logger.info(
            "Audit mounted: department={} auditor={} questions={}",
            self.department.id,
            self.auditor.id,
            len(self.sequence),
        )

    async def unmount(self) -> None:
        """Drop the pending autosave timer and the draft. In-flight writes still complete."""
        self.autosave.cancel()
        self._state = None
        logger.debug("Audit unmounted: department={}", self.department.id)

    async def save_now(self) -> None:
        """Write a pending autosave immediately (used before leaving an audit)."""
        await self.autosave.flush()

    async def __aenter__(self) -> "AuditEngine":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    def _snapshot(self) -> DraftState | None:
        return self._state

    def _adopt_session_id(self, session_id: str) -> None:
        if self._state is not None and self._state.session_id is None:
            self._state = self._state.with_session_id(session_id)

    def _require_draft(self) -> DraftState:
        if self._state is None:
            if self._finished:
                raise EngineStateError("Audit already finalized")
            raise EngineStateError("Audit engine is not mounted")
        return self._state

    # =========================================================================
    # View
    # =========================================================================

    @property
    def state(self) -> DraftState:
        return self._require_draft()

    @property
    def active(self) -> bool:
        return self._state is not None

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def total_questions(self) -> int:
        return len(self.sequence)

    @property
    def cursor_index(self) -> int:
        return self.state.cursor_index

    @property
    def current_question(self) -> Question | None:
        if len(self.sequence) == 0:
            return None
        return self.sequence[self.state.cursor_index]

    @property
    def current_answer(self) -> Answer | None:
        question = self.current_question
        if question is None:
            return None
        return self.state.answers.get(question.id)

    @property
    def answered_count(self) -> int:
        return self.state.answered_count

    @property
    def progress(self) -> float:
        """Answered fraction, 0.0 to 1.0."""
        return progress_fraction(self.state, self.sequence)

    @property
    def mode(self) -> AuditMode:
        return self.state.mode

    @property
    def skipped_indices(self) -> tuple[int, ...]:
        return self.state.skipped_indices

    @property
    def confirming(self) -> bool:
        return self._state is not None and self._state.confirming

    @property
    def submitting(self) -> bool:
        return self.finalizer.submitting

    @property
    def can_finish(self) -> bool:
        return can_finish(self.state, len(self.sequence))

    @property
    def score(self) -> Score:
        return score(self.state.answers, self.sequence)

    # =========================================================================
    # Actions
    # =========================================================================

    def _blocked(self) -> bool:
        return self.confirming or self.submitting

    def answer(self, value: AnswerValue) -> bool:
        """Record an answer for the current question and schedule an autosave."""
        state = self._require_draft()
        if self._blocked() or len(self.sequence) == 0:
            return False
        self._state = navigation.record_answer(
            state, self.sequence, AnswerValue(value), advance=self.advance_on_answer
        )
        self.autosave.schedule()
        return True

    def next(self) -> None:
        if not self._blocked():
            self._state = navigation.next_question(self._require_draft(), self.sequence)

    def previous(self) -> None:
        if not self._blocked():
            self._state = navigation.previous_question(self._require_draft(), self.sequence)

    def jump_to(self, index: int) -> None:
        if not self._blocked():
            self._state = navigation.jump_to(self._require_draft(), self.sequence, index)

    def exit_review(self) -> None:
        if not self._blocked():
            self._state = navigation.exit_review(self._require_draft())

    async def finish(self) -> FinishResult:
        """
        The Finish action.

        Returns CONFIRMATION_REQUIRED when questions are unanswered, otherwise
        submits straight away.

        Raises:
            FinalizeError: the terminal write failed (retryable)
        """
        state = self._require_draft()
        if self.submitting:
            return FinishResult(status=FinishStatus.UNAVAILABLE)
        self._state, result = self.finalizer.request_finish(state)
        if result is not None:
            return result
        return await self._submit()

    def review_skipped(self) -> None:
        state = self._require_draft()
        if not self.submitting:
            self._state = self.finalizer.review_skipped(state)

    def cancel_confirmation(self) -> None:
        state = self._require_draft()
        if not self.submitting:
            self._state = self.finalizer.cancel_confirmation(state)

    async def submit_anyway(self) -> FinishResult:
        """Submit with unanswered questions left out of the answer list."""
        if not self._require_draft().confirming or self.submitting:
            return FinishResult(status=FinishStatus.UNAVAILABLE)
        return await self._submit()

    async def _submit(self) -> FinishResult:
        result = await self.finalizer.submit()
        self._state = None
        self._finished = True
        self.result_id = result.session_id
        if self.on_finished is not None and result.session_id is not None:
            self.on_finished(result.session_id)
        return result
