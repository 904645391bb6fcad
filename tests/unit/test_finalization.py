"""
Unit tests for the finish flow: skip confirmation, review and terminal write.
"""

import asyncio

import pytest
import pytest_asyncio

from src.audit.engine import AuditEngine
from src.audit.exceptions import FinalizeError
from src.audit.finalization import FinishStatus, can_finish
from src.audit.models import AnswerValue
from src.audit.state import AuditMode, DraftState

DEBOUNCE = 0.01


@pytest_asyncio.fixture
async def engine(department, auditor, store):
    finished = []
    engine = AuditEngine(
        department, auditor, store, debounce_seconds=DEBOUNCE, on_finished=finished.append
    )
    engine.finished_ids = finished
    await engine.mount()
    yield engine
    await engine.unmount()
    await engine.autosave.drain()


def answer_all(engine, value=AnswerValue.YES):
    for _ in range(engine.total_questions):
        engine.answer(value)


class TestCanFinish:
    def test_only_on_last_question_in_linear(self):
        assert not can_finish(DraftState(cursor_index=0), 4)
        assert can_finish(DraftState(cursor_index=3), 4)

    def test_in_review(self):
        state = DraftState(mode=AuditMode.SKIPPED_REVIEW, skipped_indices=(1,))

        assert can_finish(state, 4)

    def test_no_questions(self):
        assert not can_finish(DraftState(), 0)


class TestFinishWithoutGaps:
    @pytest.mark.asyncio
    async def test_no_confirmation_when_everything_answered(self, engine, store):
        answer_all(engine)

        result = await engine.finish()

        assert result.status == FinishStatus.SUBMITTED
        assert result.score.total_points == 40
        assert result.score.percentage == 100
        assert engine.finished
        assert not engine.active
        assert engine.finished_ids == [result.session_id]

    @pytest.mark.asyncio
    async def test_creates_completed_session_when_no_autosave_ran(self, department, auditor, store):
        engine = AuditEngine(department, auditor, store, debounce_seconds=60.0)
        await engine.mount()
        answer_all(engine)

        result = await engine.finish()

        assert len(store.create_calls) == 1
        assert store.create_calls[0]["completed"] is True
        saved = await store.get(result.session_id)
        assert saved.completed is True
        assert len(saved.answers) == 4

    @pytest.mark.asyncio
    async def test_updates_autosaved_session(self, engine, store):
        engine.answer(AnswerValue.YES)
        await asyncio.sleep(DEBOUNCE * 5)
        await engine.autosave.drain()
        session_id = engine.state.session_id
        for _ in range(3):
            engine.answer(AnswerValue.NO)

        result = await engine.finish()

        assert result.session_id == session_id
        assert len(store.create_calls) == 1
        last_id, fields = store.update_calls[-1]
        assert last_id == session_id
        assert fields["completed"] is True
        assert fields["total_points"] == 10
        assert fields["percentage"] == 25

    @pytest.mark.asyncio
    async def test_pending_autosave_cannot_land_after_finalize(self, engine, store):
        answer_all(engine)
        assert engine.autosave.pending

        await engine.finish()
        await asyncio.sleep(DEBOUNCE * 5)

        assert len(store.calls) == 1
        assert store.calls[0][1]["completed"] is True

    @pytest.mark.asyncio
    async def test_waits_for_inflight_autosave_create(self, engine, store):
        store.create_delay = DEBOUNCE * 5
        answer_all(engine)
        await asyncio.sleep(DEBOUNCE * 2)  # autosave create in flight

        result = await engine.finish()

        assert len(store.create_calls) == 1
        assert store.update_calls[-1][0] == result.session_id
        assert len(store) == 1
        assert (await store.get(result.session_id)).completed is True


class TestSkipConfirmation:
    @pytest.mark.asyncio
    async def test_unavailable_mid_audit(self, engine, store):
        result = await engine.finish()

        assert result.status == FinishStatus.UNAVAILABLE
        assert not engine.confirming

    @pytest.mark.asyncio
    async def test_gaps_require_confirmation(self, engine, store):
        engine.answer(AnswerValue.YES)
        engine.jump_to(3)

        result = await engine.finish()

        assert result.status == FinishStatus.CONFIRMATION_REQUIRED
        assert result.skipped_indices == (1, 2, 3)
        assert engine.confirming
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_input_blocked_while_confirming(self, engine):
        engine.jump_to(3)
        await engine.finish()

        assert engine.answer(AnswerValue.YES) is False
        engine.previous()
        assert engine.cursor_index == 3

    @pytest.mark.asyncio
    async def test_repeat_finish_keeps_dialog(self, engine):
        engine.jump_to(3)
        first = await engine.finish()
        second = await engine.finish()

        assert second.status == FinishStatus.CONFIRMATION_REQUIRED
        assert second.skipped_indices == first.skipped_indices

    @pytest.mark.asyncio
    async def test_review_skipped_enters_review_without_persisting(self, engine, store):
        engine.answer(AnswerValue.YES)
        engine.jump_to(3)
        await engine.finish()

        engine.review_skipped()

        assert engine.mode == AuditMode.SKIPPED_REVIEW
        assert engine.cursor_index == 1
        assert not engine.confirming
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_review_then_answer_everything_reverts_to_linear(self, engine):
        engine.answer(AnswerValue.YES)
        engine.jump_to(3)
        await engine.finish()
        engine.review_skipped()

        for _ in range(3):
            engine.answer(AnswerValue.NO)

        assert engine.mode == AuditMode.LINEAR
        assert engine.skipped_indices == ()
        result = await engine.finish()
        assert result.status == FinishStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_cancel_confirmation(self, engine):
        engine.jump_to(3)
        await engine.finish()

        engine.cancel_confirmation()

        assert not engine.confirming
        assert engine.mode == AuditMode.LINEAR
        assert engine.skipped_indices == ()
        assert engine.cursor_index == 3

    @pytest.mark.asyncio
    async def test_submit_anyway_writes_only_answered(self, engine, store):
        engine.answer(AnswerValue.YES)  # q1 -> 10 points
        engine.jump_to(3)
        await engine.finish()

        result = await engine.submit_anyway()

        assert result.status == FinishStatus.SUBMITTED
        saved = await store.get(result.session_id)
        assert saved.completed is True
        assert [a.question_id for a in saved.answers] == ["q1"]
        assert saved.total_points == 10
        assert saved.max_points == 40
        assert saved.percentage == 25

    @pytest.mark.asyncio
    async def test_submit_anyway_requires_open_dialog(self, engine, store):
        result = await engine.submit_anyway()

        assert result.status == FinishStatus.UNAVAILABLE
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_finish_from_review_asks_again(self, engine):
        engine.jump_to(3)
        await engine.finish()
        engine.review_skipped()
        engine.answer(AnswerValue.YES)

        result = await engine.finish()

        assert result.status == FinishStatus.CONFIRMATION_REQUIRED
        assert result.skipped_indices == (1, 2, 3)


class TestFinalizeFailure:
    @pytest.mark.asyncio
    async def test_failure_is_retryable_and_keeps_draft(self, engine, store):
        answer_all(engine)
        store.fail_creates = 1

        with pytest.raises(FinalizeError) as exc_info:
            await engine.finish()

        assert exc_info.value.retryable
        assert engine.active
        assert engine.answered_count == 4
        assert not engine.finished
        assert engine.finished_ids == []

        result = await engine.finish()
        assert result.status == FinishStatus.SUBMITTED
        assert engine.finished_ids == [result.session_id]

    @pytest.mark.asyncio
    async def test_failure_rearms_autosave_so_quitting_keeps_answers(
        self, department, auditor, store
    ):
        engine = AuditEngine(department, auditor, store, debounce_seconds=60.0)
        await engine.mount()
        answer_all(engine)
        store.fail_creates = 1

        with pytest.raises(FinalizeError):
            await engine.finish()

        assert engine.autosave.pending
        await engine.save_now()
        await engine.unmount()

        assert len(store) == 1
        saved = (await store.list_sessions())[0]
        assert saved.completed is False
        assert len(saved.answers) == 4

    @pytest.mark.asyncio
    async def test_confirmation_actions_ignored_while_submitting(self, engine, store):
        store.create_delay = DEBOUNCE * 5
        engine.answer(AnswerValue.YES)
        engine.jump_to(3)
        await engine.finish()

        task = asyncio.ensure_future(engine.submit_anyway())
        await asyncio.sleep(DEBOUNCE)
        assert engine.submitting

        engine.review_skipped()
        engine.cancel_confirmation()

        assert engine.mode == AuditMode.LINEAR
        assert engine.confirming
        assert engine.skipped_indices == (1, 2, 3)
        result = await task
        assert result.status == FinishStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_failure_after_submit_anyway_keeps_dialog(self, engine, store):
        engine.jump_to(3)
        await engine.finish()
        store.fail_creates = 1

        with pytest.raises(FinalizeError):
            await engine.submit_anyway()

        assert engine.confirming
        result = await engine.submit_anyway()
        assert result.status == FinishStatus.SUBMITTED
