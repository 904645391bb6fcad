"""
Unit tests for resuming incomplete sessions.
"""

from dataclasses import replace

import pytest

from src.audit.models import AnswerValue
from src.audit.navigation import build_answer
from src.audit.reconciler import reconcile
from src.audit.sequencer import sequence_questions
from src.audit.state import AuditMode


def _fields(seq, answered, completed=False, auditor_id="auditor-1"):
    return {
        "department_id": "dept-deli",
        "auditor_id": auditor_id,
        "auditor_name": "Sam Lee",
        "date": "2026-10-01T09:00:00+00:00",
        "answers": [build_answer(seq[i], AnswerValue.YES).to_dict() for i in answered],
        "total_points": 0,
        "max_points": 0,
        "percentage": 0,
        "completed": completed,
    }


@pytest.fixture
def seq(department):
    return sequence_questions(department.questions)


class TestReconcile:
    @pytest.mark.asyncio
    async def test_no_session_starts_empty(self, store, seq):
        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.session_id is None
        assert state.answers == {}
        assert state.cursor_index == 0
        assert state.mode == AuditMode.LINEAR

    @pytest.mark.asyncio
    async def test_resume_restores_answers_and_cursor_at_gap(self, store, seq):
        session_id = await store.create(_fields(seq, answered=[0, 2]))

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.session_id == session_id
        assert set(state.answers) == {seq[0].id, seq[2].id}
        assert state.cursor_index == 1

    @pytest.mark.asyncio
    async def test_all_answered_puts_cursor_on_last(self, store, seq):
        await store.create(_fields(seq, answered=[0, 1, 2, 3]))

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.cursor_index == 3

    @pytest.mark.asyncio
    async def test_completed_sessions_are_not_resumed(self, store, seq):
        await store.create(_fields(seq, answered=[0], completed=True))

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.session_id is None

    @pytest.mark.asyncio
    async def test_other_auditor_not_resumed(self, store, seq):
        await store.create(_fields(seq, answered=[0], auditor_id="someone-else"))

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.session_id is None

    @pytest.mark.asyncio
    async def test_unknown_questions_dropped(self, store, seq):
        fields = _fields(seq, answered=[0])
        fields["answers"].append({"question_id": "retired", "value": "yes", "points": 5})
        await store.create(fields)

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert list(state.answers) == [seq[0].id]

    @pytest.mark.asyncio
    async def test_answers_rescored_against_current_weights(self, store, seq, department):
        await store.create(_fields(seq, answered=[0]))
        reweighted = replace(department.questions[0], points_yes=20, text="Reworded q1?")
        current = sequence_questions((reweighted, *department.questions[1:]))

        state = await reconcile(store, current, "dept-deli", "auditor-1")

        answer = state.answers["q1"]
        assert answer.value == AnswerValue.YES
        assert answer.points == 20
        assert answer.points_max == 20
        assert answer.question_text == "Reworded q1?"

    @pytest.mark.asyncio
    async def test_first_incomplete_session_wins(self, store, seq):
        first = await store.create(_fields(seq, answered=[0]))
        await store.create(_fields(seq, answered=[0, 1]))

        state = await reconcile(store, seq, "dept-deli", "auditor-1")

        assert state.session_id == first
