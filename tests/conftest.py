"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.audit.models import AnswerType, Auditor, Department, Question
from src.audit.store import InMemorySessionStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in a temp dir)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class RecordingStore(InMemorySessionStore):
    """
    In-memory store that records calls and can be told to fail or stall.

    fail_creates / fail_updates: number of upcoming calls to fail
    create_delay / update_delay: seconds each call waits before completing
    """

    def __init__(self):
        super().__init__()
        self.calls: list[tuple[str, object]] = []
        self.fail_creates = 0
        self.fail_updates = 0
        self.create_delay = 0.0
        self.update_delay = 0.0

    @property
    def create_calls(self) -> list:
        return [args for name, args in self.calls if name == "create"]

    @property
    def update_calls(self) -> list:
        return [args for name, args in self.calls if name == "update"]

    async def create(self, fields):
        self.calls.append(("create", dict(fields)))
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.fail_creates:
            self.fail_creates -= 1
            raise ConnectionError("store unavailable")
        return await super().create(fields)

    async def update(self, session_id, fields):
        self.calls.append(("update", (session_id, dict(fields))))
        if self.update_delay:
            await asyncio.sleep(self.update_delay)
        if self.fail_updates:
            self.fail_updates -= 1
            raise ConnectionError("store unavailable")
        await super().update(session_id, fields)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def make_question():
    """Factory for catalog questions."""

    def _make(
        qid: str,
        category: str = "Store Conditions",
        points_yes: int = 10,
        points_partial: int = 0,
        partial: bool = False,
    ) -> Question:
        return Question(
            id=qid,
            risk_category=category,
            text=f"Question {qid}?",
            criteria=f"Criteria for {qid}.",
            answer_type=AnswerType.YES_NO_PARTIAL if partial else AnswerType.YES_NO,
            points_yes=points_yes,
            points_partial=points_partial,
            points_no=0,
        )

    return _make


@pytest.fixture
def department(make_question):
    """Four yes/no questions across two categories, 10 points each."""
    return Department(
        id="dept-deli",
        name="Deli",
        questions=(
            make_question("q1", "Store Conditions"),
            make_question("q2", "Food Safety"),
            make_question("q3", "Store Conditions"),
            make_question("q4", "Food Safety", points_partial=5, partial=True),
        ),
    )


@pytest.fixture
def auditor():
    return Auditor(id="auditor-1", name="Sam Lee")


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def sample_catalog():
    """Catalog file contents in the on-disk format."""
    return {
        "departments": [
            {
                "id": "dept-bakery",
                "name": "Bakery",
                "questions": [
                    {
                        "id": "b1",
                        "riskCategory": "Food Safety",
                        "text": "Are allergen labels present?",
                        "criteria": "Every item labelled.",
                        "answerType": "yes_no_partial",
                        "pointsYes": 10,
                        "pointsPartial": 5,
                        "pointsNo": 0,
                    },
                    {
                        "id": "b2",
                        "risk_category": "Store Conditions",
                        "text": "Is the case clean?",
                        "points_yes": 5,
                    },
                ],
            }
        ]
    }
