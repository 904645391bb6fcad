"""
Question sequencing.

Groups a department's questions by risk category (first-seen order, source
order within each category) and flattens the groups into the single index
space that navigation, resume and finalization all share.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .models import Question


@dataclass(frozen=True)
class Category:
    """A risk category and its questions in source order."""

    name: str
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class QuestionSequence:
    """Categories plus their flattened concatenation."""

    categories: tuple[Category, ...]
    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    @property
    def last_index(self) -> int:
        return len(self.questions) - 1

    def index_of(self, question_id: str) -> int | None:
        """Flattened index of a question id, or None if absent."""
        for i, q in enumerate(self.questions):
            if q.id == question_id:
                return i
        return None

    def category_of(self, index: int) -> str:
        return self.questions[index].risk_category


def sequence_questions(questions: Iterable[Question]) -> QuestionSequence:
    """Build the canonical ordering for a department's questions."""
    order: list[str] = []
    grouped: dict[str, list[Question]] = {}
    for q in questions:
        if q.risk_category not in grouped:
            grouped[q.risk_category] = []
            order.append(q.risk_category)
        grouped[q.risk_category].append(q)

    categories = tuple(Category(name=name, questions=tuple(grouped[name])) for name in order)
    flattened = tuple(q for cat in categories for q in cat.questions)
    return QuestionSequence(categories=categories, questions=flattened)
