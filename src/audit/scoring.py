"""
Audit scoring.

Pure functions only. Max points always cover every question in the
department; earned points only cover answered ones, so skipping a question
costs its full weight.

Grade labels and score bands are the results-view thresholds:

    Score band           Grade label
    >= 94  excellent     >= 98 Outstanding, >= 94 Great
    >= 91  good          >= 91 Very Good
    >= 80  warning       >= 80 Needs Improvement
    <  80  critical      <  80 Critical
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .models import Answer, AnswerValue, AuditSession, Question


@dataclass(frozen=True)
class Score:
    """Score of an answer set against a question set."""

    total_points: int
    max_points: int
    percentage: int


def points(question: Question, value: AnswerValue) -> int:
    """Points a question awards for an answer value."""
    if value == AnswerValue.YES:
        return question.points_yes
    if value == AnswerValue.PARTIAL:
        return question.points_partial
    return question.points_no


def percentage_of(total_points: int, max_points: int) -> int:
    """Whole-number percentage, rounded half up. 0 when there is nothing to score."""
    if max_points <= 0:
        return 0
    # Integer form of floor(100 * total / max + 0.5)
    return (200 * total_points + max_points) // (2 * max_points)


def score(answers: Mapping[str, Answer], questions: Iterable[Question]) -> Score:
    """
    Score an answer map.

    Args:
        answers: question_id -> Answer
        questions: every question in the audit, answered or not

    Returns:
        Score with total, max and percentage
    """
    total = 0
    maximum = 0
    for q in questions:
        maximum += q.points_yes
        answer = answers.get(q.id)
        if answer is not None:
            total += points(q, answer.value)
    return Score(total_points=total, max_points=maximum, percentage=percentage_of(total, maximum))


def grade_label(percentage: float) -> str:
    if not math.isfinite(percentage) or percentage < 0:
        return "N/A"
    if percentage >= 98:
        return "Outstanding"
    if percentage >= 94:
        return "Great"
    if percentage >= 91:
        return "Very Good"
    if percentage >= 80:
        return "Needs Improvement"
    return "Critical"


def score_band(percentage: float) -> str:
    if not math.isfinite(percentage) or percentage < 0:
        return "unknown"
    if percentage >= 94:
        return "excellent"
    if percentage >= 91:
        return "good"
    if percentage >= 80:
        return "warning"
    return "critical"


@dataclass
class BreakdownItem:
    text: str
    value: str  # yes / no / partial / skipped
    earned: int
    max: int


@dataclass
class CategoryScore:
    name: str
    earned: int = 0
    max: int = 0
    items: list[BreakdownItem] = field(default_factory=list)


def category_breakdown(
    session: AuditSession,
    questions: Iterable[Question] = (),
) -> list[CategoryScore]:
    """
    Per-category results for a persisted session.

    Uses the question snapshots stored on the answers when present. Sessions
    written without snapshots fall back to the current catalog questions, in
    which case unanswered questions show up as skipped.
    """
    categories: dict[str, CategoryScore] = {}

    def bucket(name: str) -> CategoryScore:
        if name not in categories:
            categories[name] = CategoryScore(name=name)
        return categories[name]

    if any(a.question_text for a in session.answers):
        for a in session.answers:
            cat = bucket(a.risk_category or "Unknown")
            max_pts = a.points_max if a.points_max is not None else a.points
            cat.earned += a.points
            cat.max += max_pts
            cat.items.append(
                BreakdownItem(
                    text=a.question_text or "Unknown question",
                    value=a.value.value,
                    earned=a.points,
                    max=max_pts,
                )
            )
        return list(categories.values())

    by_id = {a.question_id: a for a in session.answers}
    for q in questions:
        cat = bucket(q.risk_category)
        answer = by_id.get(q.id)
        earned = answer.points if answer else 0
        cat.earned += earned
        cat.max += q.points_yes
        cat.items.append(
            BreakdownItem(
                text=q.text,
                value=answer.value.value if answer else "skipped",
                earned=earned,
                max=q.points_yes,
            )
        )
    return list(categories.values())
