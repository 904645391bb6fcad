"""
Keyboard-to-action dispatch.

The host owns an InputChannel and feeds it key names. An engine only receives
keys while it is attached, and attach() is a context manager so the adapter
is always deregistered, however the audit ends.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

from .models import AnswerValue

if TYPE_CHECKING:
    from .engine import AuditEngine


class Key(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    YES = "y"
    NO = "n"
    PARTIAL = "p"


class InputAdapter:
    """Maps keys onto one engine."""

    def __init__(self, engine: "AuditEngine"):
        self.engine = engine
        self.text_input_focused = False

    @property
    def enabled(self) -> bool:
        if self.text_input_focused or not self.engine.active:
            return False
        return not (self.engine.submitting or self.engine.confirming)

    def handle(self, key: str) -> bool:
        """Apply a key. Returns True if it changed anything."""
        if not self.enabled:
            return False
        try:
            key = Key(key.lower())
        except ValueError:
            return False

        if key == Key.LEFT:
            self.engine.previous()
        elif key == Key.RIGHT:
            self.engine.next()
        elif key == Key.YES:
            return self.engine.answer(AnswerValue.YES)
        elif key == Key.NO:
            return self.engine.answer(AnswerValue.NO)
        elif key == Key.PARTIAL:
            question = self.engine.current_question
            if question is None or not question.allows_partial:
                return False
            return self.engine.answer(AnswerValue.PARTIAL)
        return True


class InputChannel:
    """Host-side key event channel."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[str], bool]] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, key: str) -> bool:
        handled = False
        for listener in list(self._listeners):
            handled = listener(key) or handled
        return handled

    @contextmanager
    def attach(self, engine: "AuditEngine") -> Iterator[InputAdapter]:
        adapter = InputAdapter(engine)
        self._listeners.append(adapter.handle)
        try:
            yield adapter
        finally:
            self._listeners.remove(adapter.handle)
