"""
Debounced background persistence.

DebouncedTask is a cancellable delayed coroutine: schedule() (re)arms a single
timer on the running event loop, so rapid triggers coalesce into one call.
AutosaveScheduler uses it to write the live draft to the session store after
the auditor pauses answering.

Autosave is best-effort. Failures are logged and dropped; the next tick or
the finalize write carries the full state again.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable

from loguru import logger

from .state import AuditContext, DraftState
from .store import SessionStore


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DebouncedTask:
    """
    Run an async action once, `delay` seconds after the last schedule() call.

    Usage:
        task = DebouncedTask(1.5, save)
        task.schedule()   # arms the timer
        task.schedule()   # re-arms, the first timer is dropped
        task.cancel()     # drops the pending timer, in-flight runs continue
        await task.drain()
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._action = action
        self._handle: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired yet."""
        return self._handle is not None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending timer. Returns True if one was armed."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    async def flush(self) -> None:
        """Run a pending action now instead of waiting for the timer."""
        if self.cancel():
            self._start()
        await self.drain()

    async def drain(self) -> None:
        """Wait for every started run to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        self._start()

    def _start(self) -> None:
        task = asyncio.ensure_future(self._action())
        self._in_flight.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced action raised: {}", task.exception())


class AutosaveScheduler:
    """
    Debounced writer of the in-progress draft.

    The scheduler never holds a copy of the draft. It reads the live state
    through `snapshot` when the timer fires, so every tick writes whatever
    the auditor has answered up to that moment.

    Session creation is single-writer: while a create is in flight, later
    ticks wait for it and then update the new row instead of creating a
    second one.
    """

    def __init__(
        self,
        store: SessionStore,
        context: AuditContext,
        snapshot: Callable[[], DraftState | None],
        on_session_created: Callable[[str], None],
        delay: float = 1.5,
        clock: Callable[[], str] = utc_now_iso,
    ):
        self._store = store
        self._context = context
        self._snapshot = snapshot
        self._on_session_created = on_session_created
        self._clock = clock
        self._create_lock = asyncio.Lock()
        self._task = DebouncedTask(delay, self._tick)
        self.failures = 0
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._task.pending

    def schedule(self) -> None:
        """(Re)start the debounce timer after an answer mutation."""
        self._task.schedule()

    def cancel(self) -> bool:
        return self._task.cancel()

    async def drain(self) -> None:
        await self._task.drain()

    async def flush(self) -> None:
        await self._task.flush()

    async def _tick(self) -> None:
        try:
            await self._persist()
        except Exception as exc:  # Autosave must never interrupt the audit
            self.failures += 1
            logger.warning("Autosave failed, will retry on next tick: {}", exc)

    async def _persist(self) -> None:
        draft = self._snapshot()
        if draft is None:
            return

        if draft.session_id is None or self._create_lock.locked():
            async with self._create_lock:
                draft = self._snapshot()
                if draft is None:
                    return
                if draft.session_id is None:
                    fields = self._context.session_fields(draft, completed=False, date=self._clock())
                    session_id = await self._store.create(fields)
                    self.writes += 1
                    logger.info("Autosave created session {}", session_id)
                    self._on_session_created(session_id)
                    return

        fields = self._context.session_fields(draft, completed=False)
        await self._store.update(draft.session_id, fields)
        self.writes += 1
        logger.debug("Autosave updated session {} ({} answers)", draft.session_id, draft.answered_count)
