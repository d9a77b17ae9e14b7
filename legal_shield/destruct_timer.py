"""Self-destruct countdown for a viewing session.

The deadline arithmetic is kept pure (:func:`time_left`,
:func:`remaining_seconds`) and separate from the scheduling loop, so it can
be exercised with a fake clock.  Each tick recomputes the remaining time
from the absolute deadline instead of decrementing a counter: a process
that wakes up late destroys on its very next tick rather than catching up
tick by tick.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from legal_shield.session import Session, SessionStatus

logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 0.1


def time_left(deadline: float, now: float) -> float:
    """Seconds until *deadline*, clamped at zero."""
    return max(deadline - now, 0.0)


def remaining_seconds(deadline: float, now: float) -> int:
    """Whole seconds left, rounded up: 0.1s left still shows as 1."""
    return math.ceil(time_left(deadline, now))


class DestructTimer:
    """Periodically forces ``Viewing -> Destroyed`` once the deadline passes.

    Parameters
    ----------
    session : Session
        The session to watch.
    interval : float
        Seconds between checks.
    """

    def __init__(self, session: Session, interval: float = CHECK_INTERVAL_SECONDS) -> None:
        self.session = session
        self.interval = interval
        self._fired = False
        self._generation = session.generation
        self._task: asyncio.Task | None = None

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def check(self) -> SessionStatus:
        """Evaluate the deadline once, destroying the session if it passed."""
        if not self._fired and self.session.generation == self._generation:
            if self.session.expire():
                self._fired = True
                logger.info("Destruct window elapsed; session wiped")
        return self.session.status()

    async def run(self) -> None:
        """Check every ``interval`` seconds until fired or cancelled."""
        while True:
            if self.session.generation != self._generation:
                logger.debug("Session reset; destruct timer stopping")
                return
            if self.session.expiry_deadline is None:
                return
            self.check()
            if self._fired:
                return
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        """Schedule :meth:`run` on the running event loop."""
        if self.running:
            return self._task
        self._generation = self.session.generation
        self._fired = False
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def cancel(self) -> None:
        """Stop the periodic check; safe to call more than once."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
