"""
Session Clock - Epoch-Guarded Deferred Actions

Every delayed continuation of the engine ("typing", "processing") is a timer
registered here instead of a blocking wait. A timer captures the epoch that
was current when it was scheduled; when it fires it runs only if the epoch
is unchanged. reset() bumps the epoch, which atomically invalidates every
outstanding timer. This is the engine's only cancellation primitive: there
is no per-action cancel.

Timers are delegated to an event loop exposing asyncio's call_later()
contract. By default that is the running asyncio loop; tests inject a
manual loop to advance time deterministically. Without an injected loop the
clock must be used from inside a running asyncio loop; require_loop()
checks this up front.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from ..exceptions import StaleSessionAction

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    PENDING = "PENDING"
    FIRED = "FIRED"
    DROPPED = "DROPPED"  # Fired against a newer epoch
    CANCELLED = "CANCELLED"  # Cancelled by reset()/cancel_all() before firing


@dataclass
class TimerHandle:
    """
    Read-only receipt for a scheduled action.

    Attributes:
        epoch: Session epoch captured at scheduling time.
        delay_ms: Requested delay.
        label: Free-form name used in debug logs.
    """
    epoch: int
    delay_ms: int
    label: str = ""
    state: TimerState = TimerState.PENDING
    _loop_handle: Any = field(default=None, repr=False)


class SessionClock:
    def __init__(self, loop: Optional[Any] = None):
        self._loop = loop
        self._epoch = 0
        self._pending: List[TimerHandle] = []
        self._closed = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def pending(self) -> int:
        """Number of timers that have neither fired nor been cancelled."""
        return sum(1 for handle in self._pending if handle.state == TimerState.PENDING)

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(
        self, action: Callable[[], None], delay_ms: int = 0, label: str = ""
    ) -> TimerHandle:
        """
        Runs 'action' after 'delay_ms' unless the epoch changes first.

        Scheduling after cancel_all() is legal; the returned handle simply
        never fires.
        """
        handle = TimerHandle(epoch=self._epoch, delay_ms=delay_ms, label=label)

        if self._closed:
            handle.state = TimerState.CANCELLED
            logger.debug(f"Clock closed, timer '{label}' will never fire")
            return handle

        loop = self.require_loop()
        handle._loop_handle = loop.call_later(
            max(delay_ms, 0) / 1000.0, self._fire, handle, action
        )
        self._pending.append(handle)
        return handle

    def require_loop(self) -> Any:
        """
        Returns the loop timers are scheduled on: the injected one, else the
        running asyncio loop. Raises RuntimeError when neither exists, so
        callers can check before they change any state.
        """
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise RuntimeError(
                "SessionClock needs an injected loop or a running asyncio event loop"
            ) from e

    def reset(self) -> int:
        """Starts a new epoch, invalidating every outstanding timer."""
        self._epoch += 1
        self._cancel_pending()
        logger.debug(f"Session clock reset to epoch {self._epoch}")
        return self._epoch

    def cancel_all(self):
        """Teardown: cancels outstanding timers without starting a new epoch."""
        self._cancel_pending()
        self._closed = True

    # ==========================================================================
    # Internals
    # ==========================================================================

    def _cancel_pending(self):
        # The epoch check alone is sufficient; cancelling the loop handles
        # just releases them early.
        for handle in self._pending:
            if handle.state == TimerState.PENDING:
                handle.state = TimerState.CANCELLED
                if handle._loop_handle is not None:
                    handle._loop_handle.cancel()
        self._pending = []

    def _guard(self, handle: TimerHandle):
        if handle.epoch != self._epoch:
            raise StaleSessionAction(handle.epoch, self._epoch)

    def _fire(self, handle: TimerHandle, action: Callable[[], None]):
        if handle in self._pending:
            self._pending.remove(handle)

        if handle.state == TimerState.CANCELLED:
            return

        try:
            self._guard(handle)
        except StaleSessionAction as e:
            # Expected outcome of cancellation, not an error
            handle.state = TimerState.DROPPED
            logger.debug(f"Dropped timer '{handle.label}': {e}")
            return

        handle.state = TimerState.FIRED
        action()
