"""Per-run cancellation, timeout and progress bookkeeping.

Every pipeline stage receives a :class:`ProcessingContext` and calls
:meth:`ProcessingContext.tick` from its inner loop.  Every ``yield_every``
items the context hands control back to the event loop, so a long run never
starves other work on the same thread, and then re-checks whether the run is
still wanted.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from ..errors import ProcessingCancelled, ProcessingTimeout

ProgressCallback = Callable[[float, str], None]
Yielder = Callable[[], Awaitable[None]]

DEFAULT_YIELD_EVERY = 64


@dataclass
class ProcessingToken:
    """State of one in-flight pipeline run."""

    cancelled: bool = False
    start_time: float = field(default_factory=time.monotonic)
    last_yield_time: float = 0.0
    progress_percent: float = 0.0
    progress_message: str = ""

    def __post_init__(self) -> None:
        if not self.last_yield_time:
            self.last_yield_time = self.start_time

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time


async def _default_yield() -> None:
    await asyncio.sleep(0)


class ProcessingContext:
    """Cancellation/progress handle passed into each stage.

    Parameters
    ----------
    token:
        The run's token.  A fresh one is created when omitted.
    is_current:
        Returns False once a newer run has replaced this one.  Standalone
        contexts (tests, one-shot CLI runs) are always current.
    timeout:
        Wall-clock budget in seconds, measured from ``token.start_time``.
    yield_every:
        Number of processed items between suspension points.
    on_progress:
        Called with ``(percent, message)`` whenever progress is reported.
    yielder:
        Coroutine function awaited at each suspension point.  Defaults to
        ``asyncio.sleep(0)``; a GUI host can substitute a next-frame wait.
    """

    def __init__(
        self,
        token: Optional[ProcessingToken] = None,
        is_current: Optional[Callable[[ProcessingToken], bool]] = None,
        timeout: Optional[float] = None,
        yield_every: int = DEFAULT_YIELD_EVERY,
        on_progress: Optional[ProgressCallback] = None,
        yielder: Optional[Yielder] = None,
    ):
        self.token = token if token is not None else ProcessingToken()
        self._is_current = is_current
        self.timeout = timeout
        self.yield_every = max(1, int(yield_every))
        self._on_progress = on_progress
        self._yielder = yielder or _default_yield

        # Overall progress is the stage's local fraction mapped into
        # [stage_start, stage_start + stage_span].
        self._stage_start = 0.0
        self._stage_span = 100.0
        self._stage_message = ""
        self._items = 0

    # ------------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        if self.token.cancelled:
            return False
        return self._is_current is None or self._is_current(self.token)

    def check(self) -> None:
        """Raise if this run was cancelled, superseded or timed out."""
        if not self.is_valid:
            raise ProcessingCancelled()
        if self.timeout is not None:
            elapsed = self.token.elapsed
            if elapsed > self.timeout:
                raise ProcessingTimeout(elapsed, self.timeout)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def begin_stage(self, message: str, start: float, span: float) -> None:
        """Enter a stage occupying ``[start, start + span]`` percent."""
        self.check()
        self._stage_start = start
        self._stage_span = span
        self._stage_message = message
        self.report(0.0)

    def report(self, fraction: float, message: Optional[str] = None) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        percent = self._stage_start + self._stage_span * fraction
        self.token.progress_percent = percent
        self.token.progress_message = message or self._stage_message
        if self._on_progress is not None:
            self._on_progress(percent, self.token.progress_message)

    async def tick(self, done: int = 0, total: int = 0) -> None:
        """Suspension point, called once per processed item.

        Only every ``yield_every``-th call actually suspends.  *done* and
        *total* describe progress through the current stage when known.
        """
        self._items += 1
        if self._items % self.yield_every:
            return
        self.check()
        if total > 0:
            self.report(done / total)
        await self._yielder()
        self.token.last_yield_time = time.monotonic()
        self.check()
