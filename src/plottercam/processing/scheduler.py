"""Run scheduler: at most one live pipeline run, newest wins.

The scheduler owns the current :class:`ProcessingToken` and the most recent
completed result.  Starting a run cancels the previous token, so an older
run stops at its next suspension point.  A result is published only once a
run has finished and is still current, so observers never see a mix of
stale and fresh output.

Callbacks mirror a GUI worker's signals:

- ``on_progress(percent, message)``
- ``on_finished(result)``
- ``on_error(message)``
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from ..errors import (
    ConfigError,
    EmptyResult,
    ParseError,
    ProcessingCancelled,
    ProcessingTimeout,
)
from .context import ProcessingContext, ProcessingToken, ProgressCallback, Yielder

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_DELAY = 0.2   # seconds

TIMEOUT_MESSAGE = "Processing took too long; try reducing detail."
FAILURE_MESSAGE = "Failed to generate toolpath."


class Job(Protocol):
    """Anything with an async ``compute(ctx)``; see ``core.job.PlotJob``."""

    config: Any

    async def compute(self, ctx: ProcessingContext) -> Any: ...


class PipelineScheduler:
    """Runs jobs one at a time on the current event loop."""

    def __init__(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_finished: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        yielder: Optional[Yielder] = None,
    ):
        self.on_progress = on_progress
        self.on_finished = on_finished
        self.on_error = on_error
        self.debounce_delay = debounce_delay
        self._yielder = yielder

        self.result: Optional[Any] = None
        self._current: Optional[ProcessingToken] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_token(self) -> Optional[ProcessingToken]:
        return self._current

    @property
    def is_busy(self) -> bool:
        return self._current is not None or self._pending is not None

    def is_current(self, token: ProcessingToken) -> bool:
        return token is self._current

    def cancel(self) -> None:
        """Drop any pending request and cancel the in-flight run."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._current is not None:
            self._current.cancel()
            self._current = None

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    async def run(self, job: Job) -> Optional[Any]:
        """Run *job* now, superseding whatever is in flight.

        Returns the result, or None if the run was cancelled or failed.
        Failures are reported through ``on_error``, never raised.
        """
        if self._current is not None:
            self._current.cancel()
        token = ProcessingToken()
        self._current = token

        ctx = ProcessingContext(
            token,
            is_current=self.is_current,
            timeout=job.config.timeout,
            yield_every=job.config.yield_every,
            on_progress=self._progress,
            yielder=self._yielder,
        )
        logger.debug("Starting run %x", id(token))

        try:
            result = await job.compute(ctx)
            if not ctx.is_valid:
                raise ProcessingCancelled()
        except ProcessingCancelled:
            logger.debug("Run %x cancelled", id(token))
            return None
        except ProcessingTimeout as exc:
            if ctx.is_valid:
                logger.warning("Run %x timed out: %s", id(token), exc)
                self._error(TIMEOUT_MESSAGE)
            return None
        except (ParseError, EmptyResult, ConfigError) as exc:
            if ctx.is_valid:
                logger.info("Run %x failed: %s", id(token), exc)
                self._error(str(exc))
            return None
        except Exception:
            if ctx.is_valid:
                logger.exception("Toolpath generation failed")
                self._error(FAILURE_MESSAGE)
            return None
        finally:
            if self._current is token:
                self._current = None

        self.result = result
        logger.info("Run %x finished in %.3fs", id(token), token.elapsed)
        if self.on_finished is not None:
            self.on_finished(result)
        return result

    def request(self, job: Job) -> None:
        """Debounced run: calls within ``debounce_delay`` collapse into one.

        Must be called from inside a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self.debounce_delay, self._start, job)

    async def join(self) -> Optional[Any]:
        """Wait until no request is pending and no run is in flight."""
        while self._pending is not None or (
            self._task is not None and not self._task.done()
        ):
            if self._task is not None and not self._task.done():
                await self._task
            else:
                await asyncio.sleep(self.debounce_delay)
        return self.result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start(self, job: Job) -> None:
        self._pending = None
        self._task = asyncio.ensure_future(self.run(job))

    def _progress(self, percent: float, message: str) -> None:
        if self.on_progress is not None:
            self.on_progress(percent, message)

    def _error(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)
