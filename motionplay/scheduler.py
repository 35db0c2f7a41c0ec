"""
Fixed-cadence, non-overlapping hand detection driven from the render loop.
"""
import asyncio
import inspect
import logging
from typing import Any, Optional

from .types import LandmarkFrame, LandmarkSource

logger = logging.getLogger(__name__)


class DetectionScheduler:
    """
    Issues landmark detection at most once per interval and never while a
    previous call is still pending.

    The render loop calls tick() every frame. A synchronous source is applied
    within the same tick; an asynchronous one runs as a task on the current
    event loop and its result is handed back by the first tick after it
    completes. A failing call is logged and skipped, the next interval
    retries.
    """

    def __init__(self, source: LandmarkSource, interval_s: float = 0.1):
        """
        Initialize the scheduler.

        Args:
            source: Landmark source, sync or async
            interval_s: Minimum seconds between detection calls
        """
        if interval_s < 0:
            raise ValueError(f"interval_s must be non-negative, got {interval_s}")
        self.source = source
        self.interval_s = interval_s
        self._pending: Optional[asyncio.Future] = None
        self._last_issue: Optional[float] = None
        self._stopped = False
        self.failures = 0

    @property
    def in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _due(self, now: float) -> bool:
        return self._last_issue is None or now - self._last_issue >= self.interval_s

    def tick(self, frame: Any, now: float) -> Optional[LandmarkFrame]:
        """
        Advance the scheduler by one render tick.

        Args:
            frame: Current video frame
            now: Monotonic time in seconds

        Returns:
            A completed detection result, or None if nothing completed this tick
        """
        if self._stopped:
            return None

        result = self._collect()
        if result is not None or self._pending is not None:
            return result

        if not self._due(now):
            return None

        self._last_issue = now
        try:
            outcome = self.source(frame, now * 1000.0)
        except Exception as e:
            self._fail(e)
            return None

        if inspect.isawaitable(outcome):
            self._pending = asyncio.ensure_future(outcome)
            return None
        return outcome

    def _collect(self) -> Optional[LandmarkFrame]:
        task = self._pending
        if task is None or not task.done():
            return None

        self._pending = None
        if task.cancelled():
            return None
        error = task.exception()
        if error is not None:
            self._fail(error)
            return None
        return task.result()

    def _fail(self, error: BaseException) -> None:
        self.failures += 1
        logger.warning(f"⚠️ Hand detection failed: {error}")

    def stop(self) -> None:
        """Stop issuing detection and discard any in-flight result."""
        self._stopped = True
        if self._pending is not None:
            if not self._pending.done():
                self._pending.cancel()
            else:
                # mark any exception as retrieved
                if not self._pending.cancelled():
                    self._pending.exception()
            self._pending = None
            logger.debug("🛑 Discarded in-flight detection")
