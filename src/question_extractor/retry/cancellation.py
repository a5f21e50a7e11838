"""
Caller-driven cancellation for extraction runs.

The orchestrator checks the token before every attempt and before every
backoff wait, and the wait itself ends early once the token is cancelled.
An in-flight network round trip is not interrupted by the token; use
task cancellation for that.
"""

import asyncio

import structlog


logger = structlog.get_logger(__name__)


class CancellationToken:
    """Thin wrapper over asyncio.Event. Create it inside the running loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
            logger.info("Cancellation requested", reason=reason)

    async def sleep(self, delay: float) -> bool:
        """
        Wait up to `delay` seconds.

        Returns:
            True if the token was cancelled during (or before) the wait.
        """
        if self.cancelled:
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
