"""
Progress reporting for extraction runs.

The orchestrator emits one ProgressEvent per attempt it is about to make.
Sinks are plain callables (sync or async) taking the event; they run inline
and must be quick. A misbehaving sink is logged and never aborts the run.
"""

import inspect
from typing import Awaitable, Callable, Optional, Protocol, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field


logger = structlog.get_logger(__name__)


class ProgressEvent(BaseModel):
    """
    Snapshot of the attempt about to be made.

    `is_retrying` is True for the very first event and for repeat attempts
    on the same model; it is False for the first attempt after a model
    switch.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = Field(..., description="Model about to be attempted")
    model_index: int = Field(..., ge=0, description="Roster position of model_id")
    total_models: int = Field(..., ge=1, description="Roster size")
    attempt_number: int = Field(..., ge=1, description="1-based attempt on model_id")
    max_attempts_per_model: int = Field(..., ge=1, description="Attempt budget per model")
    is_retrying: bool = Field(..., description="False only right after a model switch")

    @property
    def is_model_switch(self) -> bool:
        return self.model_index > 0 and self.attempt_number == 1 and not self.is_retrying

    def describe(self) -> str:
        """Human-readable status line for progress displays."""
        if self.is_model_switch:
            return f"Error with previous model, switching to {self.model_id}..."
        if self.attempt_number > 1:
            return f"Retrying with {self.model_id} (attempt {self.attempt_number})..."
        return f"Trying model {self.model_id}..."


ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class ProgressReporter(Protocol):
    """Anything the orchestrator can push events into."""

    async def report(self, event: ProgressEvent) -> None:
        ...


class NullProgressReporter:
    """Discards every event."""

    async def report(self, event: ProgressEvent) -> None:
        return None


class LoggingProgressReporter:
    """Writes every event to the structured log."""

    async def report(self, event: ProgressEvent) -> None:
        logger.info(
            event.describe(),
            model=event.model_id,
            model_index=event.model_index,
            attempt=event.attempt_number,
            is_retrying=event.is_retrying,
        )


class GuardedProgressReporter:
    """
    Wraps a user callback.

    - Accepts sync or async callables
    - Logs and swallows exceptions raised by the callback
    - Drops events once close() has been called, so a consumer that has
      already moved on never sees stale progress
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._closed = False
        self.delivered = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def report(self, event: ProgressEvent) -> None:
        if self._closed:
            self.dropped += 1
            logger.debug("Dropped progress event after close", event_type=type(event).__name__)
            return

        if self._callback is None:
            return

        try:
            result = self._callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(
                "Progress callback failed",
                error=str(e),
                error_type=type(e).__name__,
                event_type=type(event).__name__,
            )
            return

        self.delivered += 1


def as_reporter(sink: Union[ProgressReporter, ProgressCallback, None]) -> ProgressReporter:
    """Normalize a reporter, a bare callback or None into a reporter."""
    if sink is None:
        return NullProgressReporter()
    if hasattr(sink, "report"):
        return sink  # type: ignore[return-value]
    return GuardedProgressReporter(sink)
