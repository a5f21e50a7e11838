"""
Exponential backoff between attempts on the same model.

delay(n) = base_delay * 2 ** (n - 1), so with the default base of 4s the
waits after attempts 1, 2 and 3 are 4s, 8s and 16s. No jitter.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Pure delay schedule.

    Attributes:
        base_delay: Delay after the first failed attempt (seconds)
        max_delay: Optional ceiling; None means unbounded
    """

    base_delay: float = 4.0
    max_delay: Optional[float] = None

    def __post_init__(self) -> None:
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")

    def delay(self, attempt: int) -> float:
        """
        Seconds to wait after failed attempt number `attempt` (1-based).

        Raises:
            ValueError: If attempt < 1
        """
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")

        delay = self.base_delay * 2 ** (attempt - 1)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay
