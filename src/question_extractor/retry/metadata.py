"""
Per-run attempt bookkeeping.

AttemptState is the mutable cursor of one orchestrator run: which model is
being tried and which attempt on it. It is created by run(), mutated only
by the orchestrator and discarded when run() returns or raises.
"""

from dataclasses import dataclass


@dataclass
class AttemptState:
    """
    Attributes:
        model_index: Roster position of the current model (0-based)
        attempt_number: Attempt on the current model (1-based)
        is_retrying: True once the current model has failed at least once
        total_attempts: Attempts made so far across all models
    """

    model_index: int = 0
    attempt_number: int = 1
    is_retrying: bool = False
    total_attempts: int = 0

    def __post_init__(self) -> None:
        """Validate state invariants."""
        if self.model_index < 0:
            raise ValueError("model_index must be >= 0")
        if self.attempt_number < 1:
            raise ValueError("attempt_number must be >= 1")

    def next_attempt(self) -> None:
        """Retry the same model."""
        self.attempt_number += 1
        self.is_retrying = True

    def next_model(self) -> None:
        """Fall back to the next model, resetting the attempt counter."""
        self.model_index += 1
        self.attempt_number = 1
        self.is_retrying = False
