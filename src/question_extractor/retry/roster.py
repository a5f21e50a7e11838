"""
Model roster: the prioritized fallback list of model identifiers.

Index 0 is tried first. The roster is immutable and shared read-only by
every extraction running in the process.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(frozen=True)
class ModelRoster:
    """
    Ordered, non-empty, duplicate-free tuple of model ids.

    Attributes:
        models: Model identifiers in priority order
    """

    models: tuple[str, ...]

    def __post_init__(self) -> None:
        """Validate roster invariants."""
        if not isinstance(self.models, tuple):
            object.__setattr__(self, "models", tuple(self.models))

        if not self.models:
            raise ValueError("model roster must contain at least one model")

        for model in self.models:
            if not isinstance(model, str) or not model.strip():
                raise ValueError(f"model ids must be non-blank strings, got {model!r}")

        if len(set(self.models)) != len(self.models):
            raise ValueError(f"model roster contains duplicates: {list(self.models)}")

    @classmethod
    def of(cls, models: Iterable[str]) -> "ModelRoster":
        return cls(tuple(models))

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[str]:
        return iter(self.models)

    def __getitem__(self, index: int) -> str:
        return self.models[index]

    def has_next(self, index: int) -> bool:
        """True when a model follows position `index`."""
        return index + 1 < len(self.models)


DEFAULT_MODEL_ROSTER = ModelRoster(
    (
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    )
)
