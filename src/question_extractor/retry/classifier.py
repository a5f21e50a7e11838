"""
Error classification for failed generation attempts.

Only temporary overload is worth retrying. Everything else (bad request,
bad key, missing model, exhausted quota, timeouts, network failures,
unexpected exceptions) is FATAL and ends the extraction at once.

The decision is table driven so the policy reads in one place.
"""

from dataclasses import dataclass
from typing import Optional

from question_extractor.llm.exceptions import LLMClientError
from question_extractor.models.enums import ErrorKind


TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({502, 503})
TRANSIENT_PROVIDER_STATUSES: frozenset[str] = frozenset({"UNAVAILABLE", "OVERLOADED"})


@dataclass(frozen=True)
class ClassifiedError:
    """
    One failed attempt, classified.

    Attributes:
        kind: TRANSIENT or FATAL
        message: Provider's message, kept verbatim
        model: Model id the attempt targeted
        model_index: Roster position of that model
        attempt_number: 1-based attempt number on that model
        status_code: HTTP status, if any
        provider_status: Provider status string (e.g. "UNAVAILABLE"), if any
        cause: The raw exception
    """

    kind: ErrorKind
    message: str
    model: str
    model_index: int
    attempt_number: int
    status_code: Optional[int] = None
    provider_status: Optional[str] = None
    cause: Optional[BaseException] = None

    @property
    def is_transient(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT

    def to_dict(self) -> dict:
        """Serializable view (no exception object)."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "model": self.model,
            "model_index": self.model_index,
            "attempt_number": self.attempt_number,
            "status_code": self.status_code,
            "provider_status": self.provider_status,
        }


class ErrorClassifier:
    """
    Maps a raw failure to ErrorKind. Pure and stateless.

    Matching on either the HTTP status or the provider status string is
    enough: proxies sometimes rewrite one but not the other.
    """

    def __init__(
        self,
        transient_status_codes: frozenset[int] = TRANSIENT_STATUS_CODES,
        transient_provider_statuses: frozenset[str] = TRANSIENT_PROVIDER_STATUSES,
    ):
        self.transient_status_codes = frozenset(transient_status_codes)
        self.transient_provider_statuses = frozenset(
            status.upper() for status in transient_provider_statuses
        )

    def kind_of(self, error: BaseException) -> ErrorKind:
        if not isinstance(error, LLMClientError):
            return ErrorKind.FATAL

        if error.status_code in self.transient_status_codes:
            return ErrorKind.TRANSIENT

        if error.provider_status and error.provider_status.upper() in self.transient_provider_statuses:
            return ErrorKind.TRANSIENT

        return ErrorKind.FATAL

    def classify(
        self,
        error: BaseException,
        model: str,
        model_index: int,
        attempt_number: int,
    ) -> ClassifiedError:
        """Classify one failure and attach the attempt coordinates."""
        if isinstance(error, LLMClientError):
            message = error.message
            status_code = error.status_code
            provider_status = error.provider_status
        else:
            message = str(error) or type(error).__name__
            status_code = None
            provider_status = None

        return ClassifiedError(
            kind=self.kind_of(error),
            message=message,
            model=model,
            model_index=model_index,
            attempt_number=attempt_number,
            status_code=status_code,
            provider_status=provider_status,
            cause=error,
        )
