"""
Unit tests for ErrorClassifier.

The transient tables are small on purpose; everything outside them must
come out FATAL.
"""

import pytest

from question_extractor.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMOverloadedError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from question_extractor.models.enums import ErrorKind
from question_extractor.retry.classifier import (
    TRANSIENT_PROVIDER_STATUSES,
    TRANSIENT_STATUS_CODES,
    ErrorClassifier,
)


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


class TestTables:

    def test_transient_status_codes(self):
        assert TRANSIENT_STATUS_CODES == frozenset({502, 503})

    def test_transient_provider_statuses(self):
        assert TRANSIENT_PROVIDER_STATUSES == frozenset({"UNAVAILABLE", "OVERLOADED"})


class TestKindOf:

    @pytest.mark.parametrize(
        "error",
        [
            LLMOverloadedError("overloaded", status_code=503, provider_status="UNAVAILABLE"),
            LLMOverloadedError("bad gateway", status_code=502),
            LLMGenerationError("no http status", provider_status="UNAVAILABLE"),
            LLMGenerationError("lowercase status", provider_status="overloaded"),
            LLMGenerationError("status wins over class", status_code=503),
        ],
    )
    def test_transient(self, classifier, error):
        assert classifier.kind_of(error) is ErrorKind.TRANSIENT

    @pytest.mark.parametrize(
        "error",
        [
            LLMGenerationError("bad request", status_code=400, provider_status="INVALID_ARGUMENT"),
            LLMAuthenticationError("bad key", status_code=401, provider_status="UNAUTHENTICATED"),
            LLMAuthenticationError("forbidden", status_code=403, provider_status="PERMISSION_DENIED"),
            LLMModelNotAvailableError("no such model", status_code=404, provider_status="NOT_FOUND"),
            LLMRateLimitError("quota", status_code=429, provider_status="RESOURCE_EXHAUSTED"),
            LLMGenerationError("internal", status_code=500, provider_status="INTERNAL"),
            LLMTimeoutError("timeout", provider_status="DEADLINE_EXCEEDED"),
            LLMConnectionError("dns failure"),
            LLMGenerationError("blocked", provider_status="SAFETY"),
        ],
    )
    def test_fatal(self, classifier, error):
        assert classifier.kind_of(error) is ErrorKind.FATAL

    def test_unknown_exception_is_fatal(self, classifier):
        assert classifier.kind_of(RuntimeError("boom")) is ErrorKind.FATAL


class TestClassify:

    def test_attaches_attempt_coordinates(self, classifier):
        error = LLMOverloadedError("overloaded", status_code=503, provider_status="UNAVAILABLE")

        classified = classifier.classify(error, "model-b", 1, 2)

        assert classified.kind is ErrorKind.TRANSIENT
        assert classified.is_transient
        assert classified.message == "overloaded"
        assert classified.model == "model-b"
        assert classified.model_index == 1
        assert classified.attempt_number == 2
        assert classified.status_code == 503
        assert classified.provider_status == "UNAVAILABLE"
        assert classified.cause is error

    def test_non_client_error_message(self, classifier):
        classified = classifier.classify(KeyError(), "model-a", 0, 1)
        assert classified.kind is ErrorKind.FATAL
        assert classified.message == "KeyError"
        assert classified.status_code is None

    def test_to_dict_drops_exception(self, classifier):
        classified = classifier.classify(LLMConnectionError("refused"), "model-a", 0, 1)
        data = classified.to_dict()
        assert data["kind"] == "fatal"
        assert "cause" not in data

    def test_custom_tables(self):
        classifier = ErrorClassifier(transient_status_codes=frozenset({429}))
        error = LLMRateLimitError("quota", status_code=429, provider_status="RESOURCE_EXHAUSTED")
        assert classifier.kind_of(error) is ErrorKind.TRANSIENT
