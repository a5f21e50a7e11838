"""
Unit tests for the extraction API routes and error mapping.
"""

import asyncio
import json

import pytest

from question_extractor.api.models import ExtractRequest
from question_extractor.api.routes import stream_extraction
from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.pipeline import ExtractionPipeline
from question_extractor.retry.cancellation import CancellationToken


class TestExtractEndpoint:

    def test_success(self, api_client, auth_headers, sample_document, valid_model_output):
        client = api_client({"model-a": [valid_model_output]})

        response = client.post("/v1/extract", json={"document_text": sample_document}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["result"]["model"] == "model-a"
        assert len(data["result"]["questions"]) == 2
        assert data["result"]["questions"][1]["requires_multiple_answers"] is True

    def test_api_key_forwarded_as_credential(self, api_client, auth_headers, sample_document):
        client = api_client({"model-a": ["[]"]})

        client.post("/v1/extract", json={"document_text": sample_document}, headers=auth_headers)

        assert client.llm_client.requests[0].credential == "test-key"

    def test_enrich_requested(self, api_client, auth_headers, sample_document, create_question_dict):
        client = api_client({"model-a": [
            json.dumps([create_question_dict(explanation=None)]),
            json.dumps({"explanation": "Two plus two is four.", "link": None}),
        ]})

        response = client.post(
            "/v1/extract", json={"document_text": sample_document, "enrich": True}, headers=auth_headers
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["enriched_questions"] == 1
        assert result["questions"][0]["explanation"] == "Two plus two is four."
        assert len(client.llm_client.requests) == 2

    def test_missing_api_key(self, api_client, sample_document):
        client = api_client({})

        response = client.post("/v1/extract", json={"document_text": sample_document})

        assert response.status_code == 401

    @pytest.mark.parametrize("body", [
        {},
        {"document_text": ""},
        {"document_text": "x", "max_attempts_per_model": 0},
        {"document_text": "x", "model_roster": []},
    ])
    def test_invalid_body(self, api_client, auth_headers, body):
        client = api_client({})

        response = client.post("/v1/extract", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_blank_document_text(self, api_client, auth_headers):
        client = api_client({})

        response = client.post("/v1/extract", json={"document_text": "   "}, headers=auth_headers)

        assert response.status_code == 400

    def test_overloaded_maps_to_503(self, api_client, auth_headers, sample_document, overloaded_error):
        client = api_client({"model-a": [overloaded_error()], "model-b": [overloaded_error()]})

        response = client.post(
            "/v1/extract",
            json={"document_text": sample_document, "max_attempts_per_model": 1},
            headers=auth_headers,
        )

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "extraction_failed"
        assert data["details"]["retryable"] is True
        assert data["details"]["models_tried"] == ["model-a", "model-b"]

    def test_fatal_maps_to_502(self, api_client, auth_headers, sample_document, fatal_error):
        client = api_client({"model-a": [fatal_error()]})

        response = client.post("/v1/extract", json={"document_text": sample_document}, headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["details"]["retryable"] is False

    def test_malformed_maps_to_422(self, api_client, auth_headers, sample_document):
        client = api_client({"model-a": ["Sorry, I cannot help with that."]})

        response = client.post("/v1/extract", json={"document_text": sample_document}, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "malformed_response"

    def test_request_id_echoed(self, api_client, auth_headers, sample_document):
        client = api_client({"model-a": ["[]"]})

        response = client.post(
            "/v1/extract",
            json={"document_text": sample_document},
            headers={**auth_headers, "X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"


class TestStreamEndpoint:

    def test_progress_then_result(
        self, api_client, auth_headers, sample_document, valid_model_output, overloaded_error
    ):
        client = api_client({"model-a": [overloaded_error()], "model-b": [valid_model_output]})

        response = client.post(
            "/v1/extract/stream",
            json={"document_text": sample_document, "max_attempts_per_model": 1},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        lines = [json.loads(line) for line in response.text.splitlines() if line]
        assert [line["type"] for line in lines] == ["progress", "progress", "result"]
        assert lines[0]["data"]["message"] == "Trying model model-a..."
        assert lines[1]["data"]["message"] == "Error with previous model, switching to model-b..."
        assert lines[2]["data"]["model"] == "model-b"

    def test_enrichment_lines_before_result(
        self, api_client, auth_headers, sample_document, create_question_dict
    ):
        client = api_client({"model-a": [
            json.dumps([create_question_dict(explanation=None)]),
            json.dumps({"explanation": "Two plus two is four."}),
        ]})

        response = client.post(
            "/v1/extract/stream", json={"document_text": sample_document, "enrich": True}, headers=auth_headers
        )

        lines = [json.loads(line) for line in response.text.splitlines() if line]
        assert [line["type"] for line in lines] == ["progress", "enrichment", "enrichment", "result"]
        assert lines[1]["data"]["message"] == "Adding explanation to question 1 of 1..."
        assert lines[2]["data"]["message"] == "Explanations added to 1 of 1 questions"
        assert lines[3]["data"]["enriched_questions"] == 1

    def test_failure_reported_in_band(self, api_client, auth_headers, sample_document, fatal_error):
        client = api_client({"model-a": [fatal_error()]})

        response = client.post("/v1/extract/stream", json={"document_text": sample_document}, headers=auth_headers)

        assert response.status_code == 200
        last = json.loads(response.text.splitlines()[-1])
        assert last["type"] == "error"
        assert last["data"]["status"] == 502
        assert last["data"]["error"] == "extraction_failed"


class _HangingClient(BaseLLMClient):
    """Client whose requests never complete; records when one is cancelled."""

    def __init__(self):
        super().__init__(base_url="https://gemini.test/v1beta")
        self.cancelled_requests = 0

    async def generate(self, request):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled_requests += 1
            raise


class TestStreamCancellation:

    @pytest.mark.asyncio
    async def test_closing_stream_cancels_extraction(self, test_settings, sample_document):
        llm_client = _HangingClient()
        pipeline = ExtractionPipeline.from_settings(llm_client, test_settings)
        token = CancellationToken()
        lines = stream_extraction(pipeline, ExtractRequest(document_text=sample_document), "key", token)

        first = json.loads(await lines.__anext__())
        await lines.aclose()

        assert first["type"] == "progress"
        assert token.cancelled
        assert llm_client.cancelled_requests == 1


class TestServiceEndpoints:

    def test_health(self, api_client):
        response = api_client({}).get("/health")

        assert response.status_code == 200
        assert response.json()["models"] == ["model-a", "model-b"]

    def test_schema(self, api_client):
        response = api_client({}).get("/schema")

        assert response.status_code == 200
        assert response.json()["type"] == "array"

    def test_root(self, api_client):
        data = api_client({}).get("/").json()
        assert data["health"] == "/health"
