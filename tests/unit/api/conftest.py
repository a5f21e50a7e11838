"""API test fixtures: TestClient with the pipeline dependency overridden."""

import pytest
from fastapi.testclient import TestClient

from question_extractor.api.dependencies import get_pipeline, get_settings
from question_extractor.main import app
from question_extractor.pipeline import ExtractionPipeline


@pytest.fixture
def api_client(test_settings, scripted_client):
    """
    Factory fixture: api_client(script) -> TestClient.

    The app's pipeline runs over a ScriptedClient (exposed as
    `llm_client`); overrides are removed after the test.
    """
    def _create(script):
        llm_client = scripted_client(script)
        pipeline = ExtractionPipeline.from_settings(llm_client, test_settings)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_settings] = lambda: test_settings
        test_client = TestClient(app)
        test_client.llm_client = llm_client
        return test_client

    yield _create
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-Api-Key": "test-key"}
