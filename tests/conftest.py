"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across the unit tests.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from question_extractor.config import PACKAGE_DIR, Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Backoff is zeroed so orchestrator tests never wait. Override specific
    settings in individual tests as needed.
    """
    return Settings(
        # === Application ===
        APP_NAME="Question Extractor (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Gemini ===
        GEMINI_BASE_URL="https://gemini.test/v1beta",
        MODEL_ROSTER=["model-a", "model-b"],
        ATTEMPT_TIMEOUT_SECONDS=5.0,

        # === Retry ===
        MAX_ATTEMPTS_PER_MODEL=3,
        BACKOFF_BASE_SECONDS=0.0,

        # === Prompting & Validation ===
        PROMPT_TEMPLATES_DIR=str(PACKAGE_DIR / "prompts"),
        JSON_SCHEMA_PATH=str(PACKAGE_DIR / "schema" / "question_extraction.json"),
        ENRICHMENT_SCHEMA_PATH=str(PACKAGE_DIR / "schema" / "question_enrichment.json"),
        ENRICHMENT_PAUSE_SECONDS=0.0,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def schema_path() -> str:
    return str(PACKAGE_DIR / "schema" / "question_extraction.json")


@pytest.fixture
def templates_dir() -> Path:
    return PACKAGE_DIR / "prompts"


@pytest.fixture
def sample_document(fixtures_dir: Path) -> str:
    """Exam text as produced by document-to-text conversion."""
    return (fixtures_dir / "sample_document.txt").read_text(encoding="utf-8")


@pytest.fixture
def valid_model_output_data(fixtures_dir: Path) -> list[Dict[str, Any]]:
    """Load the valid model output fixture as a list of dicts."""
    with open(fixtures_dir / "valid_model_output.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def valid_model_output(valid_model_output_data: list[Dict[str, Any]]) -> str:
    """The valid model output fixture as raw model text."""
    return json.dumps(valid_model_output_data)


@pytest.fixture
def create_question_dict():
    """Factory fixture to create one question in model-output form.

    Usage:
        def test_something(create_question_dict):
            question = create_question_dict(correct=["A", "B"])
    """
    def _create(
        question_text: str = "What is 2 + 2?",
        letters: tuple[str, ...] = ("A", "B", "C", "D"),
        correct: tuple[str, ...] | list[str] = ("B",),
        explanation: str | None = "Basic arithmetic.",
        page_number: int | None = 1,
    ) -> Dict[str, Any]:
        return {
            "question_text": question_text,
            "options": [
                {
                    "option_letter": letter,
                    "option_text": f"Option {letter}",
                    "is_correct": letter in correct,
                }
                for letter in letters
            ],
            "explanation": explanation,
            "link": None,
            "page_number": page_number,
        }

    return _create
