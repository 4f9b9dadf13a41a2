"""
Pytest configuration and fixtures.

Provides common fixtures for testing.
"""

from pathlib import Path

import pytest
import yaml

from completion_core.config import AppConfig
from completion_core.models.llm import CompletionRequest, Message, ModelTier


@pytest.fixture
def test_config(tmp_path: Path) -> AppConfig:
    """
    Create test configuration.

    Returns:
        Test configuration instance with credentials and snapshots in tmp_path
    """
    return AppConfig(
        anthropic_api_key="test-key",
        fast_model_id="claude-3-5-haiku-20241022",
        quality_model_id="claude-sonnet-4-20250514",
        mock_llm=False,
        e2e_fixtures_path=str(tmp_path / "fixtures"),
        prompt_log_dir=str(tmp_path / "prompts"),
    )


@pytest.fixture
def no_key_config(tmp_path: Path) -> AppConfig:
    """
    Create configuration without provider credentials.

    Returns:
        Configuration with an empty API key
    """
    return AppConfig(
        anthropic_api_key="",
        prompt_log_dir=str(tmp_path / "prompts"),
    )


@pytest.fixture
def sample_request() -> CompletionRequest:
    """
    Sample completion request for testing.

    Returns:
        Request with a short conversation
    """
    return CompletionRequest(
        system_prompt="You are a calm, empathetic guide.",
        messages=[
            Message(role="user", content="I had a rough day."),
            Message(role="assistant", content="I'm sorry to hear that. What happened?"),
            Message(role="user", content="My partner forgot our plans."),
        ],
        tier=ModelTier.QUALITY,
        session_id="session-1",
        turn_id="turn-1",
        operation="orchestrator-response",
    )


@pytest.fixture
def fixtures_dir(tmp_path: Path) -> Path:
    """
    Write sample fixture files.

    Returns:
        Directory holding the fixture YAML files
    """
    directory = tmp_path / "fixtures"
    directory.mkdir()

    flat = {
        "name": "Single user journey",
        "description": "Flat list of responses",
        "seed": {"users": [{"id": "user-a", "email": "a@example.com"}]},
        "responses": [
            {"user": "Hello", "ai": "Welcome! What brings you here?"},
            {"user": "My partner", "ai": "Tell me more about that."},
        ],
        "operations": {
            "reconciler-analysis": {"response": {"gaps": [], "score": 0.9}},
        },
    }
    legacy = {
        "name": "Partner journey",
        "description": "Legacy per-user storyline",
        "storyline": {
            "user-a": [
                {"user": None, "ai": "Hi A, ready to begin?"},
                {"user": "Yes", "ai": "Great, let's start."},
            ],
            "user-b": [{"user": "Hello", "ai": "Hi B, welcome."}],
        },
    }
    empty = {"name": "Empty", "description": "No responses at all"}

    (directory / "single-user-journey.yaml").write_text(yaml.safe_dump(flat))
    (directory / "partner-journey.yaml").write_text(yaml.safe_dump(legacy))
    (directory / "empty.yaml").write_text(yaml.safe_dump(empty))
    return directory
