"""Tests for fixture loading."""

import json

import pytest

from completion_core.exceptions import (
    ConfigurationError,
    FixtureError,
    FixtureIndexError,
    FixtureNotFoundError,
)
from completion_core.fixtures.loader import FixtureLoader


@pytest.fixture
def loader(fixtures_dir) -> FixtureLoader:
    """Create loader over the sample fixtures."""
    return FixtureLoader(fixtures_dir)


class TestFixtureLoader:
    """Test fixture loading and caching."""

    def test_load(self, loader):
        """Test a fixture parses from YAML."""
        fixture = loader.load("single-user-journey")

        assert fixture.name == "Single user journey"
        assert len(fixture.responses) == 2
        assert fixture.seed["users"][0]["id"] == "user-a"

    def test_load_is_cached(self, loader):
        """Test repeated loads return the cached fixture."""
        first = loader.load("single-user-journey")

        assert loader.is_cached("single-user-journey") is True
        assert loader.load("single-user-journey") is first

    def test_clear_cache_is_idempotent(self, loader):
        """Test clearing twice is harmless."""
        loader.load("single-user-journey")

        loader.clear_cache()
        loader.clear_cache()

        assert loader.is_cached("single-user-journey") is False

    def test_missing_fixture_lists_available(self, loader):
        """Test the not-found error names the fixtures on disk."""
        with pytest.raises(FixtureNotFoundError) as exc_info:
            loader.load("does-not-exist")

        message = str(exc_info.value)
        assert "Fixture not found: does-not-exist" in message
        assert "empty, partner-journey, single-user-journey" in message

    def test_path_like_ids_not_found(self, loader):
        """Test identifiers cannot escape the fixtures directory."""
        for fixture_id in ["../secrets", "sub/dir", ".hidden"]:
            with pytest.raises(FixtureNotFoundError):
                loader.load(fixture_id)

    def test_unconfigured_path(self):
        """Test a loader without a directory is a configuration error."""
        with pytest.raises(ConfigurationError):
            FixtureLoader().load("anything")

    def test_invalid_format(self, fixtures_dir, loader):
        """Test a YAML list is rejected."""
        (fixtures_dir / "broken.yaml").write_text("- just\n- a list\n")

        with pytest.raises(FixtureError, match="Invalid fixture format: broken"):
            loader.load("broken")

    def test_malformed_yaml(self, fixtures_dir, loader):
        """Test YAML syntax errors name the fixture."""
        (fixtures_dir / "garbled.yaml").write_text("name: [unclosed\n  - x: {\n")

        with pytest.raises(FixtureError, match="Invalid fixture garbled"):
            loader.load("garbled")

    def test_undecodable_file(self, fixtures_dir, loader):
        """Test non-UTF-8 content names the fixture."""
        (fixtures_dir / "binary.yaml").write_bytes(b"name: \xff\xfe\xfa\n")

        with pytest.raises(FixtureError, match="Invalid fixture binary"):
            loader.load("binary")

    def test_available_fixtures(self, loader):
        """Test listing fixture identifiers."""
        assert loader.available_fixtures() == [
            "empty",
            "partner-journey",
            "single-user-journey",
        ]

    def test_available_fixtures_missing_directory(self, tmp_path):
        """Test a missing directory lists nothing."""
        assert FixtureLoader(tmp_path / "nowhere").available_fixtures() == []


class TestResponseByIndex:
    """Test indexed response lookup."""

    def test_flat_responses(self, loader):
        """Test indexes address the flat response list."""
        assert (
            loader.get_response_by_index("single-user-journey", 0)
            == "Welcome! What brings you here?"
        )
        assert loader.get_response_by_index("single-user-journey", 1) == "Tell me more about that."

    @pytest.mark.parametrize("index", [2, -1])
    def test_out_of_bounds(self, loader, index):
        """Test indexes outside the list raise with the count."""
        with pytest.raises(FixtureIndexError) as exc_info:
            loader.get_response_by_index("single-user-journey", index)

        assert str(exc_info.value) == (
            f"Response index {index} out of bounds for fixture "
            "single-user-journey (has 2 responses)"
        )

    def test_storyline_defaults_to_first_participant(self, loader):
        """Test legacy fixtures fall back to the first storyline."""
        assert loader.get_response_by_index("partner-journey", 1) == "Great, let's start."

    def test_storyline_by_participant(self, loader):
        """Test legacy fixtures honor the participant key."""
        assert (
            loader.get_response_by_index("partner-journey", 0, participant_key="user-b")
            == "Hi B, welcome."
        )

    def test_storyline_unknown_participant(self, loader):
        """Test an unknown participant key."""
        with pytest.raises(FixtureError, match="No storyline found for user: user-z"):
            loader.get_response_by_index("partner-journey", 0, participant_key="user-z")

    def test_storyline_out_of_bounds(self, loader):
        """Test participant indexes are bounds-checked."""
        with pytest.raises(FixtureIndexError, match="out of bounds for user user-b"):
            loader.get_response_by_index("partner-journey", 1, participant_key="user-b")

    def test_empty_fixture(self, loader):
        """Test a fixture with no responses at all."""
        with pytest.raises(FixtureError, match="No responses or storyline found"):
            loader.get_response_by_index("empty", 0)


class TestOperationResponse:
    """Test non-streaming operation payloads."""

    def test_operation_payload_is_json(self, loader):
        """Test the payload is serialized to a JSON string."""
        payload = loader.get_operation_response("single-user-journey", "reconciler-analysis")

        assert json.loads(payload) == {"gaps": [], "score": 0.9}

    def test_unknown_operation(self, loader):
        """Test an operation the fixture does not define."""
        assert loader.get_operation_response("single-user-journey", "other") is None
        assert loader.get_operation_response("partner-journey", "reconciler-analysis") is None

    def test_missing_fixture_raises(self, loader):
        """Test operation lookup still requires the fixture."""
        with pytest.raises(FixtureNotFoundError):
            loader.get_operation_response("gone", "reconciler-analysis")
