"""
Fixture loading for deterministic completions.

Sandi Metz Principles:
- Single Responsibility: Read, validate and cache fixture files
- Fail loudly: A broken fixture is a broken test, never a degraded mode
"""

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from completion_core.exceptions import (
    ConfigurationError,
    FixtureError,
    FixtureIndexError,
    FixtureNotFoundError,
)
from completion_core.models.fixture import Fixture, FixtureEntry
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

FIXTURE_SUFFIX = ".yaml"


class FixtureLoader:
    """
    Loads `<fixture-id>.yaml` files and caches them for the process lifetime.

    The cache only grows; clear_cache() empties it wholesale for tests.
    """

    def __init__(self, fixtures_path: str | Path | None = None):
        """
        Initialize fixture loader.

        Args:
            fixtures_path: Directory holding fixture files
        """
        self._fixtures_path = Path(fixtures_path) if fixtures_path else None
        self._cache: Dict[str, Fixture] = {}
        self._lock = threading.Lock()

    def load(self, fixture_id: str) -> Fixture:
        """
        Load a fixture by identifier.

        Args:
            fixture_id: File name without the .yaml extension

        Returns:
            Parsed fixture

        Raises:
            ConfigurationError: If no fixtures directory is configured
            FixtureNotFoundError: If the fixture file does not exist
            FixtureError: If the file is not a valid fixture
        """
        with self._lock:
            cached = self._cache.get(fixture_id)
        if cached is not None:
            return cached

        fixture = self._read(fixture_id)

        with self._lock:
            fixture = self._cache.setdefault(fixture_id, fixture)

        logger.debug("Loaded fixture", fixture_id=fixture_id, name=fixture.name)
        return fixture

    def _read(self, fixture_id: str) -> Fixture:
        path = self._resolve(fixture_id)
        if path is None or not path.is_file():
            available = ", ".join(self.available_fixtures()) or "(none)"
            raise FixtureNotFoundError(
                f"Fixture not found: {fixture_id}. Available fixtures: {available}"
            )

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise FixtureError(f"Invalid fixture {fixture_id}: {e}") from e

        if not isinstance(data, dict):
            raise FixtureError(f"Invalid fixture format: {fixture_id}")

        try:
            return Fixture.model_validate(data)
        except PydanticValidationError as e:
            raise FixtureError(f"Invalid fixture {fixture_id}: {e}") from e

    def _resolve(self, fixture_id: str) -> Optional[Path]:
        root = self._require_root()
        if not fixture_id or "/" in fixture_id or "\\" in fixture_id:
            return None
        if fixture_id.startswith("."):
            return None
        return root / f"{fixture_id}{FIXTURE_SUFFIX}"

    def _require_root(self) -> Path:
        if self._fixtures_path is None:
            raise ConfigurationError(
                "Fixtures path not configured (set E2E_FIXTURES_PATH)"
            )
        return self._fixtures_path

    def available_fixtures(self) -> List[str]:
        """
        List fixture identifiers present on disk.

        Returns:
            Sorted fixture identifiers
        """
        root = self._require_root()
        if not root.is_dir():
            return []
        return sorted(p.stem for p in root.glob(f"*{FIXTURE_SUFFIX}"))

    def is_cached(self, fixture_id: str) -> bool:
        """Check if a fixture has been loaded."""
        with self._lock:
            return fixture_id in self._cache

    def clear_cache(self) -> None:
        """Drop every cached fixture. Safe to call when empty."""
        with self._lock:
            self._cache.clear()

    def get_response_by_index(
        self, fixture_id: str, index: int, participant_key: Optional[str] = None
    ) -> str:
        """
        Get a canned response by index.

        The flat `responses` list wins; otherwise the storyline of
        `participant_key` (or of the first participant) is used.

        Args:
            fixture_id: Fixture identifier
            index: 0-based response index
            participant_key: Storyline key for legacy fixtures

        Returns:
            Canned response text

        Raises:
            FixtureIndexError: If index is outside [0, count)
            FixtureError: If the fixture holds no responses
        """
        fixture = self.load(fixture_id)

        if fixture.has_flat_responses:
            entries = fixture.responses or []
        elif fixture.has_storyline:
            storyline = fixture.storyline or {}
            if participant_key is not None:
                return self.get_participant_response(fixture, participant_key, index)
            entries = storyline[next(iter(storyline))]
        else:
            raise FixtureError(
                f"No responses or storyline found in fixture: {fixture_id}"
            )

        if index < 0 or index >= len(entries):
            raise FixtureIndexError(
                f"Response index {index} out of bounds for fixture {fixture_id} "
                f"(has {len(entries)} responses)"
            )
        return entries[index].response

    @staticmethod
    def get_participant_response(fixture: Fixture, participant_key: str, index: int) -> str:
        """
        Get a response from a legacy per-participant storyline.

        Args:
            fixture: Loaded fixture
            participant_key: Storyline key (e.g., participant id)
            index: 0-based response index

        Returns:
            Canned response text

        Raises:
            FixtureError: If the storyline or key is missing
            FixtureIndexError: If index is outside [0, count)
        """
        if not fixture.storyline:
            raise FixtureError("No storyline found in fixture")

        entries: Optional[List[FixtureEntry]] = fixture.storyline.get(participant_key)
        if entries is None:
            raise FixtureError(f"No storyline found for user: {participant_key}")

        if index < 0 or index >= len(entries):
            raise FixtureIndexError(
                f"Response index {index} out of bounds for user {participant_key} "
                f"(has {len(entries)} responses)"
            )
        return entries[index].response

    def get_operation_response(self, fixture_id: str, operation: str) -> Optional[str]:
        """
        Get the canned JSON payload for a non-streaming operation.

        Args:
            fixture_id: Fixture identifier
            operation: Operation name

        Returns:
            JSON string, or None if the fixture has no such operation
        """
        fixture = self.load(fixture_id)
        if not fixture.operations or operation not in fixture.operations:
            return None

        return json.dumps(fixture.operations[operation].response)
