"""
Substitution of live completions with fixture content.

Deterministic mode is a process-wide switch; the fixture to serve from is
request-scoped and arrives with each call in a SubstitutionContext.
"""

from typing import Optional

from completion_core.fixtures.loader import FixtureLoader
from completion_core.models.fixture import SubstitutionContext
from completion_core.utils.logger import get_logger, log_fixture_substitution

logger = get_logger(__name__)


class FixtureSubstitution:
    """
    Decides what, if anything, a deterministic call returns.

    When active, callers must not fall through to a live call: a None
    result means "behave as if no client is configured".
    """

    def __init__(self, enabled: bool, loader: FixtureLoader):
        """
        Initialize substitution layer.

        Args:
            enabled: Deterministic mode switch
            loader: Fixture loader
        """
        self._enabled = enabled
        self._loader = loader

    @property
    def active(self) -> bool:
        """Check if deterministic mode is on."""
        return self._enabled

    @property
    def loader(self) -> FixtureLoader:
        """Fixture loader in use."""
        return self._loader

    def streaming_text(self, context: Optional[SubstitutionContext]) -> Optional[str]:
        """
        Resolve the canned text for a streaming call.

        Args:
            context: Request-scoped substitution settings

        Returns:
            Fixture text, or None when no fixture/index applies

        Raises:
            FixtureError: If the fixture is missing or the index is out of bounds
        """
        if not self._enabled or context is None or not context.has_fixture:
            return None
        if context.response_index is None:
            logger.debug("No response index for streaming fixture", fixture_id=context.fixture_id)
            return None

        text = self._loader.get_response_by_index(
            context.fixture_id, context.response_index, context.participant_key
        )
        log_fixture_substitution(
            context.fixture_id, "streaming", response_index=context.response_index
        )
        return text

    def operation_response(
        self, operation: str, context: Optional[SubstitutionContext]
    ) -> Optional[str]:
        """
        Resolve the canned JSON for a non-streaming call.

        Args:
            operation: Operation name of the request
            context: Request-scoped substitution settings

        Returns:
            JSON string, or None when the fixture has no such operation

        Raises:
            FixtureError: If the fixture is missing
        """
        if not self._enabled or context is None or not context.has_fixture:
            return None

        payload = self._loader.get_operation_response(context.fixture_id, operation)
        if payload is not None:
            log_fixture_substitution(context.fixture_id, operation)
        return payload
