"""
Anthropic client handle.

Sandi Metz Principles:
- Single Responsibility: Own the SDK client and its lifecycle
- Small methods: Each method < 10 lines
- Dependency Injection: Settings and client factory injected
"""

import threading
from typing import Any, Callable, Dict

from anthropic import AsyncAnthropic

from completion_core.config import AppConfig
from completion_core.exceptions import LLMProviderError
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[AppConfig], AsyncAnthropic]


def default_client_factory(settings: AppConfig) -> AsyncAnthropic:
    """
    Build the SDK client from settings.

    Retries are disabled: a provider failure is terminal for the call.

    Args:
        settings: Configuration holding credentials

    Returns:
        Anthropic async client
    """
    return AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        base_url=settings.anthropic_base_url or None,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )


class AnthropicClient:
    """
    Lazily constructed, shared Anthropic client.

    Created at most once; missing credentials downgrade to "no client"
    instead of failing at startup.
    """

    def __init__(
        self, settings: AppConfig, client_factory: ClientFactory | None = None
    ):
        """
        Initialize client handle.

        Args:
            settings: Configuration holding credentials
            client_factory: Builds the SDK client (default: AsyncAnthropic)
        """
        self._settings = settings
        self._client_factory = client_factory or default_client_factory
        self._client: AsyncAnthropic | None = None
        self._initialized = False
        self._lock = threading.Lock()

    def get_name(self) -> str:
        """
        Get provider name.

        Returns:
            Provider name
        """
        return "anthropic"

    def get_client(self) -> AsyncAnthropic | None:
        """
        Get or create the SDK client.

        Returns:
            Anthropic async client, or None when credentials are absent
        """
        if self._initialized:
            return self._client

        with self._lock:
            if not self._initialized:
                self._client = self._create_client()
                self._initialized = True
        return self._client

    def _create_client(self) -> AsyncAnthropic | None:
        if not self._settings.has_api_key:
            logger.warning(
                "Anthropic API key not configured - completions will be skipped"
            )
            return None

        logger.info("Created anthropic client")
        return self._client_factory(self._settings)

    @property
    def is_configured(self) -> bool:
        """Check if a live client is available."""
        return self.get_client() is not None

    def reset(self) -> None:
        """Forget the client so the next call rebuilds it."""
        with self._lock:
            self._client = None
            self._initialized = False

    async def create_message(self, params: Dict[str, Any]) -> Any:
        """
        Make a non-streaming Messages API call.

        Args:
            params: Wire parameters

        Returns:
            Provider message

        Raises:
            LLMProviderError: If no client is configured or the call fails
        """
        client = self.get_client()
        if client is None:
            raise LLMProviderError("Anthropic client not configured")

        try:
            return await client.messages.create(**params)
        except Exception as e:
            error_msg = self.build_error_message(e, "Anthropic API call failed")
            logger.error("Anthropic error", error=str(e))
            raise LLMProviderError(error_msg) from e

    def stream_message(self, params: Dict[str, Any]) -> Any:
        """
        Open a streaming Messages API call.

        Args:
            params: Wire parameters

        Returns:
            Async context manager yielding the message stream

        Raises:
            LLMProviderError: If no client is configured
        """
        client = self.get_client()
        if client is None:
            raise LLMProviderError("Anthropic client not configured")

        return client.messages.stream(**params)

    @staticmethod
    def build_error_message(error: Exception, context: str) -> str:
        """
        Build error message with context.

        Args:
            error: The exception that occurred
            context: Context description

        Returns:
            Formatted error message
        """
        return f"{context}: {type(error).__name__} - {str(error)}"
