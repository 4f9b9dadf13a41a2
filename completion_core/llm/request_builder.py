"""
LLM request builder.

Sandi Metz Principles:
- Single Responsibility: Build provider wire requests
- Small methods: Each method < 10 lines
- Clear naming: Self-documenting code
"""

from typing import Any, Dict, List

from completion_core.config import AppConfig
from completion_core.models.llm import CompletionRequest, ModelTier
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

CACHE_CONTROL: Dict[str, str] = {"type": "ephemeral"}


class LLMRequestBuilder:
    """
    Builder for Anthropic Messages API requests.

    Converts a CompletionRequest into wire parameters, routing the tier to
    a model and placing prompt-cache boundaries.
    """

    def __init__(
        self,
        request: CompletionRequest,
        settings: AppConfig,
        tier: ModelTier | None = None,
    ):
        """
        Initialize request builder.

        Args:
            request: Completion request to build from
            settings: Configuration holding model ids and defaults
            tier: Tier override (defaults to request.tier)
        """
        self._request = request
        self._settings = settings
        self._tier = ModelTier(tier or request.tier)

    @property
    def tier(self) -> ModelTier:
        """Effective tier for this call."""
        return self._tier

    def get_model(self) -> str:
        """
        Get model identifier for the effective tier.

        Returns:
            Model name to use
        """
        return self._settings.model_for_tier(self._tier)

    def get_max_tokens(self, default: int | None = None) -> int:
        """
        Get max tokens with config fallback.

        Args:
            default: Call-site default (falls back to settings)

        Returns:
            Maximum tokens for response
        """
        if self._request.max_tokens:
            return self._request.max_tokens
        return default or self._settings.default_max_tokens

    def build_system(self) -> List[Dict[str, Any]]:
        """
        Build the system prompt block, always marked cacheable.

        Returns:
            List with a single text block
        """
        return [
            {
                "type": "text",
                "text": self._request.system_prompt,
                "cache_control": dict(CACHE_CONTROL),
            }
        ]

    def build_messages(self) -> List[Dict[str, Any]]:
        """
        Build the wire message list.

        With two or more messages, the second-to-last one carries a cache
        boundary so the next turn can reuse the history prefix. The
        caller's messages are never modified.

        Returns:
            List of message dicts with content blocks
        """
        messages = self._request.messages
        boundary = len(messages) - 2 if len(messages) >= 2 else None

        wire: List[Dict[str, Any]] = []
        for index, message in enumerate(messages):
            block: Dict[str, Any] = {"type": "text", "text": message.content}
            if index == boundary:
                block["cache_control"] = dict(CACHE_CONTROL)
            wire.append({"role": message.role, "content": [block]})

        return wire

    def build_thinking(self) -> Dict[str, Any] | None:
        """
        Build the extended reasoning parameter.

        Returns:
            Thinking config for the quality tier, else None
        """
        budget = self._request.thinking_budget
        if not budget:
            return None

        if self._tier is not ModelTier.QUALITY:
            logger.debug("Ignoring thinking budget for fast tier", budget=budget)
            return None

        return {"type": "enabled", "budget_tokens": budget}

    @staticmethod
    def _fit_thinking(max_tokens: int, budget: int) -> int:
        # The provider requires budget_tokens < max_tokens.
        if budget < max_tokens:
            return max_tokens

        logger.debug(
            "Raising max tokens above thinking budget",
            max_tokens=max_tokens,
            budget=budget,
        )
        return budget + max_tokens

    def build_params(self, default_max_tokens: int | None = None) -> Dict[str, Any]:
        """
        Build parameters for the Messages API.

        Args:
            default_max_tokens: Call-site max tokens default

        Returns:
            Dict of Anthropic API parameters
        """
        params: Dict[str, Any] = {
            "model": self.get_model(),
            "system": self.build_system(),
            "messages": self.build_messages(),
            "max_tokens": self.get_max_tokens(default_max_tokens),
        }

        thinking = self.build_thinking()
        if thinking:
            params["thinking"] = thinking
            params["max_tokens"] = self._fit_thinking(
                params["max_tokens"], thinking["budget_tokens"]
            )

        if self._request.tools:
            params["tools"] = [dict(tool) for tool in self._request.tools]

        return params
