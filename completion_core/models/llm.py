"""
LLM request, usage and stream event models.

Sandi Metz Principles:
- Small classes focused on LLM interaction
- Clear separation of request and response
- Immutable data structures
"""

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelTier(str, Enum):
    """Named model choice, selected per request."""

    FAST = "fast"
    QUALITY = "quality"


class Message(BaseModel):
    """Single conversation message."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")


class CompletionRequest(BaseModel):
    """
    Immutable completion request.

    Attribution fields (session, turn, operation) group cost and telemetry
    and are never used for routing.
    """

    model_config = ConfigDict(frozen=True)

    system_prompt: str = Field(..., description="System prompt")
    messages: Tuple[Message, ...] = Field(..., description="Ordered message history")
    tier: ModelTier = Field(default=ModelTier.QUALITY, description="Target tier")
    max_tokens: Optional[int] = Field(None, ge=1, description="Max output tokens")
    thinking_budget: Optional[int] = Field(
        None, ge=1, description="Extended reasoning budget (quality tier only)"
    )
    tools: Tuple[Dict[str, Any], ...] = Field(
        default=(), description="Tool definitions passed to the provider"
    )
    session_id: str = Field(..., description="Session identifier for attribution")
    turn_id: str = Field(..., description="Turn identifier for attribution")
    operation: str = Field(..., description="Operation name for cost breakdown")

    @field_validator("session_id", "turn_id", "operation")
    @classmethod
    def validate_attribution(cls, v: str) -> str:
        """Validate attribution fields are present."""
        v = v.strip()
        if not v:
            raise ValueError("Attribution fields cannot be empty")
        return v


class UsageStats(BaseModel):
    """
    Token usage for one completion.

    input_tokens is inclusive of cache reads and cache writes.
    """

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(default=0, ge=0, description="Total input tokens")
    output_tokens: int = Field(default=0, ge=0, description="Output tokens")
    cache_read_input_tokens: int = Field(
        default=0, ge=0, description="Input tokens served from cache"
    )
    cache_write_input_tokens: int = Field(
        default=0, ge=0, description="Input tokens written to cache"
    )

    @classmethod
    def zero(cls) -> "UsageStats":
        """Create an all-zero usage record."""
        return cls()

    @classmethod
    def from_provider(cls, usage: Any) -> "UsageStats":
        """
        Normalize a provider usage record.

        The Anthropic API reports input_tokens exclusive of cache tokens,
        so the cache classes are added back to form the inclusive total.

        Args:
            usage: Provider usage object (or None)

        Returns:
            Normalized usage stats
        """
        if usage is None:
            return cls.zero()

        fresh = getattr(usage, "input_tokens", 0) or 0
        cache_read = getattr(usage, "cache_read_input_tokens", 0) or 0
        cache_write = getattr(usage, "cache_creation_input_tokens", 0) or 0

        return cls(
            input_tokens=fresh + cache_read + cache_write,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            cache_read_input_tokens=cache_read,
            cache_write_input_tokens=cache_write,
        )

    @property
    def uncached_input_tokens(self) -> int:
        """Input tokens billed at the fresh rate."""
        return max(
            0,
            self.input_tokens
            - self.cache_read_input_tokens
            - self.cache_write_input_tokens,
        )

    @property
    def total_tokens(self) -> int:
        """Calculate total tokens."""
        return self.input_tokens + self.output_tokens

    @property
    def is_empty(self) -> bool:
        """Check if no tokens were reported at all."""
        return (
            self.input_tokens == 0
            and self.output_tokens == 0
            and self.cache_read_input_tokens == 0
            and self.cache_write_input_tokens == 0
        )


class TextEvent(BaseModel):
    """Incremental piece of assistant text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolUseEvent(BaseModel):
    """Fully assembled tool invocation."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class DoneEvent(BaseModel):
    """Terminal event carrying the usage summary."""

    model_config = ConfigDict(frozen=True)

    type: Literal["done"] = "done"
    usage: UsageStats = Field(default_factory=UsageStats.zero)


StreamEvent = Annotated[
    Union[TextEvent, ToolUseEvent, DoneEvent], Field(discriminator="type")
]
