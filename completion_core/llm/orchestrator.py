"""
Completion orchestrator.

Turns application requests into provider calls: chooses between fixture
substitution and a live call, drives the stream decoder, and reports usage
and cost to the telemetry collaborators.

Sandi Metz Principles:
- Single Responsibility: Coordinate one completion
- Dependency Injection: Every collaborator injected, defaults built from settings
- Small methods: Lifecycle steps isolated
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, ContextManager, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from completion_core.config import AppConfig, config
from completion_core.exceptions import LLMProviderError, ValidationError
from completion_core.fixtures.loader import FixtureLoader
from completion_core.fixtures.substitution import FixtureSubstitution
from completion_core.llm.activity import ActivityRecorder, InMemoryActivityRecorder
from completion_core.llm.anthropic_client import AnthropicClient
from completion_core.llm.cost_calculator import CostCalculator
from completion_core.llm.cost_tracker import LLMCostTracker
from completion_core.llm.prompt_logger import PromptLogger, snapshot_stem
from completion_core.llm.request_builder import LLMRequestBuilder
from completion_core.llm.stream_decoder import StreamDecoder, decode_stream
from completion_core.models.fixture import SubstitutionContext
from completion_core.models.llm import (
    CompletionRequest,
    DoneEvent,
    ModelTier,
    TextEvent,
    UsageStats,
)
from completion_core.utils.json_extractor import extract_json_from_response
from completion_core.utils.logger import (
    bind_completion_context,
    get_logger,
    log_error,
    log_llm_call,
)

logger = get_logger(__name__)


@dataclass
class _LiveCall:
    """Bookkeeping for one in-flight provider call."""

    model: str
    tier: ModelTier
    stem: str
    activity_id: Optional[str]
    started_at: float

    @property
    def duration_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000


def _response_text(response: Any) -> Optional[str]:
    """Return the first text block of a provider message, skipping thinking blocks."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return None


class CompletionOrchestrator:
    """
    Facade over model completions.

    complete() and complete_structured() return None instead of raising when
    no content is available, leaving fallback policy to the caller.
    complete_streaming() yields events ending in exactly one DoneEvent.
    """

    def __init__(
        self,
        settings: AppConfig | None = None,
        client: AnthropicClient | None = None,
        fixtures: FixtureLoader | None = None,
        activity_recorder: ActivityRecorder | None = None,
        cost_tracker: LLMCostTracker | None = None,
        prompt_logger: PromptLogger | None = None,
        cost_calculator: CostCalculator | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Configuration (defaults to the global config)
            client: Anthropic client handle
            fixtures: Fixture loader for deterministic mode
            activity_recorder: Activity store collaborator
            cost_tracker: Cost/telemetry recorder
            prompt_logger: Prompt snapshot writer
            cost_calculator: Cost calculator used when no tracker is given
        """
        self._settings = settings or config
        self._client = client or AnthropicClient(self._settings)
        loader = fixtures or FixtureLoader(self._settings.e2e_fixtures_path or None)
        self._substitution = FixtureSubstitution(self._settings.mock_llm, loader)
        self._activity = activity_recorder or InMemoryActivityRecorder()
        self._cost_tracker = cost_tracker or LLMCostTracker(
            cost_calculator or CostCalculator()
        )
        self._prompt_logger = prompt_logger or PromptLogger(self._settings)

    @property
    def settings(self) -> AppConfig:
        """Configuration in use."""
        return self._settings

    @property
    def cost_tracker(self) -> LLMCostTracker:
        """Cost/telemetry recorder in use."""
        return self._cost_tracker

    @property
    def substitution(self) -> FixtureSubstitution:
        """Fixture substitution layer in use."""
        return self._substitution

    async def complete(
        self,
        request: CompletionRequest,
        tier: ModelTier | None = None,
        context: SubstitutionContext | None = None,
        default_max_tokens: int | None = None,
    ) -> Optional[str]:
        """
        Get a non-streaming completion.

        Args:
            request: Completion request
            tier: Tier override (defaults to request.tier)
            context: Request-scoped substitution settings
            default_max_tokens: Max tokens when the request sets none

        Returns:
            Response text, or None when no content is available, no client
            is configured, or the provider call failed

        Raises:
            FixtureError: If deterministic mode names a missing fixture
        """
        if self._substitution.active:
            return self._substitution.operation_response(request.operation, context)

        if not self._client.is_configured:
            return None

        builder = LLMRequestBuilder(request, self._settings, tier)
        with self._attribution(request):
            call = await self._begin(request, builder)
            try:
                response = await self._client.create_message(
                    builder.build_params(default_max_tokens)
                )
            except LLMProviderError as e:
                await self._fail(call, str(e))
                log_error(e, "complete", model=call.model)
                return None

            text = _response_text(response)
            usage = UsageStats.from_provider(getattr(response, "usage", None))
            await self._succeed(request, call, usage, text or "")
            return text

    async def complete_streaming(
        self,
        request: CompletionRequest,
        context: SubstitutionContext | None = None,
    ) -> AsyncIterator[Any]:
        """
        Stream a completion as internal events.

        Closing the generator early (aclose) closes the provider stream.

        Args:
            request: Completion request (request.tier selects the model)
            context: Request-scoped substitution settings

        Yields:
            TextEvent and ToolUseEvent in order, then exactly one DoneEvent

        Raises:
            LLMProviderError: If the live provider call fails
            FixtureError: If the fixture is missing or the index is out of bounds
        """
        if self._substitution.active:
            text = self._substitution.streaming_text(context)
            if text is not None:
                yield TextEvent(text=text)
            yield DoneEvent(usage=UsageStats.zero())
            return

        if not self._client.is_configured:
            yield DoneEvent(usage=UsageStats.zero())
            return

        builder = LLMRequestBuilder(request, self._settings)
        with self._attribution(request):
            call = await self._begin(request, builder)
        decoder = StreamDecoder()
        done: Optional[DoneEvent] = None

        # Attribution is bound per step; a contextvar binding must not span a yield.
        try:
            async with self._client.stream_message(builder.build_params()) as stream:
                async for event in decode_stream(stream, decoder):
                    if isinstance(event, DoneEvent):
                        done = event
                    else:
                        yield event
        except (GeneratorExit, asyncio.CancelledError):
            with self._attribution(request):
                logger.warning("Stream abandoned by caller", activity_id=call.activity_id)
                await self._fail(call, "Stream abandoned by caller")
            raise
        except Exception as e:
            with self._attribution(request):
                await self._fail(call, str(e))
            raise LLMProviderError(
                AnthropicClient.build_error_message(e, "Anthropic streaming call failed")
            ) from e

        done = done or DoneEvent(usage=UsageStats.zero())
        with self._attribution(request):
            await self._succeed(request, call, done.usage, decoder.transcript)
        yield done

    async def complete_structured(
        self,
        request: CompletionRequest,
        tier: ModelTier | None = ModelTier.FAST,
        context: SubstitutionContext | None = None,
        schema: Type[BaseModel] | None = None,
    ) -> Any:
        """
        Get a completion parsed as a JSON object.

        Args:
            request: Completion request
            tier: Tier to use (defaults to fast)
            context: Request-scoped substitution settings
            schema: Optional model to validate the object into

        Returns:
            Parsed object (or schema instance), or None on any failure
        """
        raw = await self.complete(
            request,
            tier=tier,
            context=context,
            default_max_tokens=self._settings.structured_max_tokens,
        )
        if raw is None:
            return None

        try:
            parsed = extract_json_from_response(raw)
        except ValidationError as e:
            logger.warning(
                "Failed to parse structured response",
                operation=request.operation,
                error=str(e),
                raw=raw[:500],
            )
            return None

        if schema is None:
            return parsed

        try:
            return schema.model_validate(parsed)
        except PydanticValidationError as e:
            logger.warning(
                "Structured response failed validation",
                operation=request.operation,
                schema=schema.__name__,
                error=str(e),
            )
            return None

    async def get_quality_response(
        self,
        request: CompletionRequest,
        context: SubstitutionContext | None = None,
    ) -> Optional[str]:
        """Get a user-facing response from the quality tier."""
        return await self.complete(request, tier=ModelTier.QUALITY, context=context)

    async def get_fast_json(
        self,
        request: CompletionRequest,
        context: SubstitutionContext | None = None,
        schema: Type[BaseModel] | None = None,
    ) -> Any:
        """Get structured JSON from the fast tier."""
        return await self.complete_structured(
            request, tier=ModelTier.FAST, context=context, schema=schema
        )

    def reset_client(self) -> None:
        """Drop the cached provider client (tests and credential rotation)."""
        self._client.reset()

    async def _begin(
        self, request: CompletionRequest, builder: LLMRequestBuilder
    ) -> _LiveCall:
        model = builder.get_model()
        stem = snapshot_stem(request.operation)
        self._prompt_logger.log_prompt(stem, request, model, builder.tier)

        activity_id = await self._start_activity(request, model, builder.tier)
        return _LiveCall(
            model=model,
            tier=builder.tier,
            stem=stem,
            activity_id=activity_id,
            started_at=time.monotonic(),
        )

    async def _succeed(
        self,
        request: CompletionRequest,
        call: _LiveCall,
        usage: UsageStats,
        transcript: str,
    ) -> None:
        duration_ms = call.duration_ms
        cost = 0.0
        if not usage.is_empty:
            cost = self._cost_tracker.track_request(
                session_id=request.session_id,
                turn_id=request.turn_id,
                operation=request.operation,
                model=call.model,
                usage=usage,
                duration_ms=duration_ms,
            )

        if call.activity_id is not None:
            try:
                await self._activity.complete(call.activity_id, usage, cost, duration_ms)
            except Exception as e:
                log_error(e, "activity_complete", activity_id=call.activity_id)

        log_llm_call(
            provider=self._client.get_name(),
            model=call.model,
            tokens=usage.total_tokens,
            cost=cost,
            duration_ms=round(duration_ms),
            operation=request.operation,
        )
        self._prompt_logger.log_response(call.stem, transcript)

    @staticmethod
    def _attribution(request: CompletionRequest) -> ContextManager[None]:
        return bind_completion_context(
            request.session_id, request.turn_id, request.operation
        )

    async def _fail(self, call: _LiveCall, reason: str) -> None:
        if call.activity_id is None:
            return
        try:
            await self._activity.fail(call.activity_id, reason, call.duration_ms)
        except Exception as e:
            log_error(e, "activity_fail", activity_id=call.activity_id)

    async def _start_activity(
        self, request: CompletionRequest, model: str, tier: ModelTier
    ) -> Optional[str]:
        try:
            return await self._activity.start(
                session_id=request.session_id,
                turn_id=request.turn_id,
                operation=request.operation,
                model=model,
                tier=tier,
            )
        except Exception as e:
            log_error(e, "activity_start", operation=request.operation)
            return None
