"""
Models package for the completion layer.

Exports all model classes for easy imports throughout the application.
"""

# Fixture models
from completion_core.models.fixture import (
    Fixture,
    FixtureEntry,
    FixtureOperation,
    SubstitutionContext,
)

# LLM models
from completion_core.models.llm import (
    CompletionRequest,
    DoneEvent,
    Message,
    ModelTier,
    StreamEvent,
    TextEvent,
    ToolUseEvent,
    UsageStats,
)

__all__ = [
    # Fixtures
    "Fixture",
    "FixtureEntry",
    "FixtureOperation",
    "SubstitutionContext",
    # LLM
    "CompletionRequest",
    "DoneEvent",
    "Message",
    "ModelTier",
    "StreamEvent",
    "TextEvent",
    "ToolUseEvent",
    "UsageStats",
]
