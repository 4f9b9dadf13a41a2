"""
Fixture models for deterministic, network-free completions.

Sandi Metz Principles:
- Small classes with clear purpose
- Tolerant input: legacy and current key names both accepted
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FixtureEntry(BaseModel):
    """One canned response, optionally paired with the message that triggers it."""

    model_config = ConfigDict(populate_by_name=True)

    trigger: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("trigger", "user"),
        description="Participant message that precedes the response",
    )
    response: str = Field(
        ...,
        validation_alias=AliasChoices("response", "ai"),
        description="Canned assistant response",
    )


class FixtureOperation(BaseModel):
    """Canned JSON payload for a non-streaming operation."""

    response: Any = Field(None, description="JSON payload returned as a string")


class Fixture(BaseModel):
    """
    Named bundle of canned responses.

    Response data comes either as a flat `responses` list addressed by
    index, or as a legacy `storyline` keyed by participant.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", description="Fixture name")
    description: str = Field(default="", description="Human readable description")
    seed: Any = Field(None, description="Opaque seed data")
    storyline: Optional[Dict[str, List[FixtureEntry]]] = Field(
        None, description="Legacy per-participant responses"
    )
    responses: Optional[List[FixtureEntry]] = Field(
        None, description="Flat ordered responses"
    )
    post_invitation_sent: Optional[List[FixtureEntry]] = Field(
        None,
        validation_alias=AliasChoices("post_invitation_sent", "postInvitationSent"),
        description="Responses served after an invitation is sent",
    )
    operations: Optional[Dict[str, FixtureOperation]] = Field(
        None, description="Operation name to canned JSON payload"
    )

    @property
    def has_flat_responses(self) -> bool:
        """Check if the flat response list is usable."""
        return bool(self.responses)

    @property
    def has_storyline(self) -> bool:
        """Check if the legacy storyline is usable."""
        return bool(self.storyline)


class SubstitutionContext(BaseModel):
    """
    Request-scoped substitution settings.

    Passed explicitly with each call instead of being read from ambient state.
    """

    model_config = ConfigDict(frozen=True)

    fixture_id: Optional[str] = Field(None, description="Fixture to serve from")
    response_index: Optional[int] = Field(
        None, description="Index of the streaming response to serve"
    )
    participant_key: Optional[str] = Field(
        None, description="Storyline key for legacy fixtures"
    )

    @property
    def has_fixture(self) -> bool:
        """Check if a fixture identifier is resolvable."""
        return bool(self.fixture_id and self.fixture_id.strip())
