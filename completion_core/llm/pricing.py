"""
Model pricing table.

Sandi Metz Principles:
- Single Responsibility: Hold per-model unit prices
- Open/Closed: Add a model by adding a table row
"""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class PricingEntry(BaseModel):
    """Unit prices in USD per 1,000 tokens for each token class."""

    model_config = ConfigDict(frozen=True)

    input: float = Field(default=0.0, ge=0.0, description="Fresh input tokens")
    cache_read: float = Field(default=0.0, ge=0.0, description="Cache-read input")
    cache_write: float = Field(default=0.0, ge=0.0, description="Cache-write input")
    output: float = Field(default=0.0, ge=0.0, description="Output tokens")

    @classmethod
    def zero(cls) -> "PricingEntry":
        """Pricing used for models missing from the table."""
        return cls()

    @property
    def is_zero(self) -> bool:
        """Check if every unit price is zero."""
        return not (self.input or self.cache_read or self.cache_write or self.output)


def _entry(input: float, output: float) -> PricingEntry:
    # Cache reads bill at 10% of input, 5-minute cache writes at 125%.
    return PricingEntry(
        input=input,
        cache_read=round(input * 0.1, 8),
        cache_write=round(input * 1.25, 8),
        output=output,
    )


# Keys are model id prefixes; dated ids and -latest aliases resolve by prefix.
MODEL_PRICING: Dict[str, PricingEntry] = {
    "claude-3-haiku": _entry(0.00025, 0.00125),
    "claude-3-5-haiku": _entry(0.0008, 0.004),
    "claude-haiku-4-5": _entry(0.001, 0.005),
    "claude-3-5-sonnet": _entry(0.003, 0.015),
    "claude-3-7-sonnet": _entry(0.003, 0.015),
    "claude-sonnet-4": _entry(0.003, 0.015),
    "claude-3-opus": _entry(0.015, 0.075),
    "claude-opus-4": _entry(0.015, 0.075),
    "claude-opus-4-5": _entry(0.005, 0.025),
}


def get_pricing(model_id: str, table: Dict[str, PricingEntry] | None = None) -> PricingEntry:
    """
    Resolve pricing for a model identifier.

    Exact matches win, then the longest matching prefix. Unknown models
    resolve to an all-zero entry.

    Args:
        model_id: Provider model identifier
        table: Optional pricing table (defaults to MODEL_PRICING)

    Returns:
        Pricing entry for the model
    """
    prices = MODEL_PRICING if table is None else table
    if model_id in prices:
        return prices[model_id]

    matches = [key for key in prices if model_id.startswith(key)]
    if not matches:
        return PricingEntry.zero()

    return prices[max(matches, key=len)]
