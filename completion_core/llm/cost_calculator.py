"""
Token cost calculator with cache-aware pricing.

Sandi Metz Principles:
- Single Responsibility: Calculate API costs
- Small methods: Each method < 10 lines
- Open/Closed: Easy to add new models and pricing
"""

from dataclasses import dataclass
from typing import Dict

from completion_core.llm.pricing import MODEL_PRICING, PricingEntry, get_pricing
from completion_core.models.llm import UsageStats
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

TOKENS_PER_UNIT = 1000


@dataclass(frozen=True)
class CostBreakdown:
    """Cost split across the four token classes."""

    uncached_input_cost: float
    cache_read_cost: float
    cache_write_cost: float
    output_cost: float

    @property
    def total(self) -> float:
        """Sum of all classes."""
        return (
            self.uncached_input_cost
            + self.cache_read_cost
            + self.cache_write_cost
            + self.output_cost
        )


def _class_cost(tokens: int, unit_price: float) -> float:
    return (max(0, tokens) / TOKENS_PER_UNIT) * unit_price


def calculate_breakdown(pricing: PricingEntry, usage: UsageStats) -> CostBreakdown:
    """
    Price each token class of a usage record.

    Args:
        pricing: Unit prices for the model
        usage: Token usage (input inclusive of cache tokens)

    Returns:
        Per-class cost breakdown
    """
    return CostBreakdown(
        uncached_input_cost=_class_cost(usage.uncached_input_tokens, pricing.input),
        cache_read_cost=_class_cost(usage.cache_read_input_tokens, pricing.cache_read),
        cache_write_cost=_class_cost(
            usage.cache_write_input_tokens, pricing.cache_write
        ),
        output_cost=_class_cost(usage.output_tokens, pricing.output),
    )


def calculate_cost(model_id: str, usage: UsageStats) -> float:
    """
    Calculate cost in USD for one call.

    Pure function: never negative, never raises for unknown models.

    Args:
        model_id: Provider model identifier
        usage: Token usage

    Returns:
        Cost in USD
    """
    return calculate_breakdown(get_pricing(model_id), usage).total


class CostCalculator:
    """
    Calculate costs for LLM API usage.

    Wraps the pricing table so tests and callers can swap in their own.
    """

    def __init__(self, pricing_table: Dict[str, PricingEntry] | None = None):
        """
        Initialize cost calculator.

        Args:
            pricing_table: Model prefix to pricing (defaults to MODEL_PRICING)
        """
        self._pricing_table = MODEL_PRICING if pricing_table is None else pricing_table

    def calculate(self, model_id: str, usage: UsageStats) -> float:
        """
        Calculate cost for API call.

        Args:
            model_id: Model name
            usage: Token usage

        Returns:
            Cost in USD
        """
        return self.breakdown(model_id, usage).total

    def breakdown(self, model_id: str, usage: UsageStats) -> CostBreakdown:
        """
        Calculate per-class cost for API call.

        Args:
            model_id: Model name
            usage: Token usage

        Returns:
            Cost breakdown
        """
        pricing = self.get_pricing(model_id)
        if pricing.is_zero:
            logger.warning("No pricing for model, returning 0", model=model_id)

        return calculate_breakdown(pricing, usage)

    def cache_savings(self, model_id: str, usage: UsageStats) -> float:
        """
        Calculate what cache reads saved versus fresh input.

        Args:
            model_id: Model name
            usage: Token usage

        Returns:
            Savings in USD (never negative)
        """
        pricing = self.get_pricing(model_id)
        tokens = usage.cache_read_input_tokens
        fresh = _class_cost(tokens, pricing.input)
        cached = _class_cost(tokens, pricing.cache_read)

        return max(0.0, fresh - cached)

    def get_pricing(self, model_id: str) -> PricingEntry:
        """
        Get pricing for model.

        Args:
            model_id: Model name

        Returns:
            Pricing entry (all-zero if unknown)
        """
        return get_pricing(model_id, self._pricing_table)
