"""Tests for the model pricing table."""

import pytest

from completion_core.llm.pricing import MODEL_PRICING, PricingEntry, get_pricing


class TestGetPricing:
    """Test pricing resolution."""

    def test_exact_match(self):
        """Test a table key resolves to itself."""
        assert get_pricing("claude-sonnet-4") == MODEL_PRICING["claude-sonnet-4"]

    def test_dated_id_resolves_by_prefix(self):
        """Test dated model ids resolve to their family."""
        pricing = get_pricing("claude-3-5-haiku-20241022")

        assert pricing.input == pytest.approx(0.0008)
        assert pricing.output == pytest.approx(0.004)

    def test_longest_prefix_wins(self):
        """Test the most specific prefix is used."""
        assert get_pricing("claude-opus-4-5-20251101") == MODEL_PRICING["claude-opus-4-5"]
        assert get_pricing("claude-opus-4-20250514") == MODEL_PRICING["claude-opus-4"]

    def test_unknown_model_is_zero(self):
        """Test unknown models price at zero."""
        pricing = get_pricing("gpt-4o")

        assert pricing.is_zero is True

    def test_custom_table(self):
        """Test an injected table replaces the default."""
        table = {"house-model": PricingEntry(input=1.0, output=2.0)}

        assert get_pricing("house-model-v2", table).output == 2.0
        assert get_pricing("claude-sonnet-4", table).is_zero is True


class TestPricingEntry:
    """Test pricing entries."""

    def test_cache_rates_relative_to_input(self):
        """Test cache reads are cheaper and cache writes dearer than input."""
        for pricing in MODEL_PRICING.values():
            assert pricing.cache_read < pricing.input < pricing.cache_write

    def test_zero_entry(self):
        """Test the zero entry."""
        assert PricingEntry.zero().is_zero is True
        assert PricingEntry(output=0.1).is_zero is False
