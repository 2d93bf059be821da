"""Tests for reading pricing configuration from site settings."""

from decimal import Decimal

from checkout.config import CheckoutSettings
from checkout.pricing.settings import PricingSettings


class TestFromConfig:
    def test_defaults(self):
        settings = PricingSettings.from_config(CheckoutSettings(_env_file=None))
        assert settings.flat_rate == Decimal("4.99")
        assert settings.free_threshold == Decimal("50.0")
        assert settings.tax_rate == Decimal("0.0")

    def test_configured_values(self):
        config = CheckoutSettings(_env_file=None, flat_rate_shipping=6.5, free_shipping_threshold=75, tax_rate=8.25)
        settings = PricingSettings.from_config(config)
        assert settings.flat_rate == Decimal("6.5")
        assert settings.free_threshold == Decimal("75")
        assert settings.tax_rate == Decimal("8.25")


class TestMergedWithSiteSettings:
    def test_site_values_override_defaults(self):
        merged = PricingSettings().merged_with(
            {"flat_rate_shipping": "5.99", "free_shipping_threshold": "100", "tax_rate": "8"}
        )
        assert merged == PricingSettings(
            flat_rate=Decimal("5.99"), free_threshold=Decimal("100"), tax_rate=Decimal("8")
        )

    def test_missing_values_fall_back(self):
        assert PricingSettings().merged_with({}) == PricingSettings()

    def test_unparsable_values_fall_back(self):
        merged = PricingSettings().merged_with({"flat_rate_shipping": "free", "tax_rate": "n/a"})
        assert merged.flat_rate == Decimal("4.99")
        assert merged.tax_rate == Decimal("0")

    def test_zero_values_fall_back(self):
        merged = PricingSettings().merged_with({"free_shipping_threshold": "0"})
        assert merged.free_threshold == Decimal("50")

    def test_non_finite_values_fall_back(self):
        merged = PricingSettings().merged_with({"flat_rate_shipping": "NaN", "free_shipping_threshold": "Infinity"})
        assert merged.flat_rate == Decimal("4.99")
        assert merged.free_threshold == Decimal("50")
