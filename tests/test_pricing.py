"""Tests for PricingCatalog and preset cost calculations."""

import pytest
from bundle_budget.config.settings import get_default_catalog
from bundle_budget.core.exceptions import UnknownProviderError
from bundle_budget.core.pricing import (
    ModelPreset,
    PricingCatalog,
    ProviderPricing,
    WarningLevel,
    calculate_effective_budget,
    calculate_preset_cost,
    model_warnings,
)


@pytest.fixture
def catalog():
    return get_default_catalog()


class TestProviderLookup:
    """Test cases for provider lookup and cost calculation."""

    def test_calculate_cost(self, catalog):
        estimate = catalog.calculate_cost(1000, "claude-sonnet")
        assert estimate is not None
        assert estimate.provider == "claude-sonnet"
        assert estimate.display_name == "Claude 3.5 Sonnet"
        assert estimate.tokens == 1000
        assert estimate.input_cost == pytest.approx(0.003)

    def test_unknown_provider_returns_none(self, catalog):
        assert catalog.calculate_cost(1000, "invalid-provider") is None
        assert catalog.lookup_provider("invalid-provider") is None
        assert catalog.lookup_provider(None) is None

    def test_context_window_overflow(self, catalog):
        assert catalog.calculate_cost(10000, "gpt-4").within_context_window is False
        assert catalog.calculate_cost(5000, "claude-sonnet").within_context_window is True

    def test_exact_context_window_fits(self, catalog):
        assert catalog.calculate_cost(8192, "gpt-4").within_context_window is True

    def test_utilization_percent(self, catalog):
        assert catalog.calculate_cost(100000, "claude-sonnet").utilization_percent == 50

    def test_lookup_is_case_insensitive(self, catalog):
        provider = catalog.lookup_provider("  CLAUDE-Haiku ")
        assert provider is not None
        assert provider.name == "claude-haiku"

    def test_require_provider_lists_available(self, catalog):
        with pytest.raises(UnknownProviderError) as excinfo:
            catalog.require_provider("nope")
        assert "Available providers are" in str(excinfo.value)
        assert "claude-haiku" in excinfo.value.available

    def test_all_cost_estimates(self, catalog):
        estimates = catalog.all_cost_estimates(10000)
        assert len(estimates) == len(catalog.providers) == 8
        assert [e.provider for e in estimates] == catalog.provider_names()

    def test_catalog_is_read_only(self, catalog):
        with pytest.raises(TypeError):
            catalog.providers["free"] = ProviderPricing("free", "Free", 1000, 0.0, 0.0)

    def test_fake_catalog(self):
        fake = PricingCatalog([ProviderPricing("local", "Local Model", 4096, 1.0, 2.0)])
        estimate = fake.calculate_cost(2048, "local")
        assert estimate.input_cost == pytest.approx(0.002048)
        assert estimate.utilization_percent == 50
        assert fake.lookup_model_preset("sonnet") is None


class TestModelPresets:
    """Test cases for model presets."""

    def test_all_presets_present(self, catalog):
        names = {p.name for p in catalog.list_model_presets()}
        assert names == {
            "gpt-5.1", "gpt-5.1-thinking", "gpt-4.1", "gpt-o3", "gpt-o3-mini",
            "claude-3.5-sonnet", "claude-3.5-opus", "claude-3.5-haiku",
            "gemini-1.5-pro", "gemini-2.0-flash",
        }

    def test_safety_margins_valid(self, catalog):
        for preset in catalog.list_model_presets():
            assert 0 < preset.safety_margin <= 1
            assert 0 < preset.context_limit <= 2_000_000

    def test_lookup_by_name(self, catalog):
        preset = catalog.lookup_model_preset("claude-3.5-sonnet")
        assert preset.display_name == "Claude 3.5 Sonnet"
        assert catalog.lookup_model_preset("CLAUDE-3.5-SONNET").name == "claude-3.5-sonnet"
        assert catalog.lookup_model_preset("  gpt-4.1  ").name == "gpt-4.1"

    @pytest.mark.parametrize("alias,expected", [
        ("sonnet", "claude-3.5-sonnet"),
        ("opus", "claude-3.5-opus"),
        ("haiku", "claude-3.5-haiku"),
        ("claude", "claude-3.5-sonnet"),
        ("gpt5", "gpt-5.1"),
        ("gpt4", "gpt-4.1"),
        ("o3", "gpt-o3"),
        ("gemini", "gemini-1.5-pro"),
        ("Flash", "gemini-2.0-flash"),
    ])
    def test_aliases(self, catalog, alias, expected):
        assert catalog.lookup_model_preset(alias).name == expected

    def test_unknown_preset(self, catalog):
        assert catalog.lookup_model_preset("unknown-model") is None
        assert catalog.lookup_model_preset("") is None

    def test_alias_to_unknown_preset_rejected(self):
        with pytest.raises(ValueError):
            PricingCatalog([], [], aliases={"fast": "missing"})

    def test_effective_budget(self, catalog):
        assert calculate_effective_budget(catalog.lookup_model_preset("sonnet")) == 150_000
        assert catalog.lookup_model_preset("gpt-5.1-thinking").effective_budget == 166_400
        assert catalog.lookup_model_preset("haiku").effective_budget == 160_000

    def test_presets_by_family(self, catalog):
        grouped = catalog.presets_by_family()
        assert set(grouped) == {"openai", "anthropic", "google"}
        assert len(grouped["anthropic"]) == 3
        assert len(grouped["openai"]) == 5


class TestPresetCost:
    """Test cases for preset cost and warnings."""

    @pytest.fixture
    def sonnet(self, catalog):
        return catalog.lookup_model_preset("sonnet")

    def test_safe(self, sonnet):
        cost = calculate_preset_cost(100_000, sonnet)
        assert cost.warning_level is WarningLevel.SAFE
        assert cost.within_budget is True
        assert cost.input_cost == pytest.approx(0.3)
        assert cost.utilization_percent == pytest.approx(66.6667, rel=1e-4)
        assert cost.effective_budget == 150_000

    def test_safe_boundary(self, sonnet):
        assert calculate_preset_cost(120_000, sonnet).warning_level is WarningLevel.SAFE

    def test_caution(self, sonnet):
        cost = calculate_preset_cost(130_000, sonnet)
        assert cost.warning_level is WarningLevel.CAUTION
        assert cost.within_budget is True

    def test_danger(self, sonnet):
        cost = calculate_preset_cost(160_000, sonnet)
        assert cost.warning_level is WarningLevel.DANGER
        assert cost.within_budget is False

    def test_measured_against_effective_budget(self):
        preset = ModelPreset("tiny", "Tiny", 1000, 0.5, 1.0, 2.0)
        assert calculate_preset_cost(500, preset).utilization_percent == 100

    def test_warnings(self, sonnet):
        assert model_warnings(1000, sonnet) == []
        assert "hard limit" in model_warnings(250_000, sonnet)[0]

        over_safe = model_warnings(160_000, sonnet)
        assert "safe budget (150K)" in over_safe[0]
        assert "--strip-comments" in over_safe[1]

        assert model_warnings(140_000, sonnet) == [
            "High utilization (93%) - limited room for LLM response"
        ]
