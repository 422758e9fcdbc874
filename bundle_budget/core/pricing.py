"""Provider pricing catalog and cost calculations."""

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .exceptions import UnknownProviderError


TOKENS_PER_MILLION = 1_000_000

# Fraction of the effective budget below which a preset is considered safe
SAFE_UTILIZATION = 0.8

# Fraction of a context window treated as "approaching the limit"
HIGH_UTILIZATION = 0.9


@dataclass(frozen=True)
class ProviderPricing:
    """Pricing entry for an LLM provider."""
    name: str
    display_name: str
    context_window: int
    input_cost_per_million: float
    output_cost_per_million: float

    def input_cost(self, tokens: int) -> float:
        """Input cost in USD for a token count."""
        return tokens / TOKENS_PER_MILLION * self.input_cost_per_million


@dataclass(frozen=True)
class ModelPreset:
    """Model preset: pricing plus the fraction of the context safe to fill."""
    name: str
    display_name: str
    context_limit: int
    safety_margin: float
    input_cost_per_million: float
    output_cost_per_million: float
    description: str = ""
    family: str = "other"

    @property
    def effective_budget(self) -> int:
        """Tokens usable while leaving room for the model's response."""
        return math.floor(self.context_limit * self.safety_margin)

    @property
    def context_window(self) -> int:
        return self.context_limit

    def input_cost(self, tokens: int) -> float:
        return tokens / TOKENS_PER_MILLION * self.input_cost_per_million


class WarningLevel(Enum):
    """How close a token count comes to a preset's effective budget."""
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"


@dataclass(frozen=True)
class CostEstimate:
    """Cost of sending a token count to a provider."""
    provider: str
    display_name: str
    tokens: int
    input_cost: float
    within_context_window: bool
    context_window: int
    utilization_percent: float


@dataclass(frozen=True)
class PresetCost:
    """Cost of a token count measured against a preset's effective budget."""
    input_cost: float
    within_budget: bool
    utilization_percent: float
    warning_level: WarningLevel
    effective_budget: int


def calculate_effective_budget(preset: ModelPreset) -> int:
    """Effective token budget of a model preset."""
    return preset.effective_budget


def calculate_preset_cost(tokens: int, preset: ModelPreset) -> PresetCost:
    """
    Calculate cost and fit of a token count against a model preset.

    Args:
        tokens: Token count
        preset: Model preset

    Returns:
        PresetCost with warning level safe (<=80% of the effective budget),
        caution (<=100%) or danger (>100%)
    """
    effective_budget = preset.effective_budget
    utilization_percent = tokens / effective_budget * 100 if effective_budget > 0 else 0.0

    if tokens <= effective_budget * SAFE_UTILIZATION:
        warning_level = WarningLevel.SAFE
    elif tokens <= effective_budget:
        warning_level = WarningLevel.CAUTION
    else:
        warning_level = WarningLevel.DANGER

    return PresetCost(
        input_cost=preset.input_cost(tokens),
        within_budget=tokens <= effective_budget,
        utilization_percent=utilization_percent,
        warning_level=warning_level,
        effective_budget=effective_budget,
    )


def model_warnings(tokens: int, preset: ModelPreset) -> List[str]:
    """Human-readable warnings for a token count against a model preset."""
    warnings = []
    effective_budget = preset.effective_budget
    utilization_percent = tokens / effective_budget * 100 if effective_budget > 0 else 0.0

    if tokens > preset.context_limit:
        warnings.append(
            f"Exceeds {preset.display_name} hard limit ({_format_token_count(preset.context_limit)})"
        )
    elif tokens > effective_budget:
        warnings.append(
            f"Exceeds {preset.display_name} safe budget ({_format_token_count(effective_budget)})"
        )
        warnings.append("Consider reducing file selection or using --strip-comments")
    elif utilization_percent > HIGH_UTILIZATION * 100:
        warnings.append(
            f"High utilization ({utilization_percent:.0f}%) - limited room for LLM response"
        )

    return warnings


class PricingCatalog:
    """Read-only catalog of provider pricing entries and model presets.

    Built once at startup from configuration and passed to the components
    that need it. Lookups are case-insensitive.
    """

    def __init__(self,
                 providers: Iterable[ProviderPricing],
                 presets: Iterable[ModelPreset] = (),
                 aliases: Optional[Mapping[str, str]] = None):
        """
        Initialize the catalog.

        Args:
            providers: Provider pricing entries
            presets: Model presets
            aliases: Informal preset names mapped to canonical preset keys
        """
        self._providers: Mapping[str, ProviderPricing] = MappingProxyType(
            {_normalize(p.name): p for p in providers}
        )
        self._presets: Mapping[str, ModelPreset] = MappingProxyType(
            {_normalize(p.name): p for p in presets}
        )
        self._aliases: Mapping[str, str] = MappingProxyType(
            {_normalize(alias): _normalize(target) for alias, target in (aliases or {}).items()}
        )

        for alias, target in self._aliases.items():
            if target not in self._presets:
                raise ValueError(f"Alias '{alias}' points to unknown preset '{target}'")

    @property
    def providers(self) -> Mapping[str, ProviderPricing]:
        return self._providers

    @property
    def presets(self) -> Mapping[str, ModelPreset]:
        return self._presets

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def provider_names(self) -> List[str]:
        return [provider.name for provider in self._providers.values()]

    def lookup_provider(self, name: Optional[str]) -> Optional[ProviderPricing]:
        """Find a provider by name, or None."""
        if not name:
            return None
        return self._providers.get(_normalize(name))

    def require_provider(self, name: str) -> ProviderPricing:
        """Find a provider by name or raise UnknownProviderError."""
        provider = self.lookup_provider(name)
        if provider is None:
            raise UnknownProviderError(name, self.provider_names())
        return provider

    def lookup_model_preset(self, name: Optional[str]) -> Optional[ModelPreset]:
        """Find a model preset by canonical name or alias, or None."""
        if not name:
            return None
        key = _normalize(name)
        preset = self._presets.get(key)
        if preset is not None:
            return preset
        alias_target = self._aliases.get(key)
        if alias_target is not None:
            return self._presets.get(alias_target)
        return None

    def calculate_cost(self, tokens: int, provider_name: str) -> Optional[CostEstimate]:
        """
        Calculate the input cost of a token count for a provider.

        Args:
            tokens: Token count
            provider_name: Provider name

        Returns:
            CostEstimate, or None if the provider is unknown
        """
        provider = self.lookup_provider(provider_name)
        if provider is None:
            return None

        return CostEstimate(
            provider=provider.name,
            display_name=provider.display_name,
            tokens=tokens,
            input_cost=provider.input_cost(tokens),
            within_context_window=tokens <= provider.context_window,
            context_window=provider.context_window,
            utilization_percent=tokens / provider.context_window * 100,
        )

    def all_cost_estimates(self, tokens: int) -> List[CostEstimate]:
        """Cost estimates for every provider, in catalog order."""
        return [self.calculate_cost(tokens, name) for name in self.provider_names()]

    def calculate_preset_cost(self, tokens: int, preset: ModelPreset) -> PresetCost:
        return calculate_preset_cost(tokens, preset)

    def list_model_presets(self) -> List[ModelPreset]:
        return list(self._presets.values())

    def presets_by_family(self) -> Dict[str, List[ModelPreset]]:
        """Model presets grouped by family, preserving catalog order."""
        grouped: Dict[str, List[ModelPreset]] = {}
        for preset in self._presets.values():
            grouped.setdefault(preset.family, []).append(preset)
        return grouped


def _normalize(name: str) -> str:
    return name.strip().lower()


def _format_token_count(tokens: int) -> str:
    if tokens >= 1_000_000:
        return f"{tokens / 1_000_000:.1f}M"
    if tokens >= 1000:
        return f"{tokens / 1000:.0f}K"
    return str(tokens)
