"""Configuration settings for the token economics engine."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..core.budget import EUR_TO_USD_RATE
from ..core.budget_selector import MARKDOWN_OVERHEAD_FACTOR
from ..core.estimator import (
    CHARS_PER_TOKEN,
    DEFAULT_EXTENSION_MULTIPLIERS,
    LARGE_CONTENT_THRESHOLD,
    TokenEstimator,
)
from ..core.exceptions import ConfigError
from ..core.pricing import ModelPreset, PricingCatalog, ProviderPricing


ENV_CONFIG_PATH = "BUNDLE_BUDGET_CONFIG"
ENV_EUR_USD_RATE = "BUNDLE_BUDGET_EUR_USD_RATE"
ENV_MARKDOWN_OVERHEAD = "BUNDLE_BUDGET_MARKDOWN_OVERHEAD"

PRESET_FAMILIES = ("openai", "anthropic", "google", "other")


@dataclass
class EstimationConfig:
    """Token estimation calibration."""
    chars_per_token: float = CHARS_PER_TOKEN
    markdown_overhead: float = MARKDOWN_OVERHEAD_FACTOR
    large_content_threshold: int = LARGE_CONTENT_THRESHOLD
    extension_multipliers: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_EXTENSION_MULTIPLIERS)
    )

    def build_estimator(self) -> TokenEstimator:
        return TokenEstimator(
            chars_per_token=self.chars_per_token,
            extension_multipliers=self.extension_multipliers,
            large_content_threshold=self.large_content_threshold,
        )


@dataclass
class BudgetSettings:
    """Main configuration: estimation calibration, exchange rate and pricing."""
    estimation: EstimationConfig
    providers: Dict[str, ProviderPricing]
    model_presets: Dict[str, ModelPreset]
    preset_aliases: Dict[str, str] = field(default_factory=dict)
    eur_to_usd_rate: float = EUR_TO_USD_RATE
    default_provider: Optional[str] = None

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'BudgetSettings':
        """Create configuration from dictionary."""
        config_dict = config_dict or {}

        estimation_data = config_dict.get('estimation', {}) or {}
        estimation = EstimationConfig(
            chars_per_token=float(estimation_data.get('chars_per_token', CHARS_PER_TOKEN)),
            markdown_overhead=float(estimation_data.get('markdown_overhead', MARKDOWN_OVERHEAD_FACTOR)),
            large_content_threshold=int(estimation_data.get('large_content_threshold', LARGE_CONTENT_THRESHOLD)),
            extension_multipliers=dict(
                estimation_data.get('extension_multipliers', DEFAULT_EXTENSION_MULTIPLIERS)
            ),
        )

        try:
            providers = {}
            for name, data in (config_dict.get('providers', {}) or {}).items():
                providers[name] = ProviderPricing(
                    name=name,
                    display_name=data.get('display_name', name),
                    context_window=int(data['context_window']),
                    input_cost_per_million=float(data['input_cost_per_million']),
                    output_cost_per_million=float(data.get('output_cost_per_million', 0.0)),
                )

            presets = {}
            for name, data in (config_dict.get('model_presets', {}) or {}).items():
                presets[name] = ModelPreset(
                    name=name,
                    display_name=data.get('display_name', name),
                    context_limit=int(data['context_limit']),
                    safety_margin=float(data['safety_margin']),
                    input_cost_per_million=float(data['input_cost_per_million']),
                    output_cost_per_million=float(data.get('output_cost_per_million', 0.0)),
                    description=data.get('description', ''),
                    family=data.get('family', 'other'),
                )
        except KeyError as exc:
            raise ConfigError(f"Missing required pricing field: {exc.args[0]}") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid pricing value: {exc}") from exc

        return cls(
            estimation=estimation,
            providers=providers,
            model_presets=presets,
            preset_aliases=dict(config_dict.get('preset_aliases', {}) or {}),
            eur_to_usd_rate=float(config_dict.get('eur_to_usd_rate', EUR_TO_USD_RATE)),
            default_provider=config_dict.get('default_provider'),
        )

    @classmethod
    def from_yaml(cls, file_path: str) -> 'BudgetSettings':
        """Load configuration from YAML file."""
        with open(file_path, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f)
        return cls.from_dict(config_dict)

    @classmethod
    def from_json(cls, file_path: str) -> 'BudgetSettings':
        """Load configuration from JSON file."""
        with open(file_path, 'r', encoding='utf-8') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'estimation': {
                'chars_per_token': self.estimation.chars_per_token,
                'markdown_overhead': self.estimation.markdown_overhead,
                'large_content_threshold': self.estimation.large_content_threshold,
                'extension_multipliers': dict(self.estimation.extension_multipliers),
            },
            'eur_to_usd_rate': self.eur_to_usd_rate,
            'default_provider': self.default_provider,
            'providers': {
                name: {
                    'display_name': provider.display_name,
                    'context_window': provider.context_window,
                    'input_cost_per_million': provider.input_cost_per_million,
                    'output_cost_per_million': provider.output_cost_per_million,
                }
                for name, provider in self.providers.items()
            },
            'model_presets': {
                name: {
                    'display_name': preset.display_name,
                    'context_limit': preset.context_limit,
                    'safety_margin': preset.safety_margin,
                    'input_cost_per_million': preset.input_cost_per_million,
                    'output_cost_per_million': preset.output_cost_per_million,
                    'description': preset.description,
                    'family': preset.family,
                }
                for name, preset in self.model_presets.items()
            },
            'preset_aliases': dict(self.preset_aliases),
        }

    def save_yaml(self, file_path: str):
        """Save configuration to YAML file."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def save_json(self, file_path: str):
        """Save configuration to JSON file."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of issues.

        Returns:
            List of validation issues (empty if valid)
        """
        issues = []

        if self.estimation.chars_per_token <= 0:
            issues.append("chars_per_token must be positive")

        if self.estimation.markdown_overhead < 1.0:
            issues.append("markdown_overhead must be at least 1.0")

        for ext, factor in self.estimation.extension_multipliers.items():
            if factor <= 0:
                issues.append(f"Extension '{ext}': multiplier must be positive")

        if self.eur_to_usd_rate <= 0:
            issues.append("eur_to_usd_rate must be positive")

        if not self.providers:
            issues.append("No providers configured")

        for name, provider in self.providers.items():
            if provider.context_window <= 0:
                issues.append(f"Provider '{name}': context_window must be positive")
            if provider.input_cost_per_million < 0:
                issues.append(f"Provider '{name}': input cost must be non-negative")

        for name, preset in self.model_presets.items():
            if preset.context_limit <= 0:
                issues.append(f"Preset '{name}': context_limit must be positive")
            if not 0 < preset.safety_margin <= 1:
                issues.append(f"Preset '{name}': safety_margin must be in (0, 1]")
            if preset.family not in PRESET_FAMILIES:
                issues.append(f"Preset '{name}': invalid family '{preset.family}'")

        preset_keys = {name.lower() for name in self.model_presets}
        for alias, target in self.preset_aliases.items():
            if target.lower() not in preset_keys:
                issues.append(f"Alias '{alias}': unknown preset '{target}'")

        if self.default_provider and self.default_provider.lower() not in {n.lower() for n in self.providers}:
            issues.append(f"Unknown default provider '{self.default_provider}'")

        return issues

    def build_catalog(self) -> PricingCatalog:
        """Build the read-only pricing catalog described by this configuration."""
        issues = self.validate()
        if issues:
            raise ConfigError("Invalid configuration: " + "; ".join(issues))
        return PricingCatalog(
            providers=self.providers.values(),
            presets=self.model_presets.values(),
            aliases=self.preset_aliases,
        )


def apply_env_overrides(settings: BudgetSettings, environ: Optional[Mapping[str, str]] = None) -> BudgetSettings:
    """
    Apply numeric overrides from environment variables in place.

    Args:
        settings: Settings to update
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        The same settings object
    """
    environ = os.environ if environ is None else environ

    rate = _env_float(environ, ENV_EUR_USD_RATE)
    if rate is not None:
        settings.eur_to_usd_rate = rate

    overhead = _env_float(environ, ENV_MARKDOWN_OVERHEAD)
    if overhead is not None:
        settings.estimation.markdown_overhead = overhead

    return settings


def _env_float(environ: Mapping[str, str], key: str) -> Optional[float]:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got '{raw}'") from exc


def load_settings(file_path: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None) -> BudgetSettings:
    """
    Load settings from a file (or the defaults) and apply environment overrides.

    The file path falls back to the ``BUNDLE_BUDGET_CONFIG`` environment
    variable. ``.json`` files are read as JSON, anything else as YAML. Values
    missing from the file keep their defaults, and a file that defines no
    providers keeps the built-in pricing tables.

    Raises:
        ConfigError: The file is missing or holds invalid values
    """
    environ = os.environ if environ is None else environ
    file_path = file_path or environ.get(ENV_CONFIG_PATH)

    if file_path:
        path = Path(file_path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {file_path}")
        try:
            if path.suffix.lower() == '.json':
                with open(path, 'r', encoding='utf-8') as f:
                    overrides = json.load(f)
            else:
                with open(path, 'r', encoding='utf-8') as f:
                    overrides = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Could not parse {file_path}: {exc}") from exc
        if overrides is not None and not isinstance(overrides, dict):
            raise ConfigError(f"{file_path} must contain a mapping")
        settings = BudgetSettings.from_dict(_merge_defaults(overrides or {}))
    else:
        settings = get_default_config()

    return apply_env_overrides(settings, environ)


def _merge_defaults(overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = get_default_config().to_dict()
    for key, value in overrides.items():
        if key == 'estimation' and isinstance(value, dict):
            merged['estimation'].update(value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> BudgetSettings:
    """Get default configuration with the built-in pricing tables."""
    return BudgetSettings.from_dict({
        'providers': {
            'claude-sonnet': {
                'display_name': 'Claude 3.5 Sonnet',
                'context_window': 200_000,
                'input_cost_per_million': 3.0,
                'output_cost_per_million': 15.0
            },
            'claude-opus': {
                'display_name': 'Claude 3 Opus',
                'context_window': 200_000,
                'input_cost_per_million': 15.0,
                'output_cost_per_million': 75.0
            },
            'claude-haiku': {
                'display_name': 'Claude 3.5 Haiku',
                'context_window': 200_000,
                'input_cost_per_million': 0.80,
                'output_cost_per_million': 4.0
            },
            'gpt-4o': {
                'display_name': 'GPT-4o',
                'context_window': 128_000,
                'input_cost_per_million': 2.50,
                'output_cost_per_million': 10.0
            },
            'gpt-4-turbo': {
                'display_name': 'GPT-4 Turbo',
                'context_window': 128_000,
                'input_cost_per_million': 10.0,
                'output_cost_per_million': 30.0
            },
            'gpt-4': {
                'display_name': 'GPT-4',
                'context_window': 8192,
                'input_cost_per_million': 30.0,
                'output_cost_per_million': 60.0
            },
            'o1': {
                'display_name': 'OpenAI o1',
                'context_window': 200_000,
                'input_cost_per_million': 15.0,
                'output_cost_per_million': 60.0
            },
            'gemini': {
                'display_name': 'Gemini 1.5 Pro',
                'context_window': 2_000_000,
                'input_cost_per_million': 1.25,
                'output_cost_per_million': 5.0
            }
        },
        'model_presets': {
            'gpt-5.1': {
                'display_name': 'GPT-5.1',
                'context_limit': 256_000,
                'safety_margin': 0.75,
                'input_cost_per_million': 5.0,
                'output_cost_per_million': 15.0,
                'description': 'Latest GPT model with 256K context',
                'family': 'openai'
            },
            'gpt-5.1-thinking': {
                'display_name': 'GPT-5.1 Thinking',
                'context_limit': 256_000,
                # lower margin for reasoning overhead
                'safety_margin': 0.65,
                'input_cost_per_million': 8.0,
                'output_cost_per_million': 24.0,
                'description': 'GPT-5.1 with extended reasoning capabilities',
                'family': 'openai'
            },
            'gpt-4.1': {
                'display_name': 'GPT-4.1',
                'context_limit': 128_000,
                'safety_margin': 0.75,
                'input_cost_per_million': 2.50,
                'output_cost_per_million': 10.0,
                'description': 'GPT-4.1 with 128K context',
                'family': 'openai'
            },
            'gpt-o3': {
                'display_name': 'GPT-o3',
                'context_limit': 200_000,
                'safety_margin': 0.70,
                'input_cost_per_million': 15.0,
                'output_cost_per_million': 60.0,
                'description': 'OpenAI o3 reasoning model',
                'family': 'openai'
            },
            'gpt-o3-mini': {
                'display_name': 'GPT-o3 Mini',
                'context_limit': 128_000,
                'safety_margin': 0.75,
                'input_cost_per_million': 3.0,
                'output_cost_per_million': 12.0,
                'description': 'Lightweight o3 reasoning model',
                'family': 'openai'
            },
            'claude-3.5-sonnet': {
                'display_name': 'Claude 3.5 Sonnet',
                'context_limit': 200_000,
                'safety_margin': 0.75,
                'input_cost_per_million': 3.0,
                'output_cost_per_million': 15.0,
                'description': 'Balanced performance and cost',
                'family': 'anthropic'
            },
            'claude-3.5-opus': {
                'display_name': 'Claude 3.5 Opus',
                'context_limit': 200_000,
                'safety_margin': 0.75,
                'input_cost_per_million': 15.0,
                'output_cost_per_million': 75.0,
                'description': 'Highest capability model',
                'family': 'anthropic'
            },
            'claude-3.5-haiku': {
                'display_name': 'Claude 3.5 Haiku',
                'context_limit': 200_000,
                'safety_margin': 0.80,
                'input_cost_per_million': 0.80,
                'output_cost_per_million': 4.0,
                'description': 'Fast and cost-effective',
                'family': 'anthropic'
            },
            'gemini-1.5-pro': {
                'display_name': 'Gemini 1.5 Pro',
                'context_limit': 2_000_000,
                'safety_margin': 0.80,
                'input_cost_per_million': 1.25,
                'output_cost_per_million': 5.0,
                'description': 'Massive 2M context window',
                'family': 'google'
            },
            'gemini-2.0-flash': {
                'display_name': 'Gemini 2.0 Flash',
                'context_limit': 1_000_000,
                'safety_margin': 0.85,
                'input_cost_per_million': 0.075,
                'output_cost_per_million': 0.30,
                'description': 'Fast and affordable with 1M context',
                'family': 'google'
            }
        },
        'preset_aliases': {
            'sonnet': 'claude-3.5-sonnet',
            'opus': 'claude-3.5-opus',
            'haiku': 'claude-3.5-haiku',
            'claude': 'claude-3.5-sonnet',
            'claude-sonnet': 'claude-3.5-sonnet',
            'claude-opus': 'claude-3.5-opus',
            'claude-haiku': 'claude-3.5-haiku',
            'gpt5': 'gpt-5.1',
            'gpt4': 'gpt-4.1',
            'o3': 'gpt-o3',
            'gemini': 'gemini-1.5-pro',
            'flash': 'gemini-2.0-flash'
        },
        'eur_to_usd_rate': EUR_TO_USD_RATE,
        'default_provider': None
    })


def get_default_catalog() -> PricingCatalog:
    """Pricing catalog built from the default configuration."""
    return get_default_config().build_catalog()
