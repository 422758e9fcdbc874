"""
bundle-budget: token economics for LLM context bundles.

This package estimates how many tokens a set of source files will consume,
prices them against provider pricing tables, and selects the files that fit a
token, USD or EUR budget.
"""

__version__ = "0.1.0"
__author__ = "bundle-budget Team"

from .core.budget import Budget, BudgetKind, parse_budget_string, eur_to_usd, usd_to_eur
from .core.budget_selector import (
    BudgetSelector,
    CandidateFile,
    SelectionResult,
    extension_priority,
    input_order,
    size_descending,
)
from .core.estimator import TokenEstimator, estimate_tokens
from .core.exceptions import BudgetError, ProviderRequiredError, UnknownProviderError
from .core.pricing import PricingCatalog, ProviderPricing, ModelPreset
from .core.token_analysis import TokenAnalyzer, analyze_token_usage
from .core.tokenizer_service import TokenizerService
from .config.settings import BudgetSettings, load_settings

__all__ = [
    "Budget",
    "BudgetKind",
    "BudgetSelector",
    "CandidateFile",
    "SelectionResult",
    "input_order",
    "size_descending",
    "extension_priority",
    "TokenEstimator",
    "PricingCatalog",
    "ProviderPricing",
    "ModelPreset",
    "TokenAnalyzer",
    "TokenizerService",
    "BudgetSettings",
    "BudgetError",
    "ProviderRequiredError",
    "UnknownProviderError",
    "parse_budget_string",
    "eur_to_usd",
    "usd_to_eur",
    "estimate_tokens",
    "analyze_token_usage",
    "load_settings",
]
