"""Exceptions raised by the token economics engine."""

from typing import Iterable, Optional


class BudgetError(ValueError):
    """Base class for budget and pricing usage errors."""


class ProviderRequiredError(BudgetError):
    """A cost-denominated budget was used without a provider."""

    def __init__(self, budget_kind: str):
        self.budget_kind = budget_kind
        super().__init__(
            f"Provider required: a {budget_kind} budget needs a provider "
            f"to convert cost into tokens"
        )


class UnknownProviderError(BudgetError):
    """The named provider is not in the pricing catalog."""

    def __init__(self, name: str, available: Optional[Iterable[str]] = None):
        self.name = name
        self.available = sorted(available or [])
        message = f"Unknown provider '{name}'"
        if self.available:
            message += f". Available providers are: {', '.join(self.available)}"
        super().__init__(message)


class ConfigError(ValueError):
    """Configuration could not be loaded or is invalid."""
