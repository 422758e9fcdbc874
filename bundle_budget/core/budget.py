"""Budget values, budget expression parsing and currency conversion."""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union


# Fixed EUR to USD exchange rate used for cost estimation
EUR_TO_USD_RATE = 1.08

Number = Union[int, float]


class BudgetKind(Enum):
    """Unit a budget is denominated in."""
    TOKENS = "tokens"
    USD = "usd"
    EUR = "eur"

    @property
    def is_cost(self) -> bool:
        return self is not BudgetKind.TOKENS


@dataclass(frozen=True)
class Budget:
    """A token or cost ceiling for file selection.

    Cost budgets (USD/EUR) need a provider at selection time to turn money
    into tokens; the provider may be carried here or supplied to the selector.
    """
    kind: BudgetKind
    limit: Number
    provider: Optional[str] = None

    @classmethod
    def tokens(cls, limit: int, provider: Optional[str] = None) -> 'Budget':
        return cls(BudgetKind.TOKENS, limit, provider)

    @classmethod
    def usd(cls, limit: float, provider: Optional[str] = None) -> 'Budget':
        return cls(BudgetKind.USD, limit, provider)

    @classmethod
    def eur(cls, limit: float, provider: Optional[str] = None) -> 'Budget':
        return cls(BudgetKind.EUR, limit, provider)

    @property
    def is_cost_based(self) -> bool:
        return self.kind.is_cost

    def with_provider(self, provider: Optional[str]) -> 'Budget':
        """Copy of this budget bound to another provider."""
        return Budget(self.kind, self.limit, provider)

    def validate(self) -> List[str]:
        """
        Validate the budget and return a list of issues.

        Returns:
            List of validation issues (empty if valid)
        """
        issues = []
        if not math.isfinite(self.limit):
            issues.append(f"Budget limit must be finite, got {self.limit}")
            return issues
        if self.limit <= 0:
            issues.append(f"Budget limit must be positive, got {self.limit}")
        if self.kind is BudgetKind.TOKENS and int(self.limit) != self.limit:
            issues.append(f"Token budget must be a whole number, got {self.limit}")
        return issues


def eur_to_usd(eur: float, rate: float = EUR_TO_USD_RATE) -> float:
    """Convert EUR to USD at the fixed rate."""
    return eur * rate


def usd_to_eur(usd: float, rate: float = EUR_TO_USD_RATE) -> float:
    """Convert USD to EUR at the fixed rate."""
    return usd / rate


_NUMBER = r"(\d+(?:\.\d*)?|\.\d+)"
_EUR_PATTERN = re.compile(rf"^(?:€\s*{_NUMBER}|{_NUMBER}\s*(?:€|eur))$")
_USD_PATTERN = re.compile(rf"^(?:\$\s*{_NUMBER}|{_NUMBER}\s*(?:\$|usd))$")
_TOKEN_PATTERN = re.compile(rf"^{_NUMBER}\s*([km])?$")

_TOKEN_SUFFIXES = {
    None: 1,
    "k": 1_000,
    "m": 1_000_000,
}


def parse_budget_string(text: str) -> Optional[Budget]:
    """
    Parse a budget expression such as ``50k``, ``$0.50`` or ``€0.03``.

    Accepted forms (case-insensitive, surrounding whitespace ignored):
    ``€x`` or ``x eur`` for euros, ``$x`` or ``x usd`` for dollars, ``Nk``,
    ``Nm`` or a bare number for tokens.

    Args:
        text: Budget expression

    Returns:
        Parsed Budget, or None if the expression is not understood, not a
        positive finite amount, or names a fractional token count
    """
    if not isinstance(text, str):
        return None
    normalized = text.strip().lower()
    if not normalized:
        return None

    match = _EUR_PATTERN.match(normalized)
    if match:
        return _cost_budget(BudgetKind.EUR, match.group(1) or match.group(2))

    match = _USD_PATTERN.match(normalized)
    if match:
        return _cost_budget(BudgetKind.USD, match.group(1) or match.group(2))

    match = _TOKEN_PATTERN.match(normalized)
    if match:
        value = float(match.group(1)) * _TOKEN_SUFFIXES[match.group(2)]
        if value <= 0 or not math.isfinite(value):
            return None
        rounded = round(value)
        # "1.5k" is fine, "1.2345k" is not a whole number of tokens
        if abs(value - rounded) > 1e-9:
            return None
        return Budget.tokens(int(rounded))

    return None


def _cost_budget(kind: BudgetKind, amount: str) -> Optional[Budget]:
    value = float(amount)
    if value <= 0 or not math.isfinite(value):
        return None
    return Budget(kind, value)


def suggest_budget_formats() -> List[str]:
    """Example budget expressions for help and error messages."""
    return [
        "50000 (tokens)",
        "50k (thousand tokens)",
        "1m (million tokens)",
        "$0.50 or 0.50usd (US dollars)",
        "€0.30 or 0.30eur (euros)",
    ]
