"""Budget selector: first-fit file selection under a token or cost ceiling."""

import inspect
import logging
import math
import os
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .budget import Budget, BudgetKind, EUR_TO_USD_RATE, Number
from .estimator import TokenEstimator, normalize_extension
from .exceptions import BudgetError, ProviderRequiredError
from .pricing import PricingCatalog, ProviderPricing, TOKENS_PER_MILLION

if TYPE_CHECKING:
    from ..config.settings import BudgetSettings


logger = logging.getLogger(__name__)

# Accounts for the heading and code fence the renderer wraps around each file
MARKDOWN_OVERHEAD_FACTOR = 1.08

_COMPOUND_EXTENSIONS = ("min.js", "min.css")


@dataclass(frozen=True)
class CandidateFile:
    """A file eligible for bundling. Only size and extension are needed."""
    path: str
    size_bytes: int
    extension: str = ""

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike], display_path: Optional[str] = None) -> 'CandidateFile':
        """
        Build a candidate from a file on disk. Reads file metadata only.

        Args:
            path: Path to the file
            display_path: Path to report instead of ``path``

        Returns:
            CandidateFile with size and normalized extension
        """
        file_path = Path(path)
        return cls(
            path=display_path or str(file_path),
            size_bytes=file_path.stat().st_size,
            extension=extension_for(file_path.name),
        )


def extension_for(filename: str) -> str:
    """Normalized extension of a filename, keeping ``min.js``-style compounds."""
    name = filename.lower()
    for compound in _COMPOUND_EXTENSIONS:
        if name.endswith("." + compound):
            return compound
    return normalize_extension(os.path.splitext(name)[1])


# Reorders (or filters) candidates before first-fit selection
FileOrder = Callable[[Sequence[CandidateFile]], Sequence[CandidateFile]]
AsyncFileOrder = Callable[
    [Sequence[CandidateFile]],
    Union[Sequence[CandidateFile], Awaitable[Sequence[CandidateFile]]],
]


def input_order(files: Sequence[CandidateFile]) -> List[CandidateFile]:
    """Keep candidates in the order given."""
    return list(files)


def size_descending(files: Sequence[CandidateFile]) -> List[CandidateFile]:
    """Largest files first; equal sizes keep their input order."""
    return sorted(files, key=lambda f: f.size_bytes, reverse=True)


def extension_priority(priorities: Iterable[str]) -> FileOrder:
    """
    Build an ordering that puts the given extensions first.

    Files are ranked by the position of their extension in ``priorities``;
    files with other extensions come last. Within a rank, larger files come
    first.

    Args:
        priorities: Extensions in order of preference, e.g. ``["ts", "md"]``

    Returns:
        Ordering function for :meth:`BudgetSelector.select_files`
    """
    ranks = {}
    for extension in priorities:
        ranks.setdefault(normalize_extension(extension), len(ranks))

    def order(files: Sequence[CandidateFile]) -> List[CandidateFile]:
        return sorted(
            files,
            key=lambda f: (ranks.get(normalize_extension(f.extension), len(ranks)), -f.size_bytes),
        )

    return order


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of selecting files within a budget.

    Percentages and amounts are unrounded; formatting happens at display time.
    ``total_cost`` is in the budget's currency. For token budgets it is the USD
    input cost when a provider is known, otherwise None.
    """
    selected_files: Tuple[CandidateFile, ...]
    excluded_files: Tuple[CandidateFile, ...]
    total_tokens: int
    total_cost: Optional[float]
    budget_type: BudgetKind
    budget_limit: Number
    budget_used: float
    budget_remaining: float
    utilization_percent: float
    token_ceiling: int
    provider: Optional[str] = None


class BudgetSelector:
    """Selects the files that fit a token, USD or EUR budget.

    Selection is first-fit: each file is kept if it fits the remaining
    ceiling, otherwise skipped, and the scan always continues. Files are
    scanned in input order unless an ordering such as :func:`size_descending`
    or :func:`extension_priority` is supplied.
    """

    def __init__(self,
                 catalog: PricingCatalog,
                 estimator: Optional[TokenEstimator] = None,
                 markdown_overhead: float = MARKDOWN_OVERHEAD_FACTOR,
                 eur_to_usd_rate: float = EUR_TO_USD_RATE):
        """
        Initialize the selector.

        Args:
            catalog: Pricing catalog used for cost conversion
            estimator: Token estimator (default calibration if omitted)
            markdown_overhead: Multiplier for per-file rendering overhead
            eur_to_usd_rate: Fixed EUR to USD exchange rate
        """
        if markdown_overhead < 1.0:
            raise ValueError("markdown_overhead must be at least 1.0")
        if eur_to_usd_rate <= 0:
            raise ValueError("eur_to_usd_rate must be positive")
        self.catalog = catalog
        self.estimator = estimator or TokenEstimator()
        self.markdown_overhead = markdown_overhead
        self.eur_to_usd_rate = eur_to_usd_rate

    @classmethod
    def from_settings(cls, settings: 'BudgetSettings') -> 'BudgetSelector':
        """Build a selector (and its catalog) from BudgetSettings."""
        return cls(
            catalog=settings.build_catalog(),
            estimator=settings.estimation.build_estimator(),
            markdown_overhead=settings.estimation.markdown_overhead,
            eur_to_usd_rate=settings.eur_to_usd_rate,
        )

    def estimate_file_tokens(self, file: CandidateFile) -> int:
        """Estimated tokens for a file once rendered into the bundle, rounded up."""
        base = self.estimator.estimate_tokens(file.size_bytes, file.extension)
        rendered = Decimal(base) * Decimal(str(self.markdown_overhead))
        return int(rendered.to_integral_value(rounding=ROUND_CEILING))

    def resolve_provider(self, budget: Budget, provider: Optional[str] = None) -> Optional[ProviderPricing]:
        """
        Resolve the provider used for cost conversion.

        Args:
            budget: Budget being applied
            provider: Provider name overriding ``budget.provider``

        Returns:
            Provider entry, or None for a token budget without a known provider

        Raises:
            ProviderRequiredError: Cost budget with no provider name
            UnknownProviderError: Cost budget naming an unknown provider
        """
        name = provider or budget.provider
        if budget.kind is BudgetKind.TOKENS:
            if not name:
                return None
            pricing = self.catalog.lookup_provider(name)
            if pricing is None:
                logger.warning("Unknown provider '%s'; cost reporting disabled", name)
            return pricing

        if not name:
            raise ProviderRequiredError(budget.kind.value)
        return self.catalog.require_provider(name)

    def resolve_token_ceiling(self, budget: Budget, provider: Optional[str] = None) -> int:
        """
        Convert a budget into a whole-token ceiling.

        Cost budgets are converted with decimal arithmetic so that amounts such
        as ``€0.03`` map onto exact token counts.

        Raises:
            ProviderRequiredError: Cost budget with no provider name
            UnknownProviderError: Cost budget naming an unknown provider
            BudgetError: Provider has no input cost
        """
        pricing = self.resolve_provider(budget, provider)
        return self._token_ceiling(budget, pricing)

    def _token_ceiling(self, budget: Budget, pricing: Optional[ProviderPricing]) -> int:
        if not math.isfinite(budget.limit):
            raise BudgetError(f"Budget limit must be finite, got {budget.limit}")

        if budget.kind is BudgetKind.TOKENS:
            return int(budget.limit)

        if budget.kind is BudgetKind.USD:
            usd = Decimal(str(budget.limit))
        elif budget.kind is BudgetKind.EUR:
            usd = Decimal(str(budget.limit)) * Decimal(str(self.eur_to_usd_rate))
        else:
            raise BudgetError(f"Unsupported budget kind: {budget.kind}")

        rate = Decimal(str(pricing.input_cost_per_million))
        if rate <= 0:
            raise BudgetError(
                f"Provider '{pricing.name}' has no input cost; a {budget.kind.value} budget cannot be applied"
            )
        ceiling = (usd / rate * TOKENS_PER_MILLION).to_integral_value(rounding=ROUND_FLOOR)
        logger.debug("Resolved %s %s budget to %s tokens via %s",
                     budget.limit, budget.kind.value, ceiling, pricing.name)
        return int(ceiling)

    def to_budget_currency(self, tokens: int, budget: Budget, pricing: Optional[ProviderPricing]) -> Optional[float]:
        """Cost of a token count in the budget's currency (USD for token budgets)."""
        if pricing is None:
            return None
        usd = pricing.input_cost(tokens)
        if budget.kind is BudgetKind.EUR:
            return usd / self.eur_to_usd_rate
        return usd

    def select_files(self,
                     files: Sequence[CandidateFile],
                     budget: Budget,
                     provider: Optional[str] = None,
                     order: FileOrder = input_order) -> SelectionResult:
        """
        Select the files that fit within a budget.

        Files are considered in the sequence returned by ``order``, which by
        default keeps the input order.

        Args:
            files: Candidate files
            budget: Token, USD or EUR budget
            provider: Provider name overriding ``budget.provider``
            order: Ordering applied to ``files`` before selection

        Returns:
            SelectionResult with selected and excluded files and usage figures

        Raises:
            ProviderRequiredError: Cost budget with no provider name
            UnknownProviderError: Cost budget naming an unknown provider
            BudgetError: Non-finite limit, or a provider with no input cost
        """
        pricing = self.resolve_provider(budget, provider)
        ceiling = self._token_ceiling(budget, pricing)

        selected: List[CandidateFile] = []
        excluded: List[CandidateFile] = []
        running_total = 0

        for file in order(files):
            file_tokens = self.estimate_file_tokens(file)
            if running_total + file_tokens <= ceiling:
                selected.append(file)
                running_total += file_tokens
            else:
                logger.debug("Excluding %s (%d tokens, %d of %d used)",
                             file.path, file_tokens, running_total, ceiling)
                excluded.append(file)

        total_cost = self.to_budget_currency(running_total, budget, pricing)
        if budget.kind is BudgetKind.TOKENS:
            budget_used = float(running_total)
        else:
            budget_used = total_cost

        limit = budget.limit
        utilization_percent = budget_used / limit * 100 if limit > 0 else 0.0

        result = SelectionResult(
            selected_files=tuple(selected),
            excluded_files=tuple(excluded),
            total_tokens=running_total,
            total_cost=total_cost,
            budget_type=budget.kind,
            budget_limit=limit,
            budget_used=budget_used,
            budget_remaining=max(0.0, limit - budget_used),
            utilization_percent=utilization_percent,
            token_ceiling=ceiling,
            provider=pricing.name if pricing else None,
        )
        logger.info("Selected %d of %d files (%d tokens, %.1f%% of %s budget)",
                    len(selected), len(selected) + len(excluded), running_total,
                    utilization_percent, budget.kind.value)
        return result

    async def select_files_within_budget(self,
                                         files: Union[Sequence[CandidateFile], Awaitable[Sequence[CandidateFile]]],
                                         budget: Budget,
                                         provider: Optional[str] = None,
                                         order: AsyncFileOrder = input_order) -> SelectionResult:
        """
        Asynchronous form of :meth:`select_files`.

        ``files`` may be an awaitable producing the list, and ``order`` may be
        a coroutine function, for callers whose file scan or ranking is itself
        asynchronous. The selection is synchronous.
        """
        if inspect.isawaitable(files):
            files = await files
        ordered = order(list(files))
        if inspect.isawaitable(ordered):
            ordered = await ordered
        return self.select_files(ordered, budget, provider)
