"""Advisory token analysis for rendered bundle text."""

from dataclasses import dataclass, field
from typing import List, Optional

from .estimator import TokenEstimator
from .pricing import CostEstimate, HIGH_UTILIZATION, PricingCatalog


LARGE_OUTPUT_TOKENS = 100_000
MEDIUM_OUTPUT_TOKENS = 50_000


@dataclass(frozen=True)
class TokenAnalysisContext:
    """Which size-reducing options the user already applied."""
    profile_used: bool = False
    max_size_used: bool = False
    strip_comments_used: bool = False
    extension: Optional[str] = None


@dataclass
class TokenAnalysis:
    """Token estimate with per-provider costs and advisory messages."""
    estimated_tokens: int
    estimates: List[CostEstimate]
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def cheapest_fitting(self) -> Optional[CostEstimate]:
        fitting = [e for e in self.estimates if e.within_context_window]
        if not fitting:
            return None
        return min(fitting, key=lambda e: e.input_cost)


class TokenAnalyzer:
    """Estimates a text's token usage and produces warnings and recommendations.

    Warnings and recommendations are advisory only; they never change the
    numeric estimate.
    """

    def __init__(self, catalog: PricingCatalog, estimator: Optional[TokenEstimator] = None):
        self.catalog = catalog
        self.estimator = estimator or TokenEstimator()

    def analyze(self, text: str, context: Optional[TokenAnalysisContext] = None) -> TokenAnalysis:
        """
        Analyze text for token usage.

        Args:
            text: Rendered bundle text
            context: Options already in effect, used to avoid redundant advice

        Returns:
            TokenAnalysis
        """
        context = context or TokenAnalysisContext()
        estimated_tokens = self.estimator.estimate_text_tokens(text, context.extension)
        analysis = TokenAnalysis(
            estimated_tokens=estimated_tokens,
            estimates=self.catalog.all_cost_estimates(estimated_tokens),
        )

        self._add_context_warnings(analysis)
        self._add_size_recommendations(analysis, context)

        cheapest = analysis.cheapest_fitting()
        if cheapest is not None:
            analysis.recommendations.append(
                f"Most cost-effective: {cheapest.display_name} at ${cheapest.input_cost:.4f}"
            )

        return analysis

    def _add_context_warnings(self, analysis: TokenAnalysis):
        overflowing = [e for e in analysis.estimates if not e.within_context_window]
        if overflowing:
            names = ", ".join(e.display_name for e in overflowing)
            analysis.warnings.append(f"Output exceeds context window for: {names}")

        approaching = [
            e for e in analysis.estimates
            if e.within_context_window and e.utilization_percent >= HIGH_UTILIZATION * 100
        ]
        for estimate in approaching:
            analysis.warnings.append(
                f"Approaching {estimate.display_name} context limit "
                f"({estimate.utilization_percent:.0f}% of window)"
            )

    def _add_size_recommendations(self, analysis: TokenAnalysis, context: TokenAnalysisContext):
        tokens = analysis.estimated_tokens
        if tokens > LARGE_OUTPUT_TOKENS:
            if not context.profile_used:
                analysis.recommendations.append(
                    "Consider using --profile minimal or reducing file selection"
                )
            if not context.max_size_used:
                analysis.recommendations.append(
                    "Use --max-size flag to limit individual file sizes"
                )
            if not context.strip_comments_used:
                analysis.recommendations.append(
                    "Consider stripping comments with --strip-comments"
                )
        elif tokens > MEDIUM_OUTPUT_TOKENS:
            analysis.recommendations.append("Output is large but within most context windows")
            analysis.recommendations.append("Consider focusing on specific modules for better results")


def analyze_token_usage(text: str,
                        context: Optional[TokenAnalysisContext] = None,
                        catalog: Optional[PricingCatalog] = None) -> TokenAnalysis:
    """Analyze text against the given catalog, or the default one."""
    if catalog is None:
        from ..config.settings import get_default_catalog
        catalog = get_default_catalog()
    return TokenAnalyzer(catalog).analyze(text, context)
