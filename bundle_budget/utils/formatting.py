"""
Display formatting for budgets, cost estimates and selection results.

All rounding for display happens here; the core keeps unrounded values.
"""

from typing import Any, Dict, Iterable, List

from ..core.budget import Budget, BudgetKind, Number
from ..core.budget_selector import SelectionResult
from ..core.pricing import CostEstimate
from ..core.token_analysis import TokenAnalysis


CHECK = "✓"
CROSS = "✗"
EURO = "€"


def format_number(num: Number) -> str:
    """Format a number with thousands separators."""
    if isinstance(num, float) and not num.is_integer():
        return f"{num:,.2f}"
    return f"{int(num):,}"


def format_token_count(tokens: Number) -> str:
    """Compact token count: ``1.2M``, ``45K`` or the plain number."""
    if tokens >= 1_000_000:
        return f"{tokens / 1_000_000:.1f}M"
    elif tokens >= 1000:
        return f"{tokens / 1000:.0f}K"
    return str(int(tokens))


def format_budget(budget: Budget) -> str:
    """Format a budget limit, e.g. ``50.0K tokens``, ``$0.5000`` or ``€0.0300``."""
    if budget.kind is BudgetKind.TOKENS:
        if budget.limit >= 1_000_000:
            return f"{budget.limit / 1_000_000:.1f}M tokens"
        elif budget.limit >= 1000:
            return f"{budget.limit / 1000:.1f}K tokens"
        return f"{int(budget.limit)} tokens"
    return format_budget_value(budget.limit, budget.kind)


def format_budget_value(value: Number, kind: BudgetKind) -> str:
    """Format an amount in a budget's unit."""
    if kind is BudgetKind.TOKENS:
        if value >= 1_000_000:
            return f"{value / 1_000_000:.2f}M"
        elif value >= 1000:
            return f"{value / 1000:.1f}K"
        return f"{value:.0f}"
    elif kind is BudgetKind.USD:
        return f"${value:.4f}"
    elif kind is BudgetKind.EUR:
        return f"{EURO}{value:.4f}"
    raise ValueError(f"Unsupported budget kind: {kind}")


def format_budget_usage(result: SelectionResult) -> str:
    """Format budget usage as ``used / limit (percent%)``."""
    used = format_budget_value(result.budget_used, result.budget_type)
    limit = format_budget_value(result.budget_limit, result.budget_type)
    return f"{used} / {limit} ({result.utilization_percent:.1f}%)"


def format_selection_summary(result: SelectionResult) -> str:
    """One-line summary, e.g. ``3 files selected, 1 excluded, 81.0% of budget used``."""
    selected = len(result.selected_files)
    noun = "file" if selected == 1 else "files"
    return (
        f"{selected} {noun} selected, {len(result.excluded_files)} excluded, "
        f"{result.utilization_percent:.1f}% of budget used"
    )


def format_cost_estimate(estimate: CostEstimate) -> str:
    """Format a provider cost estimate for display."""
    status = CHECK if estimate.within_context_window else CROSS
    return (
        f"{status} {estimate.display_name}: ${estimate.input_cost:.4f} "
        f"({estimate.utilization_percent:.1f}% of {format_number(estimate.context_window)} context)"
    )


def format_provider_table(estimates: Iterable[CostEstimate]) -> List[str]:
    """
    Provider comparison table, cheapest first.

    Args:
        estimates: Cost estimates to compare

    Returns:
        Table lines, header first
    """
    rows = sorted(estimates, key=lambda e: e.input_cost)
    lines = [
        f"  {'Provider':<20} {'Cost':>10}  {'Context':>10}  Fits",
        "  " + "-" * 52,
    ]
    for estimate in rows:
        fits = CHECK if estimate.within_context_window else CROSS
        lines.append(
            f"  {estimate.display_name:<20} {'$' + format(estimate.input_cost, '.4f'):>10}  "
            f"{estimate.utilization_percent:>9.1f}%  {fits}"
        )
    return lines


def selection_to_dict(result: SelectionResult) -> Dict[str, Any]:
    """Plain dictionary form of a selection result for JSON output."""
    return {
        "selected_files": [f.path for f in result.selected_files],
        "excluded_files": [f.path for f in result.excluded_files],
        "total_tokens": result.total_tokens,
        "total_cost": result.total_cost,
        "budget_type": result.budget_type.value,
        "budget_limit": result.budget_limit,
        "budget_used": result.budget_used,
        "budget_remaining": result.budget_remaining,
        "utilization_percent": result.utilization_percent,
        "token_ceiling": result.token_ceiling,
        "provider": result.provider,
    }


def generate_token_report(analysis: TokenAnalysis) -> str:
    """Markdown report of a token analysis."""
    lines = [
        "## Token Analysis",
        "",
        f"**Estimated Tokens:** {format_number(analysis.estimated_tokens)}",
        "",
        "### Cost Estimates by Provider",
        "",
    ]
    for estimate in analysis.estimates:
        lines.append(f"- {format_cost_estimate(estimate)}")
    lines.append("")

    if analysis.warnings:
        lines.append("### Warnings")
        lines.append("")
        for warning in analysis.warnings:
            lines.append(f"- {warning}")
        lines.append("")

    if analysis.recommendations:
        lines.append("### Recommendations")
        lines.append("")
        for recommendation in analysis.recommendations:
            lines.append(f"- {recommendation}")
        lines.append("")

    return "\n".join(lines)
