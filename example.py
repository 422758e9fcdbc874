#!/usr/bin/env python3
"""
Example usage of the bundle-budget package.
"""

import asyncio

from bundle_budget import (
    BudgetSelector,
    CandidateFile,
    ProviderRequiredError,
    TokenAnalyzer,
    TokenEstimator,
    TokenizerService,
    extension_priority,
    parse_budget_string,
    size_descending,
)
from bundle_budget.config.settings import get_default_config
from bundle_budget.core.pricing import model_warnings
from bundle_budget.utils.formatting import (
    format_budget,
    format_budget_usage,
    format_cost_estimate,
    format_selection_summary,
    generate_token_report,
)


def main():
    """Demonstrate bundle-budget functionality."""

    print("=== bundle-budget Example ===\n")

    settings = get_default_config()
    catalog = settings.build_catalog()
    estimator = settings.estimation.build_estimator()
    selector = BudgetSelector.from_settings(settings)

    print("1. Token Estimation Demo")
    print("-" * 30)

    for size, extension in [(4000, "ts"), (4000, "json"), (4000, "md"), (4000, "min.js")]:
        print(f"  {size} bytes of .{extension}: {estimator.estimate_tokens(size, extension)} tokens")

    sample_text = "def greet(name):\n    return {'message': f'Hello, {name}!'}\n"
    tokenizer = TokenizerService(estimator=estimator)
    print(f"Sample text tokens: {tokenizer.count_tokens(sample_text)}")
    print(f"Word-boundary estimate: {TokenEstimator().estimate_tokens_detailed(sample_text)}")
    print(f"Tokenizer info: {tokenizer.get_tokenizer_info()}")
    print()

    print("2. Provider Pricing Demo")
    print("-" * 30)

    for estimate in catalog.all_cost_estimates(120_000):
        print(f"  {format_cost_estimate(estimate)}")

    preset = catalog.lookup_model_preset("sonnet")
    cost = catalog.calculate_preset_cost(140_000, preset)
    print(f"\n{preset.display_name}: effective budget {preset.effective_budget} tokens")
    print(f"  140,000 tokens -> {cost.warning_level.value}, {cost.utilization_percent:.1f}% used")
    for warning in model_warnings(140_000, preset):
        print(f"  ! {warning}")
    print()

    print("3. Budget Selection Demo")
    print("-" * 30)

    files = [
        CandidateFile("src/index.ts", 1000, "ts"),
        CandidateFile("src/server.ts", 2000, "ts"),
        CandidateFile("src/routes.ts", 4000, "ts"),
        CandidateFile("data/fixtures.json", 200_000, "json"),
        CandidateFile("README.md", 3000, "md"),
    ]

    for expression, provider in [("1000", None), ("€0.03", "claude-haiku"), ("$0.01", "claude-sonnet")]:
        budget = parse_budget_string(expression).with_provider(provider)
        result = selector.select_files(files, budget)
        print(f"Budget {format_budget(budget)}" + (f" via {provider}" if provider else ""))
        print(f"  {format_selection_summary(result)}")
        print(f"  Usage: {format_budget_usage(result)}, ceiling {result.token_ceiling} tokens")
        for file in result.selected_files:
            print(f"    + {file.path} ({selector.estimate_file_tokens(file)} tokens)")
        for file in result.excluded_files:
            print(f"    - {file.path} ({selector.estimate_file_tokens(file)} tokens)")

    for label, order in [("largest first", size_descending), ("markdown first", extension_priority(["md"]))]:
        result = selector.select_files(files, parse_budget_string("2k"), order=order)
        print(f"2K tokens, {label}: " + ", ".join(f.path for f in result.selected_files))

    try:
        selector.select_files(files, parse_budget_string("0.50usd"))
    except ProviderRequiredError as exc:
        print(f"Without a provider: {exc}")
    print()

    print("4. Async Selection Demo")
    print("-" * 30)

    async def scan_files():
        return files[:3]

    result = asyncio.run(selector.select_files_within_budget(scan_files(), parse_budget_string("2k")))
    print(f"  {format_selection_summary(result)}")
    print()

    print("5. Token Analysis Demo")
    print("-" * 30)

    rendered = "\n\n".join(f"## {f.path}\n\n```\n{'x' * f.size_bytes}\n```" for f in files)
    analysis = TokenAnalyzer(catalog, estimator).analyze(rendered)
    print(generate_token_report(analysis))


if __name__ == "__main__":
    main()
