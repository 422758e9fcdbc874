#!/usr/bin/env python3
"""Command line interface for bundle-budget."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.settings import BudgetSettings, load_settings
from .core.budget import BudgetKind, parse_budget_string, suggest_budget_formats
from .core.budget_selector import (
    BudgetSelector,
    CandidateFile,
    extension_priority,
    input_order,
    size_descending,
)
from .core.exceptions import BudgetError, ConfigError
from .core.pricing import model_warnings
from .core.token_analysis import TokenAnalysisContext, TokenAnalyzer
from .core.tokenizer_service import TokenizerService
from .utils.formatting import (
    format_budget,
    format_budget_usage,
    format_number,
    format_provider_table,
    format_selection_summary,
    format_token_count,
    generate_token_report,
    selection_to_dict,
)


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundle-budget",
        description="Estimate tokens and cost for LLM context bundles",
    )
    parser.add_argument("--version", action="version", version=f"bundle-budget {__version__}")
    parser.add_argument("--config", help="YAML or JSON settings file (default: $BUNDLE_BUDGET_CONFIG)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    select_parser = subparsers.add_parser("select", help="Select files that fit a budget")
    select_parser.add_argument("paths", nargs="+", help="Files or directories, in priority order")
    select_parser.add_argument(
        "-b", "--budget", required=True,
        help="Budget expression: 50000, 50k, 1m, $0.50, 0.50usd, €0.30, 0.30eur",
    )
    select_parser.add_argument("-p", "--provider", help="Provider used to price cost budgets")
    select_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    select_parser.add_argument("--show-excluded", action="store_true", help="List excluded files")
    select_parser.add_argument(
        "--order",
        choices=["input", "size"],
        default="input",
        help="Consider files in input order or largest first (default: input)",
    )
    select_parser.add_argument(
        "--prefer",
        metavar="EXT[,EXT...]",
        help="Consider these extensions first, e.g. ts,md (overrides --order)",
    )

    costs_parser = subparsers.add_parser("costs", help="Compare provider costs for a token count")
    costs_parser.add_argument("tokens", help="Token count, e.g. 120000 or 120k")
    costs_parser.add_argument("-p", "--provider", help="Show a single provider")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze token usage of a rendered file")
    analyze_parser.add_argument("file", help="Text file to analyze")
    analyze_parser.add_argument("--extension", help="Extension hint applied to the estimate")
    analyze_parser.add_argument(
        "--backend",
        choices=TokenizerService.BACKENDS,
        help="Also count tokens with this tokenizer backend",
    )
    analyze_parser.add_argument("--profile-used", action="store_true",
                                help="A size profile was already applied")
    analyze_parser.add_argument("--max-size-used", action="store_true",
                                help="A per-file size limit was already applied")
    analyze_parser.add_argument("--strip-comments-used", action="store_true",
                                help="Comments were already stripped")

    presets_parser = subparsers.add_parser("presets", help="List model presets or check a fit")
    presets_parser.add_argument("-m", "--model", help="Preset name or alias (e.g. sonnet)")
    presets_parser.add_argument("-t", "--tokens", help="Token count to check against the preset")

    return parser


def configure_logging(log_level: str, verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def collect_candidates(paths: List[str]) -> List[CandidateFile]:
    """
    Build candidate files from paths, expanding directories in sorted order.

    Missing paths are skipped with a warning.
    """
    candidates = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            candidates.append(CandidateFile.from_path(path))
        elif path.is_dir():
            for child in sorted(p for p in path.rglob("*") if p.is_file()):
                candidates.append(CandidateFile.from_path(child, display_path=child.as_posix()))
        else:
            logger.warning("Skipping %s: not a file or directory", raw)
    return candidates


def parse_token_count(text: str) -> Optional[int]:
    budget = parse_budget_string(text)
    if budget is None or budget.kind is not BudgetKind.TOKENS:
        return None
    return int(budget.limit)


def report_invalid_budget(text: str):
    print(f"Could not understand budget '{text}'. Try one of:", file=sys.stderr)
    for example in suggest_budget_formats():
        print(f"  {example}", file=sys.stderr)


def selection_order(args: argparse.Namespace):
    if args.prefer:
        return extension_priority(ext for ext in args.prefer.split(",") if ext.strip())
    if args.order == "size":
        return size_descending
    return input_order


def cmd_select(args: argparse.Namespace, settings: BudgetSettings) -> int:
    budget = parse_budget_string(args.budget)
    if budget is None:
        report_invalid_budget(args.budget)
        return EXIT_USAGE

    provider = args.provider or settings.default_provider
    if budget.is_cost_based and not provider:
        print(f"A {budget.kind.value} budget needs --provider", file=sys.stderr)
        return EXIT_USAGE
    budget = budget.with_provider(provider)

    selector = BudgetSelector.from_settings(settings)
    files = collect_candidates(args.paths)
    result = selector.select_files(files, budget, order=selection_order(args))

    if args.json:
        print(json.dumps(selection_to_dict(result), indent=2, ensure_ascii=False))
        return EXIT_OK

    print(f"Budget: {format_budget(budget)}" + (f" ({result.provider})" if result.provider else ""))
    print(format_selection_summary(result))
    print(f"Usage: {format_budget_usage(result)}")
    print(f"Tokens: {format_number(result.total_tokens)} of {format_number(result.token_ceiling)}")
    if result.total_cost is not None and budget.kind is BudgetKind.TOKENS:
        print(f"Cost: ${result.total_cost:.4f}")
    for file in result.selected_files:
        print(f"  + {file.path}")
    if args.show_excluded:
        for file in result.excluded_files:
            print(f"  - {file.path}")
    return EXIT_OK


def cmd_costs(args: argparse.Namespace, settings: BudgetSettings) -> int:
    tokens = parse_token_count(args.tokens)
    if tokens is None:
        report_invalid_budget(args.tokens)
        return EXIT_USAGE

    catalog = settings.build_catalog()
    if args.provider:
        catalog.require_provider(args.provider)
        estimates = [catalog.calculate_cost(tokens, args.provider)]
    else:
        estimates = catalog.all_cost_estimates(tokens)

    print(f"Cost of {format_number(tokens)} input tokens")
    for line in format_provider_table(estimates):
        print(line)
    return EXIT_OK


def cmd_analyze(args: argparse.Namespace, settings: BudgetSettings) -> int:
    path = Path(args.file)
    text = path.read_text(encoding="utf-8", errors="replace")
    context = TokenAnalysisContext(
        profile_used=args.profile_used,
        max_size_used=args.max_size_used,
        strip_comments_used=args.strip_comments_used,
        extension=args.extension,
    )
    analyzer = TokenAnalyzer(settings.build_catalog(), settings.estimation.build_estimator())
    print(generate_token_report(analyzer.analyze(text, context)))

    if args.backend:
        service = TokenizerService(backend=args.backend)
        print(f"{args.backend} count: {format_number(service.count_tokens(text, context.extension))}")
    return EXIT_OK


def cmd_presets(args: argparse.Namespace, settings: BudgetSettings) -> int:
    catalog = settings.build_catalog()

    if not args.model:
        for family, presets in catalog.presets_by_family().items():
            print(f"{family}:")
            for preset in presets:
                print(f"  {preset.name:<20} {format_token_count(preset.context_limit):>6} ctx, "
                      f"{preset.safety_margin:.0%} usable  {preset.description}")
        return EXIT_OK

    preset = catalog.lookup_model_preset(args.model)
    if preset is None:
        names = ", ".join(p.name for p in catalog.list_model_presets())
        print(f"Unknown model '{args.model}'. Available models: {names}", file=sys.stderr)
        return EXIT_USAGE

    print(f"{preset.display_name}: {format_number(preset.effective_budget)} of "
          f"{format_number(preset.context_limit)} tokens usable")
    if args.tokens:
        tokens = parse_token_count(args.tokens)
        if tokens is None:
            report_invalid_budget(args.tokens)
            return EXIT_USAGE
        cost = catalog.calculate_preset_cost(tokens, preset)
        print(f"{format_number(tokens)} tokens: {cost.utilization_percent:.0f}% "
              f"({cost.warning_level.value}), ${cost.input_cost:.4f}")
        for warning in model_warnings(tokens, preset):
            print(f"  ! {warning}")
    return EXIT_OK


COMMANDS = {
    "select": cmd_select,
    "costs": cmd_costs,
    "analyze": cmd_analyze,
    "presets": cmd_presets,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    configure_logging(args.log_level, args.verbose)

    try:
        settings = load_settings(args.config)
        return COMMANDS[args.command](args, settings)
    except (BudgetError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
