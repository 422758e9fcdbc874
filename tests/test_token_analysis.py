"""Tests for TokenAnalyzer."""

import pytest
from bundle_budget.config.settings import get_default_catalog
from bundle_budget.core.token_analysis import (
    TokenAnalysisContext,
    TokenAnalyzer,
    analyze_token_usage,
)


@pytest.fixture
def analyzer():
    return TokenAnalyzer(get_default_catalog())


LARGE_TEXT = "a" * 500_000    # 125,000 tokens
MEDIUM_TEXT = "a" * 240_000   # 60,000 tokens


class TestTokenAnalyzer:
    """Test cases for token usage analysis."""

    def test_empty_text(self, analyzer):
        analysis = analyzer.analyze("")

        assert analysis.estimated_tokens == 0
        assert analysis.warnings == []
        assert len(analysis.estimates) == 8

    def test_small_text_has_no_size_advice(self, analyzer):
        analysis = analyzer.analyze("def main():\n    pass\n")

        assert analysis.warnings == []
        assert len(analysis.recommendations) == 1
        assert analysis.recommendations[0].startswith("Most cost-effective:")

    def test_large_output(self, analyzer):
        analysis = analyzer.analyze(LARGE_TEXT)

        assert analysis.estimated_tokens == 125_000
        assert "Output exceeds context window for: GPT-4" in analysis.warnings
        assert "Approaching GPT-4o context limit (98% of window)" in analysis.warnings
        assert "Approaching GPT-4 Turbo context limit (98% of window)" in analysis.warnings
        assert analysis.recommendations == [
            "Consider using --profile minimal or reducing file selection",
            "Use --max-size flag to limit individual file sizes",
            "Consider stripping comments with --strip-comments",
            "Most cost-effective: Claude 3.5 Haiku at $0.1000",
        ]

    def test_options_already_used_are_not_recommended(self, analyzer):
        context = TokenAnalysisContext(profile_used=True, max_size_used=True, strip_comments_used=True)
        analysis = analyzer.analyze(LARGE_TEXT, context)

        assert analysis.recommendations == ["Most cost-effective: Claude 3.5 Haiku at $0.1000"]

    def test_partial_context(self, analyzer):
        context = TokenAnalysisContext(strip_comments_used=True)
        analysis = analyzer.analyze(LARGE_TEXT, context)

        assert not any("--strip-comments" in r for r in analysis.recommendations)
        assert any("--profile" in r for r in analysis.recommendations)

    def test_medium_output(self, analyzer):
        analysis = analyzer.analyze(MEDIUM_TEXT)

        assert analysis.estimated_tokens == 60_000
        assert "Output is large but within most context windows" in analysis.recommendations
        assert "Consider focusing on specific modules for better results" in analysis.recommendations

    def test_context_does_not_change_estimate(self, analyzer):
        plain = analyzer.analyze(LARGE_TEXT)
        advised = analyzer.analyze(LARGE_TEXT, TokenAnalysisContext(profile_used=True))
        assert plain.estimated_tokens == advised.estimated_tokens

    def test_extension_hint(self, analyzer):
        analysis = analyzer.analyze(LARGE_TEXT, TokenAnalysisContext(extension="json"))
        assert analysis.estimated_tokens == 150_000

    def test_cheapest_fitting(self, analyzer):
        cheapest = analyzer.analyze(MEDIUM_TEXT).cheapest_fitting()
        assert cheapest.provider == "claude-haiku"

    def test_nothing_fits(self):
        analysis = analyze_token_usage("a" * 12_000_000)

        assert analysis.cheapest_fitting() is None
        assert not any(r.startswith("Most cost-effective") for r in analysis.recommendations)

    def test_default_catalog(self):
        analysis = analyze_token_usage("Hello world")
        assert analysis.estimated_tokens == 3
