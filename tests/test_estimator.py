"""Tests for TokenEstimator."""

import pytest
from bundle_budget.core.estimator import (
    TokenEstimator,
    estimate_tokens,
    estimate_text_tokens,
    normalize_extension,
    round_tokens,
)


class TestTokenEstimator:
    """Test cases for byte-size estimation."""

    def test_base_estimate(self):
        """4000 bytes of code is about 1000 tokens."""
        assert estimate_tokens(4000, "ts") == 1000

    def test_structured_data_is_denser(self):
        assert estimate_tokens(4000, "json") == 1200
        assert estimate_tokens(4000, "yaml") == 1200

    def test_prose_is_sparser(self):
        assert estimate_tokens(4000, "md") == 900
        assert estimate_tokens(4000, "txt") == 900

    def test_minified_assets(self):
        assert estimate_tokens(4000, "min.js") == 1300

    def test_unknown_or_missing_extension_uses_base(self):
        assert estimate_tokens(4000, "xyz") == 1000
        assert estimate_tokens(4000) == 1000
        assert estimate_tokens(4000, "") == 1000

    def test_extension_is_normalized(self):
        assert estimate_tokens(4000, ".JSON") == 1200
        assert normalize_extension(" .Md ") == "md"
        assert normalize_extension(None) == ""

    def test_zero_and_negative_sizes(self):
        assert estimate_tokens(0) == 0
        assert estimate_tokens(-10) == 0

    def test_rounds_to_nearest_token(self):
        assert estimate_tokens(1) == 0
        assert estimate_tokens(2) == 1
        assert estimate_tokens(6) == 2
        assert round_tokens(2.5) == 3
        assert round_tokens(2.49) == 2

    def test_custom_calibration(self):
        estimator = TokenEstimator(chars_per_token=2.0, extension_multipliers={"sql": 1.5})
        assert estimator.estimate_tokens(100) == 50
        assert estimator.estimate_tokens(100, "sql") == 75
        # custom table replaces the defaults
        assert estimator.estimate_tokens(100, "json") == 50

    def test_invalid_chars_per_token(self):
        with pytest.raises(ValueError):
            TokenEstimator(chars_per_token=0)

    def test_multiplier_table_is_read_only(self):
        estimator = TokenEstimator()
        with pytest.raises(TypeError):
            estimator.extension_multipliers["json"] = 5.0


class TestTextEstimation:
    """Test cases for text estimation with density corrections."""

    def test_empty_text(self):
        assert estimate_text_tokens("") == 0

    def test_simple_text(self):
        # 11 chars / 4 = 2.75, no corrections
        assert estimate_text_tokens("Hello world") == 3

    def test_non_empty_text_is_at_least_one_token(self):
        assert estimate_text_tokens("a") == 1

    def test_symbols_increase_estimate(self):
        plain = estimate_text_tokens("hello world test")
        with_symbols = estimate_text_tokens("hello() { world; } test[]")
        assert plain == 4
        assert with_symbols == 7
        assert with_symbols > plain

    def test_whitespace_decreases_estimate(self):
        dense = estimate_text_tokens("a" * 400)
        sparse = estimate_text_tokens("a   " * 100)
        assert dense == 100
        assert sparse == 85

    def test_scales_with_length(self):
        short = estimate_text_tokens("Hello")
        long = estimate_text_tokens("Hello" * 1000)
        assert long > short * 100

    def test_large_content_skips_density_corrections(self):
        assert estimate_text_tokens("a   " * 50_000) == 50_000

    def test_extension_hint_applies_to_text(self):
        assert estimate_text_tokens("a" * 400, "json") == 120

    def test_deterministic(self):
        text = "def f(x):\n    return {'a': [x, x + 1]}\n" * 20
        assert estimate_text_tokens(text) == estimate_text_tokens(text)

    def test_density_correction_neutral_for_plain_words(self):
        assert TokenEstimator().density_correction("hello world test") == 1.0


class TestDetailedEstimation:
    """Test cases for the word-boundary estimate."""

    def test_short_words(self):
        result = TokenEstimator().estimate_tokens_detailed("Hello world")
        assert result == {"tokens": 4, "method": "word-boundary"}

    def test_long_words(self):
        result = TokenEstimator().estimate_tokens_detailed("internationalization")
        assert result["tokens"] == 5

    def test_punctuation(self):
        result = TokenEstimator().estimate_tokens_detailed("hello, world! how? are; you:")
        assert result["tokens"] == 10
