"""Tests for TokenizerService."""

import pytest
from bundle_budget.core.estimator import TokenEstimator
from bundle_budget.core.tokenizer_service import (
    HeuristicTokenizer,
    TokenizerService,
)


class TestHeuristicBackend:
    """Test cases for the default heuristic backend."""

    def test_matches_estimator(self):
        service = TokenizerService()
        text = "def hello():\n    return {'greeting': 'world'}\n"
        assert service.count_tokens(text) == TokenEstimator().estimate_text_tokens(text)

    def test_empty(self):
        assert TokenizerService().count_tokens("") == 0

    def test_list_and_dict(self):
        service = TokenizerService()
        assert service.count_tokens(["Hello world", "hello world test"]) == 7
        assert service.count_tokens({"a": "Hello world", "b": "hello world test"}) == 7

    def test_extension_hint(self):
        assert TokenizerService().count_tokens("a" * 400, "json") == 120

    def test_breakdown(self):
        breakdown = TokenizerService().count_tokens_with_breakdown({
            "header": "Hello world",
            "body": "hello world test",
        })
        assert breakdown == {"header": 3, "body": 4, "total": 7}

    def test_custom_estimator(self):
        service = TokenizerService(estimator=TokenEstimator(chars_per_token=2.0))
        assert isinstance(service.tokenizer, HeuristicTokenizer)
        assert service.count_tokens("a" * 100) == 50

    def test_info(self):
        info = TokenizerService().get_tokenizer_info()
        assert info == {"backend": "heuristic", "chars_per_token": "4.0"}

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown tokenizer backend"):
            TokenizerService(backend="sentencepiece")


class TestTiktokenBackend:
    """Test cases for the optional tiktoken backend."""

    @pytest.fixture
    def service(self):
        pytest.importorskip("tiktoken")
        try:
            return TokenizerService(backend="tiktoken")
        except Exception as exc:  # encoding files may be unavailable offline
            pytest.skip(f"tiktoken encoding unavailable: {exc}")

    def test_counts_tokens(self, service):
        assert service.count_tokens("") == 0
        assert service.count_tokens("Hello world") > 0

    def test_special_tokens_are_plain_text(self, service):
        assert service.count_tokens("<|endoftext|>") > 0

    def test_info(self, service):
        assert service.get_tokenizer_info() == {"backend": "tiktoken", "encoding_name": "cl100k_base"}
