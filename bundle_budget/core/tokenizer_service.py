"""Tokenizer service with pluggable text-counting backends."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union

from .estimator import TokenEstimator


logger = logging.getLogger(__name__)


class BaseTokenizer(ABC):
    """Abstract base class for tokenizers."""

    name = "base"

    @abstractmethod
    def count_tokens(self, text: str, extension: Optional[str] = None) -> int:
        """Count tokens in the given text."""
        pass


class HeuristicTokenizer(BaseTokenizer):
    """Tokenizer backed by the characters-per-token estimator."""

    name = "heuristic"

    def __init__(self, estimator: Optional[TokenEstimator] = None):
        self.estimator = estimator or TokenEstimator()

    def count_tokens(self, text: str, extension: Optional[str] = None) -> int:
        return self.estimator.estimate_text_tokens(text, extension)


class TiktokenTokenizer(BaseTokenizer):
    """Tokenizer using a tiktoken BPE encoding.

    Useful for calibrating the heuristic against a real encoding. Requires the
    ``tiktoken`` extra.
    """

    name = "tiktoken"

    def __init__(self, encoding_name: str = "cl100k_base"):
        try:
            import tiktoken
        except ImportError as exc:
            raise ImportError(
                "The tiktoken backend requires the 'tiktoken' extra: pip install bundle-budget[tiktoken]"
            ) from exc
        self.encoding = tiktoken.get_encoding(encoding_name)

    def count_tokens(self, text: str, extension: Optional[str] = None) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))


class TokenizerService:
    """Unified tokenizer service supporting multiple backends."""

    BACKENDS = ("heuristic", "tiktoken")

    def __init__(self, backend: str = "heuristic", **kwargs):
        """
        Initialize tokenizer service.

        Args:
            backend: Tokenizer backend ('heuristic' or 'tiktoken')
            **kwargs: Additional arguments for the backend
        """
        if backend == "heuristic":
            self.tokenizer: BaseTokenizer = HeuristicTokenizer(**kwargs)
        elif backend == "tiktoken":
            self.tokenizer = TiktokenTokenizer(**kwargs)
        else:
            raise ValueError(f"Unknown tokenizer backend: {backend}")
        logger.debug("Using %s tokenizer backend", self.tokenizer.name)

    def count_tokens(self,
                     text: Union[str, List[str], Dict[str, str]],
                     extension: Optional[str] = None) -> int:
        """
        Count tokens in text.

        Args:
            text: String, list of strings, or dict of section name to text
            extension: Optional extension hint for the heuristic backend

        Returns:
            Total token count
        """
        if isinstance(text, str):
            return self.tokenizer.count_tokens(text, extension)
        elif isinstance(text, list):
            return sum(self.tokenizer.count_tokens(item, extension) for item in text)
        elif isinstance(text, dict):
            return sum(self.tokenizer.count_tokens(value, extension) for value in text.values())
        else:
            return self.tokenizer.count_tokens(str(text), extension)

    def count_tokens_with_breakdown(self, sections: Dict[str, str]) -> Dict[str, int]:
        """
        Count tokens for each section in a dictionary.

        Args:
            sections: Dictionary of section name to text

        Returns:
            Dictionary with token counts for each section plus a ``total`` key
        """
        breakdown = {}
        total = 0

        for key, value in sections.items():
            count = self.count_tokens(value)
            breakdown[key] = count
            total += count

        breakdown["total"] = total
        return breakdown

    def get_tokenizer_info(self) -> Dict[str, str]:
        """Get information about the current tokenizer."""
        info = {"backend": self.tokenizer.name}
        if isinstance(self.tokenizer, TiktokenTokenizer):
            info["encoding_name"] = self.tokenizer.encoding.name
        elif isinstance(self.tokenizer, HeuristicTokenizer):
            info["chars_per_token"] = str(self.tokenizer.estimator.chars_per_token)
        return info
