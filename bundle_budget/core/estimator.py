"""Heuristic token estimation from byte sizes and text."""

import math
import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple


# Average characters per BPE token
CHARS_PER_TOKEN = 4.0

# Above this many characters density corrections average out and are skipped
LARGE_CONTENT_THRESHOLD = 100_000

# (density threshold, correction factor), checked in order
WHITESPACE_CORRECTIONS: Tuple[Tuple[float, float], ...] = (
    (0.30, 0.85),
    (0.25, 0.90),
    (0.20, 0.95),
)
SYMBOL_CORRECTIONS: Tuple[Tuple[float, float], ...] = (
    (0.35, 1.25),
    (0.25, 1.15),
    (0.20, 1.05),
)

DEFAULT_EXTENSION_MULTIPLIERS: Mapping[str, float] = MappingProxyType({
    # minified assets pack many tokens per character
    "min.js": 1.3,
    "min.css": 1.3,
    # punctuation-heavy structured data
    "json": 1.2,
    "yaml": 1.2,
    "yml": 1.2,
    # prose
    "md": 0.9,
    "markdown": 0.9,
    "txt": 0.9,
    "rst": 0.9,
})

_WHITESPACE_PATTERN = re.compile(r"\s")
_SYMBOL_PATTERN = re.compile(r"""[{}()\[\]<>:;,.!?@#$%^&*+=|\\/'"`~-]""")


def normalize_extension(extension: Optional[str]) -> str:
    """Lowercase an extension hint and strip any leading dot."""
    if not extension:
        return ""
    return extension.strip().lower().lstrip(".")


def round_tokens(value: float) -> int:
    """Round a fractional token estimate to the nearest whole token (half up)."""
    if value <= 0:
        return 0
    return int(math.floor(value + 0.5))


class TokenEstimator:
    """Estimates token counts with a calibrated characters-per-token heuristic.

    Instances are immutable after construction and safe to share.
    """

    def __init__(self,
                 chars_per_token: float = CHARS_PER_TOKEN,
                 extension_multipliers: Optional[Mapping[str, float]] = None,
                 large_content_threshold: int = LARGE_CONTENT_THRESHOLD):
        """
        Initialize the estimator.

        Args:
            chars_per_token: Calibration constant, characters per token
            extension_multipliers: Extension to correction factor table
            large_content_threshold: Text length above which density
                corrections are skipped
        """
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self._chars_per_token = float(chars_per_token)
        table = DEFAULT_EXTENSION_MULTIPLIERS if extension_multipliers is None else extension_multipliers
        self._multipliers: Mapping[str, float] = MappingProxyType(
            {normalize_extension(ext): float(factor) for ext, factor in table.items()}
        )
        self._large_content_threshold = large_content_threshold

    @property
    def chars_per_token(self) -> float:
        return self._chars_per_token

    @property
    def extension_multipliers(self) -> Mapping[str, float]:
        return self._multipliers

    def extension_multiplier(self, extension: Optional[str]) -> float:
        """Correction factor for an extension, 1.0 when unknown."""
        return self._multipliers.get(normalize_extension(extension), 1.0)

    def estimate_tokens(self, size_bytes: int, extension: Optional[str] = None) -> int:
        """
        Estimate tokens for content of a given byte size.

        Args:
            size_bytes: Content size in bytes
            extension: Optional file extension hint (``json``, ``.md``...)

        Returns:
            Estimated token count, never negative
        """
        if size_bytes <= 0:
            return 0
        base = size_bytes / self._chars_per_token
        return round_tokens(base * self.extension_multiplier(extension))

    def estimate_text_tokens(self, text: str, extension: Optional[str] = None) -> int:
        """
        Estimate tokens for a text blob.

        Applies the byte-size heuristic to the character count, then corrects
        for whitespace density (cheaper) and symbol density (more expensive).

        Args:
            text: Text to estimate
            extension: Optional file extension hint

        Returns:
            Estimated token count; at least 1 for non-empty text
        """
        if not text:
            return 0

        char_count = len(text)
        base = char_count / self._chars_per_token * self.extension_multiplier(extension)

        if char_count > self._large_content_threshold:
            return max(1, round_tokens(base))

        factor = self.density_correction(text)
        return max(1, round_tokens(base * factor))

    def density_correction(self, text: str) -> float:
        """Combined whitespace and symbol density correction factor for text."""
        char_count = len(text)
        if char_count == 0:
            return 1.0

        whitespace_count = len(_WHITESPACE_PATTERN.findall(text))
        whitespace_density = whitespace_count / char_count

        content_chars = char_count - whitespace_count
        symbol_count = len(_SYMBOL_PATTERN.findall(text))
        symbol_density = symbol_count / content_chars if content_chars > 0 else 0.0

        factor = 1.0
        for threshold, correction in WHITESPACE_CORRECTIONS:
            if whitespace_density > threshold:
                factor = correction
                break

        for threshold, correction in SYMBOL_CORRECTIONS:
            if symbol_density > threshold:
                factor *= correction
                break

        return factor

    def estimate_tokens_detailed(self, text: str) -> Dict[str, object]:
        """
        Word-boundary token estimate.

        Short words count as one token, medium words as two, long words are
        split every four characters; attached punctuation adds half a token.

        Returns:
            Dictionary with ``tokens`` and ``method`` keys
        """
        token_count = 0.0
        for word in text.split():
            if len(word) <= 4:
                token_count += 1
            elif len(word) <= 8:
                token_count += 2
            else:
                token_count += math.ceil(len(word) / 4)
            token_count += len(_SYMBOL_PATTERN.findall(word)) * 0.5

        return {
            "tokens": int(math.ceil(token_count)),
            "method": "word-boundary",
        }


_default_estimator = TokenEstimator()


def estimate_tokens(size_bytes: int, extension: Optional[str] = None) -> int:
    """Estimate tokens for a byte size using the default calibration."""
    return _default_estimator.estimate_tokens(size_bytes, extension)


def estimate_text_tokens(text: str, extension: Optional[str] = None) -> int:
    """Estimate tokens for a text blob using the default calibration."""
    return _default_estimator.estimate_text_tokens(text, extension)
