"""
Text normalization shared by skill extraction and keyword scoring.

Lowercases, collapses whitespace, folds known technology synonyms and
splits text into tokens. Every function here is pure and total: ``None``
or empty input gives empty output.
"""

import re
import unicodedata
from typing import Iterable, Optional

from matchengine.utils.constants import SKILL_SYNONYMS, TOKEN_PATTERN


_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE_RE = re.compile(r"\s+")

# Typographic characters that otherwise glue tokens together
_REPLACEMENTS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2022": " ",
    "\u00a0": " ",
    "\u00ad": "",
    "\ufeff": "",
    "\u200b": "",
}


class TextNormalizer:
    """
    Tokenizer and canonicalizer for free text.

    Holds only compiled patterns, so a single instance can be shared.
    """

    def __init__(self, synonyms: Optional[dict[str, str]] = None):
        """
        Initialize the normalizer.

        Args:
            synonyms: Optional regex -> canonical token map (defaults to SKILL_SYNONYMS)
        """
        synonyms = SKILL_SYNONYMS if synonyms is None else synonyms
        self._synonyms = [
            (re.compile(rf"(?<![a-z0-9]){pattern}(?![a-z0-9])"), canonical)
            for pattern, canonical in synonyms.items()
        ]
        self._token_re = re.compile(TOKEN_PATTERN)

    def normalize(self, text: Optional[str]) -> str:
        """Lowercase, fold synonyms and collapse whitespace."""
        if not text:
            return ""

        text = unicodedata.normalize("NFKC", str(text))
        for old, new in _REPLACEMENTS.items():
            text = text.replace(old, new)

        text = text.lower()
        for pattern, canonical in self._synonyms:
            text = pattern.sub(canonical, text)

        return _WHITESPACE_RE.sub(" ", text).strip()

    def tokenize(self, text: Optional[str]) -> list[str]:
        """
        Split normalized text into tokens.

        Trailing dots are dropped so sentence ends do not create distinct
        tokens ("node." -> "node"); leading dots survive for ".net".
        """
        tokens = []
        for raw in self._token_re.findall(self.normalize(text)):
            token = raw.rstrip(".")
            if token and token != ".":
                tokens.append(token)
        return tokens

    def unique_tokens(self, text: Optional[str]) -> list[str]:
        """Tokens in first-seen order with duplicates removed."""
        return unique(self.tokenize(text))

    def split_sentences(self, text: Optional[str]) -> list[str]:
        """Split raw text on sentence-ending punctuation, keeping the original casing."""
        if not text:
            return []
        return [s for s in _SENTENCE_SPLIT_RE.split(str(text)) if s.strip()]


def unique(items: Iterable[str]) -> list[str]:
    """De-duplicate while preserving order."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


# Shared instance
_normalizer: Optional[TextNormalizer] = None


def get_text_normalizer() -> TextNormalizer:
    """Get the shared normalizer instance."""
    global _normalizer
    if _normalizer is None:
        _normalizer = TextNormalizer()
    return _normalizer


def normalize_text(text: Optional[str]) -> str:
    return get_text_normalizer().normalize(text)


def tokenize(text: Optional[str]) -> list[str]:
    return get_text_normalizer().tokenize(text)
