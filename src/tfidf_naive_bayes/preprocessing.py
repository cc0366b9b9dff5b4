"""Text normalization and tokenization for the classification pipeline.

Turns raw text into the ordered stream of stemmed tokens that every later
stage (vocabulary, document frequency, TF-IDF) is built from:

1. Lowercase the text
2. Replace anything that is not ``a-z``, ``0-9`` or a space with a space
3. Split on whitespace, dropping empty fragments
4. Porter-stem each fragment, dropping tokens that stem to nothing

Tokenization is deterministic: identical text always yields identical
tokens in the same order. Duplicates are kept, since term frequency is
counted from this stream.
"""

from __future__ import annotations

import re
from collections import Counter

from nltk.stem.porter import PorterStemmer

_NON_ALNUM_RE = re.compile(r"[^a-z0-9 ]")

# Martin Porter's reference rules: words of one or two letters are left
# alone, and "bli" and "logi" reduce to "ble" and "log".
_STEMMER = PorterStemmer(mode=PorterStemmer.MARTIN_EXTENSIONS)

# UTF-8 punctuation that was decoded as CP1252 somewhere upstream.
_MOJIBAKE_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("â€™", "'"),
    ("â€œ", '"'),
    ("â€�", '"'),
    ("â€“", "-"),
    ("â€”", "—"),
    ("â€˜", "'"),
)


def normalize(text: str) -> str:
    """Lowercase text and blank out every non-alphanumeric character."""
    return _NON_ALNUM_RE.sub(" ", text.lower())


def stem(word: str) -> str:
    """Porter-stem a single lowercase word."""
    return _STEMMER.stem(word)


def tokenize(text: str) -> list[str]:
    """Split text into stemmed tokens, preserving order and duplicates.

    Args:
        text: Raw document text.

    Returns:
        Stemmed tokens in the order they occur in ``text``.
    """
    tokens: list[str] = []
    for fragment in normalize(text).split():
        stemmed = stem(fragment)
        if stemmed:
            tokens.append(stemmed)
    return tokens


def term_counts(text: str) -> Counter[str]:
    """Count how many times each stemmed token occurs in ``text``."""
    return Counter(tokenize(text))


def repair_mojibake(text: str) -> str:
    """Restore curly quotes and dashes mangled by a CP1252 round trip.

    Only used when echoing source text back out (e.g. prediction reports);
    tokenization strips these characters anyway.
    """
    for broken, fixed in _MOJIBAKE_REPLACEMENTS:
        text = text.replace(broken, fixed)
    return text
