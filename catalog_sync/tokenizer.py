"""Search keyword normalization and tokenization.

Every keyword in the catalog goes through ``tokenize`` so the storefront,
the search index and the assistant all see the same vocabulary.

Normalization: lower-case, ``×`` -> ``x``, accents stripped, quotes
removed, anything outside ``[a-z0-9/.-x]`` and whitespace becomes a
space, whitespace collapsed.

Each fragment then yields:

* itself, if it has 3+ characters or any digit (``6m``, ``1/2``)
* for dimension notation (``31x60``, ``0.60x0.40m``), every side, each
  side without dots (``060``), without leading zeros (``60``) and, when
  a unit is glued on (``0.40m``), the bare number with the same variants
* the fragment without a trailing dot (``kg.`` -> ``kg``)
* a naive singular (``chapas`` -> ``chapa``), skipping ``-is`` endings
  such as ``gris``
* spelling variants for known misspelled stems and interchangeable
  industry spellings (see config)
"""

import re
import unicodedata
from typing import Dict, Iterable, List, Optional

from catalog_sync.config import INTERCHANGEABLE_SPELLINGS, MISSPELLED_STEMS

__all__ = [
    "KeywordSet",
    "normalize_text",
    "tokenize",
    "merge_tokens",
]

QUOTES_RE = re.compile(r"[“”\"']")
DISALLOWED_RE = re.compile(r"[^a-z0-9/.\-\sx]")
WHITESPACE_RE = re.compile(r"\s+")
DIGIT_RE = re.compile(r"\d")
TRAILING_UNIT_RE = re.compile(r"(?<=\d)[a-z]+$")

MIN_TOKEN_LENGTH = 3


class KeywordSet:
    """Insertion-ordered set of tokens.

    Keeps first-seen order so serialized keyword lists are stable between
    runs.
    """

    def __init__(self, tokens: Optional[Iterable[str]] = None):
        self._tokens: Dict[str, None] = {}
        if tokens:
            self.update(tokens)

    def add(self, token: str) -> None:
        if token:
            self._tokens.setdefault(token, None)

    def update(self, tokens: Iterable[str]) -> None:
        for token in tokens:
            self.add(token)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __iter__(self):
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def to_list(self) -> List[str]:
        return list(self._tokens)


def normalize_text(text: Optional[str]) -> str:
    """Lower-case, strip accents and punctuation, collapse whitespace."""
    if text is None:
        return ""
    text = str(text).lower().replace("×", "x")
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = QUOTES_RE.sub("", text)
    text = DISALLOWED_RE.sub(" ", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def _number_variants(part: str, tokens: KeywordSet) -> None:
    tokens.add(part)
    without_dots = part.replace(".", "")
    if without_dots != part:
        tokens.add(without_dots)
    without_zeros = without_dots.lstrip("0")
    if without_zeros != without_dots:
        tokens.add(without_zeros)


def _dimension_tokens(fragment: str, tokens: KeywordSet) -> None:
    parts = [part for part in fragment.split("x") if part]
    if len(parts) < 2:
        return
    for part in parts:
        _number_variants(part, tokens)
        bare = TRAILING_UNIT_RE.sub("", part)
        if bare != part:
            _number_variants(bare, tokens)


def _spelling_variants(fragment: str, tokens: KeywordSet) -> None:
    for wrong, right in MISSPELLED_STEMS.items():
        if fragment.startswith(wrong):
            tokens.add(right + fragment[len(wrong):])

    for first, second in INTERCHANGEABLE_SPELLINGS:
        if first in fragment:
            tokens.add(fragment.replace(first, second, 1))
        if second in fragment:
            tokens.add(fragment.replace(second, first, 1))


def _fragment_tokens(fragment: str, tokens: KeywordSet) -> None:
    if len(fragment) >= MIN_TOKEN_LENGTH or DIGIT_RE.search(fragment):
        tokens.add(fragment)

    if "x" in fragment:
        _dimension_tokens(fragment, tokens)

    if fragment.endswith("."):
        tokens.add(fragment[:-1])

    if fragment.endswith("s") and len(fragment) > MIN_TOKEN_LENGTH and not fragment.endswith("is"):
        tokens.add(fragment[:-1])

    _spelling_variants(fragment, tokens)


def tokenize(*texts: Optional[str]) -> List[str]:
    """Tokenize one or more strings into a de-duplicated keyword list.

    >>> tokenize("Chapas Cincalum")
    ['chapas', 'chapa', 'cincalum', 'zincalum']
    """
    tokens = KeywordSet()
    for text in texts:
        normalized = normalize_text(text)
        if not normalized:
            continue
        for fragment in normalized.split(" "):
            if fragment:
                _fragment_tokens(fragment, tokens)
    return tokens.to_list()


def merge_tokens(tokens: KeywordSet, *texts: Optional[str]) -> KeywordSet:
    """Add the tokens of every non-empty text to ``tokens`` and return it."""
    tokens.update(tokenize(*(text for text in texts if text)))
    return tokens
