# nlp/text_features.py
"""
TF-IDF features for a single text column.

Steps, in order:
  1. word-boundary tokenization (lower-cased)
  2. stopword removal
  3. vocabulary capped to the max_tokens most frequent tokens of the fit corpus
  4. TF-IDF weighting (scikit-learn TfidfVectorizer)

The vocabulary and IDF weights are learned by TextRecipe.fit and never change
afterwards; unknown tokens are dropped at transform time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Collection, FrozenSet, Iterable, Iterator, List, Union

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS, TfidfVectorizer

from src.modeling.errors import ConfigurationError

DEFAULT_TEXT_COLUMN = "text_field"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_STOPWORDS = "english"

_TOKEN_PATTERN = re.compile(r"\b\w+\b")

STOPWORD_LISTS = {
    "english": ENGLISH_STOP_WORDS,
}


def iter_tokens(text: str | None) -> Iterator[str]:
    """Yield lower-cased word tokens of text one at a time."""
    if not text:
        return
    for match in _TOKEN_PATTERN.finditer(str(text)):
        yield match.group(0).lower()


def resolve_stopwords(stopwords: Union[str, Collection[str], None]) -> FrozenSet[str]:
    """Turn a language name or an explicit word collection into a stopword set."""
    if stopwords is None:
        return frozenset()
    if isinstance(stopwords, str):
        try:
            return frozenset(STOPWORD_LISTS[stopwords.lower()])
        except KeyError:
            raise ConfigurationError(
                f"Unknown stopword language {stopwords!r}; available: {sorted(STOPWORD_LISTS)}"
            ) from None
    return frozenset(w.lower() for w in stopwords)


class TokenAnalyzer:
    """Callable analyzer for TfidfVectorizer: tokenize, then drop stopwords."""

    def __init__(self, stopwords: Iterable[str] = ()):
        self.stopwords = frozenset(stopwords)

    def __call__(self, doc: str) -> List[str]:
        return [tok for tok in iter_tokens(doc) if tok not in self.stopwords]


@dataclass(frozen=True)
class TextRecipe:
    text_column: str = DEFAULT_TEXT_COLUMN
    max_tokens: int = DEFAULT_MAX_TOKENS
    stopwords: Union[str, Collection[str], None] = DEFAULT_STOPWORDS

    def validate(self) -> None:
        if self.max_tokens < 1:
            raise ConfigurationError(f"max_tokens must be >= 1, got {self.max_tokens}")
        resolve_stopwords(self.stopwords)

    def build(self) -> TfidfVectorizer:
        """Return an unfitted vectorizer configured from this recipe."""
        self.validate()
        return TfidfVectorizer(
            analyzer=TokenAnalyzer(resolve_stopwords(self.stopwords)),
            max_features=self.max_tokens,
        )

    def fit(self, texts: Iterable[str]) -> TfidfVectorizer:
        """
        Fit a fresh vectorizer on texts and return it.

        Raises ConfigurationError when no document yields a single token after
        stopword removal, since there is nothing to build a vocabulary from.
        """
        vectorizer = self.build()
        docs = ["" if t is None else str(t) for t in texts]
        analyzer = vectorizer.analyzer
        if not any(analyzer(doc) for doc in docs):
            raise ConfigurationError(
                f"Column {self.text_column!r} yields no tokens after tokenization "
                f"and stopword removal ({len(docs)} documents)."
            )
        vectorizer.fit(docs)
        return vectorizer
