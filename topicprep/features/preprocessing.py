"""
Text normalization utilities for topic-model corpora.

This module implements the normalization pipeline that every downstream
format (document-term matrix, bag-of-words, long token table) is built
from. Rules are applied in a fixed order:

- collapse consecutive whitespace to a single separator
- turn every character outside the word class into a separator
- lowercase
- split on whitespace
- drop empty tokens and stopwords

Two optional filters (number removal, minimum token length) run after
stopword removal and are off by default. Configuration is driven by the
"preprocessing" section of config/data.yaml.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

import nltk
from joblib import Parallel, delayed
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS as SKLEARN_EN_STOPWORDS

from topicprep.data.corpus import Document, as_corpus, coerce_text


# Bump whenever the rules below change; cached artifacts are keyed on it.
NORMALIZATION_VERSION = "1"

_WHITESPACE_RE = re.compile(r"\s+")
# Word class: Unicode letters and digits. Underscore is treated as punctuation.
_NON_WORD_RE = re.compile(r"[\W_]+")

STOPWORD_SOURCES = ("sklearn", "nltk", "none")


@dataclass(frozen=True)
class NormalizerSettings:
    remove_numbers: bool = False
    min_token_length: int = 1

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "NormalizerSettings":
        """Build settings from the 'preprocessing' config section."""
        cfg = cfg or {}
        min_len = int(cfg.get("min_token_length", 1))
        if min_len < 1:
            raise ValueError(f"min_token_length must be >= 1, got {min_len}")
        return cls(
            remove_numbers=bool(cfg.get("remove_numbers", False)),
            min_token_length=min_len,
        )


DEFAULT_SETTINGS = NormalizerSettings()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize(
    text: str,
    stopword_set: FrozenSet[str] = frozenset(),
    settings: Optional[NormalizerSettings] = None,
) -> List[str]:
    """
    Normalize a single document's raw text into a list of tokens.

    Parameters
    ----------
    text : str
        Raw document text. Non-string values are coerced the same way
        Document does (None / NaN become the empty string).
    stopword_set : FrozenSet[str]
        Lowercased stopwords to discard.
    settings : Optional[NormalizerSettings]
        Optional extra filters; defaults apply none.

    Returns
    -------
    List[str]
        Surviving tokens in their original order. May be empty.
    """
    settings = settings or DEFAULT_SETTINGS
    if not isinstance(text, str):
        text = coerce_text(text)
    if not text:
        return []

    text = _WHITESPACE_RE.sub(" ", text)
    text = _NON_WORD_RE.sub(" ", text)
    text = text.lower()

    tokens = []
    for token in text.split():
        if not token or token in stopword_set:
            continue
        if settings.remove_numbers and token.isdigit():
            continue
        if len(token) < settings.min_token_length:
            continue
        tokens.append(token)
    return tokens


def normalize_corpus(
    corpus: Iterable[Document],
    stopword_set: FrozenSet[str] = frozenset(),
    settings: Optional[NormalizerSettings] = None,
    n_jobs: int = 1,
    backend: Optional[str] = None,
) -> List[List[str]]:
    """
    Normalize every document of a corpus.

    Documents are independent, so with n_jobs != 1 the work is spread
    across joblib workers. joblib returns results in submission order,
    which keeps the output aligned with the corpus positions.

    Parameters
    ----------
    corpus : Iterable[Document]
        Corpus (or iterable of Documents, validated on the way in).
    stopword_set : FrozenSet[str]
        Lowercased stopwords.
    settings : Optional[NormalizerSettings]
        Optional extra filters.
    n_jobs : int
        Number of joblib workers (1 = in-process loop, -1 = all cores).
    backend : Optional[str]
        joblib backend name, e.g. "loky" or "threading".

    Returns
    -------
    List[List[str]]
        One token list per document, in corpus order.
    """
    corpus = as_corpus(corpus)
    stopword_set = frozenset(stopword_set)
    settings = settings or DEFAULT_SETTINGS

    if n_jobs == 1 or len(corpus) < 2:
        return [normalize(doc.text, stopword_set, settings) for doc in corpus]

    return Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(normalize)(doc.text, stopword_set, settings) for doc in corpus
    )


# ---------------------------------------------------------------------------
# Stopwords
# ---------------------------------------------------------------------------


def _ensure_nltk_stopwords() -> None:
    """Download the NLTK stopwords corpus on first use."""
    try:
        nltk.data.find("corpora/stopwords")
    except LookupError:
        nltk.download("stopwords", quiet=True)


def _read_stopword_file(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def get_stopword_set(
    source: str = "sklearn",
    language: str = "english",
    extra: Iterable[str] = (),
    path: Optional[str] = None,
) -> FrozenSet[str]:
    """
    Build a case-normalized stopword set.

    Parameters
    ----------
    source : str
        Built-in list to start from: "sklearn" (English only), "nltk"
        (any language shipped with the NLTK stopwords corpus) or "none".
    language : str
        Language name, e.g. "english", "german".
    extra : Iterable[str]
        Additional custom stopwords.
    path : Optional[str]
        Optional file with one stopword per line ('#' starts a comment line).

    Returns
    -------
    FrozenSet[str]
        Lowercased stopwords.

    Raises
    ------
    ValueError
        If the source is unknown, or "sklearn" is asked for a language
        other than English.
    """
    src = (source or "none").lower()
    lang = (language or "english").lower()

    if src not in STOPWORD_SOURCES:
        raise ValueError(
            f"Unknown stopword source '{source}'. Expected one of {STOPWORD_SOURCES}."
        )

    words = set()
    if src == "sklearn":
        if lang != "english":
            raise ValueError(
                f"The sklearn stopword list is English only (got language='{language}'). "
                "Use source 'nltk' for other languages."
            )
        words.update(SKLEARN_EN_STOPWORDS)
    elif src == "nltk":
        _ensure_nltk_stopwords()
        from nltk.corpus import stopwords as nltk_stopwords

        words.update(nltk_stopwords.words(lang))

    words.update(extra or ())
    if path:
        words.update(_read_stopword_file(path))

    return frozenset(w.lower() for w in words if w)


def load_stopwords_from_config(cfg: Optional[Dict[str, Any]]) -> FrozenSet[str]:
    """
    Build the stopword set described by the 'preprocessing' config section.

    Expected layout::

        stopwords:
          enabled: true
          source: sklearn
          language: english
          extra: [said, also]
          file: null
    """
    sw_cfg = (cfg or {}).get("stopwords", {}) or {}
    if not bool(sw_cfg.get("enabled", True)):
        return frozenset()
    return get_stopword_set(
        source=sw_cfg.get("source", "sklearn"),
        language=sw_cfg.get("language", "english"),
        extra=sw_cfg.get("extra", []) or [],
        path=sw_cfg.get("file"),
    )
