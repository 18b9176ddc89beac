"""
Vocabulary and document-term matrix construction.

This module turns normalized token lists into the canonical representation
that every external topic-model input is derived from:

- a Vocabulary: the distinct surviving tokens in lexicographic order, so
  the column layout does not depend on document order
- a DocumentTermMatrix: a scipy CSR matrix of integer counts, one row per
  document (in corpus order) and one column per vocabulary term

Both are rebuilt on each call and never mutated afterwards. Helpers that
"modify" a matrix (vocabulary filtering, dropping empty rows) return a new
instance.
"""

from __future__ import annotations

import warnings
from collections import Counter
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import sparse

from topicprep.data.corpus import DocId, Document, as_corpus
from topicprep.features.preprocessing import NormalizerSettings, normalize_corpus


class EmptyVocabularyWarning(UserWarning):
    """Signaled when a corpus normalizes to zero tokens."""


def warn_empty_vocabulary(stacklevel: int = 2) -> None:
    warnings.warn(
        "Corpus normalized to zero tokens; vocabulary is empty. "
        "Topic-model fitting on this corpus will fail.",
        EmptyVocabularyWarning,
        stacklevel=stacklevel,
    )


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


class Vocabulary:
    """
    Immutable, lexicographically ordered set of terms.

    Column `i` of a DocumentTermMatrix holds counts for `vocabulary[i]`.
    """

    def __init__(self, terms: Iterable[str] = ()):
        self._terms = tuple(sorted(set(terms)))
        self._index: Dict[str, int] = {t: i for i, t in enumerate(self._terms)}

    @property
    def terms(self) -> tuple:
        return self._terms

    def index(self, term: str) -> int:
        """Column position of `term`; raises KeyError if absent."""
        try:
            return self._index[term]
        except KeyError:
            raise KeyError(f"Term not in vocabulary: {term!r}") from None

    def get(self, term: str, default: Optional[int] = None) -> Optional[int]:
        return self._index.get(term, default)

    def __getitem__(self, position: int) -> str:
        return self._terms[position]

    def __contains__(self, term: object) -> bool:
        return term in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __repr__(self) -> str:
        return f"Vocabulary(n_terms={len(self)})"


# ---------------------------------------------------------------------------
# Document-term matrix
# ---------------------------------------------------------------------------


class DocumentTermMatrix:
    """
    Sparse document-by-term count matrix.

    Parameters
    ----------
    matrix : scipy.sparse matrix
        Integer counts of shape (n_documents, n_terms).
    doc_ids : Sequence[DocId]
        Row labels, in row order.
    vocabulary : Vocabulary
        Column labels.
    """

    def __init__(self, matrix, doc_ids: Sequence[DocId], vocabulary: Vocabulary):
        matrix = sparse.csr_matrix(matrix, dtype=np.int64, copy=True)
        doc_ids = tuple(doc_ids)
        if matrix.shape != (len(doc_ids), len(vocabulary)):
            raise ValueError(
                f"Matrix shape {matrix.shape} does not match "
                f"{len(doc_ids)} documents x {len(vocabulary)} terms."
            )
        matrix.eliminate_zeros()
        matrix.sort_indices()

        self._matrix = matrix
        self._doc_ids = doc_ids
        self._vocabulary = vocabulary
        self._positions = {doc_id: i for i, doc_id in enumerate(doc_ids)}

    # -- basic properties ---------------------------------------------------

    @property
    def matrix(self) -> sparse.csr_matrix:
        return self._matrix

    @property
    def doc_ids(self) -> tuple:
        return self._doc_ids

    @property
    def vocabulary(self) -> Vocabulary:
        return self._vocabulary

    @property
    def shape(self) -> tuple:
        return self._matrix.shape

    @property
    def n_documents(self) -> int:
        return self._matrix.shape[0]

    @property
    def n_terms(self) -> int:
        return self._matrix.shape[1]

    @property
    def nnz(self) -> int:
        return int(self._matrix.nnz)

    # -- aggregates ---------------------------------------------------------

    def row_sums(self) -> np.ndarray:
        """Total token count per document, shape (n_documents,)."""
        return np.asarray(self._matrix.sum(axis=1), dtype=np.int64).ravel()

    def col_sums(self) -> np.ndarray:
        """Total occurrence count per term, shape (n_terms,)."""
        return np.asarray(self._matrix.sum(axis=0), dtype=np.int64).ravel()

    def doc_freqs(self) -> np.ndarray:
        """Number of documents containing each term, shape (n_terms,)."""
        return np.diff(self._matrix.tocsc().indptr).astype(np.int64)

    def column_sum(self, term: str) -> int:
        return int(self._matrix[:, self._vocabulary.index(term)].sum())

    # -- lookups ------------------------------------------------------------

    def position(self, doc_id: DocId) -> int:
        try:
            return self._positions[doc_id]
        except KeyError:
            raise KeyError(f"Unknown document identifier: {doc_id!r}") from None

    def row_at(self, position: int) -> Dict[str, int]:
        """Non-zero counts of the row at `position`, as {term: count}."""
        start, end = self._matrix.indptr[position], self._matrix.indptr[position + 1]
        cols = self._matrix.indices[start:end]
        counts = self._matrix.data[start:end]
        return {self._vocabulary[int(c)]: int(n) for c, n in zip(cols, counts)}

    def row(self, doc_id: DocId) -> Dict[str, int]:
        """Non-zero counts of the document `doc_id`, as {term: count}."""
        return self.row_at(self.position(doc_id))

    def empty_doc_ids(self) -> List[DocId]:
        sums = self.row_sums()
        return [doc_id for doc_id, total in zip(self._doc_ids, sums) if total == 0]

    def drop_empty_rows(self) -> "DocumentTermMatrix":
        """Return a copy without all-zero rows (vocabulary unchanged)."""
        keep = np.flatnonzero(self.row_sums() > 0)
        return DocumentTermMatrix(
            self._matrix[keep],
            [self._doc_ids[i] for i in keep],
            self._vocabulary,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Dense DataFrame view; only sensible for small corpora."""
        return pd.DataFrame(
            self._matrix.toarray(),
            index=pd.Index(list(self._doc_ids), name="doc_id"),
            columns=list(self._vocabulary.terms),
        )

    def __repr__(self) -> str:
        return (
            f"DocumentTermMatrix(n_documents={self.n_documents}, "
            f"n_terms={self.n_terms}, nnz={self.nnz})"
        )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def vocabulary_from_tokens(token_lists: Iterable[Sequence[str]]) -> Vocabulary:
    """
    Collect the distinct tokens of already-normalized documents.

    Emits EmptyVocabularyWarning (does not raise) if no token survives.
    """
    terms = set()
    for tokens in token_lists:
        terms.update(tokens)
    vocabulary = Vocabulary(terms)
    if len(vocabulary) == 0:
        warn_empty_vocabulary(stacklevel=3)
    return vocabulary


def dtm_from_tokens(
    doc_ids: Sequence[DocId],
    token_lists: Sequence[Sequence[str]],
    vocabulary: Vocabulary,
) -> DocumentTermMatrix:
    """
    Count vocabulary terms in already-normalized documents.

    Tokens missing from `vocabulary` are ignored.
    """
    if len(doc_ids) != len(token_lists):
        raise ValueError(
            f"Got {len(doc_ids)} document ids but {len(token_lists)} token lists."
        )

    rows: List[int] = []
    cols: List[int] = []
    data: List[int] = []
    for row, tokens in enumerate(token_lists):
        for term, count in Counter(tokens).items():
            col = vocabulary.get(term)
            if col is None:
                continue
            rows.append(row)
            cols.append(col)
            data.append(count)

    matrix = sparse.csr_matrix(
        (np.asarray(data, dtype=np.int64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
        shape=(len(doc_ids), len(vocabulary)),
        dtype=np.int64,
    )
    return DocumentTermMatrix(matrix, doc_ids, vocabulary)


def build_vocabulary(
    corpus: Iterable[Document],
    stopword_set: FrozenSet[str] = frozenset(),
    settings: Optional[NormalizerSettings] = None,
    n_jobs: int = 1,
) -> Vocabulary:
    """
    Normalize every document and return the corpus vocabulary.

    The result is lexicographically ordered, hence identical for any
    permutation of the corpus.

    Parameters
    ----------
    corpus : Iterable[Document]
        Corpus to scan.
    stopword_set : FrozenSet[str]
        Lowercased stopwords.
    settings : Optional[NormalizerSettings]
        Optional extra normalization filters.
    n_jobs : int
        joblib workers used for normalization.

    Returns
    -------
    Vocabulary
    """
    token_lists = normalize_corpus(corpus, stopword_set, settings, n_jobs=n_jobs)
    return vocabulary_from_tokens(token_lists)


def build_dtm(
    corpus: Iterable[Document],
    vocabulary: Vocabulary,
    n_jobs: int = 1,
) -> DocumentTermMatrix:
    """
    Build the document-term matrix of `corpus` over `vocabulary`.

    Documents are normalized without a stopword set: terms excluded when
    the vocabulary was built are simply not columns, so they are never
    counted.

    Parameters
    ----------
    corpus : Iterable[Document]
        Corpus, rows follow its order.
    vocabulary : Vocabulary
        Column layout, typically from build_vocabulary.
    n_jobs : int
        joblib workers used for normalization.

    Returns
    -------
    DocumentTermMatrix
    """
    corpus = as_corpus(corpus)
    token_lists = normalize_corpus(corpus, n_jobs=n_jobs)
    return dtm_from_tokens(corpus.doc_ids, token_lists, vocabulary)


# ---------------------------------------------------------------------------
# Vocabulary pruning
# ---------------------------------------------------------------------------


def _resolve_df_threshold(value: Union[int, float], n_documents: int, name: str) -> float:
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an int or a float, got bool")
    if isinstance(value, float):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} as a proportion must be within [0, 1], got {value}")
        return value * n_documents
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return float(value)


def _check_keep_n(keep_n: Optional[int]) -> None:
    if keep_n is None:
        return
    if isinstance(keep_n, bool) or not isinstance(keep_n, (int, np.integer)):
        raise TypeError(f"keep_n must be an int or None, got {type(keep_n).__name__}")
    if keep_n < 0:
        raise ValueError(f"keep_n must be non-negative, got {keep_n}")


def filter_vocabulary(
    dtm: DocumentTermMatrix,
    min_df: Union[int, float] = 1,
    max_df: Union[int, float] = 1.0,
    keep_n: Optional[int] = None,
) -> DocumentTermMatrix:
    """
    Prune rare and overly common terms from a document-term matrix.

    Parameters
    ----------
    dtm : DocumentTermMatrix
        Source matrix.
    min_df : int or float
        Minimum document frequency. An int is an absolute count, a float a
        proportion of documents.
    max_df : int or float
        Maximum document frequency, same convention as min_df.
    keep_n : Optional[int]
        If set, keep at most this many terms, the most frequent by total
        count (ties broken lexicographically).

    Returns
    -------
    DocumentTermMatrix
        New matrix over the reduced vocabulary; rows are unchanged, so some
        may become all-zero.

    Raises
    ------
    TypeError
        If a threshold is a bool, or keep_n is not an int.
    ValueError
        If a threshold or keep_n is negative, or a proportion lies outside
        [0, 1].
    """
    _check_keep_n(keep_n)
    lower = _resolve_df_threshold(min_df, dtm.n_documents, "min_df")
    upper = _resolve_df_threshold(max_df, dtm.n_documents, "max_df")

    doc_freqs = dtm.doc_freqs()
    keep = np.flatnonzero((doc_freqs >= lower) & (doc_freqs <= upper))

    if keep_n is not None and len(keep) > keep_n:
        totals = dtm.col_sums()[keep]
        # Stable sort on -count keeps lexicographic order among ties.
        order = np.argsort(-totals, kind="stable")[:keep_n]
        keep = np.sort(keep[order])

    vocabulary = Vocabulary(dtm.vocabulary[int(i)] for i in keep)
    return DocumentTermMatrix(dtm.matrix[:, keep], dtm.doc_ids, vocabulary)
