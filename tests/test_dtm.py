"""
Tests for vocabulary and document-term matrix construction.

These tests validate that:

- the reference two-document corpus yields the expected vocabulary,
  rows and column sums
- the vocabulary does not depend on document order
- row sums equal per-document token counts and column sums equal
  per-term occurrence counts
- empty documents and empty corpora are tolerated and signaled
- vocabulary pruning keeps the matrix consistent
"""

from __future__ import annotations

import random
import warnings
from collections import Counter

import numpy as np
import pytest

from topicprep.data.corpus import Corpus, Document, InvalidDocumentIdentifier
from topicprep.features.dtm import (
    DocumentTermMatrix,
    EmptyVocabularyWarning,
    Vocabulary,
    build_dtm,
    build_vocabulary,
    filter_vocabulary,
)
from topicprep.features.preprocessing import normalize


STOPWORDS = frozenset({"the", "on"})

TEXTS = [
    "The cat sat on the mat.",
    "The dog sat.",
    "A dog and a cat met on the mat; the cat left.",
    "",
    "The, on... THE!",
    "Sparse matrices store only non-zero counts!",
]


def _reference_corpus() -> Corpus:
    return Corpus.from_records([(1, "The cat sat on the mat."), (2, "The dog sat.")])


def _corpus() -> Corpus:
    return Corpus.from_records(enumerate(TEXTS))


# ---------------------------------------------------------------------------
# Reference scenario
# ---------------------------------------------------------------------------


def test_reference_scenario():
    corpus = _reference_corpus()
    vocab = build_vocabulary(corpus, STOPWORDS)
    assert vocab.terms == ("cat", "dog", "mat", "sat")

    dtm = build_dtm(corpus, vocab)
    assert dtm.shape == (2, 4)
    assert dtm.doc_ids == (1, 2)
    assert dtm.row(1) == {"cat": 1, "mat": 1, "sat": 1}
    assert dtm.row(2) == {"dog": 1, "sat": 1}
    assert dtm.column_sum("sat") == 2
    assert dtm.nnz == 5


def test_duplicate_identifiers_are_rejected():
    with pytest.raises(InvalidDocumentIdentifier) as excinfo:
        Corpus.from_records([(1, "a"), (1, "b")])
    assert excinfo.value.doc_id == 1

    with pytest.raises(InvalidDocumentIdentifier):
        build_vocabulary([Document(1, "a"), Document(1, "b")], STOPWORDS)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def test_vocabulary_is_permutation_invariant():
    corpus = _corpus()
    expected = build_vocabulary(corpus, STOPWORDS)

    docs = list(corpus)
    rng = random.Random(7)
    for _ in range(5):
        rng.shuffle(docs)
        assert build_vocabulary(Corpus(docs), STOPWORDS) == expected


def test_row_sums_match_token_counts():
    corpus = _corpus()
    dtm = build_dtm(corpus, build_vocabulary(corpus, STOPWORDS))
    expected = [len(normalize(doc.text, STOPWORDS)) for doc in corpus]
    assert dtm.row_sums().tolist() == expected


def test_column_sums_match_term_occurrences():
    corpus = _corpus()
    vocab = build_vocabulary(corpus, STOPWORDS)
    dtm = build_dtm(corpus, vocab)

    occurrences = Counter(t for doc in corpus for t in normalize(doc.text, STOPWORDS))
    assert dtm.col_sums().tolist() == [occurrences[term] for term in vocab]


def test_stopwords_never_become_columns():
    corpus = _corpus()
    dtm = build_dtm(corpus, build_vocabulary(corpus, STOPWORDS))
    assert "the" not in dtm.vocabulary
    assert "on" not in dtm.vocabulary


def test_parallel_build_matches_sequential():
    corpus = _corpus()
    vocab = build_vocabulary(corpus, STOPWORDS)
    assert build_vocabulary(corpus, STOPWORDS, n_jobs=2) == vocab
    seq = build_dtm(corpus, vocab)
    par = build_dtm(corpus, vocab, n_jobs=2)
    assert (seq.matrix != par.matrix).nnz == 0


# ---------------------------------------------------------------------------
# Boundaries
# ---------------------------------------------------------------------------


def test_empty_document_contributes_zero_row():
    corpus = _corpus()
    dtm = build_dtm(corpus, build_vocabulary(corpus, STOPWORDS))
    assert dtm.row(3) == {}
    assert dtm.row(4) == {}
    assert dtm.empty_doc_ids() == [3, 4]

    trimmed = dtm.drop_empty_rows()
    assert trimmed.doc_ids == (0, 1, 2, 5)
    assert trimmed.vocabulary == dtm.vocabulary
    assert trimmed.row_sums().min() > 0


def test_empty_corpus_gives_empty_vocabulary_and_matrix():
    corpus = Corpus([])
    with pytest.warns(EmptyVocabularyWarning):
        vocab = build_vocabulary(corpus, STOPWORDS)
    assert len(vocab) == 0

    dtm = build_dtm(corpus, vocab)
    assert dtm.shape == (0, 0)
    assert dtm.row_sums().size == 0
    assert dtm.col_sums().size == 0


def test_all_empty_documents_give_zero_columns():
    corpus = Corpus.from_records([("a", ""), ("b", "the on")])
    with pytest.warns(EmptyVocabularyWarning):
        vocab = build_vocabulary(corpus, STOPWORDS)

    dtm = build_dtm(corpus, vocab)
    assert dtm.shape == (2, 0)
    assert dtm.row_sums().tolist() == [0, 0]


def test_non_empty_vocabulary_does_not_warn():
    with warnings.catch_warnings():
        warnings.simplefilter("error", EmptyVocabularyWarning)
        build_vocabulary(_reference_corpus(), STOPWORDS)


# ---------------------------------------------------------------------------
# Vocabulary / matrix objects
# ---------------------------------------------------------------------------


def test_vocabulary_lookups():
    vocab = Vocabulary(["sat", "cat", "sat", "mat"])
    assert list(vocab) == ["cat", "mat", "sat"]
    assert vocab.index("mat") == 1
    assert vocab[2] == "sat"
    assert "dog" not in vocab
    with pytest.raises(KeyError):
        vocab.index("dog")


def test_dtm_shape_mismatch_raises():
    with pytest.raises(ValueError):
        DocumentTermMatrix(np.zeros((2, 3), dtype=int), [1, 2], Vocabulary(["a", "b"]))


def test_unknown_document_lookup_raises():
    corpus = _reference_corpus()
    dtm = build_dtm(corpus, build_vocabulary(corpus, STOPWORDS))
    with pytest.raises(KeyError):
        dtm.row(99)


def test_to_dataframe_dense_view():
    corpus = _reference_corpus()
    df = build_dtm(corpus, build_vocabulary(corpus, STOPWORDS)).to_dataframe()
    assert list(df.columns) == ["cat", "dog", "mat", "sat"]
    assert df.loc[1].tolist() == [1, 0, 1, 1]
    assert df.loc[2].tolist() == [0, 1, 0, 1]


# ---------------------------------------------------------------------------
# filter_vocabulary
# ---------------------------------------------------------------------------


def _scenario_dtm() -> DocumentTermMatrix:
    corpus = _corpus()
    return build_dtm(corpus, build_vocabulary(corpus, STOPWORDS))


def test_filter_vocabulary_min_df():
    dtm = _scenario_dtm()
    pruned = filter_vocabulary(dtm, min_df=2)
    # cat, mat, dog and sat appear in at least two documents.
    assert pruned.vocabulary.terms == ("cat", "dog", "mat", "sat")
    assert pruned.doc_ids == dtm.doc_ids
    assert pruned.column_sum("cat") == dtm.column_sum("cat")


def test_filter_vocabulary_max_df_proportion():
    dtm = _scenario_dtm()
    # 6 documents; cat appears in 2 (1/3), so a 0.2 ceiling removes it.
    pruned = filter_vocabulary(dtm, max_df=0.2)
    assert "cat" not in pruned.vocabulary
    assert "sparse" in pruned.vocabulary


def test_filter_vocabulary_keep_n_prefers_frequent_terms():
    dtm = _scenario_dtm()
    pruned = filter_vocabulary(dtm, keep_n=2)
    # cat occurs 3 times; a, dog, mat and sat twice each, and ties go to
    # the lexicographically smallest term.
    assert pruned.vocabulary.terms == ("a", "cat")
    assert pruned.col_sums().tolist() == [2, 3]


def test_filter_vocabulary_rejects_bad_thresholds():
    dtm = _scenario_dtm()
    with pytest.raises(TypeError):
        filter_vocabulary(dtm, min_df=True)
    with pytest.raises(ValueError):
        filter_vocabulary(dtm, max_df=1.5)


def test_filter_vocabulary_rejects_bad_keep_n():
    dtm = _scenario_dtm()
    with pytest.raises(ValueError):
        filter_vocabulary(dtm, keep_n=-1)
    with pytest.raises(TypeError):
        filter_vocabulary(dtm, keep_n=2.5)
    assert len(filter_vocabulary(dtm, keep_n=0).vocabulary) == 0


def test_filter_vocabulary_int_one_is_a_count_not_a_proportion():
    dtm = _scenario_dtm()
    # Terms in exactly one of the six documents.
    pruned = filter_vocabulary(dtm, max_df=1)
    assert "cat" not in pruned.vocabulary
    assert "sparse" in pruned.vocabulary
    assert filter_vocabulary(dtm, max_df=1.0).vocabulary == dtm.vocabulary
