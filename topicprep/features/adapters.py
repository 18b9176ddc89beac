"""
Format adapters for external topic-model libraries.

Every adapter starts from the canonical representation (token lists,
Vocabulary, DocumentTermMatrix) and produces one library-specific input
shape on demand:

- "matrix":      scipy CSR count matrix (scikit-learn LDA/NMF, lda, ...)
- "bow":         per-document [(term_index, count), ...] lists (gensim-style)
- "stm":         per-document 2 x n arrays of (term_index, count)
- "token_table": long (doc_id, token) table, one row per token (biterm / tidy)
- "count_frame": pandas sparse DataFrame, doc ids x terms
- "tfidf":       TF-IDF weighted CSR matrix
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.feature_extraction.text import TfidfTransformer

from topicprep.data.corpus import DocId
from topicprep.features.dtm import DocumentTermMatrix

if TYPE_CHECKING:  # pragma: no cover
    from topicprep.features.pipeline import PreparedCorpus


def to_token_table(
    doc_ids: Sequence[DocId],
    token_lists: Sequence[Sequence[str]],
) -> pd.DataFrame:
    """
    Long-format token table with one row per surviving token.

    Token order within a document is preserved; documents without tokens
    contribute no rows.
    """
    if len(doc_ids) != len(token_lists):
        raise ValueError(
            f"Got {len(doc_ids)} document ids but {len(token_lists)} token lists."
        )
    rows = [(doc_id, token) for doc_id, tokens in zip(doc_ids, token_lists) for token in tokens]
    return pd.DataFrame(rows, columns=["doc_id", "token"])


def to_bow(dtm: DocumentTermMatrix) -> List[List[Tuple[int, int]]]:
    """Per-document bag-of-words lists of (term_index, count), sorted by term index."""
    m = dtm.matrix
    bow = []
    for row in range(dtm.n_documents):
        start, end = m.indptr[row], m.indptr[row + 1]
        bow.append(
            [(int(c), int(n)) for c, n in zip(m.indices[start:end], m.data[start:end])]
        )
    return bow


def to_index_count_arrays(dtm: DocumentTermMatrix) -> List[np.ndarray]:
    """
    Per-document 2 x n integer arrays: row 0 term indices, row 1 counts.

    All-zero documents yield an array of shape (2, 0).
    """
    m = dtm.matrix
    docs = []
    for row in range(dtm.n_documents):
        start, end = m.indptr[row], m.indptr[row + 1]
        docs.append(
            np.vstack([m.indices[start:end], m.data[start:end]]).astype(np.int64)
        )
    return docs


def to_count_frame(dtm: DocumentTermMatrix) -> pd.DataFrame:
    """Sparse pandas DataFrame indexed by document id, one column per term."""
    frame = pd.DataFrame.sparse.from_spmatrix(
        dtm.matrix,
        index=pd.Index(list(dtm.doc_ids), name="doc_id"),
        columns=list(dtm.vocabulary.terms),
    )
    return frame


def to_tfidf(
    dtm: DocumentTermMatrix,
    norm: str = "l2",
    use_idf: bool = True,
    smooth_idf: bool = True,
    sublinear_tf: bool = False,
) -> sparse.csr_matrix:
    """
    TF-IDF weighted copy of the counts, computed with scikit-learn.

    Returns
    -------
    scipy.sparse.csr_matrix
        Float matrix with the same shape and layout as `dtm.matrix`.
    """
    if dtm.n_documents == 0 or dtm.n_terms == 0:
        return sparse.csr_matrix(dtm.shape, dtype=np.float64)

    transformer = TfidfTransformer(
        norm=norm,
        use_idf=use_idf,
        smooth_idf=smooth_idf,
        sublinear_tf=sublinear_tf,
    )
    return sparse.csr_matrix(transformer.fit_transform(dtm.matrix))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


ADAPTERS: Dict[str, Callable[["PreparedCorpus"], Any]] = {
    "matrix": lambda prepared: prepared.dtm.matrix,
    "bow": lambda prepared: to_bow(prepared.dtm),
    "stm": lambda prepared: to_index_count_arrays(prepared.dtm),
    "token_table": lambda prepared: to_token_table(prepared.doc_ids, prepared.tokens),
    "count_frame": lambda prepared: to_count_frame(prepared.dtm),
    "tfidf": lambda prepared: to_tfidf(prepared.dtm),
}


def export(prepared: "PreparedCorpus", fmt: str) -> Any:
    """
    Produce the input shape named by `fmt` from a prepared corpus.

    Raises
    ------
    ValueError
        If `fmt` is not a registered format.
    """
    key = (fmt or "").lower()
    if key not in ADAPTERS:
        raise ValueError(
            f"Unknown export format '{fmt}'. Expected one of {sorted(ADAPTERS)}."
        )
    return ADAPTERS[key](prepared)
