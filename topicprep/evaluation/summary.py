"""
Output-size summaries for prepared corpora.

These helpers answer "how big is what we are about to hand to the topic
model?": document and term counts, total tokens, sparsity, empty rows and
the most frequent terms. They are written next to the prepared artifacts
as summary.json / top_terms.csv.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np
import pandas as pd

from topicprep.features.dtm import DocumentTermMatrix


def summarize_dtm(dtm: DocumentTermMatrix) -> Dict[str, Any]:
    """
    Compute size statistics for a document-term matrix.

    Returns
    -------
    Dict[str, Any]
        Keys: "n_documents", "n_terms", "n_tokens", "n_nonzero",
        "n_empty_documents", "density". Plain Python types, so the dict
        can be dumped to JSON directly.
    """
    n_docs, n_terms = dtm.shape
    cells = n_docs * n_terms
    row_sums = dtm.row_sums()
    return {
        "n_documents": int(n_docs),
        "n_terms": int(n_terms),
        "n_tokens": int(row_sums.sum()),
        "n_nonzero": dtm.nnz,
        "n_empty_documents": int(np.count_nonzero(row_sums == 0)),
        "density": float(dtm.nnz / cells) if cells else 0.0,
    }


def top_terms(dtm: DocumentTermMatrix, n: int = 10) -> pd.DataFrame:
    """
    Most frequent terms by total count.

    Parameters
    ----------
    dtm : DocumentTermMatrix
        Source matrix.
    n : int
        Number of terms to return.

    Returns
    -------
    pd.DataFrame
        Columns ["term", "count", "doc_freq"], sorted by count descending,
        ties by term.
    """
    df = pd.DataFrame(
        {
            "term": list(dtm.vocabulary.terms),
            "count": dtm.col_sums(),
            "doc_freq": dtm.doc_freqs(),
        },
        columns=["term", "count", "doc_freq"],
    )
    df = df.sort_values(["count", "term"], ascending=[False, True], kind="mergesort")
    return df.head(n).reset_index(drop=True)
