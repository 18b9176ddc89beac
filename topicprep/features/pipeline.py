"""
Corpus preparation pipeline.

This module ties the pieces together:

- normalize every document once
- derive the vocabulary and the document-term matrix from those tokens
- optionally serve / persist the result through an ArtifactStore
- prune the vocabulary as configured
- write the prepared artifacts to the outputs directory

`prepare_corpus` is the library entry point; `run_preprocessing` is the
config-driven end-to-end run used by scripts/run_preprocessing.py.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Union

import pandas as pd
from scipy import sparse

from topicprep.data.corpus import DocId, Document, as_corpus
from topicprep.data.datasets import (
    DEFAULT_DATA_CONFIG_PATH,
    load_corpus,
    load_data_config,
)
from topicprep.evaluation.summary import summarize_dtm, top_terms
from topicprep.features.adapters import to_token_table
from topicprep.features.artifact_store import ArtifactStore
from topicprep.features.dtm import (
    DocumentTermMatrix,
    Vocabulary,
    dtm_from_tokens,
    filter_vocabulary,
    vocabulary_from_tokens,
    warn_empty_vocabulary,
)
from topicprep.features.preprocessing import (
    NormalizerSettings,
    load_stopwords_from_config,
    normalize_corpus,
)
from topicprep.utils.run_utils import (
    DEFAULT_RUN_CONFIG_PATH,
    ensure_dir_exists,
    get_logger,
    load_run_config,
)


@dataclass(frozen=True)
class PreparedCorpus:
    """Normalized tokens plus the vocabulary and DTM derived from them."""

    doc_ids: tuple
    tokens: tuple
    vocabulary: Vocabulary
    dtm: DocumentTermMatrix

    def filter_vocabulary(
        self,
        min_df: Union[int, float] = 1,
        max_df: Union[int, float] = 1.0,
        keep_n: Optional[int] = None,
    ) -> "PreparedCorpus":
        """
        Prune the vocabulary (see features.dtm.filter_vocabulary).

        Token lists are restricted to the kept terms, so row sums still
        match token counts.
        """
        dtm = filter_vocabulary(self.dtm, min_df=min_df, max_df=max_df, keep_n=keep_n)
        vocabulary = dtm.vocabulary
        tokens = tuple(tuple(t for t in doc if t in vocabulary) for doc in self.tokens)
        return PreparedCorpus(self.doc_ids, tokens, vocabulary, dtm)


def _prepare(
    doc_ids: Sequence[DocId],
    corpus: Iterable[Document],
    stopword_set: FrozenSet[str],
    settings: Optional[NormalizerSettings],
    n_jobs: int,
) -> PreparedCorpus:
    token_lists = normalize_corpus(corpus, stopword_set, settings, n_jobs=n_jobs)
    vocabulary = vocabulary_from_tokens(token_lists)
    dtm = dtm_from_tokens(doc_ids, token_lists, vocabulary)
    return PreparedCorpus(
        doc_ids=tuple(doc_ids),
        tokens=tuple(tuple(t) for t in token_lists),
        vocabulary=vocabulary,
        dtm=dtm,
    )


def prepare_corpus(
    corpus: Iterable[Document],
    stopword_set: FrozenSet[str] = frozenset(),
    settings: Optional[NormalizerSettings] = None,
    n_jobs: int = 1,
    store: Optional[ArtifactStore] = None,
) -> PreparedCorpus:
    """
    Normalize a corpus and build its vocabulary and document-term matrix.

    Parameters
    ----------
    corpus : Iterable[Document]
        Documents to prepare (validated for identifier uniqueness).
    stopword_set : FrozenSet[str]
        Lowercased stopwords.
    settings : Optional[NormalizerSettings]
        Optional extra normalization filters.
    n_jobs : int
        joblib workers used for normalization.
    store : Optional[ArtifactStore]
        If given, a result previously computed for the same corpus,
        stopwords and settings is loaded instead of recomputed, and new
        results are saved.

    Returns
    -------
    PreparedCorpus
    """
    corpus = as_corpus(corpus)
    stopword_set = frozenset(stopword_set)

    def build() -> PreparedCorpus:
        return _prepare(corpus.doc_ids, corpus, stopword_set, settings, n_jobs)

    if store is None:
        return build()

    key = store.key_for(corpus, stopword_set, settings)
    if key not in store:
        return store.get_or_build(key, build)

    prepared = store.load(key)
    # A stored result skips vocabulary_from_tokens; repeat its signal.
    if len(prepared.vocabulary) == 0:
        warn_empty_vocabulary(stacklevel=2)
    return prepared


# ---------------------------------------------------------------------------
# Output writing
# ---------------------------------------------------------------------------


def save_prepared_corpus(prepared: PreparedCorpus, outputs_dir: str) -> Dict[str, str]:
    """
    Write the prepared artifacts to `outputs_dir`.

    Files written:
    - vocabulary.txt  one term per line, in column order
    - dtm.npz         scipy sparse count matrix
    - doc_ids.csv     row labels of dtm.npz
    - tokens.csv      long (doc_id, token) table
    - top_terms.csv   most frequent terms
    - summary.json    output-size statistics

    Returns
    -------
    Dict[str, str]
        Mapping from artifact name to file path.
    """
    ensure_dir_exists(outputs_dir)
    paths = {
        "vocabulary": os.path.join(outputs_dir, "vocabulary.txt"),
        "dtm": os.path.join(outputs_dir, "dtm.npz"),
        "doc_ids": os.path.join(outputs_dir, "doc_ids.csv"),
        "tokens": os.path.join(outputs_dir, "tokens.csv"),
        "top_terms": os.path.join(outputs_dir, "top_terms.csv"),
        "summary": os.path.join(outputs_dir, "summary.json"),
    }

    with open(paths["vocabulary"], "w", encoding="utf-8") as f:
        for term in prepared.vocabulary:
            f.write(term + "\n")

    sparse.save_npz(paths["dtm"], prepared.dtm.matrix)

    pd.DataFrame({"doc_id": list(prepared.doc_ids)}).to_csv(paths["doc_ids"], index=False)
    to_token_table(prepared.doc_ids, prepared.tokens).to_csv(paths["tokens"], index=False)
    top_terms(prepared.dtm, n=50).to_csv(paths["top_terms"], index=False)

    with open(paths["summary"], "w", encoding="utf-8") as f:
        json.dump(summarize_dtm(prepared.dtm), f, indent=2)

    return paths


# ---------------------------------------------------------------------------
# End-to-end run
# ---------------------------------------------------------------------------


def run_preprocessing(
    data_config_path: str = DEFAULT_DATA_CONFIG_PATH,
    run_config_path: str = DEFAULT_RUN_CONFIG_PATH,
    use_cache: Optional[bool] = None,
) -> PreparedCorpus:
    """
    End-to-end pipeline: load, normalize, build, prune and save.

    Parameters
    ----------
    data_config_path : str
        Path to config/data.yaml.
    run_config_path : str
        Path to config/run.yaml.
    use_cache : Optional[bool]
        Overrides run.yaml's cache.enabled when not None.

    Returns
    -------
    PreparedCorpus
        The prepared (and pruned) corpus that was written to disk.
    """
    data_cfg = load_data_config(data_config_path)
    run_cfg = load_run_config(run_config_path)

    logger = get_logger(name="prepare", config=run_cfg, log_file_suffix="prepare")

    paths_cfg = run_cfg.get("paths", {}) or {}
    cache_cfg = run_cfg.get("cache", {}) or {}
    pre_cfg = data_cfg["preprocessing"] or {}

    corpus = load_corpus(data_config_path)
    logger.info("Loaded corpus with %d documents.", len(corpus))

    stopword_set = load_stopwords_from_config(pre_cfg)
    settings = NormalizerSettings.from_config(pre_cfg)
    n_jobs = int(pre_cfg.get("n_jobs", 1))
    logger.info(
        "Normalizer: %d stopwords, settings=%s, n_jobs=%d",
        len(stopword_set),
        settings,
        n_jobs,
    )

    if use_cache is None:
        use_cache = bool(cache_cfg.get("enabled", True))
    store = None
    if use_cache:
        store = ArtifactStore(paths_cfg.get("artifacts_dir", "outputs/artifacts"))
        key = store.key_for(corpus, stopword_set, settings)
        logger.info("Artifact key %s (%s)", key, "cached" if key in store else "new")

    start = time.perf_counter()
    prepared = prepare_corpus(
        corpus,
        stopword_set=stopword_set,
        settings=settings,
        n_jobs=n_jobs,
        store=store,
    )
    logger.info(
        "Prepared corpus in %.2fs: DTM shape=%s, nnz=%d",
        time.perf_counter() - start,
        prepared.dtm.shape,
        prepared.dtm.nnz,
    )

    vocab_cfg = pre_cfg.get("vocabulary", {}) or {}
    min_df = vocab_cfg.get("min_df", 1)
    max_df = vocab_cfg.get("max_df", 1.0)
    keep_n = vocab_cfg.get("keep_n")
    # max_df=1 (one document) and max_df=1.0 (all documents) compare equal.
    n_terms = len(prepared.vocabulary)
    prepared = prepared.filter_vocabulary(min_df=min_df, max_df=max_df, keep_n=keep_n)
    logger.info(
        "Vocabulary filter (min_df=%r, max_df=%r, keep_n=%r): %d of %d terms kept.",
        min_df,
        max_df,
        keep_n,
        len(prepared.vocabulary),
        n_terms,
    )

    empty = prepared.dtm.empty_doc_ids()
    if empty:
        logger.warning("%d document(s) have no tokens after preprocessing.", len(empty))

    outputs_dir = paths_cfg.get("outputs_dir", "outputs/prepared")
    written = save_prepared_corpus(prepared, outputs_dir)
    logger.info("Saved prepared corpus to %s (%s)", outputs_dir, ", ".join(sorted(written)))

    return prepared
