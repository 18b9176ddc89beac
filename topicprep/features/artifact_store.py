"""
Caller-owned persistence for prepared corpora.

Artifacts are keyed by a content hash of everything that determines them:
the ordered (doc_id, text) pairs, the stopword set, the normalizer settings
and NORMALIZATION_VERSION. Changing any of these yields a new key, so a
stale artifact is never served. Objects are persisted with joblib, one file
per key under the store's root directory.

There is no module-level store; callers create one and pass it in.
"""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import astuple
from typing import Any, Callable, FrozenSet, Iterable, Optional

import joblib

from topicprep.data.corpus import Document, as_corpus
from topicprep.features.preprocessing import (
    DEFAULT_SETTINGS,
    NORMALIZATION_VERSION,
    NormalizerSettings,
)
from topicprep.utils.run_utils import ensure_dir_exists


logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".joblib"


class ArtifactStore:
    """
    Directory-backed store of joblib-serialized artifacts.

    Parameters
    ----------
    root_dir : str
        Directory holding the artifacts; created if needed.
    """

    def __init__(self, root_dir: str):
        self.root_dir = root_dir
        ensure_dir_exists(root_dir)

    @staticmethod
    def key_for(
        corpus: Iterable[Document],
        stopword_set: FrozenSet[str] = frozenset(),
        settings: Optional[NormalizerSettings] = None,
    ) -> str:
        """Content hash identifying the artifacts derived from these inputs."""
        corpus = as_corpus(corpus)
        settings = settings or DEFAULT_SETTINGS
        payload = (
            NORMALIZATION_VERSION,
            [(doc.doc_id, doc.text) for doc in corpus],
            sorted(stopword_set),
            astuple(settings),
        )
        return joblib.hash(payload)

    def path_for(self, key: str) -> str:
        return os.path.join(self.root_dir, f"{key}{ARTIFACT_SUFFIX}")

    def __contains__(self, key: str) -> bool:
        return os.path.exists(self.path_for(key))

    def load(self, key: str) -> Any:
        """
        Load the artifact stored under `key`.

        Raises
        ------
        KeyError
            If nothing is stored under `key`.
        """
        path = self.path_for(key)
        if not os.path.exists(path):
            raise KeyError(f"No artifact stored under key {key!r} in {self.root_dir}")
        return joblib.load(path)

    def save(self, key: str, obj: Any) -> str:
        path = self.path_for(key)
        joblib.dump(obj, path)
        logger.debug("Saved artifact %s to %s", key, path)
        return path

    def get_or_build(self, key: str, builder: Callable[[], Any]) -> Any:
        """Return the stored artifact for `key`, building and saving it if missing."""
        if key in self:
            logger.debug("Artifact cache hit for %s", key)
            return self.load(key)
        obj = builder()
        self.save(key, obj)
        return obj

    def clear(self) -> int:
        """Delete every stored artifact; return how many were removed."""
        paths = glob.glob(os.path.join(self.root_dir, f"*{ARTIFACT_SUFFIX}"))
        for path in paths:
            os.remove(path)
        return len(paths)

    def __repr__(self) -> str:
        return f"ArtifactStore(root_dir={self.root_dir!r})"
