"""
Document and corpus containers.

A Corpus is an ordered sequence of Documents, each carrying a
caller-supplied identifier and a raw text body. Identifiers must be unique
within a corpus; duplicates raise InvalidDocumentIdentifier at
construction time, before any preprocessing happens.

Order is kept only so that derived artifacts (token lists, DTM rows) can be
traced back to their source rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd


DocId = Union[str, int]


class InvalidDocumentIdentifier(ValueError):
    """
    Raised when two documents in the same corpus share an identifier, or
    when a document has no identifier at all (None / NaN).
    """

    def __init__(
        self,
        doc_id: Any,
        first_position: int,
        second_position: Optional[int] = None,
    ):
        self.doc_id = doc_id
        self.first_position = first_position
        self.second_position = second_position
        if second_position is None:
            message = f"Missing document identifier at position {first_position}."
        else:
            message = (
                f"Duplicate document identifier {doc_id!r} at positions "
                f"{first_position} and {second_position}."
            )
        super().__init__(message)


def _is_missing_id(doc_id: Any) -> bool:
    return doc_id is None or (pd.api.types.is_scalar(doc_id) and bool(pd.isna(doc_id)))


def coerce_text(text: Any) -> str:
    # Missing cells from a table (None / NaN) behave like empty documents.
    if isinstance(text, str):
        return text
    if text is None or (pd.api.types.is_scalar(text) and pd.isna(text)):
        return ""
    return str(text)


@dataclass(frozen=True)
class Document:
    doc_id: DocId
    text: str = ""

    def __post_init__(self):
        object.__setattr__(self, "text", coerce_text(self.text))


class Corpus:
    """
    Ordered, validated collection of Documents.

    Parameters
    ----------
    documents : Iterable[Document]
        Documents in their source order.

    Raises
    ------
    InvalidDocumentIdentifier
        If two documents share an identifier, or an identifier is missing.
        Identifiers are compared with ==, so 1 and 1.0 count as the same.
    """

    def __init__(self, documents: Iterable[Document]):
        docs = tuple(documents)
        seen = {}
        for position, doc in enumerate(docs):
            if not isinstance(doc, Document):
                raise TypeError(
                    f"Corpus entries must be Document instances, got {type(doc).__name__} "
                    f"at position {position}."
                )
            if _is_missing_id(doc.doc_id):
                raise InvalidDocumentIdentifier(doc.doc_id, position)
            if doc.doc_id in seen:
                raise InvalidDocumentIdentifier(doc.doc_id, seen[doc.doc_id], position)
            seen[doc.doc_id] = position
        self._documents: Tuple[Document, ...] = docs

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_records(cls, records: Iterable[Tuple[DocId, Any]]) -> "Corpus":
        """Build a corpus from (doc_id, text) pairs."""
        return cls(Document(doc_id, text) for doc_id, text in records)

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        id_column: Optional[str] = "doc_id",
        text_column: str = "text",
    ) -> "Corpus":
        """
        Build a corpus from a DataFrame with (at least) an id and a text column.

        Parameters
        ----------
        df : pd.DataFrame
            Tabular corpus.
        id_column : Optional[str]
            Column holding document identifiers. If None, the positional row
            number is used as the identifier.
        text_column : str
            Column holding raw text.

        Returns
        -------
        Corpus
        """
        missing = [c for c in (id_column, text_column) if c is not None and c not in df.columns]
        if missing:
            raise ValueError(
                f"Missing required column(s) in corpus table: {missing}. "
                f"Available columns: {list(df.columns)}"
            )

        texts = df[text_column].tolist()
        if id_column is None:
            ids: List[DocId] = list(range(len(df)))
        else:
            ids = [_to_python_scalar(v) for v in df[id_column].tolist()]
        return cls(Document(doc_id, text) for doc_id, text in zip(ids, texts))

    # -- accessors ----------------------------------------------------------

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    @property
    def doc_ids(self) -> List[DocId]:
        return [d.doc_id for d in self._documents]

    @property
    def texts(self) -> List[str]:
        return [d.text for d in self._documents]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"doc_id": self.doc_ids, "text": self.texts},
            columns=["doc_id", "text"],
        )

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __getitem__(self, position: int) -> Document:
        return self._documents[position]

    def __repr__(self) -> str:
        return f"Corpus(n_documents={len(self)})"


def _to_python_scalar(value: Any) -> Any:
    # numpy integer ids from pandas would otherwise leak into artifacts.
    if hasattr(value, "item"):
        return value.item()
    return value


def as_corpus(documents: Union[Corpus, Sequence[Document], Iterable[Document]]) -> Corpus:
    """
    Return `documents` as a validated Corpus.

    An existing Corpus is passed through unchanged; any other iterable of
    Documents is wrapped (and its identifiers checked).
    """
    if isinstance(documents, Corpus):
        return documents
    return Corpus(documents)
