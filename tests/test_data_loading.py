"""
Tests for corpus loading utilities.

These tests validate that:

- the shipped config/data.yaml loads and has the expected sections
- the CSV loader maps configured columns to "doc_id" / "text"
- configuration and column problems raise descriptive errors
- duplicate or missing identifiers in the source table are rejected
"""

from __future__ import annotations

import os

import pandas as pd
import pytest
import yaml

from topicprep.data.corpus import Corpus, InvalidDocumentIdentifier
from topicprep.data.datasets import load_corpus, load_corpus_frame, load_data_config


ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _write_data_config(tmp_path, df, **dataset_overrides):
    csv_path = tmp_path / "corpus.csv"
    df.to_csv(csv_path, index=False)
    dataset = {"path": str(csv_path), "id_column": "doc_id", "text_column": "text"}
    dataset.update(dataset_overrides)
    cfg_path = tmp_path / "data.yaml"
    cfg_path.write_text(
        yaml.safe_dump({"dataset": dataset, "preprocessing": {}}), encoding="utf-8"
    )
    return str(cfg_path)


def test_shipped_data_config_has_required_sections():
    cfg = load_data_config(os.path.join(ROOT, "config", "data.yaml"))

    assert "dataset" in cfg
    assert "preprocessing" in cfg
    assert "text_column" in cfg["dataset"]
    assert cfg["preprocessing"]["stopwords"]["source"] in {"sklearn", "nltk", "none"}


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data_config(str(tmp_path / "nope.yaml"))


def test_empty_config_file_raises(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_data_config(str(path))


def test_missing_section_raises(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text(yaml.safe_dump({"dataset": {}}), encoding="utf-8")
    with pytest.raises(KeyError):
        load_data_config(str(path))


def test_load_corpus_renames_configured_columns(tmp_path):
    df = pd.DataFrame({"review_id": [10, 11], "body": ["Great hotel.", "Noisy room."]})
    cfg_path = _write_data_config(tmp_path, df, id_column="review_id", text_column="body")

    frame = load_corpus_frame(cfg_path)
    assert {"doc_id", "text"} <= set(frame.columns)

    corpus = load_corpus(cfg_path)
    assert corpus.doc_ids == [10, 11]
    assert all(type(i) is int for i in corpus.doc_ids)
    assert corpus.texts == ["Great hotel.", "Noisy room."]


def test_row_number_ids_when_no_id_column(tmp_path):
    df = pd.DataFrame({"text": ["one", "two", "three"]})
    cfg_path = _write_data_config(tmp_path, df, id_column=None)
    assert load_corpus(cfg_path).doc_ids == [0, 1, 2]


def test_missing_text_is_kept_or_dropped(tmp_path):
    df = pd.DataFrame({"doc_id": ["a", "b"], "text": ["hello", None]})

    kept = load_corpus(_write_data_config(tmp_path, df))
    assert kept.texts == ["hello", ""]

    dropped = load_corpus(_write_data_config(tmp_path, df, drop_na_text=True))
    assert dropped.doc_ids == ["a"]


def test_missing_column_raises(tmp_path):
    df = pd.DataFrame({"doc_id": [1], "content": ["x"]})
    with pytest.raises(ValueError):
        load_corpus_frame(_write_data_config(tmp_path, df))


def test_missing_csv_raises(tmp_path):
    cfg_path = tmp_path / "data.yaml"
    cfg_path.write_text(
        yaml.safe_dump(
            {"dataset": {"path": str(tmp_path / "missing.csv")}, "preprocessing": {}}
        ),
        encoding="utf-8",
    )
    with pytest.raises(FileNotFoundError):
        load_corpus_frame(str(cfg_path))


def test_duplicate_ids_in_table_are_rejected(tmp_path):
    df = pd.DataFrame({"doc_id": [1, 1], "text": ["a", "b"]})
    with pytest.raises(InvalidDocumentIdentifier):
        load_corpus(_write_data_config(tmp_path, df))


def test_corpus_round_trips_through_dataframe():
    corpus = Corpus.from_records([("x", "first"), ("y", "second")])
    frame = corpus.to_dataframe()
    assert list(frame.columns) == ["doc_id", "text"]
    assert Corpus.from_dataframe(frame).doc_ids == ["x", "y"]


def test_missing_ids_in_table_are_rejected(tmp_path):
    df = pd.DataFrame({"doc_id": ["a", None, "c"], "text": ["x", "y", "z"]})
    with pytest.raises(InvalidDocumentIdentifier) as excinfo:
        load_corpus(_write_data_config(tmp_path, df))
    assert excinfo.value.first_position == 1
    assert excinfo.value.second_position is None


def test_missing_id_in_records_is_rejected():
    with pytest.raises(InvalidDocumentIdentifier):
        Corpus.from_records([(None, "text")])


def test_row_number_ids_replace_existing_doc_id_column(tmp_path):
    df = pd.DataFrame({"doc_id": ["x", "y"], "text": ["one", "two"]})
    cfg_path = _write_data_config(tmp_path, df, id_column=None)

    frame = load_corpus_frame(cfg_path)
    assert list(frame.columns).count("doc_id") == 1
    assert load_corpus(cfg_path).doc_ids == [0, 1]


def test_non_mapping_config_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- dataset\n- preprocessing\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_data_config(str(path))
