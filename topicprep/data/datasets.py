"""
Corpus loading utilities.

This module is responsible for:
- reading the data configuration from config/data.yaml
- loading the raw CSV file into a pandas DataFrame
- normalizing the id and text columns to standard names ("doc_id", "text")
- applying basic cleaning (drop missing text) as configured

The resulting table is turned into a Corpus, which is the only thing the
normalizer and document-term-matrix builder ever see. Those components do
no file I/O themselves.
"""

from __future__ import annotations

import os
from typing import Any, Dict

import pandas as pd

from topicprep.data.corpus import Corpus
from topicprep.utils.run_utils import load_yaml_mapping


DEFAULT_DATA_CONFIG_PATH = "config/data.yaml"


def load_data_config(config_path: str = DEFAULT_DATA_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load the data configuration and check that the "dataset" and
    "preprocessing" sections are present (KeyError otherwise).
    """
    cfg = load_yaml_mapping(config_path, kind="Data config")

    for section in ("dataset", "preprocessing"):
        if section not in cfg:
            raise KeyError(f'Missing "{section}" section in data config: {config_path}')

    return cfg


def load_corpus_frame(
    config_path: str = DEFAULT_DATA_CONFIG_PATH,
) -> pd.DataFrame:
    """
    Load the configured corpus CSV as a DataFrame.

    This function:
    - reads the CSV specified in config/data.yaml
    - ensures the id and text columns exist
    - optionally drops rows with missing text
    - normalizes columns to standard names: "doc_id", "text"

    When no id column is configured, the row number becomes the id.

    Parameters
    ----------
    config_path : str, optional
        Path to the data YAML configuration file.

    Returns
    -------
    pd.DataFrame
        DataFrame with at least the columns ["doc_id", "text"].

    Raises
    ------
    FileNotFoundError
        If the corpus CSV file cannot be found.
    ValueError
        If required columns are missing.
    """
    cfg = load_data_config(config_path)
    dataset_cfg = cfg["dataset"]

    csv_path = dataset_cfg.get("path", "data/raw/corpus.csv")
    id_column = dataset_cfg.get("id_column", "doc_id")
    text_column = dataset_cfg.get("text_column", "text")
    drop_na_text = bool(dataset_cfg.get("drop_na_text", False))

    if not os.path.exists(csv_path):
        raise FileNotFoundError(f"Corpus CSV not found at: {csv_path}")

    df = pd.read_csv(csv_path)

    required = [c for c in (id_column, text_column) if c]
    missing_cols = [col for col in required if col not in df.columns]
    if missing_cols:
        raise ValueError(
            f"Missing required column(s) in corpus CSV: {missing_cols}. "
            f"Available columns: {list(df.columns)}"
        )

    if drop_na_text:
        df = df.dropna(subset=[text_column])

    df = df.reset_index(drop=True)

    if not id_column:
        if "doc_id" in df.columns:
            df = df.drop(columns=["doc_id"])
        df.insert(0, "doc_id", range(len(df)))
    elif id_column != "doc_id":
        if "doc_id" in df.columns:
            df = df.drop(columns=["doc_id"])
        df = df.rename(columns={id_column: "doc_id"})
    if text_column != "text":
        if "text" in df.columns:
            df = df.drop(columns=["text"])
        df = df.rename(columns={text_column: "text"})

    # Missing text stays missing here; Document treats it as empty.
    return df


def load_corpus(config_path: str = DEFAULT_DATA_CONFIG_PATH) -> Corpus:
    """
    Load the configured corpus CSV and wrap it as a validated Corpus.

    Raises
    ------
    InvalidDocumentIdentifier
        If the id column contains duplicates.
    """
    df = load_corpus_frame(config_path)
    return Corpus.from_dataframe(df, id_column="doc_id", text_column="text")
