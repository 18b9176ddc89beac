"""
Prepare a corpus for topic modeling.

This script is a convenience wrapper around
`topicprep.features.pipeline.run_preprocessing`, which:

- loads the configured corpus CSV
- normalizes every document (stopwords as configured)
- builds the vocabulary and the document-term matrix
- prunes the vocabulary as configured
- writes vocabulary, DTM, token table and summary under outputs/prepared/

Usage (from project root):

    python -m scripts.run_preprocessing
    # or
    python scripts/run_preprocessing.py --no-cache
"""

from __future__ import annotations

import argparse

from topicprep.evaluation.summary import summarize_dtm
from topicprep.features.pipeline import run_preprocessing
from topicprep.utils.run_utils import get_logger, load_run_config


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Normalize a corpus and build its document-term matrix."
    )
    parser.add_argument(
        "--data-config",
        type=str,
        default="config/data.yaml",
        help="Path to data config YAML (default: config/data.yaml).",
    )
    parser.add_argument(
        "--run-config",
        type=str,
        default="config/run.yaml",
        help="Path to run config YAML (default: config/run.yaml).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Recompute even if a cached artifact exists for this corpus.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    run_cfg = load_run_config(args.run_config)
    logger = get_logger(
        name="run_preprocessing",
        config=run_cfg,
        log_file_suffix="prepare",
    )

    logger.info("=" * 80)
    logger.info("Starting corpus preparation.")
    logger.info("Configs: data=%s, run=%s", args.data_config, args.run_config)

    prepared = run_preprocessing(
        data_config_path=args.data_config,
        run_config_path=args.run_config,
        use_cache=False if args.no_cache else None,
    )

    summary = summarize_dtm(prepared.dtm)
    if summary["n_terms"] > 0:
        logger.info("Corpus preparation completed. Summary: %s", summary)
    else:
        logger.warning("Corpus preparation finished, but the vocabulary is empty.")


if __name__ == "__main__":
    main()
