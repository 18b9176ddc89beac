"""
Run configuration and utility helpers.

This module centralizes common functionality used across the project:

- loading the global run configuration (config/run.yaml)
- ensuring directories exist before writing files
- constructing loggers that respect config/logging settings

The preprocessing pipeline and the command-line scripts rely on these
utilities.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml


DEFAULT_RUN_CONFIG_PATH = "config/run.yaml"


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_yaml_mapping(path: str, kind: str = "Config") -> Dict[str, Any]:
    """
    Read a YAML file whose top level is a mapping.

    Parameters
    ----------
    path : str
        Path to the YAML file.
    kind : str
        Label used in error messages ("Run config", "Data config", ...).

    Returns
    -------
    Dict[str, Any]

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is empty or its top level is not a mapping.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"{kind} file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)

    if cfg is None:
        raise ValueError(f"{kind} file is empty: {path}")
    if not isinstance(cfg, dict):
        raise ValueError(
            f"{kind} file must contain a mapping at top level, "
            f"got {type(cfg).__name__}: {path}"
        )
    return cfg


def load_run_config(
    config_path: str = DEFAULT_RUN_CONFIG_PATH,
) -> Dict[str, Any]:
    """
    Load the run configuration ("paths", "logging", "cache" sections).

    Sections are not validated here; callers read what they need with
    defaults.
    """
    return load_yaml_mapping(config_path, kind="Run config")


# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------


def ensure_dir_exists(path: str) -> None:
    """
    Ensure that a directory exists (create it if necessary).

    Parameters
    ----------
    path : str
        Directory path.
    """
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------


def _parse_log_level(level_str: str) -> int:
    """
    Convert a string log level into a logging module constant.

    Unknown names fall back to INFO.
    """
    level = logging.getLevelName(str(level_str or "INFO").upper())
    # getLevelName returns "Level <name>" for names it does not know.
    return level if isinstance(level, int) else logging.INFO


def log_file_path(config: Dict[str, Any], log_file_suffix: Optional[str] = None) -> str:
    """
    Path of the log file for a run: <logs_dir>/<file_prefix>[_<suffix>].log
    """
    logging_cfg = config.get("logging", {}) or {}
    paths_cfg = config.get("paths", {}) or {}

    stem = logging_cfg.get("file_prefix", "topicprep")
    if log_file_suffix:
        stem = f"{stem}_{log_file_suffix}"
    return os.path.join(paths_cfg.get("logs_dir", "outputs/logs"), stem + ".log")


def get_logger(
    name: str,
    config: Dict[str, Any],
    log_file_suffix: Optional[str] = None,
) -> logging.Logger:
    """
    Construct and return a logger that respects the logging section of
    the global run config.

    Parameters
    ----------
    name : str
        Logger name.
    config : Dict[str, Any]
        Global run configuration.
    log_file_suffix : Optional[str]
        Optional suffix appended to the log file name (e.g., "prepare").

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    # If the logger already has handlers, assume it's already configured.
    if logger.handlers:
        return logger

    logging_cfg = config.get("logging", {}) or {}
    level = _parse_log_level(logging_cfg.get("level", "INFO"))
    logger.setLevel(level)

    handlers = [logging.StreamHandler()]
    if bool(logging_cfg.get("to_file", True)):
        path = log_file_path(config, log_file_suffix)
        ensure_dir_exists(os.path.dirname(path))
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Handlers are attached here; do not duplicate records on the root logger.
    logger.propagate = False
    return logger
