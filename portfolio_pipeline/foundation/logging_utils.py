"""Logging helpers that avoid heavy dependencies."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_pipeline_logger(
    run_id: str,
    *,
    level: str = "INFO",
    log_dir: str | None = None,
) -> tuple[logging.Logger, str | None]:
    """
    Configure a per-run logger (stdout + optional file) for a pipeline invocation.

    Returns (logger, log_file). `log_file` is None when no log directory is configured.
    """

    resolved_level = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    logger = logging.getLogger(f"portfolio_pipeline.{run_id}")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{run_id}_pipeline.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    logger.debug("Pipeline logging initialized for run %s", run_id)
    if log_file:
        logger.debug("Pipeline log file: %s", log_file)

    return logger, log_file
