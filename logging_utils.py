"""
Logging utilities for Niche Scout

Run-scoped file logging for CLI analyses and structured error details for the
HTTP layer.
"""

import logging
import re
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")[:40] or "analysis"


def setup_run_logging(log_dir: str, product_name: str) -> Tuple[logging.Logger, str]:
    """
    Configure the ROOT logger for one analysis run.

    Child loggers (agent, connectors, chart synthesis) propagate to root, so a
    single file captures the full tool-call trail.

    Args:
        log_dir: Directory for the run log
        product_name: Product being analyzed, used in the file name

    Returns:
        Tuple of (run_logger, log_file_path)
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file_path = str(Path(log_dir) / f"run_{_slug(product_name)}_{timestamp}.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    file_handler = logging.FileHandler(log_file_path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # Third-party HTTP clients are noisy at DEBUG
    for noisy in ("httpx", "httpcore", "openai", "mcp"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    run_logger = logging.getLogger("scout_run")
    run_logger.info("=" * 70)
    run_logger.info("Niche Scout - Run Log")
    run_logger.info(f"Product: {product_name}")
    run_logger.info(f"Log File: {log_file_path}")
    run_logger.info(f"Started: {datetime.now().isoformat()}")
    run_logger.info("=" * 70)

    return run_logger, log_file_path


def log_exception(logger: logging.Logger, exc: Exception, context: str = "", **kwargs: Any) -> None:
    error_msg = f"Exception occurred: {type(exc).__name__}: {exc}"
    if context:
        error_msg = f"{context} - {error_msg}"
    logger.error(error_msg)
    logger.error("Traceback:\n%s", "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    if kwargs:
        logger.error(f"Context: {kwargs}")


def get_error_info(exc: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Structured error description; `message` feeds the API's details field."""
    return {
        "error_type": type(exc).__name__,
        "message": str(exc),
        "timestamp": datetime.now().isoformat(),
        "context": context or {},
    }
