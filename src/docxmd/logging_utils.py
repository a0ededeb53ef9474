"""Logging setup for the docxmd command line."""

from __future__ import annotations

import logging
import sys
from typing import Optional

# Third-party loggers that are chatty at DEBUG and not useful to docxmd users
_QUIET_LOGGERS = ("docx", "bs4")


def resolve_log_level(log_level: int | str) -> int:
    """Turn a level name such as ``"info"`` into its numeric value.

    Unknown names resolve to ``logging.INFO``.
    """
    if isinstance(log_level, int):
        return log_level
    resolved = logging.getLevelName(str(log_level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Install the root handlers used by the CLI.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name (e.g., "INFO").
    log_file : str, optional
        Path of a file that receives a copy of the log output.
    trace_mode : bool, default False
        Include timestamps and logger names in every record.

    Returns
    -------
    logging.Logger
        The configured root logger.

    """
    level = resolve_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if trace_mode:
        formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", "%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root_logger.warning("Could not open log file %s: %s", log_file, exc)
        else:
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("Logging to file: %s", log_file)

    if not trace_mode:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger
