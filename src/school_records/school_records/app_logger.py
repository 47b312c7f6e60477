from __future__ import annotations

import logging
import os

_DEFAULT_LEVEL = os.getenv("SCHOOL_RECORDS_LOG_LEVEL", "INFO").upper()


def setup_logging(level: str | None = None) -> logging.Logger:
    """Library-friendly: do NOT touch root or add real handlers.

    Ensure the 'school_records' logger exists, set its level and add a
    NullHandler so embedding apps decide where records go.
    """
    logger = logging.getLogger("school_records")
    logger.setLevel(getattr(logging, (level or _DEFAULT_LEVEL).upper(), logging.INFO))
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    logger.propagate = True
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger("school_records")
    return base.getChild(name) if name else base


logger = setup_logging()
