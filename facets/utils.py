"""
Utility functions for logging, text normalization and tolerant number coercion.
"""
import logging
import math
import re
from typing import Any, Optional


def init_logger(
    name: str = "facets",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "facets.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def clean_text(s: Any) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if s is None:
        return ""
    s = re.sub(r"\s+", " ", str(s))
    return s.strip()


def strip_text(s: Any) -> str:
    """Trim surrounding whitespace only; inner spacing is kept as written."""
    if s is None:
        return ""
    return str(s).strip()


def to_int(value: Any) -> Optional[int]:
    """
    Coerce ids coming from loosely typed payloads.

    Accepts ints, integral floats and numeric strings ("12", " 12 ", "12.0").
    Returns None for anything else, including booleans.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def to_float(value: Any) -> Optional[float]:
    """Safely convert a price-like value to float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).replace(",", "").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None
