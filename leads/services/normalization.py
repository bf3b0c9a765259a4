"""
Sanitization service for validated lead data.
"""
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

WHITESPACE_RUN = re.compile(r'\s+')


def sanitize_value(value: Any) -> Any:
    """
    Sanitize a single value.

    - Strings: collapse whitespace runs to one space and trim
    - Anything else: unchanged
    """
    if isinstance(value, str):
        return WHITESPACE_RUN.sub(' ', value).strip()
    return value


def sanitize(lead_data: dict) -> dict:
    """
    Sanitizes validated lead data.

    Must only be applied to the output of validation, never to raw input.
    Applying it twice gives the same result as applying it once.

    Args:
        lead_data: Validated lead fields

    Returns:
        New dict with whitespace-normalized string values
    """
    if not lead_data:
        return {}

    sanitized = {key: sanitize_value(value) for key, value in lead_data.items()}
    logger.debug(f"Sanitized lead fields: {sorted(sanitized)}")
    return sanitized
