"""
Date normalization for eCFR catalog dates.
"""

import re
import logging
from datetime import date, datetime
from typing import Any, Optional


logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_SLASH_DATE = re.compile(r'^\d{4}/\d{2}/\d{2}$')


def normalize_date(value: Any) -> Optional[str]:
    """
    Normalize a catalog date to canonical YYYY-MM-DD form.

    Accepts ISO dates, YYYY/MM/DD dates and anything else
    date.fromisoformat understands (ISO datetimes are cut to their date).

    Args:
        value: Raw date value from the catalog

    Returns:
        Canonical date string, or None when the value is empty or invalid
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    try:
        if _ISO_DATE.match(text):
            return date.fromisoformat(text).isoformat()

        if _SLASH_DATE.match(text):
            return datetime.strptime(text, '%Y/%m/%d').date().isoformat()

        return datetime.fromisoformat(text).date().isoformat()

    except ValueError as e:
        logger.debug(f"Could not normalize date: {text} - {e}")
        return None


def today() -> str:
    """Today's date in canonical form."""
    return date.today().isoformat()
