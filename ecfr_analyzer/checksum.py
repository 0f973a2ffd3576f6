"""
Deterministic fingerprints for titles and title collections.
"""

import hashlib
import logging
import zlib
from typing import Iterable

from .models import Title


logger = logging.getLogger(__name__)


def _field(value) -> str:
    return '' if value is None else str(value)


def canonical_string(title: Title) -> str:
    """The canonical form hashed for a title: number|name|content|word_count."""
    return '|'.join((
        _field(title.number),
        _field(title.name),
        _field(title.content),
        _field(title.word_count),
    ))


def _sha256_hex(text: str) -> str:
    """SHA-256 of text, degrading to a CRC-32 of the same input if hashing fails."""
    try:
        return hashlib.sha256(text.encode('utf-8')).hexdigest()
    except (UnicodeError, ValueError) as e:
        logger.warning(f"SHA-256 hashing failed, using CRC-32 fallback: {e}")
        return str(zlib.crc32(text.encode('utf-8', 'surrogatepass')))


def title_checksum(title: Title) -> str:
    """Fingerprint of a single title."""
    return _sha256_hex(canonical_string(title))


def _sort_key(title: Title):
    number = title.title_number
    # Titles without a numeric number go last
    return (number is None, number if number is not None else 0, _field(title.name),
            canonical_string(title))


def collection_checksum(titles: Iterable[Title]) -> str:
    """
    Fingerprint of a collection of titles.

    Titles are ordered by number before hashing, so the result does not
    depend on input order.
    """
    ordered = sorted(titles, key=_sort_key)
    return _sha256_hex('\n'.join(canonical_string(title) for title in ordered))
