"""
Content extractor for eCFR titles.

Handles fetching title structure and full XML content, trying each candidate
date in turn, validating the payload and reducing the markup to plain text.
"""

import logging
from typing import List, Optional, Tuple
from bs4 import BeautifulSoup

from .api_client import ECFRClient
from .config import Config
from .dates import normalize_date
from .error_handler import ContentValidationFailure, ECFRAnalyzerError, StorageFailure
from .models import Title
from .storage import SnapshotStorage

logger = logging.getLogger(__name__)


class ContentExtractor:
    """Extracts title content with multi-date fallback."""

    def __init__(self, client: ECFRClient, storage: Optional[SnapshotStorage] = None,
                 archive_raw: bool = False, min_length: int = None,
                 max_length: int = None, fallback_date: str = None):
        """
        Initialize the content extractor.

        Args:
            client: eCFR API client
            storage: Storage used to archive raw payloads
            archive_raw: Whether to archive accepted payloads
            min_length: Minimum trimmed payload length (exclusive)
            max_length: Maximum plain-text length before truncation
            fallback_date: Last candidate date tried for every title
        """
        self.client = client
        self.storage = storage
        self.archive_raw = archive_raw and storage is not None
        self.min_length = Config.MIN_CONTENT_LENGTH if min_length is None else min_length
        self.max_length = max_length or Config.MAX_CONTENT_LENGTH
        self.fallback_date = fallback_date or Config.FALLBACK_CONTENT_DATE

    def candidate_dates(self, title: Title) -> List[str]:
        """
        Candidate dates for a content fetch, in the order they are tried.

        Empty or invalid dates are skipped and duplicates are kept once.
        """
        candidates = []
        for raw in (title.latest_issue_date, title.up_to_date_as_of,
                    title.latest_amended_on, self.fallback_date):
            normalized = normalize_date(raw)
            if normalized and normalized not in candidates:
                candidates.append(normalized)
        return candidates

    def fetch_structure(self, title: Title, date: str) -> Optional[str]:
        """
        Fetch the structure payload of a title.

        Args:
            title: Title to fetch
            date: Canonical date to fetch at

        Returns:
            Raw structure JSON, or None when the fetch failed
        """
        try:
            structure = self.client.get_structure(date, title.number)
        except ECFRAnalyzerError as e:
            logger.debug(f"Structure fetch failed for title {title.number} at {date}: {e}")
            return None

        self._archive(f"title-{title.number}-structure.json", structure)
        return structure

    def extract_content(self, title: Title) -> Tuple[Optional[str], Optional[str]]:
        """
        Fetch content across candidate dates.

        Args:
            title: Title to fetch content for

        Returns:
            Tuple of (plain text content, accepted date); (None, None) when
            no candidate produced acceptable content
        """
        for date in self.candidate_dates(title):
            logger.debug(f"Fetching XML content for title {title.number} with date {date}")
            try:
                raw = self.client.get_full_content(date, title.number)
                self.validate_content(raw)
            except ContentValidationFailure as e:
                logger.debug(f"Rejected content for title {title.number} at {date}: {e}")
                continue
            except ECFRAnalyzerError as e:
                logger.debug(f"Content fetch failed for title {title.number} at {date}: {e}")
                continue

            self._archive(f"title-{title.number}.xml", raw)
            logger.debug(f"Accepted content for title {title.number} at {date}")
            return self.strip_markup(raw), date

        logger.warning(f"No valid content found for title {title.number} on any candidate date")
        return None, None

    def validate_content(self, raw: Optional[str]) -> None:
        """
        Check that a payload looks like CFR XML.

        Raises:
            ContentValidationFailure: If the payload is too short or carries
                neither a <CFR> element nor an XML declaration
        """
        if raw is None:
            raise ContentValidationFailure("Empty content payload")

        trimmed = raw.strip()
        if len(trimmed) <= self.min_length:
            raise ContentValidationFailure(
                f"Content too short ({len(trimmed)} chars), likely not actual title content"
            )

        if '<CFR>' not in raw and '<?xml' not in raw:
            raise ContentValidationFailure("Content is not CFR XML")

    def strip_markup(self, raw: str) -> str:
        """
        Reduce markup to plain text.

        Tags are removed, whitespace is collapsed and text longer than the
        maximum length is truncated with a trailing "...".
        """
        if not raw:
            return ""

        soup = BeautifulSoup(raw, 'html.parser')
        text = soup.get_text(separator=' ')

        # Clean up whitespace
        text = ' '.join(text.split())

        if len(text) > self.max_length:
            logger.debug(f"Content truncated from {len(text)} to {self.max_length} characters")
            text = text[:self.max_length] + "..."

        return text

    def _archive(self, file_name: str, content: str) -> None:
        if not self.archive_raw:
            return
        try:
            self.storage.save_raw(file_name, content)
        except StorageFailure as e:
            logger.warning(f"Could not archive {file_name}: {e}")


def count_words(content: Optional[str]) -> int:
    """Count words by whitespace tokenization."""
    if not content:
        return 0
    return len(content.split())
