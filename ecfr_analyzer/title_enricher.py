"""
Title enrichment.

Walks the title catalog in order, resolving each title's agency, fetching
its structure and content, synthesizing fallback content when no candidate
date yields valid XML, and stamping checksum and timestamp. A failure on
one title never stops the run.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional

from .checksum import title_checksum
from .config import Config
from .content_extractor import ContentExtractor, count_words
from .data_loader import TitleAgencyLoader
from .dates import normalize_date, today
from .error_handler import ErrorCollector
from .estimators import estimate_word_count
from .models import PipelineResult, RESERVED_AGENCY, Title, UNKNOWN_AGENCY
from .progress_tracker import ProgressTracker


logger = logging.getLogger(__name__)


class TitleEnricher:
    """Enriches catalog title stubs, bounded by a per-run quota."""

    def __init__(self, extractor: ContentExtractor,
                 agency_loader: Optional[TitleAgencyLoader] = None,
                 max_titles: int = None,
                 error_collector: Optional[ErrorCollector] = None):
        """
        Initialize the enricher.

        Args:
            extractor: Fetches structure and content for a title
            agency_loader: Resolves the agency of a title number
            max_titles: Non-reserved titles to emit before stopping
            error_collector: Collects per-title failures
        """
        self.extractor = extractor
        self.agency_loader = agency_loader or TitleAgencyLoader()
        self.max_titles = Config.MAX_TITLES_PER_RUN if max_titles is None else max_titles
        self.error_collector = error_collector or ErrorCollector()

    def enrich_all(self, stubs: List[Title], show_progress: bool = False) -> PipelineResult:
        """
        Enrich title stubs in catalog order until the quota is reached.

        Reserved titles are emitted without fetching and do not count
        toward the quota.

        Args:
            stubs: Title stubs from the catalog
            show_progress: Whether to print progress to the console

        Returns:
            PipelineResult with the emitted titles and per-status counts
        """
        start_time = time.time()
        progress = ProgressTracker(min(len(stubs), self.max_titles), display=show_progress)
        progress.start()

        emitted: List[Title] = []
        counted = 0
        reserved = fallback = failed = 0

        for title in stubs:
            if counted >= self.max_titles:
                logger.info(f"Reached title limit ({self.max_titles}), stopping")
                break

            label = f"Title {title.number}: {title.name}"

            if title.reserved:
                self._stamp_reserved(title)
                emitted.append(title)
                reserved += 1
                logger.debug(f"Title {title.number} is reserved, skipping fetch")
                continue

            try:
                status = self.enrich_title(title)
            except Exception as e:
                self.error_collector.add_error(e, context=f"Title {title.number}")
                self._apply_fallbacks(title)
                status = 'failed'

            emitted.append(title)
            counted += 1
            if status == 'fallback':
                fallback += 1
            elif status == 'failed':
                failed += 1
            progress.update(label, status)

        progress.finish()

        result = PipelineResult(
            titles=emitted,
            processed_titles=counted,
            reserved_titles=reserved,
            fallback_titles=fallback,
            failed_titles=failed,
            execution_time=time.time() - start_time,
            timestamp=datetime.now(),
        )
        logger.info(f"Successfully processed {counted} titles "
                    f"({fallback} with fallback content, {failed} with errors)")
        return result

    def enrich_title(self, title: Title) -> str:
        """
        Enrich one non-reserved title in place.

        Returns:
            'enriched' when content was fetched, 'fallback' when it was synthesized
        """
        title.agency = self.agency_loader.resolve_agency(title.number)

        structure_date = normalize_date(title.latest_issue_date) or today()
        title.structure_data = self.extractor.fetch_structure(title, structure_date)

        content, accepted_date = self.extractor.extract_content(title)
        if content is not None:
            title.content = content
            title.word_count = count_words(content)
            status = 'enriched'
            logger.debug(f"Title {title.number} content taken from {accepted_date}")
            if len(content) > self.extractor.max_length:
                self.error_collector.add_warning(
                    f"Content truncated to {self.extractor.max_length} characters",
                    context=f"Title {title.number}")
        else:
            self._synthesize_content(title)
            status = 'fallback'
            self.error_collector.add_warning(
                "No valid content on any candidate date, using synthesized content",
                context=f"Title {title.number}")

        title.checksum = title_checksum(title)
        title.last_updated = datetime.now()

        logger.debug(f"Title {title.number} {status} ({title.word_count} words, "
                     f"agency {title.agency})")
        return status

    def _synthesize_content(self, title: Title) -> None:
        """Replace content with a synthesized description and an estimated word count."""
        title.content = (
            f"CFR Title {title.number}: {title.name} - "
            f"Last amended: {title.latest_amended_on or 'Unknown'} - "
            f"Issue date: {title.latest_issue_date or 'Unknown'}"
        )
        title.word_count = estimate_word_count(title.structure_data, title.name)

    def _apply_fallbacks(self, title: Title) -> None:
        """Fill whatever enrichment fields a failed title is still missing."""
        if not title.agency:
            title.agency = UNKNOWN_AGENCY
        if title.content is None:
            self._synthesize_content(title)
        title.checksum = title_checksum(title)
        title.last_updated = datetime.now()

    def _stamp_reserved(self, title: Title) -> None:
        title.agency = RESERVED_AGENCY
        title.checksum = title_checksum(title)
        title.last_updated = datetime.now()
