"""
The eCFR acquisition, enrichment and aggregation pipeline.

One run fetches the catalogs, enriches titles sequentially, persists the
snapshot and records the processing state. Report queries read the last
persisted snapshot and never trigger fetching. At most one run is active
per pipeline instance.
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .aggregator import AgencyAggregator
from .analytics import AnalyticsBuilder
from .api_client import ECFRClient
from .catalog_fetcher import CatalogFetcher
from .config import Config
from .content_extractor import ContentExtractor
from .data_loader import TitleAgencyLoader
from .error_handler import (
    CatalogUnavailableError, ErrorCollector, PipelineBusyError, log_execution_time
)
from .models import Agency, AgencyMetrics, AnalysisReport, PipelineResult
from .storage import SnapshotStorage
from .title_enricher import TitleEnricher


logger = logging.getLogger(__name__)


class RunState(Enum):
    """Run-exclusion state of a pipeline."""
    IDLE = 'idle'
    RUNNING = 'running'


class ECFRPipeline:
    """Coordinates catalog fetching, enrichment, persistence and reporting."""

    def __init__(self, client: Optional[ECFRClient] = None,
                 storage: Optional[SnapshotStorage] = None,
                 agency_loader: Optional[TitleAgencyLoader] = None,
                 aggregator: Optional[AgencyAggregator] = None,
                 max_titles: int = None, archive_raw: bool = None,
                 show_progress: bool = False):
        """
        Initialize the pipeline.

        Args:
            client: eCFR API client
            storage: Snapshot storage
            agency_loader: Title-to-agency table
            aggregator: Agency aggregator used for reports
            max_titles: Non-reserved titles to enrich per run
            archive_raw: Whether to archive raw API payloads
            show_progress: Whether to print enrichment progress
        """
        self.client = client or ECFRClient()
        self.storage = storage or SnapshotStorage()
        self.agency_loader = agency_loader or TitleAgencyLoader()
        self.aggregator = aggregator or AgencyAggregator()
        self.max_titles = Config.MAX_TITLES_PER_RUN if max_titles is None else max_titles
        self.show_progress = show_progress

        archive_raw = Config.ARCHIVE_RAW_PAYLOADS if archive_raw is None else archive_raw
        self.catalog_fetcher = CatalogFetcher(self.client, self.storage, archive_raw)
        self.extractor = ContentExtractor(self.client, self.storage, archive_raw)

        self.agencies: Dict[str, Agency] = {}
        self.last_errors: Optional[ErrorCollector] = None
        self._state = RunState.IDLE
        self._state_lock = threading.Lock()
        self._last_run_time: Optional[datetime] = None

    def __enter__(self) -> 'ECFRPipeline':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _try_start(self) -> bool:
        """Move IDLE to RUNNING; False when a run is already active."""
        with self._state_lock:
            if self._state is RunState.RUNNING:
                return False
            self._state = RunState.RUNNING
            return True

    def _finish(self) -> None:
        with self._state_lock:
            self._state = RunState.IDLE

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._state is RunState.RUNNING

    @property
    def last_run_time(self) -> Optional[datetime]:
        """Completion time of the last run, falling back to the stored snapshot time."""
        return self._last_run_time or self.storage.last_update_time()

    @log_execution_time
    def run_pipeline(self) -> PipelineResult:
        """
        Run a full refresh: fetch catalogs, enrich titles, persist the snapshot.

        Returns:
            PipelineResult of the run

        Raises:
            PipelineBusyError: If a run is already in progress
            CatalogUnavailableError: If the title catalog could not be fetched;
                the previous snapshot is left untouched
            StorageFailure: If the snapshot cannot be written
        """
        if not self._try_start():
            raise PipelineBusyError("A pipeline run is already in progress")

        try:
            logger.info("Starting eCFR data sync")

            self.agencies = self.catalog_fetcher.fetch_agencies()
            stubs = self.catalog_fetcher.fetch_title_catalog()
            if not stubs:
                raise CatalogUnavailableError("Title catalog is empty or unavailable")

            collector = ErrorCollector()
            enricher = TitleEnricher(self.extractor, self.agency_loader,
                                     self.max_titles, collector)
            result = enricher.enrich_all(stubs, show_progress=self.show_progress)

            self.storage.save(result.titles)
            self.storage.save_state(result.processed_titles, 'completed')

            self.last_errors = collector
            self._last_run_time = datetime.now()

            if collector.has_errors():
                logger.warning(f"Run completed with {len(collector.errors)} title errors")
            if collector.has_warnings():
                logger.warning(f"Run completed with {len(collector.warnings)} warnings")
            logger.info(f"eCFR data sync completed: {len(result.titles)} titles saved")
            return result

        finally:
            self._finish()

    def generate_report(self) -> AnalysisReport:
        """Build an analysis report from the stored snapshot."""
        report = self.aggregator.generate_report(self.storage.load())
        stored_update = self.storage.last_update_time()
        if stored_update:
            report.last_data_update = stored_update
        return report

    def top_agencies_by_metric(self, metric: str, limit: int = 10) -> List[AgencyMetrics]:
        """
        Rank agencies in the stored snapshot.

        Args:
            metric: 'regulations', 'words' or 'complexity'
            limit: Maximum number of agencies to return

        Raises:
            ValueError: If the metric is unknown
        """
        return self.aggregator.top_agencies_by_metric(self.storage.load(), metric, limit)

    def build_analytics(self) -> Dict[str, Any]:
        """Build the derived analytics artifacts from the stored snapshot."""
        return AnalyticsBuilder(self.aggregator).build_all(self.storage.load())

    def get_status(self) -> Dict[str, Any]:
        """Snapshot metadata, last-run state and whether a run is active."""
        return {
            'running': self.is_running,
            'has_data': self.storage.has_existing_data(),
            'metadata': self.storage.load_metadata(),
            'last_run': self.storage.load_state(),
        }

    def close(self) -> None:
        """Release the API client."""
        self.client.close()
