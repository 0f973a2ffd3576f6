"""
Agency aggregation over enriched titles.

Groups titles by resolved agency and builds per-agency metrics and the
corpus-wide analysis report.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .checksum import collection_checksum
from .complexity import complexity_score, regulatory_complexity_index
from .dates import normalize_date
from .error_handler import log_execution_time
from .models import AgencyMetrics, AnalysisReport, RESERVED_AGENCY, Title


logger = logging.getLogger(__name__)


METRIC_KEYS: Dict[str, Callable[[AgencyMetrics], float]] = {
    'regulations': lambda metrics: metrics.total_regulations,
    'words': lambda metrics: metrics.total_word_count,
    'complexity': lambda metrics: metrics.regulatory_complexity_index,
}


class AgencyAggregator:
    """Builds agency metrics and analysis reports from titles."""

    def __init__(self, recent_cutoff: str = None):
        """
        Initialize the aggregator.

        Args:
            recent_cutoff: Amendment date from which a title counts as recent
        """
        self.recent_cutoff = recent_cutoff

    def group_by_agency(self, titles: List[Title]) -> Dict[str, List[Title]]:
        """
        Group titles by agency name.

        Titles with a blank agency or the reserved sentinel are left out.
        """
        groups: Dict[str, List[Title]] = defaultdict(list)
        for title in titles:
            agency = (title.agency or '').strip()
            if not agency or agency == RESERVED_AGENCY:
                continue
            groups[agency].append(title)
        return dict(groups)

    def build_metrics(self, agency: str, titles: List[Title]) -> AgencyMetrics:
        """Compute the metrics of one agency's titles."""
        amendments = [d for d in (normalize_date(t.latest_amended_on) for t in titles) if d]

        return AgencyMetrics(
            agency_name=agency,
            total_regulations=len(titles),
            total_word_count=sum(title.word_count for title in titles),
            unique_titles=len({title.number for title in titles if title.number is not None}),
            checksum=collection_checksum(titles),
            regulatory_complexity_index=regulatory_complexity_index(titles),
            complexity_score=complexity_score(titles, self.recent_cutoff),
            latest_amendment=max(amendments) if amendments else None,
        )

    def generate_agency_metrics(self, titles: List[Title]) -> Dict[str, AgencyMetrics]:
        """Metrics for every agency, keyed by agency name in sorted order."""
        groups = self.group_by_agency(titles)
        return {agency: self.build_metrics(agency, groups[agency]) for agency in sorted(groups)}

    @log_execution_time
    def generate_report(self, titles: List[Title]) -> AnalysisReport:
        """
        Build the corpus-wide analysis report.

        Args:
            titles: Enriched titles

        Returns:
            AnalysisReport; zero totals and no top agencies for an empty input
        """
        agency_metrics = self.generate_agency_metrics(titles)
        included = [title for group in self.group_by_agency(titles).values() for title in group]

        report = AnalysisReport(
            total_regulations=sum(m.total_regulations for m in agency_metrics.values()),
            total_word_count=sum(m.total_word_count for m in agency_metrics.values()),
            total_agencies=len(agency_metrics),
            overall_checksum=collection_checksum(included) if included else None,
            agency_metrics=agency_metrics,
            most_regulations_agency=self._top_agency(agency_metrics, 'regulations'),
            most_words_agency=self._top_agency(agency_metrics, 'words'),
            highest_complexity_agency=self._top_agency(agency_metrics, 'complexity'),
            last_data_update=self._latest_update(titles),
        )

        logger.info(f"Analysis report generated with {report.total_agencies} agencies "
                    f"and {report.total_regulations} regulations")
        return report

    def top_agencies_by_metric(self, titles: List[Title], metric: str,
                               limit: int = 10) -> List[AgencyMetrics]:
        """
        Rank agencies by a metric.

        Args:
            titles: Enriched titles
            metric: 'regulations', 'words' or 'complexity' (RCI)
            limit: Maximum number of agencies to return

        Returns:
            At most limit agencies in descending metric order; ties keep
            agency name order

        Raises:
            ValueError: If the metric is unknown
        """
        key = self._metric_key(metric)
        if limit <= 0:
            return []

        # Metrics arrive in name order and sorted() is stable
        ranked = sorted(self.generate_agency_metrics(titles).values(), key=key, reverse=True)
        return ranked[:limit]

    @staticmethod
    def _metric_key(metric: str) -> Callable[[AgencyMetrics], float]:
        key = METRIC_KEYS.get((metric or '').lower())
        if key is None:
            raise ValueError(f"Unknown metric: {metric}. Supported: {', '.join(METRIC_KEYS)}")
        return key

    def _top_agency(self, agency_metrics: Dict[str, AgencyMetrics], metric: str) -> Optional[str]:
        """Agency with the highest metric; the first in name order wins ties."""
        key = self._metric_key(metric)
        best_name, best_value = None, None
        for name in sorted(agency_metrics):
            value = key(agency_metrics[name])
            if best_value is None or value > best_value:
                best_name, best_value = name, value
        return best_name

    @staticmethod
    def _latest_update(titles: List[Title]) -> Optional[datetime]:
        stamps = [title.last_updated for title in titles if title.last_updated]
        return max(stamps) if stamps else None
