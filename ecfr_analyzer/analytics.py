"""
Derived analytics built from a title snapshot.

Each builder returns plain JSON-serializable data; ReportGenerator writes
them out as the analytics artifacts.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from .aggregator import AgencyAggregator
from .dates import normalize_date
from .estimators import estimate_sections
from .models import Title, _format_timestamp


logger = logging.getLogger(__name__)


class AnalyticsBuilder:
    """Builds the derived analytics artifacts."""

    ARTIFACTS = (
        'word-counts',
        'checksums',
        'historical-changes',
        'complexity-scores',
        'agency-metrics',
        'title-summaries',
    )

    def __init__(self, aggregator: AgencyAggregator = None):
        self.aggregator = aggregator or AgencyAggregator()

    def build_all(self, titles: List[Title]) -> Dict[str, Any]:
        """
        Build every artifact.

        Returns:
            Mapping of artifact name to its data
        """
        builders = {
            'word-counts': self.word_counts,
            'checksums': self.checksums,
            'historical-changes': self.historical_changes,
            'complexity-scores': self.complexity_scores,
            'agency-metrics': self.agency_metrics,
            'title-summaries': self.title_summaries,
        }
        artifacts = {name: builders[name](titles) for name in self.ARTIFACTS}
        logger.info(f"Built {len(artifacts)} analytics artifacts from {len(titles)} titles")
        return artifacts

    def word_counts(self, titles: List[Title]) -> Dict[str, int]:
        """Agency name to total word count."""
        groups = self.aggregator.group_by_agency(titles)
        return {agency: sum(t.word_count for t in groups[agency]) for agency in sorted(groups)}

    def checksums(self, titles: List[Title]) -> Dict[str, str]:
        """Agency name to the fingerprint of its titles."""
        metrics = self.aggregator.generate_agency_metrics(titles)
        return {agency: m.checksum for agency, m in metrics.items()}

    def historical_changes(self, titles: List[Title]) -> List[Dict[str, Any]]:
        """Amendment records for titles with an amendment date, most recent first."""
        changes = []
        for title in titles:
            if not title.latest_amended_on:
                continue
            changes.append({
                'agency': title.agency,
                'title': title.number,
                'titleName': title.name,
                'date': title.latest_amended_on,
                'issueDate': title.latest_issue_date,
                'upToDate': title.up_to_date_as_of,
                'type': 'amendment',
                'description': f"Title {title.number} amended",
                'wordCount': title.word_count,
            })

        changes.sort(key=lambda change: normalize_date(change['date']) or '', reverse=True)
        return changes

    def complexity_scores(self, titles: List[Title]) -> Dict[str, float]:
        """Agency name to Complexity Score."""
        metrics = self.aggregator.generate_agency_metrics(titles)
        return {agency: m.complexity_score for agency, m in metrics.items()}

    def agency_metrics(self, titles: List[Title]) -> Dict[str, Dict[str, Any]]:
        """Consolidated per-agency statistics."""
        groups = self.aggregator.group_by_agency(titles)
        metrics = self.aggregator.generate_agency_metrics(titles)
        generated_at = _format_timestamp(datetime.now())

        consolidated = {}
        for agency, m in metrics.items():
            numbers = {t.number for t in groups[agency] if t.number is not None}
            consolidated[agency] = {
                'agencyName': agency,
                'totalWords': m.total_word_count,
                'totalRegulations': m.total_regulations,
                'cfrTitles': sorted(numbers, key=str),
                'checksum': m.checksum,
                'complexityScore': m.complexity_score,
                'regulatoryComplexityIndex': m.regulatory_complexity_index,
                'lastUpdated': generated_at,
                'latestAmendment': m.latest_amendment or 'Unknown',
            }
        return consolidated

    def title_summaries(self, titles: List[Title]) -> Dict[str, Dict[str, Any]]:
        """Title number to a per-title summary."""
        summaries = {}
        for title in titles:
            summaries[str(title.number)] = {
                'number': title.number,
                'name': title.name,
                'agency': title.agency,
                'wordCount': title.word_count,
                'reserved': title.reserved,
                'latestAmendedOn': title.latest_amended_on,
                'latestIssueDate': title.latest_issue_date,
                'upToDateAsOf': title.up_to_date_as_of,
                'checksum': title.checksum,
                'lastUpdated': _format_timestamp(title.last_updated),
                'estimatedSections': estimate_sections(title.structure_data),
            }
        return summaries
