"""
Data models for the eCFR Analyzer.

This module defines the core data structures used throughout the application
for representing agencies, CFR titles, per-agency metrics and analysis reports.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


RESERVED_AGENCY = "Reserved"
UNKNOWN_AGENCY = "Unknown Agency"


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp with full (microsecond) precision."""
    if value is None:
        return None
    return value.isoformat(timespec='microseconds')


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class Agency:
    """Represents an issuing agency from the eCFR agency catalog."""
    slug: str
    name: str
    short_name: Optional[str] = None
    display_name: Optional[str] = None
    sortable_name: Optional[str] = None
    children: tuple = ()
    cfr_references: tuple = ()

    def __post_init__(self):
        """Validate agency data after initialization."""
        if not self.name or not self.slug:
            raise ValueError("Agency name and slug are required")

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Agency':
        """Build an agency from one entry of the agencies payload."""
        return cls(
            slug=data.get('slug') or '',
            name=data.get('name') or '',
            short_name=data.get('short_name'),
            display_name=data.get('display_name'),
            sortable_name=data.get('sortable_name'),
            children=tuple(child.get('slug') for child in data.get('children') or []
                           if isinstance(child, dict) and child.get('slug')),
            cfr_references=tuple(ref for ref in data.get('cfr_references') or []
                                 if isinstance(ref, dict)),
        )


@dataclass
class Title:
    """Represents a CFR title: catalog fields plus enrichment fields."""
    number: Union[int, str, None]
    name: str
    reserved: bool = False
    latest_amended_on: Optional[str] = None
    latest_issue_date: Optional[str] = None
    up_to_date_as_of: Optional[str] = None

    # Enrichment fields, unset until the enricher runs
    agency: Optional[str] = None
    content: Optional[str] = None
    word_count: int = 0
    structure_data: Optional[str] = None
    checksum: Optional[str] = None
    last_updated: Optional[datetime] = None

    def __post_init__(self):
        """Validate title data after initialization."""
        if self.word_count < 0:
            raise ValueError("Word count cannot be negative")

    @property
    def title_number(self) -> Optional[int]:
        """The title number as an integer, or None when it is not numeric."""
        if isinstance(self.number, bool):
            return None
        if isinstance(self.number, int):
            return self.number
        try:
            return int(str(self.number).strip())
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Title':
        """
        Build a title stub from one entry of the titles payload.

        Args:
            data: Title dictionary from the eCFR titles endpoint

        Returns:
            Title stub carrying only catalog fields
        """
        raw_number = data.get('number')
        try:
            number = int(raw_number)
        except (TypeError, ValueError):
            number = raw_number

        return cls(
            number=number,
            name=data.get('name') or '',
            reserved=bool(data.get('reserved', False)),
            latest_amended_on=data.get('latest_amended_on'),
            latest_issue_date=data.get('latest_issue_date'),
            up_to_date_as_of=data.get('up_to_date_as_of'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the title for the snapshot."""
        return {
            'number': self.number,
            'name': self.name,
            'reserved': self.reserved,
            'latest_amended_on': self.latest_amended_on,
            'latest_issue_date': self.latest_issue_date,
            'up_to_date_as_of': self.up_to_date_as_of,
            'agency': self.agency,
            'content': self.content,
            'word_count': self.word_count,
            'structure_data': self.structure_data,
            'checksum': self.checksum,
            'last_updated': _format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Title':
        """Deserialize a title written by to_dict."""
        return cls(
            number=data.get('number'),
            name=data.get('name') or '',
            reserved=bool(data.get('reserved', False)),
            latest_amended_on=data.get('latest_amended_on'),
            latest_issue_date=data.get('latest_issue_date'),
            up_to_date_as_of=data.get('up_to_date_as_of'),
            agency=data.get('agency'),
            content=data.get('content'),
            word_count=int(data.get('word_count') or 0),
            structure_data=data.get('structure_data'),
            checksum=data.get('checksum'),
            last_updated=_parse_timestamp(data.get('last_updated')),
        )


@dataclass
class AgencyMetrics:
    """Volume and complexity metrics for one agency's titles."""
    agency_name: str
    total_regulations: int = 0
    total_word_count: int = 0
    unique_titles: int = 0
    checksum: Optional[str] = None
    regulatory_complexity_index: float = 0.0
    complexity_score: float = 1.0
    latest_amendment: Optional[str] = None
    last_updated: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Validate metrics after initialization."""
        if self.total_regulations < 0 or self.total_word_count < 0:
            raise ValueError("Regulation and word counts cannot be negative")

    @property
    def average_words_per_regulation(self) -> float:
        """Average words per regulation, derived from the current counts."""
        if self.total_regulations == 0:
            return 0.0
        return self.total_word_count / self.total_regulations

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agency_name': self.agency_name,
            'total_regulations': self.total_regulations,
            'total_word_count': self.total_word_count,
            'average_words_per_regulation': round(self.average_words_per_regulation, 2),
            'unique_titles': self.unique_titles,
            'checksum': self.checksum,
            'regulatory_complexity_index': self.regulatory_complexity_index,
            'complexity_score': self.complexity_score,
            'latest_amendment': self.latest_amendment,
            'last_updated': _format_timestamp(self.last_updated),
        }


@dataclass
class AnalysisReport:
    """Corpus-wide analysis built from a title snapshot."""
    total_regulations: int = 0
    total_word_count: int = 0
    total_agencies: int = 0
    overall_checksum: Optional[str] = None
    agency_metrics: Dict[str, AgencyMetrics] = field(default_factory=dict)
    most_regulations_agency: Optional[str] = None
    most_words_agency: Optional[str] = None
    highest_complexity_agency: Optional[str] = None
    generated_at: datetime = field(default_factory=datetime.now)
    last_data_update: Optional[datetime] = None

    def __post_init__(self):
        """Validate report totals after initialization."""
        if self.total_agencies != len(self.agency_metrics):
            raise ValueError("Total agencies must match agency metrics length")

    def get_summary(self) -> str:
        """Generate a human-readable summary of the report."""
        return (
            f"Analyzed {self.total_regulations} regulations across "
            f"{self.total_agencies} agencies\n"
            f"Total words: {self.total_word_count:,}\n"
            f"Most regulations: {self.most_regulations_agency or 'n/a'}\n"
            f"Most words: {self.most_words_agency or 'n/a'}\n"
            f"Highest complexity: {self.highest_complexity_agency or 'n/a'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_regulations': self.total_regulations,
            'total_word_count': self.total_word_count,
            'total_agencies': self.total_agencies,
            'overall_checksum': self.overall_checksum,
            'most_regulations_agency': self.most_regulations_agency,
            'most_words_agency': self.most_words_agency,
            'highest_complexity_agency': self.highest_complexity_agency,
            'generated_at': _format_timestamp(self.generated_at),
            'last_data_update': _format_timestamp(self.last_data_update),
            'agency_metrics': {
                name: metrics.to_dict() for name, metrics in self.agency_metrics.items()
            },
        }


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""
    titles: List[Title]
    processed_titles: int
    reserved_titles: int
    fallback_titles: int
    failed_titles: int
    execution_time: float
    timestamp: datetime

    def get_summary(self) -> str:
        """Generate a human-readable summary of the run."""
        return (
            f"Emitted {len(self.titles)} titles in {self.execution_time:.1f}s\n"
            f"Enriched: {self.processed_titles} | Reserved: {self.reserved_titles} | "
            f"Fallback content: {self.fallback_titles} | Errors: {self.failed_titles}"
        )
