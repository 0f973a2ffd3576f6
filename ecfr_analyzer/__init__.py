"""
eCFR Analyzer

A tool for ingesting Code of Federal Regulations titles from the eCFR API
and analyzing regulatory volume and complexity by agency.
"""

__version__ = "1.0.0"
__author__ = "eCFR Analyzer Team"
__description__ = "Ingest eCFR titles and analyze regulations by agency"

from .models import Agency, Title, AgencyMetrics, AnalysisReport, PipelineResult
from .api_client import ECFRClient, RequestThrottle
from .catalog_fetcher import CatalogFetcher
from .title_enricher import TitleEnricher
from .aggregator import AgencyAggregator
from .storage import SnapshotStorage
from .pipeline import ECFRPipeline, RunState
from .report_generator import ReportGenerator
from .config import Config

__all__ = [
    'Agency',
    'Title',
    'AgencyMetrics',
    'AnalysisReport',
    'PipelineResult',
    'ECFRClient',
    'RequestThrottle',
    'CatalogFetcher',
    'TitleEnricher',
    'AgencyAggregator',
    'SnapshotStorage',
    'ECFRPipeline',
    'RunState',
    'ReportGenerator',
    'Config'
]
