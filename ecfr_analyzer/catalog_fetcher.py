"""
Catalog fetchers for the eCFR agency list and title list.

Both fetches degrade to an empty result when the API call fails or the
payload is malformed; the failure is logged, never raised.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .api_client import ECFRClient
from .error_handler import (
    CatalogParseFailure, StorageFailure, TerminalClientError, TransientNetworkError,
    handle_graceful_degradation
)
from .models import Agency, Title
from .storage import SnapshotStorage


logger = logging.getLogger(__name__)


class CatalogFetcher:
    """Fetches the agency and title catalogs."""

    def __init__(self, client: ECFRClient, storage: Optional[SnapshotStorage] = None,
                 archive_raw: bool = False):
        """
        Initialize the catalog fetcher.

        Args:
            client: eCFR API client
            storage: Storage used to archive raw payloads
            archive_raw: Whether to archive the raw catalog payloads
        """
        self.client = client
        self.storage = storage
        self.archive_raw = archive_raw and storage is not None

    def _fetch_payload(self, fetch, label: str) -> Dict[str, Any]:
        try:
            return fetch()
        except (TransientNetworkError, TerminalClientError) as e:
            raise CatalogParseFailure(f"Failed to fetch {label} catalog: {e.message}", cause=e)

    def _archive(self, file_name: str, payload: Dict[str, Any]) -> None:
        if not self.archive_raw:
            return
        try:
            self.storage.save_raw(file_name, json.dumps(payload, indent=2))
        except StorageFailure as e:
            logger.warning(f"Could not archive {file_name}: {e}")

    @handle_graceful_degradation(fallback_factory=dict)
    def fetch_agencies(self) -> Dict[str, Agency]:
        """
        Fetch the agency catalog.

        Returns:
            Mapping of agency slug to Agency, empty on failure
        """
        payload = self._fetch_payload(self.client.get_agencies_payload, 'agency')
        entries = payload.get('agencies')
        if not isinstance(entries, list):
            raise CatalogParseFailure("Agencies payload has no 'agencies' list")

        self._archive('agencies.json', payload)

        agencies = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                agency = Agency.from_api(entry)
            except (TypeError, AttributeError, ValueError) as e:
                logger.debug(f"Skipping malformed agency entry: {e}")
                continue
            agencies[agency.slug] = agency

        logger.info(f"Fetched {len(agencies)} agencies")
        return agencies

    @handle_graceful_degradation(fallback_factory=list)
    def fetch_title_catalog(self) -> List[Title]:
        """
        Fetch the title catalog.

        Returns:
            Title stubs in catalog order, empty on failure
        """
        payload = self._fetch_payload(self.client.get_titles_payload, 'title')
        entries = payload.get('titles')
        if not isinstance(entries, list):
            raise CatalogParseFailure("Titles payload has no 'titles' list")

        self._archive('titles.json', payload)

        titles = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                titles.append(Title.from_api(entry))
            except (TypeError, AttributeError, ValueError) as e:
                logger.debug(f"Skipping malformed title entry: {e}")
        logger.info(f"Fetched {len(titles)} titles from catalog")
        return titles
