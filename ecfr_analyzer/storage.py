"""
Snapshot storage for enriched titles.

Persists the title snapshot and its metadata record as JSON under the data
directory, archives raw API payloads and records the processing state of
the last run. Every write goes through a temp file and an atomic rename so
readers never observe a partial file.
"""

import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import Config
from .error_handler import StorageFailure
from .models import Title, _format_timestamp, _parse_timestamp


logger = logging.getLogger(__name__)


class SnapshotStorage:
    """Reads and writes the title snapshot, metadata, raw payloads and run state."""

    TITLES_FILE = 'ecfr-titles.json'
    METADATA_FILE = 'metadata.json'
    STATE_FILE = 'last-run.json'

    def __init__(self, data_directory: Union[str, Path, None] = None):
        """
        Initialize storage rooted at the data directory.

        Args:
            data_directory: Root data directory (default from config)
        """
        self.data_directory = Path(data_directory or Config.DATA_DIRECTORY)
        self.processed_dir = self.data_directory / 'processed'
        self.raw_dir = self.data_directory / 'raw'
        self.state_dir = self.data_directory / 'state'

    @property
    def titles_path(self) -> Path:
        return self.processed_dir / self.TITLES_FILE

    @property
    def metadata_path(self) -> Path:
        return self.processed_dir / self.METADATA_FILE

    @property
    def state_path(self) -> Path:
        return self.state_dir / self.STATE_FILE

    def _stage(self, path: Path, text: str) -> Path:
        """
        Write text to a temp file beside path and fsync it.

        Returns:
            Path of the temp file

        Raises:
            StorageFailure: If the temp file cannot be written
        """
        tmp = path.with_suffix(path.suffix + '.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, 'w', encoding='utf-8') as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            self._discard(tmp)
            raise StorageFailure(f"Failed to write {path}: {e}", cause=e)
        return tmp

    def _commit(self, tmp: Path, path: Path) -> None:
        """Rename a staged temp file over path."""
        try:
            os.replace(tmp, path)
        except OSError as e:
            self._discard(tmp)
            raise StorageFailure(f"Failed to write {path}: {e}", cause=e)

    @staticmethod
    def _discard(tmp: Path) -> None:
        if tmp.exists():
            tmp.unlink()

    def _atomic_write(self, path: Path, text: str) -> None:
        """
        Write text to path via temp file, fsync and rename.

        Raises:
            StorageFailure: If the file cannot be written; the target is untouched
        """
        self._commit(self._stage(path, text), path)

    def _restore_snapshot(self, previous: Optional[str]) -> None:
        """Put back the snapshot that was live before a failed save."""
        try:
            if previous is None:
                if self.titles_path.exists():
                    self.titles_path.unlink()
            else:
                self._atomic_write(self.titles_path, previous)
        except (OSError, StorageFailure) as e:
            logger.error(f"Could not restore previous snapshot at {self.titles_path}: {e}")

    def _read_json(self, path: Path) -> Any:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageFailure(f"Failed to read {path}: {e}", cause=e)

    def save(self, titles: List[Title]) -> datetime:
        """
        Replace the snapshot with the given titles and write the metadata record.

        Args:
            titles: Titles to persist

        Returns:
            The timestamp recorded as the last update

        Raises:
            StorageFailure: If the snapshot or metadata cannot be written; the
                previous snapshot and metadata stay in place
        """
        payload = json.dumps([title.to_dict() for title in titles], indent=2)

        last_update = datetime.now()
        metadata = {
            'totalTitles': len(titles),
            'lastUpdate': _format_timestamp(last_update),
            'version': Config.SNAPSHOT_VERSION,
        }

        try:
            previous = (self.titles_path.read_text(encoding='utf-8')
                        if self.titles_path.exists() else None)
        except OSError as e:
            raise StorageFailure(f"Failed to read {self.titles_path}: {e}", cause=e)

        # Both files are staged before either replaces its target
        titles_tmp = self._stage(self.titles_path, payload)
        try:
            metadata_tmp = self._stage(self.metadata_path, json.dumps(metadata, indent=2))
        except StorageFailure:
            self._discard(titles_tmp)
            raise

        try:
            self._commit(titles_tmp, self.titles_path)
        except StorageFailure:
            self._discard(metadata_tmp)
            raise

        try:
            self._commit(metadata_tmp, self.metadata_path)
        except StorageFailure:
            self._restore_snapshot(previous)
            raise

        logger.info(f"Saved {len(titles)} titles to {self.titles_path}")
        return last_update

    def load(self) -> List[Title]:
        """
        Load the most recent snapshot.

        Returns:
            Titles from the snapshot, or an empty list when none exists

        Raises:
            StorageFailure: If the snapshot exists but cannot be read
        """
        if not self.titles_path.exists():
            logger.debug(f"No snapshot found at {self.titles_path}")
            return []

        data = self._read_json(self.titles_path)
        if not isinstance(data, list):
            raise StorageFailure(f"Snapshot {self.titles_path} is not a list of titles")

        try:
            titles = [Title.from_dict(item) for item in data]
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageFailure(f"Snapshot {self.titles_path} contains invalid titles: {e}", cause=e)

        logger.info(f"Loaded {len(titles)} titles from {self.titles_path}")
        return titles

    def has_existing_data(self) -> bool:
        """Check whether a non-empty snapshot exists."""
        if not self.titles_path.exists():
            return False
        try:
            return len(self.load()) > 0
        except StorageFailure as e:
            logger.warning(f"Existing snapshot is unreadable: {e}")
            return False

    def load_metadata(self) -> Dict[str, Any]:
        """Load the metadata record, or an empty dict when none exists."""
        if not self.metadata_path.exists():
            return {}
        data = self._read_json(self.metadata_path)
        return data if isinstance(data, dict) else {}

    def last_update_time(self) -> Optional[datetime]:
        """Timestamp written by the last successful save, if any."""
        try:
            return _parse_timestamp(self.load_metadata().get('lastUpdate'))
        except (StorageFailure, ValueError) as e:
            logger.warning(f"Failed to parse last update time: {e}")
            return None

    def save_raw(self, file_name: str, content: str) -> Path:
        """
        Archive a raw API payload under the raw directory.

        Args:
            file_name: File name within the raw directory
            content: Payload text

        Returns:
            Path of the archived file
        """
        path = self.raw_dir / file_name
        self._atomic_write(path, content)
        logger.debug(f"Archived raw payload to {path}")
        return path

    def save_state(self, processed_titles: int, status: str = 'completed',
                   last_run: Optional[datetime] = None) -> None:
        """Record the processing state of the last run."""
        state = {
            'lastRun': _format_timestamp(last_run or datetime.now()),
            'processedTitles': processed_titles,
            'status': status,
        }
        self._atomic_write(self.state_path, json.dumps(state, indent=2))
        logger.debug(f"Processing state saved to {self.state_path}")

    def load_state(self) -> Dict[str, Any]:
        """Load the processing state of the last run, or an empty dict."""
        if not self.state_path.exists():
            return {}
        data = self._read_json(self.state_path)
        return data if isinstance(data, dict) else {}
