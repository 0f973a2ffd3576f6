"""Tests for snapshot storage."""

import json
import pytest
from datetime import datetime
from unittest.mock import patch

from ecfr_analyzer.error_handler import StorageFailure
from ecfr_analyzer.storage import SnapshotStorage


class TestSnapshot:
    """Test cases for saving and loading the title snapshot."""

    def test_load_without_snapshot(self, storage):
        assert storage.load() == []
        assert not storage.has_existing_data()
        assert storage.last_update_time() is None

    def test_save_and_load(self, storage, sample_titles):
        storage.save(sample_titles)

        loaded = storage.load()

        assert [t.number for t in loaded] == [7, 29, 40, 35]
        assert loaded[0].content == 'a b c d'
        assert loaded[0].agency == 'Agriculture'
        assert loaded[3].reserved is True
        assert loaded[0].last_updated == sample_titles[0].last_updated
        assert storage.has_existing_data()

    def test_save_replaces_previous_snapshot(self, storage, sample_titles):
        storage.save(sample_titles)
        storage.save(sample_titles[:1])

        assert [t.number for t in storage.load()] == [7]

    def test_metadata_record(self, storage, sample_titles):
        saved_at = storage.save(sample_titles)

        metadata = json.loads(storage.metadata_path.read_text())

        assert metadata['totalTitles'] == 4
        assert metadata['version'] == '1.0'
        assert metadata['lastUpdate'] == saved_at.isoformat(timespec='microseconds')

    def test_last_update_time_keeps_microseconds(self, storage, sample_titles):
        fixed = datetime(2024, 5, 1, 8, 15, 30, 987654)
        with patch('ecfr_analyzer.storage.datetime') as mock_datetime:
            mock_datetime.now.return_value = fixed
            storage.save(sample_titles)

        assert storage.last_update_time() == fixed

    def test_no_temp_files_left_behind(self, storage, sample_titles):
        storage.save(sample_titles)

        leftovers = list(storage.processed_dir.glob('*.tmp'))
        assert leftovers == []

    def test_corrupt_snapshot_raises(self, storage, sample_titles):
        storage.save(sample_titles)
        storage.titles_path.write_text('{not json')

        with pytest.raises(StorageFailure):
            storage.load()
        assert not storage.has_existing_data()

    def test_non_list_snapshot_raises(self, storage):
        storage.processed_dir.mkdir(parents=True)
        storage.titles_path.write_text('{"titles": []}')

        with pytest.raises(StorageFailure, match="not a list"):
            storage.load()

    def test_failed_write_keeps_previous_snapshot(self, storage, sample_titles):
        storage.save(sample_titles)

        with patch('ecfr_analyzer.storage.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(StorageFailure):
                storage.save(sample_titles[:1])

        assert len(storage.load()) == 4
        assert list(storage.processed_dir.glob('*.tmp')) == []

    def test_failed_metadata_write_restores_previous_snapshot(self, storage, sample_titles):
        """Test snapshot and metadata never describe different saves."""
        first_save = storage.save(sample_titles)
        storage.metadata_path.unlink()
        storage.metadata_path.mkdir()

        with pytest.raises(StorageFailure):
            storage.save(sample_titles[:2])

        assert [t.number for t in storage.load()] == [7, 29, 40, 35]
        assert list(storage.processed_dir.glob('*.tmp')) == []

        storage.metadata_path.rmdir()
        saved_at = storage.save(sample_titles[:2])
        assert storage.last_update_time() == saved_at
        assert saved_at >= first_save

    def test_failed_first_save_leaves_no_snapshot(self, storage, sample_titles):
        storage.metadata_path.mkdir(parents=True)

        with pytest.raises(StorageFailure):
            storage.save(sample_titles)

        assert not storage.titles_path.exists()
        assert storage.load() == []


class TestRawAndState:
    """Test cases for raw payload archives and run state."""

    def test_save_raw(self, storage):
        path = storage.save_raw('title-7.xml', '<CFR/>')

        assert path == storage.raw_dir / 'title-7.xml'
        assert path.read_text() == '<CFR/>'

    def test_save_and_load_state(self, storage):
        storage.save_state(12, last_run=datetime(2024, 5, 1, 9, 0, 0, 1))

        state = storage.load_state()

        assert state == {
            'lastRun': '2024-05-01T09:00:00.000001',
            'processedTitles': 12,
            'status': 'completed',
        }

    def test_load_state_without_file(self, storage):
        assert storage.load_state() == {}

    def test_directories_created_lazily(self, tmp_path):
        storage = SnapshotStorage(tmp_path / 'fresh')
        assert not storage.data_directory.exists()

        storage.save_state(0)

        assert storage.state_path.exists()
