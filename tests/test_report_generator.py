"""Tests for the report generator module."""

import csv
import json
import pytest
from datetime import datetime
from unittest.mock import patch

from ecfr_analyzer.aggregator import AgencyAggregator
from ecfr_analyzer.analytics import AnalyticsBuilder
from ecfr_analyzer.models import AnalysisReport
from ecfr_analyzer.report_generator import ReportGenerator


@pytest.fixture
def generator(tmp_path):
    return ReportGenerator(str(tmp_path / 'results'))


@pytest.fixture
def report(sample_titles):
    report = AgencyAggregator(recent_cutoff='2024-01-01').generate_report(sample_titles)
    report.last_data_update = datetime(2024, 5, 1, 12, 0, 0)
    return report


class TestReportGenerator:
    """Test cases for the ReportGenerator class."""

    def test_initialization_creates_directory(self, tmp_path):
        """Test the output directory is created on initialization."""
        output_dir = tmp_path / 'nested' / 'results'

        ReportGenerator(str(output_dir))

        assert output_dir.is_dir()

    def test_generate_csv_report(self, generator, report):
        """Test CSV report has one row per agency."""
        filepath = generator.generate_csv_report(report, 'metrics.csv')

        with open(filepath, newline='', encoding='utf-8') as csvfile:
            rows = list(csv.DictReader(csvfile))

        assert [row['agency_name'] for row in rows] == [
            'Agriculture', 'Labor', 'Protection of Environment'
        ]
        assert rows[0]['total_word_count'] == '4'
        assert rows[0]['average_words_per_regulation'] == '4.00'
        assert rows[0]['latest_amendment'] == '2024-03-01'

    def test_csv_default_filename(self, generator, report):
        filepath = generator.generate_csv_report(report)
        assert 'ecfr_agency_metrics_' in filepath
        assert filepath.endswith('.csv')

    def test_generate_json_report(self, generator, report):
        filepath = generator.generate_json_report(report, 'report.json')

        with open(filepath, encoding='utf-8') as jsonfile:
            data = json.load(jsonfile)

        assert data['summary'].startswith("Analyzed 3 regulations across 3 agencies")
        assert data['report']['total_word_count'] == 12
        assert data['report']['last_data_update'] == '2024-05-01T12:00:00.000000'
        assert set(data['report']['agency_metrics']) == {
            'Agriculture', 'Labor', 'Protection of Environment'
        }

    def test_generate_summary_report(self, generator, report):
        filepath = generator.generate_summary_report(report, 'summary.txt')

        with open(filepath, encoding='utf-8') as summaryfile:
            content = summaryfile.read()

        assert "eCFR ANALYZER - SUMMARY REPORT" in content
        assert "Total regulations: 3" in content
        assert "Most words: Protection of Environment" in content
        assert "Data last updated: 2024-05-01 12:00:00" in content
        assert " 1. Protection of Environment: 6 words" in content

    def test_summary_for_empty_report(self, generator):
        filepath = generator.generate_summary_report(AnalysisReport(), 'empty.txt')

        with open(filepath, encoding='utf-8') as summaryfile:
            content = summaryfile.read()

        assert "Most regulations: n/a" in content
        assert "TOP 10 AGENCIES" not in content

    def test_generate_all_reports(self, generator, report):
        reports = generator.generate_all_reports(report, base_filename='run')

        assert set(reports) == {'csv', 'json', 'summary'}
        assert reports['csv'].endswith('run.csv')
        assert reports['summary'].endswith('run_summary.txt')

    def test_generate_selected_formats(self, generator, report):
        reports = generator.generate_all_reports(report, formats=['json'], base_filename='run')
        assert list(reports) == ['json']

    def test_unsupported_format(self, generator, report):
        with pytest.raises(ValueError, match="Unsupported output format"):
            generator.generate_all_reports(report, formats=['xlsx'])

    def test_generate_analytics(self, generator, sample_titles):
        artifacts = AnalyticsBuilder().build_all(sample_titles)

        paths = generator.generate_analytics(artifacts)

        assert set(paths) == set(AnalyticsBuilder.ARTIFACTS)
        with open(paths['word-counts'], encoding='utf-8') as jsonfile:
            assert json.load(jsonfile)['Labor'] == 2

    def test_write_failure_raises_ioerror(self, generator, report):
        with patch('builtins.open', side_effect=IOError("Permission denied")):
            with pytest.raises(IOError, match="Failed to write CSV report"):
                generator.generate_csv_report(report, 'metrics.csv')

    def test_escape_csv_value(self, generator):
        assert generator._escape_csv_value("Line one\nline  two\x00") == "Line one line two"
        assert generator._escape_csv_value("") == ""

    def test_supported_formats(self, generator):
        assert generator.get_supported_formats() == ['csv', 'json', 'summary']
        assert generator.validate_output_format('JSON')
        assert not generator.validate_output_format('xml')
