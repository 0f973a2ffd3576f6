"""
Report Generator for formatting and exporting analysis results.

This module writes AnalysisReport objects as CSV, JSON and human-readable
summary files, and writes the derived analytics artifacts as JSON.
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime

from .models import AnalysisReport


logger = logging.getLogger(__name__)


class ReportGenerator:
    """Generates reports from analysis results in various formats."""

    def __init__(self, output_directory: str = "./results"):
        """
        Initialize the report generator.

        Args:
            output_directory: Directory to save generated reports
        """
        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Report generator initialized with output directory: {self.output_directory}")

    def generate_csv_report(self, report: AnalysisReport, filename: Optional[str] = None) -> str:
        """
        Generate a CSV report with one row per agency.

        Args:
            report: AnalysisReport to export
            filename: Optional custom filename (default: auto-generated)

        Returns:
            Path to the generated CSV file

        Raises:
            IOError: If file cannot be written
        """
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"ecfr_agency_metrics_{timestamp}.csv"

        filepath = self.output_directory / filename

        logger.info(f"Generating CSV report: {filepath}")

        try:
            with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
                fieldnames = [
                    'agency_name',
                    'total_regulations',
                    'total_word_count',
                    'average_words_per_regulation',
                    'unique_titles',
                    'regulatory_complexity_index',
                    'complexity_score',
                    'latest_amendment',
                    'checksum',
                ]

                writer = csv.DictWriter(csvfile, fieldnames=fieldnames, quoting=csv.QUOTE_MINIMAL)
                writer.writeheader()

                for name, metrics in report.agency_metrics.items():
                    writer.writerow({
                        'agency_name': self._escape_csv_value(name),
                        'total_regulations': metrics.total_regulations,
                        'total_word_count': metrics.total_word_count,
                        'average_words_per_regulation': f"{metrics.average_words_per_regulation:.2f}",
                        'unique_titles': metrics.unique_titles,
                        'regulatory_complexity_index': metrics.regulatory_complexity_index,
                        'complexity_score': metrics.complexity_score,
                        'latest_amendment': metrics.latest_amendment or '',
                        'checksum': metrics.checksum or '',
                    })

            logger.info(f"CSV report generated successfully: {filepath}")
            return str(filepath)

        except IOError as e:
            logger.error(f"Failed to write CSV report: {e}")
            raise IOError(f"Failed to write CSV report to {filepath}: {e}")

    def generate_json_report(self, report: AnalysisReport, filename: Optional[str] = None) -> str:
        """
        Generate a JSON report.

        Args:
            report: AnalysisReport to export
            filename: Optional custom filename (default: auto-generated)

        Returns:
            Path to the generated JSON file

        Raises:
            IOError: If file cannot be written
        """
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"ecfr_analysis_report_{timestamp}.json"

        filepath = self.output_directory / filename
        report_data = {
            'summary': report.get_summary(),
            'report': report.to_dict(),
        }
        return self._write_json(filepath, report_data, "JSON report")

    def generate_summary_report(self, report: AnalysisReport, filename: Optional[str] = None) -> str:
        """
        Generate a human-readable summary report.

        Args:
            report: AnalysisReport to summarize
            filename: Optional custom filename (default: auto-generated)

        Returns:
            Path to the generated summary file

        Raises:
            IOError: If file cannot be written
        """
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"ecfr_analysis_summary_{timestamp}.txt"

        filepath = self.output_directory / filename

        logger.info(f"Generating summary report: {filepath}")

        try:
            with open(filepath, 'w', encoding='utf-8') as summaryfile:
                summaryfile.write(self._build_summary_content(report))

            logger.info(f"Summary report generated successfully: {filepath}")
            return str(filepath)

        except IOError as e:
            logger.error(f"Failed to write summary report: {e}")
            raise IOError(f"Failed to write summary report to {filepath}: {e}")

    def generate_all_reports(self, report: AnalysisReport, formats: Optional[List[str]] = None,
                             base_filename: Optional[str] = None) -> Dict[str, str]:
        """
        Generate the requested report formats.

        Args:
            report: AnalysisReport to export
            formats: Formats to write (default: all supported)
            base_filename: Optional base filename (timestamp will be added)

        Returns:
            Dictionary mapping report type to file path
        """
        formats = formats or self.get_supported_formats()
        for format_name in formats:
            if not self.validate_output_format(format_name):
                raise ValueError(f"Unsupported output format: {format_name}")

        if base_filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            base_filename = f"ecfr_analysis_{timestamp}"

        reports = {}
        if 'csv' in formats:
            reports['csv'] = self.generate_csv_report(report, f"{base_filename}.csv")
        if 'json' in formats:
            reports['json'] = self.generate_json_report(report, f"{base_filename}.json")
        if 'summary' in formats:
            reports['summary'] = self.generate_summary_report(report, f"{base_filename}_summary.txt")

        logger.info(f"Reports generated successfully: {len(reports)} files")
        return reports

    def generate_analytics(self, artifacts: Dict[str, Any]) -> Dict[str, str]:
        """
        Write derived analytics artifacts, one JSON file per artifact.

        Args:
            artifacts: Mapping of artifact name to data

        Returns:
            Dictionary mapping artifact name to file path
        """
        paths = {}
        for name, data in artifacts.items():
            paths[name] = self._write_json(self.output_directory / f"{name}.json", data, name)
        logger.info(f"Analytics written: {len(paths)} files")
        return paths

    def _write_json(self, filepath: Path, data: Any, label: str) -> str:
        logger.info(f"Generating {label}: {filepath}")
        try:
            with open(filepath, 'w', encoding='utf-8') as jsonfile:
                json.dump(data, jsonfile, indent=2, ensure_ascii=False, default=str)
            return str(filepath)
        except IOError as e:
            logger.error(f"Failed to write {label}: {e}")
            raise IOError(f"Failed to write {label} to {filepath}: {e}")

    def _escape_csv_value(self, value: str) -> str:
        """
        Escape CSV values to handle special characters.

        Args:
            value: String value to escape

        Returns:
            Escaped string safe for CSV
        """
        if not value:
            return ""

        # Remove any null bytes and normalize whitespace
        cleaned = str(value).replace('\x00', '').strip()

        # Replace line breaks with spaces
        cleaned = cleaned.replace('\n', ' ').replace('\r', ' ')

        return ' '.join(cleaned.split())

    def _build_summary_content(self, report: AnalysisReport) -> str:
        """
        Build the content for the summary report.

        Args:
            report: AnalysisReport to summarize

        Returns:
            Formatted summary content
        """
        lines = []
        lines.append("="*80)
        lines.append("eCFR ANALYZER - SUMMARY REPORT")
        lines.append("="*80)
        lines.append(f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
        if report.last_data_update:
            lines.append(f"Data last updated: {report.last_data_update.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        # Overall statistics
        lines.append("OVERALL STATISTICS")
        lines.append("-" * 40)
        lines.append(f"Total regulations: {report.total_regulations}")
        lines.append(f"Total words: {report.total_word_count:,}")
        lines.append(f"Total agencies: {report.total_agencies}")
        lines.append(f"Overall checksum: {report.overall_checksum or 'n/a'}")
        lines.append("")

        lines.append("TOP AGENCIES")
        lines.append("-" * 40)
        lines.append(f"Most regulations: {report.most_regulations_agency or 'n/a'}")
        lines.append(f"Most words: {report.most_words_agency or 'n/a'}")
        lines.append(f"Highest complexity (RCI): {report.highest_complexity_agency or 'n/a'}")
        lines.append("")

        if report.agency_metrics:
            by_words = sorted(report.agency_metrics.values(),
                              key=lambda m: m.total_word_count, reverse=True)[:10]
            lines.append("TOP 10 AGENCIES BY WORD COUNT")
            lines.append("-" * 40)
            for i, metrics in enumerate(by_words, 1):
                lines.append(f"{i:2d}. {metrics.agency_name}: {metrics.total_word_count:,} words "
                             f"(RCI {metrics.regulatory_complexity_index:.2f}, "
                             f"score {metrics.complexity_score:.2f})")
            lines.append("")

        lines.append("="*80)
        lines.append("End of Report")
        lines.append("="*80)

        return "\n".join(lines)

    def validate_output_format(self, format_name: str) -> bool:
        """Check if the output format is supported."""
        return format_name.lower() in set(self.get_supported_formats())

    def get_supported_formats(self) -> List[str]:
        """
        Get list of supported output formats.

        Returns:
            List of supported format names
        """
        return ['csv', 'json', 'summary']
