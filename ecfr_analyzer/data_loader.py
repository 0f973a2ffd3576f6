"""
Title-to-agency table loader.

This module loads the static CFR title number to agency name table from the
bundled CSV file and resolves the agency for a title number.
"""

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .models import UNKNOWN_AGENCY


logger = logging.getLogger(__name__)


DEFAULT_TABLE_PATH = Path(__file__).parent / 'data' / 'title_agencies.csv'


class TitleAgencyLoader:
    """Loads the title-to-agency table and resolves agency names."""

    def __init__(self, file_path: Union[str, Path, None] = None):
        """
        Initialize the loader.

        Args:
            file_path: Path to the table CSV (defaults to the bundled table)
        """
        self.file_path = Path(file_path) if file_path else DEFAULT_TABLE_PATH
        self.table: Dict[int, str] = {}
        self._loaded = False

    def load_table(self) -> Dict[int, str]:
        """
        Load the title-to-agency table from CSV.

        Returns:
            Mapping of title number to agency name

        Raises:
            FileNotFoundError: If the CSV file doesn't exist
            ValueError: If the CSV file has invalid format
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Title agency table not found: {self.file_path}")

        logger.debug(f"Loading title agency table from {self.file_path}")

        table = {}
        required_columns = {'title_number', 'agency_name'}

        with open(self.file_path, 'r', encoding='utf-8') as csvfile:
            reader = csv.DictReader(csvfile)

            # Validate CSV headers
            if not required_columns.issubset(set(reader.fieldnames or [])):
                missing = required_columns - set(reader.fieldnames or [])
                raise ValueError(f"Missing required columns in CSV: {missing}")

            for row_num, row in enumerate(reader, start=2):  # Start at 2 for header
                try:
                    parsed = self._parse_row(row)
                except ValueError as e:
                    logger.warning(f"Skipping invalid row {row_num}: {e}")
                    continue
                if parsed:
                    number, agency_name = parsed
                    table[number] = agency_name

        logger.info(f"Loaded {len(table)} title agency mappings")
        self.table = table
        self._loaded = True
        return table

    def _parse_row(self, row: Dict[str, Any]) -> Optional[tuple]:
        """
        Parse a single CSV row.

        Returns:
            (title_number, agency_name) or None if the row should be skipped

        Raises:
            ValueError: If the title number is not a positive integer
        """
        agency_name = (row.get('agency_name') or '').strip()
        if not agency_name:
            return None

        number = int((row.get('title_number') or '').strip())
        if number <= 0:
            raise ValueError(f"Invalid title number: {number}")

        return number, agency_name

    def resolve_agency(self, title_number: Any) -> str:
        """
        Resolve the agency name for a title number.

        Args:
            title_number: Title number (int or numeric string)

        Returns:
            Agency name from the table, "Federal Agency (Title {n})" for
            numbers outside the table, or "Unknown Agency" when the number
            is not numeric
        """
        if not self._loaded:
            self.load_table()

        if isinstance(title_number, bool) or title_number is None:
            return UNKNOWN_AGENCY

        try:
            number = int(str(title_number).strip())
        except ValueError:
            return UNKNOWN_AGENCY

        return self.table.get(number, f"Federal Agency (Title {number})")
