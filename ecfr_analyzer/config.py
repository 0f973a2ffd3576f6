"""
Configuration settings for the eCFR Analyzer.

This module handles configuration from environment variables (and an optional
.env file) and provides default values for the application.
"""

import os
from datetime import date
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Configuration class for the eCFR Analyzer."""

    # eCFR API settings
    ECFR_API_BASE_URL: str = os.getenv('ECFR_API_BASE_URL', 'https://www.ecfr.gov')

    # Fixed delay (seconds) applied after every external call
    REQUEST_DELAY: float = float(os.getenv('ECFR_REQUEST_DELAY', '1.0'))

    # Request settings
    REQUEST_TIMEOUT: int = int(os.getenv('REQUEST_TIMEOUT', '30'))

    # Retry settings
    MAX_RETRY_ATTEMPTS: int = int(os.getenv('ECFR_MAX_RETRY_ATTEMPTS', '3'))
    RETRY_BASE_DELAY: float = float(os.getenv('ECFR_RETRY_BASE_DELAY', '1.0'))
    RETRY_MAX_DELAY: float = float(os.getenv('ECFR_RETRY_MAX_DELAY', '30.0'))
    RETRY_BACKOFF_FACTOR: float = float(os.getenv('ECFR_RETRY_BACKOFF_FACTOR', '2.0'))

    # Enrichment settings
    MAX_TITLES_PER_RUN: int = int(os.getenv('ECFR_MAX_TITLES_PER_RUN', '50'))
    MIN_CONTENT_LENGTH: int = int(os.getenv('ECFR_MIN_CONTENT_LENGTH', '100'))
    MAX_CONTENT_LENGTH: int = int(os.getenv('ECFR_MAX_CONTENT_LENGTH', '10000'))
    FALLBACK_CONTENT_DATE: str = os.getenv('ECFR_FALLBACK_DATE', '2024-01-01')

    # Analytics settings
    RECENT_AMENDMENT_CUTOFF: str = os.getenv('ECFR_RECENT_CUTOFF', '2024-01-01')

    # Storage settings
    DATA_DIRECTORY: str = os.getenv('ECFR_DATA_DIR', './data')
    ARCHIVE_RAW_PAYLOADS: bool = os.getenv('ECFR_ARCHIVE_RAW', 'false').lower() == 'true'
    SNAPSHOT_VERSION: str = '1.0'

    # Output settings
    OUTPUT_DIRECTORY: str = os.getenv('ECFR_OUTPUT_DIR', './results')
    DEFAULT_OUTPUT_FORMATS: list = ['json', 'csv', 'summary']

    # Logging settings
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE: str = os.getenv('ECFR_LOG_FILE', 'ecfr_analyzer.log')

    @classmethod
    def validate(cls) -> None:
        """Validate configuration settings."""
        if cls.REQUEST_DELAY < 0:
            raise ValueError("Request delay cannot be negative")

        if cls.REQUEST_TIMEOUT <= 0:
            raise ValueError("Request timeout must be positive")

        if cls.MAX_RETRY_ATTEMPTS < 1:
            raise ValueError("Max retry attempts must be at least 1")

        if cls.RETRY_BASE_DELAY < 0 or cls.RETRY_MAX_DELAY < 0:
            raise ValueError("Retry delays cannot be negative")

        if not cls.ECFR_API_BASE_URL.startswith(('http://', 'https://')):
            raise ValueError("API base URL must be a valid HTTP/HTTPS URL")

        if cls.MAX_TITLES_PER_RUN <= 0:
            raise ValueError("Max titles per run must be positive")

        if cls.MAX_CONTENT_LENGTH <= 0:
            raise ValueError("Max content length must be positive")

        if cls.LOG_LEVEL.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown log level: {cls.LOG_LEVEL}")

        for name in ('FALLBACK_CONTENT_DATE', 'RECENT_AMENDMENT_CUTOFF'):
            value = getattr(cls, name)
            try:
                date.fromisoformat(value)
            except ValueError:
                raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}")
