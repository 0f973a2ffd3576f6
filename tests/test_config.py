"""Tests for configuration validation."""

import pytest
from unittest.mock import patch

from ecfr_analyzer.config import Config


class TestConfigValidate:
    """Test cases for Config.validate."""

    def test_defaults_are_valid(self):
        Config.validate()

    @pytest.mark.parametrize('attribute, value, message', [
        ('REQUEST_DELAY', -1.0, "Request delay cannot be negative"),
        ('REQUEST_TIMEOUT', 0, "Request timeout must be positive"),
        ('MAX_RETRY_ATTEMPTS', 0, "Max retry attempts must be at least 1"),
        ('ECFR_API_BASE_URL', 'www.ecfr.gov', "valid HTTP/HTTPS URL"),
        ('MAX_TITLES_PER_RUN', 0, "Max titles per run must be positive"),
        ('LOG_LEVEL', 'LOUD', "Unknown log level"),
        ('RECENT_AMENDMENT_CUTOFF', '01/02/2024', "RECENT_AMENDMENT_CUTOFF must be an ISO date"),
    ])
    def test_invalid_settings(self, attribute, value, message):
        with patch.object(Config, attribute, value):
            with pytest.raises(ValueError, match=message):
                Config.validate()
