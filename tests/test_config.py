"""
Tests for Settings.
"""

import pytest
from pydantic import ValidationError

from src.config import Environment, Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.delenv("LEAD_CONFIDENCE_THRESHOLD", raising=False)
        settings = Settings(_env_file=None)

        assert settings.lead_confidence_threshold == 0.6
        assert settings.environment == Environment.DEVELOPMENT
        assert settings.is_production is False

    def test_production(self):
        assert Settings(_env_file=None, environment="production").is_production is True

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_bounds(self, threshold):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, lead_confidence_threshold=threshold)
