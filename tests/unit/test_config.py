"""Unit tests for configuration."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from review_api.config import SessionVerification, Settings, parse_duration


class TestParseDuration:
    """Tests for duration strings."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", timedelta(seconds=30)),
            ("15m", timedelta(minutes=15)),
            ("2h", timedelta(hours=2)),
            ("7d", timedelta(days=7)),
        ],
    )
    def test_valid_units(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "2", "h", "2w", "-1h", "1.5h"])
    def test_invalid_format_raises(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = Settings(environment="development")

        assert settings.jwt_expires_in == "2h"
        assert settings.token_lifetime == timedelta(hours=2)
        assert settings.session_verification is SessionVerification.STRICT
        assert settings.login_rate_limit_attempts == 5

    def test_bad_duration_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_expires_in="two hours")

    def test_token_only_allowed_outside_production(self):
        settings = Settings(environment="test", session_verification="token-only")

        assert settings.session_verification is SessionVerification.TOKEN_ONLY

    def test_token_only_refused_in_production(self):
        with pytest.raises(ValidationError):
            Settings(environment="production", session_verification="token-only")

    def test_is_production_case_insensitive(self):
        assert Settings(environment="Production").is_production is True
        assert Settings(environment="development").is_production is False
