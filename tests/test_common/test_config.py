"""Tests for quake.common.config -- Settings defaults and overrides."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from quake.common.config import Settings, get_settings, reset_settings


class TestSettings:
    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        """Settings should have sensible defaults."""
        s = Settings(_env_file=None)
        assert s.table_name == ""
        assert s.time_ordered_index == "TimeOrderedIndex"
        assert s.aws_region == "us-east-1"
        assert s.dynamodb_endpoint_url == ""
        assert s.store_fetch_multiplier == 3
        assert s.store_min_fetch_limit == 100
        assert s.next_token_secret == ""
        assert s.default_page_size == 50
        assert s.max_future_days == 30
        assert s.log_level == "INFO"
        assert s.cors_origins == ["http://localhost:3000"]
        assert s.is_store_configured is False

    def test_env_override(self):
        """Settings should be overridable via environment variables."""
        env = {
            "TABLE_NAME": "earthquakes-prod",
            "AWS_REGION": "us-west-2",
            "DYNAMODB_ENDPOINT_URL": "http://localhost:8000",
            "NEXT_TOKEN_SECRET": "a-long-enough-production-secret",
            "STORE_FETCH_MULTIPLIER": "5",
            "LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env, clear=False):
            s = Settings(_env_file=None)
            assert s.table_name == "earthquakes-prod"
            assert s.aws_region == "us-west-2"
            assert s.dynamodb_endpoint_url == "http://localhost:8000"
            assert s.next_token_secret == "a-long-enough-production-secret"
            assert s.store_fetch_multiplier == 5
            assert s.log_level == "DEBUG"
            assert s.is_store_configured is True

    def test_cors_origins_list(self):
        """CORS origins should accept a JSON list from env."""
        env = {"CORS_ORIGINS": '["http://localhost:3000","https://quakes.example.com"]'}
        with patch.dict(os.environ, env, clear=False):
            s = Settings(_env_file=None)
            assert s.cors_origins == ["http://localhost:3000", "https://quakes.example.com"]


class TestNextTokenSecret:
    @pytest.mark.parametrize("weak", ["secret", "changeme", "password", "dev-secret-change-in-production"])
    def test_rejects_known_insecure_values(self, weak):
        with pytest.raises(ValidationError, match="Insecure NEXT_TOKEN_SECRET"):
            Settings(_env_file=None, next_token_secret=weak)

    def test_rejects_short_secret(self):
        with pytest.raises(ValidationError, match="at least 16 characters"):
            Settings(_env_file=None, next_token_secret="short-secret")

    def test_accepts_sixteen_characters(self):
        assert Settings(_env_file=None, next_token_secret="x" * 16).next_token_secret == "x" * 16

    def test_empty_secret_allowed_at_startup(self):
        assert Settings(_env_file=None, next_token_secret="").next_token_secret == ""


class TestGetSettings:
    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reset_reloads(self):
        first = get_settings()
        reset_settings()
        assert get_settings() is not first
