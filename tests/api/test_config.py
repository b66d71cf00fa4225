"""Tests for configuration classes."""

import dataclasses
import os
from unittest.mock import patch

import pytest

from config import (
    AppConfig,
    CORSConfig,
    GameConfig,
    LoggingConfig,
    RateLimitConfig,
    RedisConfig,
    SecurityConfig,
    _parse_cors_origins,
)


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        with patch.dict(os.environ, {}, clear=True):
            config = CORSConfig()
            assert config.allowed_origins == ["http://localhost:3000"]

    def test_cors_parses_env_var(self):
        """Origins are a comma-separated list with whitespace stripped."""
        env_origins = "  http://example.com , http://casino.test,,"
        with patch.dict(os.environ, {"CORS_ORIGINS": env_origins}):
            assert _parse_cors_origins() == ["http://example.com", "http://casino.test"]

    def test_cors_default_methods_and_headers(self):
        config = CORSConfig()
        assert config.allow_credentials is True
        assert "*" in config.allow_methods
        assert "*" in config.allow_headers


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = RateLimitConfig()
            assert config.enabled is True
            assert config.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "FALSE", "RATE_LIMIT_RPM": "5"}):
            config = RateLimitConfig()
            assert config.enabled is False
            assert config.requests_per_minute == 5


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_auto_generates(self):
        with patch.dict(os.environ, {}, clear=True):
            config = SecurityConfig()
            assert len(config.secret_key) > 0
            assert config.bcrypt_rounds == 12

    def test_security_from_env(self):
        with patch.dict(os.environ, {"SECRET_KEY": "my-secret", "BCRYPT_ROUNDS": "6"}):
            config = SecurityConfig()
            assert config.secret_key == "my-secret"
            assert config.bcrypt_rounds == 6


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_redis_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = RedisConfig()
            assert config.url == "redis://localhost:6379/0"
            assert config.password is None

    def test_redis_url_with_password(self):
        env = {"REDIS_HOST": "cache", "REDIS_PORT": "6380", "REDIS_DB": "2", "REDIS_PASSWORD": "pw"}
        with patch.dict(os.environ, env):
            assert RedisConfig().url == "redis://:pw@cache:6380/2"


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_game_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = GameConfig()
            assert config.initial_balance == 1000
            assert config.min_bet == 10
            assert config.dealer_stand_value == 17
            assert config.natural_delay == 1.0
            assert config.twenty_one_delay == 0.5
            assert config.dealer_step_delay == 1.5

    def test_delay_scale(self):
        with patch.dict(os.environ, {"GAME_DELAY_SCALE": "0"}):
            config = GameConfig()
            assert config.natural_delay == 0
            assert config.dealer_step_delay == 0

    def test_game_config_frozen(self):
        config = GameConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.min_bet = 5


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()
            assert config.debug is False
            assert config.port == 3000
            assert config.session_ttl == 24 * 3600
            assert isinstance(config.game, GameConfig)
            assert isinstance(config.logging, LoggingConfig)

    def test_log_level_upper_cased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert LoggingConfig().level == "DEBUG"
