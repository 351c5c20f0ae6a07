from pydantic import ValidationError
import pytest

from src.main.config import (
    AppConfig,
    JWTConfig,
    SessionConfig,
    get_settings,
    load_settings,
)

SECRET = "config-test-secret-with-enough-length"


def test_load_settings_defaults() -> None:
    settings = load_settings({"JWT_SECRET_KEY": SECRET})

    assert settings.jwt.JWT_ALGORITHM == "HS256"
    assert settings.jwt.ACCESS_TOKEN_TTL_SECONDS == 3600
    assert settings.jwt.REFRESH_TOKEN_TTL_SECONDS == 604800
    assert settings.jwt.JWT_LEEWAY_SECONDS == 0
    assert settings.session.ACCESS_HEADER == "Authorization"
    assert settings.session.ACCESS_COOKIE == "jwt_access"
    assert settings.session.REFRESH_HEADER == "X-Refresh-Token"
    assert settings.session.REFRESH_COOKIE == "jwt_refresh"
    assert settings.session.CSRF_HEADER == "X-CSRF-Token"
    assert settings.session.CSRF_SAFE_METHODS == ("GET", "HEAD")
    assert settings.redis.dsn == "redis://:@localhost:6379/0"


def test_load_settings_reads_string_values() -> None:
    settings = load_settings(
        {
            "JWT_SECRET_KEY": SECRET,
            "ACCESS_TOKEN_TTL_SECONDS": "60",
            "REFRESH_TOKEN_TTL_SECONDS": "120",
            "CSRF_SAFE_METHODS": "get;head;options",
            "TOKEN_KEY_PREFIX": "app_",
            "DEBUG": "true",
        }
    )

    assert settings.jwt.ACCESS_TOKEN_TTL_SECONDS == 60
    assert settings.session.CSRF_SAFE_METHODS == ("GET", "HEAD", "OPTIONS")
    assert settings.session.TOKEN_KEY_PREFIX == "app_"
    assert settings.app.DEBUG is True


def test_symmetric_algorithm_requires_secret() -> None:
    with pytest.raises(ValidationError, match="JWT_SECRET_KEY is required"):
        JWTConfig()


def test_asymmetric_algorithm_requires_key_pair() -> None:
    with pytest.raises(ValidationError, match="JWT_PUBLIC_KEY are required"):
        JWTConfig(JWT_ALGORITHM="RS256", JWT_PRIVATE_KEY="private")


def test_asymmetric_algorithm_selects_keys() -> None:
    jwt_config = JWTConfig(
        JWT_ALGORITHM="RS256", JWT_PRIVATE_KEY="private", JWT_PUBLIC_KEY="public"
    )

    assert jwt_config.signing_key == "private"
    assert jwt_config.verifying_key == "public"


def test_refresh_lifetime_not_shorter_than_access() -> None:
    with pytest.raises(ValidationError):
        JWTConfig(
            JWT_SECRET_KEY=SECRET,
            ACCESS_TOKEN_TTL_SECONDS=600,
            REFRESH_TOKEN_TTL_SECONDS=60,
        )


def test_settings_are_immutable() -> None:
    session_config = SessionConfig()

    with pytest.raises(ValidationError):
        session_config.ACCESS_HEADER = "X-Other"  # type: ignore[misc]


def test_parse_cors_list_json_string() -> None:
    app_config = AppConfig(CORS_ALLOWED_ORIGINS='["https://a.com", "https://b.com"]')

    assert app_config.CORS_ALLOWED_ORIGINS == ["https://a.com", "https://b.com"]


def test_parse_cors_list_semicolon_delimiter() -> None:
    app_config = AppConfig(CORS_ALLOWED_METHODS="GET;POST;PUT")

    assert app_config.CORS_ALLOWED_METHODS == ["GET", "POST", "PUT"]


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
