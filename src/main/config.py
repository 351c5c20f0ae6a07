from functools import lru_cache
import json
import logging
import os
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

SYMMETRIC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


def _parse_list(v: Any) -> list[str]:
    if isinstance(v, (list, tuple, set, frozenset)):
        return [str(item) for item in v]
    if isinstance(v, str) and v.strip().startswith("[") and v.strip().endswith("]"):
        try:
            parsed = json.loads(v)
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
        except json.JSONDecodeError:
            pass
    sep = "," if "," in v else ";"
    return [item.strip() for item in v.split(sep) if item.strip()]


class RedisConfig(BaseModel):
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DATABASE: str = "0"
    REDIS_SOCKET_TIMEOUT_SECONDS: float = Field(2.0, gt=0)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def dsn(self) -> str:
        return (
            f"redis://:"
            f"{self.REDIS_PASSWORD}@"
            f"{self.REDIS_HOST}:"
            f"{self.REDIS_PORT}/"
            f"{self.REDIS_DATABASE}"
        )


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore", frozen=True)


class JWTConfig(BaseModel):
    """
    Signing material and lifetimes of issued tokens.

    HMAC algorithms sign and verify with JWT_SECRET_KEY. Any other algorithm
    signs with JWT_PRIVATE_KEY and verifies with JWT_PUBLIC_KEY (PEM text).
    """

    JWT_ALGORITHM: str = "HS256"
    JWT_SECRET_KEY: str | None = None
    JWT_PRIVATE_KEY: str | None = None
    JWT_PUBLIC_KEY: str | None = None
    JWT_LEEWAY_SECONDS: int = Field(0, ge=0)

    ACCESS_TOKEN_TTL_SECONDS: int = Field(3600, gt=0)
    REFRESH_TOKEN_TTL_SECONDS: int = Field(604800, gt=0)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="after")
    def check_key_material(self) -> "JWTConfig":
        if self.JWT_ALGORITHM in SYMMETRIC_ALGORITHMS:
            if not self.JWT_SECRET_KEY:
                raise ValueError(
                    f"JWT_SECRET_KEY is required for {self.JWT_ALGORITHM}"
                )
        elif not self.JWT_PRIVATE_KEY or not self.JWT_PUBLIC_KEY:
            raise ValueError(
                f"JWT_PRIVATE_KEY and JWT_PUBLIC_KEY are required for {self.JWT_ALGORITHM}"
            )
        if self.REFRESH_TOKEN_TTL_SECONDS < self.ACCESS_TOKEN_TTL_SECONDS:
            raise ValueError(
                "REFRESH_TOKEN_TTL_SECONDS must not be shorter than ACCESS_TOKEN_TTL_SECONDS"
            )
        return self

    @property
    def signing_key(self) -> str:
        if self.JWT_ALGORITHM in SYMMETRIC_ALGORITHMS:
            return str(self.JWT_SECRET_KEY)
        return str(self.JWT_PRIVATE_KEY)

    @property
    def verifying_key(self) -> str:
        if self.JWT_ALGORITHM in SYMMETRIC_ALGORITHMS:
            return str(self.JWT_SECRET_KEY)
        return str(self.JWT_PUBLIC_KEY)


class SessionConfig(BaseModel):
    ACCESS_HEADER: str = "Authorization"
    ACCESS_COOKIE: str = "jwt_access"
    REFRESH_HEADER: str = "X-Refresh-Token"
    REFRESH_COOKIE: str = "jwt_refresh"
    CSRF_HEADER: str = "X-CSRF-Token"

    CSRF_SAFE_METHODS: tuple[str, ...] = ("GET", "HEAD")
    CSRF_SECRET_LENGTH: int = Field(32, ge=16)

    TOKEN_KEY_PREFIX: str = "jwt_"

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("CSRF_SAFE_METHODS", mode="before")
    @classmethod
    def parse_methods(cls, v: Any) -> tuple[str, ...]:
        return tuple(item.upper() for item in _parse_list(v))


class AppConfig(BaseModel):
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"
    SLOW_REQUEST_SECONDS: float = Field(0.5, gt=0)

    CORS_ALLOWED_ORIGINS: list[str] = Field(["*"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field(["*"])

    PROJECT_NAME: str = "spa-sessions"

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> list[str]:
        return _parse_list(v)


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig
    session: SessionConfig
    redis: RedisConfig
    sentry: SentryConfig

    model_config = ConfigDict(extra="ignore", frozen=True)


def load_settings(env: dict[str, Any]) -> Config:
    """Build a Config from a flat mapping of environment-style keys."""
    return Config(
        app=AppConfig(**env),
        jwt=JWTConfig(**env),
        session=SessionConfig(**env),
        redis=RedisConfig(**env),
        sentry=SentryConfig(**env),
    )


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or dependency overrides.
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    settings = load_settings(merged_env)
    logger.info(
        "Settings loaded from %s (algorithm=%s)",
        env_filename,
        settings.jwt.JWT_ALGORITHM,
    )
    return settings
