import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from loggers import get_logger
from src.main.config import Config, get_settings

logger = get_logger(__name__)

_sentry_initialized = False

FILTERED = "[Filtered]"


def credential_names(settings: Config) -> frozenset[str]:
    """Lower-cased header and cookie names that carry session credentials."""
    session = settings.session
    return frozenset(
        name.lower()
        for name in (
            session.ACCESS_HEADER,
            session.ACCESS_COOKIE,
            session.REFRESH_HEADER,
            session.REFRESH_COOKIE,
            session.CSRF_HEADER,
            "cookie",
        )
    )


def scrub_credentials(
    event: dict[str, Any], names: frozenset[str]
) -> dict[str, Any]:
    request = event.get("request")
    if not isinstance(request, dict):
        return event
    for section in ("headers", "cookies"):
        values = request.get(section)
        if isinstance(values, dict):
            request[section] = {
                key: FILTERED if key.lower() in names else value
                for key, value in values.items()
            }
    return event


def init_sentry() -> None:
    """
    Initialize the Sentry client once. Credential headers and cookies are
    replaced before any event leaves the process.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    settings = get_settings()

    if settings.app.DEBUG or settings.app.TESTING:
        logger.info("[Sentry] DEBUG/TESTING enabled, not initializing")
        return

    if not settings.sentry.SENTRY_ENABLED or not settings.sentry.SENTRY_DSN:
        logger.info("[Sentry] Disabled or DSN empty, not initializing")
        return

    names = credential_names(settings)
    sentry_sdk.init(
        dsn=settings.sentry.SENTRY_DSN,
        environment=settings.sentry.SENTRY_ENV,
        release=settings.app.VERSION,
        send_default_pii=False,
        before_send=lambda event, hint: scrub_credentials(event, names),
        integrations=[
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.CRITICAL,
            ),
        ],
    )
    _sentry_initialized = True
    logger.info("[Sentry] Initialized for '%s'", settings.sentry.SENTRY_ENV)
