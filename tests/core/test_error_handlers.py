import json
import logging
from unittest.mock import MagicMock

from fastapi import Request
import pytest

from src.core.errors import handlers
from src.core.errors.exceptions import (
    CoreException,
    InfrastructureException,
    StoreUnavailableException,
    UnauthorizedException,
)


def _build_request(headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "http_version": "1.1",
        "scheme": "http",
        "path": "/v1/session/refresh",
        "root_path": "",
        "raw_path": b"/v1/session/refresh",
        "query_string": b"",
        "asgi": {"version": "3.0"},
        "headers": headers or [],
        "client": ("127.0.0.1", 8000),
        "server": ("testserver", 80),
    }
    return Request(scope)


@pytest.fixture(autouse=True)
def _patch_response_logger(monkeypatch: pytest.MonkeyPatch) -> logging.Logger:
    logger = logging.getLogger("response_logger_test")
    logger.handlers = []
    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    monkeypatch.setattr(handlers, "response_logger", logger)
    return logger


@pytest.fixture
def capture_mock(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(handlers.sentry_sdk, "capture_exception", mock)
    return mock


def test_format_log_message_masks_sensitive_data() -> None:
    request = _build_request(headers=[(b"x-request-id", b"req-123")])

    message = handlers.format_log_message(
        request,
        "unauthorized",
        "token rejected",
        {"refresh_token": "eyJ...", "csrf_secret": "abc", "session": "1a2b***"},
        include_request_path=True,
    )

    assert (
        "[req-123] [Unauthorized] POST /v1/session/refresh | token rejected" in message
    )
    assert "refresh_token=***" in message
    assert "csrf_secret=***" in message
    assert "session='1a2b***'" in message


def test_format_log_message_truncates_long_text() -> None:
    request = _build_request()
    long_message = "a" * 600

    message = handlers.format_log_message(request, "error", long_message)

    assert message.endswith("...")
    assert message.count("a") == 497


@pytest.mark.asyncio
async def test_unauthorized_handler(caplog: pytest.LogCaptureFixture) -> None:
    handler = handlers.UnauthorizedExceptionHandler()
    caplog.set_level(logging.WARNING, logger="response_logger_test")

    response = await handler(_build_request(), UnauthorizedException("Unauthorized"))

    assert response.status_code == 401
    assert json.loads(response.body) == {
        "error": "Unauthorized",
        "message": "Unauthorized",
    }
    assert any(
        record.levelno == logging.WARNING
        and "POST /v1/session/refresh" in record.message
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_store_unavailable_handler_hides_details(
    capture_mock: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    handler = handlers.StoreUnavailableExceptionHandler()
    exc = StoreUnavailableException(
        "Session store is unavailable", {"operation": "get", "error": "ConnectionError"}
    )
    caplog.set_level(logging.ERROR, logger="response_logger_test")

    response = await handler(_build_request(), exc)

    assert response.status_code == 503
    assert json.loads(response.body) == {
        "error": "Service unavailable",
        "message": "Session store is temporarily unavailable",
    }
    capture_mock.assert_called_once_with(exc)
    assert any("operation='get'" in record.message for record in caplog.records)


@pytest.mark.asyncio
async def test_infrastructure_handler(capture_mock: MagicMock) -> None:
    handler = handlers.InfrastructureExceptionHandler()

    response = await handler(_build_request(), InfrastructureException("boom"))

    assert response.status_code == 500
    assert json.loads(response.body)["error"] == "Infrastructure error"
    capture_mock.assert_called_once()


@pytest.mark.asyncio
async def test_core_exception_handler() -> None:
    handler = handlers.CoreExceptionHandler()

    response = await handler(_build_request(), CoreException("failed to process"))

    assert response.status_code == 400
    assert json.loads(response.body) == {
        "error": "Bad request",
        "message": "failed to process",
    }
