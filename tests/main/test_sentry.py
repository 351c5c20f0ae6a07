from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from src.main.config import Config, load_settings
import src.main.sentry as sentry_module


def build_settings(**overrides: Any) -> Config:
    env: dict[str, Any] = {
        "JWT_SECRET_KEY": "sentry-test-secret-with-enough-length",
        "DEBUG": False,
        "TESTING": False,
        "SENTRY_ENABLED": True,
        "SENTRY_DSN": "http://example.com",
    }
    env.update(overrides)
    return load_settings(env)


@pytest.fixture(autouse=True)
def reset_sentry_state(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sentry_module, "_sentry_initialized", False)


@pytest.fixture
def init_mock(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(sentry_module.sentry_sdk, "init", mock)
    return mock


@pytest.mark.parametrize(
    "overrides",
    [
        {"DEBUG": True},
        {"TESTING": True},
        {"SENTRY_ENABLED": False},
        {"SENTRY_DSN": ""},
    ],
)
def test_init_sentry_skips(
    monkeypatch: pytest.MonkeyPatch, init_mock: MagicMock, overrides: dict[str, Any]
) -> None:
    settings = build_settings(**overrides)
    monkeypatch.setattr(sentry_module, "get_settings", lambda: settings)

    sentry_module.init_sentry()

    init_mock.assert_not_called()
    assert sentry_module._sentry_initialized is False


def test_init_sentry_initializes_once(
    monkeypatch: pytest.MonkeyPatch, init_mock: MagicMock
) -> None:
    settings = build_settings(SENTRY_ENV="test", VERSION="1.2.3")
    monkeypatch.setattr(sentry_module, "get_settings", lambda: settings)

    sentry_module.init_sentry()
    sentry_module.init_sentry()

    init_mock.assert_called_once()
    assert init_mock.call_args.kwargs["environment"] == "test"
    assert init_mock.call_args.kwargs["release"] == "1.2.3"
    assert sentry_module._sentry_initialized is True


def test_before_send_filters_session_credentials(
    monkeypatch: pytest.MonkeyPatch, init_mock: MagicMock
) -> None:
    settings = build_settings()
    monkeypatch.setattr(sentry_module, "get_settings", lambda: settings)

    sentry_module.init_sentry()
    before_send = init_mock.call_args.kwargs["before_send"]
    event = {
        "request": {
            "headers": {
                "Authorization": "Bearer abc",
                "X-Refresh-Token": "def",
                "x-csrf-token": "ghi",
                "Accept": "application/json",
            },
            "cookies": {"jwt_access": "abc", "theme": "dark"},
        }
    }

    scrubbed = before_send(event, {})

    assert scrubbed["request"]["headers"] == {
        "Authorization": sentry_module.FILTERED,
        "X-Refresh-Token": sentry_module.FILTERED,
        "x-csrf-token": sentry_module.FILTERED,
        "Accept": "application/json",
    }
    assert scrubbed["request"]["cookies"] == {
        "jwt_access": sentry_module.FILTERED,
        "theme": "dark",
    }


def test_scrub_credentials_ignores_events_without_request() -> None:
    event = {"message": "boom"}

    assert sentry_module.scrub_credentials(event, frozenset({"cookie"})) == event
