"""Tests for OAuth token refresh."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
import requests

from ingestion.auth import token_refresher as refresher_module
from ingestion.auth.token_refresher import TokenRefresher, needs_refresh
from knowledge_manager.core.exceptions import AuthError, UpstreamError
from knowledge_manager.core.models import (
    OAuthAccount,
    PROVIDER_GOOGLE,
    PROVIDER_HUBSPOT,
    PROVIDER_NOTION,
)
from tests.fakes import FakeAccountStore

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _response(status: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload or {}
    return response


def _hubspot(expires_at=None, refresh_token="r1") -> OAuthAccount:
    return OAuthAccount(
        user_id="u1",
        provider=PROVIDER_HUBSPOT,
        access_token="old",
        refresh_token=refresh_token,
        token_expires_at=expires_at,
    )


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store() -> FakeAccountStore:
    return FakeAccountStore()


@pytest.fixture
def refresher(config, store, session) -> TokenRefresher:
    return TokenRefresher(config, store, session=session)


@pytest.mark.parametrize(
    "expires_at, expected",
    [
        (None, False),
        (NOW + timedelta(hours=1), False),
        (NOW + timedelta(minutes=4), True),
        (NOW - timedelta(minutes=1), True),
        (datetime(2024, 5, 1, 12, 3), True),  # naive values are treated as UTC
    ],
)
def test_needs_refresh(expires_at, expected) -> None:
    assert needs_refresh(_hubspot(expires_at), timedelta(minutes=5), now=NOW) is expected


def test_fresh_token_is_returned_untouched(refresher, session) -> None:
    account = _hubspot(NOW + timedelta(hours=2))

    assert refresher.ensure_fresh(account, now=NOW) is account
    session.post.assert_not_called()


def test_expiring_hubspot_token_is_refreshed_and_persisted(refresher, session, store) -> None:
    session.post.return_value = _response(200, {"access_token": "new", "refresh_token": "r2", "expires_in": 1800})

    account = refresher.ensure_fresh(_hubspot(NOW + timedelta(minutes=1)), now=NOW)

    assert account.access_token == "new"
    assert account.refresh_token == "r2"
    assert account.token_expires_at > NOW
    assert store.saved[-1].access_token == "new"
    url = session.post.call_args.args[0]
    assert url == refresher_module.HUBSPOT_TOKEN_URL
    assert session.post.call_args.kwargs["data"]["grant_type"] == "refresh_token"


def test_notion_refresh_uses_basic_auth(refresher, session, config) -> None:
    session.post.return_value = _response(200, {"access_token": "n-new"})
    account = OAuthAccount(user_id="u1", provider=PROVIDER_NOTION, access_token="n-old", refresh_token="nr")

    refreshed = refresher.refresh(account)

    assert refreshed.access_token == "n-new"
    assert refreshed.refresh_token == "nr"
    kwargs = session.post.call_args.kwargs
    assert kwargs["auth"] == (config.NOTION_CLIENT_ID, config.NOTION_CLIENT_SECRET)
    assert kwargs["json"] == {"grant_type": "refresh_token", "refresh_token": "nr"}


def test_missing_refresh_token_raises_auth_error(refresher, session) -> None:
    with pytest.raises(AuthError):
        refresher.refresh(_hubspot(refresh_token=None))
    session.post.assert_not_called()


@pytest.mark.parametrize("status, error", [(400, AuthError), (401, AuthError), (500, UpstreamError)])
def test_token_endpoint_failures(refresher, session, store, status, error) -> None:
    session.post.return_value = _response(status)

    with pytest.raises(error):
        refresher.refresh(_hubspot())
    assert store.saved == []


def test_unreachable_token_endpoint(refresher, session) -> None:
    session.post.side_effect = requests.ConnectionError("down")

    with pytest.raises(UpstreamError):
        refresher.refresh(_hubspot())


def test_google_refresh_uses_google_auth(refresher, store, monkeypatch) -> None:
    expiry = datetime(2024, 5, 1, 13, 0)
    credentials = MagicMock(token="g-new", refresh_token=None, expiry=expiry)
    factory = MagicMock(return_value=credentials)
    monkeypatch.setattr(refresher_module, "Credentials", factory)
    account = OAuthAccount(user_id="u1", provider=PROVIDER_GOOGLE, access_token="g-old", refresh_token="gr")

    refreshed = refresher.refresh(account)

    assert factory.call_args.kwargs["refresh_token"] == "gr"
    credentials.refresh.assert_called_once()
    assert refreshed.access_token == "g-new"
    assert refreshed.refresh_token == "gr"
    assert refreshed.token_expires_at == expiry.replace(tzinfo=UTC)
    assert store.saved[-1].access_token == "g-new"


def test_google_refresh_rejection_is_auth_error(refresher, monkeypatch) -> None:
    credentials = MagicMock()
    credentials.refresh.side_effect = refresher_module.RefreshError("invalid_grant")
    monkeypatch.setattr(refresher_module, "Credentials", MagicMock(return_value=credentials))
    account = OAuthAccount(user_id="u1", provider=PROVIDER_GOOGLE, access_token="g", refresh_token="gr")

    with pytest.raises(AuthError):
        refresher.refresh(account)
