"""Provider-specific OAuth token refresh.

Access tokens are refreshed when they expire within a safety margin of now.
Refreshed credentials are persisted through the account store before they are
used, so a crash after refresh never loses a rotated refresh token.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from knowledge_manager.core.config import Config
from knowledge_manager.core.exceptions import AuthError, UpstreamError
from knowledge_manager.core.models import (
    OAuthAccount,
    PROVIDER_GOOGLE,
    PROVIDER_HUBSPOT,
    PROVIDER_NOTION,
)

logger = logging.getLogger(__name__)

NOTION_TOKEN_URL = "https://api.notion.com/v1/oauth/token"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
HUBSPOT_TOKEN_URL = "https://api.hubapi.com/oauth/v1/token"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def needs_refresh(account: OAuthAccount, margin: timedelta, now: Optional[datetime] = None) -> bool:
    """Return True when the access token expires within ``margin`` of ``now``.

    Accounts without an expiry (Notion issues non-expiring tokens) never need
    a refresh.
    """
    expires_at = _as_utc(account.token_expires_at)
    if expires_at is None:
        return False
    now = now or datetime.now(UTC)
    return now >= expires_at - margin


class TokenRefresher:
    """Refresh and persist provider access tokens."""

    def __init__(self, config: Config, account_store: Any, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.account_store = account_store
        self.session = session or requests.Session()
        self.margin = timedelta(minutes=config.TOKEN_REFRESH_MARGIN_MINUTES)
        self.timeout = config.HTTP_TIMEOUT_SECONDS

    def ensure_fresh(self, account: OAuthAccount, now: Optional[datetime] = None) -> OAuthAccount:
        """Return ``account`` with a usable access token, refreshing if due."""
        if not needs_refresh(account, self.margin, now):
            return account
        logger.info(f"Access token for {account.provider} account of user {account.user_id} is expiring, refreshing")
        return self.refresh(account)

    def refresh(self, account: OAuthAccount) -> OAuthAccount:
        """Exchange the refresh token for a new access token and persist it.

        Raises:
            AuthError: No refresh token is stored or the provider rejected it.
            UpstreamError: The token endpoint could not be reached.
        """
        if not account.refresh_token:
            raise AuthError(
                f"No refresh token available for {account.provider}. User needs to re-authenticate."
            )

        if account.provider == PROVIDER_NOTION:
            self._refresh_notion(account)
        elif account.provider == PROVIDER_GOOGLE:
            self._refresh_google(account)
        elif account.provider == PROVIDER_HUBSPOT:
            self._refresh_hubspot(account)
        else:
            raise AuthError(f"Token refresh not supported for provider '{account.provider}'")

        self.account_store.save_tokens(account)
        logger.info(f"Refreshed {account.provider} token for user {account.user_id}")
        return account

    def _post_token(self, url: str, **kwargs) -> dict:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamError(f"Token endpoint {url} unreachable: {exc}") from exc
        if response.status_code in (400, 401, 403):
            raise AuthError(f"Token refresh rejected by {url} ({response.status_code})")
        if response.status_code >= 300:
            raise UpstreamError(f"Token refresh failed at {url}", status_code=response.status_code)
        return response.json()

    def _apply(self, account: OAuthAccount, payload: dict) -> None:
        account.access_token = payload["access_token"]
        if payload.get("refresh_token"):
            account.refresh_token = payload["refresh_token"]
        if payload.get("expires_in"):
            account.token_expires_at = datetime.now(UTC) + timedelta(seconds=int(payload["expires_in"]))

    def _refresh_notion(self, account: OAuthAccount) -> None:
        payload = self._post_token(
            NOTION_TOKEN_URL,
            json={"grant_type": "refresh_token", "refresh_token": account.refresh_token},
            auth=(self.config.NOTION_CLIENT_ID, self.config.NOTION_CLIENT_SECRET),
        )
        self._apply(account, payload)

    def _refresh_hubspot(self, account: OAuthAccount) -> None:
        payload = self._post_token(
            HUBSPOT_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "client_id": self.config.HUBSPOT_CLIENT_ID,
                "client_secret": self.config.HUBSPOT_CLIENT_SECRET,
                "refresh_token": account.refresh_token,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        self._apply(account, payload)

    def _refresh_google(self, account: OAuthAccount) -> None:
        creds = Credentials(
            token=account.access_token,
            refresh_token=account.refresh_token,
            token_uri=GOOGLE_TOKEN_URL,
            client_id=self.config.GOOGLE_CLIENT_ID,
            client_secret=self.config.GOOGLE_CLIENT_SECRET,
        )
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            raise AuthError(f"Google token refresh rejected: {exc}") from exc
        except Exception as exc:
            raise UpstreamError(f"Google token refresh failed: {exc}") from exc
        account.access_token = creds.token
        if creds.refresh_token:
            account.refresh_token = creds.refresh_token
        account.token_expires_at = _as_utc(creds.expiry)
