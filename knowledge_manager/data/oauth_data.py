#!/usr/bin/env python
"""
OAuth Account Store

Pure data access for connected provider accounts. The OAuth code exchange
itself happens outside this service; this store reads the stored accounts
and persists refreshed tokens.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from ..core.models import OAuthAccount
from .base_data import BaseDataManager

logger = logging.getLogger(__name__)


def _row_to_account(row: Dict[str, Any]) -> OAuthAccount:
    return OAuthAccount(
        user_id=row["user_id"],
        provider=row["provider"],
        access_token=row["access_token"],
        refresh_token=row.get("refresh_token"),
        token_expires_at=row.get("token_expires_at"),
        scopes=row.get("scopes"),
        raw_profile=row.get("raw_profile") or {},
    )


class OAuthAccountStore(BaseDataManager):
    """Reads and updates rows in ``oauth_accounts``."""

    def get(self, user_id: str, provider: str) -> Optional[OAuthAccount]:
        row = self.execute_query(
            """
            SELECT user_id, provider, access_token, refresh_token,
                   token_expires_at, scopes, raw_profile
            FROM oauth_accounts
            WHERE user_id = %s AND provider = %s
            """,
            (user_id, provider),
            fetch_one=True,
        )
        return _row_to_account(row) if row else None

    def list_for_user(self, user_id: str) -> List[OAuthAccount]:
        rows = self.execute_query(
            """
            SELECT user_id, provider, access_token, refresh_token,
                   token_expires_at, scopes, raw_profile
            FROM oauth_accounts
            WHERE user_id = %s
            ORDER BY provider
            """,
            (user_id,),
            fetch_all=True,
        )
        return [_row_to_account(r) for r in rows or []]

    def save_tokens(self, account: OAuthAccount) -> None:
        """
        Insert the account or replace its credentials.

        Args:
            account: Account carrying the current tokens and expiry
        """
        self.execute_query(
            """
            INSERT INTO oauth_accounts (
                user_id, provider, access_token, refresh_token,
                token_expires_at, scopes, raw_profile
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id, provider)
            DO UPDATE SET
                access_token = EXCLUDED.access_token,
                refresh_token = COALESCE(EXCLUDED.refresh_token, oauth_accounts.refresh_token),
                token_expires_at = EXCLUDED.token_expires_at,
                updated_at = NOW()
            """,
            (
                account.user_id,
                account.provider,
                account.access_token,
                account.refresh_token,
                account.token_expires_at,
                account.scopes,
                Json(account.raw_profile or {}),
            ),
        )
        logger.info(f"Stored tokens for {account.provider} account of user {account.user_id}")

    def delete(self, user_id: str, provider: str) -> None:
        self.execute_query(
            "DELETE FROM oauth_accounts WHERE user_id = %s AND provider = %s",
            (user_id, provider),
        )
        logger.info(f"Removed {provider} account for user {user_id}")
