#!/usr/bin/env python
"""
Sync Ledger

Pure data access for ``sync_ledger``, the record of which provider records
have been indexed, at which version and with how many chunks. Only the sync
engine writes here.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.models import SyncLedgerEntry
from .base_data import BaseDataManager

logger = logging.getLogger(__name__)

_COLUMNS = """
    user_id, provider, source_record_id, title, subtitle,
    source_version, chunk_count, created_at, updated_at
"""


def _row_to_entry(row: Dict[str, Any]) -> SyncLedgerEntry:
    return SyncLedgerEntry(
        user_id=row["user_id"],
        provider=row["provider"],
        source_record_id=row["source_record_id"],
        title=row.get("title") or "",
        subtitle=row.get("subtitle"),
        source_version=row.get("source_version"),
        chunk_count=row.get("chunk_count") or 0,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class SyncLedger(BaseDataManager):
    """PostgreSQL-backed sync ledger."""

    def get(self, user_id: str, provider: str, source_record_id: str) -> Optional[SyncLedgerEntry]:
        row = self.execute_query(
            f"""
            SELECT {_COLUMNS}
            FROM sync_ledger
            WHERE user_id = %s AND provider = %s AND source_record_id = %s
            """,
            (user_id, provider, source_record_id),
            fetch_one=True,
        )
        return _row_to_entry(row) if row else None

    def upsert(self, entry: SyncLedgerEntry) -> None:
        """
        Record that a source record has been indexed.

        Args:
            entry: Ledger entry with the indexed version and chunk count
        """
        self.execute_query(
            """
            INSERT INTO sync_ledger (
                user_id, provider, source_record_id, title, subtitle,
                source_version, chunk_count
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id, provider, source_record_id)
            DO UPDATE SET
                title = EXCLUDED.title,
                subtitle = EXCLUDED.subtitle,
                source_version = EXCLUDED.source_version,
                chunk_count = EXCLUDED.chunk_count,
                updated_at = NOW()
            """,
            (
                entry.user_id,
                entry.provider,
                entry.source_record_id,
                entry.title,
                entry.subtitle,
                entry.source_version,
                entry.chunk_count,
            ),
        )

    def delete_for(self, user_id: str, provider: str) -> None:
        deleted = self.execute_query(
            "DELETE FROM sync_ledger WHERE user_id = %s AND provider = %s",
            (user_id, provider),
        )
        logger.info(f"Cleared {deleted} {provider} ledger entries for user {user_id}")

    def list_for(self, user_id: str, provider: str) -> List[SyncLedgerEntry]:
        rows = self.execute_query(
            f"""
            SELECT {_COLUMNS}
            FROM sync_ledger
            WHERE user_id = %s AND provider = %s
            ORDER BY updated_at DESC
            """,
            (user_id, provider),
            fetch_all=True,
        )
        return [_row_to_entry(r) for r in rows or []]

    def count_for(self, user_id: str, provider: str) -> int:
        row = self.execute_query(
            "SELECT COUNT(*) AS total FROM sync_ledger WHERE user_id = %s AND provider = %s",
            (user_id, provider),
            fetch_one=True,
        )
        return int(row["total"]) if row else 0
