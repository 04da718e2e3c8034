"""Shared run loop for incremental connector syncs.

A pipeline lists every record a provider exposes, skips the ones the sync
ledger says are current, and for the rest extracts text, writes vectors and
finally records the result in the ledger. Provider subclasses supply the
listing, fetching, chunking and row layout.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from knowledge_manager.core.config import Config
from knowledge_manager.core.exceptions import AuthError
from knowledge_manager.core.models import OAuthAccount, SyncLedgerEntry, SyncStats

logger = logging.getLogger(__name__)


@dataclass
class SourceRecord:
    """One listed provider record before its content is fetched."""
    record_id: str
    version: Optional[datetime] = None
    title: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtractedContent:
    """Text and metadata for one record, ready to chunk."""
    title: str
    text: str
    subtitle: Optional[str] = None
    version: Optional[datetime] = None


class BaseSyncPipeline(ABC):
    """Template for a provider sync.

    Parameters
    ----------
    config : Config
        Application configuration.
    ledger : Any
        Store implementing ``get`` and ``upsert`` for :class:`SyncLedgerEntry`.
    vector_index : Any
        Store implementing ``insert`` and ``delete_records``.
    embeddings : Any
        Client implementing ``embed_documents``.
    sleep : Callable[[float], None]
        Used for the pause between records.
    """

    provider: str = ""
    collection_name: str = ""
    record_delay_seconds: float = 0.0
    # Records never change once created, so any ledger entry means current
    records_are_immutable: bool = False

    def __init__(
        self,
        config: Config,
        ledger: Any,
        vector_index: Any,
        embeddings: Any,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.vector_index = vector_index
        self.embeddings = embeddings
        self.sleep = sleep

    # ------------------------------------------------------------------
    @abstractmethod
    def open_session(self, account: OAuthAccount) -> Any:
        """Return an authenticated provider client for one run.

        The client is handed to the other hooks; pipelines are shared by
        concurrent runs and hold no per-user state.
        """

    @abstractmethod
    def list_records(self, session: Any) -> List[SourceRecord]:
        """Return every record to consider, following all pagination cursors."""

    @abstractmethod
    def fetch_content(self, session: Any, record: SourceRecord) -> ExtractedContent:
        """Fetch and extract the plain text of one record."""

    @abstractmethod
    def chunk(self, content: ExtractedContent) -> List[str]:
        """Split extracted text into the units that are embedded."""

    @abstractmethod
    def embedding_text(self, content: ExtractedContent, chunk: str) -> str:
        """Text handed to the embedding model for one chunk."""

    @abstractmethod
    def build_row(
        self,
        user_id: str,
        record: SourceRecord,
        content: ExtractedContent,
        index: int,
        chunk: str,
        vector: List[float],
    ) -> Dict[str, Any]:
        """Vector row for one chunk."""

    # ------------------------------------------------------------------
    def is_current(self, user_id: str, record: SourceRecord) -> bool:
        entry = self.ledger.get(user_id, self.provider, record.record_id)
        if entry is None:
            return False
        if self.records_are_immutable:
            return True
        if entry.source_version is None or record.version is None:
            return False
        return entry.source_version >= record.version

    def run(self, account: OAuthAccount, force_sync: bool = False) -> SyncStats:
        """Sync every listed record for ``account``.

        Raises:
            AuthError: The provider rejected the credentials. Nothing after
                the failing call is written.
        """
        user_id = account.user_id
        stats = SyncStats(provider=self.provider)

        session = self.open_session(account)
        records = self.list_records(session)
        stats.found = len(records)
        logger.info(f"{self.provider}: {stats.found} records found for user {user_id} (force_sync={force_sync})")

        for record in records:
            if not force_sync and self.is_current(user_id, record):
                stats.skipped += 1
                continue

            try:
                chunk_count = self.sync_record(session, user_id, record)
                stats.processed += 1
                logger.info(f"{self.provider}: synced '{record.title or record.record_id}' ({chunk_count} chunks)")
            except AuthError:
                raise
            except Exception as exc:
                stats.failed += 1
                logger.error(f"{self.provider}: failed to sync record {record.record_id}: {exc}", exc_info=True)

            if self.record_delay_seconds > 0:
                self.sleep(self.record_delay_seconds)

        return stats

    def sync_record(self, session: Any, user_id: str, record: SourceRecord) -> int:
        """Index one record and write its ledger entry; returns the chunk count.

        Old vectors for the record are always removed before the insert, so a
        retry after a failed ledger write never leaves duplicate rows.
        """
        content = self.fetch_content(session, record)
        chunks = self.chunk(content)

        if not chunks:
            # Drop whatever an earlier version left behind
            self.vector_index.delete_records(self.collection_name, user_id, record.record_id)
        else:
            texts = [self.embedding_text(content, c) for c in chunks]
            vectors = self.embeddings.embed_documents(texts)
            rows = [
                self.build_row(user_id, record, content, i, c, v)
                for i, (c, v) in enumerate(zip(chunks, vectors))
            ]
            self.vector_index.delete_records(self.collection_name, user_id, record.record_id)
            self.vector_index.insert(self.collection_name, rows)

        self.ledger.upsert(
            SyncLedgerEntry(
                user_id=user_id,
                provider=self.provider,
                source_record_id=record.record_id,
                title=content.title,
                subtitle=content.subtitle,
                source_version=content.version or record.version,
                chunk_count=len(chunks),
            )
        )
        return len(chunks)
