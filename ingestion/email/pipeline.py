"""Incremental sync of recent Gmail messages into ``gmail_messages``.

Each message is embedded as a single unit. Messages are treated as
immutable: once a message id is in the ledger it is never fetched again
unless a forced sync is requested.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from google.oauth2.credentials import Credentials

from knowledge_manager.core.models import OAuthAccount, PROVIDER_GOOGLE

from ..base_pipeline import BaseSyncPipeline, ExtractedContent, SourceRecord
from .connectors.gmail_connector import GmailConnector
from .extractor import parse_gmail_message

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class GmailSyncPipeline(BaseSyncPipeline):
    """Sync messages received in the last ``GMAIL_LOOKBACK_DAYS`` days."""

    provider = PROVIDER_GOOGLE
    records_are_immutable = True

    def __init__(self, config, ledger, vector_index, embeddings, *,
                 connector_factory: Optional[Callable[[OAuthAccount], Any]] = None,
                 now: Optional[Callable[[], datetime]] = None, **kwargs) -> None:
        super().__init__(config, ledger, vector_index, embeddings, **kwargs)
        self.collection_name = config.GMAIL_COLLECTION
        self.record_delay_seconds = config.GMAIL_RECORD_DELAY_SECONDS
        self.connector_factory = connector_factory or self._default_connector
        self.now = now or (lambda: datetime.now(UTC))

    def _default_connector(self, account: OAuthAccount) -> GmailConnector:
        creds = Credentials(
            token=account.access_token,
            refresh_token=account.refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self.config.GOOGLE_CLIENT_ID,
            client_secret=self.config.GOOGLE_CLIENT_SECRET,
        )
        return GmailConnector(credentials=creds, timeout=self.config.HTTP_TIMEOUT_SECONDS)

    def open_session(self, account: OAuthAccount) -> Any:
        return self.connector_factory(account)

    def list_records(self, session: Any) -> List[SourceRecord]:
        since = self.now() - timedelta(days=self.config.GMAIL_LOOKBACK_DAYS)
        stubs = session.list_message_ids(since, page_size=self.config.GMAIL_PAGE_SIZE)
        return [SourceRecord(record_id=stub["id"], payload=stub) for stub in stubs]

    def fetch_content(self, session: Any, record: SourceRecord) -> ExtractedContent:
        message = session.get_raw_message(record.record_id)
        email = parse_gmail_message(record.record_id, message.get("raw", ""), message.get("internalDate"))
        record.title = email.subject
        return ExtractedContent(
            title=email.subject,
            subtitle=email.sender,
            text=email.body,
            version=email.sent_at,
        )

    def chunk(self, content: ExtractedContent) -> List[str]:
        return [content.text] if content.text.strip() else []

    def embedding_text(self, content: ExtractedContent, chunk: str) -> str:
        return f"{content.title}\n\n{chunk}"

    def build_row(self, user_id, record, content, index, chunk, vector) -> Dict[str, Any]:
        return {
            "user_id": user_id[:64],
            "email_id": record.record_id[:128],
            "sender": (content.subtitle or "")[:256],
            "subject": content.title[:512],
            "content": chunk,
            "embedding": vector,
        }
