"""Incremental sync of Notion pages into the ``notion_pages`` collection."""

import logging
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Optional

from knowledge_manager.core.models import OAuthAccount, PROVIDER_NOTION

from ..base_pipeline import BaseSyncPipeline, ExtractedContent, SourceRecord
from ..utils.chunker import TextChunker
from .client import NotionClient
from .extractor import page_title, page_to_text

logger = logging.getLogger(__name__)


def parse_notion_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class NotionSyncPipeline(BaseSyncPipeline):
    """Sync every page the Notion integration can see.

    Pages are re-indexed when their ``last_edited_time`` is newer than the
    ledger's version. Each page is split into overlapping chunks and its old
    vectors are replaced wholesale.
    """

    provider = PROVIDER_NOTION

    def __init__(self, config, ledger, vector_index, embeddings, *,
                 client_factory: Optional[Callable[[str], Any]] = None, **kwargs) -> None:
        super().__init__(config, ledger, vector_index, embeddings, **kwargs)
        self.collection_name = config.NOTION_COLLECTION
        self.record_delay_seconds = config.NOTION_RECORD_DELAY_SECONDS
        self.chunker = TextChunker(config.NOTION_CHUNK_SIZE, config.NOTION_CHUNK_OVERLAP)
        self.client_factory = client_factory or self._default_client

    def _default_client(self, access_token: str) -> NotionClient:
        return NotionClient(
            access_token,
            api_version=self.config.NOTION_API_VERSION,
            page_size=self.config.NOTION_PAGE_SIZE,
            timeout=self.config.HTTP_TIMEOUT_SECONDS,
        )

    def open_session(self, account: OAuthAccount) -> Any:
        return self.client_factory(account.access_token)

    def list_records(self, session: Any) -> List[SourceRecord]:
        return [
            SourceRecord(
                record_id=page["id"],
                version=parse_notion_time(page.get("last_edited_time")),
                title=page_title(page),
                payload=page,
            )
            for page in session.search_pages()
        ]

    def fetch_content(self, session: Any, record: SourceRecord) -> ExtractedContent:
        return ExtractedContent(
            title=record.title,
            text=page_to_text(session, record.record_id),
            version=record.version,
        )

    def chunk(self, content: ExtractedContent) -> List[str]:
        return self.chunker.split(content.text)

    def embedding_text(self, content: ExtractedContent, chunk: str) -> str:
        return f"{content.title}\n\n{chunk}"

    def build_row(self, user_id, record, content, index, chunk, vector) -> Dict[str, Any]:
        return {
            "user_id": user_id[:64],
            "page_id": record.record_id[:128],
            "page_title": content.title[:512],
            "chunk_index": index,
            "content": chunk,
            "embedding": vector,
        }
