#!/usr/bin/env python
"""
Document Search Manager

Semantic search over a user's synced Notion pages.
"""

import logging
from typing import Any

from knowledge_manager.core.models import PROVIDER_NOTION

from ..results import DocumentHit, DocumentHits, ErrorResult, ToolResult

logger = logging.getLogger(__name__)

NOT_CONNECTED = (
    "Notion account not connected. Please connect your Notion account first to search your documents."
)


def clamp_top_k(top_k: Any, default: int = 5) -> int:
    """Clamp a requested result count into [1, 10]."""
    try:
        value = int(top_k) if top_k is not None else default
    except (TypeError, ValueError):
        value = default
    return min(max(value or default, 1), 10)


class DocumentSearchManager:
    """
    Search orchestration for Notion pages.

    Coordinates the account store (connection check), the embedding client
    and the Milvus manager.
    """

    def __init__(self, collection_name: str, account_store: Any, vector_index: Any, embeddings: Any) -> None:
        self.collection_name = collection_name
        self.account_store = account_store
        self.vector_index = vector_index
        self.embeddings = embeddings

    def search(self, user_id: str, query: str, top_k: int = 5) -> ToolResult:
        if self.account_store.get(user_id, PROVIDER_NOTION) is None:
            return ErrorResult(NOT_CONNECTED)

        limit = clamp_top_k(top_k)
        vector = self.embeddings.embed_query(query)
        rows = self.vector_index.search(self.collection_name, user_id, vector, limit)
        logger.info(f"Notion search for user {user_id} '{query[:50]}' returned {len(rows)} hits")
        return DocumentHits(
            query=query,
            hits=[
                DocumentHit(
                    rank=i + 1,
                    page_title=row.get("page_title") or "",
                    content=row.get("content") or "",
                    relevance_score=round(float(row.get("score") or 0.0), 2),
                )
                for i, row in enumerate(rows)
            ],
        )
