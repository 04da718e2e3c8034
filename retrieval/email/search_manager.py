#!/usr/bin/env python
"""
Email Search Manager

Semantic search over a user's synced Gmail messages.
"""

import logging
from typing import Any

from knowledge_manager.core.models import PROVIDER_GOOGLE

from ..document.search_manager import clamp_top_k
from ..results import EmailHit, EmailHits, ErrorResult, ToolResult

logger = logging.getLogger(__name__)

NOT_CONNECTED = (
    "Google account not connected. Please connect your Google account first to search your emails."
)
PREVIEW_CHARS = 500


def preview(content: str, limit: int = PREVIEW_CHARS) -> str:
    content = content or ""
    return content[:limit] + ("..." if len(content) > limit else "")


class EmailSearchManager:
    """Search orchestration for Gmail messages."""

    def __init__(self, collection_name: str, account_store: Any, vector_index: Any, embeddings: Any) -> None:
        self.collection_name = collection_name
        self.account_store = account_store
        self.vector_index = vector_index
        self.embeddings = embeddings

    def search(self, user_id: str, query: str, top_k: int = 5) -> ToolResult:
        if self.account_store.get(user_id, PROVIDER_GOOGLE) is None:
            return ErrorResult(NOT_CONNECTED)

        limit = clamp_top_k(top_k)
        vector = self.embeddings.embed_query(query)
        rows = self.vector_index.search(self.collection_name, user_id, vector, limit)
        logger.info(f"Gmail search for user {user_id} '{query[:50]}' returned {len(rows)} hits")
        return EmailHits(
            query=query,
            hits=[
                EmailHit(
                    rank=i + 1,
                    sender=row.get("sender") or "",
                    subject=row.get("subject") or "",
                    content=preview(row.get("content")),
                    relevance_score=round(float(row.get("score") or 0.0), 2),
                )
                for i, row in enumerate(rows)
            ],
        )
