#!/usr/bin/env python
"""
Chat Message Store

Durable chat history. Conversation memory is rehydrated from here the first
time a conversation is seen by the agent.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from ..core.models import Citation
from .base_data import BaseDataManager

logger = logging.getLogger(__name__)


class ChatMessageStore(BaseDataManager):
    """Reads and appends rows in ``chats`` and ``chat_messages``."""

    def ensure_chat(self, chat_id: str, user_id: str, title: Optional[str] = None) -> None:
        self.execute_query(
            """
            INSERT INTO chats (id, user_id, title) VALUES (%s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            (chat_id, user_id, title),
        )

    def list_messages(self, chat_id: str) -> List[Dict[str, Any]]:
        """
        Return a chat's messages in creation order.

        Returns:
            List of dicts with ``role``, ``content``, ``citations`` and ``created_at``
        """
        rows = self.execute_query(
            """
            SELECT role, content, citations, created_at
            FROM chat_messages
            WHERE chat_id = %s
            ORDER BY created_at ASC, id ASC
            """,
            (chat_id,),
            fetch_all=True,
        )
        return [dict(r) for r in rows or []]

    def save_message(self, chat_id: str, content: str, role: str, citations: Optional[List[Citation]] = None) -> None:
        self.execute_many([
            (
                """
                INSERT INTO chat_messages (chat_id, role, content, citations)
                VALUES (%s, %s, %s, %s)
                """,
                (chat_id, role, content, Json([c.to_dict() for c in citations or []])),
            ),
            ("UPDATE chats SET updated_at = NOW() WHERE id = %s", (chat_id,)),
        ])
        logger.debug(f"Saved {role} message to chat {chat_id}")
