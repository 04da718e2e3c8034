"""
Per-conversation message history held in process memory.

History is rehydrated from durable storage the first time a conversation is
used. Concurrent first requests for the same conversation serialise on a
per-conversation lock so the loader runs once; the lock is dropped once
the history is loaded.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

logger = logging.getLogger(__name__)

HistoryLoader = Callable[[str], Iterable[Dict[str, Any]]]


def to_message(row: Dict[str, Any]) -> BaseMessage:
    """Map a persisted ``{"role", "content"}`` row to a chat message."""
    if row.get("role") == "user":
        return HumanMessage(content=row.get("content") or "")
    return AIMessage(content=row.get("content") or "")


class ConversationMemoryStore:
    """Thread-safe map of conversation id to ordered messages."""

    def __init__(self) -> None:
        self._messages: Dict[str, List[BaseMessage]] = {}
        self._initialized: Set[str] = set()
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = threading.Lock()
            return lock

    def get(self, conversation_id: str) -> List[BaseMessage]:
        with self._guard:
            return list(self._messages.get(conversation_id, []))

    def append(self, conversation_id: str, *messages: BaseMessage) -> None:
        with self._guard:
            self._messages.setdefault(conversation_id, []).extend(messages)

    def clear(self, conversation_id: str) -> None:
        with self._guard:
            self._messages.pop(conversation_id, None)
            self._initialized.discard(conversation_id)
            self._locks.pop(conversation_id, None)

    def is_initialized(self, conversation_id: str) -> bool:
        with self._guard:
            return conversation_id in self._initialized

    def ensure_initialized(self, conversation_id: str, loader: Optional[HistoryLoader]) -> None:
        """Load persisted history once per conversation id.

        The loader's exceptions propagate and leave the conversation
        uninitialised, so a later call retries.
        """
        if self.is_initialized(conversation_id):
            return
        with self._lock_for(conversation_id):
            if self.is_initialized(conversation_id):
                return
            loaded = [to_message(row) for row in (loader(conversation_id) if loader else [])]
            with self._guard:
                self._messages[conversation_id] = loaded
                self._initialized.add(conversation_id)
                # Later calls return on the initialised check before locking
                self._locks.pop(conversation_id, None)
            logger.debug(f"Initialized conversation {conversation_id} with {len(loaded)} messages")
