"""
Tool-calling chat agent over the user's connected sources.
"""

from .citations import extract_citations
from .memory import ConversationMemoryStore
from .orchestrator import AgentOrchestrator, build_chat_model
from .prompts import SERVICE_UNAVAILABLE_MESSAGE, SYSTEM_PROMPT

__all__ = [
    "AgentOrchestrator",
    "ConversationMemoryStore",
    "SERVICE_UNAVAILABLE_MESSAGE",
    "SYSTEM_PROMPT",
    "build_chat_model",
    "extract_citations",
]
