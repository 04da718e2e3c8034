"""
Retrieval tools for the chat agent.

- document/: Notion page search
- email/: Gmail message search
- crm/: HubSpot contacts
- results.py: typed tool results and their JSON form
- tools.py: per-user LangChain tool bindings
"""

from .results import (
    Contact,
    ContactHits,
    DocumentHit,
    DocumentHits,
    EmailHit,
    EmailHits,
    ErrorResult,
    ToolResult,
    parse_tool_result,
)
from .tools import RetrievalTools

__all__ = [
    "Contact",
    "ContactHits",
    "DocumentHit",
    "DocumentHits",
    "EmailHit",
    "EmailHits",
    "ErrorResult",
    "ToolResult",
    "parse_tool_result",
    "RetrievalTools",
]
