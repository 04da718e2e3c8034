"""
Per-user retrieval tools exposed to the chat model.

Each boundary method returns one JSON string and never raises; failures are
reported to the model as ``{"error": ...}`` payloads.
"""

import logging
from typing import Any, List, Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from .results import (
    CONTACTS_TOOL,
    DOCUMENT_TOOL,
    EMAIL_TOOL,
    ErrorResult,
    to_json,
)

logger = logging.getLogger(__name__)


class SearchArgs(BaseModel):
    query: str = Field(..., description="The search query. Be specific and descriptive.")
    topK: Optional[int] = Field(default=5, description="Number of results to retrieve (default: 5, max: 10)")


class ContactsArgs(BaseModel):
    limit: Optional[int] = Field(default=100, description="Maximum number of contacts to fetch (default: 100)")
    search: Optional[str] = Field(default=None, description="Optional search term to filter contacts by name or email")


NOTION_DESCRIPTION = """Search through the user's Notion workspace to find relevant information.
Use this tool when the user asks questions about their notes, documents, or any content stored in Notion.
This searches across all pages the user has in their connected Notion workspace.
Examples of when to use: "What did I write about...", "Find my notes on...", "What's in my Notion about...", "Search my documents for..."."""

GMAIL_DESCRIPTION = """Search through the user's Gmail inbox to find relevant emails.
Use this tool when the user asks questions about their emails, messages, or conversations in Gmail.
This searches across recent emails the user has in their connected Gmail account.
Examples of when to use: "What emails did I get about...", "Find emails from...", "Search my inbox for...", "Who emailed me about..."."""

HUBSPOT_DESCRIPTION = (
    "Fetches the list of contacts from HubSpot CRM. Use this when the user asks about contacts, "
    "customers, leads, or people in their HubSpot account. Returns contact information including "
    "names, emails, and phone numbers."
)


class RetrievalTools:
    """Bind the three retrieval capabilities to one user."""

    def __init__(self, user_id: str, documents: Any, emails: Any, contacts: Any) -> None:
        self.user_id = user_id
        self.documents = documents
        self.emails = emails
        self.contacts = contacts

    def search_documents(self, query: str, top_k: Optional[int] = 5) -> str:
        try:
            return to_json(self.documents.search(self.user_id, query, top_k))
        except Exception as exc:
            logger.error(f"Error searching Notion for user {self.user_id}: {exc}", exc_info=True)
            return to_json(ErrorResult(f"Failed to search Notion: {exc}"))

    def search_email(self, query: str, top_k: Optional[int] = 5) -> str:
        try:
            return to_json(self.emails.search(self.user_id, query, top_k))
        except Exception as exc:
            logger.error(f"Error searching Gmail for user {self.user_id}: {exc}", exc_info=True)
            return to_json(ErrorResult(f"Failed to search Gmail: {exc}"))

    def fetch_contacts(self, limit: Optional[int] = 100, search: Optional[str] = None) -> str:
        try:
            return to_json(self.contacts.fetch(self.user_id, limit=limit or 100, search=search))
        except Exception as exc:
            logger.error(f"Error fetching HubSpot contacts for user {self.user_id}: {exc}", exc_info=True)
            return to_json(ErrorResult(f"Failed to fetch HubSpot contacts: {exc}"))

    def as_langchain_tools(self) -> List[StructuredTool]:
        return [
            StructuredTool.from_function(
                func=lambda query, topK=5: self.search_documents(query, topK),
                name=DOCUMENT_TOOL,
                description=NOTION_DESCRIPTION,
                args_schema=SearchArgs,
            ),
            StructuredTool.from_function(
                func=lambda query, topK=5: self.search_email(query, topK),
                name=EMAIL_TOOL,
                description=GMAIL_DESCRIPTION,
                args_schema=SearchArgs,
            ),
            StructuredTool.from_function(
                func=lambda limit=100, search=None: self.fetch_contacts(limit, search),
                name=CONTACTS_TOOL,
                description=HUBSPOT_DESCRIPTION,
                args_schema=ContactsArgs,
            ),
        ]
