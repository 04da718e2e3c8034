"""
Core data models for the Knowledge Assistant.

This module contains dataclasses shared by the sync pipelines, the data
stores and the agent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

PROVIDER_NOTION = "notion"
PROVIDER_GOOGLE = "google"
PROVIDER_HUBSPOT = "hubspot"


@dataclass
class OAuthAccount:
    """
    A connected third-party account and its current credentials.

    Attributes:
        user_id: Owner of the account
        provider: Provider key (notion, google, hubspot)
        access_token: Current bearer token
        refresh_token: Token used to obtain a new access token, if issued
        token_expires_at: Access token expiry, None when the token does not expire
        scopes: Granted scopes as stored at connection time
        raw_profile: Provider profile payload captured during the OAuth exchange
    """
    user_id: str
    provider: str
    access_token: str
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    scopes: Optional[str] = None
    raw_profile: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncLedgerEntry:
    """
    Record of what has been indexed for one source record.

    Attributes:
        user_id: Owner of the record
        provider: Provider key
        source_record_id: Provider id of the page or message
        title: Page title or email subject
        source_version: Last edited time (pages) or sent date (email)
        chunk_count: Number of vector records written, 0 for empty content
        subtitle: Email sender, None for pages
    """
    user_id: str
    provider: str
    source_record_id: str
    title: str
    source_version: Optional[datetime]
    chunk_count: int = 0
    subtitle: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class SyncStats:
    """Counters reported at the end of a sync run."""
    provider: str
    found: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "found": self.found,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class Citation:
    """A source referenced by an assistant answer."""
    tool: str
    title: str
    subtitle: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tool": self.tool, "title": self.title}
        if self.subtitle is not None:
            data["subtitle"] = self.subtitle
        return data


@dataclass
class AgentResponse:
    """
    Result of one agent turn.

    Attributes:
        content: Final assistant text
        citations: Deduplicated sources used while answering
        error: True when the model could not be reached
    """
    content: str
    citations: List[Citation] = field(default_factory=list)
    error: bool = False
