"""
Core module initialization.

Contains core configuration, models, and exceptions for the Knowledge Assistant.
"""

from .config import Config
from .exceptions import (
    ConnectorError,
    AuthError,
    UpstreamError,
    EmbeddingError,
    VectorIndexError,
    MalformedContentError,
)
from .models import (
    OAuthAccount,
    SyncLedgerEntry,
    SyncStats,
    Citation,
    AgentResponse,
    PROVIDER_NOTION,
    PROVIDER_GOOGLE,
    PROVIDER_HUBSPOT,
)

__all__ = [
    'Config',
    'ConnectorError',
    'AuthError',
    'UpstreamError',
    'EmbeddingError',
    'VectorIndexError',
    'MalformedContentError',
    'OAuthAccount',
    'SyncLedgerEntry',
    'SyncStats',
    'Citation',
    'AgentResponse',
    'PROVIDER_NOTION',
    'PROVIDER_GOOGLE',
    'PROVIDER_HUBSPOT',
]
