#!/usr/bin/env python
"""
Data Access Layer for the Knowledge Assistant

This module provides pure data access operations for accounts, the sync
ledger and chat history. No business logic - only database operations.
"""

from .base_data import BaseDataManager
from .oauth_data import OAuthAccountStore
from .ledger_data import SyncLedger
from .message_data import ChatMessageStore

__all__ = [
    "BaseDataManager",
    "OAuthAccountStore",
    "SyncLedger",
    "ChatMessageStore",
]
