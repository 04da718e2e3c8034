"""Notion workspace connector."""

from .client import NotionClient
from .pipeline import NotionSyncPipeline

__all__ = ["NotionClient", "NotionSyncPipeline"]
