"""Notion page search."""

from .search_manager import DocumentSearchManager, clamp_top_k

__all__ = ["DocumentSearchManager", "clamp_top_k"]
