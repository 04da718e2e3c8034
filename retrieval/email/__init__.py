"""Gmail message search."""

from .search_manager import EmailSearchManager

__all__ = ["EmailSearchManager"]
