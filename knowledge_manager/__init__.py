"""
Knowledge Assistant application package.

Configuration, storage managers, data stores, background sync scheduling and
the web boundary for a chat assistant over connected Notion, Gmail and
HubSpot accounts.
"""

__version__ = "0.1.0"

from .scheduler_manager import SyncScheduler

__all__ = ["SyncScheduler", "__version__"]
