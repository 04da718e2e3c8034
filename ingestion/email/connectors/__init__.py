"""Email connectors."""

from .gmail_connector import GmailConnector

__all__ = ["GmailConnector"]
