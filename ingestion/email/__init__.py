"""Gmail ingestion: connector, MIME extraction and the sync pipeline."""

from .connectors import GmailConnector
from .extractor import clean_email_content, parse_gmail_message
from .pipeline import GmailSyncPipeline

__all__ = [
    "GmailConnector",
    "GmailSyncPipeline",
    "clean_email_content",
    "parse_gmail_message",
]
