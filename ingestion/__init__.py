"""
Connector sync pipelines.

This package keeps the vector index and sync ledger in step with connected
providers:
- notion/: Notion page discovery, block extraction and sync
- email/: Gmail listing, MIME extraction and sync
- auth/: OAuth access token refresh
- utils/: Chunking and embedding helpers
- orchestrator.py: ConnectorSyncEngine, the entry point for sync and deletion
"""
