"""
Connector sync engine.

``ConnectorSyncEngine`` is the single entry point for keeping a user's
vector index and sync ledger aligned with a connected provider: it runs
incremental syncs and removes all indexed data on disconnect.

Classes:
    ConnectorSyncEngine: Loads the account, refreshes its token and runs the
    provider pipeline, logging and swallowing every failure.
"""

import logging
from typing import Any, Dict, Optional

from knowledge_manager.core.config import Config
from knowledge_manager.core.exceptions import AuthError, ConnectorError
from knowledge_manager.core.models import (
    PROVIDER_GOOGLE,
    PROVIDER_HUBSPOT,
    PROVIDER_NOTION,
    SyncStats,
)

from .auth.token_refresher import TokenRefresher
from .base_pipeline import BaseSyncPipeline

logger = logging.getLogger(__name__)


class ConnectorSyncEngine:
    """Run provider syncs and deletions for one process."""

    def __init__(
        self,
        config: Config,
        account_store: Any,
        ledger: Any,
        vector_index: Any,
        pipelines: Dict[str, BaseSyncPipeline],
        token_refresher: Optional[TokenRefresher] = None,
    ) -> None:
        self.config = config
        self.account_store = account_store
        self.ledger = ledger
        self.vector_index = vector_index
        self.pipelines = pipelines
        self.token_refresher = token_refresher or TokenRefresher(config, account_store)
        self.collections = {
            PROVIDER_NOTION: config.NOTION_COLLECTION,
            PROVIDER_GOOGLE: config.GMAIL_COLLECTION,
        }

    def sync(self, user_id: str, provider: str, force_sync: bool = False) -> Optional[SyncStats]:
        """Incrementally sync one provider for one user.

        Never raises. Returns ``None`` when the account is not connected or
        the run was aborted, otherwise the run's counters.
        """
        try:
            account = self.account_store.get(user_id, provider)
        except Exception as exc:
            logger.error(f"Could not load {provider} account for user {user_id}: {exc}", exc_info=True)
            return None
        if account is None:
            logger.info(f"{provider} account not connected for user {user_id}, nothing to sync")
            return None

        if provider == PROVIDER_HUBSPOT:
            # Contacts are read live by the retrieval tools
            logger.info(f"HubSpot has no indexed content, skipping sync for user {user_id}")
            return SyncStats(provider=provider)

        pipeline = self.pipelines.get(provider)
        if pipeline is None:
            logger.warning(f"No sync pipeline registered for provider '{provider}'")
            return None

        try:
            account = self.token_refresher.ensure_fresh(account)
            stats = pipeline.run(account, force_sync=force_sync)
        except AuthError as exc:
            logger.error(
                f"{provider} authentication failed for user {user_id}; "
                f"the account may need to be reconnected: {exc}"
            )
            return None
        except ConnectorError as exc:
            logger.error(f"{provider} sync aborted for user {user_id}: {exc}")
            return None
        except Exception as exc:
            logger.error(f"Unexpected error in {provider} sync for user {user_id}: {exc}", exc_info=True)
            return None

        logger.info(
            f"\n=== {provider} sync complete for user {user_id} ===\n"
            f"Records found: {stats.found}\n"
            f"Processed: {stats.processed}\n"
            f"Skipped (unchanged): {stats.skipped}\n"
            f"Failed: {stats.failed}"
        )
        return stats

    def delete_user_data(self, user_id: str, provider: str) -> None:
        """Remove every vector row and ledger entry for ``(user_id, provider)``.

        Vectors go first so the ledger never under-reports what is indexed.
        """
        collection = self.collections.get(provider)
        if collection:
            self.vector_index.delete_records(collection, user_id)
        self.ledger.delete_for(user_id, provider)
        logger.info(f"Deleted indexed {provider} data for user {user_id}")

    def disconnect(self, user_id: str, provider: str) -> None:
        """Delete indexed data, then forget the OAuth account."""
        self.delete_user_data(user_id, provider)
        self.account_store.delete(user_id, provider)
