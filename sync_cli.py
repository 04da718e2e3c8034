#!/usr/bin/env python3
"""
Command line sync and cleanup for connected accounts.

Examples:
    python sync_cli.py --user 42 --provider notion
    python sync_cli.py --user 42 --provider google --force
    python sync_cli.py --user 42 --provider notion --delete
"""

import argparse
import sys

from knowledge_manager.app import KnowledgeAssistantApp
from knowledge_manager.core.models import PROVIDER_GOOGLE, PROVIDER_HUBSPOT, PROVIDER_NOTION
from knowledge_manager.utils.logger import setup_script_logging


def main() -> int:
    """CLI entry point for manual or scheduled execution."""
    parser = argparse.ArgumentParser(description="Sync or delete indexed data for a connected account")
    parser.add_argument("--user", required=True, help="User id that owns the connection")
    parser.add_argument("--provider", required=True, choices=[PROVIDER_NOTION, PROVIDER_GOOGLE, PROVIDER_HUBSPOT])
    parser.add_argument("--force", action="store_true", help="Re-index records the ledger says are current")
    parser.add_argument("--delete", action="store_true", help="Delete indexed vectors and ledger rows instead of syncing")
    args = parser.parse_args()

    logger = setup_script_logging("sync_cli")
    app = KnowledgeAssistantApp(start_web=False)
    try:
        if args.delete:
            app.sync_engine.delete_user_data(args.user, args.provider)
            logger.info(f"Deleted {args.provider} data for user {args.user}")
            return 0

        stats = app.sync_engine.sync(args.user, args.provider, force_sync=args.force)
        if stats is None:
            logger.warning("Sync did not run; see log for details")
            return 1
        logger.info(f"Sync finished: {stats.to_dict()}")
        return 0
    finally:
        app.postgres_manager.close()


if __name__ == "__main__":  # pragma: no cover - CLI behaviour
    sys.exit(main())
