#!/usr/bin/env python
"""
Base Data Manager

Shared query helpers for the account, ledger and chat stores. Connections
come from the pooled :class:`PostgreSQLManager` and run in autocommit mode;
statements that must land together go through :meth:`execute_many`.
"""

import logging
from typing import Any, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Statement = Tuple[str, Tuple]


class BaseDataManager:
    """
    Base class for the PostgreSQL-backed stores.

    Rows come back as dicts (``RealDictCursor``). Write statements return
    the affected row count so callers can log what changed.
    """

    def __init__(self, postgres_manager: Any) -> None:
        """
        Args:
            postgres_manager: PostgreSQL connection manager
        """
        self.postgres_manager = postgres_manager
        logger.info(f"{self.__class__.__name__} initialized")

    def get_connection(self):
        return self.postgres_manager.get_connection()

    def execute_query(self, query: str, params: Optional[Tuple] = None, fetch_one: bool = False, fetch_all: bool = False):
        """
        Run one statement.

        Returns:
            The first row when ``fetch_one``, every row when ``fetch_all``,
            otherwise the number of affected rows
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params or ())
                    if fetch_one:
                        return cur.fetchone()
                    if fetch_all:
                        return cur.fetchall()
                    return cur.rowcount
        except Exception as e:
            logger.error(f"{self.__class__.__name__} query failed: {e}")
            logger.debug(f"Query: {query}")
            raise

    def execute_many(self, statements: Sequence[Statement]) -> None:
        """Run several write statements in a single transaction."""
        try:
            with self.get_connection() as conn:
                conn.autocommit = False
                try:
                    with conn.cursor() as cur:
                        for query, params in statements:
                            cur.execute(query, params)
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
                finally:
                    conn.autocommit = True
        except Exception as e:
            logger.error(f"{self.__class__.__name__} transaction of {len(statements)} statements failed: {e}")
            raise
