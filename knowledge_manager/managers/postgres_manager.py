"""
PostgreSQL Database Manager for the Knowledge Assistant
Handles connected accounts, the sync ledger and persisted chat history.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from contextlib import contextmanager

from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from knowledge_manager.core.config import Config

logger = logging.getLogger(__name__)


@dataclass
class PostgreSQLConfig:
    """Configuration for PostgreSQL connection."""
    host: str = Config.POSTGRES_HOST
    port: int = Config.POSTGRES_PORT
    database: str = Config.POSTGRES_DB
    user: str = Config.POSTGRES_USER
    password: str = Config.POSTGRES_PASSWORD
    min_connections: int = 2
    max_connections: int = 20

    @classmethod
    def from_config(cls, config: Config) -> "PostgreSQLConfig":
        return cls(
            host=config.POSTGRES_HOST,
            port=config.POSTGRES_PORT,
            database=config.POSTGRES_DB,
            user=config.POSTGRES_USER,
            password=config.POSTGRES_PASSWORD,
        )


SCHEMA_SQL = """
-- Connected third-party accounts, written by the OAuth callback and token refresh
CREATE TABLE IF NOT EXISTS oauth_accounts (
    id SERIAL PRIMARY KEY,
    user_id VARCHAR(64) NOT NULL,
    provider VARCHAR(32) NOT NULL,
    access_token TEXT NOT NULL,
    refresh_token TEXT,
    token_expires_at TIMESTAMP WITH TIME ZONE,
    scopes TEXT,
    raw_profile JSONB DEFAULT '{}'::jsonb,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    CONSTRAINT uk_oauth_accounts_user_provider UNIQUE(user_id, provider)
);

-- One row per indexed source record; only the sync engine writes here
CREATE TABLE IF NOT EXISTS sync_ledger (
    id SERIAL PRIMARY KEY,
    user_id VARCHAR(64) NOT NULL,
    provider VARCHAR(32) NOT NULL,
    source_record_id VARCHAR(128) NOT NULL,
    title TEXT,
    subtitle TEXT,
    source_version TIMESTAMP WITH TIME ZONE,
    chunk_count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    CONSTRAINT uk_sync_ledger_record UNIQUE(user_id, provider, source_record_id)
);

CREATE TABLE IF NOT EXISTS chats (
    id VARCHAR(64) PRIMARY KEY,
    user_id VARCHAR(64) NOT NULL,
    title TEXT,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS chat_messages (
    id SERIAL PRIMARY KEY,
    chat_id VARCHAR(64) NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
    role VARCHAR(16) NOT NULL,
    content TEXT NOT NULL,
    citations JSONB DEFAULT '[]'::jsonb,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_oauth_accounts_user ON oauth_accounts(user_id);
CREATE INDEX IF NOT EXISTS idx_sync_ledger_user_provider ON sync_ledger(user_id, provider);
CREATE INDEX IF NOT EXISTS idx_chats_user ON chats(user_id);
CREATE INDEX IF NOT EXISTS idx_chat_messages_chat_created ON chat_messages(chat_id, created_at);
"""


class PostgreSQLManager:
    """PostgreSQL manager for accounts, ledger and chat history."""

    def __init__(self, config: Optional[PostgreSQLConfig] = None):
        """
        Initialize PostgreSQL manager with connection pooling.

        Args:
            config: PostgreSQL configuration object. If None, creates default config.
        """
        self.config = config or PostgreSQLConfig()
        self.pool = None
        self._initialize_pool()
        self._ensure_schema()

    def _initialize_pool(self) -> None:
        """Initialize connection pool."""
        try:
            self.pool = ThreadedConnectionPool(
                self.config.min_connections,
                self.config.max_connections,
                host=self.config.host,
                port=self.config.port,
                database=self.config.database,
                user=self.config.user,
                password=self.config.password,
                cursor_factory=RealDictCursor
            )
            logger.info(f"PostgreSQL connection pool initialized for {self.config.database}")
        except Exception as e:
            logger.error(f"Failed to initialize PostgreSQL connection pool: {e}")
            raise

    @contextmanager
    def get_connection(self):
        """Context manager for pooled database connections."""
        if not self.pool:
            raise RuntimeError("No connection pool available")

        conn = self.pool.getconn()
        try:
            conn.autocommit = True
            yield conn
        except Exception as e:
            logger.error(f"Database operation failed: {e} (type: {type(e).__name__})")
            raise
        finally:
            self.pool.putconn(conn)

    def _ensure_schema(self) -> None:
        """Create necessary tables and indexes."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        logger.info("PostgreSQL schema initialized successfully")

    def get_version_info(self) -> Dict[str, Any]:
        """Get PostgreSQL version and connection info."""
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT version()")
                    row = cur.fetchone()
            version_str = row['version'] if row else "Unknown"
            return {
                "connected": True,
                "version": version_str.split(' on ')[0],
                "full_version": version_str,
            }
        except Exception as e:
            logger.error(f"Failed to get PostgreSQL version: {e}")
            return {"connected": False, "error": str(e)}

    def close(self) -> None:
        """Close the connection pool."""
        if self.pool:
            self.pool.closeall()
            self.pool = None
            logger.info("PostgreSQL connection pool closed")


__all__ = ["PostgreSQLManager", "PostgreSQLConfig"]
