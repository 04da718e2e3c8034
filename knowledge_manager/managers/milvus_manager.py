"""
Milvus vector database manager for the Knowledge Assistant.

This module owns one Milvus collection per connected provider and exposes
user-scoped insert, delete and search. Callers pass structured filters;
expression strings are built and escaped here only.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from pymilvus import (
    Collection,
    CollectionSchema,
    DataType,
    FieldSchema,
    connections,
    utility,
)

from ..core.config import Config
from ..core.exceptions import VectorIndexError

# Configure logging
logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 10000

INDEX_PARAMS = {"metric_type": "COSINE", "index_type": "IVF_FLAT", "params": {"nlist": 128}}
SEARCH_PARAMS = {"metric_type": "COSINE", "params": {"nprobe": 10}}


def _notion_fields(dim: int) -> List[FieldSchema]:
    return [
        FieldSchema(name="id", dtype=DataType.INT64, is_primary=True, auto_id=True),
        FieldSchema(name="user_id", dtype=DataType.VARCHAR, max_length=64),
        FieldSchema(name="page_id", dtype=DataType.VARCHAR, max_length=128),
        FieldSchema(name="page_title", dtype=DataType.VARCHAR, max_length=512),
        FieldSchema(name="chunk_index", dtype=DataType.INT64),
        FieldSchema(name="content", dtype=DataType.VARCHAR, max_length=65535),
        FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=dim),
    ]


def _gmail_fields(dim: int) -> List[FieldSchema]:
    return [
        FieldSchema(name="id", dtype=DataType.INT64, is_primary=True, auto_id=True),
        FieldSchema(name="user_id", dtype=DataType.VARCHAR, max_length=64),
        FieldSchema(name="email_id", dtype=DataType.VARCHAR, max_length=128),
        FieldSchema(name="sender", dtype=DataType.VARCHAR, max_length=256),
        FieldSchema(name="subject", dtype=DataType.VARCHAR, max_length=512),
        FieldSchema(name="content", dtype=DataType.VARCHAR, max_length=65535),
        FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=dim),
    ]


class MilvusManager:
    """
    Manages Milvus collections for synced Notion pages and Gmail messages.

    Each collection is described by its field list and the name of the field
    that holds the provider record id, which is what per-record deletes
    filter on.
    """

    def __init__(self, config: Config, connect: bool = True) -> None:
        """
        Initialize Milvus manager.

        Args:
            config: Application configuration instance
            connect: Open the default connection immediately
        """
        self.config = config
        self.timeout = config.MILVUS_TIMEOUT_SECONDS
        self.connection_args: Dict[str, Any] = {"host": config.MILVUS_HOST, "port": config.MILVUS_PORT}
        if config.MILVUS_TOKEN:
            self.connection_args["token"] = config.MILVUS_TOKEN

        self.schemas = {
            config.NOTION_COLLECTION: (_notion_fields(config.VECTOR_DIM), "page_id"),
            config.GMAIL_COLLECTION: (_gmail_fields(config.VECTOR_DIM), "email_id"),
        }
        self._collections: Dict[str, Collection] = {}
        self._collections_lock = threading.Lock()

        if connect:
            connections.connect(alias="default", timeout=self.timeout, **self.connection_args)
            logger.info(f"Connected to Milvus at {config.MILVUS_HOST}:{config.MILVUS_PORT}")

    def initialize_collections_for_startup(self) -> None:
        """Create any missing collections and their vector indexes."""
        for name in self.schemas:
            self._get_collection(name, create=True)
        logger.info("All Milvus collections initialized")

    def _escape_literal(self, s: str) -> str:
        """Escape backslashes and double quotes in literals for Milvus query expressions."""
        return str(s).replace("\\", "\\\\").replace('"', '\\"')

    def _build_expr(self, collection_name: str, user_id: str, record_id: Optional[str] = None) -> str:
        expr = f'user_id == "{self._escape_literal(user_id)}"'
        if record_id is not None:
            record_field = self.schemas[collection_name][1]
            expr += f' && {record_field} == "{self._escape_literal(record_id)}"'
        return expr

    def _get_collection(self, name: str, create: bool = False) -> Optional[Collection]:
        if name not in self.schemas:
            raise VectorIndexError(f"Unknown collection '{name}'")
        with self._collections_lock:
            if name not in self._collections:
                collection = self._open_collection(name, create)
                if collection is None:
                    return None
                self._collections[name] = collection
            return self._collections[name]

    def _open_collection(self, name: str, create: bool) -> Optional[Collection]:
        if not utility.has_collection(name, timeout=self.timeout):
            if not create:
                return None
            fields, _ = self.schemas[name]
            schema = CollectionSchema(fields=fields, description=f"{name} chunks")
            collection = Collection(name=name, schema=schema, timeout=self.timeout)
            collection.create_index(field_name="embedding", index_params=INDEX_PARAMS, timeout=self.timeout)
            logger.info(f"Created Milvus collection '{name}'")
        else:
            collection = Collection(name)

        collection.load(timeout=self.timeout)
        return collection

    def insert(self, collection_name: str, rows: List[Dict[str, Any]]) -> int:
        """
        Insert vector rows into a collection, creating it on first use.

        Args:
            collection_name: Target collection
            rows: Row dicts keyed by field name, without the auto id

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0
        prepared = []
        for row in rows:
            row = dict(row)
            row["content"] = (row.get("content") or "")[:MAX_CONTENT_CHARS]
            prepared.append(row)
        try:
            collection = self._get_collection(collection_name, create=True)
            collection.insert(prepared, timeout=self.timeout)
            collection.flush(timeout=self.timeout)
        except VectorIndexError:
            raise
        except Exception as e:
            logger.error(f"Milvus insert into '{collection_name}' failed: {e}", exc_info=True)
            raise VectorIndexError(f"Insert into '{collection_name}' failed: {e}") from e
        logger.debug(f"Inserted {len(prepared)} rows into '{collection_name}'")
        return len(prepared)

    def delete_records(self, collection_name: str, user_id: str, record_id: Optional[str] = None) -> None:
        """
        Delete a user's rows, optionally limited to one source record.

        A missing collection means there is nothing to delete.
        """
        expr = self._build_expr(collection_name, user_id, record_id)
        try:
            collection = self._get_collection(collection_name)
            if collection is None:
                logger.info(f"Collection '{collection_name}' does not exist, skipping delete of {expr}")
                return
            collection.delete(expr=expr, timeout=self.timeout)
            collection.flush(timeout=self.timeout)
        except VectorIndexError:
            raise
        except Exception as e:
            logger.error(f"Milvus delete failed for {expr}: {e}", exc_info=True)
            raise VectorIndexError(f"Delete from '{collection_name}' failed: {e}") from e
        logger.info(f"Deleted rows from '{collection_name}' matching {expr}")

    def search(
        self,
        collection_name: str,
        user_id: str,
        vector: List[float],
        limit: int,
        output_fields: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Vector search restricted to one user's rows.

        Returns:
            List of row dicts with a ``score`` key, best match first
        """
        if output_fields is None:
            output_fields = [
                f.name for f in self.schemas[collection_name][0]
                if f.name not in ("id", "embedding")
            ]
        try:
            collection = self._get_collection(collection_name)
            if collection is None:
                return []
            results = collection.search(
                data=[vector],
                anns_field="embedding",
                param=SEARCH_PARAMS,
                limit=limit,
                expr=self._build_expr(collection_name, user_id),
                output_fields=output_fields,
                timeout=self.timeout,
            )
        except VectorIndexError:
            raise
        except Exception as e:
            logger.error(f"Milvus search on '{collection_name}' failed: {e}", exc_info=True)
            raise VectorIndexError(f"Search on '{collection_name}' failed: {e}") from e

        hits = []
        for hit in results[0]:
            row = {name: hit.entity.get(name) for name in output_fields}
            row["score"] = float(hit.distance)
            hits.append(row)
        return hits

    def check_connection(self) -> Dict[str, Any]:
        """
        Check Milvus server reachability and return status info.

        Returns:
            Dictionary containing connection status and version info
        """
        try:
            return {"connected": True, "version": utility.get_server_version()}
        except Exception as e:
            return {"connected": False, "error": str(e)}
