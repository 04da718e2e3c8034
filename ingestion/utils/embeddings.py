"""Embedding client used by the sync pipelines and the search tools.

Wraps :class:`langchain_ollama.OllamaEmbeddings` so that every failure
surfaces as :class:`EmbeddingError` and every request is bounded by a
timeout.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from langchain_ollama import OllamaEmbeddings

from knowledge_manager.core.config import Config
from knowledge_manager.core.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """Embed text with the configured Ollama model.

    Parameters
    ----------
    config : Config
        Supplies the model name, host, port and timeout.
    model : Optional[Any]
        Pre-built embedding model implementing ``embed_documents`` and
        ``embed_query``. Defaults to :class:`OllamaEmbeddings`.
    """

    def __init__(self, config: Config, model: Optional[Any] = None) -> None:
        self.model = model or OllamaEmbeddings(
            model=config.EMBEDDING_MODEL,
            base_url=f"http://{config.OLLAMA_EMBEDDING_HOST}:{config.OLLAMA_EMBEDDING_PORT}",
            client_kwargs={"timeout": config.MODEL_TIMEOUT_SECONDS},
        )
        logger.info(
            "EmbeddingClient initialized with model %s",
            getattr(self.model, "model", self.model.__class__.__name__),
        )

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            vectors = self.model.embed_documents(texts)
        except Exception as exc:
            logger.error("Embedding %d texts failed: %s", len(texts), exc)
            raise EmbeddingError(f"Embedding failed: {exc}") from exc
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} vectors, got {len(vectors)}")
        return vectors

    def embed_query(self, text: str) -> List[float]:
        try:
            return self.model.embed_query(text)
        except Exception as exc:
            logger.error("Embedding query failed: %s", exc)
            raise EmbeddingError(f"Embedding failed: {exc}") from exc
