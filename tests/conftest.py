from __future__ import annotations

import pytest

from knowledge_manager.core.config import Config
from tests.fakes import FakeEmbeddings, FakeLedger, FakeVectorIndex


@pytest.fixture
def config() -> Config:
    """Configuration with fixed collection names and no pacing delays."""
    return Config(
        NOTION_COLLECTION="notion_pages",
        GMAIL_COLLECTION="gmail_messages",
        NOTION_RECORD_DELAY_SECONDS=0.0,
        GMAIL_RECORD_DELAY_SECONDS=0.0,
        NOTION_CHUNK_SIZE=1000,
        NOTION_CHUNK_OVERLAP=200,
        GMAIL_LOOKBACK_DAYS=5,
        TOKEN_REFRESH_MARGIN_MINUTES=5,
        HTTP_TIMEOUT_SECONDS=30,
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def vector_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()
