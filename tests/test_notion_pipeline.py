"""Tests for incremental Notion page sync."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from ingestion.notion.pipeline import NotionSyncPipeline, parse_notion_time
from knowledge_manager.core.exceptions import AuthError, UpstreamError
from knowledge_manager.core.models import OAuthAccount, PROVIDER_NOTION
from tests.fakes import FakeNotionClient
from tests.notion_fixtures import notion_page, paragraph

USER = "user-1"
ACCOUNT = OAuthAccount(user_id=USER, provider=PROVIDER_NOTION, access_token="secret_abc")


@pytest.fixture
def client() -> FakeNotionClient:
    pages = [
        notion_page("p1", "Roadmap", "2024-03-01T10:00:00.000Z"),
        notion_page("p2", "Meeting notes", "2024-03-02T10:00:00.000Z"),
        notion_page("p3", "Ideas", "2024-03-03T10:00:00.000Z"),
    ]
    blocks = {
        "p1": [paragraph("b1", "Ship the connector sync in Q2")],
        "p2": [paragraph("b2", "Discussed hiring", has_children=True)],
        "b2": [paragraph("b2a", "Two backend engineers")],
        "p3": [paragraph("b3", "Try a smaller embedding model")],
    }
    return FakeNotionClient(pages, blocks)


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def pipeline(config, ledger, vector_index, embeddings, client, sleep) -> NotionSyncPipeline:
    return NotionSyncPipeline(
        config, ledger, vector_index, embeddings,
        client_factory=lambda token: client,
        sleep=sleep,
    )


def test_parse_notion_time_handles_zulu_suffix() -> None:
    assert parse_notion_time("2024-03-01T10:00:00.000Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)
    assert parse_notion_time(None) is None


def test_first_sync_indexes_every_page(pipeline, ledger, vector_index) -> None:
    """Each listed page gets vectors and a ledger entry carrying its edit time."""
    stats = pipeline.run(ACCOUNT)

    assert (stats.found, stats.processed, stats.skipped, stats.failed) == (3, 3, 0, 0)
    assert len(vector_index.rows["notion_pages"]) == 3
    entry = ledger.get(USER, PROVIDER_NOTION, "p2")
    assert entry.title == "Meeting notes"
    assert entry.chunk_count == 1
    assert entry.source_version == datetime(2024, 3, 2, 10, tzinfo=UTC)
    row = vector_index.rows_for("notion_pages", "p2")[0]
    assert row["user_id"] == USER
    assert row["page_title"] == "Meeting notes"
    assert row["chunk_index"] == 0
    assert "Two backend engineers" in row["content"]


def test_second_sync_without_changes_is_a_no_op(pipeline, ledger, vector_index, embeddings, client) -> None:
    """Unchanged pages are skipped without reading their blocks."""
    pipeline.run(ACCOUNT)
    upserts = len(ledger.upserts)
    rows = list(vector_index.rows["notion_pages"])
    client.block_reads.clear()
    embedded = len(embeddings.documents)

    stats = pipeline.run(ACCOUNT)

    assert (stats.found, stats.processed, stats.skipped) == (3, 0, 3)
    assert client.block_reads == []
    assert len(embeddings.documents) == embedded
    assert len(ledger.upserts) == upserts
    assert vector_index.rows["notion_pages"] == rows


def test_edited_page_replaces_its_vectors(pipeline, ledger, vector_index, client) -> None:
    """Only the page with a newer edit time is re-indexed and its old rows are removed."""
    pipeline.run(ACCOUNT)
    client.pages[1] = notion_page("p2", "Meeting notes", "2024-04-01T09:00:00.000Z")
    client.blocks["b2"] = [paragraph("b2a", "Three backend engineers")]

    stats = pipeline.run(ACCOUNT)

    assert (stats.processed, stats.skipped) == (1, 2)
    rows = vector_index.rows_for("notion_pages", "p2")
    assert len(rows) == 1
    assert "Three backend engineers" in rows[0]["content"]
    assert ledger.get(USER, PROVIDER_NOTION, "p2").source_version == datetime(2024, 4, 1, 9, tzinfo=UTC)


def test_empty_page_is_recorded_with_zero_chunks(pipeline, ledger, vector_index, client) -> None:
    """A page with no text writes no vectors but still lands in the ledger."""
    client.blocks["p3"] = []

    stats = pipeline.run(ACCOUNT)

    assert stats.processed == 3
    assert vector_index.rows_for("notion_pages", "p3") == []
    assert ledger.get(USER, PROVIDER_NOTION, "p3").chunk_count == 0
    assert pipeline.run(ACCOUNT).skipped == 3


def test_long_page_is_split_into_ordered_chunks(pipeline, ledger, vector_index, embeddings, client) -> None:
    client.blocks["p1"] = [paragraph(f"b1-{i}", f"Paragraph {i} " + "detail " * 60) for i in range(10)]

    pipeline.run(ACCOUNT)

    rows = vector_index.rows_for("notion_pages", "p1")
    assert len(rows) > 1
    assert [r["chunk_index"] for r in rows] == list(range(len(rows)))
    assert ledger.get(USER, PROVIDER_NOTION, "p1").chunk_count == len(rows)
    assert all(text.startswith("Roadmap\n\n") for text in embeddings.documents[: len(rows)])


def test_force_sync_reprocesses_everything(pipeline, vector_index) -> None:
    pipeline.run(ACCOUNT)

    stats = pipeline.run(ACCOUNT, force_sync=True)

    assert (stats.processed, stats.skipped) == (3, 0)
    assert len(vector_index.rows["notion_pages"]) == 3


def test_record_failure_is_counted_and_sync_continues(pipeline, ledger, vector_index) -> None:
    """A failed write leaves no ledger entry so the page is retried next run."""
    vector_index.fail_insert_for.add("p2")

    stats = pipeline.run(ACCOUNT)

    assert (stats.processed, stats.failed) == (2, 1)
    assert ledger.get(USER, PROVIDER_NOTION, "p2") is None
    assert ledger.get(USER, PROVIDER_NOTION, "p3") is not None

    vector_index.fail_insert_for.clear()
    retry = pipeline.run(ACCOUNT)
    assert (retry.processed, retry.skipped) == (1, 2)


def test_upstream_error_on_one_page_does_not_stop_the_run(pipeline, ledger, client) -> None:
    client.fail_on["p1"] = UpstreamError("boom", status_code=502)

    stats = pipeline.run(ACCOUNT)

    assert (stats.processed, stats.failed) == (2, 1)
    assert ledger.get(USER, PROVIDER_NOTION, "p1") is None


def test_auth_error_aborts_the_run(pipeline, ledger, client) -> None:
    """Rejected credentials stop the run and nothing after the failure is written."""
    client.fail_on["p2"] = AuthError("Notion rejected the access token")

    with pytest.raises(AuthError):
        pipeline.run(ACCOUNT)

    assert ledger.get(USER, PROVIDER_NOTION, "p1") is not None
    assert ledger.get(USER, PROVIDER_NOTION, "p2") is None
    assert ledger.get(USER, PROVIDER_NOTION, "p3") is None


def test_pause_between_processed_records(config, ledger, vector_index, embeddings, client, sleep) -> None:
    config.NOTION_RECORD_DELAY_SECONDS = 0.5
    pipeline = NotionSyncPipeline(
        config, ledger, vector_index, embeddings, client_factory=lambda token: client, sleep=sleep
    )

    pipeline.run(ACCOUNT)
    assert sleep.call_count == 3
    sleep.assert_called_with(0.5)

    sleep.reset_mock()
    pipeline.run(ACCOUNT)
    sleep.assert_not_called()


def test_client_receives_the_account_token(config, ledger, vector_index, embeddings, client) -> None:
    factory = MagicMock(return_value=client)
    pipeline = NotionSyncPipeline(config, ledger, vector_index, embeddings, client_factory=factory)

    pipeline.run(ACCOUNT)

    factory.assert_called_once_with("secret_abc")


def test_concurrent_runs_for_different_users_use_their_own_clients(config, ledger, vector_index, embeddings) -> None:
    """A run paused mid-loop keeps reading through its own user's client while another user syncs."""
    a_paused = threading.Event()
    b_done = threading.Event()

    class PausingClient(FakeNotionClient):
        def iter_block_children(self, block_id):
            if block_id == "a1":
                a_paused.set()
                b_done.wait(timeout=5)
            yield from super().iter_block_children(block_id)

    clients = {
        "token-a": PausingClient(
            [notion_page("a1", "A first", "2024-03-01T10:00:00Z"), notion_page("a2", "A second", "2024-03-01T11:00:00Z")],
            {"a1": [paragraph("a1-b", "Alpha one")], "a2": [paragraph("a2-b", "Alpha two")]},
        ),
        "token-b": FakeNotionClient(
            [notion_page("b1", "B only", "2024-03-01T10:00:00Z")],
            {"b1": [paragraph("b1-b", "Bravo")]},
        ),
    }
    pipeline = NotionSyncPipeline(
        config, ledger, vector_index, embeddings, client_factory=clients.__getitem__, sleep=lambda s: None
    )
    results = {}

    def run_a():
        results["A"] = pipeline.run(OAuthAccount(user_id="A", provider=PROVIDER_NOTION, access_token="token-a"))

    thread = threading.Thread(target=run_a)
    thread.start()
    assert a_paused.wait(timeout=5)
    results["B"] = pipeline.run(OAuthAccount(user_id="B", provider=PROVIDER_NOTION, access_token="token-b"))
    b_done.set()
    thread.join(timeout=5)

    assert results["A"].processed == 2
    assert results["B"].processed == 1
    assert clients["token-b"].block_reads == ["b1"]
    assert clients["token-a"].block_reads == ["a1", "a2"]
    assert ledger.get("A", PROVIDER_NOTION, "a2").chunk_count == 1
    rows = vector_index.rows_for("notion_pages", "a2")
    assert [r["user_id"] for r in rows] == ["A"]
    assert "Alpha two" in rows[0]["content"]
