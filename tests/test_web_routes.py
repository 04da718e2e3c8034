"""Tests for the HTTP boundary."""

from __future__ import annotations

import json
import types
from unittest.mock import MagicMock

import pytest
from flask import Flask

from knowledge_manager.core.models import AgentResponse, Citation, OAuthAccount, PROVIDER_NOTION
from knowledge_manager.web.routes import WebRoutes


@pytest.fixture
def assistant() -> types.SimpleNamespace:
    def run_turn(message, user_id, chat_id, on_token=None):
        for token in ("Hel", "lo"):
            on_token(token)
        return AgentResponse(content="Hello", citations=[Citation("notion", "Roadmap")])

    agent = MagicMock()
    agent.run_turn.side_effect = run_turn
    account_store = MagicMock()
    account_store.list_for_user.return_value = [
        OAuthAccount(user_id="u1", provider=PROVIDER_NOTION, access_token="n"),
    ]
    ledger = MagicMock()
    ledger.count_for.return_value = 4
    scheduler = MagicMock()
    scheduler.status.return_value = {"running": False, "last_run": None}
    return types.SimpleNamespace(
        agent=agent,
        account_store=account_store,
        ledger=ledger,
        scheduler=scheduler,
        sync_engine=MagicMock(),
        message_store=MagicMock(),
        milvus_manager=MagicMock(),
        postgres_manager=MagicMock(),
    )


@pytest.fixture
def client(config, assistant):
    app = Flask(__name__)
    WebRoutes(app, config, assistant)
    return app.test_client()


def _events(body: str) -> list:
    events = []
    for block in body.strip().split("\n\n"):
        lines = block.split("\n")
        events.append((lines[0][len("event: "):], json.loads(lines[1][len("data: "):])))
    return events


def test_connections_reports_each_provider(client) -> None:
    data = client.get("/api/connections/u1").get_json()

    assert data["notion"]["connected"] is True
    assert data["notion"]["indexed_records"] == 4
    assert data["google"]["connected"] is False
    assert data["hubspot"]["indexed_records"] is None


def test_sync_is_queued(client, assistant) -> None:
    response = client.post("/api/connections/u1/notion/sync?force=1")

    assert response.status_code == 202
    assistant.scheduler.submit_sync.assert_called_once_with("u1", "notion", force_sync=True)


def test_unknown_provider_is_rejected(client, assistant) -> None:
    assert client.post("/api/connections/u1/dropbox/sync").status_code == 404
    assert client.delete("/api/connections/u1/dropbox").status_code == 404
    assistant.scheduler.submit_sync.assert_not_called()


def test_disconnect_calls_the_engine(client, assistant) -> None:
    response = client.delete("/api/connections/u1/notion")

    assert response.get_json()["status"] == "disconnected"
    assistant.sync_engine.disconnect.assert_called_once_with("u1", "notion")


def test_chat_streams_tokens_then_done(client, assistant) -> None:
    response = client.post("/api/chat", json={"user_id": "u1", "message": "hi", "chat_id": "c1"})

    assert response.mimetype == "text/event-stream"
    events = _events(response.get_data(as_text=True))
    assert events[:2] == [("token", {"token": "Hel"}), ("token", {"token": "lo"})]
    name, done = events[-1]
    assert name == "done"
    assert done["content"] == "Hello"
    assert done["citations"] == [{"tool": "notion", "title": "Roadmap"}]

    store = assistant.message_store
    store.ensure_chat.assert_called_once_with("c1", "u1", title="hi")
    assert [c.args[2] for c in store.save_message.call_args_list] == ["user", "assistant"]


def test_chat_requires_user_and_message(client) -> None:
    assert client.post("/api/chat", json={"user_id": "u1"}).status_code == 400
