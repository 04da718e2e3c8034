"""Tests for Notion block rendering, title resolution and the REST client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ingestion.notion.client import NotionClient
from ingestion.notion.extractor import block_to_text, page_title, page_to_text
from knowledge_manager.core.exceptions import AuthError, UpstreamError
from tests.fakes import FakeNotionClient
from tests.notion_fixtures import paragraph, rich_text


def _block(block_type: str, **content) -> dict:
    return {"id": f"{block_type}-1", "type": block_type, "has_children": False, block_type: content}


@pytest.mark.parametrize(
    "block, expected",
    [
        (_block("heading_1", rich_text=rich_text("Goals")), "Goals"),
        (_block("code", language="python", rich_text=rich_text("print(1)")), "```python\nprint(1)\n```"),
        (_block("to_do", checked=True, rich_text=rich_text("Write tests")), "[x] Write tests"),
        (_block("to_do", checked=False, rich_text=rich_text("Ship")), "[ ] Ship"),
        (_block("child_page", title="Sub page"), "[Page: Sub page]"),
        (_block("child_database", title=""), "[Database: Untitled]"),
        (_block("image", caption=rich_text("Architecture")), "[image: Architecture]"),
        (_block("pdf", caption=[]), "[pdf: pdf]"),
        (_block("bookmark", url="https://example.com"), "[Link: https://example.com]"),
        (_block("table", table_width=2), "[Table]"),
        (_block("divider", placeholder=True), "---"),
        (_block("unsupported", something=1), ""),
    ],
)
def test_block_to_text(block: dict, expected: str) -> None:
    assert block_to_text(block) == expected


def test_page_to_text_walks_children_but_not_sub_pages() -> None:
    """Nested blocks follow their parent; child pages are synced separately."""
    sub_page = {"id": "sp", "type": "child_page", "has_children": True, "child_page": {"title": "Sub"}}
    client = FakeNotionClient(
        pages=[],
        blocks={
            "page": [paragraph("a", "First", has_children=True), sub_page, paragraph("c", "Last")],
            "a": [paragraph("a1", "Nested")],
            "sp": [paragraph("sp1", "Should not appear")],
        },
    )

    text = page_to_text(client, "page")

    assert text == "First\n\nNested\n\n[Page: Sub]\n\nLast"
    assert "sp" not in client.block_reads


def test_page_to_text_propagates_client_errors() -> None:
    client = FakeNotionClient(pages=[], blocks={})
    client.fail_on["page"] = UpstreamError("rate limited", status_code=429)

    with pytest.raises(UpstreamError):
        page_to_text(client, "page")


@pytest.mark.parametrize(
    "properties, expected",
    [
        ({"title": {"title": rich_text("From title")}}, "From title"),
        ({"Name": {"title": rich_text("From Name")}}, "From Name"),
        ({"Task": {"type": "title", "title": rich_text("From any")}}, "From any"),
        ({"Status": {"type": "select"}}, "Untitled"),
        ({}, "Untitled"),
    ],
)
def test_page_title_fallbacks(properties: dict, expected: str) -> None:
    assert page_title({"id": "p", "properties": properties}) == expected


def _response(status: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload or {}
    return response


def test_search_pages_follows_cursors() -> None:
    session = MagicMock()
    session.request.side_effect = [
        _response(200, {"results": [{"id": "p1"}], "has_more": True, "next_cursor": "c1"}),
        _response(200, {"results": [{"id": "p2"}], "has_more": False, "next_cursor": None}),
    ]
    client = NotionClient("tok", page_size=1, session=session)

    pages = client.search_pages()

    assert [p["id"] for p in pages] == ["p1", "p2"]
    second_body = session.request.call_args_list[1].kwargs["json"]
    assert second_body["start_cursor"] == "c1"
    assert second_body["filter"] == {"property": "object", "value": "page"}
    assert session.request.call_args_list[0].kwargs["headers"]["Authorization"] == "Bearer tok"


def test_iter_block_children_paginates() -> None:
    session = MagicMock()
    session.request.side_effect = [
        _response(200, {"results": [{"id": "b1"}], "has_more": True, "next_cursor": "n"}),
        _response(200, {"results": [{"id": "b2"}], "has_more": False}),
    ]
    client = NotionClient("tok", session=session)

    assert [b["id"] for b in client.iter_block_children("page")] == ["b1", "b2"]
    assert session.request.call_args_list[1].kwargs["params"]["start_cursor"] == "n"


def test_client_maps_status_codes_to_errors() -> None:
    session = MagicMock()
    session.request.return_value = _response(401)
    with pytest.raises(AuthError):
        NotionClient("tok", session=session).search_pages()

    session.request.return_value = _response(503)
    with pytest.raises(UpstreamError) as excinfo:
        NotionClient("tok", session=session).search_pages()
    assert excinfo.value.status_code == 503
