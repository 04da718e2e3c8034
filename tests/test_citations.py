"""Tests for tool result parsing and citation extraction."""

from __future__ import annotations

import json

import pytest

from agent.citations import citations_for, extract_citations
from knowledge_manager.core.exceptions import MalformedContentError
from knowledge_manager.core.models import Citation
from retrieval.results import (
    CONTACTS_TOOL,
    DOCUMENT_TOOL,
    EMAIL_TOOL,
    Contact,
    ContactHits,
    DocumentHit,
    DocumentHits,
    EmailHit,
    EmailHits,
    ErrorResult,
    parse_tool_result,
    to_json,
)


def _docs(*titles: str) -> DocumentHits:
    return DocumentHits(
        query="q",
        hits=[DocumentHit(rank=i + 1, page_title=t, content="c", relevance_score=0.5) for i, t in enumerate(titles)],
    )


def _contacts(n: int) -> ContactHits:
    return ContactHits(contacts=[Contact(id=str(i), first_name=f"F{i}", last_name=f"L{i}") for i in range(n)])


def test_document_citations_are_unique_per_title() -> None:
    assert citations_for(_docs("Roadmap", "Roadmap", "Ideas")) == [
        Citation("notion", "Roadmap"),
        Citation("notion", "Ideas"),
    ]


def test_email_citations_carry_the_sender() -> None:
    hits = EmailHits(query="q", hits=[
        EmailHit(rank=1, sender="Alice", subject="Hello", content="", relevance_score=0.9),
        EmailHit(rank=2, sender="Alice", subject="Hello", content="", relevance_score=0.8),
        EmailHit(rank=3, sender="Bob", subject="Hello", content="", relevance_score=0.7),
    ])

    assert citations_for(hits) == [
        Citation("gmail", "Hello", "From: Alice"),
        Citation("gmail", "Hello", "From: Bob"),
    ]


@pytest.mark.parametrize(
    "count, title, subtitle",
    [
        (1, "1 contact found", "F0 L0"),
        (3, "3 contacts found", "F0 L0, F1 L1, F2 L2"),
        (5, "5 contacts found", "F0 L0, F1 L1, F2 L2..."),
    ],
)
def test_contact_citation_summarises(count, title, subtitle) -> None:
    assert citations_for(_contacts(count)) == [Citation("hubspot", title, subtitle)]


def test_no_citations_for_errors_or_empty_contacts() -> None:
    assert citations_for(ErrorResult("nope")) == []
    assert citations_for(_contacts(0)) == []


def test_extract_citations_dedupes_across_results() -> None:
    """The same (tool, title) from two calls is cited once, first occurrence wins."""
    email_a = EmailHits(query="a", hits=[EmailHit(1, "Alice", "Hello", "", 0.9)])
    email_b = EmailHits(query="b", hits=[EmailHit(1, "Bob", "Hello", "", 0.9)])

    citations = extract_citations([_docs("Roadmap"), email_a, _docs("Roadmap", "Ideas"), email_b])

    assert citations == [
        Citation("notion", "Roadmap"),
        Citation("gmail", "Hello", "From: Alice"),
        Citation("notion", "Ideas"),
    ]


def test_citation_to_dict_omits_missing_subtitle() -> None:
    assert Citation("notion", "Roadmap").to_dict() == {"tool": "notion", "title": "Roadmap"}
    assert Citation("gmail", "Hi", "From: A").to_dict() == {"tool": "gmail", "title": "Hi", "subtitle": "From: A"}


def test_results_parse_back_from_tool_json() -> None:
    docs = _docs("Roadmap")
    contacts = _contacts(2)

    assert parse_tool_result(DOCUMENT_TOOL, to_json(docs)) == docs
    assert parse_tool_result(CONTACTS_TOOL, to_json(contacts)) == contacts
    assert parse_tool_result(EMAIL_TOOL, to_json(EmailHits(query="q"))) == EmailHits(query="q", hits=[])
    assert parse_tool_result(EMAIL_TOOL, json.dumps({"error": "x"})) == ErrorResult("x")


@pytest.mark.parametrize(
    "tool, raw",
    [
        (DOCUMENT_TOOL, "not json"),
        (DOCUMENT_TOOL, json.dumps(["a", "b"])),
        (DOCUMENT_TOOL, json.dumps({"query": "q", "results": [{"content": "no title"}]})),
        (EMAIL_TOOL, json.dumps({"query": "q", "results": "oops"})),
        (CONTACTS_TOOL, json.dumps({"total": 1})),
        ("unknown_tool", json.dumps({"query": "q"})),
    ],
)
def test_malformed_tool_output_is_rejected(tool, raw) -> None:
    with pytest.raises(MalformedContentError):
        parse_tool_result(tool, raw)


def test_unknown_result_type_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        citations_for({"query": "q"})
