"""Tests for raw Gmail message parsing and body cleanup."""

from __future__ import annotations

from datetime import UTC, datetime

from ingestion.email.extractor import clean_email_content, parse_gmail_message
from tests.gmail_fixtures import HTML_ONLY_EMAIL, MULTIPART_EMAIL, NO_HEADERS_EMAIL, encode_raw


def test_multipart_message_skips_attachments() -> None:
    email = parse_gmail_message("m1", encode_raw(MULTIPART_EMAIL))

    assert email.message_id == "m1"
    assert email.subject == "Hello"
    assert email.sender == "Alice <alice@example.com>"
    assert email.sent_at == datetime(2024, 1, 1, tzinfo=UTC)
    assert email.body == "Hi Bob"
    assert "Attachment content" not in email.body


def test_html_only_message_is_converted_to_text() -> None:
    email = parse_gmail_message("m2", encode_raw(HTML_ONLY_EMAIL))

    assert "Revenue grew" in email.body
    assert "by ten percent" in email.body
    assert "<p>" not in email.body


def test_unpadded_raw_payload_is_accepted() -> None:
    raw = encode_raw(MULTIPART_EMAIL).rstrip("=")

    assert parse_gmail_message("m1", raw).subject == "Hello"


def test_defaults_and_internal_date_fallback() -> None:
    email = parse_gmail_message("m3", encode_raw(NO_HEADERS_EMAIL), internal_date="1704067200000")

    assert email.subject == "(No Subject)"
    assert email.sender == "Unknown"
    assert email.sent_at == datetime(2024, 1, 1, tzinfo=UTC)
    assert email.body == "Just a body"


def test_encoded_subject_is_decoded() -> None:
    raw = (
        "Subject: =?utf-8?b?Q2Fmw6kgbWVldGluZw==?=\r\n"
        "From: Dana <dana@example.com>\r\n"
        "Content-Type: text/plain\r\n"
        "\r\n"
        "See you there\r\n"
    )

    assert parse_gmail_message("m4", encode_raw(raw)).subject == "Café meeting"


def test_clean_email_content_strips_links_and_boilerplate() -> None:
    raw = (
        "Hello team,\n\n"
        "Read the report at https://example.com/report?utm_source=mail\n"
        "Contact me at someone@example.com\n"
        "-----\n\n\n\n"
        "Click here to unsubscribe\n"
        "© 2024 Example Corp. All rights reserved"
    )

    cleaned = clean_email_content(raw)

    assert "https://" not in cleaned
    assert "someone@example.com" not in cleaned
    assert "unsubscribe" not in cleaned.lower()
    assert "© 2024" not in cleaned
    assert "\n\n\n" not in cleaned
    assert cleaned.startswith("Hello team,")


def test_clean_email_content_handles_empty_input() -> None:
    assert clean_email_content("") == ""
    assert clean_email_content(None) == ""
