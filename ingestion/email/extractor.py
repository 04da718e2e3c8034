"""Plain-text extraction for raw Gmail messages.

Messages are fetched in ``raw`` format, parsed with :mod:`email`, and the
non-attachment text parts are collected by walking the MIME tree. HTML-only
messages are converted with BeautifulSoup. The result is then stripped of
links, tracking codes and newsletter boilerplate so only the readable body is
embedded.
"""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from email import message_from_bytes
from email.header import decode_header, make_header
from email.message import Message
from email.utils import parsedate_to_datetime
from typing import List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "(No Subject)"
DEFAULT_SENDER = "Unknown"

_CLEANUP_PATTERNS = [
    (re.compile(r"<[^>]*>"), " "),
    (re.compile(r"(?:https?|ftp)://[^\s)\]>]+", re.I), ""),
    (re.compile(r"\([^)]*https?://[^)]*\)", re.I), ""),
    (re.compile(r"\[[^\]]*\]\([^)]*\)", re.I), ""),
    (re.compile(r"[\w.-]+@[\w.-]+\.\w+", re.I), ""),
    (re.compile(r"\?utm_\S*", re.I), ""),
    (re.compile(r"^[-=*_]{3,}$", re.M), ""),
    (re.compile(r"^[\s*#\-=_©®™]+$", re.M), ""),
    (re.compile(r"unsubscribe|opt.?out|manage.*preferences|notification.*settings|edit.*settings", re.I), ""),
    (re.compile(r"view.*in.*browser|click.*here|learn.*more", re.I), ""),
    (re.compile(r"©\s*\d{4}[^.\n]*", re.I), ""),
]


@dataclass
class ExtractedEmail:
    """Headers and cleaned body of one message."""
    message_id: str
    subject: str
    sender: str
    sent_at: Optional[datetime]
    body: str


def clean_email_content(raw_content: str) -> str:
    """Strip markup, links and boilerplate from an email body."""
    content = raw_content or ""
    for pattern, replacement in _CLEANUP_PATTERNS:
        content = pattern.sub(replacement, content)

    content = content.replace("\r\n", "\n").replace("\t", " ")
    content = re.sub(r" {2,}", " ", content)
    content = re.sub(r"\n{3,}", "\n\n", content)
    content = re.sub(r"^\s+$", "", content, flags=re.M)
    content = content.strip()

    # Leftovers from removed links
    content = re.sub(r"\(\s*\)", "", content)
    content = re.sub(r"\[\s*\]", "", content)

    return re.sub(r"\n{3,}", "\n\n", content).strip()


def _decode_header_value(raw_val: Optional[str]) -> Optional[str]:
    if not raw_val:
        return None
    try:
        return str(make_header(decode_header(raw_val))).strip()
    except Exception:
        return str(raw_val).strip()


def _decode_part(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if not payload:
        return ""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="ignore")
    except LookupError:
        return payload.decode("utf-8", errors="ignore")


def _is_attachment(part: Message) -> bool:
    disposition = (part.get("Content-Disposition") or "").lower()
    return "attachment" in disposition or bool(part.get_filename())


def _collect_parts(msg: Message, content_type: str) -> List[str]:
    texts: List[str] = []
    if msg.is_multipart():
        for sub in msg.get_payload():
            texts.extend(_collect_parts(sub, content_type))
    elif msg.get_content_type() == content_type and not _is_attachment(msg):
        text = _decode_part(msg)
        if text:
            texts.append(text)
    return texts


def extract_body(msg: Message) -> str:
    """Return the cleaned plain-text body of a parsed message.

    Every non-attachment ``text/plain`` part is concatenated in tree order;
    when there are none, the ``text/html`` parts are converted instead.
    """
    plain = _collect_parts(msg, "text/plain")
    if plain:
        raw = "\n".join(plain)
    else:
        html = _collect_parts(msg, "text/html")
        raw = "\n".join(BeautifulSoup(h, "html.parser").get_text("\n") for h in html)
    return clean_email_content(raw)


def _sent_at(msg: Message, internal_date: Optional[str]) -> Optional[datetime]:
    date_raw = msg.get("Date")
    if date_raw:
        try:
            dt = parsedate_to_datetime(date_raw)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=UTC)
            return dt.astimezone(UTC)
        except (TypeError, ValueError):
            logger.debug("Unparseable Date header %r, using internalDate", date_raw)
    if internal_date:
        return datetime.fromtimestamp(int(internal_date) / 1000, tz=UTC)
    return None


def parse_gmail_message(message_id: str, raw: str, internal_date: Optional[str] = None) -> ExtractedEmail:
    """Decode a Gmail ``raw`` payload and extract headers and body.

    Parameters
    ----------
    message_id:
        Gmail message id.
    raw:
        base64url encoded RFC 822 message as returned with ``format="raw"``.
    internal_date:
        Gmail ``internalDate`` in epoch milliseconds, used when the ``Date``
        header is missing or malformed.
    """
    data = base64.urlsafe_b64decode(raw.encode("utf-8") + b"=" * (-len(raw) % 4))
    msg = message_from_bytes(data)
    return ExtractedEmail(
        message_id=message_id,
        subject=_decode_header_value(msg.get("Subject")) or DEFAULT_SUBJECT,
        sender=_decode_header_value(msg.get("From")) or DEFAULT_SENDER,
        sent_at=_sent_at(msg, internal_date),
        body=extract_body(msg),
    )
