"""
Typed tool results.

Every retrieval tool returns a JSON string to the model. The agent parses
that string once into one of the result types below so that citation
extraction can dispatch on the type instead of probing JSON keys.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from knowledge_manager.core.exceptions import MalformedContentError

NO_DOCUMENTS_MESSAGE = "No relevant content found in your Notion workspace for this query."
NO_EMAILS_MESSAGE = "No relevant emails found in your Gmail for this query."
DOCUMENTS_NOTE = (
    "Use this information to answer the user's question. "
    "Cite the page titles when referencing specific information."
)
EMAILS_NOTE = (
    "Use this information to answer the user's question about their emails. "
    "Reference the sender and subject when citing specific emails."
)


@dataclass
class DocumentHit:
    rank: int
    page_title: str
    content: str
    relevance_score: float


@dataclass
class DocumentHits:
    query: str
    hits: List[DocumentHit] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        if not self.hits:
            return {"message": NO_DOCUMENTS_MESSAGE, "query": self.query, "resultsCount": 0}
        return {
            "query": self.query,
            "resultsCount": len(self.hits),
            "results": [
                {
                    "rank": h.rank,
                    "pageTitle": h.page_title,
                    "content": h.content,
                    "relevanceScore": h.relevance_score,
                }
                for h in self.hits
            ],
            "note": DOCUMENTS_NOTE,
        }


@dataclass
class EmailHit:
    rank: int
    sender: str
    subject: str
    content: str
    relevance_score: float


@dataclass
class EmailHits:
    query: str
    hits: List[EmailHit] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        if not self.hits:
            return {"message": NO_EMAILS_MESSAGE, "query": self.query, "resultsCount": 0}
        return {
            "query": self.query,
            "resultsCount": len(self.hits),
            "results": [
                {
                    "rank": h.rank,
                    "from": h.sender,
                    "subject": h.subject,
                    "content": h.content,
                    "relevanceScore": h.relevance_score,
                }
                for h in self.hits
            ],
            "note": EMAILS_NOTE,
        }


@dataclass
class Contact:
    id: str
    first_name: str = "N/A"
    last_name: str = "N/A"
    email: str = "N/A"
    phone: str = "N/A"
    company: str = "N/A"
    job_title: str = "N/A"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "jobTitle": self.job_title,
        }


@dataclass
class ContactHits:
    contacts: List[Contact] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.contacts)

    def to_payload(self) -> Dict[str, Any]:
        return {"total": self.total, "contacts": [c.to_payload() for c in self.contacts]}


@dataclass
class ErrorResult:
    error: str

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error}


ToolResult = Union[DocumentHits, EmailHits, ContactHits, ErrorResult]

DOCUMENT_TOOL = "search_notion"
EMAIL_TOOL = "search_gmail"
CONTACTS_TOOL = "get_hubspot_contacts"


def to_json(result: ToolResult) -> str:
    return json.dumps(result.to_payload())


def _require(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if not isinstance(value, kind):
        raise MalformedContentError(f"Expected '{key}' to be {kind.__name__}, got {type(value).__name__}")
    return value


def _str(item: Dict[str, Any], key: str, default: str = "") -> str:
    value = item.get(key, default)
    return value if isinstance(value, str) else str(value)


def parse_tool_result(tool_name: str, raw: str) -> ToolResult:
    """Parse a tool's JSON output back into its result type.

    Raises:
        MalformedContentError: The output is not JSON or not the shape the
            named tool produces.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedContentError(f"{tool_name} returned non-JSON output") from exc
    if not isinstance(data, dict):
        raise MalformedContentError(f"{tool_name} returned a {type(data).__name__}, expected an object")

    if "error" in data:
        return ErrorResult(error=str(data["error"]))

    try:
        if tool_name == DOCUMENT_TOOL:
            query = _str(data, "query")
            results = data.get("results") or []
            if not isinstance(results, list):
                raise MalformedContentError("'results' must be a list")
            return DocumentHits(
                query=query,
                hits=[
                    DocumentHit(
                        rank=int(r.get("rank", i + 1)),
                        page_title=_require(r, "pageTitle", str),
                        content=_str(r, "content"),
                        relevance_score=float(r.get("relevanceScore", 0.0)),
                    )
                    for i, r in enumerate(results)
                ],
            )
        if tool_name == EMAIL_TOOL:
            results = data.get("results") or []
            if not isinstance(results, list):
                raise MalformedContentError("'results' must be a list")
            return EmailHits(
                query=_str(data, "query"),
                hits=[
                    EmailHit(
                        rank=int(r.get("rank", i + 1)),
                        sender=_require(r, "from", str),
                        subject=_require(r, "subject", str),
                        content=_str(r, "content"),
                        relevance_score=float(r.get("relevanceScore", 0.0)),
                    )
                    for i, r in enumerate(results)
                ],
            )
        if tool_name == CONTACTS_TOOL:
            contacts = _require(data, "contacts", list)
            return ContactHits(
                contacts=[
                    Contact(
                        id=_str(c, "id"),
                        first_name=_str(c, "firstName", "N/A"),
                        last_name=_str(c, "lastName", "N/A"),
                        email=_str(c, "email", "N/A"),
                        phone=_str(c, "phone", "N/A"),
                        company=_str(c, "company", "N/A"),
                        job_title=_str(c, "jobTitle", "N/A"),
                    )
                    for c in contacts
                ]
            )
    except (AttributeError, TypeError, ValueError) as exc:
        raise MalformedContentError(f"{tool_name} returned an unexpected shape: {exc}") from exc

    raise MalformedContentError(f"Unknown tool '{tool_name}'")
