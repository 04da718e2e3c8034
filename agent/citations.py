"""Turn tool results into deduplicated source citations."""

from typing import Iterable, List, Set, Tuple

from knowledge_manager.core.models import Citation
from retrieval.results import ContactHits, DocumentHits, EmailHits, ErrorResult, ToolResult

NOTION = "notion"
GMAIL = "gmail"
HUBSPOT = "hubspot"


def citations_for(result: ToolResult) -> List[Citation]:
    """Citations contributed by a single tool result."""
    if isinstance(result, DocumentHits):
        seen: Set[str] = set()
        out = []
        for hit in result.hits:
            if hit.page_title and hit.page_title not in seen:
                seen.add(hit.page_title)
                out.append(Citation(NOTION, hit.page_title))
        return out

    if isinstance(result, EmailHits):
        seen_pairs: Set[Tuple[str, str]] = set()
        out = []
        for hit in result.hits:
            key = (hit.subject, hit.sender)
            if hit.subject and key not in seen_pairs:
                seen_pairs.add(key)
                out.append(Citation(GMAIL, hit.subject, f"From: {hit.sender}"))
        return out

    if isinstance(result, ContactHits):
        n = result.total
        if n <= 0:
            return []
        names = ", ".join(c.full_name for c in result.contacts[:3])
        return [Citation(HUBSPOT, f"{n} contact{'s' if n > 1 else ''} found", names + ("..." if n > 3 else ""))]

    if isinstance(result, ErrorResult):
        return []

    raise TypeError(f"Unhandled tool result type: {type(result).__name__}")


def extract_citations(results: Iterable[ToolResult]) -> List[Citation]:
    """Collect citations from every result, keeping the first per (tool, title)."""
    unique: List[Citation] = []
    seen: Set[Tuple[str, str]] = set()
    for result in results:
        for citation in citations_for(result):
            key = (citation.tool, citation.title)
            if key not in seen:
                seen.add(key)
                unique.append(citation)
    return unique
