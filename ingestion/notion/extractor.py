"""Convert Notion block trees and page properties to plain text."""

from typing import Any, Dict, List

UNTITLED = "Untitled"

# Children of these blocks are separate pages and are synced on their own
_NO_DESCEND = ("child_page", "child_database")


def _plain(rich_text: List[Dict[str, Any]]) -> str:
    return "".join(rt.get("plain_text") or "" for rt in rich_text or [])


def block_to_text(block: Dict[str, Any]) -> str:
    """Render a single block without its children."""
    block_type = block.get("type")
    content = block.get(block_type) if block_type else None
    if not content:
        return ""

    if block_type == "code":
        return f"```{content.get('language') or ''}\n{_plain(content.get('rich_text'))}\n```"
    if block_type == "to_do":
        mark = "x" if content.get("checked") else " "
        return f"[{mark}] {_plain(content.get('rich_text'))}"
    if "rich_text" in content:
        return _plain(content["rich_text"])
    if block_type == "child_page":
        return f"[Page: {content.get('title') or UNTITLED}]"
    if block_type == "child_database":
        return f"[Database: {content.get('title') or UNTITLED}]"
    if block_type in ("image", "video", "file", "pdf"):
        caption = "".join(c.get("plain_text") or "" for c in content.get("caption") or [])
        return f"[{block_type}: {caption or block_type}]"
    if block_type in ("bookmark", "link_preview"):
        return f"[Link: {content.get('url') or ''}]"
    if block_type == "table":
        return "[Table]"
    if block_type == "divider":
        return "---"
    return ""


def page_to_text(client, block_id: str) -> str:
    """Walk a page's block tree depth-first and join rendered blocks.

    Nested children are fetched through ``client.iter_block_children`` and
    inserted right after their parent. Errors from the client propagate.
    """
    parts: List[str] = []
    for block in client.iter_block_children(block_id):
        text = block_to_text(block)
        if text:
            parts.append(text)
        if block.get("has_children") and block.get("type") not in _NO_DESCEND:
            child_text = page_to_text(client, block["id"])
            if child_text:
                parts.append(child_text)
    return "\n\n".join(parts)


def _first_plain(prop: Dict[str, Any]) -> str:
    title = (prop or {}).get("title") or []
    if title and title[0].get("plain_text"):
        return title[0]["plain_text"]
    return ""


def page_title(page: Dict[str, Any]) -> str:
    """Resolve a page title from ``title``, then ``Name``, then any title property."""
    properties = page.get("properties") or {}
    for key in ("title", "Name"):
        title = _first_plain(properties.get(key))
        if title:
            return title
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = _first_plain(prop)
            if title:
                return title
    return UNTITLED
