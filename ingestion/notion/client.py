"""Minimal Notion REST client for page discovery and block reads."""

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests

from knowledge_manager.core.exceptions import AuthError, UpstreamError

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"


class NotionClient:
    """Authenticated Notion API calls with cursor pagination."""

    def __init__(
        self,
        access_token: str,
        *,
        api_version: str = "2022-06-28",
        page_size: int = 100,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.page_size = page_size
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Notion-Version": api_version,
        }

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{NOTION_API_BASE}{path}"
        try:
            response = self.session.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamError(f"Notion request {method} {path} failed: {exc}") from exc
        if response.status_code == 401:
            raise AuthError("Notion rejected the access token")
        if response.status_code >= 400:
            raise UpstreamError(
                f"Notion request {method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    def search_pages(self) -> List[Dict[str, Any]]:
        """Return every page visible to the integration, most recently edited first."""
        pages: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            body: Dict[str, Any] = {
                "filter": {"property": "object", "value": "page"},
                "sort": {"direction": "descending", "timestamp": "last_edited_time"},
                "page_size": self.page_size,
            }
            if cursor:
                body["start_cursor"] = cursor
            data = self._request("POST", "/search", json=body)
            pages.extend(data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        logger.info(f"Notion search returned {len(pages)} pages")
        return pages

    def iter_block_children(self, block_id: str) -> Iterator[Dict[str, Any]]:
        cursor: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"page_size": self.page_size}
            if cursor:
                params["start_cursor"] = cursor
            data = self._request("GET", f"/blocks/{block_id}/children", params=params)
            yield from data.get("results", [])
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
