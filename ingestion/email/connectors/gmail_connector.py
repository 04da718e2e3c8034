"""Gmail API email connector implementation.

This module provides the :class:`GmailConnector` implementation for
listing and fetching messages with the Gmail API.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from knowledge_manager.core.exceptions import AuthError, UpstreamError

logger = logging.getLogger(__name__)


def _raise_for_http_error(exc: HttpError, action: str) -> None:
    status = getattr(exc.resp, "status", None)
    if status is not None and int(status) == 401:
        raise AuthError(f"Gmail rejected credentials while {action}") from exc
    raise UpstreamError(f"Gmail API error while {action}: {exc}", status_code=status) from exc


class GmailConnector:
    """Retrieve messages using the Gmail API."""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        *,
        user_id: str = "me",
        timeout: float = 30,
        service: Optional[Any] = None,
    ) -> None:
        if service is None:
            if credentials is None:
                raise ValueError("Either credentials or service must be provided")
            http = google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
            service = build("gmail", "v1", http=http, cache_discovery=False)
        self.service = service
        self.user_id = user_id

    # ------------------------------------------------------------------
    def list_message_ids(self, since_date: datetime, page_size: int = 100) -> List[Dict[str, Any]]:
        """List message stubs newer than ``since_date`` across all result pages."""
        query = f"after:{since_date.strftime('%Y/%m/%d')}"
        messages: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            list_kwargs: Dict[str, Any] = {"userId": self.user_id, "q": query, "maxResults": page_size}
            if page_token:
                list_kwargs["pageToken"] = page_token
            try:
                response = self.service.users().messages().list(**list_kwargs).execute()
            except HttpError as exc:
                _raise_for_http_error(exc, "listing messages")
            messages.extend(response.get("messages", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        logger.info("Listed %d Gmail messages for query %s", len(messages), query)
        return messages

    def get_raw_message(self, message_id: str) -> Dict[str, Any]:
        """Fetch one message in ``raw`` format."""
        try:
            return (
                self.service.users()
                .messages()
                .get(userId=self.user_id, id=message_id, format="raw")
                .execute()
            )
        except HttpError as exc:
            _raise_for_http_error(exc, f"fetching message {message_id}")
