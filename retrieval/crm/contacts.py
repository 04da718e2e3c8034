"""
HubSpot contacts lookup.

Contacts are not indexed; every call reads the CRM directly. An expired
token is refreshed ahead of time when it is inside the refresh margin, and a
401 triggers exactly one refresh and retry.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from knowledge_manager.core.exceptions import AuthError, ConnectorError, UpstreamError
from knowledge_manager.core.models import OAuthAccount, PROVIDER_HUBSPOT

from ..results import Contact, ContactHits, ErrorResult, ToolResult

logger = logging.getLogger(__name__)

CONTACTS_URL = "https://api.hubapi.com/crm/v3/objects/contacts"
CONTACT_PROPERTIES = "firstname,lastname,email,phone,company,jobtitle"
NOT_CONNECTED = "HubSpot account not connected. Please connect your HubSpot account first."
REFRESH_FAILED = "Failed to refresh HubSpot token. Please reconnect your HubSpot account."


def _contact_from_api(item: Dict[str, Any]) -> Contact:
    props = item.get("properties") or {}
    return Contact(
        id=str(item.get("id", "")),
        first_name=props.get("firstname") or "N/A",
        last_name=props.get("lastname") or "N/A",
        email=props.get("email") or "N/A",
        phone=props.get("phone") or "N/A",
        company=props.get("company") or "N/A",
        job_title=props.get("jobtitle") or "N/A",
    )


def filter_contacts(contacts: List[Contact], search: Optional[str]) -> List[Contact]:
    """Case-insensitive substring match on first name, last name, email or company."""
    if not search:
        return contacts
    needle = search.lower()
    return [
        c for c in contacts
        if needle in c.first_name.lower()
        or needle in c.last_name.lower()
        or needle in c.email.lower()
        or needle in c.company.lower()
    ]


class HubSpotContactsClient:
    """Fetch contacts from the HubSpot CRM API for a connected user."""

    def __init__(self, account_store: Any, token_refresher: Any, *, timeout: float = 30,
                 session: Optional[requests.Session] = None) -> None:
        self.account_store = account_store
        self.token_refresher = token_refresher
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, access_token: str, limit: int) -> requests.Response:
        return self.session.get(
            CONTACTS_URL,
            headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
            params={"limit": limit, "properties": CONTACT_PROPERTIES},
            timeout=self.timeout,
        )

    def fetch(self, user_id: str, limit: int = 100, search: Optional[str] = None) -> ToolResult:
        account: Optional[OAuthAccount] = self.account_store.get(user_id, PROVIDER_HUBSPOT)
        if account is None:
            return ErrorResult(NOT_CONNECTED)

        limit = limit or 100
        try:
            account = self.token_refresher.ensure_fresh(account)
        except ConnectorError as exc:
            logger.warning(f"HubSpot token refresh failed for user {user_id}: {exc}")
            return ErrorResult(REFRESH_FAILED)
        response = self._get(account.access_token, limit)

        if response.status_code == 401:
            logger.info(f"HubSpot returned 401 for user {user_id}, refreshing token once")
            try:
                account = self.token_refresher.refresh(account)
            except ConnectorError as exc:
                logger.warning(f"HubSpot token refresh failed for user {user_id}: {exc}")
                return ErrorResult(REFRESH_FAILED)
            response = self._get(account.access_token, limit)
            if response.status_code == 401:
                raise AuthError("HubSpot rejected the refreshed token")

        if response.status_code >= 400:
            raise UpstreamError(f"HubSpot contacts request returned {response.status_code}",
                                status_code=response.status_code)

        contacts = [_contact_from_api(item) for item in response.json().get("results", [])]
        contacts = filter_contacts(contacts, search)
        logger.info(f"Fetched {len(contacts)} HubSpot contacts for user {user_id}")
        return ContactHits(contacts=contacts)
