"""HubSpot CRM contact lookup."""

from .contacts import HubSpotContactsClient

__all__ = ["HubSpotContactsClient"]
