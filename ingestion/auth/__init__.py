"""OAuth token refresh for connected providers."""

from .token_refresher import TokenRefresher, needs_refresh

__all__ = ["TokenRefresher", "needs_refresh"]
