"""
Exception taxonomy shared by the sync pipelines, retrieval tools and agent.

Sync pipeline errors are logged and swallowed by the engine, tool errors are
turned into JSON payloads, so only the agent's model call ever surfaces a
failure to the caller.
"""


class ConnectorError(Exception):
    """Base class for all connector, index and tool errors."""


class AuthError(ConnectorError):
    """Credentials are missing, expired or were rejected by the provider."""


class UpstreamError(ConnectorError):
    """A provider API call failed for a reason unrelated to authentication."""

    def __init__(self, message: str, status_code: int = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmbeddingError(ConnectorError):
    """The embedding model could not produce vectors."""


class VectorIndexError(ConnectorError):
    """A vector store insert, delete or search failed."""


class MalformedContentError(ConnectorError):
    """A tool result could not be parsed into a known result shape."""
