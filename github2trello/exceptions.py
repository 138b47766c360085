"""Custom exception classes for github2trello.

This module defines the exception hierarchy for configuration problems and
for failures reported by the GitHub and Trello APIs. Every error raised by
the sync derives from Github2TrelloError so the CLI can report it cleanly.
"""

from __future__ import annotations


class Github2TrelloError(Exception):
    """Base exception for all github2trello errors"""


class ConfigurationError(Github2TrelloError):
    """Raised when the sync cannot run without operator action.

    This covers two cases:
    - a required environment variable is missing or invalid
    - a GitHub assignee has no matching Trello member and no USERNAME_MAP entry

    Attributes:
        key: The missing environment variable or the unmapped GitHub login

    Resolution:
        Set the named variable, or add ``githubLogin=trelloUsername`` to USERNAME_MAP.
    """

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class RemoteAPIError(Github2TrelloError):
    """Base exception for failures returned by GitHub or Trello.

    Carries the failing endpoint and the raw response body so the operator
    can see exactly what the remote side said.

    Attributes:
        endpoint: The API endpoint that failed
        status_code: HTTP status code (None for network or payload errors)
        response_text: Raw response body (None for network errors)
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        response_text: str | None = None,
    ):
        self.endpoint = endpoint
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class TrelloAPIError(RemoteAPIError):
    """Base exception for Trello API errors"""

    pass


class TrelloAuthenticationError(TrelloAPIError):
    """Raised when API credentials are invalid or expired (401/403)"""

    pass


class TrelloNotFoundError(TrelloAPIError):
    """Raised when a board, card, or resource is not found (404)"""

    pass


class TrelloRateLimitError(TrelloAPIError):
    """Raised when Trello rejects a request for exceeding the rate limit (429)"""

    pass


class TrelloServerError(TrelloAPIError):
    """Raised when Trello's servers return an error (500/502/503/504)"""

    pass


class GitHubAPIError(RemoteAPIError):
    """Raised when the GitHub REST or GraphQL API returns an error.

    GraphQL reports most failures with HTTP 200 and an ``errors`` array, so
    those payloads are raised as this error too.
    """

    pass
