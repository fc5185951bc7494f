from __future__ import annotations


class CdMcpError(Exception):
    """Base exception for all Czech Railways MCP errors."""


class StationNotFoundError(CdMcpError):
    """Raised when a station name resolves to zero candidates upstream."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"Station not found: {query}")


class UpstreamUnavailableError(CdMcpError):
    """Raised when a call to the ČD API fails at transport or protocol level.

    status_code is None for transport failures (timeouts, refused connections).
    The raw body is kept for logging only and is not part of str(exc).
    """

    def __init__(
        self,
        endpoint: str,
        status_code: int | None = None,
        body: str = "",
        message: str = "",
    ) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        if not message:
            if status_code is not None:
                message = f"Upstream API error ({status_code}) calling {endpoint}"
            else:
                message = f"Upstream API unavailable calling {endpoint}"
        super().__init__(message)


class NotSupportedError(CdMcpError):
    """Raised for operations the wired-in upstream has no equivalent for."""


class ValidationError(CdMcpError):
    """Raised when input parameters fail validation before any network call."""
