"""Okta-specific exceptions for error handling."""
from __future__ import annotations
from typing import List, Optional


class OktaError(Exception):
    """Base exception for all Okta API operations."""
    pass


class ResourceException(OktaError):
    """Error response from the Okta Management API.

    Attributes:
        status_code: HTTP status code
        code: Okta error code (e.g., E0000001)
        summary: Error summary from response
        causes: Summaries of the individual error causes
        endpoint: API endpoint that failed
    """

    def __init__(
        self,
        status_code: int,
        code: Optional[str],
        summary: str,
        endpoint: str,
        causes: Optional[List[str]] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.summary = summary
        self.endpoint = endpoint
        self.causes = list(causes or [])
        super().__init__(f"[{status_code}] {code or '-'} {endpoint}: {summary}")


class OktaConnectionError(OktaError):
    """Okta could not be reached (connection failure, timeout, TLS error).

    Attributes:
        endpoint: API endpoint that was being called
        cause: Underlying requests exception
    """

    def __init__(self, endpoint: str, cause: Exception):
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"{endpoint}: {cause}")
