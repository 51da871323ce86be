"""Low-level HTTP client for the Okta Management API.

Handles authentication headers, pagination and error decoding.
"""
from __future__ import annotations
import os
from typing import Any, Callable, Dict, Iterator, Optional

import requests

from .exceptions import OktaConnectionError, ResourceException

REQUEST_TIMEOUT = 5


class OktaClient:
    """HTTP client for the Okta Management API.

    Features:
    - SSWS API token authentication
    - Centralized error decoding into ResourceException
    - Lazy pagination over `Link: <...>; rel="next"` headers

    Usage:
        client = OktaClient("https://example.okta.com", api_token)
        response = client.get("/api/v1/users/00u1abcd")
    """

    def __init__(self, org_url: Optional[str] = None, api_token: Optional[str] = None, timeout: int = REQUEST_TIMEOUT):
        """Initialize Okta client.

        Args:
            org_url: Okta org URL (defaults to OKTA_ORG_URL env var)
            api_token: API token (defaults to OKTA_API_TOKEN env var)
            timeout: Per-request timeout in seconds
        """
        self.base_url = (org_url or os.environ.get("OKTA_ORG_URL", "")).rstrip("/")
        self._api_token = api_token or os.environ.get("OKTA_API_TOKEN", "")
        self.timeout = timeout

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        if not self._api_token:
            raise ResourceException(401, None, "Not authenticated - no Okta API token configured", "")
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"SSWS {self._api_token}",
        }
        headers.update(extra or {})
        return headers

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Raises:
            ResourceException: On HTTP error
            OktaConnectionError: When Okta cannot be reached
        """
        headers = self._headers(kwargs.pop("headers", None))
        return self._send(requests.get, self._url(path), params=params, headers=headers, **kwargs)

    def post(self, path: str, json: Optional[Any] = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request.

        Raises:
            ResourceException: On HTTP error
            OktaConnectionError: When Okta cannot be reached
        """
        headers = self._headers(kwargs.pop("headers", None))
        return self._send(requests.post, self._url(path), json=json, params=params, headers=headers, **kwargs)

    def put(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute PUT request.

        Raises:
            ResourceException: On HTTP error
            OktaConnectionError: When Okta cannot be reached
        """
        headers = self._headers(kwargs.pop("headers", None))
        return self._send(requests.put, self._url(path), json=json, headers=headers, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request.

        Raises:
            ResourceException: On HTTP error
            OktaConnectionError: When Okta cannot be reached
        """
        headers = self._headers(kwargs.pop("headers", None))
        return self._send(requests.delete, self._url(path), headers=headers, **kwargs)

    def _send(self, send: Callable[..., requests.Response], url: str, **kwargs) -> requests.Response:
        try:
            resp = send(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise OktaConnectionError(url, exc) from exc
        self._handle_error(resp)
        return resp

    def get_paged(self, path: str, params: Optional[Dict] = None) -> Iterator[Dict[str, Any]]:
        """Yield items from a paginated collection, fetching pages on demand."""
        resp = self.get(path, params=params)
        while True:
            for item in resp.json() or []:
                yield item
            next_link = (resp.links or {}).get("next", {}).get("url")
            if not next_link:
                return
            resp = self.get(next_link)

    def _handle_error(self, resp: requests.Response) -> None:
        """Decode an Okta error body into a ResourceException.

        Raises:
            ResourceException: If response status indicates error
        """
        if resp.status_code < 400:
            return
        try:
            body = resp.json() or {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        causes = [
            cause.get("errorSummary", "")
            for cause in body.get("errorCauses") or []
            if isinstance(cause, dict)
        ]
        raise ResourceException(
            resp.status_code,
            body.get("errorCode"),
            body.get("errorSummary") or resp.text,
            resp.url,
            causes,
        )
