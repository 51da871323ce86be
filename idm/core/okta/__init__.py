"""Okta Management API client library.

Architecture:
- client.py: HTTP client with SSWS token auth, pagination and error decoding
- users.py: User resource operations (get, search, create, update, lifecycle)
- groups.py: Group resource operations and membership
- exceptions.py: Typed exceptions for error handling

Usage:
    from idm.core.okta import OktaClient, UserService

    client = OktaClient("https://example.okta.com", api_token)
    users = UserService(client)
    okta_user = users.get_user("00u1abcd")
"""
from .client import OktaClient, REQUEST_TIMEOUT
from .exceptions import OktaConnectionError, OktaError, ResourceException
from .groups import GroupService
from .users import UserService

__all__ = [
    "OktaClient",
    "REQUEST_TIMEOUT",
    "OktaConnectionError",
    "OktaError",
    "ResourceException",
    "GroupService",
    "UserService",
]
