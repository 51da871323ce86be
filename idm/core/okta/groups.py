"""Okta group resource operations."""
from __future__ import annotations
from typing import Iterator, List, Optional

from .client import OktaClient
from .exceptions import ResourceException

GROUPS_PATH = "/api/v1/groups"


class GroupService:
    """Service for Okta groups and membership."""

    def __init__(self, client: OktaClient):
        """Initialize group service.

        Args:
            client: Configured Okta client
        """
        self.client = client

    def get_group(self, group_id: str) -> Optional[dict]:
        """Return the group representation or None when the id is unknown."""
        try:
            return self.client.get(f"{GROUPS_PATH}/{group_id}").json()
        except ResourceException as exc:
            if exc.status_code == 404:
                return None
            raise

    def list_groups(self, query: Optional[str] = None) -> List[dict]:
        """List groups, optionally narrowed by a name prefix query."""
        params = {"q": query} if query else None
        return list(self.client.get_paged(GROUPS_PATH, params=params))

    def list_group_users(self, group_id: str) -> Iterator[dict]:
        """Lazily yield the members of a group."""
        return self.client.get_paged(f"{GROUPS_PATH}/{group_id}/users")

    def add_user_to_group(self, group_id: str, user_id: str) -> None:
        """Add a user to a group (idempotent on the provider side)."""
        self.client.put(f"{GROUPS_PATH}/{group_id}/users/{user_id}")

    def remove_user_from_group(self, group_id: str, user_id: str) -> bool:
        """Remove a user from a group.

        Returns:
            True if removed, False if the membership did not exist
        """
        try:
            resp = self.client.delete(f"{GROUPS_PATH}/{group_id}/users/{user_id}")
            return resp.status_code == 204
        except ResourceException as exc:
            if exc.status_code == 404:
                return False
            raise
