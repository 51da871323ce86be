"""Okta user resource operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, List, Optional

from .client import OktaClient
from .exceptions import ResourceException

logger = logging.getLogger(__name__)

USERS_PATH = "/api/v1/users"


class UserService:
    """Service for Okta user resources (raw JSON representations)."""

    def __init__(self, client: OktaClient):
        """Initialize user service.

        Args:
            client: Configured Okta client
        """
        self.client = client

    def get_user(self, user_id: str) -> Optional[dict]:
        """Return the user representation or None when the id is unknown."""
        try:
            return self.client.get(f"{USERS_PATH}/{user_id}").json()
        except ResourceException as exc:
            if exc.status_code == 404:
                return None
            raise

    def search_users(self, search: str) -> Iterator[dict]:
        """Lazily yield users matching an Okta search expression."""
        logger.debug("Searching users: %s", search)
        return self.client.get_paged(USERS_PATH, params={"search": search})

    def list_users(self, search: Optional[str] = None) -> Iterator[dict]:
        """Lazily yield all users, optionally narrowed by a search expression."""
        params = {"search": search} if search else None
        return self.client.get_paged(USERS_PATH, params=params)

    def create_user(self, body: Dict[str, Any], activate: bool = True) -> dict:
        """Create a user from profile, credentials and initial group ids."""
        resp = self.client.post(USERS_PATH, json=body, params={"activate": str(activate).lower()})
        return resp.json()

    def update_user(self, user_id: str, body: Dict[str, Any]) -> dict:
        """Apply a partial update (only the keys present in body are written)."""
        resp = self.client.post(f"{USERS_PATH}/{user_id}", json=body)
        return resp.json()

    def suspend(self, user_id: str) -> None:
        self.client.post(f"{USERS_PATH}/{user_id}/lifecycle/suspend")
        logger.info("Suspended user %s", user_id)

    def unsuspend(self, user_id: str) -> None:
        self.client.post(f"{USERS_PATH}/{user_id}/lifecycle/unsuspend")
        logger.info("Unsuspended user %s", user_id)

    def deactivate(self, user_id: str) -> None:
        self.client.post(f"{USERS_PATH}/{user_id}/lifecycle/deactivate")
        logger.info("Deprovisioned user %s", user_id)

    def list_user_groups(self, user_id: str) -> List[dict]:
        return list(self.client.get_paged(f"{USERS_PATH}/{user_id}/groups"))
