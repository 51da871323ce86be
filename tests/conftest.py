"""Pytest shared fixtures."""
import json
import os
import pathlib
import sys
from typing import Optional
from unittest.mock import MagicMock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from idm.config import AppConfig
from idm.core.models import User
from idm.core.okta import GroupService, OktaClient, UserService
from idm.core.user_dao import OktaUserDao, UserDao


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a live Okta org.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _blocked(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {url}")

    for method in ("get", "post", "put", "delete"):
        monkeypatch.setattr(requests, method, _blocked)


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, url: str = "https://example.okta.com", next_url: Optional[str] = None):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = json.dumps(payload) if payload is not None else ""
        self.links = {"next": {"url": next_url}} if next_url else {}

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def stub_response():
    return StubResponse


# ─────────────────────────────────────────────────────────────────────────────
# Okta representations
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def okta_user_factory():
    """Build Okta user JSON representations."""

    def _make(
        okta_id: str = "00u1",
        guid: str = "GUID-1",
        email: str = "alice@example.com",
        status: str = "ACTIVE",
        **profile,
    ) -> dict:
        base_profile = {
            "theKeyGuid": guid,
            "email": email,
            "login": email,
            "firstName": "Alice",
            "lastName": "Smith",
        }
        base_profile.update(profile)
        return {"id": okta_id, "status": status, "profile": base_profile}

    return _make


@pytest.fixture
def make_user():
    def _make(**overrides) -> User:
        fields = {
            "the_key_guid": "GUID-1",
            "okta_user_id": "00u1",
            "email": "alice@example.com",
            "first_name": "Alice",
            "last_name": "Smith",
        }
        fields.update(overrides)
        return User(**fields)

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# DAOs
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def okta_users():
    """Mocked Okta user resource service."""
    mock = MagicMock(spec=UserService)
    mock.get_user.return_value = None
    mock.search_users.return_value = iter([])
    mock.list_users.return_value = iter([])
    mock.list_user_groups.return_value = []
    mock.create_user.return_value = {"id": "00u-new"}
    mock.update_user.return_value = {}
    return mock


@pytest.fixture
def okta_groups():
    """Mocked Okta group resource service."""
    mock = MagicMock(spec=GroupService)
    mock.get_group.return_value = None
    mock.list_groups.return_value = []
    mock.list_group_users.return_value = iter([])
    return mock


@pytest.fixture
def dao(okta_users, okta_groups):
    """OktaUserDao wired to mocked Okta services."""
    user_dao = OktaUserDao(MagicMock(spec=OktaClient), load_groups=False)
    user_dao.users = okta_users
    user_dao.groups = okta_groups
    return user_dao


@pytest.fixture
def fallback_dao():
    """Mocked legacy directory DAO."""
    mock = MagicMock(spec=UserDao)
    mock.find_by_the_key_guid.return_value = None
    return mock


@pytest.fixture
def app_config():
    return AppConfig(
        demo_mode=True,
        okta_org_url="https://example.okta.com",
        okta_api_token="okta-token",
        api_token="test-api-token",
    )
