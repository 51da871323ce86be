import pytest
import requests

from idm.core.exceptions import ProviderOperationError, UserDaoError
from idm.core.okta import GroupService, OktaClient, OktaConnectionError, ResourceException, UserService
from idm.core.user_dao import OktaUserDao


@pytest.fixture
def client():
    return OktaClient("https://example.okta.com/", "okta-token", timeout=3)


@pytest.fixture
def recorded(monkeypatch):
    """Record outgoing requests and answer them from a queue of stub responses."""
    calls = []
    responses = []

    def _fake(method):
        def _send(url, **kwargs):
            calls.append((method, url, kwargs))
            return responses.pop(0)
        return _send

    for method in ("get", "post", "put", "delete"):
        monkeypatch.setattr(requests, method, _fake(method))
    return calls, responses


def test_requests_carry_ssws_auth_and_timeout(client, recorded, stub_response):
    calls, responses = recorded
    responses.append(stub_response({"id": "00u1"}))

    client.get("/api/v1/users/00u1")

    method, url, kwargs = calls[0]
    assert (method, url) == ("get", "https://example.okta.com/api/v1/users/00u1")
    assert kwargs["headers"]["Authorization"] == "SSWS okta-token"
    assert kwargs["timeout"] == 3


def test_missing_token_fails_without_request(recorded):
    calls, _ = recorded
    client = OktaClient("https://example.okta.com", api_token=None)
    client._api_token = ""
    with pytest.raises(ResourceException) as exc_info:
        client.get("/api/v1/users")
    assert exc_info.value.status_code == 401
    assert calls == []


def test_error_body_is_decoded(client, recorded, stub_response):
    _, responses = recorded
    responses.append(stub_response(
        {
            "errorCode": "E0000001",
            "errorSummary": "Api validation failed: password",
            "errorCauses": [{"errorSummary": "password: Password requirements were not met"}],
        },
        status_code=400,
        url="https://example.okta.com/api/v1/users",
    ))

    with pytest.raises(ResourceException) as exc_info:
        client.post("/api/v1/users", json={})

    exc = exc_info.value
    assert exc.status_code == 400
    assert exc.code == "E0000001"
    assert exc.summary == "Api validation failed: password"
    assert exc.causes == ["password: Password requirements were not met"]
    assert exc.endpoint == "https://example.okta.com/api/v1/users"


def test_non_json_error_body(client, recorded, stub_response):
    _, responses = recorded
    responses.append(stub_response(None, status_code=502))
    with pytest.raises(ResourceException) as exc_info:
        client.get("/api/v1/users")
    assert exc_info.value.code is None
    assert exc_info.value.causes == []


def test_get_paged_follows_next_links_lazily(client, recorded, stub_response):
    calls, responses = recorded
    responses.append(stub_response([{"id": "1"}, {"id": "2"}], next_url="https://example.okta.com/api/v1/users?after=2"))
    responses.append(stub_response([{"id": "3"}]))

    pages = client.get_paged("/api/v1/users", params={"search": "x"})
    assert next(pages) == {"id": "1"}
    assert len(calls) == 1

    assert [item["id"] for item in pages] == ["2", "3"]
    assert calls[1][1] == "https://example.okta.com/api/v1/users?after=2"


def test_user_service_returns_none_for_unknown_user(client, recorded, stub_response):
    _, responses = recorded
    responses.append(stub_response({"errorCode": "E0000007", "errorSummary": "Not found"}, status_code=404))
    assert UserService(client).get_user("00u-missing") is None


def test_user_service_create_activates(client, recorded, stub_response):
    calls, responses = recorded
    responses.append(stub_response({"id": "00u-new"}))

    created = UserService(client).create_user({"profile": {}})

    assert created == {"id": "00u-new"}
    assert calls[0][2]["params"] == {"activate": "true"}


def test_user_service_lifecycle_paths(client, recorded, stub_response):
    calls, responses = recorded
    responses.extend(stub_response({}) for _ in range(3))
    users = UserService(client)

    users.suspend("00u1")
    users.unsuspend("00u1")
    users.deactivate("00u1")

    assert [url.rsplit("/", 1)[-1] for _, url, _ in calls] == ["suspend", "unsuspend", "deactivate"]


def test_group_service_remove_missing_membership(client, recorded, stub_response):
    _, responses = recorded
    responses.append(stub_response({"errorCode": "E0000007", "errorSummary": "Not found"}, status_code=404))
    assert GroupService(client).remove_user_from_group("00g1", "00u1") is False


def test_group_service_list_groups_query(client, recorded, stub_response):
    calls, responses = recorded
    responses.append(stub_response([{"id": "00g1"}]))
    assert GroupService(client).list_groups("Staff") == [{"id": "00g1"}]
    assert calls[0][2]["params"] == {"q": "Staff"}


@pytest.mark.parametrize("error", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_transport_failures_are_wrapped(client, monkeypatch, error):
    def _unreachable(url, **kwargs):
        raise error

    monkeypatch.setattr(requests, "get", _unreachable)
    with pytest.raises(OktaConnectionError) as exc_info:
        client.get("/api/v1/users/00u1")
    assert exc_info.value.cause is error
    assert exc_info.value.endpoint == "https://example.okta.com/api/v1/users/00u1"


def test_dao_reports_unreachable_okta_as_provider_error(client, monkeypatch):
    def _unreachable(url, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", _unreachable)
    with pytest.raises(ProviderOperationError) as exc_info:
        OktaUserDao(client, load_groups=False).find_by_okta_user_id("00u1")
    assert isinstance(exc_info.value, UserDaoError)
    assert isinstance(exc_info.value.resource_error, OktaConnectionError)
