from datetime import datetime, timezone

import pytest
import requests

from idm.core.exceptions import UserAlreadyExistsError, UserDaoError
from idm.core.listeners import UPDATABLE_ATTRS, FallbackDaoListener
from idm.core.models import Attr, User


@pytest.fixture
def listener(fallback_dao):
    return FallbackDaoListener(fallback_dao)


def _fallback_user(**fields):
    defaults = {
        "the_key_guid": "GUID-1",
        "email": "alice@example.com",
        "mfa_bypassed": True,
        "mfa_encrypted_secret": "enc-secret",
        "mfa_intruder_locked": True,
        "mfa_intruder_attempts": 3,
        "signup_key": "signup",
        "proposed_email": "new@example.com",
        "change_email_key": "change",
        "reset_password_key": "reset",
        "security_question": "Favorite color?",
        "security_answer": "already-hashed",
        "cru_employee_status": "A",
        "login_time": datetime(2020, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(fields)
    return User(**defaults)


def test_on_user_loaded_overlays_fallback_attributes(listener, fallback_dao, make_user):
    fallback_dao.find_by_the_key_guid.return_value = _fallback_user()
    user = make_user()

    listener.on_user_loaded(user)

    fallback_dao.find_by_the_key_guid.assert_called_once_with("GUID-1", include_deactivated=True)
    assert user.mfa_bypassed is True
    assert user.mfa_encrypted_secret == "enc-secret"
    assert user.mfa_intruder_locked is True
    assert user.mfa_intruder_attempts == 3
    assert (user.signup_key, user.proposed_email) == ("signup", "new@example.com")
    assert (user.change_email_key, user.reset_password_key) == ("change", "reset")
    assert user.security_question == "Favorite color?"
    assert user.security_answer == "already-hashed"
    assert user.cru_employee_status == "A"
    assert user.login_time == datetime(2020, 1, 1, tzinfo=timezone.utc)


def test_okta_login_time_wins_over_fallback(listener, fallback_dao, make_user):
    okta_login = datetime(2024, 5, 1, tzinfo=timezone.utc)
    fallback_dao.find_by_the_key_guid.return_value = _fallback_user()
    user = make_user(login_time=okta_login)

    listener.on_user_loaded(user)

    assert user.login_time == okta_login


def test_on_user_loaded_without_fallback_record(listener, make_user):
    user = make_user()
    listener.on_user_loaded(user)
    assert user.security_question is None


@pytest.mark.parametrize("error", [UserDaoError("down"), requests.ConnectionError("unreachable")])
def test_on_user_loaded_swallows_fallback_failures(listener, fallback_dao, make_user, error, caplog):
    fallback_dao.find_by_the_key_guid.side_effect = error
    user = make_user()

    listener.on_user_loaded(user)

    assert user.email == "alice@example.com"
    assert "Fallback lookup failed" in caplog.text


def test_on_user_created_saves_to_fallback(listener, fallback_dao, make_user):
    user = make_user()
    listener.on_user_created(user)
    fallback_dao.save.assert_called_once_with(user)
    fallback_dao.update.assert_not_called()


def test_on_user_created_updates_existing_fallback_record(listener, fallback_dao, make_user):
    fallback_dao.save.side_effect = UserAlreadyExistsError("exists")
    user = make_user()

    listener.on_user_created(user)

    args = fallback_dao.update.call_args[0]
    assert args[0] is user
    assert set(args[1:]) == UPDATABLE_ATTRS


def test_on_user_updated_ignores_okta_only_groups(listener, fallback_dao, make_user):
    listener.on_user_updated(make_user(), Attr.EMAIL, Attr.NAME, Attr.ORCA)
    fallback_dao.find_by_the_key_guid.assert_not_called()
    fallback_dao.update_from.assert_not_called()


def test_on_user_updated_forwards_fallback_groups(listener, fallback_dao, make_user):
    original = _fallback_user()
    fallback_dao.find_by_the_key_guid.return_value = original
    user = make_user()

    listener.on_user_updated(user, Attr.EMAIL, Attr.HUMAN_RESOURCE, Attr.SECURITYQA)

    fallback_dao.update_from.assert_called_once_with(original, user, Attr.HUMAN_RESOURCE, Attr.SECURITYQA)


def test_on_user_updated_skips_users_missing_from_fallback(listener, fallback_dao, make_user):
    listener.on_user_updated(make_user(), Attr.MFA_SECRET)
    fallback_dao.update_from.assert_not_called()


def test_updatable_attrs_never_contain_okta_identity_groups():
    assert Attr.EMAIL not in UPDATABLE_ATTRS
    assert Attr.PASSWORD not in UPDATABLE_ATTRS
    assert Attr.HUMAN_RESOURCE in UPDATABLE_ATTRS


def test_dao_routes_fallback_groups_through_listener(dao, okta_users, fallback_dao, okta_user_factory, make_user):
    original = _fallback_user()
    fallback_dao.find_by_the_key_guid.return_value = original
    dao.listeners = [FallbackDaoListener(fallback_dao)]
    okta_users.get_user.return_value = okta_user_factory()
    user = make_user(security_question="First pet?")

    dao.update(user, Attr.NAME, Attr.SECURITYQA)

    okta_users.update_user.assert_called_once()
    fallback_dao.update_from.assert_called_once_with(original, user, Attr.SECURITYQA)


def test_loaded_users_carry_fallback_attributes(dao, okta_users, fallback_dao, okta_user_factory):
    fallback_dao.find_by_the_key_guid.return_value = _fallback_user()
    dao.listeners = [FallbackDaoListener(fallback_dao)]
    okta_users.search_users.return_value = iter([okta_user_factory()])

    user = dao.find_by_the_key_guid("GUID-1")

    assert user.security_question == "Favorite color?"
    assert user.mfa_bypassed is True
