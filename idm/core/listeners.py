"""Keeps attributes Okta cannot store in sync with the legacy fallback store."""
from __future__ import annotations
import logging

import requests

from .exceptions import UserAlreadyExistsError, UserDaoError
from .models import Attr, User
from .user_dao import Listener, UserDao

logger = logging.getLogger(__name__)

# Attribute groups owned by the fallback store
UPDATABLE_ATTRS = frozenset({
    Attr.MFA_SECRET,
    Attr.MFA_INTRUDER_DETECTION,
    Attr.SELFSERVICEKEYS,
    Attr.SECURITYQA,
    Attr.HUMAN_RESOURCE,
})


class FallbackDaoListener(Listener):
    """OktaUserDao listener backed by a secondary UserDao.

    Args:
        dao: Fallback store (the legacy directory DAO)
    """

    def __init__(self, dao: UserDao):
        self.dao = dao

    def on_user_loaded(self, user: User) -> None:
        """Overlay fallback-only attributes onto a user freshly loaded from Okta.

        Failures in the fallback store are logged and ignored; the Okta data is
        still returned to the caller.
        """
        try:
            fallback = self.dao.find_by_the_key_guid(user.the_key_guid, include_deactivated=True)
        except (UserDaoError, requests.RequestException) as exc:
            logger.warning("Fallback lookup failed for %s: %s", user.the_key_guid, exc)
            return
        if fallback is None:
            return

        # MFA
        user.mfa_bypassed = fallback.mfa_bypassed
        user.mfa_encrypted_secret = fallback.mfa_encrypted_secret
        user.mfa_intruder_locked = fallback.mfa_intruder_locked
        user.mfa_intruder_attempts = fallback.mfa_intruder_attempts
        user.mfa_intruder_reset_time = fallback.mfa_intruder_reset_time

        # self-service keys
        user.signup_key = fallback.signup_key
        user.proposed_email = fallback.proposed_email
        user.change_email_key = fallback.change_email_key
        user.reset_password_key = fallback.reset_password_key

        # security question & answer (answer is already hashed)
        user.security_question = fallback.security_question
        user.set_security_answer(fallback.security_answer, hash=False)

        # Okta's last login wins when present
        if user.login_time is None:
            user.login_time = fallback.login_time

        # HR attributes not stored in Okta
        user.cru_employee_status = fallback.cru_employee_status

    def on_user_created(self, user: User) -> None:
        try:
            self.dao.save(user)
        except UserAlreadyExistsError:
            logger.info("%s already exists in fallback store, updating instead", user.the_key_guid)
            self.dao.update(user, *sorted(UPDATABLE_ATTRS, key=lambda attr: attr.name))

    def on_user_updated(self, user: User, *attrs: Attr) -> None:
        filtered = [attr for attr in attrs if attr in UPDATABLE_ATTRS]
        if not filtered:
            return

        original = self.dao.find_by_the_key_guid(user.the_key_guid, include_deactivated=True)
        if original is None:
            logger.debug("%s not in fallback store, skipping update", user.the_key_guid)
            return
        self.dao.update_from(original, user, *filtered)
