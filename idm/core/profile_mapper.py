"""User ↔ Okta profile transformations.

Inbound, an Okta user representation (``{"id", "status", "profile", ...}``)
becomes a :class:`User`. Outbound, a :class:`User` becomes either a full
create request or a :class:`ProfilePatch` holding only the profile keys owned
by the requested attribute groups.

Deactivated accounts keep their record in Okta; the email (and login) is
rewritten to ``$GUID-<guid>@deactivated.cru.org`` and the real address is
kept in the ``original_email`` profile key.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .models import Attr, Group, OktaGroup, User

logger = logging.getLogger(__name__)

PROFILE_THEKEY_GUID = "theKeyGuid"
PROFILE_RELAY_GUID = "relayGuid"
PROFILE_LOGIN = "login"
PROFILE_EMAIL = "email"
PROFILE_FIRST_NAME = "firstName"
PROFILE_NICK_NAME = "nickName"
PROFILE_LAST_NAME = "lastName"

PROFILE_PHONE_NUMBER = "primaryPhone"
PROFILE_CITY = "city"
PROFILE_STATE = "state"
PROFILE_ZIP_CODE = "zipCode"
PROFILE_COUNTRY = "cruCountryCode"

PROFILE_US_EMPLOYEE_ID = "usEmployeeId"
PROFILE_US_DESIGNATION = "usDesignationNumber"

PROFILE_ORGANIZATION = "organization"
PROFILE_DIVISION = "division"
PROFILE_DEPARTMENT = "department"
PROFILE_MANAGER_ID = "managerId"

PROFILE_ORIGINAL_EMAIL = "original_email"
PROFILE_EMAIL_ALIASES = "emailAliases"

PROFILE_GR_MASTER_PERSON_ID = "grMasterPersonId"
PROFILE_GR_PERSON_ID = "thekeyGrPersonId"

PROFILE_ORCA = "orca"

DEACTIVATED_PREFIX = "$GUID-"
DEACTIVATED_SUFFIX = "@deactivated.cru.org"
DEACTIVATED_LEGACY = "$GUID$-="

DEFAULT_ATTRS = (Attr.EMAIL, Attr.NAME, Attr.FLAGS)


def deactivated_email(guid: Optional[str]) -> str:
    return f"{DEACTIVATED_PREFIX}{guid}{DEACTIVATED_SUFFIX}"


def _email_profile(user: User) -> Dict[str, Any]:
    if user.deactivated:
        email = deactivated_email(user.the_key_guid)
        original = user.email
    else:
        email = user.email
        original = None
    # login must always track the provider email
    return {PROFILE_EMAIL: email, PROFILE_LOGIN: email, PROFILE_ORIGINAL_EMAIL: original}


def _name_profile(user: User) -> Dict[str, Any]:
    return {
        PROFILE_FIRST_NAME: user.first_name,
        PROFILE_NICK_NAME: user.preferred_name,
        PROFILE_LAST_NAME: user.last_name,
    }


def _location_profile(user: User) -> Dict[str, Any]:
    return {
        PROFILE_CITY: user.city,
        PROFILE_STATE: user.state,
        PROFILE_ZIP_CODE: user.postal,
        PROFILE_COUNTRY: user.country,
    }


def _human_resource_profile(user: User) -> Dict[str, Any]:
    return {
        PROFILE_ORGANIZATION: user.cru_ministry_code,
        PROFILE_DIVISION: user.cru_sub_ministry_code,
        PROFILE_DEPARTMENT: user.department_number,
        PROFILE_MANAGER_ID: user.cru_manager_id,
    }


# Attribute groups with a provider-side representation. PASSWORD is carried
# as a credential rather than a profile key, see build_update_patch().
ATTR_WRITERS: Mapping[Attr, Callable[[User], Dict[str, Any]]] = MappingProxyType({
    Attr.EMAIL: _email_profile,
    Attr.PASSWORD: lambda user: {},
    Attr.NAME: _name_profile,
    Attr.CRU_PREFERRED_NAME: lambda user: {PROFILE_NICK_NAME: user.preferred_name},
    Attr.CONTACT: lambda user: {PROFILE_PHONE_NUMBER: user.telephone_number},
    Attr.LOCATION: _location_profile,
    Attr.EMPLOYEE_NUMBER: lambda user: {PROFILE_US_EMPLOYEE_ID: user.employee_id},
    Attr.CRU_DESIGNATION: lambda user: {PROFILE_US_DESIGNATION: user.cru_designation},
    Attr.HUMAN_RESOURCE: _human_resource_profile,
    Attr.CRU_PROXY_ADDRESSES: lambda user: {PROFILE_EMAIL_ALIASES: sorted(user.cru_proxy_addresses)},
    Attr.ORCA: lambda user: {PROFILE_ORCA: user.orca},
})

PROVIDER_ATTRS = frozenset(ATTR_WRITERS)


@dataclass(frozen=True)
class ProfilePatch:
    """Immutable set of profile writes applied by a single update call."""
    profile: Mapping[str, Any]
    password: Optional[str] = None

    def to_request_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.profile:
            body["profile"] = dict(self.profile)
        if self.password is not None:
            body["credentials"] = {"password": {"value": self.password}}
        return body


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring malformed Okta timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ProfileMapper:
    """Bidirectional transformer for User/Okta user representations."""

    @staticmethod
    def to_user(okta_user: Mapping[str, Any], groups: Optional[Iterable[Mapping[str, Any]]] = None) -> User:
        """Convert an Okta user representation to a User.

        Args:
            okta_user: Okta user JSON (id, status, profile, lastLogin)
            groups: Okta group representations; only mapped when provided

        Returns:
            User with every mapped attribute populated (missing keys → None)

        Example:
            >>> user = ProfileMapper.to_user({
            ...     "id": "00u1",
            ...     "profile": {"theKeyGuid": "G1", "email": "a@b.com", "login": "a@b.com"},
            ... })
            >>> (user.relay_guid, user.email, user.deactivated)
            ('G1', 'a@b.com', False)
        """
        profile = okta_user.get("profile") or {}
        email = profile.get(PROFILE_EMAIL) or ""
        login = profile.get(PROFILE_LOGIN) or ""

        deactivated = email.startswith(DEACTIVATED_PREFIX) and email.endswith(DEACTIVATED_SUFFIX)
        legacy_deactivated = login.startswith(DEACTIVATED_LEGACY) and "@" not in login
        if deactivated:
            real_email = profile.get(PROFILE_ORIGINAL_EMAIL)
        elif legacy_deactivated:
            real_email = profile.get(PROFILE_ORIGINAL_EMAIL) or profile.get(PROFILE_EMAIL)
        else:
            real_email = profile.get(PROFILE_EMAIL)

        the_key_guid = profile.get(PROFILE_THEKEY_GUID)
        user = User(
            okta_user_id=okta_user.get("id"),
            the_key_guid=the_key_guid,
            relay_guid=profile.get(PROFILE_RELAY_GUID) or the_key_guid,
            email=real_email,
            email_verified=True,
            deactivated=deactivated or legacy_deactivated,
            first_name=profile.get(PROFILE_FIRST_NAME),
            preferred_name=profile.get(PROFILE_NICK_NAME),
            last_name=profile.get(PROFILE_LAST_NAME),
            telephone_number=profile.get(PROFILE_PHONE_NUMBER),
            city=profile.get(PROFILE_CITY),
            state=profile.get(PROFILE_STATE),
            postal=profile.get(PROFILE_ZIP_CODE),
            country=profile.get(PROFILE_COUNTRY),
            cru_ministry_code=profile.get(PROFILE_ORGANIZATION),
            cru_sub_ministry_code=profile.get(PROFILE_DIVISION),
            department_number=profile.get(PROFILE_DEPARTMENT),
            cru_manager_id=profile.get(PROFILE_MANAGER_ID),
            employee_id=profile.get(PROFILE_US_EMPLOYEE_ID),
            cru_designation=profile.get(PROFILE_US_DESIGNATION),
            cru_proxy_addresses=set(profile.get(PROFILE_EMAIL_ALIASES) or []),
            orca=bool(profile.get(PROFILE_ORCA)),
            gr_master_person_id=profile.get(PROFILE_GR_MASTER_PERSON_ID),
            gr_person_id=profile.get(PROFILE_GR_PERSON_ID),
            login_time=_parse_timestamp(okta_user.get("lastLogin")),
        )
        if groups is not None:
            user.groups = [ProfileMapper.to_group(group) for group in groups]
        return user

    @staticmethod
    def to_group(okta_group: Mapping[str, Any]) -> Group:
        return OktaGroup(
            id=okta_group.get("id"),
            name=(okta_group.get("profile") or {}).get("name"),
            okta_group_type=okta_group.get("type"),
        )

    @staticmethod
    def build_create_request(user: User, initial_groups: Iterable[str] = ()) -> Dict[str, Any]:
        """Build the full create payload for a new Okta user."""
        profile: Dict[str, Any] = {
            PROFILE_THEKEY_GUID: user.the_key_guid,
            PROFILE_RELAY_GUID: user.relay_guid,
            PROFILE_US_EMPLOYEE_ID: user.employee_id,
            PROFILE_US_DESIGNATION: user.cru_designation,
            PROFILE_PHONE_NUMBER: user.telephone_number,
            PROFILE_EMAIL_ALIASES: sorted(user.cru_proxy_addresses),
            PROFILE_ORCA: user.orca,
        }
        profile.update(_email_profile(user))
        profile.update(_name_profile(user))
        profile.update(_location_profile(user))
        profile.update(_human_resource_profile(user))

        request: Dict[str, Any] = {"profile": profile, "groupIds": sorted(initial_groups)}
        if user.password is not None:
            request["credentials"] = {"password": {"value": user.password}}
        return request

    @staticmethod
    def build_update_patch(user: User, attrs: Iterable[Attr]) -> Optional[ProfilePatch]:
        """Build the profile writes for the requested attribute groups.

        Returns:
            ProfilePatch, or None when no requested group is stored in Okta
            or the requested groups produce no writes (e.g. PASSWORD without a password)
        """
        requested = [attr for attr in attrs if attr in ATTR_WRITERS]
        if not requested:
            return None

        profile: Dict[str, Any] = {}
        for attr in requested:
            profile.update(ATTR_WRITERS[attr](user))
        password = user.password if Attr.PASSWORD in requested else None
        if not profile and password is None:
            return None
        return ProfilePatch(profile=MappingProxyType(profile), password=password)