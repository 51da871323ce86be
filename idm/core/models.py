"""User and group domain model shared by every user DAO."""
from __future__ import annotations
import copy
import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Set


class Attr(Enum):
    """Logical attribute groups an update call can target."""
    EMAIL = "email"
    PASSWORD = "password"
    NAME = "name"
    CRU_PREFERRED_NAME = "cru_preferred_name"
    CONTACT = "contact"
    LOCATION = "location"
    EMPLOYEE_NUMBER = "employee_number"
    CRU_DESIGNATION = "cru_designation"
    HUMAN_RESOURCE = "human_resource"
    CRU_PROXY_ADDRESSES = "cru_proxy_addresses"
    ORCA = "orca"
    FLAGS = "flags"
    SECURITYQA = "securityqa"
    SELFSERVICEKEYS = "selfservicekeys"
    MFA_SECRET = "mfa_secret"
    MFA_INTRUDER_DETECTION = "mfa_intruder_detection"
    DOMAINSVISITED = "domainsvisited"
    FACEBOOK = "facebook"
    GLOBALREGISTRY = "globalregistry"
    LOGINTIME = "logintime"


class UserStatus(str, Enum):
    """Provider lifecycle states."""
    STAGED = "STAGED"
    PROVISIONED = "PROVISIONED"
    ACTIVE = "ACTIVE"
    RECOVERY = "RECOVERY"
    PASSWORD_EXPIRED = "PASSWORD_EXPIRED"
    LOCKED_OUT = "LOCKED_OUT"
    SUSPENDED = "SUSPENDED"
    DEPROVISIONED = "DEPROVISIONED"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["UserStatus"]:
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


def _hash_answer(answer: str) -> str:
    normalized = " ".join(answer.lower().split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


@dataclass
class Group:
    """Group reference identified by id and a `/`-separated path name."""
    id: Optional[str] = None
    name: Optional[str] = None

    @property
    def path(self) -> List[str]:
        return [part for part in (self.name or "").split("/") if part]

    def is_descendant_of_or_equal_to(self, base: str) -> bool:
        """Return True when this group's path starts with the path in `base`."""
        base_path = [part for part in base.split("/") if part]
        return self.path[: len(base_path)] == base_path


@dataclass
class OktaGroup(Group):
    """Group as represented natively by the identity provider."""
    okta_group_type: Optional[str] = None


@dataclass
class User:
    """Canonical identity record.

    Records are built fresh on every read; nothing here is cached or shared
    between requests.
    """
    # Identity
    the_key_guid: Optional[str] = None
    relay_guid: Optional[str] = None
    okta_user_id: Optional[str] = None
    guid: Optional[str] = None

    # Login
    email: Optional[str] = None
    email_verified: bool = False
    deactivated: bool = False
    password: Optional[str] = None

    # Name
    first_name: Optional[str] = None
    preferred_name: Optional[str] = None
    last_name: Optional[str] = None

    # Contact / location
    telephone_number: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None

    # HR
    cru_ministry_code: Optional[str] = None
    cru_sub_ministry_code: Optional[str] = None
    department_number: Optional[str] = None
    cru_manager_id: Optional[str] = None
    cru_employee_status: Optional[str] = None
    employee_id: Optional[str] = None
    cru_designation: Optional[str] = None
    cru_proxy_addresses: Set[str] = field(default_factory=set)
    orca: bool = False

    # Global Registry
    gr_master_person_id: Optional[str] = None
    gr_person_id: Optional[str] = None

    # MFA
    mfa_bypassed: bool = False
    mfa_encrypted_secret: Optional[str] = None
    mfa_intruder_locked: bool = False
    mfa_intruder_attempts: Optional[int] = None
    mfa_intruder_reset_time: Optional[datetime] = None

    # Self-service keys
    signup_key: Optional[str] = None
    proposed_email: Optional[str] = None
    change_email_key: Optional[str] = None
    reset_password_key: Optional[str] = None

    # Security Q&A
    security_question: Optional[str] = None
    security_answer: Optional[str] = None

    login_time: Optional[datetime] = None
    groups: List[Group] = field(default_factory=list)

    @property
    def preferred_name_or_first(self) -> Optional[str]:
        return self.preferred_name or self.first_name

    def set_security_answer(self, answer: Optional[str], hash: bool = True) -> None:
        """Store the security answer, hashing it unless it is already a hash."""
        if answer is None:
            self.security_answer = None
        elif hash:
            self.security_answer = _hash_answer(answer)
        else:
            self.security_answer = answer

    def check_security_answer(self, answer: Optional[str]) -> bool:
        if answer is None or self.security_answer is None:
            return False
        return hmac.compare_digest(_hash_answer(answer), self.security_answer)

    def copy_attrs_from(self, other: "User", attrs: Iterable[Attr]) -> None:
        """Copy the fields owned by the given attribute groups from another user."""
        for attr in attrs:
            for name in ATTR_FIELDS.get(attr, ()):
                setattr(self, name, copy.copy(getattr(other, name)))


# User fields owned by each attribute group
ATTR_FIELDS = {
    Attr.EMAIL: ("email", "email_verified", "deactivated"),
    Attr.PASSWORD: ("password",),
    Attr.NAME: ("first_name", "preferred_name", "last_name"),
    Attr.CRU_PREFERRED_NAME: ("preferred_name",),
    Attr.CONTACT: ("telephone_number",),
    Attr.LOCATION: ("city", "state", "postal", "country"),
    Attr.EMPLOYEE_NUMBER: ("employee_id",),
    Attr.CRU_DESIGNATION: ("cru_designation",),
    Attr.HUMAN_RESOURCE: (
        "cru_ministry_code",
        "cru_sub_ministry_code",
        "department_number",
        "cru_manager_id",
        "cru_employee_status",
    ),
    Attr.CRU_PROXY_ADDRESSES: ("cru_proxy_addresses",),
    Attr.ORCA: ("orca",),
    Attr.FLAGS: ("deactivated", "email_verified"),
    Attr.SECURITYQA: ("security_question", "security_answer"),
    Attr.SELFSERVICEKEYS: ("signup_key", "proposed_email", "change_email_key", "reset_password_key"),
    Attr.MFA_SECRET: ("mfa_bypassed", "mfa_encrypted_secret"),
    Attr.MFA_INTRUDER_DETECTION: ("mfa_intruder_locked", "mfa_intruder_attempts", "mfa_intruder_reset_time"),
    Attr.GLOBALREGISTRY: ("gr_master_person_id", "gr_person_id"),
    Attr.LOGINTIME: ("login_time",),
}
