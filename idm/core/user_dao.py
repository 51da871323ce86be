"""User DAOs backed by the Okta Management API.

Architecture:
    caller ──> OktaUserDao ──> ProfileMapper ──> idm.core.okta ──> Okta
                    └──> Listener hooks (e.g. FallbackDaoListener ──> legacy UserDao)

`UserDao` is the contract shared by the Okta DAO and the legacy directory
DAO that acts as its fallback store.
"""
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence

from .exceptions import (
    ExceededMaximumAllowedResultsError,
    GroupNotFoundError,
    InvalidGroupError,
    InvalidPasswordError,
    InvalidUserError,
    ProviderOperationError,
    ReadOnlyDaoError,
    UnsupportedOperationError,
    UserDaoError,
    UserNotFoundError,
)
from .models import Attr, Group, OktaGroup, User, UserStatus
from .okta import GroupService, OktaClient, OktaError, ResourceException, UserService
from .profile_mapper import DEFAULT_ATTRS, PROFILE_RELAY_GUID, PROVIDER_ATTRS, ProfileMapper
from .query import Attribute, ComparisonType, Expression
from .search_filter import comparison_filter, to_okta_expression

logger = logging.getLogger(__name__)

SEARCH_NO_LIMIT = 0

PASSWORD_ERROR_CODE = "E0000001"
PASSWORD_ERROR_SUMMARY = "Api validation failed: password"
PASSWORD_CAUSE_PREFIX = "password: "

# Okta refuses to suspend accounts that were never activated
NEVER_ACTIVATED = (UserStatus.STAGED, UserStatus.PROVISIONED)


def limit_results(items: Iterable, limit: int) -> Iterator:
    """Yield items, failing as soon as more than `limit` have been seen."""
    count = 0
    for item in items:
        count += 1
        if count > limit:
            raise ExceededMaximumAllowedResultsError(f"Search exceeded {limit} results")
        yield item


class UserDao(ABC):
    """Contract for user data access objects."""

    def __init__(self, max_search_results: int = SEARCH_NO_LIMIT, read_only: bool = False):
        self.max_search_results = max_search_results
        self.read_only = read_only

    def assert_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyDaoError(f"{type(self).__name__} is read-only")

    def assert_valid_user(self, user: User) -> None:
        if not user.the_key_guid:
            raise InvalidUserError("user is missing theKeyGuid")
        if not user.email:
            raise InvalidUserError("user is missing an email address")

    def restrict_max_allowed(self, items: Iterable, restrict: bool = True) -> Iterator:
        """Apply the configured result cap to a lazily produced sequence.

        Every call gets its own counter, so concurrent enumerations never share state.
        """
        if restrict and self.max_search_results != SEARCH_NO_LIMIT:
            return limit_results(items, self.max_search_results)
        return iter(items)

    @abstractmethod
    def find_by_the_key_guid(self, guid: Optional[str], include_deactivated: bool = False) -> Optional[User]:
        ...

    @abstractmethod
    def save(self, user: User) -> None:
        ...

    @abstractmethod
    def update(self, user: User, *attrs: Attr) -> None:
        ...

    def update_from(self, original: User, user: User, *attrs: Attr) -> None:
        """Update this DAO's own record with the given attribute groups taken from `user`."""
        original.copy_attrs_from(user, attrs or DEFAULT_ATTRS)
        self.update(original, *attrs)

    def deactivate(self, user: User) -> None:
        user.deactivated = True
        self.update(user, Attr.EMAIL, Attr.FLAGS)

    def reactivate(self, user: User) -> None:
        user.deactivated = False
        self.update(user, Attr.EMAIL, Attr.FLAGS)


class Listener:
    """Hooks fired by OktaUserDao after a successful provider operation."""

    def on_user_loaded(self, user: User) -> None:
        pass

    def on_user_created(self, user: User) -> None:
        pass

    def on_user_updated(self, user: User, *attrs: Attr) -> None:
        pass


def translate_resource_exception(exc: ResourceException, check_password: bool = False) -> UserDaoError:
    """Map a provider error onto the domain taxonomy."""
    if check_password and exc.code == PASSWORD_ERROR_CODE and exc.summary == PASSWORD_ERROR_SUMMARY:
        summary = exc.causes[0] if exc.causes else None
        if summary and summary.startswith(PASSWORD_CAUSE_PREFIX):
            summary = summary[len(PASSWORD_CAUSE_PREFIX):]
        return InvalidPasswordError(summary)
    return ProviderOperationError(exc)


@contextmanager
def provider_errors(check_password: bool = False):
    """Re-raise provider errors from the wrapped block as domain errors."""
    try:
        yield
    except ResourceException as exc:
        raise translate_resource_exception(exc, check_password) from exc
    except OktaError as exc:
        raise ProviderOperationError(exc) from exc


def _translated(items: Iterable) -> Iterator:
    with provider_errors():
        yield from items


class OktaUserDao(UserDao):
    """User DAO mapping User/Group onto Okta users, groups and lifecycle.

    Attributes:
        max_search_results: Cap applied to stream_* enumerations (0 = no limit)
        initial_groups: Okta group ids every new user is created in
        load_groups: Populate User.groups on single-user lookups
        read_only: Reject save/update when set
    """

    def __init__(
        self,
        client: OktaClient,
        listeners: Optional[Sequence[Listener]] = None,
        max_search_results: int = SEARCH_NO_LIMIT,
        initial_groups: Iterable[str] = (),
        load_groups: bool = True,
        read_only: bool = False,
    ):
        super().__init__(max_search_results=max_search_results, read_only=read_only)
        self.users = UserService(client)
        self.groups = GroupService(client)
        self.listeners: List[Listener] = list(listeners or [])
        self.initial_groups = set(initial_groups)
        self.load_groups = load_groups

    # ─────────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────────
    def _find_okta_user(self, user: User) -> Optional[dict]:
        return self._find_okta_user_by_id(user.okta_user_id) or self._find_okta_user_by_the_key_guid(user.the_key_guid)

    def _find_okta_user_by_id(self, okta_user_id: Optional[str]) -> Optional[dict]:
        if not okta_user_id:
            return None
        with provider_errors():
            return self.users.get_user(okta_user_id)

    def _find_okta_user_by_the_key_guid(self, guid: Optional[str]) -> Optional[dict]:
        if not guid:
            return None
        return self._search_first(to_okta_expression(Attribute.GUID.eq(guid)))

    def _search_first(self, search: str) -> Optional[dict]:
        with provider_errors():
            return next(iter(self.users.search_users(search)), None)

    def _as_user(self, okta_user: dict, load_groups: Optional[bool] = None) -> User:
        if load_groups is None:
            load_groups = self.load_groups
        groups = None
        if load_groups:
            with provider_errors():
                groups = self.users.list_user_groups(okta_user["id"])
        user = ProfileMapper.to_user(okta_user, groups)
        for listener in self.listeners:
            listener.on_user_loaded(user)
        return user

    def _visible(self, user: Optional[User], include_deactivated: bool) -> Optional[User]:
        if user is None or (user.deactivated and not include_deactivated):
            return None
        return user

    def find_by_okta_user_id(self, okta_user_id: Optional[str]) -> Optional[User]:
        okta_user = self._find_okta_user_by_id(okta_user_id)
        return self._as_user(okta_user) if okta_user else None

    def find_by_email(self, email: Optional[str], include_deactivated: bool = False) -> Optional[User]:
        if email is None:
            return None
        okta_user = self._search_first(to_okta_expression(Attribute.EMAIL.eq(email), include_deactivated))
        return self._as_user(okta_user) if okta_user else None

    def find_by_the_key_guid(self, guid: Optional[str], include_deactivated: bool = False) -> Optional[User]:
        okta_user = self._find_okta_user_by_the_key_guid(guid)
        return self._visible(self._as_user(okta_user) if okta_user else None, include_deactivated)

    def find_by_relay_guid(self, guid: Optional[str], include_deactivated: bool = False) -> Optional[User]:
        if not guid:
            return None
        okta_user = self._search_first(comparison_filter(PROFILE_RELAY_GUID, ComparisonType.EQ, guid))
        return self._visible(self._as_user(okta_user) if okta_user else None, include_deactivated)

    # ─────────────────────────────────────────────────────────────────────
    # Streams
    # ─────────────────────────────────────────────────────────────────────
    def stream_users(
        self,
        expression: Optional[Expression] = None,
        include_deactivated: bool = False,
        restrict_max_allowed: bool = True,
    ) -> Iterator[User]:
        """Lazily enumerate users matching an expression.

        The expression is translated up front, so unsupported expressions fail
        before any request is made.

        Raises:
            UnsupportedOperationError: Expression uses GROUP or LIKE
            ExceededMaximumAllowedResultsError: During iteration, once the cap is passed
        """
        search = to_okta_expression(expression, include_deactivated) if expression is not None else None
        logger.debug("Streaming users with search=%s", search)
        users = (
            self._as_user(okta_user, load_groups=False)
            for okta_user in _translated(self.users.list_users(search))
        )
        visible = (user for user in users if include_deactivated or not user.deactivated)
        return self.restrict_max_allowed(visible, restrict_max_allowed)

    def stream_users_in_group(
        self,
        group: Group,
        expression: Optional[Expression] = None,
        include_deactivated: bool = False,
        restrict_max_allowed: bool = True,
    ) -> Iterator[User]:
        """Lazily enumerate members of an Okta group, filtered in memory.

        Raises:
            InvalidGroupError: group is not an OktaGroup
            GroupNotFoundError: group does not exist in Okta
        """
        if not isinstance(group, OktaGroup):
            raise InvalidGroupError("OktaGroup is required for stream_users_in_group")
        okta_group = None
        if group.id:
            with provider_errors():
                okta_group = self.groups.get_group(group.id)
        if okta_group is None:
            raise GroupNotFoundError(f"Group '{group.id}' not found")

        users = (
            self._as_user(okta_user, load_groups=False)
            for okta_user in _translated(self.groups.list_group_users(okta_group["id"]))
        )
        visible = (
            user for user in users
            if (include_deactivated or not user.deactivated)
            and (expression is None or expression.matches(user))
        )
        return self.restrict_max_allowed(visible, restrict_max_allowed)

    # ─────────────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────────────
    def save(self, user: User) -> None:
        """Create the user in Okta, then notify listeners.

        Raises:
            InvalidPasswordError: Okta rejected the password
            ProviderOperationError: Any other Okta failure
        """
        self.assert_writable()
        self.assert_valid_user(user)

        request = ProfileMapper.build_create_request(user, self.initial_groups)
        with provider_errors(check_password=True):
            created = self.users.create_user(request)
        user.okta_user_id = created.get("id")
        logger.info("Created Okta user %s for %s", user.okta_user_id, user.the_key_guid)

        for listener in self.listeners:
            listener.on_user_created(user)

    def update(self, user: User, *attrs: Attr) -> None:
        """Write the requested attribute groups to Okta, then notify listeners.

        Groups without an Okta representation (FLAGS, SECURITYQA, MFA_*, ...)
        never touch Okta; they are left to the listeners.
        """
        self.assert_writable()
        self.assert_valid_user(user)

        requested = set(attrs or DEFAULT_ATTRS)
        ordered = tuple(attr for attr in Attr if attr in requested)

        if requested & PROVIDER_ATTRS:
            okta_user = self._find_okta_user(user)
            if okta_user is None:
                raise UserNotFoundError(f"User '{user.the_key_guid}' not found in Okta")

            patch = ProfileMapper.build_update_patch(user, ordered)
            if patch is not None:
                with provider_errors(check_password=Attr.PASSWORD in requested):
                    self.users.update_user(okta_user["id"], patch.to_request_body())
            else:
                logger.debug("No Okta changes for %s", user.the_key_guid)

        for listener in self.listeners:
            listener.on_user_updated(user, *ordered)

    def deactivate(self, user: User) -> None:
        """Suspend the Okta account (when allowed) and mark the user deactivated.

        Accounts that were never activated cannot be suspended; they are
        deprovisioned after the deactivated attributes are written instead.
        """
        self.assert_writable()
        okta_user = self._find_okta_user(user)
        if okta_user is None:
            logger.info("Deactivate skipped, %s not found in Okta", user.the_key_guid)
            return
        status = UserStatus.parse(okta_user.get("status"))

        if status is not UserStatus.SUSPENDED and status not in NEVER_ACTIVATED:
            with provider_errors():
                self.users.suspend(okta_user["id"])

        super().deactivate(user)

        if status in NEVER_ACTIVATED:
            with provider_errors():
                self.users.deactivate(okta_user["id"])

    def reactivate(self, user: User) -> None:
        self.assert_writable()
        okta_user = self._find_okta_user(user)
        if okta_user is None:
            logger.info("Reactivate skipped, %s not found in Okta", user.the_key_guid)
            return
        super().reactivate(user)
        if UserStatus.parse(okta_user.get("status")) is UserStatus.SUSPENDED:
            with provider_errors():
                self.users.unsuspend(okta_user["id"])

    # ─────────────────────────────────────────────────────────────────────
    # Groups
    # ─────────────────────────────────────────────────────────────────────
    def get_group(self, group_id: Optional[str]) -> Optional[Group]:
        if not group_id:
            return None
        with provider_errors():
            okta_group = self.groups.get_group(group_id)
        return ProfileMapper.to_group(okta_group) if okta_group else None

    def get_all_groups(self, base_search: Optional[str] = None) -> List[Group]:
        with provider_errors():
            okta_groups = self.groups.list_groups(base_search)
        groups = [ProfileMapper.to_group(okta_group) for okta_group in okta_groups]
        return [group for group in groups if base_search is None or group.is_descendant_of_or_equal_to(base_search)]

    def add_to_group(self, user: User, group: Group) -> None:
        if not isinstance(group, OktaGroup):
            raise InvalidGroupError(f"{group} is not an Okta Group")
        okta_user = self._find_okta_user(user)
        if okta_user is None:
            raise UserNotFoundError(f"User '{user.the_key_guid}' not found in Okta")
        with provider_errors():
            self.groups.add_user_to_group(group.id, okta_user["id"])

    def remove_from_group(self, user: User, group: Group) -> None:
        if not isinstance(group, OktaGroup):
            raise InvalidGroupError(f"{group} is not an Okta Group")
        okta_user_id = user.okta_user_id
        if not okta_user_id:
            okta_user = self._find_okta_user(user)
            if okta_user is None:
                raise UserNotFoundError(f"User '{user.the_key_guid}' not found in Okta")
            okta_user_id = okta_user["id"]
        with provider_errors():
            if self.groups.get_group(group.id) is None:
                return
            self.groups.remove_user_from_group(group.id, okta_user_id)

    # ─────────────────────────────────────────────────────────────────────
    # Unsupported deprecated methods
    # ─────────────────────────────────────────────────────────────────────
    def enqueue_all(self, queue, deactivated: bool = False):
        raise UnsupportedOperationError("enqueue_all is not supported by OktaUserDao")

    def find_all_by_group(self, group: Group, include_deactivated: bool = False):
        raise UnsupportedOperationError("find_all_by_group is not supported by OktaUserDao")

    def find_all_by_query(self, query):
        raise UnsupportedOperationError("find_all_by_query is not supported by OktaUserDao")

    def find_by_guid(self, guid: Optional[str], include_deactivated: bool = False):
        raise UnsupportedOperationError("guids are not stored in Okta, use find_by_the_key_guid")

    def find_by_designation(self, designation: Optional[str], include_deactivated: bool = False):
        raise UnsupportedOperationError("find_by_designation is not supported by OktaUserDao")

    def find_by_employee_id(self, employee_id: Optional[str], include_deactivated: bool = False):
        raise UnsupportedOperationError("find_by_employee_id is not supported by OktaUserDao")

    def find_by_facebook_id(self, facebook_id: Optional[str], include_deactivated: bool = False):
        raise UnsupportedOperationError("find_by_facebook_id is not supported by OktaUserDao")
