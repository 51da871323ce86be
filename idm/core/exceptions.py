"""Domain exceptions raised by user DAOs."""
from __future__ import annotations
from typing import Optional


class UserDaoError(Exception):
    """Base exception for all user DAO operations."""
    pass


class UserNotFoundError(UserDaoError):
    """User does not exist in the identity provider."""
    pass


class GroupNotFoundError(UserDaoError):
    """Group does not exist in the identity provider."""
    pass


class UserAlreadyExistsError(UserDaoError):
    """User creation failed - a record with the same identity already exists."""
    pass


class InvalidUserError(UserDaoError):
    """User is missing the fields required to be persisted."""
    pass


class InvalidPasswordError(UserDaoError):
    """Password was rejected by the provider's password policy.

    Attributes:
        summary: Policy violation summary reported by the provider (may be None)
    """

    def __init__(self, summary: Optional[str] = None):
        self.summary = summary
        super().__init__(summary or "Password does not meet the password policy")


class ProviderOperationError(UserDaoError):
    """Opaque failure from the identity provider.

    Attributes:
        resource_error: The provider exception that caused this failure
    """

    def __init__(self, resource_error: Exception):
        self.resource_error = resource_error
        super().__init__(f"Identity provider operation failed: {resource_error}")


class InvalidGroupError(UserDaoError, TypeError):
    """Group is not a group of the identity provider backing this DAO."""
    pass


class ExceededMaximumAllowedResultsError(UserDaoError):
    """Search or list enumeration returned more results than allowed."""
    pass


class ReadOnlyDaoError(UserDaoError):
    """Write operation attempted on a read-only DAO."""
    pass


class UnsupportedOperationError(UserDaoError, NotImplementedError):
    """Operation is deprecated or not supported by this DAO."""
    pass
