"""User/Group domain model, search expressions and the Okta-backed user DAO."""
from .exceptions import (
    ExceededMaximumAllowedResultsError,
    GroupNotFoundError,
    InvalidGroupError,
    InvalidPasswordError,
    InvalidUserError,
    ProviderOperationError,
    ReadOnlyDaoError,
    UnsupportedOperationError,
    UserAlreadyExistsError,
    UserDaoError,
    UserNotFoundError,
)
from .listeners import FallbackDaoListener, UPDATABLE_ATTRS
from .models import Attr, Group, OktaGroup, User, UserStatus
from .query import Attribute, BooleanExpression, ComparisonExpression, ComparisonType, Expression
from .user_dao import SEARCH_NO_LIMIT, Listener, OktaUserDao, UserDao

__all__ = [
    # Exceptions
    "ExceededMaximumAllowedResultsError",
    "GroupNotFoundError",
    "InvalidGroupError",
    "InvalidPasswordError",
    "InvalidUserError",
    "ProviderOperationError",
    "ReadOnlyDaoError",
    "UnsupportedOperationError",
    "UserAlreadyExistsError",
    "UserDaoError",
    "UserNotFoundError",

    # Model
    "Attr",
    "Group",
    "OktaGroup",
    "User",
    "UserStatus",

    # Search expressions
    "Attribute",
    "BooleanExpression",
    "ComparisonExpression",
    "ComparisonType",
    "Expression",

    # DAOs
    "SEARCH_NO_LIMIT",
    "Listener",
    "OktaUserDao",
    "UserDao",
    "FallbackDaoListener",
    "UPDATABLE_ATTRS",
]
