"""Search expression → provider filter string translation.

    >>> expr = Attribute.EMAIL.eq("a@b.com").and_(Attribute.FIRST_NAME.sw("J"))
    >>> to_okta_expression(expr, include_deactivated=False)
    '(profile.email eq "a@b.com" and profile.firstName sw "J")'
"""
from __future__ import annotations
from typing import Optional

from .exceptions import UnsupportedOperationError
from .profile_mapper import (
    PROFILE_EMAIL,
    PROFILE_EMAIL_ALIASES,
    PROFILE_FIRST_NAME,
    PROFILE_LAST_NAME,
    PROFILE_ORIGINAL_EMAIL,
    PROFILE_THEKEY_GUID,
    PROFILE_US_DESIGNATION,
    PROFILE_US_EMPLOYEE_ID,
)
from .query import Attribute, BooleanExpression, ComparisonExpression, ComparisonType, Expression

PROFILE_ATTRIBUTES = {
    Attribute.GUID: PROFILE_THEKEY_GUID,
    Attribute.EMAIL: PROFILE_EMAIL,
    Attribute.EMAIL_ALIAS: PROFILE_EMAIL_ALIASES,
    Attribute.FIRST_NAME: PROFILE_FIRST_NAME,
    Attribute.LAST_NAME: PROFILE_LAST_NAME,
    Attribute.US_EMPLOYEE_ID: PROFILE_US_EMPLOYEE_ID,
    Attribute.US_DESIGNATION: PROFILE_US_DESIGNATION,
}

OPERATORS = {
    ComparisonType.EQ: "eq",
    ComparisonType.SW: "sw",
}


def to_okta_expression(expression: Expression, include_deactivated: bool = False) -> str:
    """Translate a search expression into a provider filter string.

    Raises:
        UnsupportedOperationError: For GROUP comparisons and the LIKE operator
        TypeError: For unrecognized expression types
    """
    if isinstance(expression, BooleanExpression):
        joiner = f" {expression.type.value} "
        return "(" + joiner.join(to_okta_expression(c, include_deactivated) for c in expression.components) + ")"
    if isinstance(expression, ComparisonExpression):
        return _comparison(expression, include_deactivated)
    raise TypeError(f"Unrecognized Expression: {expression!r}")


def _comparison(expression: ComparisonExpression, include_deactivated: bool) -> str:
    if expression.attribute is Attribute.GROUP:
        raise UnsupportedOperationError("Group search not implemented yet")
    if include_deactivated and expression.attribute is Attribute.EMAIL:
        live = comparison_filter(PROFILE_EMAIL, expression.type, expression.value)
        original = comparison_filter(PROFILE_ORIGINAL_EMAIL, expression.type, expression.value)
        return f"({live} or {original})"
    return comparison_filter(PROFILE_ATTRIBUTES[expression.attribute], expression.type, expression.value)


def comparison_filter(profile_key: str, oper: ComparisonType, value: Optional[str]) -> str:
    if oper not in OPERATORS:
        raise UnsupportedOperationError(f"{oper.name} is unsupported for OktaUserDao")
    return f'profile.{profile_key} {OPERATORS[oper]} {quote(value)}'


def quote(value: Optional[str]) -> str:
    """Quote a filter value, escaping backslashes and double quotes."""
    escaped = (value or "").replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
