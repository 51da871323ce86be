"""Search expression tree over the searchable user attributes.

Expressions are immutable and compose with ``and_``/``or_``:

    expr = Attribute.EMAIL.eq("a@b.com").and_(Attribute.FIRST_NAME.sw("J"))
"""
from __future__ import annotations
import fnmatch
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .models import User


class ComparisonType(Enum):
    EQ = "eq"
    SW = "sw"
    LIKE = "like"


class Attribute(Enum):
    GUID = "guid"
    EMAIL = "email"
    EMAIL_ALIAS = "email_alias"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    US_EMPLOYEE_ID = "us_employee_id"
    US_DESIGNATION = "us_designation"
    GROUP = "group"

    def eq(self, value: Optional[str]) -> "ComparisonExpression":
        return ComparisonExpression(ComparisonType.EQ, self, value)

    def sw(self, value: Optional[str]) -> "ComparisonExpression":
        return ComparisonExpression(ComparisonType.SW, self, value)

    def like(self, value: Optional[str]) -> "ComparisonExpression":
        return ComparisonExpression(ComparisonType.LIKE, self, value)

    def values_of(self, user: User) -> List[str]:
        """Return the user's values for this attribute (multi-valued for aliases and groups)."""
        if self is Attribute.GUID:
            candidates: Iterable[Optional[str]] = [user.the_key_guid]
        elif self is Attribute.EMAIL:
            candidates = [user.email]
        elif self is Attribute.EMAIL_ALIAS:
            candidates = user.cru_proxy_addresses
        elif self is Attribute.FIRST_NAME:
            candidates = [user.first_name]
        elif self is Attribute.LAST_NAME:
            candidates = [user.last_name]
        elif self is Attribute.US_EMPLOYEE_ID:
            candidates = [user.employee_id]
        elif self is Attribute.US_DESIGNATION:
            candidates = [user.cru_designation]
        else:
            candidates = [group.name for group in user.groups]
        return [value for value in candidates if value is not None]


class Expression:
    """Base class for search expressions."""

    def and_(self, *expressions: "Expression") -> "Expression":
        return BooleanExpression(BooleanExpression.Type.AND, (self, *expressions))

    def or_(self, *expressions: "Expression") -> "Expression":
        return BooleanExpression(BooleanExpression.Type.OR, (self, *expressions))

    def matches(self, user: User) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class BooleanExpression(Expression):
    class Type(Enum):
        AND = "and"
        OR = "or"

    type: "BooleanExpression.Type"
    components: Tuple[Expression, ...]

    def __post_init__(self):
        if not self.components:
            raise ValueError("BooleanExpression requires at least one component")
        object.__setattr__(self, "components", tuple(self.components))

    def and_(self, *expressions: Expression) -> Expression:
        if self.type is not BooleanExpression.Type.AND:
            return super().and_(*expressions)
        return BooleanExpression(self.type, self.components + expressions)

    def or_(self, *expressions: Expression) -> Expression:
        if self.type is not BooleanExpression.Type.OR:
            return super().or_(*expressions)
        return BooleanExpression(self.type, self.components + expressions)

    def matches(self, user: User) -> bool:
        if self.type is BooleanExpression.Type.AND:
            return all(component.matches(user) for component in self.components)
        return any(component.matches(user) for component in self.components)


@dataclass(frozen=True)
class ComparisonExpression(Expression):
    type: ComparisonType
    attribute: Attribute
    value: Optional[str]

    def matches(self, user: User) -> bool:
        if self.value is None:
            return False
        needle = self.value.lower()
        for candidate in self.attribute.values_of(user):
            candidate = candidate.lower()
            if self.type is ComparisonType.EQ and candidate == needle:
                return True
            if self.type is ComparisonType.SW and candidate.startswith(needle):
                return True
            if self.type is ComparisonType.LIKE and fnmatch.fnmatchcase(candidate, needle):
                return True
        return False
