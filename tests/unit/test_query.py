import pytest

from idm.core.models import Group, User
from idm.core.query import Attribute, BooleanExpression, ComparisonExpression, ComparisonType


def _user(**fields):
    defaults = {"the_key_guid": "G1", "email": "Alice@Example.com", "first_name": "Alice", "last_name": "Smith"}
    defaults.update(fields)
    return User(**defaults)


def test_comparison_builders():
    expr = Attribute.EMAIL.sw("al")
    assert expr == ComparisonExpression(ComparisonType.SW, Attribute.EMAIL, "al")


def test_and_chains_flatten():
    a, b, c = Attribute.EMAIL.eq("a"), Attribute.FIRST_NAME.eq("b"), Attribute.LAST_NAME.eq("c")
    expr = a.and_(b).and_(c)
    assert isinstance(expr, BooleanExpression)
    assert expr.type is BooleanExpression.Type.AND
    assert expr.components == (a, b, c)


def test_mixed_chains_nest():
    a, b, c = Attribute.EMAIL.eq("a"), Attribute.FIRST_NAME.eq("b"), Attribute.LAST_NAME.eq("c")
    expr = a.and_(b).or_(c)
    assert expr.type is BooleanExpression.Type.OR
    assert expr.components[0] == a.and_(b)
    assert expr.components[1] == c


def test_boolean_expression_requires_components():
    with pytest.raises(ValueError):
        BooleanExpression(BooleanExpression.Type.AND, ())


def test_matches_is_case_insensitive():
    user = _user()
    assert Attribute.EMAIL.eq("alice@example.com").matches(user)
    assert Attribute.FIRST_NAME.sw("AL").matches(user)
    assert not Attribute.LAST_NAME.eq("Jones").matches(user)


def test_like_matches_wildcards():
    assert Attribute.EMAIL.like("*@example.com").matches(_user())


def test_multi_valued_attributes():
    user = _user(cru_proxy_addresses={"a1@example.com"}, groups=[Group(id="g", name="Staff/US")])
    assert Attribute.EMAIL_ALIAS.eq("a1@example.com").matches(user)
    assert Attribute.GROUP.sw("staff").matches(user)


def test_none_value_never_matches():
    assert not Attribute.EMAIL.eq(None).matches(_user())


def test_boolean_matching():
    user = _user()
    assert Attribute.EMAIL.eq("nope").or_(Attribute.FIRST_NAME.eq("alice")).matches(user)
    assert not Attribute.EMAIL.eq("nope").and_(Attribute.FIRST_NAME.eq("alice")).matches(user)
