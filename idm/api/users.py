"""User lookup, search and lifecycle endpoints.

Architecture:
    /api/users/* -> OktaUserDao -> Okta (+ fallback store listeners)
"""
from __future__ import annotations
import re
from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from idm.core.models import User
from idm.core.query import Attribute, ComparisonExpression, ComparisonType, Expression
from idm.core.user_dao import OktaUserDao

from .decorators import require_api_token

bp = Blueprint("users", __name__, url_prefix="/api/users")
bp.before_request(require_api_token)

# attribute op "value" (value may contain \" and \\ escapes)
FILTER_PATTERN = re.compile(r'^\s*(\w+)\s+(\w+)\s+"((?:[^"\\]|\\.)*)"\s*$')


def get_dao() -> OktaUserDao:
    return current_app.extensions["idm_user_dao"]


def _flag(name: str) -> bool:
    return request.args.get(name, "false").strip().lower() == "true"


def user_to_dict(user: User) -> Dict[str, Any]:
    """Serialize a user for API responses.

    Passwords, security answers, MFA secrets and self-service keys are never exposed.
    """
    return {
        "theKeyGuid": user.the_key_guid,
        "relayGuid": user.relay_guid,
        "oktaUserId": user.okta_user_id,
        "email": user.email,
        "emailVerified": user.email_verified,
        "deactivated": user.deactivated,
        "firstName": user.first_name,
        "preferredName": user.preferred_name,
        "lastName": user.last_name,
        "telephoneNumber": user.telephone_number,
        "city": user.city,
        "state": user.state,
        "postal": user.postal,
        "country": user.country,
        "ministry": user.cru_ministry_code,
        "subMinistry": user.cru_sub_ministry_code,
        "department": user.department_number,
        "managerId": user.cru_manager_id,
        "employeeStatus": user.cru_employee_status,
        "employeeId": user.employee_id,
        "designation": user.cru_designation,
        "proxyAddresses": sorted(user.cru_proxy_addresses),
        "securityQuestion": user.security_question,
        "mfaBypassed": user.mfa_bypassed,
        "mfaIntruderLocked": user.mfa_intruder_locked,
        "loginTime": user.login_time.isoformat() if user.login_time else None,
        "groups": [{"id": group.id, "name": group.name} for group in user.groups],
    }


def parse_filter(raw: str) -> ComparisonExpression:
    """Parse `<attribute> <eq|sw|like> "<value>"` into a comparison expression."""
    match = FILTER_PATTERN.match(raw)
    if not match:
        raise BadRequest(f"Invalid filter '{raw}', expected: attribute op \"value\"")
    attr_name, oper, value = match.groups()
    try:
        attribute = Attribute(attr_name.lower())
        comparison = ComparisonType(oper.lower())
    except ValueError:
        raise BadRequest(f"Unknown attribute or operator in filter '{raw}'")
    value = re.sub(r"\\(.)", r"\1", value)
    return ComparisonExpression(comparison, attribute, value)


def parse_filters(raw_filters: List[str]) -> Optional[Expression]:
    expressions = [parse_filter(raw) for raw in raw_filters]
    if not expressions:
        return None
    if len(expressions) == 1:
        return expressions[0]
    return expressions[0].and_(*expressions[1:])


def _require_user(guid: str) -> User:
    user = get_dao().find_by_the_key_guid(guid, include_deactivated=True)
    if user is None:
        raise NotFound(f"User '{guid}' not found")
    return user


@bp.route("", methods=["GET"])
def find_by_email():
    """Find a single user by email (?email=...&includeDeactivated=true)."""
    email = request.args.get("email")
    if not email:
        raise BadRequest("email query parameter is required")
    user = get_dao().find_by_email(email, include_deactivated=_flag("includeDeactivated"))
    if user is None:
        raise NotFound(f"User with email '{email}' not found")
    return jsonify(user_to_dict(user)), 200


@bp.route("/search", methods=["GET"])
def search_users():
    """Stream users matching one or more filters (ANDed together)."""
    expression = parse_filters(request.args.getlist("filter"))
    users = get_dao().stream_users(
        expression,
        include_deactivated=_flag("includeDeactivated"),
        restrict_max_allowed=True,
    )
    resources = [user_to_dict(user) for user in users]
    return jsonify({"totalResults": len(resources), "Resources": resources}), 200


@bp.route("/<guid>", methods=["GET"])
def get_user(guid: str):
    user = get_dao().find_by_the_key_guid(guid, include_deactivated=_flag("includeDeactivated"))
    if user is None:
        raise NotFound(f"User '{guid}' not found")
    return jsonify(user_to_dict(user)), 200


@bp.route("/<guid>/deactivate", methods=["POST"])
def deactivate_user(guid: str):
    get_dao().deactivate(_require_user(guid))
    return "", 204


@bp.route("/<guid>/reactivate", methods=["POST"])
def reactivate_user(guid: str):
    get_dao().reactivate(_require_user(guid))
    return "", 204
