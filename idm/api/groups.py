"""Group listing and membership endpoints."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import NotFound

from idm.core.models import Group

from .decorators import require_api_token
from .users import _require_user, get_dao, user_to_dict

bp = Blueprint("groups", __name__, url_prefix="/api/groups")
bp.before_request(require_api_token)


def group_to_dict(group: Group) -> dict:
    return {"id": group.id, "name": group.name, "type": getattr(group, "okta_group_type", None)}


def _require_group(group_id: str) -> Group:
    group = get_dao().get_group(group_id)
    if group is None:
        raise NotFound(f"Group '{group_id}' not found")
    return group


@bp.route("", methods=["GET"])
def list_groups():
    """List groups (?base=<path prefix>)."""
    groups = get_dao().get_all_groups(request.args.get("base") or None)
    return jsonify([group_to_dict(group) for group in groups]), 200


@bp.route("/<group_id>", methods=["GET"])
def get_group(group_id: str):
    return jsonify(group_to_dict(_require_group(group_id))), 200


@bp.route("/<group_id>/members", methods=["GET"])
def list_members(group_id: str):
    include_deactivated = request.args.get("includeDeactivated", "false").lower() == "true"
    users = get_dao().stream_users_in_group(_require_group(group_id), include_deactivated=include_deactivated)
    return jsonify([user_to_dict(user) for user in users]), 200


@bp.route("/<group_id>/members/<guid>", methods=["PUT"])
def add_member(group_id: str, guid: str):
    get_dao().add_to_group(_require_user(guid), _require_group(group_id))
    return "", 204


@bp.route("/<group_id>/members/<guid>", methods=["DELETE"])
def remove_member(group_id: str, guid: str):
    get_dao().remove_from_group(_require_user(guid), _require_group(group_id))
    return "", 204
