# Overview: Flask API routes for user management; admin only.

from flask import Blueprint, request, jsonify

from ..models import User
from ..permissions import Role
from ..services import auth_service, session_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_roles

USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"email", "name", "phone", "role", "is_active"},
    aliases={"isActive": "is_active"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_roles(Role.ADMIN)
def list_users_route():
    """
    Query params:
    - role: Admin|Sales|Inventory|Cashier
    - include_inactive: bool (default true)
    """
    role = request.args.get("role")
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    try:
        users = auth_service.list_users(role=role, include_inactive=include_inactive)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)}), 200


@users_bp.get("/<int:user_id>")
@require_auth
@require_roles(Role.ADMIN)
def get_user_route(user_id: int):
    return jsonify({"user": auth_service.get_user(user_id).to_dict()}), 200


@users_bp.post("")
@require_auth
@require_roles(Role.ADMIN)
def create_user_route():
    data = request.get_json(silent=True) or {}
    user = auth_service.create_user(
        email=data.get("email"),
        password=data.get("password"),
        name=data.get("name"),
        phone=data.get("phone"),
        role=data.get("role") or Role.SALES,
        is_active=bool(data.get("is_active", True)),
    )
    return jsonify({"user": user.to_dict()}), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_roles(Role.ADMIN)
def update_user_route(user_id: int):
    data = dict(request.get_json(silent=True) or {})
    password = data.pop("password", None)
    patch = validate_payload(model=User, payload=data, policy=USER_UPDATE_POLICY, partial=True)
    user = auth_service.update_user(user_id, patch, password=password)
    if password or user.is_active is False:
        session_service.revoke_all_user_sessions(user.id)
    return jsonify({"user": user.to_dict()}), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_roles(Role.ADMIN)
def deactivate_user_route(user_id: int):
    """Deactivate (never hard-delete) a user and revoke their tokens."""
    user = auth_service.deactivate_user(user_id)
    session_service.revoke_all_user_sessions(user.id)
    return jsonify({"user": user.to_dict()}), 200
