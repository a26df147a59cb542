# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/pavan/routes/auth.py
"""
Authentication API routes

- Registration and login return a signed session token
- Token must be sent as "Authorization: Bearer <token>"
- Logout revokes the token before it expires
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..errors import ForbiddenError
from ..models import User
from ..permissions import Role, default_route
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth, bearer_token
from pavan.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, session, token, status: int):
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "expires_at": to_utc_z(session.expires_at),
        "default_route": default_route(user.role),
    }), status


def _self_service_role(requested) -> Role:
    """
    Self-registration may choose any non-admin role. Admin is only granted
    to the very first account, which bootstraps an empty system.
    """
    role = Role.parse(requested) if requested else Role.SALES
    if role == Role.ADMIN and db.session.query(User.id).first() is not None:
        raise ForbiddenError("Admin accounts are created by an administrator")
    return role


@auth_bp.post("/register")
def register_route():
    """Create an account and sign it in."""
    data = request.get_json(silent=True) or {}
    try:
        role = _self_service_role(data.get("role"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    user = auth_service.create_user(
        email=data.get("email"),
        password=data.get("password"),
        name=data.get("name"),
        phone=data.get("phone"),
        role=role,
    )
    current_app.logger.info("Registered user %s with role %s", user.email, user.role.value)

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return _session_response(user, session, token, 201)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info, session token and the role's landing page on success.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email") or data.get("username")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    user = auth_service.authenticate(email, password)
    if not user:
        current_app.logger.warning("Failed login for %s from %s", email, request.remote_addr)
        return jsonify({"error": "Invalid credentials"}), 401

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return _session_response(user, session, token, 200)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "session": g.session_context.session.to_dict(),
        "default_route": default_route(user.role),
    }), 200
