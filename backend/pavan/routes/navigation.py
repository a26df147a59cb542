# Overview: Flask API routes exposing the role-based navigation table.

from flask import Blueprint, request, jsonify, g

from ..permissions import default_route, permitted_routes, resolve_route
from ..services import session_service
from ..decorators import bearer_token, require_auth

navigation_bp = Blueprint("navigation", __name__, url_prefix="/api/navigation")


@navigation_bp.get("")
@require_auth
def navigation_route():
    """Pages the current user may open, plus their landing page."""
    role = g.current_user.role
    return jsonify({
        "role": role.value,
        "default_route": default_route(role),
        "routes": [{"path": r.path, "label": r.label} for r in permitted_routes(role)],
    }), 200


@navigation_bp.get("/resolve")
def resolve_navigation_route():
    """
    Guard decision for entering ?route=...

    Authentication is optional here: a missing or invalid token resolves to
    a redirect to the login page instead of a 401.
    """
    route = request.args.get("route")
    if not route:
        return jsonify({"error": "route required"}), 400

    role = None
    token = bearer_token()
    if token:
        context = session_service.validate_session(token)
        if context is not None:
            role = context.role

    return jsonify(resolve_route(role, route).to_dict()), 200
