# Overview: Flask API route for the dashboard summary.

from flask import Blueprint, jsonify

from ..services import dashboard_service
from ..decorators import require_auth

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def dashboard_stats_route():
    """
    Summary figures for the landing page.

    Available to every authenticated role. Returns 503 when any of the
    underlying collections cannot be read.
    """
    stats = dashboard_service.load_dashboard_stats()
    return jsonify(stats.to_dict()), 200
