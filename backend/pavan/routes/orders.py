# Overview: Flask API routes for POS checkout and order history.

"""Order API routes with role enforcement"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import AppError
from ..permissions import Role
from ..services import sales_service
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_roles

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

POS_ROLES = (Role.ADMIN, Role.CASHIER)


@orders_bp.post("")
@require_auth
@require_roles(*POS_ROLES)
def checkout_route():
    """
    Complete a sale.

    Body:
    {
        "items": [{"product_id": 1, "quantity": 2}],
        "payment_method": "Cash" | "Card" | "UPI",
        "customer": {"name": "...", "email": "...", "phone": "..."},
        "discount": "10.00"
    }

    Totals are recomputed from current product prices; client totals are ignored.
    """
    try:
        data = request.get_json(silent=True) or {}

        order = sales_service.checkout(
            items=data.get("items"),
            payment_method=data.get("payment_method"),
            cashier_id=g.current_user.id,
            customer=data.get("customer"),
            discount=data.get("discount"),
        )

        return jsonify({"order": order.to_dict(include_items=True)}), 201

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete checkout")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/quote")
@require_auth
@require_roles(*POS_ROLES)
def quote_route():
    """Price a cart against live stock without recording a sale."""
    data = request.get_json(silent=True) or {}
    cart = sales_service.quote(items=data.get("items"), discount=data.get("discount"))
    return jsonify(cart.to_dict()), 200


@orders_bp.get("")
@require_auth
@require_roles(*POS_ROLES)
def list_orders_route():
    """
    Query params:
    - start, end: ISO-8601 bounds on created_at (inclusive)
    - limit: int (optional)
    """
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    orders = sales_service.list_orders(
        start=start,
        end=end,
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"orders": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/<int:order_id>")
@require_auth
@require_roles(*POS_ROLES)
def get_order_route(order_id: int):
    order = sales_service.get_order(order_id)
    return jsonify({"order": order.to_dict(include_items=True)}), 200


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_roles(Role.ADMIN)
def update_order_status_route(order_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify({"error": "status required"}), 400

    order = sales_service.update_order_status(order_id, status)
    current_app.logger.info("Order %s set to %s by user %s", order.order_number, status, g.current_user.id)
    return jsonify({"order": order.to_dict(include_items=True)}), 200
