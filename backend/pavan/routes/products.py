# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pavan/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations are open to every role (the POS needs the catalog)
- Write operations require the Admin or Inventory role
"""
from flask import Blueprint, request, jsonify

from ..models import Product
from ..permissions import Role
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)
from ..decorators import require_auth, require_roles

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"sku", "name", "cost_price", "sell_price"},
    aliases={
        "categoryId": "category_id",
        "supplierId": "supplier_id",
        "costPrice": "cost_price",
        "sellPrice": "sell_price",
        "imageUrl": "image_url",
        "isActive": "is_active",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

INVENTORY_ROLES = (Role.ADMIN, Role.INVENTORY)


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - category_id: int (optional)
    - low_stock: bool (optional) - only products at or below threshold
    - search: str (optional) - name or SKU substring
    - active_only: bool (optional, default false)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    result = products_service.list_products(
        category_id=request.args.get("category_id", type=int),
        low_stock=request.args.get("low_stock", "false").lower() == "true",
        search=request.args.get("search"),
        include_inactive=request.args.get("active_only", "false").lower() != "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@products_bp.get("/low-stock")
@require_auth
def low_stock_route():
    products = products_service.low_stock_products()
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/sku/<sku>")
@require_auth
def get_by_sku_route(sku: str):
    return jsonify({"product": products_service.get_product_by_sku(sku).to_dict()}), 200


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return jsonify({"product": products_service.get_product(product_id).to_dict()}), 200


@products_bp.post("")
@require_auth
@require_roles(*INVENTORY_ROLES)
def create_product_route():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    created = products_service.create_product(patch=patch)
    return jsonify({"product": created.to_dict()}), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    updated = products_service.update_product(product_id, patch=patch)
    return jsonify({"product": updated.to_dict()}), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def delete_product_route(product_id: int):
    """Delete a never-sold product; sold products are deactivated instead."""
    deleted = products_service.delete_product(product_id)
    return jsonify({"deleted": deleted, "deactivated": not deleted}), 200
