# Overview: Flask API routes for product categories and suppliers.

from flask import Blueprint, request, jsonify

from ..models import Category, Supplier
from ..permissions import Role
from ..services import products_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_roles

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact", "email", "phone", "address"},
    required_on_create={"name"},
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")

INVENTORY_ROLES = (Role.ADMIN, Role.INVENTORY)


# =============================================================================
# CATEGORIES
# =============================================================================

@catalog_bp.get("/categories")
@require_auth
def list_categories_route():
    categories = products_service.list_categories()
    return jsonify({"categories": [c.to_dict() for c in categories], "count": len(categories)}), 200


@catalog_bp.get("/categories/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    return jsonify({"category": products_service.get_category(category_id).to_dict()}), 200


@catalog_bp.post("/categories")
@require_auth
@require_roles(*INVENTORY_ROLES)
def create_category_route():
    patch = validate_payload(model=Category, payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=False)
    return jsonify({"category": products_service.create_category(patch=patch).to_dict()}), 201


@catalog_bp.put("/categories/<int:category_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def update_category_route(category_id: int):
    patch = validate_payload(model=Category, payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=True)
    return jsonify({"category": products_service.update_category(category_id, patch=patch).to_dict()}), 200


@catalog_bp.delete("/categories/<int:category_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def delete_category_route(category_id: int):
    products_service.delete_category(category_id)
    return jsonify({"deleted": True}), 200


# =============================================================================
# SUPPLIERS
# =============================================================================

@catalog_bp.get("/suppliers")
@require_auth
@require_roles(*INVENTORY_ROLES)
def list_suppliers_route():
    suppliers = products_service.list_suppliers()
    return jsonify({"suppliers": [s.to_dict() for s in suppliers], "count": len(suppliers)}), 200


@catalog_bp.get("/suppliers/<int:supplier_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def get_supplier_route(supplier_id: int):
    return jsonify({"supplier": products_service.get_supplier(supplier_id).to_dict()}), 200


@catalog_bp.post("/suppliers")
@require_auth
@require_roles(*INVENTORY_ROLES)
def create_supplier_route():
    patch = validate_payload(model=Supplier, payload=request.get_json(silent=True), policy=SUPPLIER_POLICY, partial=False)
    return jsonify({"supplier": products_service.create_supplier(patch=patch).to_dict()}), 201


@catalog_bp.put("/suppliers/<int:supplier_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def update_supplier_route(supplier_id: int):
    patch = validate_payload(model=Supplier, payload=request.get_json(silent=True), policy=SUPPLIER_POLICY, partial=True)
    return jsonify({"supplier": products_service.update_supplier(supplier_id, patch=patch).to_dict()}), 200


@catalog_bp.delete("/suppliers/<int:supplier_id>")
@require_auth
@require_roles(*INVENTORY_ROLES)
def delete_supplier_route(supplier_id: int):
    products_service.delete_supplier(supplier_id)
    return jsonify({"deleted": True}), 200
