# backend/pavan/services/products_service.py
"""
Products Service

Products, categories and suppliers. Routes validate payloads with
validation.validate_payload before calling in here, so the patch dicts
are already typed and allowlisted.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product, Supplier

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "category_id", "supplier_id", "cost_price", "sell_price",
    "quantity", "threshold", "barcode", "image_url", "description", "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_references(patch: dict) -> None:
    if patch.get("category_id") is not None and db.session.get(Category, patch["category_id"]) is None:
        raise ValidationError("category_id does not exist")
    if patch.get("supplier_id") is not None and db.session.get(Supplier, patch["supplier_id"]) is None:
        raise ValidationError("supplier_id does not exist")


def _check_sku_free(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"SKU already exists: {sku}")


def list_products(
    *,
    category_id: int | None = None,
    low_stock: bool = False,
    search: str | None = None,
    include_inactive: bool = True,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)

    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if low_stock:
        base_query = base_query.filter(
            Product.quantity.isnot(None),
            Product.threshold.isnot(None),
            Product.quantity <= Product.threshold,
        )
    if search:
        pattern = f"%{search.strip().lower()}%"
        base_query = base_query.filter(
            db.or_(db.func.lower(Product.name).like(pattern), db.func.lower(Product.sku).like(pattern))
        )
    if not include_inactive:
        base_query = base_query.filter(Product.is_active.is_(True))

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def get_product_by_sku(sku: str) -> Product:
    product = db.session.query(Product).filter_by(sku=sku.strip()).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def low_stock_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(
            Product.quantity.isnot(None),
            Product.threshold.isnot(None),
            Product.quantity <= Product.threshold,
        )
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )


def create_product(*, patch: dict) -> Product:
    """Create product using a validated patch dict. Raises ConflictError on duplicate SKU."""
    _check_references(patch)
    _check_sku_free(patch["sku"])

    product = Product()
    apply_product_patch(product, patch)
    if product.quantity is None:
        product.quantity = 0
    if product.threshold is None:
        product.threshold = 10

    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"SKU already exists: {patch['sku']}")
    return product


def update_product(product_id: int, *, patch: dict) -> Product:
    product = get_product(product_id)
    _check_references(patch)
    if "sku" in patch and patch["sku"] != product.sku:
        _check_sku_free(patch["sku"], exclude_id=product_id)

    apply_product_patch(product, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product update conflicts with existing data")
    return product


def delete_product(product_id: int) -> bool:
    """
    Delete a product that has never been sold; sold products are deactivated
    instead so order history keeps its reference.

    Returns True if the row was deleted, False if it was deactivated.
    """
    from ..models import OrderItem

    product = get_product(product_id)
    sold = db.session.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if sold:
        product.is_active = False
        db.session.commit()
        return False

    db.session.delete(product)
    db.session.commit()
    return True


# =============================================================================
# Categories & suppliers
# =============================================================================

def _get(model, obj_id: int, label: str):
    obj = db.session.get(model, obj_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def get_category(category_id: int) -> Category:
    return _get(Category, category_id, "Category")


def create_category(*, patch: dict) -> Category:
    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, *, patch: dict) -> Category:
    category = get_category(category_id)
    for k, v in patch.items():
        setattr(category, k, v)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Products in the category keep existing, uncategorized."""
    category = get_category(category_id)
    db.session.query(Product).filter(Product.category_id == category_id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.session.delete(category)
    db.session.commit()


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc(), Supplier.id.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    return _get(Supplier, supplier_id, "Supplier")


def create_supplier(*, patch: dict) -> Supplier:
    supplier = Supplier(**patch)
    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(supplier_id: int, *, patch: dict) -> Supplier:
    supplier = get_supplier(supplier_id)
    for k, v in patch.items():
        setattr(supplier, k, v)
    db.session.commit()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    supplier = get_supplier(supplier_id)
    db.session.query(Product).filter(Product.supplier_id == supplier_id).update(
        {Product.supplier_id: None}, synchronize_session=False
    )
    db.session.delete(supplier)
    db.session.commit()
