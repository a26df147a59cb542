"""
Sales Service - server-side checkout and order lifecycle

Checkout never trusts client-computed totals. The request only names
products and quantities; the cart is rebuilt from current product rows,
totals are recomputed, and the order, its items and the stock decrement
are written in one transaction.

Stock is decremented with a conditional UPDATE:

    UPDATE products SET quantity = quantity - :n
    WHERE id = :id AND quantity >= :n

Two registers selling the last units of a product race on that statement,
not on a read-then-write. If any line's UPDATE matches no row the whole
transaction rolls back and the checkout fails with InsufficientStockError.
Nothing is retried.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    DataUnavailableError,
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Order, OrderItem, OrderStatus, Product, User
from .cart_service import Cart, CheckoutPayload, CustomerInfo


def new_cart() -> Cart:
    """Cart configured from application settings (tax rate, discount clamp)."""
    return Cart(
        tax_rate=current_app.config.get("TAX_RATE", "0.18"),
        clamp_discount=bool(current_app.config.get("CLAMP_DISCOUNT", False)),
    )


def _parse_items(items) -> list[tuple[int, int]]:
    if not items:
        raise EmptyCartError("Please add items to cart before checkout")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    parsed = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("product_id")
        quantity = item.get("quantity", 1)
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"items[{index}].product_id must be an integer")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"items[{index}].quantity must be an integer")
        if quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be at least 1")
        parsed.append((product_id, quantity))
    return parsed


def build_cart(items) -> Cart:
    """Rebuild a cart from (product_id, quantity) requests against current stock."""
    cart = new_cart()
    for product_id, quantity in _parse_items(items):
        product = db.session.get(Product, product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        cart.add_item(product, quantity)
    return cart


def _decrement_stock(product_id: int, quantity: int) -> None:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStockError(
            "Insufficient stock to complete sale",
            details={"product_id": product_id, "requested": quantity},
        )


def persist_checkout(payload: CheckoutPayload) -> Order:
    """Write order + items + stock decrements atomically."""
    try:
        for item in payload.items:
            _decrement_stock(item["product_id"], item["quantity"])

        order = Order(**payload.order)
        db.session.add(order)
        db.session.flush()

        for item in payload.items:
            db.session.add(OrderItem(order_id=order.id, **item))

        db.session.commit()
    except InsufficientStockError:
        db.session.rollback()
        current_app.logger.warning("Checkout rejected: stock changed before commit")
        raise
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.exception("Checkout failed integrity check")
        raise DataUnavailableError("Could not record order") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Checkout failed to persist")
        raise DataUnavailableError("Could not record order") from exc
    return order


def checkout(
    *,
    items,
    payment_method: str,
    cashier_id: Optional[int],
    customer: Optional[dict] = None,
    discount=None,
) -> Order:
    """Validate a sale against live stock and record it."""
    info = CustomerInfo.from_dict(customer)
    if info.customer_id is not None and db.session.get(User, info.customer_id) is None:
        raise ValidationError("customer_id does not exist")
    cart = build_cart(items)
    cart.set_discount(discount)
    order = cart.checkout(
        info,
        payment_method,
        cashier_id,
        persist=persist_checkout,
    )
    current_app.logger.info(
        "Order %s completed: %d line(s), total %s", order.order_number, len(order.items), order.total
    )
    return order


def quote(*, items, discount=None) -> Cart:
    """Price a prospective sale without persisting anything."""
    cart = build_cart(items)
    cart.set_discount(discount)
    return cart


# =============================================================================
# Queries
# =============================================================================

def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def list_orders(
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    customer_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[Order]:
    """Orders newest first; start/end bound created_at inclusively."""
    query = db.session.query(Order)
    if start is not None:
        query = query.filter(Order.created_at >= start)
    if end is not None:
        query = query.filter(Order.created_at <= end)
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def update_order_status(order_id: int, status: str) -> Order:
    """
    Move an order between Pending/Completed/Cancelled.

    Cancelling returns the order's quantities to stock. A cancelled order is
    final.
    """
    allowed = {s.value for s in OrderStatus}
    if status not in allowed:
        raise ValidationError(f"status must be one of: {', '.join(sorted(allowed))}")

    order = get_order(order_id)
    if order.status == status:
        return order
    if order.status == OrderStatus.CANCELLED.value:
        raise ValidationError("Cancelled orders cannot be reopened")

    if status == OrderStatus.CANCELLED.value:
        for item in order.items:
            if item.product_id is None:
                continue
            db.session.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .values(quantity=Product.quantity + item.quantity)
                .execution_options(synchronize_session=False)
            )

    order.status = status
    db.session.commit()
    return order
