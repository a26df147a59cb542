# Overview: In-memory cart for a single point-of-sale transaction.

"""
Cart / Checkout Engine

A Cart belongs to exactly one sale being assembled at one register, so it
has a single writer and no locking. It enforces stock limits against the
product rows it was given, computes totals and produces the order payload
that sales_service persists.

Every mutating method either succeeds completely or raises and leaves the
cart as it was.

Stock checks here are advisory: the persisting transaction re-checks stock
with a conditional UPDATE (see sales_service.checkout).
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional

from ..errors import (
    EmptyCartError,
    InsufficientStockError,
    OutOfStockError,
    ValidationError,
)
from ..models.sales import OrderStatus, PaymentMethod, WALK_IN_CUSTOMER
from ..money import ZERO, quantize, to_money

DEFAULT_TAX_RATE = Decimal("0.18")


@dataclass
class CartLine:
    product: object
    quantity: int
    line_total: Decimal

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return quantize(self.product.sell_price)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product.name,
            "quantity": self.quantity,
            "price": str(self.unit_price),
            "total": str(self.line_total),
        }


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "discount": str(self.discount),
            "total": str(self.total),
        }


@dataclass(frozen=True)
class CustomerInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    customer_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CustomerInfo":
        data = data or {}

        def _clean(key):
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        customer_id = data.get("customer_id")
        if customer_id is not None and (isinstance(customer_id, bool) or not isinstance(customer_id, int)):
            raise ValidationError("customer_id must be an integer")
        return cls(
            name=_clean("name"),
            email=_clean("email"),
            phone=_clean("phone"),
            customer_id=customer_id,
        )


@dataclass
class CheckoutPayload:
    """Order fields plus one item per cart line, persisted as one unit."""
    order: dict
    items: list = field(default_factory=list)


def generate_order_number() -> str:
    """Timestamp-derived order number with a random suffix for same-millisecond checkouts."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.randbelow(10_000):04d}"


def _stock_of(product) -> int:
    return product.quantity or 0


class Cart:
    """Ordered line items for one sale, keyed by product id."""

    def __init__(self, *, tax_rate=DEFAULT_TAX_RATE, clamp_discount: bool = False):
        self.tax_rate = Decimal(str(tax_rate))
        self.clamp_discount = clamp_discount
        self.discount = ZERO
        self._lines: dict[int, CartLine] = {}

    # ------------------------------------------------------------------
    # Line operations
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add_item(self, product, qty: int = 1) -> CartLine:
        """
        Add qty units of product, merging with an existing line.

        Raises OutOfStockError when the product has no stock and
        InsufficientStockError when the merged quantity would exceed stock.
        """
        qty = _require_quantity(qty, minimum=1)
        available = _stock_of(product)
        if available <= 0:
            raise OutOfStockError(
                f"{product.name} is out of stock",
                details={"product_id": product.id, "available": 0},
            )

        existing = self._lines.get(product.id)
        in_cart = existing.quantity if existing else 0
        requested = in_cart + qty
        if requested > available:
            raise InsufficientStockError(
                "Cannot add more items than available in stock",
                details={"product_id": product.id, "requested": requested, "available": available},
            )

        line = CartLine(product=product, quantity=requested, line_total=_line_total(product, requested))
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: int, qty: int) -> Optional[CartLine]:
        """Set a line's quantity; 0 removes the line and returns None."""
        qty = _require_quantity(qty, minimum=0)
        existing = self._lines.get(product_id)
        if existing is None:
            raise ValidationError("Product is not in the cart", details={"product_id": product_id})

        if qty == 0:
            self.remove_item(product_id)
            return None

        available = _stock_of(existing.product)
        if qty > available:
            raise InsufficientStockError(
                "Cannot add more items than available in stock",
                details={"product_id": product_id, "requested": qty, "available": available},
            )

        line = CartLine(product=existing.product, quantity=qty, line_total=_line_total(existing.product, qty))
        self._lines[product_id] = line
        return line

    def remove_item(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()
        self.discount = ZERO

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def set_discount(self, amount) -> Decimal:
        """Absolute, non-negative discount entered by the cashier."""
        self.discount = to_money(amount if amount not in (None, "") else 0, field="discount")
        return self.discount

    def compute_totals(self) -> CartTotals:
        subtotal = quantize(sum((line.line_total for line in self._lines.values()), ZERO))
        tax = quantize(subtotal * self.tax_rate)
        discount = self.discount
        if self.clamp_discount:
            discount = min(discount, subtotal + tax)
        total = quantize(subtotal + tax - discount)
        return CartTotals(subtotal=subtotal, tax=tax, discount=discount, total=total)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def build_payload(self, customer: CustomerInfo, payment_method: str, cashier_id: Optional[int]) -> CheckoutPayload:
        if self.is_empty():
            raise EmptyCartError("Please add items to cart before checkout")

        method = _require_payment_method(payment_method)
        totals = self.compute_totals()
        order = {
            "order_number": generate_order_number(),
            "customer_id": customer.customer_id,
            "customer_name": customer.name or WALK_IN_CUSTOMER,
            "customer_email": customer.email,
            "customer_phone": customer.phone,
            "cashier_id": cashier_id,
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "discount": totals.discount,
            "total": totals.total,
            "payment_method": method,
            "status": OrderStatus.COMPLETED.value,
        }
        items = [
            {
                "product_id": line.product_id,
                "product_name": line.product.name,
                "quantity": line.quantity,
                "price": line.unit_price,
                "total": line.line_total,
            }
            for line in self._lines.values()
        ]
        return CheckoutPayload(order=order, items=items)

    def checkout(
        self,
        customer: Optional[CustomerInfo],
        payment_method: str,
        cashier_id: Optional[int] = None,
        *,
        persist: Optional[Callable[[CheckoutPayload], object]] = None,
    ):
        """
        Build the order payload and hand it to persist as a single unit.

        The cart is cleared only after persist returns. If persist raises,
        the exception propagates and the cart keeps its lines. Returns
        persist's result, or the payload when no persist callback is given.
        """
        payload = self.build_payload(customer or CustomerInfo(), payment_method, cashier_id)
        result = persist(payload) if persist is not None else payload
        self.clear()
        return result

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines.values()],
            "totals": self.compute_totals().to_dict(),
        }


def _line_total(product, quantity: int) -> Decimal:
    return quantize(Decimal(quantity) * quantize(product.sell_price))


def _require_quantity(qty, *, minimum: int) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValidationError("quantity must be an integer")
    if qty < minimum:
        raise ValidationError(f"quantity must be at least {minimum}")
    return qty


def _require_payment_method(value) -> str:
    for method in PaymentMethod:
        if value == method.value:
            return method.value
    allowed = ", ".join(m.value for m in PaymentMethod)
    raise ValidationError(f"payment_method must be one of: {allowed}")
