# Overview: Dashboard summary statistics over orders, leads and products.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import DataUnavailableError
from ..extensions import db
from ..models import CLOSED_LEAD_STATUSES, Lead, Order, Product
from ..money import ZERO, money_str, quantize
from ..time_utils import month_start_utc

DEFAULT_RECENT_ORDERS = 10

_CLOSED_STATUS_VALUES = frozenset(status.value for status in CLOSED_LEAD_STATUSES)


@dataclass
class DashboardStats:
    total_sales: Decimal
    active_leads: int
    stock_alerts: int
    monthly_revenue: Decimal
    recent_orders: list = field(default_factory=list)
    leads_by_status: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_sales": money_str(self.total_sales),
            "active_leads": self.active_leads,
            "stock_alerts": self.stock_alerts,
            "monthly_revenue": money_str(self.monthly_revenue),
            "recent_orders": [
                order.to_dict() if hasattr(order, "to_dict") else order
                for order in self.recent_orders
            ],
            "leads_by_status": [
                {"status": status, "count": count} for status, count in self.leads_by_status
            ],
        }


def _order_total(order) -> Decimal:
    return quantize(order.total) if order.total is not None else ZERO


def _as_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def compute_dashboard_stats(
    orders: Optional[Sequence],
    leads: Optional[Sequence],
    products: Optional[Sequence],
    *,
    now: Optional[datetime] = None,
    recent_limit: int = DEFAULT_RECENT_ORDERS,
) -> DashboardStats:
    """
    Aggregate the dashboard from three read-only collections.

    - total_sales: sum of every order total
    - active_leads: leads not Converted or Dropped
    - stock_alerts: products with quantity and threshold set and quantity <= threshold
    - monthly_revenue: orders created on/after the first day of now's month (server local time)
    - recent_orders: the first recent_limit orders in the order given
    - leads_by_status: (status, count) pairs in first-seen order

    If any collection is None the whole aggregation fails with
    DataUnavailableError.
    """
    missing = [
        name for name, rows in (("orders", orders), ("leads", leads), ("products", products))
        if rows is None
    ]
    if missing:
        raise DataUnavailableError(
            "Dashboard data unavailable", details={"missing": missing}
        )

    orders, leads, products = list(orders), list(leads), list(products)

    total_sales = sum((_order_total(o) for o in orders), ZERO)

    active_leads = sum(1 for lead in leads if lead.status not in _CLOSED_STATUS_VALUES)

    stock_alerts = sum(
        1 for p in products
        if p.quantity is not None and p.threshold is not None and p.quantity <= p.threshold
    )

    since = month_start_utc(now)
    monthly_revenue = sum(
        (_order_total(o) for o in orders if o.created_at is not None and _as_utc_naive(o.created_at) >= since),
        ZERO,
    )

    recent_orders = list(orders[:recent_limit])

    counts: dict[str, int] = {}
    for lead in leads:
        counts[lead.status] = counts.get(lead.status, 0) + 1

    return DashboardStats(
        total_sales=quantize(total_sales),
        active_leads=active_leads,
        stock_alerts=stock_alerts,
        monthly_revenue=quantize(monthly_revenue),
        recent_orders=recent_orders,
        leads_by_status=list(counts.items()),
    )


def load_dashboard_stats(now: Optional[datetime] = None) -> DashboardStats:
    """
    Read the three collections and aggregate them.

    Orders are read newest first (created_at DESC, id DESC) so that
    recent_orders is deterministic. Leads are read in insertion order.
    """
    try:
        orders = db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()
        leads = db.session.query(Lead).order_by(Lead.id.asc()).all()
        products = db.session.query(Product).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to load dashboard data")
        raise DataUnavailableError("Dashboard data unavailable") from exc

    return compute_dashboard_stats(
        orders,
        leads,
        products,
        now=now,
        recent_limit=current_app.config.get("RECENT_ORDERS_LIMIT", DEFAULT_RECENT_ORDERS),
    )
