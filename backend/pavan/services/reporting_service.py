# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

import csv
import io
from datetime import datetime

from ..extensions import db
from ..models import Lead, Product
from ..money import money_str, quantize
from ..time_utils import parse_iso_datetime, to_utc_z
from . import sales_service


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


SALES_COLUMNS = (
    "order_number", "created_at", "customer_name", "payment_method",
    "subtotal", "tax", "discount", "total", "status",
)
INVENTORY_COLUMNS = (
    "sku", "name", "quantity", "threshold", "cost_price", "sell_price",
    "stock_value", "low_stock",
)
LEAD_COLUMNS = ("name", "company", "email", "phone", "status", "source", "value", "created_at")


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("start and end must be ISO-8601 datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def sales_rows(*, start: str | None = None, end: str | None = None) -> list[dict]:
    start_dt, end_dt = _parse_range(start, end)
    orders = sales_service.list_orders(start=start_dt, end=end_dt)
    return [
        {
            "order_number": o.order_number,
            "created_at": to_utc_z(o.created_at),
            "customer_name": o.customer_name,
            "payment_method": o.payment_method,
            "subtotal": money_str(o.subtotal),
            "tax": money_str(o.tax),
            "discount": money_str(o.discount),
            "total": money_str(o.total),
            "status": o.status,
        }
        for o in orders
    ]


def inventory_rows() -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    rows = []
    for p in products:
        stock_value = quantize((p.quantity or 0) * quantize(p.sell_price))
        rows.append(
            {
                "sku": p.sku,
                "name": p.name,
                "quantity": p.quantity,
                "threshold": p.threshold,
                "cost_price": money_str(p.cost_price),
                "sell_price": money_str(p.sell_price),
                "stock_value": money_str(stock_value),
                "low_stock": p.is_low_stock,
            }
        )
    return rows


def lead_rows(*, status: str | None = None) -> list[dict]:
    query = db.session.query(Lead)
    if status:
        query = query.filter(Lead.status == status)
    return [
        {
            "name": lead.name,
            "company": lead.company,
            "email": lead.email,
            "phone": lead.phone,
            "status": lead.status,
            "source": lead.source,
            "value": money_str(lead.value),
            "created_at": to_utc_z(lead.created_at) if lead.created_at else None,
        }
        for lead in query.order_by(Lead.id.asc()).all()
    ]


def summarize_sales(rows: list[dict]) -> dict:
    total = sum((quantize(r["total"]) for r in rows), quantize(0))
    count = len(rows)
    return {
        "order_count": count,
        "revenue": money_str(total),
        "average_order_value": money_str(total / count) if count else money_str(0),
    }


def to_csv(rows: list[dict], columns) -> str:
    """Serialize rows as CSV with a header line; None becomes an empty cell."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(columns), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: ("" if row.get(k) is None else row.get(k)) for k in columns})
    return buf.getvalue()
