from flask import Blueprint, Response, jsonify, request

from pavan.decorators import require_auth, require_roles
from pavan.permissions import Role
from pavan.services import reporting_service
from pavan.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _wants_csv() -> bool:
    return request.args.get("format", "json").lower() == "csv"


def _csv_response(rows, columns, name: str) -> Response:
    filename = f"{name}-{utcnow().strftime('%Y%m%d')}.csv"
    return Response(
        reporting_service.to_csv(rows, columns),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@reports_bp.get("/sales")
@require_auth
@require_roles(Role.ADMIN)
def sales_report():
    try:
        rows = reporting_service.sales_rows(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    if _wants_csv():
        return _csv_response(rows, reporting_service.SALES_COLUMNS, "sales")
    return jsonify({"rows": rows, "summary": reporting_service.summarize_sales(rows)}), 200


@reports_bp.get("/inventory")
@require_auth
@require_roles(Role.ADMIN)
def inventory_report():
    rows = reporting_service.inventory_rows()
    if _wants_csv():
        return _csv_response(rows, reporting_service.INVENTORY_COLUMNS, "inventory")
    return jsonify({"rows": rows, "count": len(rows)}), 200


@reports_bp.get("/leads")
@require_auth
@require_roles(Role.ADMIN)
def leads_report():
    rows = reporting_service.lead_rows(status=request.args.get("status"))
    if _wants_csv():
        return _csv_response(rows, reporting_service.LEAD_COLUMNS, "leads")
    return jsonify({"rows": rows, "count": len(rows)}), 200
