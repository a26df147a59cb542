# Overview: Flask API routes for CRM leads and lead interactions.

from flask import Blueprint, request, jsonify, g

from ..models import Lead, LeadInteraction
from ..permissions import Role
from ..services import crm_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_roles

LEAD_POLICY = ModelValidationPolicy(
    writable_fields=set(crm_service.LEAD_MUTABLE_FIELDS),
    required_on_create={"name"},
    aliases={"assignedTo": "assigned_to", "dueDate": "due_date"},
)

INTERACTION_POLICY = ModelValidationPolicy(
    writable_fields={"type", "subject", "notes"},
    required_on_create={"type"},
)

leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")

CRM_ROLES = (Role.ADMIN, Role.SALES)


@leads_bp.get("")
@require_auth
@require_roles(*CRM_ROLES)
def list_leads_route():
    """
    Query params:
    - status: New|Contacted|Follow-Up|Converted|Dropped
    - assigned_to: user id
    """
    leads = crm_service.list_leads(
        status=request.args.get("status"),
        assigned_to=request.args.get("assigned_to", type=int),
    )
    return jsonify({"leads": [lead.to_dict() for lead in leads], "count": len(leads)}), 200


@leads_bp.post("")
@require_auth
@require_roles(*CRM_ROLES)
def create_lead_route():
    patch = validate_payload(model=Lead, payload=request.get_json(silent=True), policy=LEAD_POLICY, partial=False)
    lead = crm_service.create_lead(patch=patch, created_by=g.current_user.id)
    return jsonify({"lead": lead.to_dict()}), 201


@leads_bp.get("/<int:lead_id>")
@require_auth
@require_roles(*CRM_ROLES)
def get_lead_route(lead_id: int):
    return jsonify({"lead": crm_service.get_lead(lead_id).to_dict()}), 200


@leads_bp.put("/<int:lead_id>")
@require_auth
@require_roles(*CRM_ROLES)
def update_lead_route(lead_id: int):
    patch = validate_payload(model=Lead, payload=request.get_json(silent=True), policy=LEAD_POLICY, partial=True)
    lead = crm_service.update_lead(lead_id, patch=patch)
    return jsonify({"lead": lead.to_dict()}), 200


@leads_bp.patch("/<int:lead_id>/status")
@require_auth
@require_roles(*CRM_ROLES)
def set_lead_status_route(lead_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify({"error": "status required"}), 400
    lead = crm_service.set_lead_status(lead_id, status)
    return jsonify({"lead": lead.to_dict()}), 200


@leads_bp.delete("/<int:lead_id>")
@require_auth
@require_roles(Role.ADMIN)
def delete_lead_route(lead_id: int):
    crm_service.delete_lead(lead_id)
    return jsonify({"deleted": True}), 200


@leads_bp.get("/<int:lead_id>/interactions")
@require_auth
@require_roles(*CRM_ROLES)
def list_interactions_route(lead_id: int):
    interactions = crm_service.list_interactions(lead_id)
    return jsonify({"interactions": [i.to_dict() for i in interactions], "count": len(interactions)}), 200


@leads_bp.post("/<int:lead_id>/interactions")
@require_auth
@require_roles(*CRM_ROLES)
def add_interaction_route(lead_id: int):
    patch = validate_payload(
        model=LeadInteraction,
        payload=request.get_json(silent=True),
        policy=INTERACTION_POLICY,
        partial=False,
    )
    interaction = crm_service.add_interaction(lead_id, patch=patch, user_id=g.current_user.id)
    return jsonify({"interaction": interaction.to_dict()}), 201
