# Overview: Service-layer operations for CRM leads and their interaction log.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import INTERACTION_TYPES, Lead, LeadInteraction, LeadStatus, User
from ..validation import enforce_choice

LEAD_MUTABLE_FIELDS = {
    "name", "company", "email", "phone", "source", "status",
    "assigned_to", "notes", "value", "due_date",
}


def _check_assignee(patch: dict) -> None:
    assignee_id = patch.get("assigned_to")
    if assignee_id is not None and db.session.get(User, assignee_id) is None:
        raise ValidationError("assigned_to does not exist")


def list_leads(*, status: str | None = None, assigned_to: int | None = None) -> list[Lead]:
    query = db.session.query(Lead)
    if status is not None:
        enforce_choice({"status": status}, "status", LeadStatus)
        query = query.filter(Lead.status == status)
    if assigned_to is not None:
        query = query.filter(Lead.assigned_to == assigned_to)
    return query.order_by(Lead.id.asc()).all()


def get_lead(lead_id: int) -> Lead:
    lead = db.session.get(Lead, lead_id)
    if lead is None:
        raise NotFoundError("Lead not found")
    return lead


def create_lead(*, patch: dict, created_by: int | None = None) -> Lead:
    """New leads start as New and, unless told otherwise, belong to their creator."""
    enforce_choice(patch, "status", LeadStatus)
    _check_assignee(patch)

    lead = Lead(status=LeadStatus.NEW.value)
    for k, v in patch.items():
        if k in LEAD_MUTABLE_FIELDS:
            setattr(lead, k, v)
    if lead.status is None:
        lead.status = LeadStatus.NEW.value
    if lead.assigned_to is None and "assigned_to" not in patch:
        lead.assigned_to = created_by

    db.session.add(lead)
    db.session.commit()
    return lead


def update_lead(lead_id: int, *, patch: dict) -> Lead:
    enforce_choice(patch, "status", LeadStatus)
    _check_assignee(patch)
    if "status" in patch and patch["status"] is None:
        raise ValidationError("status cannot be null")

    lead = get_lead(lead_id)
    for k, v in patch.items():
        if k in LEAD_MUTABLE_FIELDS:
            setattr(lead, k, v)
    db.session.commit()
    return lead


def set_lead_status(lead_id: int, status: str) -> Lead:
    """Board drag / dropdown transition. Any stage may move to any other."""
    return update_lead(lead_id, patch={"status": status})


def delete_lead(lead_id: int) -> None:
    lead = get_lead(lead_id)
    db.session.delete(lead)
    db.session.commit()


def list_interactions(lead_id: int) -> list[LeadInteraction]:
    get_lead(lead_id)
    return (
        db.session.query(LeadInteraction)
        .filter(LeadInteraction.lead_id == lead_id)
        .order_by(LeadInteraction.created_at.desc(), LeadInteraction.id.desc())
        .all()
    )


def add_interaction(lead_id: int, *, patch: dict, user_id: int | None) -> LeadInteraction:
    get_lead(lead_id)
    enforce_choice(patch, "type", INTERACTION_TYPES)

    interaction = LeadInteraction(lead_id=lead_id, user_id=user_id, **patch)
    db.session.add(interaction)
    db.session.commit()
    return interaction
