from __future__ import annotations

import enum

from ..extensions import db
from pavan.money import money_str
from pavan.time_utils import to_utc_z, utcnow


class LeadStatus(str, enum.Enum):
    """Sales funnel stages: New -> Contacted -> Follow-Up -> Converted / Dropped."""
    NEW = "New"
    CONTACTED = "Contacted"
    FOLLOW_UP = "Follow-Up"
    CONVERTED = "Converted"
    DROPPED = "Dropped"


# Leads in these stages have left the funnel
CLOSED_LEAD_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.DROPPED})

INTERACTION_TYPES = ("Call", "Email", "Meeting", "Note")


class Lead(db.Model):
    """
    A prospective customer tracked through the sales funnel.

    Status moves by board drag or dropdown; rows are only deleted by an
    explicit admin action.
    """
    __tablename__ = "leads"
    __table_args__ = (
        db.Index("ix_leads_status", "status"),
        db.Index("ix_leads_assigned_to", "assigned_to"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    company = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Website, Referral, Cold Call, ...
    source = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=LeadStatus.NEW.value)

    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    value = db.Column(db.Numeric(10, 2), nullable=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    assignee = db.relationship("User", foreign_keys=[assigned_to])

    def __repr__(self) -> str:
        return f"<Lead id={self.id} name={self.name!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "email": self.email,
            "phone": self.phone,
            "source": self.source,
            "status": self.status,
            "assigned_to": self.assigned_to,
            "notes": self.notes,
            "value": money_str(self.value),
            "due_date": to_utc_z(self.due_date) if self.due_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class LeadInteraction(db.Model):
    """Append-only log of calls, emails, meetings and notes against a lead."""
    __tablename__ = "lead_interactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    type = db.Column(db.String(16), nullable=False)
    subject = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    lead = db.relationship("Lead", backref=db.backref("interactions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "user_id": self.user_id,
            "type": self.type,
            "subject": self.subject,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
