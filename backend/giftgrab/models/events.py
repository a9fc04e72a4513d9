from __future__ import annotations

from ..extensions import db
from ..services.identifier_service import generate_public_id
from ..time_utils import to_utc_z


event_applicants = db.Table(
    "event_applicants",
    db.Column("event_id", db.Integer, db.ForeignKey("events.id"), primary_key=True),
    db.Column("person_id", db.Integer, db.ForeignKey("persons.id"), primary_key=True),
)

event_approvers = db.Table(
    "event_approvers",
    db.Column("event_id", db.Integer, db.ForeignKey("events.id"), primary_key=True),
    db.Column("person_id", db.Integer, db.ForeignKey("persons.id"), primary_key=True),
)

event_gifts = db.Table(
    "event_gifts",
    db.Column("event_id", db.Integer, db.ForeignKey("events.id"), primary_key=True),
    db.Column("gift_id", db.Integer, db.ForeignKey("gifts.id"), primary_key=True),
)


class Event(db.Model):
    """
    A gift exchange set up by an organizer.

    Setup imports applicants and approvers and creates one unclaimed gift per
    applicant. The event groups those records; it never mutates them.
    """
    __tablename__ = "events"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(64), nullable=False, unique=True, default=generate_public_id)

    event_id = db.Column(db.String(32), nullable=False, unique=True)
    owner_id = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    event_qr_code_base64 = db.Column(db.Text, nullable=True)
    owner_qr_code_base64 = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    applicants = db.relationship("Person", secondary=event_applicants, lazy=True)
    approvers = db.relationship("Person", secondary=event_approvers, lazy=True)
    gifts = db.relationship("Gift", secondary=event_gifts, lazy=True)

    def to_dict(self, include_lists: bool = False) -> dict:
        data = {
            "public_id": self.public_id,
            "event_id": self.event_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "email": self.email,
            "has_qr_codes": bool(self.event_qr_code_base64),
            "created_at": to_utc_z(self.created_at),
            "applicant_count": len(self.applicants),
            "approver_count": len(self.approvers),
            "gift_count": len(self.gifts),
        }
        if include_lists:
            data["applicants"] = [p.to_ref() for p in self.applicants]
            data["approvers"] = [p.to_ref() for p in self.approvers]
            data["gifts"] = [g.to_dict() for g in self.gifts]
        return data
