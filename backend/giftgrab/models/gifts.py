from __future__ import annotations

from sqlalchemy import event, inspect

from ..extensions import db
from ..services.identifier_service import generate_public_id
from ..time_utils import to_utc_z


class ClaimGuardError(RuntimeError):
    """Raised when code bypasses the claim state machine to write claim fields."""


class Gift(db.Model):
    """
    A gift owned by exactly one person.

    CLAIM FIELDS: applicant_id and order_id are written together and only by
    claim_service.apply_claim / release_claim (conditional UPDATE statements).
    An ORM flush that changes either column raises ClaimGuardError.
    """
    __tablename__ = "gifts"
    __table_args__ = (
        # G1: a gift is claimed exactly when both references are set
        db.CheckConstraint(
            "(applicant_id IS NULL AND order_id IS NULL) OR "
            "(applicant_id IS NOT NULL AND order_id IS NOT NULL)",
            name="ck_gifts_claim_pair",
        ),
        db.Index("ix_gifts_owner_applicant", "owner_id", "applicant_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(64), nullable=False, unique=True, default=generate_public_id)

    owner_id = db.Column(db.Integer, db.ForeignKey("persons.id"), nullable=False, index=True)
    applicant_id = db.Column(db.Integer, db.ForeignKey("persons.id"), nullable=True, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    owner = db.relationship("Person", foreign_keys=[owner_id])
    applicant = db.relationship("Person", foreign_keys=[applicant_id])
    order = db.relationship("Order", foreign_keys=[order_id])

    @property
    def is_claimed(self) -> bool:
        return self.applicant_id is not None

    @property
    def owner_public_id(self) -> str:
        return self.owner.public_id

    @property
    def applicant_public_id(self) -> str | None:
        return self.applicant.public_id if self.applicant is not None else None

    @property
    def order_public_id(self) -> str | None:
        return self.order.public_id if self.order is not None else None

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "owner": self.owner.to_ref(),
            "applicant": self.applicant.to_ref() if self.applicant is not None else None,
            "order_public_id": self.order_public_id,
            "is_claimed": self.is_claimed,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(Gift, "before_insert")
def _gift_created_unclaimed(mapper, connection, target: Gift) -> None:
    if target.applicant_id is not None or target.order_id is not None:
        raise ClaimGuardError(f"Gift {target.public_id} must be created unclaimed")


@event.listens_for(Gift, "before_update")
def _gift_claim_fields_guarded(mapper, connection, target: Gift) -> None:
    state = inspect(target)
    for attr in ("applicant_id", "order_id", "owner_id"):
        if state.attrs[attr].history.has_changes():
            raise ClaimGuardError(
                f"Gift {target.public_id}: {attr} may only change through the claim service"
            )
