from __future__ import annotations

from ..extensions import db
from ..services.identifier_service import generate_public_id
from ..time_utils import to_utc_z


# Order lifecycle (PENDING -> COMPLETE, exactly once, never reverted)
ORDER_PENDING = "PENDING"
ORDER_COMPLETE = "COMPLETE"
VALID_ORDER_STATUSES = {ORDER_PENDING, ORDER_COMPLETE}

# Per-line claim outcome recorded by the confirmation cascade
CLAIM_PENDING = "PENDING"
CLAIM_CLAIMED = "CLAIMED"
CLAIM_FAILED = "FAILED"
CLAIM_RELEASED = "RELEASED"
VALID_CLAIM_STATUSES = {CLAIM_PENDING, CLAIM_CLAIMED, CLAIM_FAILED, CLAIM_RELEASED}


class Order(db.Model):
    """
    An applicant's bundle of gifts awaiting (or holding) an approver's confirmation.

    INVARIANTS (enforced by check constraints and the order service):
    - O1: status COMPLETE iff confirmed_by_id and confirmed_at are set
    - O2: the approver is never the applicant
    - O3: once COMPLETE, every line is CLAIMED, or reconciliation_required is set

    reconciliation_required is the partial-claim-failure marker. Readers that
    see status COMPLETE must check it before assuming every gift was handed over.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "(status = 'PENDING' AND confirmed_by_id IS NULL AND confirmed_at IS NULL) OR "
            "(status = 'COMPLETE' AND confirmed_by_id IS NOT NULL AND confirmed_at IS NOT NULL)",
            name="ck_orders_confirmation_state",
        ),
        db.CheckConstraint(
            "confirmed_by_id IS NULL OR confirmed_by_id != applicant_id",
            name="ck_orders_no_self_approval",
        ),
        db.UniqueConstraint("order_id", name="uq_orders_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(64), nullable=False, unique=True, default=generate_public_id)

    # Business code shown on the printed QR artifact
    order_id = db.Column(db.String(64), nullable=False, index=True)
    confirmation_code = db.Column(db.String(255), nullable=False)

    applicant_id = db.Column(db.Integer, db.ForeignKey("persons.id"), nullable=False, index=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_PENDING, index=True)
    confirmed_by_id = db.Column(db.Integer, db.ForeignKey("persons.id"), nullable=True)
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    reconciliation_required = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    applicant = db.relationship("Person", foreign_keys=[applicant_id])
    confirmed_by_approver = db.relationship("Person", foreign_keys=[confirmed_by_id])
    event = db.relationship("Event", backref=db.backref("orders", lazy=True))
    lines = db.relationship(
        "OrderGift",
        back_populates="order",
        order_by="OrderGift.position",
        lazy=True,
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def gifts(self) -> list:
        return [line.gift for line in self.lines]

    @property
    def is_complete(self) -> bool:
        return self.status == ORDER_COMPLETE

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "order_id": self.order_id,
            "status": self.status,
            "applicant": self.applicant.to_ref(),
            "gifts": [line.to_dict() for line in self.lines],
            "confirmation_code": self.confirmation_code,
            "confirmed_by_approver": (
                self.confirmed_by_approver.to_ref() if self.confirmed_by_approver is not None else None
            ),
            "confirmed_at": to_utc_z(self.confirmed_at),
            "reconciliation_required": self.reconciliation_required,
            "event_public_id": self.event.public_id if self.event is not None else None,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class OrderGift(db.Model):
    """One gift in an order's bundle, with the outcome of its claim attempt."""
    __tablename__ = "order_gifts"
    __table_args__ = (
        db.UniqueConstraint("order_id", "gift_id", name="uq_order_gifts_order_gift"),
        db.UniqueConstraint("order_id", "position", name="uq_order_gifts_order_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    gift_id = db.Column(db.Integer, db.ForeignKey("gifts.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    claim_status = db.Column(db.String(16), nullable=False, default=CLAIM_PENDING)
    claim_error = db.Column(db.String(255), nullable=True)
    claim_attempted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    order = db.relationship("Order", back_populates="lines")
    gift = db.relationship("Gift")

    def to_dict(self) -> dict:
        gift = self.gift
        return {
            "public_id": gift.public_id,
            "owner": gift.owner.to_ref(),
            "position": self.position,
            "claim_status": self.claim_status,
            "claim_error": self.claim_error,
            "claim_attempted_at": to_utc_z(self.claim_attempted_at),
        }
