# Overview: Service-layer operations for gift claims; the only code allowed to write a gift's claim fields.

"""
Gift Claim State Machine

================================================================================
PURPOSE: Govern the lifecycle of a single gift's applicant/order fields
================================================================================

STATE MACHINE:
    UNCLAIMED (applicant=None, order=None) -> CLAIMED (applicant set, order set)

    There is no RESERVED state. A gift that sits in a PENDING order is still
    UNCLAIMED, so two PENDING orders may reference the same gift. The race
    between their confirmations is settled here: apply_claim is a single
    conditional UPDATE, and only one of them can win.

RULES (NON-NEGOTIABLE):
1. applicant and order are always written together (G1)
2. a claim held by one order is never overwritten by another (G2)
3. only release_claim, called with the holding order, clears a claim
4. no other module assigns Gift.applicant_id / Gift.order_id (the model's
   before_update hook raises ClaimGuardError if one tries)
================================================================================
"""

from __future__ import annotations

from typing import Iterable, Protocol

from sqlalchemy import or_, update

from ..errors import AlreadyClaimed, ConflictError
from ..extensions import db
from ..fp import Failure, Maybe, Result, Success, find_first
from ..models import Gift, Order, Person


UNCLAIMED = "UNCLAIMED"
CLAIMED = "CLAIMED"


class GiftLike(Protocol):
    """Anything that looks like a gift: ORM rows and client-side views both qualify."""

    public_id: str

    @property
    def owner_public_id(self) -> str: ...

    @property
    def applicant_public_id(self) -> str | None: ...

    @property
    def order_public_id(self) -> str | None: ...


class PersonLike(Protocol):
    public_id: str


def claim_state(gift: GiftLike) -> str:
    return CLAIMED if gift.applicant_public_id is not None else UNCLAIMED


def find_unclaimed_gift(owner: PersonLike, gifts: Iterable[GiftLike]) -> Maybe[GiftLike]:
    """Return the first gift owned by owner that nobody has claimed yet. Pure, O(n)."""
    return find_first(
        gifts,
        lambda g: g.owner_public_id == owner.public_id and g.applicant_public_id is None,
    )


def check_claim(
    gift: GiftLike,
    applicant_public_id: str,
    order_public_id: str | None = None,
) -> Result[GiftLike, AlreadyClaimed]:
    """
    Decide whether applicant (through order) may claim gift. Pure.

    Claiming again for the same applicant and the same order is allowed
    (idempotent retry). A gift held by a different applicant, or by a
    different order, is AlreadyClaimed.
    """
    held_by = gift.applicant_public_id
    held_in = gift.order_public_id
    if held_by is not None and held_by != applicant_public_id:
        return Failure(AlreadyClaimed(gift.public_id, held_in))
    if held_in is not None and order_public_id is not None and held_in != order_public_id:
        return Failure(AlreadyClaimed(gift.public_id, held_in))
    return Success(gift)


def apply_claim(gift: Gift, applicant: Person, order: Order) -> Result[Gift, AlreadyClaimed]:
    """
    Claim gift for applicant through order.

    The in-memory check rejects obvious conflicts early; the conditional UPDATE
    is the authoritative compare-and-set against whatever another transaction
    committed in the meantime. Does not commit.
    """
    checked = check_claim(gift, applicant.public_id, order.public_id)
    if checked.is_failure:
        return checked

    stmt = (
        update(Gift)
        .where(
            Gift.id == gift.id,
            or_(Gift.applicant_id.is_(None), Gift.applicant_id == applicant.id),
            or_(Gift.order_id.is_(None), Gift.order_id == order.id),
        )
        .values(applicant_id=applicant.id, order_id=order.id)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.refresh(gift)

    if result.rowcount != 1:
        return Failure(AlreadyClaimed(gift.public_id, gift.order_public_id))
    return Success(gift)


def release_claim(gift: Gift, order: Order) -> Result[Gift, ConflictError]:
    """
    Administrative compensation: clear a claim held by order. Does not commit.

    A claim held by any other order is left untouched (G2).
    """
    stmt = (
        update(Gift)
        .where(Gift.id == gift.id, Gift.order_id == order.id)
        .values(applicant_id=None, order_id=None)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.refresh(gift)

    if result.rowcount != 1:
        return Failure(ConflictError(
            f"Gift {gift.public_id} is not held by order {order.public_id}",
            {"gift_public_id": gift.public_id, "order_public_id": order.public_id},
        ))
    return Success(gift)


def find_claim_pair_violations() -> list[Gift]:
    """Gifts breaking G1 (one claim field set without the other). Expected empty."""
    return (
        db.session.query(Gift)
        .filter(
            or_(
                (Gift.applicant_id.is_(None)) & (Gift.order_id.isnot(None)),
                (Gift.applicant_id.isnot(None)) & (Gift.order_id.is_(None)),
            )
        )
        .all()
    )
