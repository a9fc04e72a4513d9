# Overview: Service-layer operations for orders; creation, confirmation cascade and reconciliation.

"""
Order Aggregate Workflow

================================================================================
PURPOSE: Create orders over gift bundles and confirm them exactly once
================================================================================

STATE MACHINE:
    PENDING -> COMPLETE

    PENDING:  created by an applicant, gifts NOT yet claimed
    COMPLETE: confirmed by an approver (never the applicant), gifts claimed

CONFIRMATION (saga, no lock held across the gift writes):
    1. read the order by public id, FOR UPDATE where the engine honors it
       (absent / not PENDING -> conflict)
    2. resolve approver, reject self-approval
    3. conditional UPDATE PENDING -> COMPLETE (the single serialization point
       against double confirmation; losing it is AlreadyConfirmedOrNotFound)
    4. one apply_claim per gift, each committed on its own, outcome recorded
       on the order line
    5. any failed claim: flag the order for reconciliation and return
       PartialClaimFailure naming the failed gifts

    Step 3 commits before step 4 starts, so a reader can observe COMPLETE while
    the cascade is still running. Consumers check reconciliation_required and
    the per-line claim_status, never status alone.

RETRIES: each step runs under run_with_retry on its own. The whole saga is
never re-run from the top; after step 3 that would report a false conflict.
================================================================================
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyConfirmedOrNotFound,
    ConflictError,
    DuplicateGift,
    DuplicateOrderId,
    EmptyBundle,
    GiftGrabError,
    NotFoundError,
    PartialClaimFailure,
    SelfApproval,
    ValidationError,
)
from ..extensions import db
from ..fp import Failure, Result, Success, traverse
from ..models import (
    CLAIM_CLAIMED,
    CLAIM_FAILED,
    CLAIM_RELEASED,
    ORDER_COMPLETE,
    ORDER_PENDING,
    Event,
    Gift,
    Order,
    OrderGift,
    Person,
)
from ..time_utils import utcnow
from .claim_service import apply_claim, release_claim
from .concurrency import commit_with_retry, lock_for_update, run_with_retry
from .identifier_service import normalize_public_id


def _reconciliation_logger():
    return current_app.logger.getChild("reconciliation")


# ============================================================================
# Lookups (public id only)
# ============================================================================

def find_person(public_id: str, entity: str = "Person") -> Result[Person, NotFoundError]:
    normalized = normalize_public_id(public_id)
    person = None
    if normalized:
        person = db.session.query(Person).filter_by(public_id=normalized).first()
    return Success(person) if person is not None else Failure(NotFoundError(entity, str(public_id)))


def find_gift(public_id: str) -> Result[Gift, NotFoundError]:
    normalized = normalize_public_id(public_id)
    gift = None
    if normalized:
        gift = db.session.query(Gift).filter_by(public_id=normalized).first()
    return Success(gift) if gift is not None else Failure(NotFoundError("Gift", str(public_id)))


def get_order(public_id: str) -> Result[Order, NotFoundError]:
    """
    Resolve an order by its public id.

    Never accepts internal keys: QR scans and mobile links are untrusted input.
    """
    normalized = normalize_public_id(public_id)
    order = None
    if normalized:
        order = db.session.query(Order).filter_by(public_id=normalized).first()
    return Success(order) if order is not None else Failure(NotFoundError("Order", str(public_id)))


# ============================================================================
# Creation
# ============================================================================

def _validate_bundle(gift_public_ids: list[str]) -> Result[list[str], ValidationError]:
    if not gift_public_ids:
        return Failure(EmptyBundle())
    if not all(isinstance(pid, str) for pid in gift_public_ids):
        return Failure(ValidationError("gift_public_ids must be strings"))
    seen: set[str] = set()
    duplicates: list[str] = []
    for pid in gift_public_ids:
        if pid in seen and pid not in duplicates:
            duplicates.append(pid)
        seen.add(pid)
    if duplicates:
        return Failure(DuplicateGift(duplicates))
    return Success(list(gift_public_ids))


def create_order(
    applicant: Person,
    gifts: list[Gift],
    order_id: str,
    confirmation_code: str,
    *,
    event: Event | None = None,
) -> Result[Order, GiftGrabError]:
    """
    Persist a new PENDING order over gifts.

    Gifts are referenced, not claimed: their applicant/order fields stay
    untouched until confirmation.

    Returns:
        Success(order) or Failure(EmptyBundle | DuplicateGift | ValidationError
        | DuplicateOrderId)
    """
    checked = _validate_bundle([g.public_id for g in gifts])
    if checked.is_failure:
        return checked

    if not isinstance(order_id or "", str):
        return Failure(ValidationError("order_id must be a string"))
    if not isinstance(confirmation_code or "", str):
        return Failure(ValidationError("confirmation_code must be a string"))
    order_id = (order_id or "").strip()
    confirmation_code = (confirmation_code or "").strip()
    if not order_id:
        return Failure(ValidationError("order_id is required"))
    if not confirmation_code:
        return Failure(ValidationError("confirmation_code is required"))

    if db.session.query(Order.id).filter_by(order_id=order_id).first() is not None:
        return Failure(DuplicateOrderId(order_id))

    order = Order(
        order_id=order_id,
        confirmation_code=confirmation_code,
        applicant_id=applicant.id,
        event_id=event.id if event is not None else None,
        status=ORDER_PENDING,
    )
    for position, gift in enumerate(gifts):
        order.lines.append(OrderGift(gift_id=gift.id, position=position))

    db.session.add(order)
    try:
        commit_with_retry()
    except IntegrityError:
        db.session.rollback()
        return Failure(DuplicateOrderId(order_id))

    current_app.logger.info(
        "Order %s created by %s with %d gift(s)",
        order.public_id, applicant.public_id, len(gifts),
    )
    return Success(order)


def create_order_from_public_ids(
    applicant_public_id: str,
    gift_public_ids: list[str],
    order_id: str,
    confirmation_code: str,
) -> Result[Order, GiftGrabError]:
    """Resolve every external id, then create the order."""
    checked = _validate_bundle(list(gift_public_ids or []))
    if checked.is_failure:
        return checked

    applicant_result = find_person(applicant_public_id, "Applicant")
    if applicant_result.is_failure:
        return applicant_result

    gifts_result = traverse(checked.value, find_gift)
    if gifts_result.is_failure:
        return gifts_result

    event = _event_for_gifts(gifts_result.value)
    return create_order(
        applicant_result.value,
        gifts_result.value,
        order_id,
        confirmation_code,
        event=event,
    )


def _event_for_gifts(gifts: list[Gift]) -> Event | None:
    if not gifts:
        return None
    return (
        db.session.query(Event)
        .filter(Event.gifts.any(Gift.id == gifts[0].id))
        .first()
    )


# ============================================================================
# Confirmation
# ============================================================================

def _mark_complete(order: Order, approver: Person) -> bool:
    """Atomic PENDING -> COMPLETE. Returns False when another caller got there first."""
    def _op() -> bool:
        stmt = (
            update(Order)
            .where(Order.id == order.id, Order.status == ORDER_PENDING)
            .values(
                status=ORDER_COMPLETE,
                confirmed_by_id=approver.id,
                confirmed_at=utcnow(),
                version_id=Order.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        db.session.commit()
        return result.rowcount == 1

    return run_with_retry(_op)


def _claim_line(order: Order, line: OrderGift) -> Result[Gift, GiftGrabError]:
    """Claim one gift of the order and record the outcome on its line."""
    def _op() -> Result[Gift, GiftGrabError]:
        result = apply_claim(line.gift, order.applicant, order)
        line.claim_attempted_at = utcnow()
        if result.is_success:
            line.claim_status = CLAIM_CLAIMED
            line.claim_error = None
        else:
            line.claim_status = CLAIM_FAILED
            line.claim_error = result.error.message[:255]
        db.session.commit()
        return result

    return run_with_retry(_op)


def _end_read(failure):
    """Roll back the locking read so an early failure does not keep the row lock."""
    db.session.rollback()
    return failure


def confirm_order(order_public_id: str, approver_public_id: str) -> Result[Order, GiftGrabError]:
    """
    Confirm a PENDING order and claim its gifts for the applicant.

    Returns:
        Success(order) when every gift was claimed.
        Failure(AlreadyConfirmedOrNotFound | NotFoundError | SelfApproval)
        when nothing was written.
        Failure(PartialClaimFailure) when the order is COMPLETE but one or
        more gifts were held by another order. Requires manual reconciliation.
    """
    order = None
    normalized = normalize_public_id(order_public_id)
    if normalized:
        order = lock_for_update(db.session.query(Order).filter_by(public_id=normalized)).first()
    if order is None or order.status != ORDER_PENDING:
        return _end_read(Failure(AlreadyConfirmedOrNotFound(str(order_public_id))))

    approver_result = find_person(approver_public_id, "Approver")
    if approver_result.is_failure:
        return _end_read(approver_result)
    approver = approver_result.value

    if approver.id == order.applicant_id:
        return _end_read(Failure(SelfApproval(approver.public_id)))

    if not _mark_complete(order, approver):
        return Failure(AlreadyConfirmedOrNotFound(order.public_id))

    db.session.refresh(order)
    current_app.logger.info(
        "Order %s confirmed by %s, claiming %d gift(s)",
        order.public_id, approver.public_id, len(order.lines),
    )

    claimed: list[str] = []
    failed: dict[str, str] = {}
    for line in order.lines:
        outcome = _claim_line(order, line)
        if outcome.is_success:
            claimed.append(line.gift.public_id)
        else:
            failed[line.gift.public_id] = outcome.error.code

    if not failed:
        return Success(order)

    def _flag():
        order.reconciliation_required = True
        db.session.commit()
    run_with_retry(_flag)

    _reconciliation_logger().critical(
        "PARTIAL CLAIM FAILURE: order %s is COMPLETE but gifts %s could not be claimed "
        "(claimed: %s). Manual reconciliation required.",
        order.public_id, sorted(failed), claimed,
    )
    return Failure(PartialClaimFailure(order.public_id, failed, claimed))


# ============================================================================
# Reconciliation
# ============================================================================

def list_orders_requiring_reconciliation() -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.status == ORDER_COMPLETE, Order.reconciliation_required.is_(True))
        .order_by(Order.confirmed_at.asc())
        .all()
    )


def find_unflagged_incomplete_orders() -> list[Order]:
    """
    COMPLETE orders without the reconciliation flag whose gifts are not all
    held by them. Non-empty means a cascade was interrupted mid-way.
    """
    suspects = []
    complete = (
        db.session.query(Order)
        .filter(Order.status == ORDER_COMPLETE, Order.reconciliation_required.is_(False))
        .all()
    )
    for order in complete:
        if any(line.gift.order_id != order.id for line in order.lines):
            suspects.append(order)
    return suspects


def compensate_partial_order(order_public_id: str) -> Result[Order, GiftGrabError]:
    """
    Release the gifts a partially failed order did claim.

    The order stays COMPLETE and flagged; released lines become RELEASED so
    the organizer can hand those gifts out again.
    """
    order_result = get_order(order_public_id)
    if order_result.is_failure:
        return order_result
    order = order_result.value

    if not order.reconciliation_required:
        return Failure(ConflictError(
            "Order does not require reconciliation",
            {"order_public_id": order.public_id},
        ))

    for line in order.lines:
        if line.claim_status != CLAIM_CLAIMED:
            continue

        def _op(line=line):
            released = release_claim(line.gift, order)
            if released.is_success:
                line.claim_status = CLAIM_RELEASED
                line.claim_attempted_at = utcnow()
            db.session.commit()
            return released

        released = run_with_retry(_op)
        if released.is_failure:
            return released

    _reconciliation_logger().warning(
        "Order %s compensated: claimed gifts released", order.public_id,
    )
    return Success(order)
