# Overview: Service-layer operations for events; setup of persons and gifts, and gift lookups.

from __future__ import annotations

from flask import current_app

from ..errors import GiftGrabError, NotFoundError, ValidationError
from ..extensions import db
from ..fp import NOTHING, Failure, Maybe, Result, Success
from ..models import Event, Gift, Person
from .claim_service import find_unclaimed_gift
from .collaborators import PersonRecord, QRCodeRenderer
from .concurrency import commit_with_retry
from .identifier_service import generate_event_id, generate_owner_id, normalize_public_id


def _person_from_record(record: PersonRecord) -> Person:
    return Person(
        first_name=record.first_name,
        last_name=record.last_name,
        employee_id=record.employee_id,
        person_id=record.person_id,
        source_format=record.source_format,
    )


def create_event(
    name: str,
    email: str,
    applicants: list[PersonRecord],
    approvers: list[PersonRecord],
    *,
    qr_renderer: QRCodeRenderer | None = None,
    base_url: str = "",
) -> Result[Event, GiftGrabError]:
    """
    Set up an event: one Person per imported row, one unclaimed Gift per applicant.

    Each applicant owns the gift created for them. Approvers own nothing.
    QR codes are rendered only when a renderer is supplied.
    """
    name = (name or "").strip()
    email = (email or "").strip()
    if not name:
        return Failure(ValidationError("name is required"))
    if not email or "@" not in email:
        return Failure(ValidationError("A valid organizer email is required", {"email": email}))
    if not applicants:
        return Failure(ValidationError("At least one applicant is required"))

    event = Event(
        event_id=generate_event_id(),
        owner_id=generate_owner_id(),
        name=name,
        email=email,
    )

    applicant_rows = [_person_from_record(r) for r in applicants]
    approver_rows = [_person_from_record(r) for r in approvers]
    db.session.add_all(applicant_rows + approver_rows)
    db.session.flush()

    gifts = [Gift(owner_id=p.id) for p in applicant_rows]
    db.session.add_all(gifts)

    event.applicants = applicant_rows
    event.approvers = approver_rows
    event.gifts = gifts

    if qr_renderer is not None:
        event_url = f"{base_url.rstrip('/')}/events/{event.event_id}"
        event.event_qr_code_base64 = qr_renderer.render(event_url)
        event.owner_qr_code_base64 = qr_renderer.render(f"{event_url}/{event.owner_id}")

    db.session.add(event)
    commit_with_retry()

    current_app.logger.info(
        "Event %s created: %d applicant(s), %d approver(s), %d gift(s)",
        event.event_id, len(applicant_rows), len(approver_rows), len(gifts),
    )
    return Success(event)


def find_event(public_id: str) -> Result[Event, NotFoundError]:
    normalized = normalize_public_id(public_id)
    event = None
    if normalized:
        event = db.session.query(Event).filter_by(public_id=normalized).first()
    return Success(event) if event is not None else Failure(NotFoundError("Event", str(public_id)))


def list_event_gifts(
    event: Event,
    *,
    owner_public_id: str | None = None,
    unclaimed_only: bool = False,
) -> list[Gift]:
    gifts = list(event.gifts)
    if owner_public_id is not None:
        gifts = [g for g in gifts if g.owner_public_id == owner_public_id]
    if unclaimed_only:
        gifts = [g for g in gifts if not g.is_claimed]
    return gifts


def find_unclaimed_gift_for_owner(event: Event, owner_public_id: str) -> Maybe[Gift]:
    """The gift an applicant can still grab from owner, if any."""
    owner = db.session.query(Person).filter_by(public_id=owner_public_id).first()
    if owner is None:
        return NOTHING
    return find_unclaimed_gift(owner, event.gifts)
