# Overview: Server action boundary; plain-value entry points the client flows and routes call.

"""
Server actions

Thin wrappers over the order workflow that speak in public ids and plain
dicts. Every confirmation outcome is also pushed to the event organizer
through the configured EmailSender; sender failures are logged and never
change what the caller gets back.
"""

from __future__ import annotations

from flask import current_app

from .errors import GiftGrabError, PartialClaimFailure
from .fp import Failure, Result, Success
from .models import Order
from .services import order_service
from .services.collaborators import EmailSender, LoggingEmailSender, order_confirmed_message


EMAIL_SENDER_KEY = "giftgrab.email_sender"


def get_email_sender() -> EmailSender:
    sender = current_app.extensions.get(EMAIL_SENDER_KEY)
    if sender is None:
        sender = LoggingEmailSender(current_app.logger.getChild("email"))
        current_app.extensions[EMAIL_SENDER_KEY] = sender
    return sender


def _notify_organizer(order: Order) -> None:
    if not current_app.config.get("GIFTGRAB_NOTIFY_ON_CONFIRM", True):
        return
    if order.event is None:
        return
    try:
        get_email_sender().send(order_confirmed_message(order.event.email, order.to_dict()))
    except Exception:
        current_app.logger.exception("Failed to notify organizer for order %s", order.public_id)


def make_order(
    applicant_public_id: str,
    gift_public_ids: list[str],
    order_id: str,
    confirmation_code: str,
) -> Result[str, GiftGrabError]:
    """Create a PENDING order; Success carries its public id."""
    return order_service.create_order_from_public_ids(
        applicant_public_id, gift_public_ids, order_id, confirmation_code,
    ).map(lambda order: order.public_id)


def get_order(order_public_id: str) -> dict | None:
    """
    Order as a dict, or None when absent.

    Callers must check "reconciliation_required" before treating a COMPLETE
    order as fully handed over.
    """
    return order_service.get_order(order_public_id).map(lambda o: o.to_dict()).get_or_else(None)


def confirm_order_result(order_public_id: str, approver_public_id: str) -> Result[dict, GiftGrabError]:
    result = order_service.confirm_order(order_public_id, approver_public_id)

    if result.is_success:
        _notify_organizer(result.value)
        return Success(result.value.to_dict())

    if isinstance(result.error, PartialClaimFailure):
        order_service.get_order(result.error.order_public_id).map(_notify_organizer)
    return Failure(result.error)


def confirm_order(order_public_id: str, approver_public_id: str) -> dict | bool:
    """Confirmed order as a dict, or False on any failure (partial ones included)."""
    return confirm_order_result(order_public_id, approver_public_id).get_or_else(False)
