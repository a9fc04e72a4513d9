# Overview: Error taxonomy for the claim/confirmation engine; errors are returned inside Failure, not raised.

from __future__ import annotations


class GiftGrabError(Exception):
    """Base for every engine error value."""

    code = "ERROR"
    http_status = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}

    def __eq__(self, other) -> bool:
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.details == other.details
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.message))


class ValidationError(GiftGrabError):
    """400-level input problem."""

    code = "VALIDATION_ERROR"
    http_status = 400


class EmptyBundle(ValidationError):
    code = "EMPTY_BUNDLE"

    def __init__(self, details: dict | None = None):
        super().__init__("An order must contain at least one gift", details)


class DuplicateGift(ValidationError):
    code = "DUPLICATE_GIFT"

    def __init__(self, gift_public_ids: list[str]):
        super().__init__(
            f"Gift(s) listed more than once: {', '.join(gift_public_ids)}",
            {"gift_public_ids": gift_public_ids},
        )


class NotFoundError(GiftGrabError):
    """404-level: entity absent. No retry."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, public_id: str):
        super().__init__(f"{entity} not found", {"entity": entity, "public_id": public_id})


class ConflictError(GiftGrabError):
    """409-level business rule conflict. Never silently retried."""

    code = "CONFLICT"
    http_status = 409


class AlreadyConfirmedOrNotFound(ConflictError):
    code = "ALREADY_CONFIRMED_OR_NOT_FOUND"

    def __init__(self, order_public_id: str):
        super().__init__(
            "Order not found or already confirmed",
            {"order_public_id": order_public_id},
        )


class AlreadyClaimed(ConflictError):
    code = "ALREADY_CLAIMED"

    def __init__(self, gift_public_id: str, held_by_order: str | None = None):
        super().__init__(
            f"Gift {gift_public_id} is already claimed",
            {"gift_public_id": gift_public_id, "held_by_order": held_by_order},
        )


class SelfApproval(ConflictError):
    code = "SELF_APPROVAL"

    def __init__(self, person_public_id: str):
        super().__init__(
            "An applicant cannot approve their own order",
            {"person_public_id": person_public_id},
        )


class DuplicateOrderId(ConflictError):
    code = "DUPLICATE_ORDER_ID"

    def __init__(self, order_id: str):
        super().__init__(f"Order id {order_id} is already in use", {"order_id": order_id})


class PartialClaimFailure(GiftGrabError):
    """
    The order was marked COMPLETE but not every gift could be claimed.

    Storage cannot roll back the order's status together with N gift writes,
    so this is a consistency anomaly that requires manual reconciliation.
    Never present it as success.
    """

    code = "PARTIAL_CLAIM_FAILURE"
    http_status = 409

    def __init__(self, order_public_id: str, failed: dict[str, str], claimed: list[str]):
        super().__init__(
            f"Order {order_public_id} confirmed but {len(failed)} gift(s) could not be claimed",
            {
                "order_public_id": order_public_id,
                "failed_gifts": failed,
                "claimed_gifts": claimed,
                "reconciliation_required": True,
            },
        )
        self.order_public_id = order_public_id
        self.failed = failed
        self.claimed = claimed


USER_MESSAGES = {
    EmptyBundle: "Pick at least one gift before submitting.",
    DuplicateGift: "The same gift was picked twice.",
    NotFoundError: "We couldn't find that. Check the link or code and try again.",
    AlreadyConfirmedOrNotFound: "This order was already confirmed or does not exist.",
    AlreadyClaimed: "Someone else already claimed this gift.",
    SelfApproval: "You cannot approve your own order. Ask another approver.",
    DuplicateOrderId: "This order code is already in use.",
    PartialClaimFailure: "The order was confirmed, but some gifts could not be handed over. The organizer has been asked to sort it out.",
}


def user_message(error: object) -> str:
    """Map an error value to the sentence shown to a participant."""
    for cls in type(error).__mro__:
        if cls in USER_MESSAGES:
            return USER_MESSAGES[cls]
    if isinstance(error, GiftGrabError):
        return error.message
    return str(error) or "Something went wrong. Please try again."
