# Overview: UI flows; drive the slices and call the server action boundary.

"""
Client flows

ClaimFlow:    pick applicant -> grab gifts -> submit order
ApprovalFlow: load order -> pick approver -> confirm
ClientSession: registry + server actions for one participant, from app config

Local validation runs first through the slice middleware; the server re-checks
everything on submission. Every Failure a flow returns carries a sentence
meant for the participant (user_message for server errors, the validator's
own wording for local ones).
"""

from __future__ import annotations

import logging
from typing import Protocol

from ..errors import EmptyBundle, GiftGrabError, user_message
from ..fp import Failure, Result, Success
from ..services.claim_service import find_unclaimed_gift
from ..services.identifier_service import generate_confirmation_code, generate_order_id
from .registry import SliceRegistry
from .storage import ClientStore, JsonFileStorage
from .slices.applicant import APPLICANT_SLICE, SelectApplicant, SetApplicantList
from .slices.approver import APPROVER_SLICE, SelectApprover, SetApproverList
from .slices.gift import (
    GIFT_SLICE,
    MAX_GIFTS_PER_APPLICANT,
    AddGift,
    ClearGifts,
    RemoveGift,
    SetGiftList,
    gift_slice,
)
from .slices.order import ORDER_SLICE, ConfirmOrder, SetOrder
from .views import GiftView, OrderView, PersonView

logger = logging.getLogger("giftgrab.client")


class ServerActions(Protocol):
    def make_order(self, applicant_public_id: str, gift_public_ids: list[str],
                   order_id: str, confirmation_code: str) -> Result[str, GiftGrabError]: ...

    def get_order(self, order_public_id: str) -> dict | None: ...

    def confirm_order_result(self, order_public_id: str,
                             approver_public_id: str) -> Result[dict, GiftGrabError]: ...


class InProcessActions:
    """ServerActions that call giftgrab.actions directly inside an app context."""

    def __init__(self, app):
        self.app = app

    def make_order(self, applicant_public_id, gift_public_ids, order_id, confirmation_code):
        from .. import actions
        with self.app.app_context():
            return actions.make_order(applicant_public_id, gift_public_ids, order_id, confirmation_code)

    def get_order(self, order_public_id):
        from .. import actions
        with self.app.app_context():
            return actions.get_order(order_public_id)

    def confirm_order_result(self, order_public_id, approver_public_id):
        from .. import actions
        with self.app.app_context():
            return actions.confirm_order_result(order_public_id, approver_public_id)


def _find_person(people, public_id: str) -> PersonView | None:
    return next((p for p in people if p.public_id == public_id), None)


class ClaimFlow:
    def __init__(self, registry: SliceRegistry, server: ServerActions, gift_definition=GIFT_SLICE):
        self.registry = registry
        self.server = server
        self.applicants = registry.ensure(APPLICANT_SLICE)
        self.gifts = registry.ensure(gift_definition)

    def start(self, applicants: list[PersonView], gifts: list[GiftView]) -> None:
        """Load the event's people and gifts; earlier selections survive if still valid."""
        self.applicants.dispatch(SetApplicantList(tuple(applicants)))
        before = len(self.gifts.data.applicant_gifts)
        self.gifts.dispatch(SetGiftList(tuple(gifts)))
        dropped = before - len(self.gifts.data.applicant_gifts)
        if dropped:
            logger.info("Dropped %d gift(s) from the bundle that are no longer available", dropped)

    def select_applicant(self, public_id: str) -> Result[PersonView, str]:
        person = _find_person(self.applicants.data.applicant_list, public_id)
        if person is None:
            return Failure("Applicant not found in applicant list")
        return self.applicants.dispatch(SelectApplicant(person)).map(lambda _: person)

    def grab_gift(self, owner: PersonView) -> Result[GiftView, str]:
        """Add owner's unclaimed gift to the bundle."""
        found = find_unclaimed_gift(owner, self.gifts.data.gift_list)
        if found.is_nothing:
            return Failure(f"{owner.display_name} has no unclaimed gift left")
        gift = found.value
        return self.gifts.dispatch(AddGift(gift)).map(lambda _: gift)

    def remove_gift(self, gift_public_id: str) -> Result[bool, str]:
        return self.gifts.dispatch(RemoveGift(gift_public_id)).map(lambda _: True)

    def submit(self, order_id: str | None = None, confirmation_code: str | None = None) -> Result[str, str]:
        """Create the order on the server; Success carries its public id."""
        applicant = self.applicants.data.selected_applicant
        if applicant is None:
            return Failure("Select an applicant first")
        gift_ids = [g.public_id for g in self.gifts.data.applicant_gifts]
        if not gift_ids:
            return Failure(user_message(EmptyBundle()))

        self.gifts.set_loading(True)
        try:
            result = self.server.make_order(
                applicant.public_id,
                gift_ids,
                order_id or generate_order_id(),
                confirmation_code or generate_confirmation_code(),
            )
        finally:
            self.gifts.set_loading(False)

        if result.is_failure:
            logger.info("Order submission rejected: %s", result.error)
            return Failure(user_message(result.error))

        self.gifts.dispatch(ClearGifts())
        return Success(result.value)


class ApprovalFlow:
    def __init__(self, registry: SliceRegistry, server: ServerActions):
        self.registry = registry
        self.server = server
        self.approvers = registry.ensure(APPROVER_SLICE)
        self.orders = registry.ensure(ORDER_SLICE)

    def load(self, order_public_id: str, approvers: list[PersonView]) -> Result[OrderView, str]:
        self.approvers.dispatch(SetApproverList(tuple(approvers)))
        return self._refresh(order_public_id)

    def _refresh(self, order_public_id: str) -> Result[OrderView, str]:
        payload = self.server.get_order(order_public_id)
        if payload is None:
            return Failure("This order was already confirmed or does not exist.")
        order = OrderView.from_api(payload)
        return self.orders.dispatch(SetOrder(order)).map(lambda _: order)

    def select_approver(self, public_id: str) -> Result[PersonView, str]:
        person = _find_person(self.approvers.data.approver_list, public_id)
        if person is None:
            return Failure("Approver not found in approver list")
        return self.approvers.dispatch(SelectApprover(person)).map(lambda _: person)

    def confirm(self) -> Result[OrderView, str]:
        """
        Confirm the loaded order as the selected approver.

        The order slice is updated optimistically, then replaced by what the
        server reports. On failure the server's view of the order is reloaded,
        so a partial claim failure shows up as COMPLETE with
        reconciliation_required set.
        """
        approver = self.approvers.data.selected_approver
        order = self.orders.data.order
        local = self.orders.dispatch(ConfirmOrder(approver))
        if local.is_failure:
            return Failure(local.error)

        self.orders.set_loading(True)
        try:
            result = self.server.confirm_order_result(order.public_id, approver.public_id)
        finally:
            self.orders.set_loading(False)

        if result.is_failure:
            logger.info("Confirmation of %s failed: %s", order.public_id, result.error)
            if self._refresh(order.public_id).is_failure:
                self.orders.dispatch(SetOrder(order))
            return Failure(user_message(result.error))

        confirmed = OrderView.from_api(result.value)
        self.orders.dispatch(SetOrder(confirmed))
        return Success(confirmed)


class ClientSession:
    """
    One participant's client session wired from app config.

    GIFTGRAB_CLIENT_STATE_DIR selects a JsonFileStorage (otherwise state lives
    only as long as the registry); GIFTGRAB_MAX_BUNDLE_SIZE caps the gift slice.
    """

    def __init__(self, app, storage: ClientStore | None = None):
        state_dir = app.config.get("GIFTGRAB_CLIENT_STATE_DIR")
        if storage is None and state_dir:
            storage = JsonFileStorage(state_dir)
        self.registry = SliceRegistry(storage)
        self.server = InProcessActions(app)
        self.gift_definition = gift_slice(
            int(app.config.get("GIFTGRAB_MAX_BUNDLE_SIZE", MAX_GIFTS_PER_APPLICANT))
        )

    def claim_flow(self) -> ClaimFlow:
        return ClaimFlow(self.registry, self.server, self.gift_definition)

    def approval_flow(self) -> ApprovalFlow:
        return ApprovalFlow(self.registry, self.server)
