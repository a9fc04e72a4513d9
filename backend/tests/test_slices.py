"""
Slice reducer and validator tests (applicant, approver, gift, order).
"""

from dataclasses import replace

import pytest

from giftgrab.client import FunctionalState, GiftView, MemoryStorage, OrderView, PersonView, SliceRegistry
from giftgrab.client.slices import APPLICANT_SLICE, APPROVER_SLICE, GIFT_SLICE, ORDER_SLICE, gift_slice
from giftgrab.client.slices.applicant import ClearApplicant, SelectApplicant, SetApplicantList
from giftgrab.client.slices.approver import SelectApprover, SetApproverList
from giftgrab.client.slices.gift import (
    AddGift,
    ClearGifts,
    GiftData,
    RemoveGift,
    SetGiftList,
    SetSearchQuery,
    available_gifts,
    can_submit,
    selected_gift_ids,
)
from giftgrab.client.slices.order import ClearOrder, ConfirmOrder, OrderData, SetOrder
from giftgrab.client.views import OrderLineView

ALICE = PersonView("alice-public-1", "Alice", "Owner", "Alice Owner")
BOB = PersonView("bob-public-1", "Bob", "Applicant", "Bob Applicant")
CAROL = PersonView("carol-public-1", "Carol", "Approver", "Carol Approver")


def _gift(n, owner=ALICE, claimed_by=None):
    return GiftView(
        public_id=f"gift-public-{n}",
        owner_public_id=owner.public_id,
        owner_name=owner.display_name,
        applicant_public_id=claimed_by,
        order_public_id="order-public-x" if claimed_by else None,
    )


def _pending_order():
    return OrderView(
        public_id="order-public-1",
        order_id="000111222333444",
        status="PENDING",
        applicant=BOB,
        lines=(OrderLineView("gift-public-1", ALICE.public_id, "PENDING"),),
    )


@pytest.fixture
def registry():
    return SliceRegistry()


# =============================================================================
# APPLICANT / APPROVER
# =============================================================================


class TestApplicantSlice:
    def test_select_from_list(self, registry):
        container = registry.mount(APPLICANT_SLICE)
        container.dispatch(SetApplicantList((ALICE, BOB)))

        assert container.dispatch(SelectApplicant(BOB)).is_success
        assert container.data.selected_applicant == BOB

    def test_select_outside_list(self, registry):
        container = registry.mount(APPLICANT_SLICE)
        container.dispatch(SetApplicantList((ALICE,)))
        assert container.dispatch(SelectApplicant(BOB)).error == "Applicant not found in applicant list"
        assert container.dispatch(SelectApplicant(None)).error == "Applicant data is required"

    def test_new_list_drops_stale_selection(self, registry):
        container = registry.mount(APPLICANT_SLICE)
        container.dispatch(SetApplicantList((ALICE, BOB)))
        container.dispatch(SelectApplicant(BOB))

        container.dispatch(SetApplicantList((ALICE,)))
        assert container.data.selected_applicant is None

        container.dispatch(SetApplicantList((ALICE, BOB)))
        container.dispatch(SelectApplicant(ALICE))
        container.dispatch(ClearApplicant())
        assert container.data.selected_applicant is None


class TestApproverSlice:
    def test_select_from_list(self, registry):
        container = registry.mount(APPROVER_SLICE)
        container.dispatch(SetApproverList((CAROL,)))
        assert container.dispatch(SelectApprover(CAROL)).is_success
        assert container.dispatch(SelectApprover(BOB)).error == "Approver not found in approver list"


# =============================================================================
# GIFT
# =============================================================================


class TestGiftSlice:
    def test_add_and_remove(self, registry):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetGiftList((_gift(1), _gift(2))))

        container.dispatch(AddGift(_gift(1)))
        assert selected_gift_ids(container.state) == ["gift-public-1"]
        assert can_submit(container.state)

        container.dispatch(RemoveGift("gift-public-1"))
        assert selected_gift_ids(container.state) == []
        assert not can_submit(container.state)

    @pytest.mark.parametrize("gift,message", [
        (None, "Gift data is required"),
        (_gift(9), "Gift not found in gift list"),
        (_gift(3, claimed_by="someone-else-1"), "Gift already claimed"),
    ])
    def test_add_rejections(self, registry, gift, message):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetGiftList((_gift(1), _gift(3, claimed_by="someone-else-1"))))

        result = container.dispatch(AddGift(gift))

        assert result.error == message
        assert container.data.applicant_gifts == ()

    def test_add_twice(self, registry):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetGiftList((_gift(1),)))
        container.dispatch(AddGift(_gift(1)))
        assert container.dispatch(AddGift(_gift(1))).error == "Gift already added"

    def test_bundle_limit(self, registry):
        container = registry.mount(gift_slice(max_gifts=2))
        gifts = tuple(_gift(n) for n in range(3))
        container.dispatch(SetGiftList(gifts))

        container.dispatch(AddGift(gifts[0]))
        container.dispatch(AddGift(gifts[1]))
        result = container.dispatch(AddGift(gifts[2]))

        assert result.error == "Maximum 2 gifts allowed per applicant"
        assert len(container.data.applicant_gifts) == 2

    def test_new_list_prunes_bundle(self, registry):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetGiftList((_gift(1), _gift(2), _gift(3))))
        for n in (1, 2, 3):
            container.dispatch(AddGift(_gift(n)))

        container.dispatch(SetGiftList((_gift(1, claimed_by="someone-else-1"), _gift(3))))

        assert selected_gift_ids(container.state) == ["gift-public-3"]

    def test_restored_bundle_is_capped(self):
        storage = MemoryStorage()
        gifts = tuple(_gift(n) for n in range(4))
        roomy = SliceRegistry(storage).mount(GIFT_SLICE)
        roomy.dispatch(SetGiftList(gifts))
        for gift in gifts:
            roomy.dispatch(AddGift(gift))

        tight = SliceRegistry(storage).mount(gift_slice(max_gifts=2))
        tight.dispatch(SetGiftList(gifts))

        assert selected_gift_ids(tight.state) == ["gift-public-0", "gift-public-1"]

    def test_same_cap_same_definition(self):
        assert gift_slice() is GIFT_SLICE
        assert gift_slice(max_gifts=2) is gift_slice(2)

    def test_default_limit_is_five(self, registry):
        container = registry.mount(GIFT_SLICE)
        gifts = tuple(_gift(n) for n in range(6))
        container.dispatch(SetGiftList(gifts))
        outcomes = [container.dispatch(AddGift(g)).is_success for g in gifts]
        assert outcomes == [True] * 5 + [False]

    def test_remove_requires_id(self, registry):
        container = registry.mount(GIFT_SLICE)
        assert container.dispatch(RemoveGift("")).error == "Invalid gift ID"

    def test_clear(self, registry):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetGiftList((_gift(1),)))
        container.dispatch(AddGift(_gift(1)))
        container.dispatch(ClearGifts())
        assert container.data.applicant_gifts == ()
        assert container.data.gift_list == (_gift(1),)

    def test_available_gifts_filters(self):
        state = FunctionalState(data=GiftData(
            gift_list=(_gift(1), _gift(2, owner=BOB), _gift(3, claimed_by="x-applicant-1")),
            applicant_gifts=(_gift(1),),
        ))
        assert [g.public_id for g in available_gifts(state)] == ["gift-public-2"]

        searched = replace(state, data=replace(state.data, search_query="alice", applicant_gifts=()))
        assert [g.public_id for g in available_gifts(searched)] == ["gift-public-1"]

    def test_search_query(self, registry):
        container = registry.mount(GIFT_SLICE)
        container.dispatch(SetSearchQuery("bob"))
        assert container.data.search_query == "bob"


# =============================================================================
# ORDER
# =============================================================================


class TestOrderSlice:
    def test_confirm_records_history(self, registry):
        container = registry.mount(ORDER_SLICE)
        container.dispatch(SetOrder(_pending_order()))

        result = container.dispatch(ConfirmOrder(CAROL, at=1234))

        assert result.is_success
        order = container.data.order
        assert order.status == "COMPLETE"
        assert order.confirmed_by_approver == CAROL
        (entry,) = container.data.history
        assert (entry.action, entry.actor_public_id, entry.timestamp) == ("CONFIRM", CAROL.public_id, 1234)

    @pytest.mark.parametrize("order,approver,message", [
        (None, CAROL, "No order loaded"),
        (_pending_order(), None, "Approver required for confirmation"),
        (_pending_order(), BOB, "An applicant cannot approve their own order"),
        (replace(_pending_order(), status="COMPLETE"), CAROL, "Only pending orders can be confirmed"),
    ])
    def test_confirm_rejections(self, registry, order, approver, message):
        container = registry.mount(ORDER_SLICE)
        if order is not None:
            container.dispatch(SetOrder(order))
        before = container.state

        assert container.dispatch(ConfirmOrder(approver)).error == message
        assert container.state is before

    def test_clear(self, registry):
        container = registry.mount(ORDER_SLICE)
        container.dispatch(SetOrder(_pending_order()))
        container.dispatch(ConfirmOrder(CAROL, at=1))
        container.dispatch(ClearOrder())
        assert container.data == OrderData()

    def test_order_data_survives_persistence(self):
        data = OrderData(order=_pending_order().confirmed_by(CAROL))
        assert OrderData.from_dict(data.to_dict()) == data
