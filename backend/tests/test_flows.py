"""
End-to-end client flows against the in-process server actions.
"""

import pytest

from giftgrab.client import GiftView, MemoryStorage, PersonView, SliceRegistry
from giftgrab.client.flows import ApprovalFlow, ClaimFlow, ClientSession, InProcessActions
from giftgrab.errors import USER_MESSAGES, AlreadyConfirmedOrNotFound, EmptyBundle, PartialClaimFailure
from giftgrab.models import Gift


def _person(person):
    return PersonView.from_dict(person.to_ref())


@pytest.fixture
def server(app):
    return InProcessActions(app)


@pytest.fixture
def world(db_session, cast, make_gift):
    """Alice and Carol each own one gift; Bob and Dan are applicants, Carol approves."""
    gifts = [make_gift(cast["owner"]), make_gift(cast["approver"])]
    return {
        "applicants": [_person(cast["applicant"]), _person(cast["other_applicant"])],
        "approvers": [_person(cast["approver"])],
        "owner": _person(cast["owner"]),
        "carol": _person(cast["approver"]),
        "gifts": [GiftView.from_api(g.to_dict()) for g in gifts],
    }


def _claim(server, world, applicant_index=0, registry=None):
    flow = ClaimFlow(registry or SliceRegistry(), server)
    flow.start(world["applicants"], world["gifts"])
    flow.select_applicant(world["applicants"][applicant_index].public_id)
    assert flow.grab_gift(world["owner"]).is_success
    return flow


class TestClaimFlow:
    def test_submit_creates_pending_order(self, server, world):
        flow = _claim(server, world)

        result = flow.submit()

        assert result.is_success
        order = server.get_order(result.value)
        assert order["status"] == "PENDING"
        assert order["gifts"][0]["public_id"] == world["gifts"][0].public_id
        assert flow.gifts.data.applicant_gifts == ()
        assert flow.gifts.state.loading is False

    def test_owner_without_free_gift(self, server, world):
        flow = _claim(server, world)
        result = flow.grab_gift(world["applicants"][1])
        assert result.error == "Dan Applicant has no unclaimed gift left"

    def test_second_grab_of_same_owner_is_rejected(self, server, world):
        flow = _claim(server, world)
        assert flow.grab_gift(world["owner"]).error == "Gift already added"

    def test_requires_applicant(self, server, world):
        flow = ClaimFlow(SliceRegistry(), server)
        flow.start(world["applicants"], world["gifts"])
        flow.grab_gift(world["owner"])
        assert flow.submit().error == "Select an applicant first"

    def test_empty_bundle_message(self, server, world):
        flow = ClaimFlow(SliceRegistry(), server)
        flow.start(world["applicants"], world["gifts"])
        flow.select_applicant(world["applicants"][0].public_id)
        assert flow.submit().error == USER_MESSAGES[EmptyBundle]

    def test_server_rejection_keeps_bundle(self, server, world):
        flow = _claim(server, world)
        assert flow.submit(order_id="fixed-order-1").is_success
        flow.grab_gift(world["owner"])

        result = flow.submit(order_id="fixed-order-1")

        assert result.is_failure
        assert len(flow.gifts.data.applicant_gifts) == 1

    def test_bundle_survives_reload(self, server, world):
        storage = MemoryStorage()
        _claim(server, world, registry=SliceRegistry(storage))

        restored = ClaimFlow(SliceRegistry(storage), server)

        assert [g.public_id for g in restored.gifts.data.applicant_gifts] == [world["gifts"][0].public_id]
        assert restored.applicants.data.selected_applicant == world["applicants"][0]

    def test_reload_drops_gift_claimed_elsewhere(self, server, world, db_session):
        storage = MemoryStorage()
        _claim(server, world, registry=SliceRegistry(storage))

        rival = _claim(server, world, applicant_index=1).submit().value
        assert server.confirm_order_result(rival, world["carol"].public_id).is_success

        db_session.expire_all()
        fresh = [GiftView.from_api(g.to_dict()) for g in db_session.query(Gift).order_by(Gift.id)]
        flow = ClaimFlow(SliceRegistry(storage), server)
        flow.start(world["applicants"], fresh)

        assert flow.gifts.data.applicant_gifts == ()
        assert flow.submit().error == USER_MESSAGES[EmptyBundle]


class TestApprovalFlow:
    def _submitted(self, server, world, applicant_index=0):
        return _claim(server, world, applicant_index).submit().value

    def test_confirm(self, server, world, outbox):
        pid = self._submitted(server, world)
        flow = ApprovalFlow(SliceRegistry(), server)
        assert flow.load(pid, world["approvers"]).is_success
        flow.select_approver(world["carol"].public_id)

        result = flow.confirm()

        assert result.is_success
        assert result.value.status == "COMPLETE"
        assert result.value.lines[0].claim_status == "CLAIMED"
        assert flow.orders.data.order == result.value
        assert [h.action for h in flow.orders.data.history] == ["CONFIRM"]

    def test_local_self_approval_never_reaches_server(self, server, world):
        pid = self._submitted(server, world)
        bob = world["applicants"][0]
        flow = ApprovalFlow(SliceRegistry(), server)
        flow.load(pid, world["approvers"] + [bob])
        flow.select_approver(bob.public_id)

        assert flow.confirm().error == "An applicant cannot approve their own order"
        assert server.get_order(pid)["status"] == "PENDING"

    def test_server_conflict_restores_server_view(self, server, world):
        pid = self._submitted(server, world)
        first = ApprovalFlow(SliceRegistry(), server)
        second = ApprovalFlow(SliceRegistry(), server)
        for flow in (first, second):
            flow.load(pid, world["approvers"])
            flow.select_approver(world["carol"].public_id)

        assert first.confirm().is_success
        result = second.confirm()

        assert result.error == USER_MESSAGES[AlreadyConfirmedOrNotFound]
        assert second.orders.data.order.status == "COMPLETE"
        assert second.orders.data.order.confirmed_by_approver.public_id == world["carol"].public_id

    def test_partial_failure_is_surfaced(self, server, world):
        first = self._submitted(server, world, applicant_index=0)
        second = self._submitted(server, world, applicant_index=1)

        for pid in (first, second):
            flow = ApprovalFlow(SliceRegistry(), server)
            flow.load(pid, world["approvers"])
            flow.select_approver(world["carol"].public_id)
            result = flow.confirm()

        assert result.error == USER_MESSAGES[PartialClaimFailure]
        order = flow.orders.data.order
        assert order.status == "COMPLETE"
        assert order.reconciliation_required is True
        assert order.lines[0].claim_status == "FAILED"

    def test_unknown_order(self, server, world):
        flow = ApprovalFlow(SliceRegistry(), server)
        assert flow.load("missing-order-1", world["approvers"]).is_failure


class TestClientSession:
    def test_bundle_size_from_config(self, app, world, monkeypatch):
        monkeypatch.setitem(app.config, "GIFTGRAB_MAX_BUNDLE_SIZE", 1)
        flow = ClientSession(app).claim_flow()
        flow.start(world["applicants"], world["gifts"])

        assert flow.grab_gift(world["owner"]).is_success
        assert flow.grab_gift(world["carol"]).error == "Maximum 1 gifts allowed per applicant"

    def test_state_dir_from_config(self, app, world, tmp_path, monkeypatch):
        monkeypatch.setitem(app.config, "GIFTGRAB_CLIENT_STATE_DIR", str(tmp_path))
        ClientSession(app).claim_flow().start(world["applicants"], world["gifts"])

        restored = ClientSession(app).claim_flow()

        assert (tmp_path / "giftgrab_gift.json").exists()
        assert len(restored.gifts.data.gift_list) == 2

    def test_without_state_dir_nothing_is_kept(self, app, world):
        ClientSession(app).claim_flow().start(world["applicants"], world["gifts"])
        assert ClientSession(app).claim_flow().gifts.data.gift_list == ()
