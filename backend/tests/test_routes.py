"""
HTTP API tests.

Verifies:
- order creation and confirmation status codes and payloads
- partial claim failure answers 409 PARTIAL_CLAIM_FAILURE, never success
- event setup and gift listing
- /api/health reports flagged orders as degraded
"""

import pytest

from giftgrab.routes.events import QR_RENDERER_KEY


def _create_order(client, applicant, gifts, **extra):
    body = {
        "applicant_public_id": applicant.public_id,
        "gift_public_ids": [g.public_id for g in gifts],
        **extra,
    }
    return client.post("/api/orders/", json=body)


def _confirm(client, order_public_id, approver):
    return client.post(
        f"/api/orders/{order_public_id}/confirm",
        json={"approver_public_id": approver.public_id},
    )


# =============================================================================
# ORDERS
# =============================================================================


class TestOrderRoutes:
    def test_create_and_fetch(self, client, db_session, cast, owner_gift):
        response = _create_order(client, cast["applicant"], [owner_gift])
        assert response.status_code == 201
        pid = response.get_json()["order_public_id"]

        fetched = client.get(f"/api/orders/{pid}")
        assert fetched.status_code == 200
        order = fetched.get_json()["order"]
        assert order["status"] == "PENDING"
        assert order["order_id"]
        assert order["confirmation_code"]
        assert order["gifts"][0]["public_id"] == owner_gift.public_id
        assert order["gifts"][0]["claim_status"] == "PENDING"

    def test_supplied_order_id_is_kept(self, client, db_session, cast, owner_gift):
        response = _create_order(client, cast["applicant"], [owner_gift], order_id="123456789012345")
        pid = response.get_json()["order_public_id"]
        assert client.get(f"/api/orders/{pid}").get_json()["order"]["order_id"] == "123456789012345"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/orders/", json={}).status_code == 400
        response = client.post("/api/orders/", json={"applicant_public_id": "abcdefgh12", "gift_public_ids": "x"})
        assert response.status_code == 400

    def test_empty_bundle(self, client, db_session, cast):
        response = _create_order(client, cast["applicant"], [])
        assert response.status_code == 400
        assert response.get_json()["code"] == "EMPTY_BUNDLE"

    def test_duplicate_gift(self, client, db_session, cast, owner_gift):
        response = _create_order(client, cast["applicant"], [owner_gift, owner_gift])
        assert response.status_code == 400
        assert response.get_json()["code"] == "DUPLICATE_GIFT"

    def test_unknown_gift(self, client, db_session, cast):
        response = client.post("/api/orders/", json={
            "applicant_public_id": cast["applicant"].public_id,
            "gift_public_ids": ["unknown-gift-1"],
        })
        assert response.status_code == 404
        assert response.get_json()["details"]["entity"] == "Gift"

    @pytest.mark.parametrize("body", [
        {"gift_public_ids": [{"x": 1}]},
        {"order_id": 12345},
        {"confirmation_code": {"code": "x"}},
    ])
    def test_malformed_fields_are_400(self, client, db_session, cast, owner_gift, body):
        payload = {
            "applicant_public_id": cast["applicant"].public_id,
            "gift_public_ids": [owner_gift.public_id],
            **body,
        }

        response = client.post("/api/orders/", json=payload)

        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_unknown_order_is_404(self, client, db_session):
        response = client.get("/api/orders/not-a-real-order")
        assert response.status_code == 404
        assert response.get_json() == {"order": None}

    def test_confirm(self, client, db_session, cast, owner_gift, outbox):
        pid = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]

        response = _confirm(client, pid, cast["approver"])

        assert response.status_code == 200
        body = response.get_json()
        assert body["confirmed"] is True
        assert body["order"]["status"] == "COMPLETE"
        assert body["order"]["confirmed_by_approver"]["public_id"] == cast["approver"].public_id
        assert body["order"]["reconciliation_required"] is False
        assert body["order"]["confirmed_at"].endswith("Z")

    def test_confirm_twice(self, client, db_session, cast, owner_gift):
        pid = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]
        _confirm(client, pid, cast["approver"])

        response = _confirm(client, pid, cast["approver"])

        assert response.status_code == 409
        assert response.get_json()["code"] == "ALREADY_CONFIRMED_OR_NOT_FOUND"
        assert response.get_json()["confirmed"] is False

    def test_self_approval(self, client, db_session, cast, owner_gift):
        pid = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]
        response = _confirm(client, pid, cast["applicant"])
        assert response.status_code == 409
        assert response.get_json()["code"] == "SELF_APPROVAL"

    def test_confirm_requires_approver(self, client, db_session, cast, owner_gift):
        pid = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]
        response = client.post(f"/api/orders/{pid}/confirm", json={})
        assert response.status_code == 400

    def test_partial_claim_failure_is_not_success(self, client, db_session, cast, owner_gift):
        first = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]
        second = _create_order(client, cast["other_applicant"], [owner_gift]).get_json()["order_public_id"]
        assert _confirm(client, first, cast["approver"]).status_code == 200

        response = _confirm(client, second, cast["approver"])

        assert response.status_code == 409
        body = response.get_json()
        assert body["confirmed"] is False
        assert body["code"] == "PARTIAL_CLAIM_FAILURE"
        assert body["details"]["failed_gifts"] == {owner_gift.public_id: "ALREADY_CLAIMED"}
        assert body["details"]["reconciliation_required"] is True

        order = client.get(f"/api/orders/{second}").get_json()["order"]
        assert order["status"] == "COMPLETE"
        assert order["reconciliation_required"] is True
        assert order["gifts"][0]["claim_status"] == "FAILED"


# =============================================================================
# EVENTS
# =============================================================================


class FakeQRRenderer:
    def render(self, url):
        return "cG5n"


@pytest.fixture
def event_payload():
    return {
        "name": "Team Swap",
        "email": "organizer@example.com",
        "applicants": [
            {"first_name": "Alice", "last_name": "Owner"},
            {"firstName": "Bob", "lastName": "Applicant", "employee_id": "E2"},
        ],
        "approvers": [{"person_id": "P-9"}],
    }


class TestEventRoutes:
    def test_create_event(self, client, db_session, event_payload):
        response = client.post("/api/events/", json=event_payload)

        assert response.status_code == 201
        event = response.get_json()["event"]
        assert event["gift_count"] == 2
        assert event["approvers"][0]["display_name"] == "Person P-9"
        assert event["has_qr_codes"] is False

    def test_create_event_with_qr_renderer(self, app, client, db_session, event_payload, monkeypatch):
        monkeypatch.setitem(app.extensions, QR_RENDERER_KEY, FakeQRRenderer())
        response = client.post("/api/events/", json=event_payload)
        assert response.get_json()["event"]["has_qr_codes"] is True

    def test_bad_row_is_400(self, client, db_session, event_payload):
        event_payload["applicants"].append({"nickname": "??"})
        response = client.post("/api/events/", json=event_payload)
        assert response.status_code == 400

    def test_missing_email_is_400(self, client, db_session, event_payload):
        event_payload["email"] = ""
        response = client.post("/api/events/", json=event_payload)
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_list_gifts(self, client, db_session, event_payload):
        event = client.post("/api/events/", json=event_payload).get_json()["event"]
        alice = next(p for p in event["applicants"] if p["first_name"] == "Alice")
        bob = next(p for p in event["applicants"] if p["first_name"] == "Bob")

        gifts = client.get(f"/api/events/{event['public_id']}/gifts?owner={alice['public_id']}").get_json()["gifts"]
        assert len(gifts) == 1
        assert gifts[0]["owner"]["public_id"] == alice["public_id"]

        pid = client.post("/api/orders/", json={
            "applicant_public_id": bob["public_id"],
            "gift_public_ids": [gifts[0]["public_id"]],
        }).get_json()["order_public_id"]
        approver = event["approvers"][0]["public_id"]
        client.post(f"/api/orders/{pid}/confirm", json={"approver_public_id": approver})

        unclaimed = client.get(f"/api/events/{event['public_id']}/gifts?unclaimed=1").get_json()["gifts"]
        assert [g["owner"]["public_id"] for g in unclaimed] == [bob["public_id"]]

    def test_unknown_event(self, client, db_session):
        assert client.get("/api/events/unknown-event-1").status_code == 404
        assert client.get("/api/events/unknown-event-1/gifts").status_code == 404


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:
    def test_healthy(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_degraded_while_reconciliation_pending(self, client, db_session, cast, owner_gift):
        first = _create_order(client, cast["applicant"], [owner_gift]).get_json()["order_public_id"]
        second = _create_order(client, cast["other_applicant"], [owner_gift]).get_json()["order_public_id"]
        _confirm(client, first, cast["approver"])
        _confirm(client, second, cast["approver"])

        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "degraded"
        assert body["checks"]["reconciliation"]["details"]["order_public_ids"] == [second]
