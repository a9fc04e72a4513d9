# Overview: Flask API routes for events; parses input and returns JSON responses.

# backend/giftgrab/routes/events.py
"""Event setup and gift lookup routes."""

from flask import Blueprint, request, jsonify, current_app

from ..services import event_service
from ..services.collaborators import record_from_row


events_bp = Blueprint("events", __name__, url_prefix="/api/events")

QR_RENDERER_KEY = "giftgrab.qr_renderer"


def _records(rows, label: str):
    if not isinstance(rows, list):
        raise ValueError(f"{label} must be a list")
    return [record_from_row(row) for row in rows]


@events_bp.post("/")
def create_event_route():
    """
    Create an event from imported rows.

    Body: name, email, applicants (list of row objects), approvers (list of
    row objects). One gift is created per applicant.
    """
    try:
        data = request.get_json(silent=True) or {}
        try:
            applicants = _records(data.get("applicants") or [], "applicants")
            approvers = _records(data.get("approvers") or [], "approvers")
        except (ValueError, AttributeError) as e:
            return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400

        result = event_service.create_event(
            data.get("name"),
            data.get("email"),
            applicants,
            approvers,
            qr_renderer=current_app.extensions.get(QR_RENDERER_KEY),
            base_url=request.host_url,
        )
        if result.is_failure:
            return jsonify(result.error.to_dict()), result.error.http_status

        return jsonify({"event": result.value.to_dict(include_lists=True)}), 201

    except Exception:
        current_app.logger.exception("Failed to create event")
        return jsonify({"error": "Internal server error"}), 500


@events_bp.get("/<public_id>")
def get_event_route(public_id: str):
    result = event_service.find_event(public_id)
    if result.is_failure:
        return jsonify({"event": None}), 404
    return jsonify({"event": result.value.to_dict(include_lists=True)}), 200


@events_bp.get("/<public_id>/gifts")
def list_event_gifts_route(public_id: str):
    """
    List an event's gifts.

    Query params:
    - owner: only gifts owned by this person public id
    - unclaimed=1: only gifts nobody has claimed yet
    """
    result = event_service.find_event(public_id)
    if result.is_failure:
        return jsonify(result.error.to_dict()), 404

    gifts = event_service.list_event_gifts(
        result.value,
        owner_public_id=request.args.get("owner"),
        unclaimed_only=request.args.get("unclaimed") in {"1", "true", "yes"},
    )
    return jsonify({"gifts": [g.to_dict() for g in gifts]}), 200
