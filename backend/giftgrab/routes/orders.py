# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/giftgrab/routes/orders.py
"""Order API routes. All lookups go through public ids."""

from flask import Blueprint, request, jsonify, current_app

from .. import actions
from ..services.identifier_service import generate_confirmation_code, generate_order_id


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("/")
def create_order_route():
    """
    Create a PENDING order for an applicant over a bundle of gifts.

    Body: applicant_public_id, gift_public_ids, optional order_id and
    confirmation_code (generated when omitted).
    """
    try:
        data = request.get_json(silent=True) or {}
        applicant_public_id = data.get("applicant_public_id")
        gift_public_ids = data.get("gift_public_ids")

        if not applicant_public_id:
            return jsonify({"error": "applicant_public_id required", "code": "VALIDATION_ERROR"}), 400
        if not isinstance(gift_public_ids, list):
            return jsonify({"error": "gift_public_ids must be a list", "code": "VALIDATION_ERROR"}), 400

        result = actions.make_order(
            applicant_public_id,
            gift_public_ids,
            data.get("order_id") or generate_order_id(),
            data.get("confirmation_code") or generate_confirmation_code(),
        )
        if result.is_failure:
            return jsonify(result.error.to_dict()), result.error.http_status

        return jsonify({"order_public_id": result.value}), 201

    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<public_id>")
def get_order_route(public_id: str):
    """
    Get an order by public id.

    A COMPLETE order with reconciliation_required set did not hand over every
    gift; clients must surface that instead of showing plain success.
    """
    try:
        order = actions.get_order(public_id)
        if order is None:
            return jsonify({"order": None}), 404
        return jsonify({"order": order}), 200

    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<public_id>/confirm")
def confirm_order_route(public_id: str):
    """
    Confirm an order as an approver.

    Body: approver_public_id.
    Partial claim failure answers 409 with code PARTIAL_CLAIM_FAILURE even
    though the order is now COMPLETE.
    """
    try:
        data = request.get_json(silent=True) or {}
        approver_public_id = data.get("approver_public_id")

        if not approver_public_id:
            return jsonify({
                "confirmed": False,
                "error": "approver_public_id required",
                "code": "VALIDATION_ERROR",
                "details": {},
            }), 400

        result = actions.confirm_order_result(public_id, approver_public_id)
        if result.is_failure:
            return jsonify({"confirmed": False, **result.error.to_dict()}), result.error.http_status

        return jsonify({"confirmed": True, "order": result.value}), 200

    except Exception:
        current_app.logger.exception("Failed to confirm order")
        return jsonify({"confirmed": False, "error": "Internal server error"}), 500
