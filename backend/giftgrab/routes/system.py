# backend/giftgrab/routes/system.py
"""
System health endpoint.

Reports database reachability and whether any confirmed order is waiting
for manual reconciliation.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Person, Gift, Order
from ..services import order_service
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        person_count = db.session.query(Person).count()
        gift_count = db.session.query(Gift).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "persons": person_count,
                "gifts": gift_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_reconciliation_health() -> dict:
    """
    Degraded while any COMPLETE order carries the partial-claim-failure flag.
    """
    start_time = time.time()
    try:
        flagged = order_service.list_orders_requiring_reconciliation()
        elapsed_ms = (time.time() - start_time) * 1000

        if flagged:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": f"{len(flagged)} order(s) require reconciliation",
                "details": {"order_public_ids": [o.public_id for o in flagged]},
            }
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"order_public_ids": []},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Reconciliation health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Reconciliation check error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    reconciliation_health = check_reconciliation_health()

    all_checks = [database_health, reconciliation_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "reconciliation": reconciliation_health,
        }
    }

    return response, http_status
