# backend/partsdesk/routes/system.py
"""
System health and dashboard endpoints.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth
from ..services import reporting_service
from ..storage import get_store
from partsdesk.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_storage_health() -> dict:
    """
    Check the entity store answers a basic read.

    Returns dict with status and details.
    """
    store = get_store()
    start_time = time.time()
    try:
        product_count = len(store.list_products())
        user_count = len(store.list_users())
    except SQLAlchemyError:
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "backend": store.backend_name,
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }

    return {
        "status": "healthy",
        "backend": store.backend_name,
        "latency_ms": round((time.time() - start_time) * 1000, 2),
        "details": {
            "products": product_count,
            "users": user_count,
        },
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: storage reachable
    - 503: storage unhealthy
    """
    storage = check_storage_health()
    http_status = 200 if storage["status"] == "healthy" else 503
    return {
        "status": storage["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"storage": storage},
    }, http_status


@system_bp.get("/dashboard")
@require_auth
def dashboard():
    """Inventory and sales overview."""
    return reporting_service.dashboard_summary()
