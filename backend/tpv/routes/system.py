# backend/tpv/routes/system.py
"""
System health and sync endpoints.

The persistence collaborator is optional: health reports "local_only" when it
is not configured and "degraded" when the last write to it failed.
"""

import time
from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..models import IngredientRecord, SaleRecord, ShiftRecord
from ..services.runtime import get_runtime
from tpv.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    """
    Check store connectivity with a few row counts.

    Returns dict with status and details.
    """
    if not get_runtime().store.configured:
        return {"status": "not_configured"}

    start_time = time.time()
    try:
        details = {
            "ingredients": db.session.query(IngredientRecord).count(),
            "sales": db.session.query(SaleRecord).count(),
            "shifts": db.session.query(ShiftRecord).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    runtime = get_runtime()
    database = check_database_health()
    forecast_configured = runtime.forecaster.configured

    status = "ok" if database["status"] in ("healthy", "not_configured") else "degraded"
    return jsonify({
        "status": status,
        "timestamp": to_utc_z(utcnow()),
        "tenant_id": runtime.tenant_id,
        "sync_status": runtime.outbound.sync_status,
        "checks": {
            "database": database,
            "forecast": {"status": "configured" if forecast_configured else "not_configured"},
        },
    }), 200 if status == "ok" else 503


@system_bp.get("/sync")
def sync_status():
    """Sync indicator plus the most recent write outcomes."""
    runtime = get_runtime()
    limit = request.args.get("limit", default=50, type=int)
    return jsonify({
        "sync_status": runtime.outbound.sync_status,
        "failure_count": runtime.outbound.failure_count,
        "recent": [o.to_dict() for o in runtime.outbound.recent(max(1, min(limit, 200)))],
    }), 200


@system_bp.get("/users")
def list_users():
    return jsonify({"users": [u.to_dict() for u in get_runtime().state.users.values()]}), 200
