# Overview: Flask API routes for shift operations; parses input and returns JSON responses.

# backend/tpv/routes/shifts.py
"""
Shift API Routes

DESIGN:
- Shift lifecycle: open -> close (immutable once closed)
- One open shift at a time per location
- Close-out computes expected cash and the discrepancy against the count

Writes to the store are best-effort; the response carries the write outcome.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import shift_service
from ..services.runtime import get_runtime
from ..services.shift_service import ShiftError
from ..validation import ValidationError, parse_cents, require_fields, require_json_object


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.post("/open")
@require_user
def open_shift_route():
    """
    Open a shift with the counted starting cash.

    Request body:
    {
        "initialBaseCents": 15000
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "initialBaseCents")
        base = parse_cents(data["initialBaseCents"], "initialBaseCents")

        runtime = get_runtime()
        shift = shift_service.open_shift(runtime.state.shifts, base, g.current_user.id)
        outcome = runtime.outbound.submit("shift", shift.id, runtime.store.upsert_shift, shift)

        return jsonify({"shift": shift.to_dict(), "sync": outcome.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ShiftError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/current")
def current_shift_route():
    shift = get_runtime().state.shifts.get_open()
    return jsonify({"shift": shift.to_dict() if shift else None}), 200


@shifts_bp.post("/close")
@require_user
def close_shift_route():
    """
    Close the open shift.

    Request body:
    {
        "countedCashCents": 15600
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "countedCashCents")
        counted = parse_cents(data["countedCashCents"], "countedCashCents")

        runtime = get_runtime()
        shift = shift_service.close_shift(runtime.state.shifts, counted)
        outcome = runtime.outbound.submit("shift", shift.id, runtime.store.upsert_shift, shift)

        if shift.discrepancy_cents:
            current_app.logger.warning(
                "Shift %s closed with discrepancy %d cents", shift.id, shift.discrepancy_cents
            )

        return jsonify({"shift": shift.to_dict(), "sync": outcome.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ShiftError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("")
def list_shifts_route():
    """Closed shifts, newest first."""
    history = sorted(get_runtime().state.shifts.history(), key=lambda s: s.start_time, reverse=True)
    return jsonify({"shifts": [s.to_dict() for s in history]}), 200


@shifts_bp.get("/<shift_id>/summary")
def shift_summary_route(shift_id: str):
    runtime = get_runtime()
    try:
        summary = shift_service.get_shift_summary(runtime.state.shifts, runtime.state.sales, shift_id)
    except ShiftError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(summary), 200
