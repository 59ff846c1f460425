# Overview: Flask API routes for waste (mermas) registration.

# backend/tpv/routes/waste.py
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..entities import WASTE_REASONS
from ..services import checkout_service
from ..services.checkout_service import CheckoutError
from ..services.runtime import get_runtime
from ..services.stock_service import StockReferenceError
from ..validation import (
    ValidationError,
    parse_choice,
    parse_quantity,
    require_fields,
    require_json_object,
)


waste_bp = Blueprint("waste", __name__, url_prefix="/api/waste")


@waste_bp.post("")
@require_user
def register_waste_route():
    """
    Register breakage, an invitation or staff consumption.

    Request body:
    {
        "productId": "p_cana",
        "quantity": 1,
        "reason": "breakage" | "complimentary" | "staff_consumption",
        "note": "..."  (optional)
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "productId", "quantity", "reason")

        waste, outcomes = checkout_service.register_waste(
            get_runtime(),
            product_id=str(data["productId"]),
            quantity=parse_quantity(data["quantity"]),
            reason=parse_choice(data["reason"], "reason", WASTE_REASONS),
            user_id=g.current_user.id,
            note=data.get("note"),
        )
        return jsonify({"waste": waste.to_dict(), "sync": [o.to_dict() for o in outcomes]}), 201

    except (ValidationError, CheckoutError) as e:
        return jsonify({"error": str(e)}), 400
    except StockReferenceError as e:
        return jsonify({"error": str(e), "missing": e.details.get("missing", [])}), 409
    except Exception:
        current_app.logger.exception("Failed to register waste")
        return jsonify({"error": "Internal server error"}), 500


@waste_bp.get("")
def list_waste_route():
    waste = sorted(get_runtime().state.waste, key=lambda w: w.timestamp, reverse=True)
    reason = request.args.get("reason")
    if reason:
        waste = [w for w in waste if w.reason == reason]
    return jsonify({"waste": [w.to_dict() for w in waste]}), 200
