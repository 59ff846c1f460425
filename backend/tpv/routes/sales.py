# Overview: Flask API routes for checkout and sales history.

# backend/tpv/routes/sales.py
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import checkout_service
from ..services.checkout_service import CheckoutError
from ..services.runtime import get_runtime
from ..services.stock_service import StockReferenceError
from ..validation import (
    ValidationError,
    parse_cents,
    parse_payment_method,
    parse_sale_lines,
    require_json_object,
)
from tpv.time_utils import parse_iso_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_user
def checkout_route():
    """
    Complete a sale.

    Request body:
    {
        "items": [{"productId": "p_cana", "quantity": 3, "mixerId": null}],
        "paymentMethod": "Efectivo",
        "amountPaidCents": 1000,        (optional, defaults to the total)
        "tableId": "t1",                (optional)
        "paymentMethodDetail": "..."    (optional)
    }

    Stock is decremented through recipes; a product or ingredient missing from
    the catalogue never blocks the sale unless the reject policy is set.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        runtime = get_runtime()

        lines = parse_sale_lines(data.get("items"), runtime.state.products)
        method = parse_payment_method(data.get("paymentMethod"))
        paid = data.get("amountPaidCents")
        paid = parse_cents(paid, "amountPaidCents") if paid is not None else None

        result = checkout_service.complete_sale(
            runtime,
            lines=lines,
            payment_method=method,
            seller_id=g.current_user.id,
            amount_paid_cents=paid,
            table_id=data.get("tableId"),
            payment_method_detail=data.get("paymentMethodDetail"),
        )
        return jsonify(result.to_dict()), 201

    except (ValidationError, CheckoutError) as e:
        return jsonify({"error": str(e)}), 400
    except StockReferenceError as e:
        return jsonify({"error": str(e), "missing": e.details.get("missing", [])}), 409
    except Exception:
        current_app.logger.exception("Failed to complete sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
def list_sales_route():
    """
    Sales, newest first.

    Query: shift_id, date (YYYY-MM-DD)
    """
    runtime = get_runtime()
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    sales = checkout_service.list_sales(runtime, shift_id=request.args.get("shift_id"), day=day)
    return jsonify({
        "sales": [s.to_dict() for s in sales],
        "total_cents": sum(s.total_cents for s in sales),
    }), 200


@sales_bp.get("/<sale_id>")
def get_sale_route(sale_id: str):
    for sale in get_runtime().state.sales:
        if sale.id == sale_id:
            return jsonify({"sale": sale.to_dict()}), 200
    return jsonify({"error": "Sale not found"}), 404
