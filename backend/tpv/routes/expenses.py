# Overview: Flask API routes for the income/expense ledger and quarterly tax models.

# backend/tpv/routes/expenses.py
import uuid

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_admin, require_user
from ..services import checkout_service, tax_service
from ..services.checkout_service import CheckoutError
from ..services.runtime import get_runtime
from ..services.tax_service import TaxPeriodError
from ..validation import (
    ValidationError,
    parse_cents,
    parse_rate,
    parse_tax_entry,
    require_fields,
    require_json_object,
)
from tpv.time_utils import today


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _response(entry, shift, outcomes):
    return jsonify({
        "entry": entry.to_dict(),
        "shift": shift.to_dict() if shift else None,
        "sync": [o.to_dict() for o in outcomes],
    })


@expenses_bp.post("")
@require_user
@require_admin
def create_entry_route():
    """
    Record a manual income or expense line.

    Request body:
    {
        "type": "expense",
        "concept": "Factura Mahou",
        "taxRate": 0.21,
        "totalCents": 12100,     (or baseCents)
        "date": "2026-03-01",    (optional, defaults to today)
        "isCashOut": false       (optional; true takes it out of the drawer)
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        entry = parse_tax_entry(data, uuid.uuid4().hex[:9])
        entry, shift, outcomes = checkout_service.register_expense(get_runtime(), entry)
        return _response(entry, shift, outcomes), 201

    except (ValidationError, CheckoutError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record ledger entry")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.post("/cash-out")
@require_user
def quick_cash_out_route():
    """
    Pay something from the drawer (VAT included in the amount).

    Request body:
    {
        "concept": "Hielo",
        "amountCents": 500,
        "taxRate": 0.21  (optional)
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "concept", "amountCents")
        rate = parse_rate(data["taxRate"]) if data.get("taxRate") is not None else None

        entry, shift, outcomes = checkout_service.quick_cash_out(
            get_runtime(),
            concept=str(data["concept"]).strip(),
            amount_cents=parse_cents(data["amountCents"], "amountCents"),
            tax_rate=rate,
        )
        return _response(entry, shift, outcomes), 201

    except (ValidationError, CheckoutError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record cash-out")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("")
def list_entries_route():
    entries = sorted(get_runtime().state.tax_entries, key=lambda e: e.date, reverse=True)
    entry_type = request.args.get("type")
    if entry_type:
        entries = [e for e in entries if e.type == entry_type]
    return jsonify({"entries": [e.to_dict() for e in entries]}), 200


@expenses_bp.get("/tax-models")
@require_user
@require_admin
def tax_models_route():
    """Modelo 303 and 130 for a quarter. Query: period=2026-1T (defaults to the current one)."""
    runtime = get_runtime()
    period = request.args.get("period") or tax_service.quarter_of(today())
    try:
        models = [
            tax_service.vat_model(
                runtime.state.sales, runtime.state.tax_entries, period,
                iva_rate=runtime.default_iva_rate,
            ),
            tax_service.irpf_instalment_model(
                runtime.state.sales, runtime.state.tax_entries, period,
                iva_rate=runtime.default_iva_rate, irpf_rate=runtime.irpf_rate,
            ),
        ]
    except TaxPeriodError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"period": period, "models": [m.to_dict() for m in models]}), 200
