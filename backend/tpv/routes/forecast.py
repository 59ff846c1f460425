# Overview: Flask API routes for purchase forecasting and auto-orders.

# backend/tpv/routes/forecast.py
"""
Forecast API Routes

The oracle is optional. When it is not configured or fails, the endpoints
answer 200 with status "unavailable" so the dashboard can say so.
"""

from flask import Blueprint, jsonify, current_app

from ..decorators import require_admin, require_user
from ..services import forecast_service
from ..services.forecast_service import FORECAST_OK
from ..services.runtime import get_runtime


forecast_bp = Blueprint("forecast", __name__, url_prefix="/api/forecast")

# Recent sales sent as context
SALES_CONTEXT_LIMIT = 100


def _predict():
    runtime = get_runtime()
    state = runtime.state
    recent_sales = sorted(state.sales, key=lambda s: s.timestamp)[-SALES_CONTEXT_LIMIT:]
    return runtime.forecaster.predict(
        state.ingredients.values(), recent_sales, state.products.values()
    )


@forecast_bp.get("/predictions")
@require_user
def predictions_route():
    return jsonify(_predict().to_dict()), 200


@forecast_bp.get("/alerts")
@require_user
def alerts_route():
    runtime = get_runtime()
    result = _predict()
    alerts = forecast_service.consumption_alerts(
        result.predictions,
        runtime.state.ingredients,
        alert_days=runtime.forecast_alert_days,
    )
    return jsonify({
        "status": result.status,
        "alerts": [p.to_dict() for p in alerts],
        "error": result.error,
    }), 200


@forecast_bp.post("/auto-order")
@require_user
@require_admin
def auto_order_route():
    """Turn the current predictions into one 'sent' order per supplier."""
    runtime = get_runtime()
    result = _predict()
    if result.status != FORECAST_OK:
        return jsonify({"status": result.status, "orders": [], "error": result.error}), 200

    try:
        orders = forecast_service.place_auto_order(
            result.predictions, runtime.state.ingredients, runtime.state.suppliers
        )
        outcomes = []
        for order in orders:
            runtime.state.purchase_orders.append(order)
            outcomes.append(
                runtime.outbound.submit("purchase_order", order.id, runtime.store.insert_purchase_order, order)
            )
        return jsonify({
            "status": result.status,
            "orders": [o.to_dict() for o in orders],
            "sync": [o.to_dict() for o in outcomes],
        }), 201
    except Exception:
        current_app.logger.exception("Failed to place auto-order")
        return jsonify({"error": "Internal server error"}), 500


@forecast_bp.get("/orders")
def list_orders_route():
    orders = sorted(get_runtime().state.purchase_orders, key=lambda o: o.date, reverse=True)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200
