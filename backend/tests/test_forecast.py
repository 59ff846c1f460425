"""
Forecasting tests with a fake chat-completions client.

Verifies:
- Tri-state result: ok, empty, unavailable
- Alerts for low stock or near depletion
- Auto-orders grouped by supplier
"""

import json
from datetime import date

import pytest

from conftest import fake_openai_client
from tpv import seed_data
from tpv.entities import Ingredient, Prediction, Supplier
from tpv.services import forecast_service
from tpv.services.forecast_service import (
    DEFAULT_SUPPLIER_NAME,
    FORECAST_EMPTY,
    FORECAST_OK,
    FORECAST_UNAVAILABLE,
    ForecastClient,
)


def _predict(client):
    ingredients = seed_data.initial_ingredients()
    products = seed_data.initial_products()
    return ForecastClient(api_key=None, client=client).predict(ingredients, [], products)


PREDICTION = {
    "ingredientId": "ing_cerveza",
    "name": "Cerveza (Barril 50L)",
    "estimatedDepletionDate": "2026-03-05",
    "recommendedQuantity": 2,
    "urgency": "high",
}


class TestForecastClient:

    def test_not_configured_is_unavailable(self):
        result = ForecastClient(api_key=None).predict([], [], [])

        assert result.status == FORECAST_UNAVAILABLE

    def test_ok_result(self):
        client, completions = fake_openai_client(json.dumps({"predictions": [PREDICTION]}))

        result = _predict(client)

        assert result.status == FORECAST_OK
        assert result.predictions[0].ingredient_id == "ing_cerveza"
        assert result.predictions[0].recommended_quantity == 2.0
        assert completions.calls[0]["response_format"] == {"type": "json_object"}

    def test_bare_list_is_accepted(self):
        client, _ = fake_openai_client(json.dumps([PREDICTION]))

        assert _predict(client).status == FORECAST_OK

    def test_empty_answer_is_empty_not_unavailable(self):
        client, _ = fake_openai_client(json.dumps({"predictions": []}))

        result = _predict(client)

        assert result.status == FORECAST_EMPTY
        assert result.predictions == ()

    @pytest.mark.parametrize("content", ["not json", json.dumps({"foo": 1}), ""])
    def test_unreadable_answer_is_unavailable(self, content):
        client, _ = fake_openai_client(content)

        assert _predict(client).status == FORECAST_UNAVAILABLE

    def test_transport_error_is_unavailable(self):
        client, _ = fake_openai_client(error=ConnectionError("timeout"))

        result = _predict(client)

        assert result.status == FORECAST_UNAVAILABLE
        assert "timeout" in result.error


class TestAlertsAndOrders:

    def test_alerts_for_low_or_soon_depleted(self):
        ingredients = {
            "low": Ingredient(id="low", name="Low", stock=1, unit="L", min_stock=5),
            "ok": Ingredient(id="ok", name="Ok", stock=50, unit="L", min_stock=5),
        }
        predictions = [
            Prediction("low", "Low", "2026-12-31", 10, "medium"),
            Prediction("ok", "Ok", "2026-03-05", 10, "high"),
            Prediction("ok", "Ok", "2026-06-01", 10, "low"),
            Prediction("ok", "Ok", "soon", 10, "low"),
        ]

        alerts = forecast_service.consumption_alerts(
            predictions, ingredients, alert_days=10, on_date=date(2026, 3, 1)
        )

        assert [(p.ingredient_id, p.estimated_depletion_date) for p in alerts] == [
            ("low", "2026-12-31"),
            ("ok", "2026-03-05"),
        ]

    def test_auto_order_groups_by_supplier(self):
        ingredients = {
            "a": Ingredient(id="a", name="A", stock=1, unit="L", supplier_id="sup1"),
            "b": Ingredient(id="b", name="B", stock=1, unit="L", supplier_id="sup1"),
            "c": Ingredient(id="c", name="C", stock=1, unit="L"),
        }
        suppliers = {"sup1": Supplier(id="sup1", name="Mahou San Miguel")}
        predictions = [
            Prediction("a", "A", "2026-03-05", 2, "high"),
            Prediction("b", "B", "2026-03-05", 3, "high"),
            Prediction("c", "C", "2026-03-05", 1, "low"),
        ]

        orders = forecast_service.place_auto_order(predictions, ingredients, suppliers)

        by_supplier = {o.supplier_name: o for o in orders}
        assert set(by_supplier) == {"Mahou San Miguel", DEFAULT_SUPPLIER_NAME}
        assert by_supplier["Mahou San Miguel"].items == (("A", 2), ("B", 3))
        assert all(o.status == "sent" for o in orders)
