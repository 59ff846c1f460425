# Overview: Forecasting oracle client, consumption alerts and synthetic auto-orders.

"""
Purchase forecasting.

The oracle is an LLM asked for stock-depletion predictions. Its answer is
used for display and for auto-orders only; values are not bounded here.

Results are tri-state:
- ok: at least one prediction
- empty: the oracle answered and has nothing to report
- unavailable: not configured, transport error, or an unreadable answer
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping

from openai import OpenAI

from ..entities import Ingredient, Prediction, Product, PurchaseOrder, Sale, Supplier
from tpv.time_utils import parse_iso_date, to_utc_z, today, utcnow

logger = logging.getLogger(__name__)

FORECAST_OK = "ok"
FORECAST_EMPTY = "empty"
FORECAST_UNAVAILABLE = "unavailable"

DEFAULT_SUPPLIER_NAME = "Proveedor General"

SYSTEM_PROMPT = """
Actúa como un experto en control de gestión y logística para hostelería española.
Analiza los datos para predecir roturas de stock y sugerir pedidos óptimos.
Devuelve ÚNICAMENTE un JSON válido con esta forma:
{"predictions": [{"ingredientId": "<string>", "name": "<string>",
  "estimatedDepletionDate": "YYYY-MM-DD", "recommendedQuantity": <number>,
  "urgency": "high|medium|low"}]}
Si no hay riesgo de rotura, devuelve {"predictions": []}.
"""


@dataclass(frozen=True)
class ForecastResult:
    status: str
    predictions: tuple[Prediction, ...] = ()
    error: str | None = None

    @classmethod
    def unavailable(cls, error: str) -> "ForecastResult":
        return cls(status=FORECAST_UNAVAILABLE, error=error)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "predictions": [p.to_dict() for p in self.predictions],
            "error": self.error,
        }


def build_context(
    ingredients: Iterable[Ingredient],
    sales: Iterable[Sale],
    products: Iterable[Product],
) -> dict:
    return {
        "negocio": "Cafetería Local en España",
        "inventario_actual": [
            {
                "id": i.id,
                "nombre": i.name,
                "stock_actual": i.stock,
                "minimo_seguridad": i.min_stock,
                "unidad": i.unit,
            }
            for i in ingredients
        ],
        "historico_ventas_reciente": [
            {
                "fecha": to_utc_z(s.timestamp),
                "items": [line.to_dict() for line in s.lines],
                "metodo": s.payment_method,
            }
            for s in sales
        ],
        "maestro_recetas": [
            {"nombre": p.name, "composicion": [r.to_dict() for r in p.recipe]}
            for p in products
        ],
    }


def parse_predictions(content: str) -> list[Prediction]:
    """
    Parse the oracle's JSON answer.

    Accepts {"predictions": [...]} or a bare list. Raises ValueError when the
    payload is not JSON or lacks the prediction list.
    """
    data: Any = json.loads(content)
    if isinstance(data, dict):
        data = data.get("predictions")
    if not isinstance(data, list):
        raise ValueError("forecast answer has no prediction list")
    return [Prediction.from_dict(item) for item in data if isinstance(item, dict) and item.get("ingredientId")]


class ForecastClient:
    """Thin wrapper over the OpenAI chat API."""

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini", client: Any = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def predict(
        self,
        ingredients: Iterable[Ingredient],
        sales: Iterable[Sale],
        products: Iterable[Product],
    ) -> ForecastResult:
        if not self.configured:
            return ForecastResult.unavailable("forecasting not configured")

        context_json = json.dumps(build_context(ingredients, sales, products), ensure_ascii=False)
        try:
            resp = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"Datos del negocio: {context_json}"},
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
            content = (resp.choices[0].message.content or "").strip()
        except Exception as exc:
            logger.exception("Forecast request failed")
            return ForecastResult.unavailable(str(exc))

        try:
            predictions = parse_predictions(content)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Unreadable forecast answer: %s", exc)
            return ForecastResult.unavailable("unreadable forecast answer")

        if not predictions:
            return ForecastResult(status=FORECAST_EMPTY)
        return ForecastResult(status=FORECAST_OK, predictions=tuple(predictions))


# =============================================================================
# ALERTS AND AUTO-ORDER
# =============================================================================

def consumption_alerts(
    predictions: Iterable[Prediction],
    ingredients: Mapping[str, Ingredient],
    *,
    alert_days: int = 10,
    on_date: date | None = None,
) -> list[Prediction]:
    """
    Predictions worth acting on: the ingredient is already at or below its
    minimum, or its estimated depletion falls within `alert_days`.
    """
    on_date = on_date or today()
    alerts = []
    for prediction in predictions:
        ing = ingredients.get(prediction.ingredient_id)
        is_low = ing.is_below_minimum if ing else False

        try:
            depletion = parse_iso_date(prediction.estimated_depletion_date)
        except ValueError:
            depletion = None
        depleting_soon = depletion is not None and (depletion - on_date).days <= alert_days

        if is_low or depleting_soon:
            alerts.append(prediction)
    return alerts


def place_auto_order(
    predictions: Iterable[Prediction],
    ingredients: Mapping[str, Ingredient],
    suppliers: Mapping[str, Supplier],
) -> list[PurchaseOrder]:
    """Group recommended quantities by supplier into synthetic 'sent' orders."""
    grouped: dict[str, list[tuple[str, float]]] = {}
    for prediction in predictions:
        ing = ingredients.get(prediction.ingredient_id)
        supplier = suppliers.get(ing.supplier_id) if ing and ing.supplier_id else None
        supplier_name = supplier.name if supplier else DEFAULT_SUPPLIER_NAME
        grouped.setdefault(supplier_name, []).append((prediction.name, prediction.recommended_quantity))

    now = utcnow()
    return [
        PurchaseOrder(
            id=uuid.uuid4().hex[:9].upper(),
            supplier_name=supplier_name,
            items=tuple(items),
            status="sent",
            date=now,
        )
        for supplier_name, items in grouped.items()
    ]
