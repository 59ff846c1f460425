# Overview: Stock Propagator; turns sales and waste into ingredient decrements via recipes.

"""
Recipe-based stock decrement (authoritative)

- A consumption event (sale line or waste entry) is converted into ingredient
  decrements through the product recipe: per_unit_quantity x event_quantity.
- A sale line may carry a mixer; it is decremented by event_quantity directly,
  unless it is the NO_MIXER sentinel.
- No lower bound: stock may go negative. "Below minimum" is a read-time check.
- Decrements commute: the final stock does not depend on event order.
- Inputs are never mutated; callers get a new ingredient mapping back.

Lookup misses (unknown product, unknown ingredient, unknown mixer) follow the
MissingReferencePolicy:
- ignore: nothing to decrement, silently
- warn: nothing to decrement, logged
- reject: StockReferenceError before any decrement is applied
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping

from ..entities import NO_MIXER, Ingredient, Product, Sale, WasteEntry

logger = logging.getLogger(__name__)

POLICY_IGNORE = "ignore"
POLICY_WARN = "warn"
POLICY_REJECT = "reject"
MISSING_REFERENCE_POLICIES = (POLICY_IGNORE, POLICY_WARN, POLICY_REJECT)


class StockReferenceError(ValueError):
    """Raised under the reject policy when a consumption references an unknown id."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def normalize_policy(value: str | None) -> str:
    policy = (value or POLICY_IGNORE).strip().lower()
    if policy not in MISSING_REFERENCE_POLICIES:
        raise ValueError(f"Unknown missing-reference policy: {value!r}")
    return policy


def _decrements_for(
    product_id: str,
    event_quantity: float,
    ingredients: Mapping[str, Ingredient],
    products: Mapping[str, Product],
    mixer_id: str | None,
) -> tuple[list[tuple[str, float]], list[dict]]:
    """Return (ingredient_id, amount) pairs to subtract and the list of lookup misses."""
    decrements: list[tuple[str, float]] = []
    misses: list[dict] = []

    product = products.get(product_id)
    if product is None:
        misses.append({"kind": "product", "id": product_id})
    else:
        for line in product.recipe:
            if line.ingredient_id not in ingredients:
                misses.append({"kind": "ingredient", "id": line.ingredient_id, "product_id": product_id})
                continue
            decrements.append((line.ingredient_id, line.quantity * event_quantity))

    if mixer_id and mixer_id != NO_MIXER:
        if mixer_id in ingredients:
            decrements.append((mixer_id, event_quantity))
        else:
            misses.append({"kind": "mixer", "id": mixer_id, "product_id": product_id})

    return decrements, misses


def _handle_misses(misses: list[dict], policy: str) -> None:
    if not misses:
        return
    if policy == POLICY_REJECT:
        first = misses[0]
        raise StockReferenceError(
            f"Unknown {first['kind']} reference: {first['id']}",
            details={"missing": misses},
        )
    if policy == POLICY_WARN:
        for miss in misses:
            logger.warning("Stock consumption skipped unknown %s %s", miss["kind"], miss["id"])


def _apply(ingredients: Mapping[str, Ingredient], decrements: Iterable[tuple[str, float]]) -> dict[str, Ingredient]:
    updated = dict(ingredients)
    for ingredient_id, amount in decrements:
        ing = updated[ingredient_id]
        updated[ingredient_id] = replace(ing, stock=ing.stock - amount)
    return updated


def apply_consumption(
    product_id: str,
    event_quantity: float,
    ingredients: Mapping[str, Ingredient],
    products: Mapping[str, Product],
    *,
    mixer_id: str | None = None,
    policy: str = POLICY_IGNORE,
) -> dict[str, Ingredient]:
    """
    Decrement ingredient stock for `event_quantity` units of a product.

    Returns the full ingredient mapping; untouched ingredients are the same
    objects as in the input, touched ones are replaced.
    """
    decrements, misses = _decrements_for(product_id, event_quantity, ingredients, products, mixer_id)
    _handle_misses(misses, policy)
    return _apply(ingredients, decrements)


def apply_sale(
    sale: Sale,
    ingredients: Mapping[str, Ingredient],
    products: Mapping[str, Product],
    *,
    policy: str = POLICY_IGNORE,
) -> dict[str, Ingredient]:
    """Apply every line of a sale, including mixers. All-or-nothing under reject."""
    decrements: list[tuple[str, float]] = []
    misses: list[dict] = []
    for line in sale.lines:
        line_decrements, line_misses = _decrements_for(
            line.product_id, line.quantity, ingredients, products, line.mixer_id
        )
        decrements.extend(line_decrements)
        misses.extend(line_misses)

    _handle_misses(misses, policy)
    return _apply(ingredients, decrements)


def apply_waste(
    waste: WasteEntry,
    ingredients: Mapping[str, Ingredient],
    products: Mapping[str, Product],
    *,
    policy: str = POLICY_IGNORE,
) -> dict[str, Ingredient]:
    """Waste consumes stock exactly like a sale of the same quantity (no mixer)."""
    return apply_consumption(waste.product_id, waste.quantity, ingredients, products, policy=policy)


def changed_ingredients(before: Mapping[str, Ingredient], after: Mapping[str, Ingredient]) -> list[Ingredient]:
    """Ingredients whose record was replaced by a consumption."""
    return [ing for key, ing in after.items() if before.get(key) is not ing]


def low_stock(ingredients: Mapping[str, Ingredient]) -> list[Ingredient]:
    """Ingredients at or below their minimum, furthest below it (in stock units) first."""
    below = [ing for ing in ingredients.values() if ing.is_below_minimum]
    return sorted(below, key=lambda ing: ing.stock - ing.min_stock)
