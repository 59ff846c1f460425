from __future__ import annotations

from typing import Any, Iterable, Mapping

from .entities import (
    PAYMENT_METHODS,
    TAX_ENTRY_TYPES,
    Ingredient,
    Product,
    RecipeLine,
    SaleLine,
    Supplier,
    TaxEntry,
)
from tpv.time_utils import parse_iso_date, today


# Maximum price: 9,999,999.99 EUR (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate id)."""


def require_json_object(payload: Any) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def require_fields(payload: Mapping, *fields: str) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_cents(value: Any, field_name: str, *, allow_negative: bool = False) -> int:
    """
    Strict integer cents.

    Rejects floats, decimals and scientific notation so that rounding never
    happens silently at the API boundary.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        cents = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field_name} must be an integer amount of cents")
        try:
            cents = int(stripped)
        except ValueError:
            raise ValidationError(f"{field_name} must be an integer amount of cents")
    else:
        raise ValidationError(f"{field_name} must be an integer amount of cents")

    if cents < 0 and not allow_negative:
        raise ValidationError(f"{field_name} must be >= 0")
    if abs(cents) > MAX_PRICE_CENTS:
        raise ValidationError(f"{field_name} cannot exceed {MAX_PRICE_CENTS}")
    return cents


def parse_quantity(value: Any, field_name: str = "quantity", *, allow_zero: bool = False) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    try:
        qty = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if qty != qty or qty in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_name} must be a finite number")
    if qty < 0 or (qty == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be > 0")
    return qty


def parse_rate(value: Any, field_name: str = "taxRate") -> float:
    """Tax rates are fractions: 0.10 for 10%."""
    rate = parse_quantity(value, field_name, allow_zero=True)
    if rate >= 1:
        raise ValidationError(f"{field_name} must be a fraction below 1 (e.g. 0.21)")
    return rate


def parse_choice(value: Any, field_name: str, choices: Iterable[str]) -> str:
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(f"{field_name} must be one of: {', '.join(choices)}")
    return value


# =============================================================================
# ENTITY PAYLOADS
# =============================================================================

def parse_sale_lines(items: Any, products: Mapping[str, Product]) -> list[SaleLine]:
    """
    Cart lines from the request. A missing unit price falls back to the
    catalogue price; the product does not have to exist in the catalogue.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each item must be an object")
        require_fields(item, "productId", "quantity")
        product = products.get(str(item["productId"]))

        if item.get("unitPriceCents") is not None:
            price = parse_cents(item["unitPriceCents"], "unitPriceCents")
        elif product is not None:
            price = product.price_cents
        else:
            raise ValidationError(f"unitPriceCents required for unknown product {item['productId']}")

        lines.append(
            SaleLine(
                product_id=str(item["productId"]),
                quantity=parse_quantity(item["quantity"]),
                unit_price_cents=price,
                name=item.get("name") or (product.name if product else None),
                mixer_id=item.get("mixerId"),
            )
        )
    return lines


def parse_payment_method(value: Any) -> str:
    return parse_choice(value, "paymentMethod", PAYMENT_METHODS)


def parse_recipe(items: Any) -> list[RecipeLine]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("recipe must be a list")
    recipe = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each recipe line must be an object")
        require_fields(item, "ingredientId", "quantity")
        recipe.append(RecipeLine(str(item["ingredientId"]), parse_quantity(item["quantity"])))
    return recipe


def parse_ingredient(payload: Mapping, existing: Ingredient | None = None) -> Ingredient:
    """Create (existing=None) or patch an ingredient. Stock may be negative."""
    if existing is None:
        require_fields(payload, "id", "name", "unit")
        base = Ingredient(id=str(payload["id"]), name="", stock=0.0, unit="")
    else:
        base = existing

    def number(key: str, current: float) -> float:
        if key not in payload:
            return current
        value = payload[key]
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValidationError(f"{key} must be a number")
        try:
            return float(value)
        except ValueError:
            raise ValidationError(f"{key} must be a number")

    name = str(payload.get("name", base.name)).strip()
    if not name:
        raise ValidationError("name cannot be blank")

    return Ingredient(
        id=base.id,
        name=name,
        stock=number("stock", base.stock),
        unit=str(payload.get("unit", base.unit)).strip() or base.unit,
        min_stock=number("minStock", base.min_stock),
        cost_per_unit_cents=(
            parse_cents(payload["costPerUnitCents"], "costPerUnitCents")
            if "costPerUnitCents" in payload
            else base.cost_per_unit_cents
        ),
        supplier_id=payload.get("supplierId", base.supplier_id),
    )


def parse_product(payload: Mapping, existing: Product | None = None) -> Product:
    if existing is None:
        require_fields(payload, "id", "name", "category", "priceCents")
        base = Product(id=str(payload["id"]), name="", category="", price_cents=0)
    else:
        base = existing

    name = str(payload.get("name", base.name)).strip()
    if not name:
        raise ValidationError("name cannot be blank")

    return Product(
        id=base.id,
        name=name,
        category=str(payload.get("category", base.category)).strip(),
        price_cents=(
            parse_cents(payload["priceCents"], "priceCents") if "priceCents" in payload else base.price_cents
        ),
        recipe=parse_recipe(payload["recipe"]) if "recipe" in payload else list(base.recipe),
        image_url=str(payload.get("imageUrl", base.image_url) or ""),
    )


def parse_supplier(payload: Mapping, supplier_id: str) -> Supplier:
    """New supplier. associatedIngredients is a list of ingredient ids, possibly empty."""
    require_fields(payload, "name")
    name = str(payload["name"]).strip()
    if not name:
        raise ValidationError("name cannot be blank")

    ingredient_ids = payload.get("associatedIngredients") or []
    if not isinstance(ingredient_ids, list) or not all(isinstance(i, str) and i for i in ingredient_ids):
        raise ValidationError("associatedIngredients must be a list of ingredient ids")

    return Supplier(
        id=supplier_id,
        name=name,
        contact_name=str(payload.get("contactName") or "").strip(),
        phone=str(payload.get("phone") or "").strip(),
        email=str(payload.get("email") or "").strip(),
        associated_ingredients=list(dict.fromkeys(ingredient_ids)),
    )


def parse_tax_entry(payload: Mapping, entry_id: str) -> TaxEntry:
    """
    Manual ledger line. Either totalCents or baseCents must be given; the
    other is derived from taxRate.
    """
    require_fields(payload, "type", "concept", "taxRate")
    entry_type = parse_choice(payload["type"], "type", TAX_ENTRY_TYPES)
    rate = parse_rate(payload["taxRate"])

    if payload.get("totalCents") is not None:
        total = parse_cents(payload["totalCents"], "totalCents")
        base = (
            parse_cents(payload["baseCents"], "baseCents")
            if payload.get("baseCents") is not None
            else int(round(total / (1 + rate)))
        )
    elif payload.get("baseCents") is not None:
        base = parse_cents(payload["baseCents"], "baseCents")
        total = int(round(base * (1 + rate)))
    else:
        raise ValidationError("totalCents or baseCents required")

    if base > total:
        raise ValidationError("baseCents cannot exceed totalCents")

    try:
        entry_date = parse_iso_date(payload["date"]) if payload.get("date") else today()
    except ValueError:
        raise ValidationError("date must be an ISO-8601 date")

    return TaxEntry(
        id=entry_id,
        date=entry_date,
        type=entry_type,
        concept=str(payload["concept"]).strip(),
        base_cents=base,
        tax_rate=rate,
        total_cents=total,
        manual=True,
        is_cash_out=bool(payload.get("isCashOut", False)),
        attachment_url=payload.get("attachmentUrl"),
    )
