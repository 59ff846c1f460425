# Overview: In-memory entity types for the bar/café POS state.

"""
Entity types held in memory by the running application.

CONVENTIONS:
- Money is integer euro cents (`*_cents`). Stock and recipe quantities are floats.
- Timestamps are UTC-naive datetimes; `to_dict()` serializes them as ISO-8601 'Z'.
- `to_dict()` / `from_dict()` use the application-side camelCase naming. The
  storage side uses snake_case (see services/persistence.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from tpv.time_utils import parse_iso_date, parse_iso_datetime, to_iso_date, to_utc_z


# =============================================================================
# VOCABULARY
# =============================================================================

PAYMENT_CASH = "Efectivo"
PAYMENT_CARD = "Tarjeta"
PAYMENT_CASHGUARD = "CashGuard"
PAYMENT_DATAFONO = "Datáfono"
PAYMENT_OTHER = "Otro"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_CASHGUARD, PAYMENT_DATAFONO, PAYMENT_OTHER)

# Drawer buckets. A method belongs to at most one of them.
CASH_EQUIVALENT_METHODS = frozenset({PAYMENT_CASH, PAYMENT_CASHGUARD})
CARD_EQUIVALENT_METHODS = frozenset({PAYMENT_CARD, PAYMENT_DATAFONO})

SHIFT_OPEN = "open"
SHIFT_CLOSED = "closed"

TAX_INCOME = "income"
TAX_EXPENSE = "expense"
TAX_ENTRY_TYPES = (TAX_INCOME, TAX_EXPENSE)

WASTE_BREAKAGE = "breakage"
WASTE_COMPLIMENTARY = "complimentary"
WASTE_STAFF = "staff_consumption"
WASTE_REASONS = (WASTE_BREAKAGE, WASTE_COMPLIMENTARY, WASTE_STAFF)

TABLE_FREE = "free"
TABLE_OCCUPIED = "occupied"
TABLE_AWAITING_PAYMENT = "awaiting_payment"
TABLE_STATUSES = (TABLE_FREE, TABLE_OCCUPIED, TABLE_AWAITING_PAYMENT)

ZONE_INDOOR = "indoor"
ZONE_TERRACE = "terrace"
ZONE_BAR = "bar"
TABLE_ZONES = (ZONE_INDOOR, ZONE_TERRACE, ZONE_BAR)

URGENCY_LEVELS = ("high", "medium", "low")

# Mixer picked as "Sólo / Con Hielo" on a combinado: nothing extra to decrement
NO_MIXER = "manual"


# =============================================================================
# CATALOGUE
# =============================================================================

@dataclass
class Ingredient:
    """Raw-material unit. Stock has no floor."""
    id: str
    name: str
    stock: float
    unit: str
    min_stock: float = 0.0
    cost_per_unit_cents: int = 0
    supplier_id: str | None = None

    @property
    def is_below_minimum(self) -> bool:
        return self.stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "stock": self.stock,
            "unit": self.unit,
            "minStock": self.min_stock,
            "costPerUnitCents": self.cost_per_unit_cents,
            "supplierId": self.supplier_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ingredient":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            stock=float(data.get("stock") or 0),
            unit=data.get("unit") or "unid",
            min_stock=float(data.get("minStock") or 0),
            cost_per_unit_cents=int(data.get("costPerUnitCents") or 0),
            supplier_id=data.get("supplierId"),
        )


@dataclass(frozen=True)
class RecipeLine:
    ingredient_id: str
    quantity: float

    def to_dict(self) -> dict:
        return {"ingredientId": self.ingredient_id, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "RecipeLine":
        return cls(ingredient_id=str(data["ingredientId"]), quantity=float(data["quantity"]))


@dataclass
class Product:
    """
    Sellable item. The recipe is the per-unit ingredient consumption table.

    A product meant for stock tracking should have a non-empty recipe; that is
    checked where products are created, not here.
    """
    id: str
    name: str
    category: str
    price_cents: int
    recipe: list[RecipeLine] = field(default_factory=list)
    image_url: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "priceCents": self.price_cents,
            "recipe": [line.to_dict() for line in self.recipe],
            "imageUrl": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=data.get("category") or "",
            price_cents=int(data.get("priceCents") or 0),
            recipe=[RecipeLine.from_dict(r) for r in (data.get("recipe") or [])],
            image_url=data.get("imageUrl") or "",
        )


@dataclass
class Supplier:
    id: str
    name: str
    contact_name: str = ""
    phone: str = ""
    email: str = ""
    associated_ingredients: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contactName": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "associatedIngredients": list(self.associated_ingredients),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Supplier":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            contact_name=data.get("contactName") or "",
            phone=data.get("phone") or "",
            email=data.get("email") or "",
            associated_ingredients=[str(i) for i in (data.get("associatedIngredients") or [])],
        )


@dataclass
class User:
    id: str
    name: str
    role: str  # admin | seller
    pin: str = ""

    def to_dict(self) -> dict:
        # PIN stays server-side
        return {"id": self.id, "name": self.name, "role": self.role}


# =============================================================================
# SALES
# =============================================================================

@dataclass(frozen=True)
class SaleLine:
    product_id: str
    quantity: float
    unit_price_cents: int
    name: str | None = None
    mixer_id: str | None = None

    @property
    def line_total_cents(self) -> int:
        return int(round(self.unit_price_cents * self.quantity))

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPriceCents": self.unit_price_cents,
            "name": self.name,
            "mixerId": self.mixer_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleLine":
        return cls(
            product_id=str(data["productId"]),
            quantity=float(data["quantity"]),
            unit_price_cents=int(data.get("unitPriceCents") or 0),
            name=data.get("name"),
            mixer_id=data.get("mixerId"),
        )


@dataclass(frozen=True)
class Sale:
    """Completed transaction. Created once at checkout, never edited."""
    id: str
    timestamp: datetime
    lines: tuple[SaleLine, ...]
    total_cents: int
    amount_paid_cents: int
    change_cents: int
    payment_method: str
    seller_id: str
    tenant_id: str
    table_id: str | None = None
    shift_id: str | None = None
    payment_method_detail: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "items": [line.to_dict() for line in self.lines],
            "totalCents": self.total_cents,
            "amountPaidCents": self.amount_paid_cents,
            "changeCents": self.change_cents,
            "paymentMethod": self.payment_method,
            "paymentMethodDetail": self.payment_method_detail,
            "sellerId": self.seller_id,
            "tableId": self.table_id,
            "tenantId": self.tenant_id,
            "shiftId": self.shift_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=str(data["id"]),
            timestamp=parse_iso_datetime(data["timestamp"]),
            lines=tuple(SaleLine.from_dict(i) for i in (data.get("items") or [])),
            total_cents=int(data.get("totalCents") or 0),
            amount_paid_cents=int(data.get("amountPaidCents") or 0),
            change_cents=int(data.get("changeCents") or 0),
            payment_method=data.get("paymentMethod") or PAYMENT_OTHER,
            payment_method_detail=data.get("paymentMethodDetail"),
            seller_id=str(data.get("sellerId") or ""),
            table_id=data.get("tableId"),
            tenant_id=str(data.get("tenantId") or ""),
            shift_id=data.get("shiftId"),
        )


# =============================================================================
# SHIFTS
# =============================================================================

@dataclass(frozen=True)
class SecurityEvent:
    """Cash-drawer anomaly attached to a shift (camera count vs. app count)."""
    id: str
    timestamp: datetime
    type: str  # mismatch | detection
    camera_value_cents: int
    app_paid_value_cents: int | None = None
    snapshot_url: str | None = None
    video_ref: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "type": self.type,
            "cameraValueCents": self.camera_value_cents,
            "appPaidValueCents": self.app_paid_value_cents,
            "snapshotUrl": self.snapshot_url,
            "videoRef": self.video_ref,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SecurityEvent":
        return cls(
            id=str(data["id"]),
            timestamp=parse_iso_datetime(data["timestamp"]),
            type=data.get("type") or "mismatch",
            camera_value_cents=int(data.get("cameraValueCents") or 0),
            app_paid_value_cents=data.get("appPaidValueCents"),
            snapshot_url=data.get("snapshotUrl"),
            video_ref=data.get("videoRef") or "",
        )


@dataclass(frozen=True)
class Shift:
    """
    One cash-drawer session.

    LIFECYCLE:
    - open: running totals grow with every sale and cash-out expense
    - closed: expected cash and discrepancy fixed; no further changes

    Updates produce a new Shift (dataclasses.replace); ShiftRepository holds
    the current version.
    """
    id: str
    start_time: datetime
    initial_base_cents: int
    user_id: str
    status: str = SHIFT_OPEN
    total_sales_cents: int = 0
    total_card_cents: int = 0
    total_cash_sales_cents: int = 0
    total_expenses_cents: int = 0
    end_time: datetime | None = None
    final_cash_cents: int | None = None
    expected_cash_cents: int | None = None
    discrepancy_cents: int | None = None
    discrepancy_events: tuple[SecurityEvent, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.status == SHIFT_OPEN

    @property
    def running_expected_cash_cents(self) -> int:
        """Cash that should be in the drawer right now."""
        return self.initial_base_cents + self.total_cash_sales_cents - self.total_expenses_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startTime": to_utc_z(self.start_time),
            "endTime": to_utc_z(self.end_time),
            "initialBaseCents": self.initial_base_cents,
            "finalCashCents": self.final_cash_cents,
            "expectedCashCents": self.expected_cash_cents,
            "discrepancyCents": self.discrepancy_cents,
            "totalSalesCents": self.total_sales_cents,
            "totalCardCents": self.total_card_cents,
            "totalCashSalesCents": self.total_cash_sales_cents,
            "totalExpensesCents": self.total_expenses_cents,
            "status": self.status,
            "userId": self.user_id,
            "discrepancyEvents": [e.to_dict() for e in self.discrepancy_events],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Shift":
        return cls(
            id=str(data["id"]),
            start_time=parse_iso_datetime(data["startTime"]),
            end_time=parse_iso_datetime(data.get("endTime")),
            initial_base_cents=int(data.get("initialBaseCents") or 0),
            final_cash_cents=data.get("finalCashCents"),
            expected_cash_cents=data.get("expectedCashCents"),
            discrepancy_cents=data.get("discrepancyCents"),
            total_sales_cents=int(data.get("totalSalesCents") or 0),
            total_card_cents=int(data.get("totalCardCents") or 0),
            total_cash_sales_cents=int(data.get("totalCashSalesCents") or 0),
            total_expenses_cents=int(data.get("totalExpensesCents") or 0),
            status=data.get("status") or SHIFT_OPEN,
            user_id=str(data.get("userId") or ""),
            discrepancy_events=tuple(
                SecurityEvent.from_dict(e) for e in (data.get("discrepancyEvents") or [])
            ),
        )


# =============================================================================
# LEDGER AND WASTE
# =============================================================================

@dataclass(frozen=True)
class TaxEntry:
    """Manual income/expense ledger line. Cash-out expenses leave the drawer."""
    id: str
    date: date
    type: str
    concept: str
    base_cents: int
    tax_rate: float
    total_cents: int
    manual: bool = True
    is_cash_out: bool = False
    attachment_url: str | None = None

    @property
    def tax_cents(self) -> int:
        return self.total_cents - self.base_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "type": self.type,
            "concept": self.concept,
            "baseCents": self.base_cents,
            "taxRate": self.tax_rate,
            "totalCents": self.total_cents,
            "manual": self.manual,
            "isCashOut": self.is_cash_out,
            "attachmentUrl": self.attachment_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaxEntry":
        return cls(
            id=str(data["id"]),
            date=parse_iso_date(data["date"]),
            type=data.get("type") or TAX_EXPENSE,
            concept=data.get("concept") or "",
            base_cents=int(data.get("baseCents") or 0),
            tax_rate=float(data.get("taxRate") or 0),
            total_cents=int(data.get("totalCents") or 0),
            manual=bool(data.get("manual", True)),
            is_cash_out=bool(data.get("isCashOut") or False),
            attachment_url=data.get("attachmentUrl"),
        )


@dataclass(frozen=True)
class WasteEntry:
    """Breakage, complimentary drink or staff consumption. No revenue."""
    id: str
    timestamp: datetime
    product_id: str
    quantity: float
    reason: str
    user_id: str
    note: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "productId": self.product_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "userId": self.user_id,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WasteEntry":
        return cls(
            id=str(data["id"]),
            timestamp=parse_iso_datetime(data["timestamp"]),
            product_id=str(data["productId"]),
            quantity=float(data["quantity"]),
            reason=data.get("reason") or WASTE_BREAKAGE,
            user_id=str(data.get("userId") or ""),
            note=data.get("note"),
        )


# =============================================================================
# TABLES
# =============================================================================

@dataclass
class Table:
    id: str
    number: str
    zone: str
    status: str = TABLE_FREE
    temp_name: str | None = None
    current_order: list[SaleLine] = field(default_factory=list)
    last_activity: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "tempName": self.temp_name,
            "zone": self.zone,
            "status": self.status,
            "currentOrder": [line.to_dict() for line in self.current_order],
            "lastActivity": to_utc_z(self.last_activity),
        }


@dataclass(frozen=True)
class TableLog:
    id: str
    timestamp: datetime
    user_id: str
    user_name: str
    action: str  # move | rename | open | save
    details: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "userId": self.user_id,
            "userName": self.user_name,
            "action": self.action,
            "details": self.details,
        }


# =============================================================================
# FORECASTING AND PURCHASING
# =============================================================================

@dataclass(frozen=True)
class Prediction:
    ingredient_id: str
    name: str
    estimated_depletion_date: str
    recommended_quantity: float
    urgency: str

    def to_dict(self) -> dict:
        return {
            "ingredientId": self.ingredient_id,
            "name": self.name,
            "estimatedDepletionDate": self.estimated_depletion_date,
            "recommendedQuantity": self.recommended_quantity,
            "urgency": self.urgency,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Prediction":
        return cls(
            ingredient_id=str(data["ingredientId"]),
            name=str(data.get("name") or ""),
            estimated_depletion_date=str(data.get("estimatedDepletionDate") or ""),
            recommended_quantity=float(data.get("recommendedQuantity") or 0),
            urgency=str(data.get("urgency") or "low"),
        )


@dataclass(frozen=True)
class PurchaseOrder:
    """Synthetic order produced by auto-order. No procurement behind it."""
    id: str
    supplier_name: str
    items: tuple[tuple[str, float], ...]
    status: str
    date: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplierName": self.supplier_name,
            "items": [{"name": name, "quantity": qty} for name, qty in self.items],
            "status": self.status,
            "date": to_utc_z(self.date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PurchaseOrder":
        return cls(
            id=str(data["id"]),
            supplier_name=data.get("supplierName") or "",
            items=tuple((i["name"], float(i["quantity"])) for i in (data.get("items") or [])),
            status=data.get("status") or "sent",
            date=parse_iso_datetime(data["date"]),
        )


@dataclass(frozen=True)
class TaxModel:
    """Quarterly self-assessment figure (Modelo 303, 130)."""
    code: str
    name: str
    period: str
    total_base_cents: int
    tax_amount_cents: int
    status: str = "pending"
    details: tuple[TaxEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "period": self.period,
            "totalBaseCents": self.total_base_cents,
            "taxAmountCents": self.tax_amount_cents,
            "status": self.status,
            "details": [d.to_dict() for d in self.details],
        }
