"""
Checkout, waste and expense recording.

Each operation updates the in-memory state first, then mirrors the changes to
the persistence collaborator through the outbound queue. Persistence outcomes
are reported back but never undo the in-memory change.

WRITE ORDER (sale inside an open shift):
1. shift upsert (totals including this sale)
2. sale insert (references the shift)
3. one ingredient upsert per ingredient touched by the recipe decrement
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from ..entities import (
    PAYMENT_METHODS,
    TABLE_FREE,
    TAX_EXPENSE,
    WASTE_REASONS,
    Sale,
    SaleLine,
    Shift,
    TaxEntry,
    WasteEntry,
)
from tpv.time_utils import today, utcnow
from . import shift_service, stock_service
from .outbound import ChainResult, PendingWrite, WriteOutcome
from .runtime import Runtime


class CheckoutError(Exception):
    """Raised for sale, waste and expense recording errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CheckoutResult:
    sale: Sale
    shift: Shift | None
    sync: ChainResult
    ingredient_outcomes: list[WriteOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "shift": self.shift.to_dict() if self.shift else None,
            "sync": self.sync.to_dict(),
            "ingredient_sync": [o.to_dict() for o in self.ingredient_outcomes],
        }


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _persist_consumption(runtime: Runtime, before: dict, after: dict) -> list[WriteOutcome]:
    runtime.state.ingredients = after
    store = runtime.store
    return [
        runtime.outbound.submit("ingredient", ing.id, store.upsert_ingredient, ing)
        for ing in stock_service.changed_ingredients(before, after)
    ]


# =============================================================================
# SALES
# =============================================================================

def complete_sale(
    runtime: Runtime,
    *,
    lines: list[SaleLine],
    payment_method: str,
    seller_id: str,
    amount_paid_cents: int | None = None,
    table_id: str | None = None,
    payment_method_detail: str | None = None,
) -> CheckoutResult:
    """
    Record a completed sale.

    - Stamps tenant, timestamp, seller and the open shift (if any)
    - Adds the sale to the open shift's totals
    - Decrements stock through recipes and mixers (never blocks the sale)
    - Frees the table the sale was served at

    Raises:
        CheckoutError: Empty cart, bad quantities, unknown payment method or table
        StockReferenceError: Only under the reject policy, before anything changes
    """
    state = runtime.state

    if not lines:
        raise CheckoutError("Cannot complete a sale with no items")
    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError(f"Unknown payment method: {payment_method}")
    for line in lines:
        if line.quantity <= 0:
            raise CheckoutError("Item quantities must be positive", details={"product_id": line.product_id})
        if line.unit_price_cents < 0:
            raise CheckoutError("Item prices cannot be negative", details={"product_id": line.product_id})
    if table_id is not None and table_id not in state.tables:
        raise CheckoutError("Table not found", details={"table_id": table_id})

    total = sum(line.line_total_cents for line in lines)
    paid = total if amount_paid_cents is None else amount_paid_cents
    if paid < total:
        raise CheckoutError("Amount paid is less than the total", details={"total_cents": total})

    open_shift = state.shifts.get_open()
    sale = Sale(
        id=_new_id(),
        timestamp=utcnow(),
        lines=tuple(lines),
        total_cents=total,
        amount_paid_cents=paid,
        change_cents=max(paid - total, 0),
        payment_method=payment_method,
        payment_method_detail=payment_method_detail,
        seller_id=seller_id,
        tenant_id=runtime.tenant_id,
        table_id=table_id,
        shift_id=open_shift.id if open_shift else None,
    )

    # Stock first in memory so a reject-policy miss leaves nothing half-done
    before = state.ingredients
    after = stock_service.apply_sale(
        sale, before, state.products, policy=runtime.missing_reference_policy
    )

    state.sales.append(sale)
    updated_shift = shift_service.record_sale(state.shifts, sale)

    store = runtime.store
    writes = []
    if updated_shift is not None:
        writes.append(PendingWrite("shift", updated_shift.id, store.upsert_shift, (updated_shift,)))
    writes.append(PendingWrite("sale", sale.id, store.insert_sale, (sale,)))
    sync = runtime.outbound.submit_chain(writes)

    ingredient_outcomes = _persist_consumption(runtime, before, after)

    if table_id is not None:
        table = state.tables[table_id]
        table.status = TABLE_FREE
        table.current_order = []
        table.temp_name = None
        table.last_activity = sale.timestamp

    return CheckoutResult(sale=sale, shift=updated_shift, sync=sync, ingredient_outcomes=ingredient_outcomes)


def list_sales(runtime: Runtime, *, shift_id: str | None = None, day=None) -> list[Sale]:
    sales = runtime.state.sales
    if shift_id is not None:
        sales = [s for s in sales if s.shift_id == shift_id]
    if day is not None:
        sales = [s for s in sales if s.timestamp.date() == day]
    return sorted(sales, key=lambda s: s.timestamp, reverse=True)


# =============================================================================
# WASTE
# =============================================================================

def register_waste(
    runtime: Runtime,
    *,
    product_id: str,
    quantity: float,
    reason: str,
    user_id: str,
    note: str | None = None,
) -> tuple[WasteEntry, list[WriteOutcome]]:
    """Record breakage, invitations or staff consumption and consume stock."""
    state = runtime.state

    if quantity <= 0:
        raise CheckoutError("Waste quantity must be positive")
    if reason not in WASTE_REASONS:
        raise CheckoutError(f"Unknown waste reason: {reason}")

    waste = WasteEntry(
        id=_new_id(),
        timestamp=utcnow(),
        product_id=product_id,
        quantity=quantity,
        reason=reason,
        user_id=user_id,
        note=note,
    )

    before = state.ingredients
    after = stock_service.apply_waste(waste, before, state.products, policy=runtime.missing_reference_policy)

    state.waste.append(waste)
    outcomes = [runtime.outbound.submit("waste", waste.id, runtime.store.insert_waste, waste)]
    outcomes.extend(_persist_consumption(runtime, before, after))
    return waste, outcomes


# =============================================================================
# EXPENSES
# =============================================================================

def register_expense(runtime: Runtime, entry: TaxEntry) -> tuple[TaxEntry, Shift | None, list[WriteOutcome]]:
    """
    Record a ledger line. Cash-out expenses also come out of the open shift's
    drawer; other entries never touch the shift.
    """
    state = runtime.state
    if entry.total_cents < 0 or entry.base_cents < 0:
        raise CheckoutError("Ledger amounts cannot be negative")

    state.tax_entries.append(entry)
    outcomes = [runtime.outbound.submit("tax_entry", entry.id, runtime.store.insert_tax_entry, entry)]

    updated_shift = None
    if entry.type == TAX_EXPENSE:
        updated_shift = shift_service.record_cash_out_expense(state.shifts, entry)
    if updated_shift is not None:
        outcomes.append(runtime.outbound.submit("shift", updated_shift.id, runtime.store.upsert_shift, updated_shift))

    return entry, updated_shift, outcomes


def quick_cash_out(
    runtime: Runtime,
    *,
    concept: str,
    amount_cents: int,
    tax_rate: float | None = None,
) -> tuple[TaxEntry, Shift | None, list[WriteOutcome]]:
    """Cash taken from the drawer to pay a supplier on the spot (VAT included)."""
    if not concept:
        raise CheckoutError("Concept required")
    if amount_cents <= 0:
        raise CheckoutError("Amount must be positive")

    rate = runtime.quick_expense_iva_rate if tax_rate is None else tax_rate
    entry = TaxEntry(
        id=_new_id(),
        date=today(),
        type=TAX_EXPENSE,
        concept=concept,
        base_cents=int(round(amount_cents / (1 + rate))),
        tax_rate=rate,
        total_cents=amount_cents,
        manual=True,
        is_cash_out=True,
    )
    return register_expense(runtime, entry)
