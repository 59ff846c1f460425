"""
Shift Ledger: cash-drawer sessions and close-out reconciliation.

DESIGN PRINCIPLES:
- At most one open shift per location, enforced by ShiftRepository
- Running totals only grow while the shift is open
- Closed shifts are immutable and live in the history
- expected cash = initial base + cash sales - cash-out expenses
- discrepancy = counted cash - expected cash
"""

from __future__ import annotations

import uuid
from dataclasses import replace

from ..entities import (
    CARD_EQUIVALENT_METHODS,
    CASH_EQUIVALENT_METHODS,
    SHIFT_CLOSED,
    SHIFT_OPEN,
    Sale,
    SecurityEvent,
    Shift,
    TaxEntry,
)
from tpv.time_utils import utcnow


class ShiftError(Exception):
    """Raised for shift management errors."""
    pass


# =============================================================================
# REPOSITORY
# =============================================================================

class ShiftRepository:
    """
    Holds the open-shift slot and the closed-shift history.

    The "at most one open shift" rule lives here: `open()` refuses a second
    shift and `close()` is the only way to empty the slot.
    """

    def __init__(self, history: list[Shift] | None = None):
        self._open: Shift | None = None
        self._history: list[Shift] = list(history or [])

    def get_open(self) -> Shift | None:
        return self._open

    def open(self, shift: Shift) -> Shift:
        if self._open is not None:
            raise ShiftError(f"A shift is already open (shift {self._open.id})")
        if shift.status != SHIFT_OPEN:
            raise ShiftError("Only open shifts can occupy the open slot")
        self._open = shift
        return shift

    def replace_open(self, shift: Shift) -> Shift:
        """Store a new version of the open shift (same id, still open)."""
        if self._open is None or self._open.id != shift.id:
            raise ShiftError("Shift is not the open shift")
        if shift.status != SHIFT_OPEN:
            raise ShiftError("Use close() to close a shift")
        self._open = shift
        return shift

    def close(self, shift_id: str, closed: Shift) -> Shift:
        if self._open is None:
            raise ShiftError("No open shift")
        if self._open.id != shift_id or closed.id != shift_id:
            raise ShiftError(f"Shift {shift_id} is not the open shift")
        if closed.status != SHIFT_CLOSED:
            raise ShiftError("Closed version must have status closed")
        self._history.append(closed)
        self._open = None
        return closed

    def history(self) -> list[Shift]:
        return list(self._history)

    def get(self, shift_id: str) -> Shift | None:
        if self._open is not None and self._open.id == shift_id:
            return self._open
        for shift in self._history:
            if shift.id == shift_id:
                return shift
        return None


# =============================================================================
# LEDGER OPERATIONS
# =============================================================================

def new_shift_id() -> str:
    return f"s-{uuid.uuid4().hex[:12]}"


def open_shift(repo: ShiftRepository, initial_base_cents: int, owner_user_id: str) -> Shift:
    """
    Open a new shift with the counted starting cash.

    Raises:
        ShiftError: If a shift is already open or the base is negative
    """
    if initial_base_cents < 0:
        raise ShiftError("Initial base cannot be negative")

    shift = Shift(
        id=new_shift_id(),
        start_time=utcnow(),
        initial_base_cents=initial_base_cents,
        user_id=owner_user_id,
        status=SHIFT_OPEN,
    )
    return repo.open(shift)


def record_sale(repo: ShiftRepository, sale: Sale) -> Shift | None:
    """
    Add a completed sale to the open shift's running totals.

    Returns the updated shift, or None when no shift is open (the sale still
    stands, it just belongs to no shift). Cash-equivalent and card-equivalent
    methods are exclusive buckets; "Otro" only counts towards total sales.
    """
    shift = repo.get_open()
    if shift is None:
        return None

    total = sale.total_cents
    updated = replace(
        shift,
        total_sales_cents=shift.total_sales_cents + total,
        total_cash_sales_cents=shift.total_cash_sales_cents
        + (total if sale.payment_method in CASH_EQUIVALENT_METHODS else 0),
        total_card_cents=shift.total_card_cents
        + (total if sale.payment_method in CARD_EQUIVALENT_METHODS else 0),
    )
    return repo.replace_open(updated)


def record_cash_out_expense(repo: ShiftRepository, expense: TaxEntry) -> Shift | None:
    """Deduct a cash-out expense from the drawer. Other expenses are ignored."""
    if not expense.is_cash_out:
        return None

    shift = repo.get_open()
    if shift is None:
        return None

    updated = replace(shift, total_expenses_cents=shift.total_expenses_cents + expense.total_cents)
    return repo.replace_open(updated)


def close_shift(repo: ShiftRepository, counted_cash_cents: int) -> Shift:
    """
    Close the open shift and calculate the cash discrepancy.

    IMMUTABLE: Once closed, the shift moves to the history and is never
    modified again. A non-zero discrepancy attaches a mismatch event.

    Raises:
        ShiftError: If no shift is open
    """
    shift = repo.get_open()
    if shift is None:
        raise ShiftError("No open shift to close")

    closed_at = utcnow()
    expected = shift.running_expected_cash_cents
    discrepancy = counted_cash_cents - expected

    events = shift.discrepancy_events
    if discrepancy != 0:
        events = events + (
            SecurityEvent(
                id=f"sec-{uuid.uuid4().hex[:10]}",
                timestamp=closed_at,
                type="mismatch",
                camera_value_cents=counted_cash_cents,
                app_paid_value_cents=expected,
                video_ref=f"shift:{shift.id}",
            ),
        )

    closed = replace(
        shift,
        status=SHIFT_CLOSED,
        end_time=closed_at,
        final_cash_cents=counted_cash_cents,
        expected_cash_cents=expected,
        discrepancy_cents=discrepancy,
        discrepancy_events=events,
    )
    return repo.close(shift.id, closed)


# =============================================================================
# REPORTING
# =============================================================================

def get_shift_summary(repo: ShiftRepository, sales: list[Sale], shift_id: str) -> dict:
    """
    Shift figures for the dashboard.

    Returns:
        - Shift details
        - Sales count and per-method breakdown
        - Cash expected in the drawer (running for open shifts, fixed once closed)
    """
    shift = repo.get(shift_id)
    if shift is None:
        raise ShiftError("Shift not found")

    shift_sales = [s for s in sales if s.shift_id == shift_id]
    by_method: dict[str, int] = {}
    for sale in shift_sales:
        by_method[sale.payment_method] = by_method.get(sale.payment_method, 0) + sale.total_cents

    expected = (
        shift.expected_cash_cents
        if shift.expected_cash_cents is not None
        else shift.running_expected_cash_cents
    )

    return {
        "shift": shift.to_dict(),
        "sales_count": len(shift_sales),
        "sales_by_method_cents": by_method,
        "expected_cash_cents": expected,
        "is_closed": shift.status == SHIFT_CLOSED,
        "discrepancy_cents": shift.discrepancy_cents,
    }
