"""
Quarterly tax summaries (Spanish self-assessment models).

- Modelo 303 (IVA): VAT collected on sales minus VAT paid on expense entries.
  Sale totals include VAT at the tenant's default rate.
- Modelo 130 (IRPF instalment): rate x (income base - expense base), never
  below zero.

Periods are quarters written "2026-1T".."2026-4T".
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from ..entities import TAX_EXPENSE, TAX_INCOME, Sale, TaxEntry, TaxModel

_PERIOD_RE = re.compile(r"^(\d{4})-([1-4])T$")


class TaxPeriodError(ValueError):
    pass


def quarter_of(d: date) -> str:
    return f"{d.year}-{(d.month - 1) // 3 + 1}T"


def _parse_period(period: str) -> tuple[int, int]:
    m = _PERIOD_RE.match(period or "")
    if not m:
        raise TaxPeriodError(f"Invalid period {period!r}, expected e.g. 2026-1T")
    return int(m.group(1)), int(m.group(2))


def _in_period(d: date, period: str) -> bool:
    year, quarter = _parse_period(period)
    return d.year == year and (d.month - 1) // 3 + 1 == quarter


def _sales_base_cents(sales: Iterable[Sale], iva_rate: float) -> tuple[int, int]:
    """(base, vat) of VAT-inclusive sale totals."""
    gross = sum(s.total_cents for s in sales)
    base = int(round(gross / (1 + iva_rate)))
    return base, gross - base


def vat_model(
    sales: Iterable[Sale],
    entries: Iterable[TaxEntry],
    period: str,
    *,
    iva_rate: float,
) -> TaxModel:
    """Modelo 303 for one quarter."""
    _parse_period(period)
    period_sales = [s for s in sales if _in_period(s.timestamp.date(), period)]
    period_entries = [e for e in entries if _in_period(e.date, period)]

    sales_base, sales_vat = _sales_base_cents(period_sales, iva_rate)
    manual_income = [e for e in period_entries if e.type == TAX_INCOME]
    expenses = [e for e in period_entries if e.type == TAX_EXPENSE]

    collected = sales_vat + sum(e.tax_cents for e in manual_income)
    deductible = sum(e.tax_cents for e in expenses)

    return TaxModel(
        code="303",
        name="IVA. Autoliquidación",
        period=period,
        total_base_cents=sales_base + sum(e.base_cents for e in manual_income),
        tax_amount_cents=collected - deductible,
        details=tuple(period_entries),
    )


def irpf_instalment_model(
    sales: Iterable[Sale],
    entries: Iterable[TaxEntry],
    period: str,
    *,
    iva_rate: float,
    irpf_rate: float,
) -> TaxModel:
    """Modelo 130 for one quarter (estimación directa)."""
    _parse_period(period)
    period_sales = [s for s in sales if _in_period(s.timestamp.date(), period)]
    period_entries = [e for e in entries if _in_period(e.date, period)]

    sales_base, _ = _sales_base_cents(period_sales, iva_rate)
    income = sales_base + sum(e.base_cents for e in period_entries if e.type == TAX_INCOME)
    expense = sum(e.base_cents for e in period_entries if e.type == TAX_EXPENSE)
    net = income - expense

    return TaxModel(
        code="130",
        name="IRPF. Pago fraccionado",
        period=period,
        total_base_cents=net,
        tax_amount_cents=max(int(round(net * irpf_rate)), 0),
        details=tuple(e for e in period_entries if e.type == TAX_EXPENSE),
    )
