"""
Quarterly tax model tests.

Verifies:
- Modelo 303: sales VAT minus deductible expense VAT
- Modelo 130: IRPF rate over net income, floored at zero
- Only the requested quarter is counted
"""

from datetime import date, datetime

import pytest

from conftest import make_expense, make_sale
from tpv.entities import PAYMENT_CARD, PAYMENT_CASH
from tpv.services import tax_service
from tpv.services.tax_service import TaxPeriodError


@pytest.fixture
def q1_sales():
    return [
        make_sale(11000, PAYMENT_CASH, timestamp=datetime(2026, 2, 10, 12, 0)),
        make_sale(22000, PAYMENT_CARD, timestamp=datetime(2026, 3, 20, 21, 0)),
        # Next quarter
        make_sale(99900, PAYMENT_CASH, timestamp=datetime(2026, 4, 1, 9, 0)),
    ]


@pytest.fixture
def q1_expenses():
    return [
        make_expense(12100, entry_date=date(2026, 1, 15), entry_id="e1"),
        make_expense(6050, is_cash_out=False, entry_date=date(2026, 5, 2), entry_id="e2"),
    ]


def test_quarter_of():
    assert tax_service.quarter_of(date(2026, 1, 1)) == "2026-1T"
    assert tax_service.quarter_of(date(2026, 12, 31)) == "2026-4T"


def test_vat_model(q1_sales, q1_expenses):
    model = tax_service.vat_model(q1_sales, q1_expenses, "2026-1T", iva_rate=0.10)

    # 330.00 gross at 10% -> 300.00 base, 30.00 VAT; expense VAT 21.00
    assert model.code == "303"
    assert model.total_base_cents == 30000
    assert model.tax_amount_cents == 3000 - 2100
    assert [e.id for e in model.details] == ["e1"]


def test_irpf_model(q1_sales, q1_expenses):
    model = tax_service.irpf_instalment_model(
        q1_sales, q1_expenses, "2026-1T", iva_rate=0.10, irpf_rate=0.20
    )

    # (300.00 - 100.00) * 20%
    assert model.code == "130"
    assert model.total_base_cents == 20000
    assert model.tax_amount_cents == 4000


def test_irpf_never_negative(q1_expenses):
    model = tax_service.irpf_instalment_model(
        [], q1_expenses, "2026-1T", iva_rate=0.10, irpf_rate=0.20
    )

    assert model.total_base_cents == -10000
    assert model.tax_amount_cents == 0


@pytest.mark.parametrize("period", ["2026-Q1", "2026-5T", "", "1T"])
def test_invalid_period(period):
    with pytest.raises(TaxPeriodError):
        tax_service.vat_model([], [], period, iva_rate=0.10)
