# Overview: Persistence collaborator; best-effort mirror of the in-memory state.

"""
Persistence collaborator.

Two implementations share one interface:
- NullStore: no credentials configured. Reads return None ("not configured"),
  writes do nothing. The application runs local-only.
- SqlStore: Flask-SQLAlchemy tables. Sales, tax entries, waste entries and
  purchase orders are insert-only (re-inserting a known id is a no-op);
  ingredients, products, suppliers and shifts are upserted by id.

Naming at the boundary:
- Application dicts (entity.to_dict()) use camelCase keys.
- Storage rows use snake_case columns.
- Only top-level keys are converted; JSON columns keep their inner shape.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from sqlalchemy import Date, DateTime
from sqlalchemy.exc import SQLAlchemyError

from ..entities import (
    SHIFT_OPEN,
    Ingredient,
    Product,
    PurchaseOrder,
    Sale,
    Shift,
    Supplier,
    TaxEntry,
    WasteEntry,
)
from ..extensions import db
from ..models import (
    IngredientRecord,
    ProductRecord,
    PurchaseOrderRecord,
    SaleRecord,
    ShiftRecord,
    SupplierRecord,
    TaxEntryRecord,
    WasteEntryRecord,
)
from tpv.time_utils import parse_iso_date, parse_iso_datetime


class PersistenceError(Exception):
    """Raised when the store rejects a read or write."""
    pass


_CAMEL_RE = re.compile(r"[A-Z]")
_SNAKE_RE = re.compile(r"_([a-z0-9])")


def to_snake(key: str) -> str:
    return _CAMEL_RE.sub(lambda m: f"_{m.group(0).lower()}", key)


def to_camel(key: str) -> str:
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), key)


def keys_to_snake(data: dict) -> dict:
    return {to_snake(k): v for k, v in data.items()}


def keys_to_camel(data: dict) -> dict:
    return {to_camel(k): v for k, v in data.items()}


# =============================================================================
# INTERFACE
# =============================================================================

class PersistenceStore:
    """Reads return None when the store is not configured."""

    configured = False

    def get_ingredients(self) -> list[Ingredient] | None:
        return None

    def get_products(self) -> list[Product] | None:
        return None

    def get_sales(self) -> list[Sale] | None:
        return None

    def get_tax_entries(self) -> list[TaxEntry] | None:
        return None

    def get_waste(self) -> list[WasteEntry] | None:
        return None

    def get_active_shift(self) -> Shift | None:
        return None

    def get_purchase_orders(self) -> list[PurchaseOrder] | None:
        return None

    def get_suppliers(self) -> list[Supplier] | None:
        return None

    def upsert_ingredient(self, ingredient: Ingredient) -> None:
        return None

    def upsert_product(self, product: Product) -> None:
        return None

    def upsert_supplier(self, supplier: Supplier) -> None:
        return None

    def upsert_shift(self, shift: Shift) -> None:
        return None

    def insert_sale(self, sale: Sale) -> None:
        return None

    def insert_tax_entry(self, entry: TaxEntry) -> None:
        return None

    def insert_waste(self, waste: WasteEntry) -> None:
        return None

    def insert_purchase_order(self, order: PurchaseOrder) -> None:
        return None


class NullStore(PersistenceStore):
    """No remote store configured: local-only mode."""
    configured = False


# =============================================================================
# SQLALCHEMY STORE
# =============================================================================

def _columns_by_key(model) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def to_row(model, payload: dict) -> dict:
    """
    Convert an application dict into column values for `model`.

    Keys are snake_cased; ISO strings become datetime/date for typed columns;
    keys without a matching column are dropped.
    """
    cols = _columns_by_key(model)
    row: dict[str, Any] = {}
    for key, value in keys_to_snake(payload).items():
        col = cols.get(key)
        if col is None:
            continue
        if isinstance(col.type, DateTime) and isinstance(value, str):
            value = parse_iso_datetime(value)
        elif isinstance(col.type, Date) and isinstance(value, str):
            value = parse_iso_date(value)
        row[key] = value
    return row


def from_row(record) -> dict:
    """Storage row -> application (camelCase) dict."""
    return keys_to_camel(record.to_dict())


class SqlStore(PersistenceStore):
    """Flask-SQLAlchemy backed store. Must be used inside an app context."""

    configured = True

    def _read(self, fn: Callable[[], Any]):
        try:
            return fn()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(str(exc)) from exc

    def _write(self, fn: Callable[[], None]) -> None:
        try:
            fn()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(str(exc)) from exc

    def _upsert(self, model, entity) -> None:
        self._write(lambda: db.session.merge(model(**to_row(model, entity.to_dict()))))

    def _insert_once(self, model, entity) -> None:
        def _op():
            if db.session.get(model, entity.id) is not None:
                return
            db.session.add(model(**to_row(model, entity.to_dict())))
        self._write(_op)

    # -- reads -----------------------------------------------------------------

    def get_ingredients(self) -> list[Ingredient]:
        rows = self._read(lambda: db.session.query(IngredientRecord).order_by(IngredientRecord.name).all())
        return [Ingredient.from_dict(from_row(r)) for r in rows]

    def get_products(self) -> list[Product]:
        rows = self._read(
            lambda: db.session.query(ProductRecord).order_by(ProductRecord.category, ProductRecord.name).all()
        )
        return [Product.from_dict(from_row(r)) for r in rows]

    def get_sales(self) -> list[Sale]:
        rows = self._read(lambda: db.session.query(SaleRecord).order_by(SaleRecord.timestamp.desc()).all())
        return [Sale.from_dict(from_row(r)) for r in rows]

    def get_tax_entries(self) -> list[TaxEntry]:
        rows = self._read(lambda: db.session.query(TaxEntryRecord).order_by(TaxEntryRecord.date.desc()).all())
        return [TaxEntry.from_dict(from_row(r)) for r in rows]

    def get_waste(self) -> list[WasteEntry]:
        rows = self._read(
            lambda: db.session.query(WasteEntryRecord).order_by(WasteEntryRecord.timestamp.desc()).all()
        )
        return [WasteEntry.from_dict(from_row(r)) for r in rows]

    def get_active_shift(self) -> Shift | None:
        row = self._read(
            lambda: db.session.query(ShiftRecord)
            .filter_by(status=SHIFT_OPEN)
            .order_by(ShiftRecord.start_time.desc())
            .first()
        )
        return Shift.from_dict(from_row(row)) if row else None

    def get_purchase_orders(self) -> list[PurchaseOrder]:
        rows = self._read(
            lambda: db.session.query(PurchaseOrderRecord).order_by(PurchaseOrderRecord.date.desc()).all()
        )
        return [PurchaseOrder.from_dict(from_row(r)) for r in rows]

    def get_suppliers(self) -> list[Supplier]:
        rows = self._read(lambda: db.session.query(SupplierRecord).order_by(SupplierRecord.name).all())
        return [Supplier.from_dict(from_row(r)) for r in rows]

    # -- writes ----------------------------------------------------------------

    def upsert_ingredient(self, ingredient: Ingredient) -> None:
        self._upsert(IngredientRecord, ingredient)

    def upsert_product(self, product: Product) -> None:
        self._upsert(ProductRecord, product)

    def upsert_supplier(self, supplier: Supplier) -> None:
        self._upsert(SupplierRecord, supplier)

    def upsert_shift(self, shift: Shift) -> None:
        self._upsert(ShiftRecord, shift)

    def insert_sale(self, sale: Sale) -> None:
        self._insert_once(SaleRecord, sale)

    def insert_tax_entry(self, entry: TaxEntry) -> None:
        self._insert_once(TaxEntryRecord, entry)

    def insert_waste(self, waste: WasteEntry) -> None:
        self._insert_once(WasteEntryRecord, waste)

    def insert_purchase_order(self, order: PurchaseOrder) -> None:
        self._insert_once(PurchaseOrderRecord, order)
