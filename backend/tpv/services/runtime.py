# Overview: Application state container and startup load from the persistence collaborator.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flask import current_app

from ..entities import (
    Ingredient,
    Product,
    PurchaseOrder,
    Sale,
    Supplier,
    Table,
    TableLog,
    TaxEntry,
    User,
    WasteEntry,
)
from .. import seed_data
from .forecast_service import ForecastClient
from .outbound import OutboundQueue, PendingWrite
from .persistence import NullStore, PersistenceStore
from .shift_service import ShiftRepository
from .stock_service import normalize_policy

logger = logging.getLogger(__name__)


@dataclass
class PosState:
    """
    Entity collections for one business location.

    Ingredients, products, tables, users and suppliers are keyed by id;
    sales, tax entries, waste entries and purchase orders are append-only lists.
    """
    ingredients: dict[str, Ingredient] = field(default_factory=dict)
    products: dict[str, Product] = field(default_factory=dict)
    sales: list[Sale] = field(default_factory=list)
    tax_entries: list[TaxEntry] = field(default_factory=list)
    waste: list[WasteEntry] = field(default_factory=list)
    tables: dict[str, Table] = field(default_factory=dict)
    table_logs: list[TableLog] = field(default_factory=list)
    users: dict[str, User] = field(default_factory=dict)
    suppliers: dict[str, Supplier] = field(default_factory=dict)
    purchase_orders: list[PurchaseOrder] = field(default_factory=list)
    shifts: ShiftRepository = field(default_factory=ShiftRepository)

    @classmethod
    def seeded(cls) -> "PosState":
        return cls(
            ingredients={i.id: i for i in seed_data.initial_ingredients()},
            products={p.id: p for p in seed_data.initial_products()},
            tables={t.id: t for t in seed_data.initial_tables()},
            users={u.id: u for u in seed_data.initial_users()},
            suppliers={s.id: s for s in seed_data.initial_suppliers()},
        )


@dataclass
class Runtime:
    """Everything a request handler needs, passed explicitly to services."""
    state: PosState
    outbound: OutboundQueue
    forecaster: ForecastClient
    tenant_id: str = "demo"
    missing_reference_policy: str = "ignore"
    default_iva_rate: float = 0.10
    irpf_rate: float = 0.20
    quick_expense_iva_rate: float = 0.21
    forecast_alert_days: int = 10

    @property
    def store(self) -> PersistenceStore:
        return self.outbound.store


def catalogue_writes(store: PersistenceStore, state: PosState) -> list[PendingWrite]:
    """Upserts that copy the state's suppliers, ingredients and products into the store."""
    writes = [PendingWrite("supplier", s.id, store.upsert_supplier, (s,)) for s in state.suppliers.values()]
    writes += [PendingWrite("ingredient", i.id, store.upsert_ingredient, (i,)) for i in state.ingredients.values()]
    writes += [PendingWrite("product", p.id, store.upsert_product, (p,)) for p in state.products.values()]
    return writes


def _seed_empty_catalogues(store: PersistenceStore, state: PosState, empty: set[str]) -> None:
    """Write the seed rows of the catalogues in `empty`; tables that hold rows are left alone."""
    writes = [w for w in catalogue_writes(store, state) if w.label in empty]
    for write in writes:
        write.operation(*write.args)
    if writes:
        logger.info("Seeded the persistence store with %d demo %s rows", len(writes), "/".join(sorted(empty)))


def load_state(store: PersistenceStore, *, seed: bool = True) -> tuple[PosState, PersistenceStore]:
    """
    Build the in-memory state, preferring the store's data over the seed set.

    Catalogues the store holds no rows of are seeded into it. Returns the
    state and the store to keep writing to. A store that fails to load or
    seed is swapped for a NullStore: the session continues local-only.
    """
    state = PosState.seeded() if seed else PosState()

    if not store.configured:
        logger.warning("Persistence not configured; running local-only with the demo dataset")
        return state, store

    try:
        ingredients = store.get_ingredients()
        products = store.get_products()
        suppliers = store.get_suppliers()
        sales = store.get_sales()
        tax_entries = store.get_tax_entries()
        waste = store.get_waste()
        active_shift = store.get_active_shift()
        purchase_orders = store.get_purchase_orders()
    except Exception:
        logger.exception("Loading from the persistence store failed; running local-only")
        return state, NullStore()

    # Empty catalogues keep the seed data and get it written; history collections are taken as-is
    if seed:
        empty = {
            label for label, rows in (
                ("ingredient", ingredients), ("product", products), ("supplier", suppliers),
            )
            if rows is not None and not rows
        }
        try:
            _seed_empty_catalogues(store, state, empty)
        except Exception:
            logger.exception("Seeding the persistence store failed; running local-only")
            return state, NullStore()

    if ingredients:
        state.ingredients = {i.id: i for i in ingredients}
    if products:
        state.products = {p.id: p for p in products}
    if suppliers:
        state.suppliers = {s.id: s for s in suppliers}
    if sales is not None:
        state.sales = list(sales)
    if tax_entries is not None:
        state.tax_entries = list(tax_entries)
    if waste is not None:
        state.waste = list(waste)
    if purchase_orders is not None:
        state.purchase_orders = list(purchase_orders)
    if active_shift is not None:
        state.shifts.open(active_shift)

    logger.info(
        "Loaded %d ingredients, %d products, %d suppliers, %d sales from the persistence store",
        len(state.ingredients), len(state.products), len(state.suppliers), len(state.sales),
    )
    return state, store


def build_runtime(app, store: PersistenceStore) -> Runtime:
    cfg = app.config
    state, store = load_state(store, seed=cfg.get("SEED_DEMO_DATA", True))

    forecaster = ForecastClient(
        api_key=cfg.get("OPENAI_API_KEY"),
        model=cfg.get("FORECAST_MODEL", "gpt-4o-mini"),
        client=cfg.get("FORECAST_CLIENT"),
    )
    if not forecaster.configured:
        logger.warning("OPENAI_API_KEY not set; forecasting unavailable")

    return Runtime(
        state=state,
        outbound=OutboundQueue(store),
        forecaster=forecaster,
        tenant_id=cfg.get("TENANT_ID", "demo"),
        missing_reference_policy=normalize_policy(cfg.get("MISSING_REFERENCE_POLICY")),
        default_iva_rate=float(cfg.get("DEFAULT_IVA_RATE", 0.10)),
        irpf_rate=float(cfg.get("IRPF_RATE", 0.20)),
        quick_expense_iva_rate=float(cfg.get("QUICK_EXPENSE_IVA_RATE", 0.21)),
        forecast_alert_days=int(cfg.get("FORECAST_ALERT_DAYS", 10)),
    )


def get_runtime() -> Runtime:
    return current_app.extensions["tpv"]
