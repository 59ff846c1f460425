"""
Persistence collaborator tests (in-memory SQLite).

Verifies:
- Key conversion between application (camelCase) and storage (snake_case)
- Upserts replace by id; inserts are idempotent by id
- Startup load prefers stored data, seeds empty catalogues into the store
  and degrades to local-only on failure
- A restart on the same database keeps the whole catalogue
"""

import pytest

from conftest import FailingStore, make_expense, make_sale
from tpv import create_app, seed_data
from tpv.entities import PAYMENT_CASH, Ingredient, SHIFT_OPEN, Supplier
from tpv.models import IngredientRecord, SaleRecord
from tpv.extensions import db
from tpv.services import shift_service
from tpv.services.persistence import (
    NullStore,
    PersistenceStore,
    SqlStore,
    keys_to_camel,
    keys_to_snake,
    to_row,
)
from tpv.services.runtime import load_state
from tpv.services.shift_service import ShiftRepository


class TestKeyConversion:

    def test_top_level_keys_only(self):
        data = {"minStock": 1, "recipe": [{"ingredientId": "x"}]}

        snake = keys_to_snake(data)

        assert snake == {"min_stock": 1, "recipe": [{"ingredientId": "x"}]}
        assert keys_to_camel(snake) == data

    def test_to_row_drops_unknown_keys_and_parses_dates(self):
        row = to_row(SaleRecord, {"id": "s1", "timestamp": "2026-03-01T10:00:00Z", "bogus": 1})

        assert set(row) == {"id", "timestamp"}
        assert row["timestamp"].hour == 10


class TestSqlStore:

    def test_ingredient_upsert_replaces(self, app):
        store = SqlStore()
        store.upsert_ingredient(Ingredient(id="ing_a", name="A", stock=10.0, unit="L"))
        store.upsert_ingredient(Ingredient(id="ing_a", name="A", stock=7.5, unit="L", min_stock=2))

        ingredients = {i.id: i for i in store.get_ingredients()}

        assert (ingredients["ing_a"].stock, ingredients["ing_a"].min_stock) == (7.5, 2.0)
        assert db.session.query(IngredientRecord).filter_by(id="ing_a").count() == 1

    def test_sale_insert_is_idempotent(self, app):
        store = SqlStore()
        sale = make_sale(540, PAYMENT_CASH)

        store.insert_sale(sale)
        store.insert_sale(sale)

        sales = store.get_sales()
        assert len(sales) == 1
        assert sales[0].id == sale.id
        assert sales[0].total_cents == 540
        assert sales[0].lines[0].product_id == "p_cana"

    def test_active_shift_roundtrip(self, app):
        store = SqlStore()
        repo = ShiftRepository()
        shift = shift_service.open_shift(repo, 15000, "u1")
        store.upsert_shift(shift)

        loaded = store.get_active_shift()

        assert loaded.id == shift.id
        assert loaded.status == SHIFT_OPEN
        assert loaded.initial_base_cents == 15000

    def test_closed_shift_is_not_active(self, app):
        store = SqlStore()
        repo = ShiftRepository()
        shift_service.open_shift(repo, 1000, "u1")
        closed = shift_service.close_shift(repo, 900)
        store.upsert_shift(closed)

        assert store.get_active_shift() is None

    def test_tax_entries_keep_dates(self, app):
        store = SqlStore()
        entry = make_expense(1210)
        store.insert_tax_entry(entry)

        loaded = store.get_tax_entries()

        assert loaded[0].date == entry.date
        assert loaded[0].is_cash_out is True

    def test_supplier_upsert_keeps_ingredient_list(self, bare_app):
        store = SqlStore()
        store.upsert_supplier(Supplier(id="sup_x", name="Hielos Sur", associated_ingredients=["ing_hielo"]))
        store.upsert_supplier(Supplier(id="sup_x", name="Hielos del Sur", phone="600000000",
                                       associated_ingredients=["ing_hielo", "ing_limon"]))

        suppliers = store.get_suppliers()

        assert [(s.id, s.name, s.phone) for s in suppliers] == [("sup_x", "Hielos del Sur", "600000000")]
        assert suppliers[0].associated_ingredients == ["ing_hielo", "ing_limon"]


class TestLoadState:

    def test_unconfigured_store_keeps_seed(self):
        state, store = load_state(NullStore())

        assert isinstance(store, NullStore)
        assert "ing_cerveza" in state.ingredients
        assert state.sales == []

    def test_stored_catalogue_replaces_seed(self, bare_app):
        store = SqlStore()
        store.upsert_ingredient(Ingredient(id="ing_only", name="Only", stock=3.0, unit="kg"))
        store.insert_sale(make_sale(250, PAYMENT_CASH))

        state, used = load_state(store)

        assert used is store
        assert list(state.ingredients) == ["ing_only"]
        assert [i.id for i in store.get_ingredients()] == ["ing_only"]
        # Empty product table keeps the demo products and receives them
        assert "p_cana" in state.products
        assert len(store.get_products()) == len(seed_data.initial_products())
        assert len(state.sales) == 1

    def test_empty_store_receives_the_seed_catalogue(self, bare_app):
        store = SqlStore()

        state, used = load_state(store)

        assert used is store
        assert {i.id for i in store.get_ingredients()} == set(state.ingredients)
        assert len(state.ingredients) == len(seed_data.initial_ingredients())
        assert {s.id for s in store.get_suppliers()} == {"sup_mahou", "sup_refrescos", "sup_bebidas"}

    def test_failed_seeding_falls_back_to_local_only(self, caplog):
        class EmptyStore(FailingStore):
            def get_ingredients(self):
                return []

            def get_products(self):
                return []

            def get_suppliers(self):
                return []

        state, store = load_state(EmptyStore(fail_on={"upsert_ingredient"}))

        assert isinstance(store, NullStore)
        assert "ing_cerveza" in state.ingredients
        assert "Seeding the persistence store failed" in caplog.text

    def test_stored_open_shift_is_restored(self, app):
        store = SqlStore()
        repo = ShiftRepository()
        shift = shift_service.open_shift(repo, 5000, "u1")
        store.upsert_shift(shift)

        state, _ = load_state(store)

        assert state.shifts.get_open().id == shift.id

    def test_failed_load_falls_back_to_local_only(self, caplog):
        class BrokenStore(PersistenceStore):
            configured = True

            def get_ingredients(self):
                raise RuntimeError("connection refused")

        state, store = load_state(BrokenStore())

        assert isinstance(store, NullStore)
        assert "p_cana" in state.products
        assert "running local-only" in caplog.text


class TestRestart:

    def test_restart_after_sale_keeps_full_catalogue(self, tmp_path, seller_headers):
        """
        SCENARIO: fresh database file, no seed command, one sale of 3 canas,
        then the app starts again on the same file.
        EXPECTED: every demo ingredient is loaded back, only the keg moved.
        """
        config = {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'tpv.db'}",
            'AUTO_CREATE_SCHEMA': True,
            'OPENAI_API_KEY': None,
        }
        first = create_app(config)
        client = first.test_client()
        client.post("/api/shifts/open", json={"initialBaseCents": 10000}, headers=seller_headers)
        resp = client.post("/api/sales", json={
            "items": [{"productId": "p_cana", "quantity": 3}],
            "paymentMethod": "Efectivo",
        }, headers=seller_headers)
        assert resp.status_code == 201
        with first.app_context():
            db.engine.dispose()

        second = create_app(config)
        state = second.extensions["tpv"].state

        assert set(state.ingredients) == {i.id for i in seed_data.initial_ingredients()}
        assert state.ingredients["ing_cerveza"].stock == pytest.approx(49.4)
        assert state.ingredients["ing_leche"].stock == 40
        assert state.ingredients["ing_tonica"].supplier_id == "sup_refrescos"
        assert len(state.sales) == 1
        assert state.shifts.get_open() is not None

        with second.app_context():
            db.engine.dispose()


@pytest.mark.parametrize("path", ["/api/system/health", "/api/system/sync"])
def test_system_endpoints_with_store(client, path):
    resp = client.get(path)
    assert resp.status_code == 200
    assert resp.get_json()["sync_status"] == "cloud"
