"""
HTTP API tests.

Verifies:
- Caller identity via X-User-Id (401 unknown, 403 non-admin)
- Shift, checkout, table, waste, expense and supplier flows end to end
- Local-only mode answers the same API with local_only sync outcomes
"""

import json

import pytest

from conftest import fake_openai_client
from tpv import create_app
from tpv.services.forecast_service import DEFAULT_SUPPLIER_NAME


# =============================================================================
# CALLER IDENTITY
# =============================================================================


class TestCallerIdentity:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/shifts/open"),
            ("POST", "/api/shifts/close"),
            ("POST", "/api/sales"),
            ("POST", "/api/waste"),
            ("POST", "/api/expenses/cash-out"),
            ("POST", "/api/tables/t1/open"),
            ("POST", "/api/inventory/products"),
            ("GET", "/api/forecast/predictions"),
        ],
    )
    def test_requires_user(self, local_client, method, path):
        resp = getattr(local_client, method.lower())(path, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_user_is_rejected(self, local_client):
        resp = local_client.post("/api/shifts/open", json={"initialBaseCents": 100}, headers={"X-User-Id": "u999"})
        assert resp.status_code == 401

    def test_seller_cannot_edit_catalogue(self, local_client, seller_headers):
        resp = local_client.post(
            "/api/inventory/products",
            json={"id": "p_new", "name": "Nuevo", "category": "Cafés", "priceCents": 100},
            headers=seller_headers,
        )
        assert resp.status_code == 403


# =============================================================================
# SHIFT AND CHECKOUT FLOW
# =============================================================================


class TestShiftFlow:

    def test_full_shift_with_discrepancy(self, client, seller_headers, app_runtime):
        """
        SCENARIO: base 150.00, cash sale 12.50, card sale 20.00, cash-out 5.00,
        counted 156.00.
        EXPECTED: expected 157.50, discrepancy -1.50, everything written to the store.
        """
        resp = client.post("/api/shifts/open", json={"initialBaseCents": 15000}, headers=seller_headers)
        assert resp.status_code == 201
        shift_id = resp.get_json()["shift"]["id"]

        resp = client.post("/api/sales", json={
            "items": [{"productId": "p_special", "quantity": 1, "unitPriceCents": 1250}],
            "paymentMethod": "Efectivo",
        }, headers=seller_headers)
        assert resp.status_code == 201
        assert [o["status"] for o in resp.get_json()["sync"]["outcomes"]] == ["written", "written"]

        resp = client.post("/api/sales", json={
            "items": [{"productId": "p_special", "quantity": 2, "unitPriceCents": 1000}],
            "paymentMethod": "Tarjeta",
        }, headers=seller_headers)
        assert resp.status_code == 201

        resp = client.post("/api/expenses/cash-out", json={"concept": "Hielo", "amountCents": 500},
                           headers=seller_headers)
        assert resp.status_code == 201
        assert resp.get_json()["shift"]["totalExpensesCents"] == 500

        resp = client.post("/api/shifts/close", json={"countedCashCents": 15600}, headers=seller_headers)
        assert resp.status_code == 200
        shift = resp.get_json()["shift"]
        assert shift["expectedCashCents"] == 15750
        assert shift["discrepancyCents"] == -150
        assert shift["status"] == "closed"

        stored = app_runtime.store.get_sales()
        assert {s.shift_id for s in stored} == {shift_id}
        assert app_runtime.store.get_active_shift() is None

        summary = client.get(f"/api/shifts/{shift_id}/summary").get_json()
        assert summary["sales_count"] == 2
        assert summary["is_closed"] is True

    def test_double_open_conflicts(self, local_client, seller_headers):
        local_client.post("/api/shifts/open", json={"initialBaseCents": 0}, headers=seller_headers)
        resp = local_client.post("/api/shifts/open", json={"initialBaseCents": 0}, headers=seller_headers)
        assert resp.status_code == 409

    def test_close_without_shift_conflicts(self, local_client, seller_headers):
        resp = local_client.post("/api/shifts/close", json={"countedCashCents": 0}, headers=seller_headers)
        assert resp.status_code == 409

    @pytest.mark.parametrize("value", [12.5, "12.50", "1e4", -100, True])
    def test_money_must_be_integer_cents(self, local_client, seller_headers, value):
        resp = local_client.post("/api/shifts/open", json={"initialBaseCents": value}, headers=seller_headers)
        assert resp.status_code == 400


class TestCheckout:

    def test_catalogue_price_and_stock(self, local_client, seller_headers):
        resp = local_client.post("/api/sales", json={
            "items": [{"productId": "p_cana", "quantity": 3}],
            "paymentMethod": "CashGuard",
            "amountPaidCents": 1000,
        }, headers=seller_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["sale"]["totalCents"] == 540
        assert body["sale"]["changeCents"] == 460
        assert body["sync"]["outcomes"][0]["status"] == "local_only"

        ingredients = local_client.get("/api/inventory/ingredients").get_json()["ingredients"]
        keg = next(i for i in ingredients if i["id"] == "ing_cerveza")
        assert keg["stock"] == pytest.approx(49.4)

    def test_unknown_payment_method(self, local_client, seller_headers):
        resp = local_client.post("/api/sales", json={
            "items": [{"productId": "p_cana", "quantity": 1}],
            "paymentMethod": "Bizum",
        }, headers=seller_headers)
        assert resp.status_code == 400

    def test_zero_amount_paid_is_short(self, local_client, seller_headers):
        resp = local_client.post("/api/sales", json={
            "items": [{"productId": "p_cana", "quantity": 1}],
            "paymentMethod": "Efectivo",
            "amountPaidCents": 0,
        }, headers=seller_headers)
        assert resp.status_code == 400
        assert local_client.get("/api/sales").get_json()["sales"] == []

    def test_unknown_product_needs_price(self, local_client, seller_headers):
        resp = local_client.post("/api/sales", json={
            "items": [{"productId": "p_ghost", "quantity": 1}],
            "paymentMethod": "Efectivo",
        }, headers=seller_headers)
        assert resp.status_code == 400

    def test_sales_listing(self, local_client, seller_headers):
        local_client.post("/api/sales", json={
            "items": [{"productId": "p_cafe_solo", "quantity": 2}],
            "paymentMethod": "Tarjeta",
        }, headers=seller_headers)

        body = local_client.get("/api/sales").get_json()
        assert len(body["sales"]) == 1
        assert body["total_cents"] == 280


# =============================================================================
# TABLES, WASTE, CATALOGUE, TAX, FORECAST
# =============================================================================


class TestTables:

    def test_move_then_checkout_frees_table(self, local_client, seller_headers):
        local_client.post("/api/tables/t1/open", json={"tempName": "Ana"}, headers=seller_headers)
        resp = local_client.put("/api/tables/t1/order", json={
            "items": [{"productId": "p_cana", "quantity": 2}],
        }, headers=seller_headers)
        assert resp.status_code == 200

        resp = local_client.post("/api/tables/move", json={"fromTableId": "t1", "toTableId": "t10"},
                                 headers=seller_headers)
        assert resp.status_code == 200
        assert resp.get_json()["to"]["tempName"] == "Ana"

        resp = local_client.post("/api/sales", json={
            "items": [{"productId": "p_cana", "quantity": 2}],
            "paymentMethod": "Efectivo",
            "tableId": "t10",
        }, headers=seller_headers)
        assert resp.status_code == 201

        tables = {t["id"]: t for t in local_client.get("/api/tables").get_json()["tables"]}
        assert tables["t1"]["status"] == "free"
        assert tables["t10"]["status"] == "free"

        logs = local_client.get("/api/tables/logs").get_json()["logs"]
        assert logs[0]["action"] == "move"

    def test_move_to_busy_table_conflicts(self, local_client, seller_headers):
        local_client.post("/api/tables/t1/open", headers=seller_headers)
        local_client.post("/api/tables/t2/open", headers=seller_headers)

        resp = local_client.post("/api/tables/move", json={"fromTableId": "t1", "toTableId": "t2"},
                                 headers=seller_headers)
        assert resp.status_code == 409

    def test_unknown_table(self, local_client, seller_headers):
        resp = local_client.post("/api/tables/zz/open", headers=seller_headers)
        assert resp.status_code == 404


class TestWasteAndCatalogue:

    def test_waste_consumes_stock(self, local_client, seller_headers):
        resp = local_client.post("/api/waste", json={
            "productId": "p_cana", "quantity": 1, "reason": "breakage",
        }, headers=seller_headers)
        assert resp.status_code == 201

        low = local_client.get("/api/inventory/ingredients").get_json()["ingredients"]
        keg = next(i for i in low if i["id"] == "ing_cerveza")
        assert keg["stock"] == pytest.approx(49.8)

    def test_invalid_waste_reason(self, local_client, seller_headers):
        resp = local_client.post("/api/waste", json={
            "productId": "p_cana", "quantity": 1, "reason": "lost",
        }, headers=seller_headers)
        assert resp.status_code == 400

    def test_admin_creates_product_and_recipe(self, client, admin_headers, app_runtime):
        resp = client.post("/api/inventory/products", json={
            "id": "p_tinto", "name": "Tinto de Verano", "category": "Vinos", "priceCents": 300,
        }, headers=admin_headers)
        assert resp.status_code == 201

        resp = client.put("/api/inventory/products/p_tinto/recipe", json={
            "recipe": [{"ingredientId": "ing_vino_tinto", "quantity": 0.15}],
        }, headers=admin_headers)
        assert resp.status_code == 200

        stored = {p.id: p for p in app_runtime.store.get_products()}
        assert stored["p_tinto"].recipe[0].ingredient_id == "ing_vino_tinto"

    def test_duplicate_product_conflicts(self, local_client, admin_headers):
        resp = local_client.post("/api/inventory/products", json={
            "id": "p_cana", "name": "Caña", "category": "Cervezas", "priceCents": 180,
        }, headers=admin_headers)
        assert resp.status_code == 409

    def test_recipe_with_unknown_ingredient(self, local_client, admin_headers):
        resp = local_client.put("/api/inventory/products/p_cana/recipe", json={
            "recipe": [{"ingredientId": "ing_ghost", "quantity": 1}],
        }, headers=admin_headers)
        assert resp.status_code == 400

    def test_mixers(self, local_client):
        body = local_client.get("/api/inventory/mixers").get_json()
        assert body["noMixer"] == "manual"
        assert "ing_tonica" in [m["id"] for m in body["mixers"]]


class TestSuppliers:

    def test_demo_suppliers_are_listed(self, local_client):
        suppliers = local_client.get("/api/inventory/suppliers").get_json()["suppliers"]

        by_id = {s["id"]: s for s in suppliers}
        assert by_id["sup_mahou"]["name"] == "Mahou San Miguel"
        assert "ing_cerveza" in by_id["sup_mahou"]["associatedIngredients"]

    def test_create_supplier_takes_over_ingredients(self, client, admin_headers, app_runtime):
        resp = client.post("/api/inventory/suppliers", json={
            "name": "Bodegas Rioja Alta",
            "contactName": "Marta",
            "phone": "941000000",
            "associatedIngredients": ["ing_vino_tinto"],
        }, headers=admin_headers)
        assert resp.status_code == 201
        supplier = resp.get_json()["supplier"]

        ingredients = {i["id"]: i for i in client.get("/api/inventory/ingredients").get_json()["ingredients"]}
        assert ingredients["ing_vino_tinto"]["supplierId"] == supplier["id"]

        suppliers = {s["id"]: s for s in client.get("/api/inventory/suppliers").get_json()["suppliers"]}
        assert "ing_vino_tinto" not in suppliers["sup_bebidas"]["associatedIngredients"]
        assert "ing_vino_blanco" in suppliers["sup_bebidas"]["associatedIngredients"]

        stored_ingredients = {i.id: i for i in app_runtime.store.get_ingredients()}
        stored_suppliers = {s.id: s for s in app_runtime.store.get_suppliers()}
        assert stored_ingredients["ing_vino_tinto"].supplier_id == supplier["id"]
        assert stored_suppliers[supplier["id"]].name == "Bodegas Rioja Alta"
        assert "ing_vino_tinto" not in stored_suppliers["sup_bebidas"].associated_ingredients

    @pytest.mark.parametrize(
        "payload",
        [
            {"associatedIngredients": []},
            {"name": "  "},
            {"name": "X", "associatedIngredients": "ing_cerveza"},
            {"name": "X", "associatedIngredients": ["ing_ghost"]},
        ],
    )
    def test_invalid_supplier(self, local_client, admin_headers, payload):
        resp = local_client.post("/api/inventory/suppliers", json=payload, headers=admin_headers)
        assert resp.status_code == 400

    def test_seller_cannot_create_supplier(self, local_client, seller_headers):
        resp = local_client.post("/api/inventory/suppliers", json={"name": "X"}, headers=seller_headers)
        assert resp.status_code == 403

    def test_auto_order_groups_by_supplier_name(self, admin_headers):
        predictions = [
            {"ingredientId": "ing_vino_tinto", "name": "Vino Tinto", "estimatedDepletionDate": "2026-11-01",
             "recommendedQuantity": 12, "urgency": "high"},
            {"ingredientId": "ing_cerveza", "name": "Cerveza", "estimatedDepletionDate": "2026-11-02",
             "recommendedQuantity": 2, "urgency": "medium"},
            {"ingredientId": "ing_leche", "name": "Leche", "estimatedDepletionDate": "2026-11-03",
             "recommendedQuantity": 20, "urgency": "low"},
        ]
        fake, _ = fake_openai_client(json.dumps({"predictions": predictions}))
        app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': None,
            'FORECAST_CLIENT': fake,
        })
        client = app.test_client()
        client.post("/api/inventory/suppliers", json={
            "name": "Bodegas Rioja Alta", "associatedIngredients": ["ing_vino_tinto"],
        }, headers=admin_headers)

        resp = client.post("/api/forecast/auto-order", headers=admin_headers)

        assert resp.status_code == 201
        orders = {o["supplierName"]: o for o in resp.get_json()["orders"]}
        assert set(orders) == {"Bodegas Rioja Alta", "Mahou San Miguel", DEFAULT_SUPPLIER_NAME}
        assert orders["Bodegas Rioja Alta"]["items"] == [{"name": "Vino Tinto", "quantity": 12.0}]
        assert orders[DEFAULT_SUPPLIER_NAME]["items"] == [{"name": "Leche", "quantity": 20.0}]


class TestTaxAndForecast:

    def test_tax_models_for_quarter(self, local_client, admin_headers):
        resp = local_client.get("/api/expenses/tax-models?period=2026-1T", headers=admin_headers)
        assert resp.status_code == 200
        assert [m["code"] for m in resp.get_json()["models"]] == ["303", "130"]

    def test_bad_period(self, local_client, admin_headers):
        resp = local_client.get("/api/expenses/tax-models?period=Q1", headers=admin_headers)
        assert resp.status_code == 400

    def test_manual_expense_entry(self, local_client, admin_headers):
        resp = local_client.post("/api/expenses", json={
            "type": "expense", "concept": "Factura Mahou", "taxRate": 0.21, "totalCents": 12100,
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.get_json()["entry"]["baseCents"] == 10000

    def test_forecast_unavailable_without_key(self, local_client, seller_headers):
        resp = local_client.get("/api/forecast/predictions", headers=seller_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "unavailable"

    def test_health_local_only(self, local_client):
        body = local_client.get("/api/system/health").get_json()
        assert body["sync_status"] == "local_only"
        assert body["checks"]["database"]["status"] == "not_configured"
