# Overview: Flask API routes for ingredients, products, recipes and suppliers.

# backend/tpv/routes/inventory.py
"""
Catalogue API Routes

Ingredients and products are upserted by id in the store. Recipes are edited
as part of the product; a product without a recipe sells but never consumes
stock.
"""

import uuid
from dataclasses import replace

from flask import Blueprint, request, jsonify, current_app

from .. import seed_data
from ..decorators import require_admin, require_user
from ..entities import NO_MIXER
from ..services import stock_service
from ..services.runtime import get_runtime
from ..validation import (
    ConflictError,
    ValidationError,
    parse_ingredient,
    parse_product,
    parse_recipe,
    parse_supplier,
    require_json_object,
)


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


# =============================================================================
# INGREDIENTS
# =============================================================================

@inventory_bp.get("/ingredients")
def list_ingredients_route():
    ingredients = sorted(get_runtime().state.ingredients.values(), key=lambda i: i.name)
    return jsonify({
        "ingredients": [
            dict(i.to_dict(), belowMinimum=i.is_below_minimum) for i in ingredients
        ]
    }), 200


@inventory_bp.get("/ingredients/low-stock")
def low_stock_route():
    low = stock_service.low_stock(get_runtime().state.ingredients)
    return jsonify({"ingredients": [i.to_dict() for i in low]}), 200


@inventory_bp.post("/ingredients")
@require_user
@require_admin
def create_ingredient_route():
    try:
        data = require_json_object(request.get_json(silent=True))
        runtime = get_runtime()
        if str(data.get("id")) in runtime.state.ingredients:
            raise ConflictError(f"Ingredient {data.get('id')} already exists")

        ingredient = parse_ingredient(data)
        runtime.state.ingredients[ingredient.id] = ingredient
        outcome = runtime.outbound.submit(
            "ingredient", ingredient.id, runtime.store.upsert_ingredient, ingredient
        )
        return jsonify({"ingredient": ingredient.to_dict(), "sync": outcome.to_dict()}), 201

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create ingredient")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/ingredients/<ingredient_id>")
@require_user
@require_admin
def update_ingredient_route(ingredient_id: str):
    """Edit an ingredient, including a manual stock correction."""
    runtime = get_runtime()
    existing = runtime.state.ingredients.get(ingredient_id)
    if existing is None:
        return jsonify({"error": "Ingredient not found"}), 404

    try:
        data = require_json_object(request.get_json(silent=True))
        ingredient = parse_ingredient(data, existing=existing)
        runtime.state.ingredients[ingredient_id] = ingredient
        outcome = runtime.outbound.submit(
            "ingredient", ingredient.id, runtime.store.upsert_ingredient, ingredient
        )
        return jsonify({"ingredient": ingredient.to_dict(), "sync": outcome.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update ingredient")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PRODUCTS
# =============================================================================

@inventory_bp.get("/products")
def list_products_route():
    category = request.args.get("category")
    products = sorted(get_runtime().state.products.values(), key=lambda p: (p.category, p.name))
    if category:
        products = [p for p in products if p.category == category]
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@inventory_bp.post("/products")
@require_user
@require_admin
def create_product_route():
    try:
        data = require_json_object(request.get_json(silent=True))
        runtime = get_runtime()
        if str(data.get("id")) in runtime.state.products:
            raise ConflictError(f"Product {data.get('id')} already exists")

        product = parse_product(data)
        if not product.recipe:
            current_app.logger.warning("Product %s created without a recipe; it will not consume stock", product.id)

        runtime.state.products[product.id] = product
        outcome = runtime.outbound.submit("product", product.id, runtime.store.upsert_product, product)
        return jsonify({"product": product.to_dict(), "sync": outcome.to_dict()}), 201

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/products/<product_id>")
@require_user
@require_admin
def update_product_route(product_id: str):
    runtime = get_runtime()
    existing = runtime.state.products.get(product_id)
    if existing is None:
        return jsonify({"error": "Product not found"}), 404

    try:
        data = require_json_object(request.get_json(silent=True))
        product = parse_product(data, existing=existing)
        runtime.state.products[product_id] = product
        outcome = runtime.outbound.submit("product", product.id, runtime.store.upsert_product, product)
        return jsonify({"product": product.to_dict(), "sync": outcome.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.put("/products/<product_id>/recipe")
@require_user
@require_admin
def replace_recipe_route(product_id: str):
    """
    Replace a product's recipe.

    Request body:
    {
        "recipe": [{"ingredientId": "ing_cerveza", "quantity": 0.2}]
    }
    """
    runtime = get_runtime()
    existing = runtime.state.products.get(product_id)
    if existing is None:
        return jsonify({"error": "Product not found"}), 404

    try:
        data = require_json_object(request.get_json(silent=True))
        recipe = parse_recipe(data.get("recipe"))
        unknown = [r.ingredient_id for r in recipe if r.ingredient_id not in runtime.state.ingredients]
        if unknown:
            raise ValidationError(f"Unknown ingredients: {', '.join(unknown)}")

        product = parse_product({"recipe": data.get("recipe")}, existing=existing)
        runtime.state.products[product_id] = product
        outcome = runtime.outbound.submit("product", product.id, runtime.store.upsert_product, product)
        return jsonify({"product": product.to_dict(), "sync": outcome.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to replace recipe")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/suppliers")
def list_suppliers_route():
    suppliers = get_runtime().state.suppliers.values()
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200


@inventory_bp.post("/suppliers")
@require_user
@require_admin
def create_supplier_route():
    """
    Register a supplier and point its ingredients at it.

    Request body:
    {
        "name": "Mahou San Miguel",
        "contactName": "Javier",
        "phone": "910000101",
        "email": "pedidos@example.com",
        "associatedIngredients": ["ing_cerveza"]
    }

    An ingredient moves away from its previous supplier, which is rewritten
    without it. Auto-orders group by the ingredient's supplier.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        runtime = get_runtime()
        state = runtime.state

        supplier = parse_supplier(data, uuid.uuid4().hex[:9])
        unknown = [i for i in supplier.associated_ingredients if i not in state.ingredients]
        if unknown:
            raise ValidationError(f"Unknown ingredients: {', '.join(unknown)}")

        outcomes = []
        state.suppliers[supplier.id] = supplier
        outcomes.append(runtime.outbound.submit("supplier", supplier.id, runtime.store.upsert_supplier, supplier))

        moved = set(supplier.associated_ingredients)
        for other in list(state.suppliers.values()):
            if other.id == supplier.id or not moved.intersection(other.associated_ingredients):
                continue
            other = replace(other, associated_ingredients=[i for i in other.associated_ingredients if i not in moved])
            state.suppliers[other.id] = other
            outcomes.append(runtime.outbound.submit("supplier", other.id, runtime.store.upsert_supplier, other))

        for ingredient_id in supplier.associated_ingredients:
            ingredient = replace(state.ingredients[ingredient_id], supplier_id=supplier.id)
            state.ingredients[ingredient_id] = ingredient
            outcomes.append(
                runtime.outbound.submit("ingredient", ingredient.id, runtime.store.upsert_ingredient, ingredient)
            )

        return jsonify({
            "supplier": supplier.to_dict(),
            "sync": [o.to_dict() for o in outcomes],
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/mixers")
def list_mixers_route():
    """Ingredients offered as mixers for combinados, plus the "no mixer" choice."""
    ingredients = get_runtime().state.ingredients
    mixers = [ingredients[i] for i in seed_data.mixer_ingredient_ids() if i in ingredients]
    return jsonify({
        "noMixer": NO_MIXER,
        "mixers": [m.to_dict() for m in mixers],
    }), 200
