# Overview: Demo catalogue used when the remote store is absent or empty.

from __future__ import annotations

from .entities import (
    ZONE_BAR,
    ZONE_INDOOR,
    ZONE_TERRACE,
    Ingredient,
    Product,
    RecipeLine,
    Supplier,
    Table,
    User,
)


def initial_users() -> list[User]:
    return [
        User(id="u1", name="Carlos (Dueño)", role="admin", pin="1234"),
        User(id="u2", name="Laura", role="seller", pin="0000"),
        User(id="u3", name="Marcos", role="seller", pin="1111"),
    ]


def initial_tables() -> list[Table]:
    layout = [
        ("t1", "1", ZONE_INDOOR), ("t2", "2", ZONE_INDOOR),
        ("t3", "3", ZONE_INDOOR), ("t4", "4", ZONE_INDOOR),
        ("t10", "T1", ZONE_TERRACE), ("t11", "T2", ZONE_TERRACE), ("t12", "T3", ZONE_TERRACE),
        ("b1", "B1", ZONE_BAR), ("b2", "B2", ZONE_BAR), ("b3", "B3", ZONE_BAR),
    ]
    return [Table(id=tid, number=number, zone=zone) for tid, number, zone in layout]


# (id, name, stock, unit, min_stock, cost_per_unit_cents)
_INGREDIENTS = [
    # Bebidas base
    ("ing_cerveza", "Cerveza (Barril 50L)", 50, "L", 15, 210),
    ("ing_vino_tinto", "Vino Tinto (Rioja 0.75L)", 24, "unid", 6, 650),
    ("ing_vino_blanco", "Vino Blanco (Rueda 0.75L)", 12, "unid", 4, 580),
    ("ing_refresco_cola", "Coca-Cola (Botella 0.2L)", 120, "unid", 24, 85),
    ("ing_refresco_cola_zero", "Coca-Cola Zero (Botella 0.2L)", 80, "unid", 24, 85),
    ("ing_fanta_nar", "Fanta Naranja (Botella 0.2L)", 60, "unid", 12, 80),
    ("ing_fanta_lim", "Fanta Limón (Botella 0.2L)", 60, "unid", 12, 80),
    ("ing_sprite", "Sprite (Botella 0.2L)", 40, "unid", 10, 80),
    ("ing_tonica", "Tónica Schweppes (Botella 0.2L)", 100, "unid", 20, 90),
    ("ing_agua_05", "Agua Mineral (0.5L)", 200, "unid", 50, 25),
    # Destilados: 1 botella 0.7L = 14 copas
    ("ing_gin_beefeater", "Gin Beefeater (0.7L)", 5, "unid", 1, 1450),
    ("ing_gin_tanqueray", "Gin Tanqueray (0.7L)", 4, "unid", 1, 1620),
    ("ing_ron_barcelo", "Ron Barceló (0.7L)", 6, "unid", 1, 1580),
    ("ing_whisky_jb", "Whisky J&B (0.7L)", 5, "unid", 1, 1390),
    ("ing_vodka_absolut", "Vodka Absolut (0.7L)", 3, "unid", 1, 1600),
    # Alimentación
    ("ing_cafe", "Café Grano (1kg)", 10, "kg", 2, 1800),
    ("ing_leche", "Leche (1L)", 40, "L", 6, 90),
    ("ing_pan_hamb", "Pan Burger Brioche", 50, "unid", 10, 45),
    ("ing_pan_barra", "Pan de Barra (Baguette)", 30, "unid", 5, 40),
    ("ing_carne_hamb", "Carne Ternera (180g)", 40, "unid", 10, 180),
    ("ing_queso_cheddar", "Queso Cheddar (Loncha)", 100, "unid", 20, 15),
    ("ing_patatas_congeladas", "Patatas Fritas (Bolsa 2.5kg)", 10, "unid", 2, 520),
    ("ing_calamares", "Calamares Limpios (kg)", 5, "kg", 1, 1200),
    ("ing_jamon_iberico", "Jamón Ibérico (kg)", 3, "kg", 0.5, 4500),
]

# (id, name, category, price_cents, [(ingredient_id, quantity)])
_PRODUCTS = [
    ("p_cafe_solo", "Café Solo", "Cafés", 140, [("ing_cafe", 0.008)]),
    ("p_cafe_leche", "Café con Leche", "Cafés", 160, [("ing_cafe", 0.008), ("ing_leche", 0.15)]),
    ("p_capuchino", "Capuchino", "Cafés", 220, [("ing_cafe", 0.008), ("ing_leche", 0.25)]),
    ("p_cola", "Coca-Cola", "Refrescos", 250, [("ing_refresco_cola", 1)]),
    ("p_cola_zero", "Coca-Cola Zero", "Refrescos", 250, [("ing_refresco_cola_zero", 1)]),
    ("p_fanta_nar", "Fanta Naranja", "Refrescos", 240, [("ing_fanta_nar", 1)]),
    ("p_tonica", "Tónica Schweppes", "Refrescos", 260, [("ing_tonica", 1)]),
    ("p_agua_peq", "Agua Mineral 0.5L", "Refrescos", 150, [("ing_agua_05", 1)]),
    ("p_cana", "Caña de Cerveza", "Cervezas", 180, [("ing_cerveza", 0.20)]),
    ("p_doble", "Doble de Cerveza", "Cervezas", 280, [("ing_cerveza", 0.35)]),
    ("p_jarra", "Jarra 0.5L", "Cervezas", 450, [("ing_cerveza", 0.50)]),
    # Combinados: the mixer is picked per sale line
    ("p_gin_beefeater", "Gin Beefeater + Refresco", "Combinados", 850, [("ing_gin_beefeater", 0.071)]),
    ("p_gin_tanqueray", "Gin Tanqueray + Refresco", "Combinados", 950, [("ing_gin_tanqueray", 0.071)]),
    ("p_ron_barcelo", "Ron Barceló + Refresco", "Combinados", 850, [("ing_ron_barcelo", 0.071)]),
    ("p_whisky_jb", "Whisky J&B + Refresco", "Combinados", 800, [("ing_whisky_jb", 0.071)]),
    ("p_hamb_clasica", "Hamburguesa Clásica", "Comida", 950, [
        ("ing_pan_hamb", 1), ("ing_carne_hamb", 1),
        ("ing_queso_cheddar", 1), ("ing_patatas_congeladas", 0.1),
    ]),
    ("p_boc_calamares", "Bocadillo de Calamares", "Comida", 650, [("ing_pan_barra", 0.5), ("ing_calamares", 0.15)]),
    ("p_racion_patatas", "Ración de Patatas Bravas", "Comida", 550, [("ing_patatas_congeladas", 0.15)]),
    ("p_racion_jamon", "Ración Jamón Ibérico", "Comida", 1800, [("ing_jamon_iberico", 0.1)]),
]


# (id, name, contact_name, phone, email, ingredient ids)
_SUPPLIERS = [
    ("sup_mahou", "Mahou San Miguel", "Javier Ruiz", "910 000 101", "pedidos@mahou.example", [
        "ing_cerveza",
    ]),
    ("sup_refrescos", "Coca-Cola Europacific Partners", "Elena Gómez", "910 000 202", "pedidos@ccep.example", [
        "ing_refresco_cola", "ing_refresco_cola_zero", "ing_fanta_nar", "ing_fanta_lim",
        "ing_sprite", "ing_tonica", "ing_agua_05",
    ]),
    ("sup_bebidas", "Distribuciones Bebidas Centro", "Pablo Martín", "910 000 303", "comercial@dbc.example", [
        "ing_vino_tinto", "ing_vino_blanco", "ing_gin_beefeater", "ing_gin_tanqueray",
        "ing_ron_barcelo", "ing_whisky_jb", "ing_vodka_absolut",
    ]),
]


def initial_ingredients() -> list[Ingredient]:
    supplier_of = {ing: sid for sid, *_, ingredient_ids in _SUPPLIERS for ing in ingredient_ids}
    return [
        Ingredient(
            id=i, name=n, stock=float(s), unit=u, min_stock=float(m),
            cost_per_unit_cents=c, supplier_id=supplier_of.get(i),
        )
        for i, n, s, u, m, c in _INGREDIENTS
    ]


def initial_suppliers() -> list[Supplier]:
    return [
        Supplier(id=sid, name=name, contact_name=contact, phone=phone, email=email,
                 associated_ingredients=list(ingredient_ids))
        for sid, name, contact, phone, email, ingredient_ids in _SUPPLIERS
    ]


def initial_products() -> list[Product]:
    return [
        Product(
            id=pid,
            name=name,
            category=category,
            price_cents=price,
            recipe=[RecipeLine(ingredient_id=ing, quantity=float(q)) for ing, q in recipe],
        )
        for pid, name, category, price, recipe in _PRODUCTS
    ]


def mixer_ingredient_ids() -> list[str]:
    """Ingredients offered as mixers for combinados."""
    return [
        i for i, *_ in _INGREDIENTS
        if "refresco" in i or "tonica" in i or "agua" in i or "fanta" in i or "sprite" in i
    ]
