from __future__ import annotations

from ..extensions import db
from tpv.time_utils import to_utc_z


class IngredientRecord(db.Model):
    """
    Stored copy of an ingredient.

    Upserted after every stock change; never deleted.
    """
    __tablename__ = "ingredients"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)

    # Float on purpose: kegs and bottles are consumed in fractions
    stock = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(16), nullable=False, default="unid")
    min_stock = db.Column(db.Float, nullable=False, default=0.0)
    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)
    supplier_id = db.Column(db.String(64), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<IngredientRecord id={self.id!r} stock={self.stock} unit={self.unit!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "stock": self.stock,
            "unit": self.unit,
            "min_stock": self.min_stock,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "supplier_id": self.supplier_id,
        }


class ProductRecord(db.Model):
    """Stored copy of a sellable product and its recipe (JSON list)."""
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False, default="")
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    # [{"ingredientId": ..., "quantity": ...}]
    recipe = db.Column(db.JSON, nullable=False, default=list)
    image_url = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price_cents": self.price_cents,
            "recipe": list(self.recipe or []),
            "image_url": self.image_url,
        }


class PurchaseOrderRecord(db.Model):
    """Synthetic supplier order recorded by auto-order."""
    __tablename__ = "purchase_orders"

    id = db.Column(db.String(64), primary_key=True)
    supplier_name = db.Column(db.String(255), nullable=False)
    items = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(16), nullable=False, default="sent", index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_name": self.supplier_name,
            "items": list(self.items or []),
            "status": self.status,
            "date": to_utc_z(self.date),
        }


class SupplierRecord(db.Model):
    """Supplier and the ingredients it delivers (JSON list of ingredient ids)."""
    __tablename__ = "suppliers"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    contact_name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    associated_ingredients = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "associated_ingredients": list(self.associated_ingredients or []),
        }
