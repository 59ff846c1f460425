from __future__ import annotations

from ..extensions import db
from tpv.time_utils import to_utc_z


class SaleRecord(db.Model):
    """
    Stored sale. Insert-only.

    shift_id references the shift row, which is why the shift upsert is
    written before the sale.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_tenant_timestamp", "tenant_id", "timestamp"),
    )

    id = db.Column(db.String(64), primary_key=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # [{"productId", "quantity", "unitPriceCents", "name", "mixerId"}]
    items = db.Column(db.JSON, nullable=False, default=list)

    total_cents = db.Column(db.Integer, nullable=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False)
    change_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, index=True)
    payment_method_detail = db.Column(db.String(128), nullable=True)

    seller_id = db.Column(db.String(64), nullable=False)
    table_id = db.Column(db.String(64), nullable=True)
    tenant_id = db.Column(db.String(64), nullable=False)
    shift_id = db.Column(db.String(64), db.ForeignKey("shifts.id"), nullable=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "items": list(self.items or []),
            "total_cents": self.total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "change_cents": self.change_cents,
            "payment_method": self.payment_method,
            "payment_method_detail": self.payment_method_detail,
            "seller_id": self.seller_id,
            "table_id": self.table_id,
            "tenant_id": self.tenant_id,
            "shift_id": self.shift_id,
        }


class WasteEntryRecord(db.Model):
    """Stored waste / spoilage / staff-consumption event. Insert-only."""
    __tablename__ = "waste_entries"

    id = db.Column(db.String(64), primary_key=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    product_id = db.Column(db.String(64), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    reason = db.Column(db.String(32), nullable=False)
    user_id = db.Column(db.String(64), nullable=False)
    note = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "product_id": self.product_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "user_id": self.user_id,
            "note": self.note,
        }
