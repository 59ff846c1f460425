from __future__ import annotations

from ..extensions import db
from tpv.time_utils import to_iso_date


class TaxEntryRecord(db.Model):
    """Stored income/expense ledger line. Insert-only."""
    __tablename__ = "tax_entries"

    id = db.Column(db.String(64), primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False, index=True)  # income, expense
    concept = db.Column(db.String(255), nullable=False)

    base_cents = db.Column(db.Integer, nullable=False)
    tax_rate = db.Column(db.Float, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    manual = db.Column(db.Boolean, nullable=False, default=True)
    is_cash_out = db.Column(db.Boolean, nullable=False, default=False)
    attachment_url = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "type": self.type,
            "concept": self.concept,
            "base_cents": self.base_cents,
            "tax_rate": self.tax_rate,
            "total_cents": self.total_cents,
            "manual": self.manual,
            "is_cash_out": self.is_cash_out,
            "attachment_url": self.attachment_url,
        }
