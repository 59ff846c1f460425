from __future__ import annotations

from ..extensions import db
from tpv.time_utils import to_utc_z


class ShiftRecord(db.Model):
    """
    Stored cash-drawer shift.

    LIFECYCLE:
    - open: totals rewritten (upsert) after every sale and cash-out expense
    - closed: final count, expected cash and discrepancy set; no further writes
    """
    __tablename__ = "shifts"

    id = db.Column(db.String(64), primary_key=True)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    # Cash tracking (all amounts in cents)
    initial_base_cents = db.Column(db.Integer, nullable=False, default=0)
    final_cash_cents = db.Column(db.Integer, nullable=True)
    expected_cash_cents = db.Column(db.Integer, nullable=True)
    discrepancy_cents = db.Column(db.Integer, nullable=True)

    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_card_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cash_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_expenses_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="open", index=True)
    user_id = db.Column(db.String(64), nullable=False)

    discrepancy_events = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "initial_base_cents": self.initial_base_cents,
            "final_cash_cents": self.final_cash_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "discrepancy_cents": self.discrepancy_cents,
            "total_sales_cents": self.total_sales_cents,
            "total_card_cents": self.total_card_cents,
            "total_cash_sales_cents": self.total_cash_sales_cents,
            "total_expenses_cents": self.total_expenses_cents,
            "status": self.status,
            "user_id": self.user_id,
            "discrepancy_events": list(self.discrepancy_events or []),
        }
