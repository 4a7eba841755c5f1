from __future__ import annotations

from ..extensions import db
from salonbook.time_utils import to_utc_z


TRANSACTION_TYPE_APPOINTMENT = "appointment"
TRANSACTION_TYPES = ("appointment", "sale", "income", "expense", "package")


class Transaction(db.Model):
    """
    Cash-ledger ("kasa") entry.

    IDEMPOTENCY: at most one type='appointment' row per appointment_id. The
    partial unique index backs up the existence check in ledger_service so a
    concurrent duplicate insert fails instead of double-booking revenue.

    date is the calendar day the revenue is recognized (YYYY-MM-DD), not the
    appointment's service date.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_tenant_date", "tenant_id", "date"),
        db.Index(
            "uq_transactions_appointment_once",
            "appointment_id",
            unique=True,
            sqlite_where=db.text("type = 'appointment'"),
            postgresql_where=db.text("type = 'appointment'"),
        ),
        db.CheckConstraint(
            "type IN ('appointment', 'sale', 'income', 'expense', 'package')",
            name="ck_transactions_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    payment_type = db.Column(db.String(32), nullable=False, default="cash")

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey("appointments.id"), nullable=True, index=True)

    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    profit = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "type": self.type,
            "amount": float(self.amount) if self.amount is not None else None,
            "description": self.description,
            "payment_type": self.payment_type,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "appointment_id": self.appointment_id,
            "date": self.date,
            "profit": float(self.profit) if self.profit is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
