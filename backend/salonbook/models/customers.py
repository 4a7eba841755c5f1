from __future__ import annotations

from ..extensions import db
from salonbook.time_utils import to_utc_z


class Customer(db.Model):
    """
    Admin-side customer record.

    MULTI-TENANT: scoped by tenant_id. The phone column is the join key the
    no-show accounting uses to find the customer behind an appointment.

    no_show_count / is_blacklisted / blacklisted_at are written by
    no_show_service only (admin edits aside).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_tenant_phone", "tenant_id", "phone"),
        db.CheckConstraint("no_show_count >= 0", name="ck_customers_no_show_count"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    no_show_count = db.Column(db.Integer, nullable=False, default=0)
    is_blacklisted = db.Column(db.Boolean, nullable=False, default=False)
    blacklisted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    tenant = db.relationship("Tenant", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "no_show_count": self.no_show_count,
            "is_blacklisted": self.is_blacklisted,
            "blacklisted_at": to_utc_z(self.blacklisted_at) if self.blacklisted_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
