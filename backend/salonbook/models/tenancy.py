from __future__ import annotations

from ..extensions import db
from salonbook.time_utils import to_utc_z


class Tenant(db.Model):
    """
    A salon/clinic account. Every appointment, customer, package and ledger
    row is scoped to exactly one tenant.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class TenantSettings(db.Model):
    """
    Per-tenant business settings read by the settlement engine.

    Only blacklist_threshold matters here; a missing row or a NULL value
    falls back to Config.DEFAULT_BLACKLIST_THRESHOLD.
    """
    __tablename__ = "tenant_settings"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_tenant_settings_tenant"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    blacklist_threshold = db.Column(db.Integer, nullable=True, default=3)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    tenant = db.relationship("Tenant", backref=db.backref("settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "blacklist_threshold": self.blacklist_threshold,
            "updated_at": to_utc_z(self.updated_at),
        }
