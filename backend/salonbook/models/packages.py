from __future__ import annotations

from ..extensions import db
from salonbook.time_utils import to_utc_z


PACKAGE_STATUS_ACTIVE = "active"
PACKAGE_STATUS_COMPLETED = "completed"


class CustomerPackage(db.Model):
    """
    A package a customer bought (e.g. "10 laser sessions").

    INVARIANT: status is 'completed' iff every usage row has
    remaining_quantity == 0. package_service re-checks this after every
    deduction and refund.
    """
    __tablename__ = "customer_packages"
    __table_args__ = (
        db.Index("ix_customer_packages_tenant_customer", "tenant_id", "customer_id"),
        db.CheckConstraint("status IN ('active', 'completed')", name="ck_customer_packages_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    package_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=PACKAGE_STATUS_ACTIVE)

    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("packages", lazy=True))
    usages = db.relationship(
        "CustomerPackageUsage",
        back_populates="customer_package",
        lazy=True,
        order_by="CustomerPackageUsage.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_usages: bool = False) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "customer_id": self.customer_id,
            "package_name": self.package_name,
            "status": self.status,
            "assigned_at": to_utc_z(self.assigned_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_usages:
            data["usages"] = [u.to_dict() for u in self.usages]
        return data


class CustomerPackageUsage(db.Model):
    """
    Remaining entitlement for one item (service or product) of a package.

    INVARIANTS (also enforced as CHECK constraints):
    - used_quantity + remaining_quantity == total_quantity
    - 0 <= remaining_quantity

    Quantities are only changed through package_service conditional updates.
    """
    __tablename__ = "customer_package_usages"
    __table_args__ = (
        db.CheckConstraint(
            "used_quantity + remaining_quantity = total_quantity",
            name="ck_package_usages_balance",
        ),
        db.CheckConstraint("remaining_quantity >= 0", name="ck_package_usages_remaining"),
        db.CheckConstraint("used_quantity >= 0", name="ck_package_usages_used"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_package_id = db.Column(
        db.Integer, db.ForeignKey("customer_packages.id"), nullable=False, index=True
    )
    item_type = db.Column(db.String(16), nullable=False, default="service")  # service, product
    item_name = db.Column(db.String(255), nullable=False)

    total_quantity = db.Column(db.Integer, nullable=False)
    used_quantity = db.Column(db.Integer, nullable=False, default=0)
    remaining_quantity = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer_package = db.relationship("CustomerPackage", back_populates="usages")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_package_id": self.customer_package_id,
            "item_type": self.item_type,
            "item_name": self.item_name,
            "total_quantity": self.total_quantity,
            "used_quantity": self.used_quantity,
            "remaining_quantity": self.remaining_quantity,
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
