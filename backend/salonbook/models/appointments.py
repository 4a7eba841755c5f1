from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..extensions import db
from ..validation import PackageInfoError
from salonbook.time_utils import to_utc_z


# Valid appointment statuses (must match appointment_service.VALID_STATUSES)
APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")


@dataclass(frozen=True)
class PackageReference:
    """
    Typed view of Appointment.package_info.

    The booking apps write this JSON as {"usageId", "customerPackageId",
    "packageName"}; some rows hold it as a serialized string instead of an
    object. Both shapes decode to the same value here so the settlement
    components never touch raw JSON.
    """
    usage_id: int
    customer_package_id: int | None = None
    package_name: str | None = None

    @classmethod
    def decode(cls, raw: Any) -> "PackageReference | None":
        """
        Returns None when the appointment was paid directly.

        Raises:
            PackageInfoError: value present but unusable
        """
        if raw is None:
            return None
        if isinstance(raw, str):
            if not raw.strip():
                return None
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise PackageInfoError(f"package_info is not valid JSON: {exc}") from exc
            if raw is None:
                return None
        if not isinstance(raw, dict):
            raise PackageInfoError(f"package_info must be an object, got {type(raw).__name__}")

        usage_id = raw.get("usageId", raw.get("usage_id"))
        if usage_id is None:
            raise PackageInfoError("package_info has no usageId")

        package_id = raw.get("customerPackageId", raw.get("customer_package_id"))
        try:
            usage_id = int(usage_id)
            package_id = int(package_id) if package_id is not None else None
        except (TypeError, ValueError) as exc:
            raise PackageInfoError(f"package_info ids must be integers: {exc}") from exc

        return cls(
            usage_id=usage_id,
            customer_package_id=package_id,
            package_name=raw.get("packageName", raw.get("package_name")),
        )

    def to_dict(self) -> dict:
        return {
            "usageId": self.usage_id,
            "customerPackageId": self.customer_package_id,
            "packageName": self.package_name,
        }


class Appointment(db.Model):
    """
    One scheduled service delivery.

    STATUS: pending -> confirmed/completed/cancelled/no_show, rewritable at the
    schema level. Only appointment_service.transition_appointment runs the
    settlement side effects tied to a status change.

    package_info is non-null iff the visit is paid from a customer package.
    customer_phone is the phone captured at booking time; no-show accounting
    joins on it.

    Rows are never deleted by the engine; cancellation is a status write.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        db.Index("ix_appointments_tenant_date", "tenant_id", "date"),
        db.Index("ix_appointments_tenant_status", "tenant_id", "status"),
        db.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_appointments_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    staff_id = db.Column(db.Integer, nullable=True, index=True)
    service_id = db.Column(db.Integer, nullable=True)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    service_name = db.Column(db.String(255), nullable=True)

    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    time = db.Column(db.String(5), nullable=False)  # HH:MM

    status = db.Column(db.String(16), nullable=False, default="pending")
    price = db.Column(db.Numeric(10, 2), nullable=True)
    payment_type = db.Column(db.String(32), nullable=True)
    package_info = db.Column(db.JSON(none_as_null=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    tenant = db.relationship("Tenant", backref=db.backref("appointments", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("appointments", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def package_reference(self) -> PackageReference | None:
        """Decoded package_info; raises PackageInfoError when malformed."""
        return PackageReference.decode(self.package_info)

    @property
    def is_package_funded(self) -> bool:
        # Presence alone decides funding, even if the payload is malformed
        if self.package_info is None:
            return False
        if isinstance(self.package_info, str):
            return bool(self.package_info.strip())
        return True

    def __repr__(self) -> str:
        return f"<Appointment id={self.id} status={self.status!r}>"

    def to_summary(self) -> dict:
        return {"id": self.id, "status": self.status}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "customer_id": self.customer_id,
            "staff_id": self.staff_id,
            "service_id": self.service_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "service_name": self.service_name,
            "date": self.date,
            "time": self.time,
            "status": self.status,
            "price": float(self.price) if self.price is not None else None,
            "payment_type": self.payment_type,
            "package_info": self.package_info,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
