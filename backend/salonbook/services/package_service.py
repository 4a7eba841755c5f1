# Overview: Service-layer operations for package settlement; deducts and refunds package units.

"""
Package Settlement

PURPOSE: Keep a customer's package entitlement in step with the appointments
paid from it.

    deduct(appointment)  one unit used   (appointment entered confirmed/completed)
    refund(appointment)  one unit back   (settled appointment got cancelled)

RULES:
1. Appointments without package_info are paid directly: both calls no-op.
2. Quantities move by exactly one unit, in a single conditional UPDATE
   (guarded by remaining_quantity > 0 / used_quantity > 0). The affected row
   count decides whether the unit moved, so two requests racing on the last
   unit cannot drive remaining_quantity negative.
3. After every successful move the owning package's status is re-derived:
   'completed' iff no usage row has remaining_quantity > 0, else 'active'.
4. Soft failures (malformed package_info, missing usage row, nothing left to
   deduct/refund) are logged and reported as False. They never raise: the
   appointment status that triggered the settlement is already committed.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import (
    Appointment,
    CustomerPackage,
    CustomerPackageUsage,
    PackageReference,
    PACKAGE_STATUS_ACTIVE,
    PACKAGE_STATUS_COMPLETED,
)
from ..validation import SettlementWarning
from .concurrency import guarded_update, run_with_retry


def deduct(appointment: Appointment) -> bool:
    """
    Consume one unit of the package usage referenced by the appointment.

    Returns True if a unit was deducted, False on any no-op.
    """
    return _settle(appointment, _deduct_unit, "deduct")


def refund(appointment: Appointment) -> bool:
    """
    Give back one unit of the package usage referenced by the appointment.

    Exact inverse of deduct(). Returns True if a unit was refunded.
    """
    return _settle(appointment, _refund_unit, "refund")


def _settle(appointment: Appointment, unit_op, label: str) -> bool:
    try:
        ref = appointment.package_reference
        if ref is None:
            return False

        def _op():
            usage = unit_op(ref)
            _sync_package_status(usage.customer_package_id)
            db.session.commit()
            return usage

        usage = run_with_retry(_op)
    except SettlementWarning as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Package %s skipped for appointment %s: %s", label, appointment.id, exc
        )
        return False

    current_app.logger.info(
        "Package %s applied for appointment %s (usage %s: used=%s remaining=%s)",
        label,
        appointment.id,
        usage.id,
        usage.used_quantity,
        usage.remaining_quantity,
    )
    return True


def _deduct_unit(ref: PackageReference) -> CustomerPackageUsage:
    rows = guarded_update(
        db.session.query(CustomerPackageUsage).filter(
            CustomerPackageUsage.id == ref.usage_id,
            CustomerPackageUsage.remaining_quantity > 0,
        ),
        {
            CustomerPackageUsage.used_quantity: CustomerPackageUsage.used_quantity + 1,
            CustomerPackageUsage.remaining_quantity: CustomerPackageUsage.remaining_quantity - 1,
            CustomerPackageUsage.version_id: CustomerPackageUsage.version_id + 1,
        },
    )
    if rows == 0:
        _raise_for_missing_usage(ref)
        raise SettlementWarning(f"usage {ref.usage_id} is already depleted")
    return _reload_usage(ref.usage_id)


def _refund_unit(ref: PackageReference) -> CustomerPackageUsage:
    rows = guarded_update(
        db.session.query(CustomerPackageUsage).filter(
            CustomerPackageUsage.id == ref.usage_id,
            CustomerPackageUsage.used_quantity > 0,
        ),
        {
            CustomerPackageUsage.used_quantity: CustomerPackageUsage.used_quantity - 1,
            CustomerPackageUsage.remaining_quantity: CustomerPackageUsage.remaining_quantity + 1,
            CustomerPackageUsage.version_id: CustomerPackageUsage.version_id + 1,
        },
    )
    if rows == 0:
        _raise_for_missing_usage(ref)
        raise SettlementWarning(f"usage {ref.usage_id} has nothing to refund")
    return _reload_usage(ref.usage_id)


def _raise_for_missing_usage(ref: PackageReference) -> None:
    exists = db.session.query(CustomerPackageUsage.id).filter_by(id=ref.usage_id).first()
    if exists is None:
        raise SettlementWarning(f"usage {ref.usage_id} not found")


def _reload_usage(usage_id: int) -> CustomerPackageUsage:
    usage = db.session.get(CustomerPackageUsage, usage_id, populate_existing=True)
    if usage is None:
        raise SettlementWarning(f"usage {usage_id} not found")
    return usage


def _sync_package_status(customer_package_id: int) -> str:
    """
    Re-derive CustomerPackage.status from its usage rows (after this
    transaction's own update). Only writes when the status changes.
    """
    open_items = (
        db.session.query(func.count(CustomerPackageUsage.id))
        .filter(
            CustomerPackageUsage.customer_package_id == customer_package_id,
            CustomerPackageUsage.remaining_quantity > 0,
        )
        .scalar()
    )
    status = PACKAGE_STATUS_ACTIVE if open_items else PACKAGE_STATUS_COMPLETED

    guarded_update(
        db.session.query(CustomerPackage).filter(
            CustomerPackage.id == customer_package_id,
            CustomerPackage.status != status,
        ),
        {
            CustomerPackage.status: status,
            CustomerPackage.version_id: CustomerPackage.version_id + 1,
        },
    )
    return status
