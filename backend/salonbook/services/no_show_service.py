# Overview: Service-layer operations for no-show accounting and blacklist lookups.

"""
No-Show Accounting

WHY: Customers who repeatedly skip appointments get blacklisted so the
booking apps can refuse them. The tenant picks the threshold
(TenantSettings.blacklist_threshold, default 3).

CUSTOMER RESOLUTION:
The appointment is linked to the admin-side Customer by phone number
(appointment.customer_phone == customer.phone within the same tenant), not by
customer_id. Mobile/PWA sessions and admin customer records are separate
identities and phone is the only key both sides share. Phone strings are
compared exactly as stored; numbers saved with and without a country code
will not match.

RULES:
1. no_show_count is incremented with a single UPDATE (no read-modify-write).
2. Blacklisting is a conditional UPDATE guarded by
   is_blacklisted = false AND no_show_count >= threshold, so blacklisted_at is
   stamped exactly once.
3. Nothing here ever un-blacklists a customer.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Appointment, Customer, Tenant
from ..validation import SettlementWarning
from .concurrency import guarded_update, run_with_retry
from .settings_service import get_blacklist_threshold
from salonbook.time_utils import utcnow


class TenantNotFoundError(ValueError):
    """Raised when a tenant slug does not resolve."""
    pass


def find_customer_by_phone(tenant_id: int, phone: str | None) -> Customer | None:
    if not phone:
        return None
    return (
        db.session.query(Customer)
        .filter(Customer.tenant_id == tenant_id, Customer.phone == phone)
        .order_by(Customer.id)
        .first()
    )


def record_no_show(appointment: Appointment) -> Customer | None:
    """
    Count a no-show against the appointment's customer and blacklist them
    once the tenant threshold is reached.

    Returns the updated Customer, or None when no customer could be resolved.
    Never raises for an unresolvable customer.
    """
    tenant_id = appointment.tenant_id
    phone = appointment.customer_phone

    def _op():
        customer = find_customer_by_phone(tenant_id, phone)
        if customer is None:
            raise SettlementWarning(
                f"no customer with phone {phone!r} in tenant {tenant_id}"
            )
        customer_id = customer.id

        guarded_update(
            db.session.query(Customer).filter(Customer.id == customer_id),
            {
                Customer.no_show_count: Customer.no_show_count + 1,
                Customer.version_id: Customer.version_id + 1,
            },
        )

        threshold = get_blacklist_threshold(tenant_id)
        blacklisted = guarded_update(
            db.session.query(Customer).filter(
                Customer.id == customer_id,
                Customer.is_blacklisted == False,  # noqa: E712
                Customer.no_show_count >= threshold,
            ),
            {
                Customer.is_blacklisted: True,
                Customer.blacklisted_at: utcnow(),
                Customer.version_id: Customer.version_id + 1,
            },
        )
        db.session.commit()
        return customer_id, threshold, bool(blacklisted)

    try:
        customer_id, threshold, blacklisted = run_with_retry(_op)
    except SettlementWarning as exc:
        db.session.rollback()
        current_app.logger.warning(
            "No-show not recorded for appointment %s: %s", appointment.id, exc
        )
        return None

    customer = db.session.get(Customer, customer_id, populate_existing=True)
    current_app.logger.info(
        "No-show recorded for customer %s (count=%s, threshold=%s)",
        customer_id,
        customer.no_show_count,
        threshold,
    )
    if blacklisted:
        current_app.logger.info("Customer %s blacklisted for tenant %s", customer_id, tenant_id)
    return customer


def check_blacklist(tenant_slug: str, phone: str) -> dict:
    """
    Public lookup used by the booking pages before accepting a reservation.

    Unknown customers are reported as not blacklisted with zero no-shows.

    Raises:
        TenantNotFoundError: slug does not match a tenant
    """
    tenant = db.session.query(Tenant).filter_by(slug=tenant_slug).first()
    if tenant is None:
        raise TenantNotFoundError(f"Tenant {tenant_slug!r} not found")

    customer = find_customer_by_phone(tenant.id, phone)
    return {
        "is_blacklisted": bool(customer.is_blacklisted) if customer else False,
        "no_show_count": customer.no_show_count if customer else 0,
    }
