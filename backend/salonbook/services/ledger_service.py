# Overview: Service-layer operations for the cash ledger; appointment revenue entries and repair.

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Appointment, Transaction, TRANSACTION_TYPE_APPOINTMENT
from ..validation import SettlementWarning
from .concurrency import run_with_retry
from salonbook.time_utils import today_str
"""
Cash Ledger Invariants (authoritative)

- One type='appointment' Transaction per appointment, ever. The existence
  check below is the first line; the partial unique index on
  transactions.appointment_id is the second.
- Package-funded appointments never produce a cash entry.
- Revenue is recognized on the day the appointment is settled (today), not
  on the appointment's service date. The repair job below is the one
  exception: it backdates to the service date because it runs after the fact.
"""

# Statuses that count as "settled" for revenue purposes
SETTLED_STATUSES = ("confirmed", "completed")

DEFAULT_PAYMENT_TYPE = "cash"


def create_appointment_transaction(appointment: Appointment) -> Transaction | None:
    """
    Record the appointment's price in the cash ledger if it is not there yet.

    Returns the new Transaction, or None when nothing was written (package
    funded, no price, or already recorded). Never raises for those cases.
    """
    if appointment.is_package_funded:
        return None
    if appointment.price is None or Decimal(appointment.price) <= 0:
        return None
    appointment_id = appointment.id

    def _op():
        tx = _insert_appointment_transaction(appointment, date=today_str())
        db.session.commit()
        return tx

    try:
        tx = run_with_retry(_op)
    except SettlementWarning as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Ledger entry skipped for appointment %s: %s", appointment_id, exc
        )
        return None

    current_app.logger.info(
        "Ledger entry %s created for appointment %s (amount=%s)",
        tx.id,
        appointment_id,
        tx.amount,
    )
    return tx


def get_appointment_transaction(appointment_id: int) -> Transaction | None:
    return (
        db.session.query(Transaction)
        .filter_by(type=TRANSACTION_TYPE_APPOINTMENT, appointment_id=appointment_id)
        .first()
    )


def _insert_appointment_transaction(appointment: Appointment, *, date: str) -> Transaction:
    """
    Insert (flush, no commit) the appointment's ledger row.

    Raises:
        SettlementWarning: a row already exists (found up front, or a
            concurrent insert won the unique index)
    """
    appointment_id = appointment.id
    if get_appointment_transaction(appointment_id) is not None:
        raise SettlementWarning(f"transaction already exists for appointment {appointment_id}")

    tx = Transaction(
        tenant_id=appointment.tenant_id,
        type=TRANSACTION_TYPE_APPOINTMENT,
        amount=appointment.price,
        description=_describe(appointment),
        payment_type=appointment.payment_type or DEFAULT_PAYMENT_TYPE,
        customer_id=appointment.customer_id,
        customer_name=appointment.customer_name,
        appointment_id=appointment_id,
        date=date,
        profit=0,
    )
    db.session.add(tx)
    try:
        db.session.flush()
    except IntegrityError as exc:
        # Failed flush expires every instance; do not touch them before rollback
        db.session.rollback()
        raise SettlementWarning(
            f"transaction already exists for appointment {appointment_id} (concurrent insert)"
        ) from exc
    return tx


def _describe(appointment: Appointment) -> str:
    service = appointment.service_name or "Hizmet"
    customer = appointment.customer_name or "Müşteri"
    return f"Randevu: {service} - {customer}"


# =============================================================================
# REPAIR: settled appointments that never got a ledger entry
# =============================================================================

def find_missing_appointment_transactions(tenant_id: int, date: str | None = None) -> list[Appointment]:
    """
    Settled, directly-paid, positive-price appointments with no ledger row.

    These are the casualties of the best-effort settlement policy: the status
    write succeeded but the ledger insert did not.
    """
    recorded = (
        db.select(Transaction.appointment_id)
        .where(
            Transaction.tenant_id == tenant_id,
            Transaction.type == TRANSACTION_TYPE_APPOINTMENT,
            Transaction.appointment_id.isnot(None),
        )
    )
    query = db.session.query(Appointment).filter(
        Appointment.tenant_id == tenant_id,
        Appointment.status.in_(SETTLED_STATUSES),
        Appointment.price > 0,
        Appointment.package_info.is_(None),
        Appointment.id.notin_(recorded),
    )
    if date:
        query = query.filter(Appointment.date == date)
    return query.order_by(Appointment.date, Appointment.time, Appointment.id).all()


def summarize_missing(appointments: list[Appointment]) -> dict:
    return {
        "missing_count": len(appointments),
        "total_missing_amount": float(sum((Decimal(a.price) for a in appointments), Decimal("0"))),
        "missing_appointments": [
            {
                "id": a.id,
                "customer_name": a.customer_name,
                "service_name": a.service_name,
                "price": float(a.price),
                "date": a.date,
                "status": a.status,
            }
            for a in appointments
        ],
    }


def backfill_missing_appointment_transactions(tenant_id: int, date: str | None = None) -> list[Transaction]:
    """
    Create the missing ledger rows, dated with each appointment's service date.

    Each row commits on its own; a failure on one appointment is logged and
    does not stop the rest.
    """
    created: list[Transaction] = []
    for appointment in find_missing_appointment_transactions(tenant_id, date):
        appointment_id = appointment.id

        def _op(appointment=appointment):
            tx = _insert_appointment_transaction(appointment, date=appointment.date)
            db.session.commit()
            return tx

        try:
            created.append(run_with_retry(_op))
        except SettlementWarning as exc:
            db.session.rollback()
            current_app.logger.warning("Backfill skipped appointment %s: %s", appointment_id, exc)
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Backfill failed for appointment %s", appointment_id)

    current_app.logger.info(
        "Backfilled %s appointment transactions for tenant %s", len(created), tenant_id
    )
    return created
