# Overview: Service-layer operations for appointment status transitions and their settlement effects.

"""
Appointment Lifecycle Service

================================================================================
PURPOSE: Apply a requested status change and run the bookkeeping it implies
================================================================================

STATES:
    pending, confirmed, completed, cancelled, no_show

    Any status may be rewritten to any other at the schema level. cancelled
    and no_show are terminal for business purposes: writing the same value
    again fires nothing.

TRANSITION (transition_appointment):
    1. load appointment                      -> AppointmentNotFoundError (404)
    2. authorize actor                       -> AppointmentForbiddenError (403)
    3. validate requested status             -> InvalidStatusError (400)
    4-5. remember old status, write new status (+ notes) and COMMIT
    6-7. run every effect handler whose predicate holds for (old, new)

EFFECT HANDLERS (evaluated in order, each independently):
    package_deduct           entered {confirmed, completed} from outside it
    appointment_transaction  entered {confirmed, completed} from outside it
    no_show                  entered no_show
    package_refund           entered cancelled from {confirmed, completed}

    Handlers are not an if/elif chain: every predicate is checked, so adding a
    status later cannot silently starve a handler further down the list.

FAILURE POLICY:
    Steps 1-3 abort before anything is written. Once the status is committed
    it is the source of truth: a handler that fails is logged, its own session
    work is rolled back, and the remaining handlers still run. Nothing
    propagates to the caller. Missed bookkeeping can be repaired later
    (see ledger_service.backfill_missing_appointment_transactions).
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from flask import current_app

from ..extensions import db
from ..models import Appointment, APPOINTMENT_STATUSES
from ..validation import UNSET
from .auth_service import Actor, ROLE_CUSTOMER
from .concurrency import lock_for_update, run_with_retry
from . import ledger_service, no_show_service, notification_service, package_service
from salonbook.time_utils import parse_appointment_start


STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_NO_SHOW = "no_show"

VALID_STATUSES = frozenset(APPOINTMENT_STATUSES)

# Statuses in which the visit is considered paid for / settled
SETTLED_STATUSES = frozenset({STATUS_CONFIRMED, STATUS_COMPLETED})


# =============================================================================
# ERRORS
# =============================================================================

class AppointmentError(ValueError):
    """Base for errors reported to the caller. http_status drives the response."""
    http_status = 400


class AppointmentNotFoundError(AppointmentError):
    http_status = 404


class AppointmentForbiddenError(AppointmentError):
    http_status = 403


class InvalidStatusError(AppointmentError):
    http_status = 400


class CancellationNotAllowedError(AppointmentError):
    """Self-service cancel refused by policy (status or lead time)."""
    http_status = 400


# =============================================================================
# EFFECT HANDLERS
# =============================================================================

@dataclass(frozen=True)
class EffectHandler:
    name: str
    applies: Callable[[str, str], bool]
    run: Callable[[Appointment], Any]


@dataclass(frozen=True)
class EffectOutcome:
    name: str
    applied: bool
    error: str | None = None


def entered_settled(old_status: str, new_status: str) -> bool:
    return new_status in SETTLED_STATUSES and old_status not in SETTLED_STATUSES


def entered_no_show(old_status: str, new_status: str) -> bool:
    return new_status == STATUS_NO_SHOW and old_status != STATUS_NO_SHOW


def cancelled_after_settlement(old_status: str, new_status: str) -> bool:
    return (
        new_status == STATUS_CANCELLED
        and old_status != STATUS_CANCELLED
        and old_status in SETTLED_STATUSES
    )


# Looked up through the modules at call time so tests can patch them
EFFECT_HANDLERS: tuple[EffectHandler, ...] = (
    EffectHandler("package_deduct", entered_settled, lambda a: package_service.deduct(a)),
    EffectHandler(
        "appointment_transaction",
        entered_settled,
        lambda a: ledger_service.create_appointment_transaction(a),
    ),
    EffectHandler("no_show", entered_no_show, lambda a: no_show_service.record_no_show(a)),
    EffectHandler("package_refund", cancelled_after_settlement, lambda a: package_service.refund(a)),
)


@dataclass
class TransitionResult:
    appointment: Appointment
    old_status: str
    new_status: str
    effects: list[EffectOutcome] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.old_status != self.new_status

    def to_dict(self) -> dict:
        return {
            "id": self.appointment.id,
            "status": self.new_status,
        }


# =============================================================================
# AUTHORIZATION / VALIDATION
# =============================================================================

def authorize(appointment: Appointment, actor: Actor, requested_status: str | None) -> None:
    """
    Raise AppointmentForbiddenError unless the actor may change this appointment.

    - everyone: appointment must belong to the actor's tenant
    - customer: own appointment only, and only to cancel it. Ownership is
      by customer_id; a customer identity without an id (guest booking)
      owns the appointments booked with its phone.
    - staff: appointments assigned to them only
    - owner: anything within the tenant
    """
    if appointment.tenant_id != actor.tenant_id:
        raise AppointmentForbiddenError("Erişim yetkisi yok")

    if actor.is_customer:
        if not _customer_owns(appointment, actor):
            raise AppointmentForbiddenError("Erişim yetkisi yok")
        if requested_status != STATUS_CANCELLED:
            raise AppointmentForbiddenError("Sadece iptal işlemi yapabilirsiniz")
        return

    if actor.is_staff:
        if actor.staff_id is None or appointment.staff_id != actor.staff_id:
            raise AppointmentForbiddenError("Sadece kendi randevularınızı güncelleyebilirsiniz")
        return

    if actor.is_owner:
        return

    raise AppointmentForbiddenError("Erişim yetkisi yok")


def _customer_owns(appointment: Appointment, actor: Actor) -> bool:
    if actor.customer_id is not None:
        return appointment.customer_id == actor.customer_id
    return bool(actor.phone) and appointment.customer_phone == actor.phone


def validate_status(status: str) -> None:
    """
    Raises:
        InvalidStatusError: status is not one of VALID_STATUSES
    """
    if status not in VALID_STATUSES:
        raise InvalidStatusError("Geçersiz durum")


# =============================================================================
# READ
# =============================================================================

def get_appointment_for_actor(appointment_id: int, actor: Actor) -> Appointment:
    """
    Tenant-scoped read. Customers only see their own appointments; staff and
    owners see any appointment of their tenant.
    """
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFoundError("Randevu bulunamadı")
    if appointment.tenant_id != actor.tenant_id:
        raise AppointmentForbiddenError("Erişim yetkisi yok")
    if actor.is_customer and not _customer_owns(appointment, actor):
        raise AppointmentForbiddenError("Erişim yetkisi yok")
    return appointment


# =============================================================================
# TRANSITION
# =============================================================================

def transition_appointment(
    appointment_id: int,
    requested_status: str | None,
    actor: Actor,
    *,
    notes: Any = UNSET,
) -> TransitionResult:
    """
    Change an appointment's status (and optionally its notes) and run the
    settlement effects the transition calls for.

    requested_status may be None for a notes-only update by staff/owner; that
    writes notes and fires no effects.

    Raises:
        AppointmentNotFoundError, AppointmentForbiddenError, InvalidStatusError
        (all before any write)
    """

    def _write():
        appointment = lock_for_update(
            db.session.query(Appointment).filter_by(id=appointment_id)
        ).first()
        if appointment is None:
            raise AppointmentNotFoundError("Randevu bulunamadı")

        authorize(appointment, actor, requested_status)

        if requested_status is None:
            if notes is UNSET:
                raise InvalidStatusError("Geçersiz durum")
        else:
            validate_status(requested_status)

        old_status = appointment.status
        new_status = requested_status or old_status

        appointment.status = new_status
        if notes is not UNSET:
            appointment.notes = notes
        db.session.commit()
        return appointment, old_status, new_status

    try:
        appointment, old_status, new_status = run_with_retry(_write)
    except AppointmentError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Appointment %s: %s -> %s by %s", appointment_id, old_status, new_status, actor.role
    )

    result = TransitionResult(appointment=appointment, old_status=old_status, new_status=new_status)
    result.effects = run_effects(appointment, old_status, new_status)
    return result


def run_effects(appointment: Appointment, old_status: str, new_status: str) -> list[EffectOutcome]:
    """
    Run each applicable handler in its own failure boundary.

    Unexpected exceptions are logged with traceback and rolled back; they do
    not stop the handlers after them and never reach the caller.
    """
    outcomes: list[EffectOutcome] = []
    appointment_id = appointment.id

    for handler in EFFECT_HANDLERS:
        if not handler.applies(old_status, new_status):
            continue
        try:
            outcome = handler.run(appointment)
        except Exception as exc:
            db.session.rollback()
            current_app.logger.exception(
                "Settlement effect %s failed for appointment %s", handler.name, appointment_id
            )
            outcomes.append(EffectOutcome(name=handler.name, applied=False, error=str(exc)))
            continue
        outcomes.append(EffectOutcome(name=handler.name, applied=bool(outcome)))

    return outcomes


# =============================================================================
# SELF-SERVICE CANCEL (booking page, identified by phone)
# =============================================================================

def cancel_by_phone(
    appointment_id: int,
    phone: str,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """
    Let a customer cancel a pending appointment from the public booking page.

    The phone must match the one captured at booking, the appointment must
    still be pending, and it must start at least SELF_CANCEL_MIN_LEAD_HOURS
    from now. The cancel runs through transition_appointment, then the salon
    gets an in-app notification (best effort).

    Raises:
        AppointmentNotFoundError, AppointmentForbiddenError,
        CancellationNotAllowedError
    """
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFoundError("Randevu bulunamadı")

    if not appointment.customer_phone or appointment.customer_phone != phone:
        raise AppointmentForbiddenError("Bu randevuyu iptal etme yetkiniz yok")

    if appointment.status != STATUS_PENDING:
        raise CancellationNotAllowedError("Bu randevu iptal edilemez")

    lead_hours = int(current_app.config.get("SELF_CANCEL_MIN_LEAD_HOURS", 6))
    try:
        starts_at = parse_appointment_start(appointment.date, appointment.time)
    except ValueError:
        raise CancellationNotAllowedError("Bu randevu iptal edilemez")
    if starts_at - (now or datetime.now()) < timedelta(hours=lead_hours):
        raise CancellationNotAllowedError(
            f"Randevuya {lead_hours} saatten az kaldığı için iptal edilemez"
        )

    actor = Actor(
        role=ROLE_CUSTOMER,
        tenant_id=appointment.tenant_id,
        customer_id=appointment.customer_id,
        phone=phone,
    )
    result = transition_appointment(appointment_id, STATUS_CANCELLED, actor)

    try:
        notification_service.notify_appointment_cancelled(result.appointment)
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to create cancellation notification for appointment %s", appointment_id
        )

    return result
