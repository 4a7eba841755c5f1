# Overview: Service-layer operations for in-app tenant notifications.

from __future__ import annotations

from ..extensions import db
from ..models import Appointment, Notification
from .concurrency import run_with_retry


def create_notification(
    *,
    tenant_id: int,
    type: str,
    title: str,
    message: str,
    link: str | None = None,
) -> Notification:
    def _op():
        notification = Notification(
            tenant_id=tenant_id,
            type=type,
            title=title,
            message=message,
            link=link,
            read=False,
        )
        db.session.add(notification)
        db.session.commit()
        return notification

    return run_with_retry(_op)


def notify_appointment_cancelled(appointment: Appointment) -> Notification:
    """Tell the salon that a customer cancelled from the booking page."""
    return create_notification(
        tenant_id=appointment.tenant_id,
        type="appointment_cancelled",
        title="Randevu İptal Edildi",
        message=(
            f"{appointment.customer_name or 'Müşteri'} adlı müşteri {appointment.date} "
            f"{appointment.time} tarihli {appointment.service_name or 'hizmet'} "
            f"randevusunu iptal etti."
        ),
        link="/admin/appointments",
    )
