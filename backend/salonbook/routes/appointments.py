# backend/salonbook/routes/appointments.py
"""
Mobile Appointment API Routes

These routes are called by the mobile app and the PWA with a bearer token:
- GET    /api/mobile/appointments/:id - Read one appointment (tenant/customer scoped)
- PATCH  /api/mobile/appointments/:id - Change status and/or notes
- DELETE /api/mobile/appointments/:id - Cancel (status write, the row is kept)

Status changes go through appointment_service.transition_appointment, which
also runs the package/ledger/no-show bookkeeping for the transition.

SECURITY:
- All routes require authentication
- Tenant and caller identity come from the signed token (g.actor), never
  from the request body
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import appointment_service
from ..services.appointment_service import AppointmentError
from ..validation import ValidationError, parse_status_update
from ..decorators import require_auth


mobile_appointments_bp = Blueprint(
    "mobile_appointments", __name__, url_prefix="/api/mobile/appointments"
)


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


@mobile_appointments_bp.get("/<int:appointment_id>")
@require_auth
def get_appointment_route(appointment_id: int):
    """
    Read a single appointment.

    Error responses:
        401: Not authenticated
        403: Other tenant, or a customer reading someone else's appointment
        404: Appointment not found
    """
    try:
        appointment = appointment_service.get_appointment_for_actor(appointment_id, g.actor)
        return jsonify({"success": True, "data": appointment.to_dict()}), 200
    except AppointmentError as e:
        return _error(str(e), e.http_status)
    except Exception:
        current_app.logger.exception("Failed to fetch appointment")
        return _error("Bir hata oluştu", 500)


@mobile_appointments_bp.patch("/<int:appointment_id>")
@require_auth
def update_appointment_status_route(appointment_id: int):
    """
    Change an appointment's status.

    Request body:
        {
            "status": "confirmed",   // pending|confirmed|completed|cancelled|no_show
            "notes": "..."           // optional
        }

    Response:
        {
            "success": true,
            "message": "Randevu güncellendi",
            "data": {"id": 12, "status": "confirmed"}
        }

    Error responses:
        401: Not authenticated
        403: Transition not allowed for this caller
        404: Appointment not found
        400: Invalid status / malformed body
    """
    try:
        update = parse_status_update(request.get_json(silent=True))
        result = appointment_service.transition_appointment(
            appointment_id,
            update.status,
            g.actor,
            notes=update.notes,
        )

        return jsonify({
            "success": True,
            "message": "Randevu güncellendi",
            "data": result.to_dict(),
        }), 200

    except ValidationError as e:
        return _error(str(e), 400)
    except AppointmentError as e:
        return _error(str(e), e.http_status)
    except Exception:
        current_app.logger.exception("Failed to update appointment")
        return _error("Bir hata oluştu", 500)


@mobile_appointments_bp.delete("/<int:appointment_id>")
@require_auth
def cancel_appointment_route(appointment_id: int):
    """
    Cancel an appointment. Equivalent to PATCH {"status": "cancelled"}, so a
    previously settled package visit gets its unit back.
    """
    try:
        appointment_service.transition_appointment(
            appointment_id,
            appointment_service.STATUS_CANCELLED,
            g.actor,
        )
        return jsonify({"success": True, "message": "Randevu iptal edildi"}), 200
    except AppointmentError as e:
        return _error(str(e), e.http_status)
    except Exception:
        current_app.logger.exception("Failed to cancel appointment")
        return _error("Bir hata oluştu", 500)
