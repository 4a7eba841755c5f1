# backend/salonbook/routes/public.py
"""
Public booking-page endpoints (no bearer token).

- POST /api/appointments/:id/cancel    - customer cancels with the booking phone
- GET  /api/public/check-blacklist     - is this phone blacklisted at this salon?
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import appointment_service, no_show_service
from ..services.appointment_service import AppointmentError
from ..services.no_show_service import TenantNotFoundError
from ..validation import ValidationError, require_phone


public_bp = Blueprint("public", __name__, url_prefix="/api")


@public_bp.post("/appointments/<int:appointment_id>/cancel")
def cancel_by_phone_route(appointment_id: int):
    """
    Request body:
        {"phone": "5551234567"}

    Error responses:
        400: Missing phone, not pending, or too close to the start time
        403: Phone does not match the booking
        404: Appointment not found
    """
    try:
        phone = require_phone(request.get_json(silent=True))
        result = appointment_service.cancel_by_phone(appointment_id, phone)
        return jsonify({
            "success": True,
            "message": "Randevu başarıyla iptal edildi",
            "data": result.appointment.to_dict(),
        }), 200
    except ValidationError:
        return jsonify({"success": False, "message": "Telefon numarası gereklidir"}), 400
    except AppointmentError as e:
        return jsonify({"success": False, "message": str(e)}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to cancel appointment by phone")
        return jsonify({"success": False, "message": "Randevu iptal edilirken hata oluştu"}), 500


@public_bp.get("/public/check-blacklist")
def check_blacklist_route():
    """
    Query parameters:
        phone: customer phone as stored by the salon
        tenantSlug: salon slug

    Response:
        {"success": true, "isBlacklisted": false, "noShowCount": 0}
    """
    phone = (request.args.get("phone") or "").strip()
    tenant_slug = (request.args.get("tenantSlug") or "").strip()

    if not phone or not tenant_slug:
        return jsonify({"success": False, "message": "Phone and tenantSlug are required"}), 400

    try:
        result = no_show_service.check_blacklist(tenant_slug, phone)
        return jsonify({
            "success": True,
            "isBlacklisted": result["is_blacklisted"],
            "noShowCount": result["no_show_count"],
        }), 200
    except TenantNotFoundError:
        return jsonify({"success": False, "message": "Tenant not found"}), 404
    except Exception:
        current_app.logger.exception("Blacklist check failed")
        return jsonify({"success": False, "message": "Internal server error"}), 500
