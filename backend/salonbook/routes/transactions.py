# backend/salonbook/routes/transactions.py
"""
Cash ledger repair routes (owner only).

- GET  /api/transactions/missing[?date=YYYY-MM-DD] - preview settled appointments with no ledger row
- POST /api/transactions/missing                    - create the missing rows

WHY: Ledger entries are written best-effort after the appointment status
commits. These routes find and repair the ones that did not make it.
"""

import re

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ledger_service
from ..services.auth_service import ROLE_OWNER
from ..decorators import require_auth, require_role


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _date_filter(value):
    if value in (None, ""):
        return None
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError("date must be YYYY-MM-DD")
    return value


@transactions_bp.get("/missing")
@require_auth
@require_role(ROLE_OWNER)
def preview_missing_transactions_route():
    try:
        date = _date_filter(request.args.get("date"))
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        missing = ledger_service.find_missing_appointment_transactions(g.tenant_id, date)
        return jsonify({"success": True, **ledger_service.summarize_missing(missing)}), 200
    except Exception:
        current_app.logger.exception("Failed to preview missing transactions")
        return jsonify({"success": False, "message": "Failed to preview"}), 500


@transactions_bp.post("/missing")
@require_auth
@require_role(ROLE_OWNER)
def backfill_missing_transactions_route():
    """
    Request body (optional):
        {"date": "2026-10-18"}

    Response:
        {"success": true, "created": 2, "transactions": [...]}
    """
    data = request.get_json(silent=True) or {}
    try:
        date = _date_filter(data.get("date") if isinstance(data, dict) else None)
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        created = ledger_service.backfill_missing_appointment_transactions(g.tenant_id, date)
        return jsonify({
            "success": True,
            "message": f"Created {len(created)} missing transactions",
            "created": len(created),
            "transactions": [tx.to_dict() for tx in created],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to backfill missing transactions")
        return jsonify({"success": False, "message": "Failed to fix missing transactions"}), 500
