# Overview: Request decorators for bearer-token authentication and role checks.

from functools import wraps
from flask import request, jsonify, g

from .services import auth_service


def _is_authenticated() -> bool:
    return hasattr(g, 'actor') and g.actor is not None


def require_auth(f):
    """
    Require a valid bearer token and establish the caller's tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.actor: The decoded auth_service.Actor
    - g.tenant_id: The tenant ID from the token - REQUIRED

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, or unsigned token
    - Token without a usable userType/tenantId
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "message": "Yetkilendirme gerekli"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        actor = auth_service.decode_token(token)
        if actor is None:
            return jsonify({"success": False, "message": "Geçersiz veya süresi dolmuş oturum"}), 401

        g.actor = actor
        g.tenant_id = actor.tenant_id

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the authenticated actor to hold one of the given roles.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"success": False, "message": "Yetkilendirme gerekli"}), 401

            if g.actor.role not in roles:
                return jsonify({
                    "success": False,
                    "message": "Erişim yetkisi yok",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
