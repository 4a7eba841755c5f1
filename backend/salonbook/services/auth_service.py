# Overview: Service-layer operations for bearer-token authentication.

"""
Bearer Token Authentication

The mobile app and the PWA authenticate with HS256 JWTs issued by the OTP
login flow (outside this service). The payload carries the tenant context
and the caller's role:

    {"userType": "customer" | "staff" | "owner",
     "tenantId": <int>, "customerId"?: <int>, "staffId"?: <int>,
     "phone"?: <str>, "exp": <unix ts>}

decode_token() turns a token into an Actor or None; it never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


ROLE_CUSTOMER = "customer"
ROLE_STAFF = "staff"
ROLE_OWNER = "owner"

VALID_ROLES = {ROLE_CUSTOMER, ROLE_STAFF, ROLE_OWNER}

DEFAULT_TOKEN_LIFETIME = timedelta(days=30)


@dataclass(frozen=True)
class Actor:
    """
    Authenticated caller.

    MULTI-TENANT: tenant_id comes from the signed token, never from the
    request body.
    """
    role: str
    tenant_id: int
    customer_id: int | None = None
    staff_id: int | None = None
    phone: str | None = None

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER

    @property
    def is_staff(self) -> bool:
        return self.role == ROLE_STAFF

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER


def _optional_int(value):
    if value is None or value == "":
        return None
    return int(value)


def decode_token(token: str) -> Actor | None:
    """
    Verify signature/expiry and build the Actor.

    Returns None if the token is invalid, expired, or lacks a usable
    userType/tenantId.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.PyJWTError:
        return None

    role = payload.get("userType")
    if role not in VALID_ROLES:
        return None

    try:
        tenant_id = _optional_int(payload.get("tenantId"))
        customer_id = _optional_int(payload.get("customerId"))
        staff_id = _optional_int(payload.get("staffId"))
    except (TypeError, ValueError):
        return None
    if tenant_id is None:
        return None

    return Actor(
        role=role,
        tenant_id=tenant_id,
        customer_id=customer_id,
        staff_id=staff_id,
        phone=payload.get("phone"),
    )


def issue_token(
    *,
    role: str,
    tenant_id: int,
    customer_id: int | None = None,
    staff_id: int | None = None,
    phone: str | None = None,
    lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
) -> str:
    """Sign a bearer token with the same claims the login flow emits."""
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role '{role}'. Must be one of: {', '.join(sorted(VALID_ROLES))}")

    payload = {
        "userType": role,
        "tenantId": tenant_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    if customer_id is not None:
        payload["customerId"] = customer_id
    if staff_id is not None:
        payload["staffId"] = staff_id
    if phone is not None:
        payload["phone"] = phone

    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )
