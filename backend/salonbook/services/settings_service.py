# Overview: Service-layer reads of per-tenant settings used by the settlement engine.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import TenantSettings


def get_blacklist_threshold(tenant_id: int) -> int:
    """
    No-show count at which a customer gets blacklisted for this tenant.

    A missing settings row, a NULL value, or a non-positive value falls back
    to DEFAULT_BLACKLIST_THRESHOLD (3 unless configured).
    """
    default = int(current_app.config.get("DEFAULT_BLACKLIST_THRESHOLD", 3))
    threshold = (
        db.session.query(TenantSettings.blacklist_threshold)
        .filter(TenantSettings.tenant_id == tenant_id)
        .scalar()
    )
    if not threshold or threshold < 1:
        return default
    return int(threshold)


def set_blacklist_threshold(tenant_id: int, threshold: int | None) -> TenantSettings:
    """Create or update the tenant's settings row. Commits."""
    if threshold is not None and threshold < 1:
        raise ValueError("blacklist_threshold must be >= 1")

    settings = db.session.query(TenantSettings).filter_by(tenant_id=tenant_id).first()
    if settings is None:
        settings = TenantSettings(tenant_id=tenant_id)
        db.session.add(settings)
    settings.blacklist_threshold = threshold
    db.session.commit()
    return settings
