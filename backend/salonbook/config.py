# backend/salonbook/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Bearer tokens issued by the mobile/PWA login flow are HS256 JWTs
    JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

    # SQLite DB stored in backend/instance/salonbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///salonbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Used when a tenant has no settings row (or a null threshold)
    DEFAULT_BLACKLIST_THRESHOLD = int(os.environ.get("DEFAULT_BLACKLIST_THRESHOLD", "3"))

    # Customers cancelling by phone must do so at least this far ahead
    SELF_CANCEL_MIN_LEAD_HOURS = int(os.environ.get("SELF_CANCEL_MIN_LEAD_HOURS", "6"))
