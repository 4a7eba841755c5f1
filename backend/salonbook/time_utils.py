from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_str(now: Optional[datetime] = None) -> str:
    """
    Calendar day as stored on ledger rows ("YYYY-MM-DD").

    Uses the server's local date, which is the revenue-recognition date
    for appointment transactions.
    """
    if now is None:
        return date.today().isoformat()
    return now.date().isoformat()


def parse_appointment_start(day: str, time_of_day: str) -> datetime:
    """
    Combine an appointment's stored date ("YYYY-MM-DD") and time ("HH:MM")
    into a naive local datetime.

    Raises ValueError if either part is malformed.
    """
    return datetime.fromisoformat(f"{day.strip()}T{time_of_day.strip()}")


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
