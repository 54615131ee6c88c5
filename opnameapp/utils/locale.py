"""Indonesian (id-ID) presentation helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Jakarta"


def format_id_datetime(value: datetime | None, tz_name: str | None = None) -> str:
    """Render like ``toLocaleString("id-ID")``: ``17/10/2026, 14.05.09``."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(ZoneInfo(tz_name or DEFAULT_TIMEZONE))
    return f"{local.day}/{local.month}/{local.year}, {local:%H.%M.%S}"


def format_rupiah(amount: int | None) -> str:
    return "Rp " + f"{int(amount or 0):,}".replace(",", ".")
