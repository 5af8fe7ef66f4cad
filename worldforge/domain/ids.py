from __future__ import annotations

from datetime import datetime, timezone
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def years_ago(years: int, *, now: datetime | None = None) -> datetime:
    anchor = now or utc_now()
    try:
        return anchor.replace(year=anchor.year - years)
    except ValueError:
        # Feb 29 on a non-leap target year.
        return anchor.replace(year=anchor.year - years, day=28)
