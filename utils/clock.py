from datetime import date, datetime, timedelta, timezone
from typing import Optional


class SystemClock:
    """Wall clock in the host's local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class FixedClock:
    """Clock that only moves when told to. Used by tests and replays."""

    def __init__(self, current: datetime):
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def local_day(moment: datetime) -> date:
    """Calendar date of a timestamp in its own (local) offset."""
    return moment.date()


def to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc)


def to_storage(moment: Optional[datetime]) -> Optional[str]:
    """UTC ISO text so lexical order in SQLite equals chronological order."""
    if moment is None:
        return None
    return to_utc(moment).isoformat(timespec="microseconds")
