from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Union
import re

from .config import StrategyConfig


_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_clock(value: Union[str, time]) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a time of day."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        # YAML 1.1 reads an unquoted 11:30 as a base-60 integer
        raise ValueError(f"Unsupported clock value: {value!r} (quote it, e.g. '11:30')")
    m = _CLOCK_RE.match(value.strip())
    if not m:
        raise ValueError(f"Unsupported clock format: {value} (use 'HH:MM' or 'HH:MM:SS')")
    h, mi, s = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if h > 23 or mi > 59 or s > 59:
        raise ValueError(f"Clock value out of range: {value}")
    return time(h, mi, s)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start) / timedelta(minutes=1))


@dataclass(frozen=True)
class SessionClock:
    entry_start: time
    entry_end: time
    exit_at: time

    @classmethod
    def from_config(cls, cfg: StrategyConfig) -> "SessionClock":
        return cls(
            entry_start=parse_clock(cfg.entry_window_start),
            entry_end=parse_clock(cfg.entry_window_end),
            exit_at=parse_clock(cfg.time_exit),
        )

    def entry_allowed(self, ts: datetime) -> bool:
        t = ts.time()
        s = self.entry_start
        e = self.entry_end
        # Inclusive at both ends.
        if s <= e:
            return s <= t <= e
        # Cross-midnight window (e.g., 22:00 -> 02:00)
        return t >= s or t <= e

    def exit_deadline(self, ts: datetime) -> datetime:
        return datetime.combine(ts.date(), self.exit_at)
