from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .config import StrategyConfig
from .models import Candle

log = logging.getLogger("loader")

_TIME_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
)


def parse_time(raw: str) -> Optional[datetime]:
    raw = raw.strip()
    if "." in raw:
        # strptime's %f takes at most 6 digits; drop sub-microsecond precision.
        head, _, frac = raw.rpartition(".")
        if frac.isdigit() and len(frac) > 6:
            raw = f"{head}.{frac[:6]}"
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def parse_price(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    raw = value.strip().strip('"')
    if not raw:
        return None
    cleaned = raw.replace(",", "")
    if "_" in cleaned:
        return None
    try:
        x = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(x):
        return None
    return x


def _parse_row(row: Sequence[str], shift: timedelta, banner_prefix: str) -> Optional[Candle]:
    if len(row) < 5:
        return None

    raw_time = row[0].strip()
    if not raw_time or (banner_prefix and raw_time.startswith(banner_prefix)):
        return None

    ts = parse_time(raw_time.strip('"'))
    if ts is None:
        return None

    prices = [parse_price(row[k]) for k in range(1, 5)]
    if any(p is None for p in prices):
        return None
    o, h, l, c = prices
    return Candle(timestamp=ts + shift, open=o, high=h, low=l, close=c)


def parse_candles(data: bytes, cfg: Optional[StrategyConfig] = None) -> List[Candle]:
    """Parse delimited text into candles sorted by timestamp.

    Unusable rows (short, banner, bad timestamp, bad price) are dropped
    without error; an empty result is left for the caller to judge.
    """
    cfg = cfg or StrategyConfig()
    shift = timedelta(hours=cfg.time_shift_hours)
    text = data.decode("utf-8-sig", errors="replace")

    candles: List[Candle] = []
    rows = 0
    reader = csv.reader(io.StringIO(text, newline=""))
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            # e.g. a field over the csv size limit; the reader resumes on the next line
            rows += 1
            log.debug("parse_candles bad_record line=%d err=%s", reader.line_num, e)
            continue
        rows += 1
        candle = _parse_row(row, shift, cfg.banner_prefix)
        if candle is not None:
            candles.append(candle)

    candles.sort(key=lambda c: c.timestamp)
    log.debug("parse_candles rows=%d candles=%d dropped=%d", rows, len(candles), rows - len(candles))
    return candles
