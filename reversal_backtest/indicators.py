from __future__ import annotations
from typing import List, Optional, Sequence

from .models import Candle
from .timefilter import minutes_between


def body_contains(prev: Candle, cur: Candle) -> bool:
    """True when cur's open/close span strictly engulfs prev's."""
    return cur.body_low < prev.body_low and cur.body_high > prev.body_high


def infer_timeframe_minutes(candles: Sequence[Candle]) -> Optional[int]:
    """Median positive gap between consecutive candles, in whole minutes.

    Even-length gap lists resolve to the lower-middle element. Returns None
    when there are fewer than two candles or no positive gap.
    """
    if len(candles) < 2:
        return None

    gaps: List[int] = []
    for i in range(1, len(candles)):
        minutes = minutes_between(candles[i - 1].timestamp, candles[i].timestamp)
        if minutes > 0:
            gaps.append(minutes)

    if not gaps:
        return None

    gaps.sort()
    return gaps[(len(gaps) - 1) // 2]
