from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence, Tuple

from .config import StrategyConfig
from .indicators import body_contains
from .models import Candle, Direction, ExitReason, Skipped, Trade
from .timefilter import SessionClock, minutes_between

log = logging.getLogger("strategy")


def detect_signals(candles: Sequence[Candle]) -> List[Optional[Direction]]:
    """Outside-bar reversal per candle index (None where there is none).

    Candle i signals when its body engulfs the body of candle i-1; the
    direction follows candle i's own close vs open. Doji engulfers and
    index 0 never signal.
    """
    dirs: List[Optional[Direction]] = [None] * len(candles)
    for i in range(1, len(candles)):
        prev = candles[i - 1]
        cur = candles[i]
        if not body_contains(prev, cur):
            continue
        if cur.close > cur.open:
            dirs[i] = Direction.LONG
        elif cur.close < cur.open:
            dirs[i] = Direction.SHORT
    return dirs


@dataclass(frozen=True)
class _Exit:
    candle: Candle
    price: float
    reason: ExitReason


# Scan outcomes besides an _Exit
_UNRESOLVED = "unresolved"
_CONFLICT = "conflict"


class TradeSimulator:
    """Walks every signal through entry checks and the intraday exit rules."""

    def __init__(
        self,
        candles: Sequence[Candle],
        directions: Sequence[Optional[Direction]],
        cfg: Optional[StrategyConfig] = None,
    ):
        if len(candles) != len(directions):
            raise ValueError(f"candles/directions length mismatch: {len(candles)} != {len(directions)}")
        self.cfg = cfg or StrategyConfig()
        if int(self.cfg.stop_lookback) < 1:
            raise ValueError(f"stop_lookback must be >= 1 (got {self.cfg.stop_lookback})")
        self.candles = candles
        self.directions = directions
        self.clock = SessionClock.from_config(self.cfg)
        self.lookback = int(self.cfg.stop_lookback)

    def run(self) -> Tuple[List[Trade], Skipped]:
        trades: List[Trade] = []
        skipped = Skipped()
        dropped = 0

        for i in range(1, len(self.candles)):
            direction = self.directions[i]
            if direction is None:
                continue
            if i + 1 >= len(self.candles):
                # Signal on the last candle: nothing to enter on.
                dropped += 1
                continue
            trade = self._simulate(i, direction, skipped)
            if trade is not None:
                trades.append(trade)

        trades.sort(key=lambda t: (t.entry_time, t.signal_index))
        log.debug("simulate trades=%d skipped=%d dropped_eod=%d", len(trades), skipped.total(), dropped)
        return trades, skipped

    def _stop_and_risk(self, entry_idx: int, direction: Direction, entry_price: float) -> Tuple[float, float]:
        window = self.candles[entry_idx - self.lookback:entry_idx]
        if direction is Direction.LONG:
            stop = min(c.low for c in window)
            return stop, entry_price - stop
        stop = max(c.high for c in window)
        return stop, stop - entry_price

    def _simulate(self, signal_idx: int, direction: Direction, skipped: Skipped) -> Optional[Trade]:
        entry_idx = signal_idx + 1
        entry = self.candles[entry_idx]

        if not self.clock.entry_allowed(entry.timestamp):
            skipped.outside_window += 1
            return None
        if entry_idx < self.lookback:
            skipped.insufficient_history += 1
            return None

        entry_price = entry.open
        stop, risk = self._stop_and_risk(entry_idx, direction, entry_price)
        if risk <= 0:
            skipped.invalid_risk += 1
            return None

        outcome = self._scan_exit(entry_idx, direction, stop)
        if outcome == _CONFLICT:
            skipped.invalid_same_candle += 1
            return None
        if outcome == _UNRESOLVED:
            skipped.no_exit += 1
            return None

        if direction is Direction.LONG:
            r_multiple = (outcome.price - entry_price) / risk
        else:
            r_multiple = (entry_price - outcome.price) / risk

        return Trade(
            entry_time=entry.timestamp,
            exit_time=outcome.candle.timestamp,
            direction=direction,
            entry_price=entry_price,
            exit_price=outcome.price,
            stop=stop,
            risk=risk,
            r_multiple=r_multiple,
            exit_reason=outcome.reason,
            signal_time=self.candles[signal_idx].timestamp,
            signal_direction=direction,
            hold_minutes=minutes_between(entry.timestamp, outcome.candle.timestamp),
            signal_index=signal_idx,
        )

    def _scan_exit(self, entry_idx: int, direction: Direction, stop: float):
        """Walk forward from the entry candle; the check order per candle is fixed:
        day rollover, time exit, stop+opposing conflict, stop, opposing signal.
        """
        entry_ts = self.candles[entry_idx].timestamp
        entry_date = entry_ts.date()
        deadline = self.clock.exit_deadline(entry_ts)
        opposite = direction.opposite()

        for j in range(entry_idx, len(self.candles)):
            c = self.candles[j]
            if c.timestamp.date() > entry_date:
                break

            if c.timestamp >= deadline:
                return _Exit(c, c.open, ExitReason.TIME_EXIT)

            if direction is Direction.LONG:
                stop_hit = c.low < stop
            else:
                stop_hit = c.high > stop
            opposing = self.directions[j] is opposite

            if stop_hit and opposing:
                # Can't tell which came first inside the bar.
                return _CONFLICT
            if stop_hit:
                return _Exit(c, stop, ExitReason.STOP_LOSS)
            if opposing:
                return _Exit(c, c.close, ExitReason.TAKE_PROFIT)

        return _UNRESOLVED
