from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .formatters import fmt_time
from .models import Candle, ExitReason, Summary, Trade


@dataclass
class _Accumulator:
    """Running totals for one pass over a time-ordered trade list."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    sum_wins: float = 0.0
    sum_losses: float = 0.0
    total_r: float = 0.0

    tp_exits: int = 0
    sl_exits: int = 0
    time_exits: int = 0

    win_streak: int = 0
    loss_streak: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0

    equity: float = 0.0
    peak: float = 0.0
    max_drawdown: float = 0.0

    total_hold: float = 0.0

    def add(self, trade: Trade) -> None:
        r = trade.r_multiple
        self.trades += 1
        self.total_r += r

        if trade.exit_reason is ExitReason.TAKE_PROFIT:
            self.tp_exits += 1
        elif trade.exit_reason is ExitReason.STOP_LOSS:
            self.sl_exits += 1
        else:
            self.time_exits += 1

        if r > 0:
            self.wins += 1
            self.sum_wins += r
            self.win_streak += 1
            self.loss_streak = 0
            self.max_win_streak = max(self.max_win_streak, self.win_streak)
        elif r < 0:
            self.losses += 1
            self.sum_losses += r
            self.loss_streak += 1
            self.win_streak = 0
            self.max_loss_streak = max(self.max_loss_streak, self.loss_streak)
        else:
            self.breakeven += 1
            self.win_streak = 0
            self.loss_streak = 0

        self.equity += r
        if self.equity > self.peak:
            self.peak = self.equity
        drawdown = self.equity - self.peak
        if drawdown < self.max_drawdown:
            self.max_drawdown = drawdown

        self.total_hold += trade.hold_minutes


def _ratio(num: float, den: int) -> float:
    return num / den if den > 0 else 0.0


def summarize(candles: Sequence[Candle], timeframe_minutes: Optional[int], trades: Sequence[Trade]) -> Summary:
    acc = _Accumulator()
    for trade in trades:
        acc.add(trade)

    profit_factor = acc.sum_wins / abs(acc.sum_losses) if abs(acc.sum_losses) > 0 else None

    if candles:
        start_time, end_time = fmt_time(candles[0].timestamp), fmt_time(candles[-1].timestamp)
    else:
        start_time, end_time = "", ""

    return Summary(
        candles=len(candles),
        timeframe_minutes=timeframe_minutes,
        trades=acc.trades,
        wins=acc.wins,
        losses=acc.losses,
        breakeven=acc.breakeven,
        win_rate=_ratio(acc.wins, acc.trades),
        total_r=acc.total_r,
        avg_r=_ratio(acc.total_r, acc.trades),
        avg_win_r=_ratio(acc.sum_wins, acc.wins),
        avg_loss_r=_ratio(acc.sum_losses, acc.losses),
        profit_factor=profit_factor,
        max_drawdown_r=acc.max_drawdown,
        max_consecutive_wins=acc.max_win_streak,
        max_consecutive_losses=acc.max_loss_streak,
        tp_exits=acc.tp_exits,
        sl_exits=acc.sl_exits,
        time_exits=acc.time_exits,
        avg_hold_minutes=_ratio(acc.total_hold, acc.trades),
        start_time=start_time,
        end_time=end_time,
    )
